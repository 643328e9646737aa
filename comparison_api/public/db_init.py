import os
import psycopg

DDL = """
create table if not exists perf_baselines (
  id text primary key,
  created_at timestamptz not null,
  expires_at timestamptz null,
  payload jsonb not null
);

create index if not exists idx_perf_baselines_created_at on perf_baselines(created_at desc);
create index if not exists idx_perf_baselines_expires_at on perf_baselines(expires_at);
"""


def init_db_if_enabled() -> bool:
    # Only the postgres store needs a schema.
    if os.getenv("BASELINE_STORE", "memory").strip().lower() != "postgres":
        return False
    # toggle so you can disable later without code changes
    if os.getenv("DB_INIT_ON_STARTUP", "1") != "1":
        return False

    dsn = os.getenv("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL not set")

    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            cur.execute(DDL)
        conn.commit()
    return True
