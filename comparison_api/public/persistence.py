"""
Postgres-backed baseline repository.

Baselines are stored whole as jsonb (see serialization.baseline_to_dict);
expiry is a column so expired rows are filtered in SQL.
"""
import json
from datetime import timedelta
from typing import List, Optional

import psycopg
from psycopg.types.json import Jsonb

from perf_kits.baseline_comparison.baseline import Baseline, BaselineId, utc_now
from perf_kits.baseline_comparison.exceptions import RepositoryError
from perf_kits.baseline_comparison.repository import BaselineRepository
from perf_kits.baseline_comparison.serialization import baseline_from_dict, baseline_to_dict


class PostgresBaselineRepository(BaselineRepository):
    def __init__(self, dsn: str, ttl_seconds: Optional[float] = None):
        if not dsn:
            raise RuntimeError("DATABASE_URL not set")
        self.dsn = dsn
        self.ttl = timedelta(seconds=ttl_seconds) if ttl_seconds else None

    @staticmethod
    def _load(payload) -> Baseline:
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        return baseline_from_dict(payload)

    def create(self, baseline: Baseline) -> BaselineId:
        expires_at = utc_now() + self.ttl if self.ttl else None
        try:
            with psycopg.connect(self.dsn) as conn:
                with conn.cursor() as cur:
                    # An expired id is free for reuse, as in the in-memory store.
                    cur.execute(
                        "delete from perf_baselines where id = %s and expires_at <= now()",
                        (str(baseline.id),),
                    )
                    cur.execute(
                        """
                        insert into perf_baselines (id, created_at, expires_at, payload)
                        values (%s, %s, %s, %s)
                        """,
                        (str(baseline.id), baseline.created_at, expires_at, Jsonb(baseline_to_dict(baseline))),
                    )
                conn.commit()
        except psycopg.errors.UniqueViolation as e:
            raise RepositoryError("create", f"Baseline '{baseline.id}' already exists") from e
        except psycopg.Error as e:
            raise RepositoryError("create", type(e).__name__) from e
        return baseline.id

    def get_by_id(self, baseline_id: BaselineId) -> Optional[Baseline]:
        try:
            with psycopg.connect(self.dsn) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        select payload
                        from perf_baselines
                        where id = %s and (expires_at is null or expires_at > now())
                        """,
                        (str(baseline_id),),
                    )
                    row = cur.fetchone()
        except psycopg.Error as e:
            raise RepositoryError("get_by_id", type(e).__name__) from e

        if not row:
            return None
        return self._load(row[0])

    def list_recent(self, count: int) -> List[Baseline]:
        if count <= 0:
            return []
        try:
            with psycopg.connect(self.dsn) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        select payload
                        from perf_baselines
                        where expires_at is null or expires_at > now()
                        order by created_at desc, id desc
                        limit %s
                        """,
                        (count,),
                    )
                    rows = cur.fetchall()
        except psycopg.Error as e:
            raise RepositoryError("list_recent", type(e).__name__) from e
        return [self._load(payload) for (payload,) in rows]

    def delete(self, baseline_id: BaselineId) -> bool:
        try:
            with psycopg.connect(self.dsn) as conn:
                with conn.cursor() as cur:
                    cur.execute("delete from perf_baselines where id = %s", (str(baseline_id),))
                    deleted = cur.rowcount
                conn.commit()
        except psycopg.Error as e:
            raise RepositoryError("delete", type(e).__name__) from e
        return deleted > 0
