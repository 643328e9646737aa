"""
Request dependencies: the shared orchestrator and bearer-key auth.

Tests swap the orchestrator via app.dependency_overrides[get_orchestrator].
"""
import hmac
from functools import lru_cache
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from perf_kits.baseline_comparison.orchestrator import ComparisonOrchestrator
from perf_kits.baseline_comparison.repository import BaselineRepository, InMemoryBaselineRepository

from .settings import AppSettings, settings


def build_repository(app_settings: AppSettings) -> BaselineRepository:
    if app_settings.baseline_store == "postgres":
        from .persistence import PostgresBaselineRepository

        return PostgresBaselineRepository(app_settings.database_url, app_settings.baseline_ttl_seconds)
    return InMemoryBaselineRepository(ttl_seconds=app_settings.baseline_ttl_seconds)


@lru_cache(maxsize=1)
def get_orchestrator() -> ComparisonOrchestrator:
    return ComparisonOrchestrator(build_repository(settings))


api_key_bearer_header = APIKeyHeader(name="Authorization", auto_error=False)


def require_api_key(auth_header: Optional[str] = Security(api_key_bearer_header)) -> None:
    """Enforce `Authorization: Bearer <key>` when API_KEYS is configured."""
    if not settings.api_keys:
        return

    parts = (auth_header or "").split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail={"code": "UNAUTHORIZED", "message": "Bearer API key required"})

    presented = parts[1].strip()
    if not any(hmac.compare_digest(presented, key) for key in settings.api_keys):
        raise HTTPException(status_code=401, detail={"code": "UNAUTHORIZED", "message": "Invalid API key"})
