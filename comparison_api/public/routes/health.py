"""
Health check endpoint. Minimal, stable, no business logic.
"""
from fastapi import APIRouter
from datetime import datetime, timezone
from comparison_api.public.schemas import HealthResponse
from comparison_api.public.settings import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> HealthResponse:
    """
    Simple health check. Returns service status, version, commit.
    No baselines, no secrets, just a heartbeat.
    """
    return HealthResponse(
        status="ok",
        service="perf-baseline-api",
        version=settings.api_version,
        commit=settings.build_commit,
        baseline_store=settings.baseline_store,
        timestamp=datetime.now(timezone.utc),
    )
