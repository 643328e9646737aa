"""
Application settings for the baseline comparison service.
Externalizes config for portability across hosted/on-prem/cloud.
"""
import os
from typing import List, Optional


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


class AppSettings:
    """Application settings with environment variable support."""

    def __init__(self):
        # Comparison defaults (requests may override the threshold)
        self.default_confidence_threshold: float = float(os.getenv("DEFAULT_CONFIDENCE_THRESHOLD", "0.7"))
        # Empty string lifts the ceiling on relative tolerances.
        self.relative_tolerance_ceiling: Optional[float] = (
            _optional_float("RELATIVE_TOLERANCE_CEILING") if "RELATIVE_TOLERANCE_CEILING" in os.environ else 1.0
        )

        # Baseline storage: "memory" (single process) or "postgres"
        self.baseline_store: str = os.getenv("BASELINE_STORE", "memory").strip().lower()
        self.database_url: Optional[str] = os.getenv("DATABASE_URL") or None
        self.baseline_ttl_seconds: Optional[float] = _optional_float("BASELINE_TTL_SECONDS")

        # Service metadata and toggles
        self.api_version: str = os.getenv("API_VERSION", "1.0.0")
        self.build_commit: str = os.getenv("BUILD_COMMIT", "unknown")
        self.enable_audit_logging: bool = os.getenv("ENABLE_AUDIT_LOGGING", "true").lower() == "true"

        # Comma-separated bearer keys; empty leaves the API open (trusted network only).
        self.api_keys: List[str] = [k.strip() for k in os.getenv("API_KEYS", "").split(",") if k.strip()]

        if self.baseline_store not in ("memory", "postgres"):
            raise ValueError(f"BASELINE_STORE must be 'memory' or 'postgres', got {self.baseline_store!r}")


settings = AppSettings()
