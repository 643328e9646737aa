"""
Audit logging middleware for FastAPI.

For every request this middleware:
1. Reuses the request's trace id
2. Obfuscates the bearer key
3. Hashes the request payload (metric values are never logged)
4. Logs one structured audit entry on the "audit" logger

Usage:
    app.add_middleware(AuditLoggingMiddleware)
"""

import json
import hashlib
import time
import logging
import re
from uuid import uuid4
from typing import Optional, Dict, Any
from datetime import datetime, timezone

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

STATUS_ERROR_CODES = {
    401: "UNAUTHORIZED",
    404: "NOT_FOUND",
    422: "VALIDATION_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


class AuditLogger:
    """Structured audit logger with redaction rules."""

    REDACTION_PATTERNS = {
        "api_key": r"Bearer\s+[a-zA-Z0-9._\-]+",
        "token": r"(?i)(token|authorization)[:\s=\"]+[^\s,}]+",
        "dsn_password": r"(?i)(postgres(?:ql)?://[^:/\s]+:)[^@\s]+@",
    }

    def __init__(self, name: str = "audit", enable_redaction: bool = True):
        self.logger = logging.getLogger(name)
        self.enable_redaction = enable_redaction

    @staticmethod
    def obfuscate_api_key(auth_header: str) -> Optional[str]:
        """Keep only the last five characters of a bearer key."""
        parts = (auth_header or "").split()
        if len(parts) < 2:
            return None
        return f"key_***{parts[1][-5:]}"

    @staticmethod
    def hash_payload(payload: bytes) -> str:
        if not payload:
            return "sha256:empty"
        return f"sha256:{hashlib.sha256(payload).hexdigest()[:16]}..."

    def redact(self, text: str) -> str:
        if not self.enable_redaction or not isinstance(text, str):
            return text
        result = text
        for pattern_name, pattern in self.REDACTION_PATTERNS.items():
            result = re.sub(pattern, f"[REDACTED_{pattern_name.upper()}]", result)
        return result

    def create_audit_entry(
        self,
        request_id: str,
        api_key_id: Optional[str],
        endpoint: str,
        http_method: str,
        http_status: int,
        latency_ms: float,
        payload_hash: str,
        error_code: Optional[str] = None,
    ) -> Dict[str, Any]:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
            "api_key_id": api_key_id,
            "endpoint": endpoint,
            "http_method": http_method,
            "http_status": http_status,
            "latency_ms": round(latency_ms, 3),
            "payload_hash": payload_hash,
            "error_code": error_code,
        }

    def log_entry(self, entry: Dict[str, Any]):
        """Write audit entry to log (JSON format)."""
        redacted_entry = {k: self.redact(v) if isinstance(v, str) else v for k, v in entry.items()}
        self.logger.info(json.dumps(redacted_entry))


def error_code_for_status(status_code: int) -> Optional[str]:
    if status_code < 400:
        return None
    if status_code in STATUS_ERROR_CODES:
        return STATUS_ERROR_CODES[status_code]
    return "SERVER_ERROR" if status_code >= 500 else "CLIENT_ERROR"


class AuditLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every API call with an audit trail.

    Logs contain request_id, obfuscated key, endpoint & method, status,
    latency, payload hash and an error code. No raw payloads.
    """

    def __init__(self, app, enable_redaction: bool = True, enable_logging: bool = True):
        super().__init__(app)
        self.audit_logger = AuditLogger(enable_redaction=enable_redaction)
        self.enable_logging = enable_logging

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        api_key_id = self.audit_logger.obfuscate_api_key(request.headers.get("Authorization", ""))
        payload_hash = self.audit_logger.hash_payload(await request.body())

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log(request, request_id, api_key_id, payload_hash, start_time, 500, "INTERNAL_ERROR")
            raise

        self._log(
            request, request_id, api_key_id, payload_hash, start_time,
            response.status_code, error_code_for_status(response.status_code),
        )
        return response

    def _log(self, request, request_id, api_key_id, payload_hash, start_time, http_status, error_code):
        if not self.enable_logging:
            return
        entry = self.audit_logger.create_audit_entry(
            request_id=request_id,
            api_key_id=api_key_id,
            endpoint=str(request.url.path),
            http_method=request.method,
            http_status=http_status,
            latency_ms=(time.perf_counter() - start_time) * 1000,
            payload_hash=payload_hash,
            error_code=error_code,
        )
        self.audit_logger.log_entry(entry)
