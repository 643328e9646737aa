"""Minimal HTTP client helpers for perf-baseline CI gates.

- Uses stdlib only (urllib) to avoid extra deps in CI.
- Auth header (sent when a key is configured):
  - Authorization: Bearer <api-key>

Environment variables:
- PERF_BASELINE_API_URL (default: http://localhost:8000)
- PERF_BASELINE_API_KEY
"""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from typing import Any


class ApiError(RuntimeError):
    """Request failed; status is None for network errors."""

    def __init__(self, message: str, status: int | None = None, detail: Any = None):
        super().__init__(message)
        self.status = status
        self.detail = detail


def env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def base_url() -> str:
    url = env("PERF_BASELINE_API_URL")
    if url is None and os.getenv("GITHUB_ACTIONS", "").lower() == "true":
        raise RuntimeError(
            "PERF_BASELINE_API_URL must be set in GitHub Actions to avoid accidentally calling localhost."
        )
    return (url or "http://localhost:8000").rstrip("/")


def post_json(path: str, payload: dict[str, Any], *, timeout_s: int = 30) -> dict[str, Any]:
    url = base_url() + path
    headers = {"Content-Type": "application/json"}
    api_key = env("PERF_BASELINE_API_KEY")
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    req = urllib.request.Request(
        url=url,
        data=json.dumps(payload).encode("utf-8"),
        method="POST",
        headers=headers,
    )

    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            raw = resp.read().decode("utf-8")
            return json.loads(raw) if raw else {}
    except urllib.error.HTTPError as e:
        raw = e.read().decode("utf-8") if getattr(e, "fp", None) else ""
        try:
            detail = json.loads(raw) if raw else {"raw": raw}
        except ValueError:
            detail = {"raw": raw}
        raise ApiError(f"HTTP {e.code} calling {url}: {detail}", status=e.code, detail=detail) from e
    except urllib.error.URLError as e:
        raise ApiError(f"Network error calling {url}: {e}") from e
