"""Comparison result signing/verification.

- Uses HMAC (shared secret) keyed by `EVIDENCE_SIGNING_KEY`.
- If the key is not configured, signing is simply skipped.
- The signed message is the canonical JSON of the result dict, the same bytes
  the fingerprint hashes.
"""

from __future__ import annotations

import hmac
import hashlib
import os
from typing import Any, Dict, Optional, Tuple

from perf_kits.baseline_comparison.serialization import canonical_json

SIGNATURE_ALG = "hmac-sha256"


def get_evidence_signing_key() -> Optional[bytes]:
    key = os.getenv("EVIDENCE_SIGNING_KEY")
    if not key:
        return None
    key = str(key).strip()
    if not key:
        return None
    return key.encode("utf-8")


def _digest(key: bytes, payload: Dict[str, Any]) -> str:
    return hmac.new(key, canonical_json(payload).encode("utf-8"), hashlib.sha256).hexdigest()


def sign_payload(payload: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    """Sign a payload; returns (alg, signature_hex) or None if not configured."""
    key = get_evidence_signing_key()
    if not key:
        return None
    return (SIGNATURE_ALG, _digest(key, payload))


def verify_signature(payload: Dict[str, Any], signature_alg: Any, signature: Any) -> bool:
    key = get_evidence_signing_key()
    if not key:
        return False

    if not signature_alg or not signature:
        return False

    if str(signature_alg).strip().lower() != SIGNATURE_ALG:
        return False

    provided = str(signature).strip().lower()
    if not provided:
        return False

    try:
        expected = _digest(key, payload)
    except (TypeError, ValueError):
        # Not JSON-encodable (NaN, foreign types): cannot have been signed here.
        return False
    return hmac.compare_digest(expected, provided)
