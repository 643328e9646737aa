"""
Comparison endpoints.

POST /api/comparisons runs a comparison and returns the result with a
fingerprint and, when EVIDENCE_SIGNING_KEY is set, an HMAC signature so CI
artifacts can be verified later via POST /api/comparisons/verify.
"""
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Security

from perf_kits.baseline_comparison.exceptions import BaselineComparisonError
from perf_kits.baseline_comparison.orchestrator import ComparisonOrchestrator
from perf_kits.baseline_comparison.serialization import fingerprint, result_from_dict, result_to_dict

from ..dependencies import get_orchestrator, require_api_key
from ..evidence_signing import SIGNATURE_ALG, get_evidence_signing_key, sign_payload, verify_signature
from ..schemas import CompareRequest, CompareResponse, VerifyRequest, VerifyResponse
from ..settings import settings
from .baselines import metrics_from_request, tolerances_from_request

router = APIRouter(tags=["comparisons"], dependencies=[Security(require_api_key)])

# Audit logger (configured in main.py)
audit_logger = logging.getLogger("audit")


@router.post("/api/comparisons", response_model=CompareResponse)
def run_comparison(
    req: CompareRequest,
    request: Request,
    orchestrator: ComparisonOrchestrator = Depends(get_orchestrator),
) -> CompareResponse:
    trace_id = getattr(request.state, "trace_id", None) or "-"
    threshold = (
        req.confidence_threshold if req.confidence_threshold is not None else settings.default_confidence_threshold
    )

    result = orchestrator.compare(
        req.baseline_id,
        metrics_from_request(req.metrics),
        tolerance_config=tolerances_from_request(req.tolerances),
        confidence_threshold=threshold,
        comparison_id=req.comparison_id,
        compared_at=req.compared_at,
    )
    payload = result_to_dict(result)
    signed = sign_payload(payload)

    audit_logger.info(json.dumps({
        "event": "comparison",
        "trace_id": trace_id,
        "comparison_id": payload["id"],
        "baseline_id": payload["baseline_id"],
        "overall_outcome": payload["overall_outcome"],
        "signed": signed is not None,
    }))

    return CompareResponse(
        trace_id=trace_id,
        result=payload,
        fingerprint=fingerprint(payload),
        signature_alg=signed[0] if signed else None,
        signature=signed[1] if signed else None,
    )


@router.post("/api/comparisons/verify", response_model=VerifyResponse)
def verify_comparison(req: VerifyRequest, request: Request) -> VerifyResponse:
    trace_id = getattr(request.state, "trace_id", None) or "-"

    if not get_evidence_signing_key():
        raise HTTPException(
            status_code=503,
            detail={
                "code": "SIGNING_NOT_CONFIGURED",
                "message": "Evidence signing key is not configured on this service.",
            },
        )

    # The payload is untrusted: anything that does not rebuild into a consistent result fails here.
    try:
        result_from_dict(req.result)
        result_fingerprint = fingerprint(req.result)
    except (BaselineComparisonError, ValueError, TypeError, AttributeError) as e:
        audit_logger.info(json.dumps({"event": "verify", "trace_id": trace_id, "verified": False, "error": str(e)}))
        return VerifyResponse(trace_id=trace_id, verified=False, reason="RESULT_INCONSISTENT")

    ok = verify_signature(req.result, req.signature_alg, req.signature)

    reason = None
    if not req.signature_alg or not req.signature:
        reason = "SIGNATURE_MISSING"
    elif str(req.signature_alg).strip().lower() != SIGNATURE_ALG:
        reason = "UNSUPPORTED_ALGORITHM"
    elif not ok:
        reason = "SIGNATURE_INVALID"

    return VerifyResponse(trace_id=trace_id, verified=bool(ok), fingerprint=result_fingerprint, reason=reason)
