"""
Pydantic models for request/response validation.
These define the exact contract between client and API.

Direction, tolerance kind and amounts are validated by the domain layer,
which answers with its own error codes.
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from datetime import datetime


class MetricIn(BaseModel):
    """One measured metric."""
    name: str = Field(..., description="Metric name, e.g. 'p95_latency_ms'")
    value: float = Field(..., description="Measured value")
    direction: Optional[str] = Field(
        None, description="'lower_is_better' or 'higher_is_better'; falls back to the tolerance rule"
    )


class ToleranceIn(BaseModel):
    """Acceptable variance for one metric."""
    metric_name: str
    kind: str = Field(..., description="'relative' (fraction of baseline) or 'absolute' (metric units)")
    amount: float = Field(..., description="0.10 = +/-10% for relative; units for absolute")
    direction: Optional[str] = Field(None, description="Fallback improvement direction")


class MetricOut(BaseModel):
    name: str
    value: float
    direction: Optional[str] = None


class ToleranceOut(BaseModel):
    metric_name: str
    kind: str
    amount: float
    direction: Optional[str] = None


class BaselineOut(BaseModel):
    id: str
    created_at: str = Field(..., description="Creation time (ISO8601, UTC)")
    metrics: List[MetricOut]
    tolerances: List[ToleranceOut]


class CreateBaselineRequest(BaseModel):
    """Store a baseline: metric values plus the rules comparisons use."""
    metrics: List[MetricIn]
    tolerances: List[ToleranceIn]
    baseline_id: Optional[str] = Field(None, description="Client-chosen id; generated when omitted")


class BaselineResponse(BaseModel):
    trace_id: str
    status: str = "ok"
    baseline: BaselineOut


class BaselineListResponse(BaseModel):
    trace_id: str
    status: str = "ok"
    baselines: List[BaselineOut]


class CompareRequest(BaseModel):
    """
    Compare a run against a stored baseline.

    Supplying comparison_id and compared_at makes the response byte-identical
    across repeated calls.
    """
    baseline_id: str
    metrics: List[MetricIn]
    tolerances: Optional[List[ToleranceIn]] = Field(
        None, description="Override rules; the baseline's own rules apply when omitted"
    )
    confidence_threshold: Optional[float] = Field(None, description="Defaults to the service setting")
    comparison_id: Optional[str] = None
    compared_at: Optional[datetime] = None


class MetricResultOut(BaseModel):
    metric_name: str
    baseline_value: float
    current_value: float
    absolute_change: float
    relative_change: float
    within_tolerance: bool
    tolerance: ToleranceOut
    direction: str
    outcome: str
    confidence: float = Field(..., ge=0, le=1)
    explanation: str


class ComparisonOut(BaseModel):
    id: str
    baseline_id: str
    compared_at: str
    overall_outcome: str = Field(..., description="IMPROVEMENT | REGRESSION | NO_SIGNIFICANT_CHANGE | INCONCLUSIVE")
    overall_confidence: float = Field(..., ge=0, le=1)
    metric_results: List[MetricResultOut]


class CompareResponse(BaseModel):
    trace_id: str
    status: str = "ok"
    result: ComparisonOut
    fingerprint: str = Field(..., description="sha256 over the canonical JSON of result")
    signature_alg: Optional[str] = Field(None, description="Present when the service signs results")
    signature: Optional[str] = None


class VerifyRequest(BaseModel):
    """A comparison result as returned by POST /api/comparisons, with its signature."""
    result: Dict[str, Any]
    signature_alg: Optional[str] = None
    signature: Optional[str] = None


class VerifyResponse(BaseModel):
    trace_id: str
    verified: bool
    fingerprint: Optional[str] = None
    reason: Optional[str] = Field(
        None, description="SIGNATURE_MISSING | UNSUPPORTED_ALGORITHM | SIGNATURE_INVALID | RESULT_INCONSISTENT"
    )


class ErrorResponse(BaseModel):
    """Standard error response."""
    trace_id: str = Field(..., description="Unique request ID")
    status: str = Field(default="error", description="Always 'error'")
    error: Dict[str, Any] = Field(..., description="Error details with 'code', 'message', 'category'")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="'ok' if healthy")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="API version")
    commit: str = Field(..., description="Git commit hash")
    baseline_store: str = Field(..., description="'memory' or 'postgres'")
    timestamp: datetime = Field(..., description="Current time (ISO8601)")
