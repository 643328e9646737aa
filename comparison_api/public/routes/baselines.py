"""
Baseline endpoints: store a reference run, read it back, list recent ones.

Domain errors (invalid tolerances, duplicate metrics, unknown ids) propagate
to the handlers in main.py, which map them through ComparisonErrorTaxonomy.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Security

from perf_kits.baseline_comparison.baseline import Baseline
from perf_kits.baseline_comparison.metrics import Metric
from perf_kits.baseline_comparison.orchestrator import ComparisonOrchestrator
from perf_kits.baseline_comparison.serialization import baseline_to_dict
from perf_kits.baseline_comparison.tolerance import Tolerance, ToleranceConfiguration

from ..dependencies import get_orchestrator, require_api_key
from ..schemas import BaselineListResponse, BaselineOut, BaselineResponse, CreateBaselineRequest, MetricIn, ToleranceIn
from ..settings import settings

router = APIRouter(tags=["baselines"], dependencies=[Security(require_api_key)])


def metrics_from_request(items: List[MetricIn]) -> List[Metric]:
    return [Metric(m.name, m.value, m.direction) for m in items]


def tolerances_from_request(items: Optional[List[ToleranceIn]]) -> Optional[ToleranceConfiguration]:
    if items is None:
        return None
    return ToleranceConfiguration(tuple(
        Tolerance(t.metric_name, t.kind, t.amount, t.direction, max_relative_amount=settings.relative_tolerance_ceiling)
        for t in items
    ))


def baseline_out(baseline: Baseline) -> BaselineOut:
    data = baseline_to_dict(baseline)
    return BaselineOut(
        id=data["id"],
        created_at=data["created_at"],
        metrics=data["metrics"],
        tolerances=data["tolerance_config"]["tolerances"],
    )


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", None) or "-"


@router.post("/api/baselines", response_model=BaselineResponse, status_code=201)
def create_baseline(
    req: CreateBaselineRequest,
    request: Request,
    orchestrator: ComparisonOrchestrator = Depends(get_orchestrator),
) -> BaselineResponse:
    baseline = orchestrator.create_baseline(
        metrics_from_request(req.metrics),
        tolerances_from_request(req.tolerances),
        baseline_id=req.baseline_id,
    )
    return BaselineResponse(trace_id=_trace_id(request), baseline=baseline_out(baseline))


@router.get("/api/baselines/{baseline_id}", response_model=BaselineResponse)
def get_baseline(
    baseline_id: str,
    request: Request,
    orchestrator: ComparisonOrchestrator = Depends(get_orchestrator),
) -> BaselineResponse:
    return BaselineResponse(trace_id=_trace_id(request), baseline=baseline_out(orchestrator.get_baseline(baseline_id)))


@router.get("/api/baselines", response_model=BaselineListResponse)
def list_baselines(
    request: Request,
    limit: int = Query(10, ge=1, le=100),
    orchestrator: ComparisonOrchestrator = Depends(get_orchestrator),
) -> BaselineListResponse:
    baselines = orchestrator.list_recent(limit)
    return BaselineListResponse(trace_id=_trace_id(request), baselines=[baseline_out(b) for b in baselines])
