"""
Dict / JSON forms of baselines and comparison results.

canonical_json is the byte-stable encoding used for fingerprints and evidence
signatures: sorted keys, compact separators, no NaN.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any, Dict

from .baseline import Baseline, BaselineId
from .comparison import ComparisonMetric, ComparisonOutcome
from .confidence import ConfidenceLevel
from .exceptions import InvalidMetricError
from .metrics import Metric
from .result import ComparisonResult, ComparisonResultId
from .tolerance import Tolerance, ToleranceConfiguration


def canonical_json(payload: Any) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def fingerprint(payload: Any) -> str:
    digest = hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"


def _parse_time(value: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as e:
        raise InvalidMetricError(field_name, f"invalid timestamp {value!r}") from e


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    try:
        return data[key]
    except (KeyError, TypeError):
        raise InvalidMetricError(where, f"missing field '{key}'") from None


def tolerance_from_dict(data: Dict[str, Any]) -> Tolerance:
    # Stored rules were validated when created; do not re-apply the ceiling.
    return Tolerance(
        metric_name=_require(data, "metric_name", "tolerance"),
        kind=_require(data, "kind", "tolerance"),
        amount=_require(data, "amount", "tolerance"),
        direction=data.get("direction"),
        max_relative_amount=None,
    )


def tolerance_config_from_dict(data: Dict[str, Any]) -> ToleranceConfiguration:
    return ToleranceConfiguration(
        tuple(tolerance_from_dict(t) for t in _require(data, "tolerances", "tolerance_config"))
    )


def baseline_to_dict(baseline: Baseline) -> Dict[str, Any]:
    return {
        "id": str(baseline.id),
        "created_at": baseline.created_at.isoformat(),
        "metrics": [m.to_dict() for m in baseline.metrics],
        "tolerance_config": baseline.tolerance_config.to_dict(),
    }


def baseline_from_dict(data: Dict[str, Any]) -> Baseline:
    metrics = tuple(
        Metric(_require(m, "name", "metric"), _require(m, "value", "metric"), m.get("direction"))
        for m in _require(data, "metrics", "baseline")
    )
    return Baseline(
        metrics=metrics,
        tolerance_config=tolerance_config_from_dict(_require(data, "tolerance_config", "baseline")),
        id=BaselineId.of(_require(data, "id", "baseline")),
        created_at=_parse_time(_require(data, "created_at", "baseline"), "created_at"),
    )


def metric_result_to_dict(result: ComparisonMetric) -> Dict[str, Any]:
    return {
        "metric_name": result.metric_name,
        "baseline_value": result.baseline_value,
        "current_value": result.current_value,
        "absolute_change": result.absolute_change,
        "relative_change": result.relative_change,
        "within_tolerance": result.within_tolerance,
        "tolerance": result.tolerance.to_dict(),
        "direction": result.direction.value,
        "outcome": result.outcome.value,
        "confidence": result.confidence.value,
        "explanation": result.explanation,
    }


def metric_result_from_dict(data: Dict[str, Any]) -> ComparisonMetric:
    return ComparisonMetric(
        metric_name=_require(data, "metric_name", "metric_result"),
        baseline_value=_require(data, "baseline_value", "metric_result"),
        current_value=_require(data, "current_value", "metric_result"),
        tolerance=tolerance_from_dict(_require(data, "tolerance", "metric_result")),
        direction=_require(data, "direction", "metric_result"),
        outcome=ComparisonOutcome(_require(data, "outcome", "metric_result")),
        confidence=ConfidenceLevel(_require(data, "confidence", "metric_result")),
    )


def result_to_dict(result: ComparisonResult) -> Dict[str, Any]:
    return {
        "id": str(result.id),
        "baseline_id": str(result.baseline_id),
        "compared_at": result.compared_at.isoformat(),
        "overall_outcome": result.overall_outcome.value,
        "overall_confidence": result.overall_confidence.value,
        "metric_results": [metric_result_to_dict(r) for r in result.metric_results],
    }


def result_from_dict(data: Dict[str, Any]) -> ComparisonResult:
    """Rebuild a result; the stored overall values must still match the metric results."""
    return ComparisonResult(
        baseline_id=BaselineId.of(_require(data, "baseline_id", "result")),
        metric_results=tuple(
            metric_result_from_dict(r) for r in _require(data, "metric_results", "result")
        ),
        overall_outcome=ComparisonOutcome(_require(data, "overall_outcome", "result")),
        overall_confidence=ConfidenceLevel(_require(data, "overall_confidence", "result")),
        id=ComparisonResultId.of(_require(data, "id", "result")),
        compared_at=_parse_time(_require(data, "compared_at", "result"), "compared_at"),
    )
