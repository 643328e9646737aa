"""
ComparisonResult aggregate: the immutable outcome of one comparison.

The overall outcome and confidence are re-derived from the metric results at
construction; a caller-supplied value that disagrees is rejected.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Tuple

from .aggregation import OutcomeAggregator
from .baseline import BaselineId, assert_unique_names, utc_now
from .comparison import ComparisonMetric, ComparisonOutcome
from .confidence import ConfidenceLevel
from .exceptions import AggregateMismatchError, DomainInvariantViolation, EmptyMetricSetError


@dataclass(frozen=True)
class ComparisonResultId:
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise DomainInvariantViolation("ComparisonResultId", "Identifier cannot be empty.")

    @classmethod
    def new(cls) -> "ComparisonResultId":
        return cls(str(uuid.uuid4()))

    @classmethod
    def of(cls, value: Any) -> "ComparisonResultId":
        return value if isinstance(value, ComparisonResultId) else cls(str(value))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ComparisonResult:
    baseline_id: BaselineId
    metric_results: Tuple[ComparisonMetric, ...]
    overall_outcome: ComparisonOutcome
    overall_confidence: ConfidenceLevel
    id: ComparisonResultId = field(default_factory=ComparisonResultId.new)
    compared_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if self.metric_results is None:
            raise EmptyMetricSetError("ComparisonResult.metric_results")
        results = tuple(self.metric_results)
        if not results:
            raise EmptyMetricSetError("ComparisonResult.metric_results")
        for r in results:
            if not isinstance(r, ComparisonMetric):
                raise DomainInvariantViolation(
                    "ComparisonResult.metric_results",
                    f"Expected ComparisonMetric, got {type(r).__name__}.",
                )
        assert_unique_names((r.metric_name for r in results), "ComparisonResult.metric_results")

        aggregator = OutcomeAggregator()
        derived_outcome = aggregator.aggregate(results)
        derived_confidence = aggregator.aggregate_confidence(results)

        supplied_outcome = ComparisonOutcome(self.overall_outcome)
        if supplied_outcome is not derived_outcome:
            raise AggregateMismatchError("overall_outcome", supplied_outcome.value, derived_outcome.value)
        supplied_confidence = self.overall_confidence
        if not isinstance(supplied_confidence, ConfidenceLevel):
            supplied_confidence = ConfidenceLevel(supplied_confidence)
        if supplied_confidence != derived_confidence:
            raise AggregateMismatchError(
                "overall_confidence", supplied_confidence.value, derived_confidence.value
            )

        object.__setattr__(self, "metric_results", results)
        object.__setattr__(self, "overall_outcome", supplied_outcome)
        object.__setattr__(self, "overall_confidence", supplied_confidence)
        object.__setattr__(self, "baseline_id", BaselineId.of(self.baseline_id))
        object.__setattr__(self, "id", ComparisonResultId.of(self.id))
        if self.compared_at.tzinfo is None:
            object.__setattr__(self, "compared_at", self.compared_at.replace(tzinfo=timezone.utc))

    @classmethod
    def from_metrics(
        cls,
        baseline_id: Any,
        metric_results: Iterable[ComparisonMetric],
        result_id: Optional[Any] = None,
        compared_at: Optional[datetime] = None,
    ) -> "ComparisonResult":
        """Build a result whose overall values are computed, not supplied."""
        results = tuple(metric_results)
        aggregator = OutcomeAggregator()
        return cls(
            baseline_id=BaselineId.of(baseline_id),
            metric_results=results,
            overall_outcome=aggregator.aggregate(results),
            overall_confidence=aggregator.aggregate_confidence(results),
            id=ComparisonResultId.of(result_id) if result_id is not None else ComparisonResultId.new(),
            compared_at=compared_at or utc_now(),
        )

    def has_regression(self) -> bool:
        return self.overall_outcome is ComparisonOutcome.REGRESSION

    def metric(self, name: str) -> Optional[ComparisonMetric]:
        for r in self.metric_results:
            if r.metric_name == name:
                return r
        return None

    def outcomes_by_metric(self) -> dict:
        return {r.metric_name: r.outcome.value for r in self.metric_results}

    def explain(self) -> str:
        lines = [
            f"Comparison {self.id} against baseline {self.baseline_id}: "
            f"{self.overall_outcome.value} (confidence {self.overall_confidence.value:.3f})"
        ]
        lines.extend(f"  - {r.explanation}" for r in self.metric_results)
        return "\n".join(lines)
