"""
Worst-case aggregation of per-metric outcomes.

Priority: REGRESSION > IMPROVEMENT > NO_SIGNIFICANT_CHANGE > INCONCLUSIVE.
Overall confidence is the minimum confidence (weakest link).
Both reductions are commutative: input order never matters.
"""

from __future__ import annotations

from typing import Iterable, Union

from .comparison import ComparisonMetric, ComparisonOutcome
from .confidence import ConfidenceLevel

OUTCOME_PRIORITY = {
    ComparisonOutcome.REGRESSION: 3,
    ComparisonOutcome.IMPROVEMENT: 2,
    ComparisonOutcome.NO_SIGNIFICANT_CHANGE: 1,
    ComparisonOutcome.INCONCLUSIVE: 0,
}


def _outcome(item: Union[ComparisonMetric, ComparisonOutcome, str]) -> ComparisonOutcome:
    if isinstance(item, ComparisonMetric):
        return item.outcome
    return ComparisonOutcome(item)


def _confidence(item: Union[ComparisonMetric, ConfidenceLevel, float]) -> ConfidenceLevel:
    if isinstance(item, ComparisonMetric):
        return item.confidence
    if isinstance(item, ConfidenceLevel):
        return item
    return ConfidenceLevel(item)


class OutcomeAggregator:
    def aggregate(self, items: Iterable[Union[ComparisonMetric, ComparisonOutcome, str]]) -> ComparisonOutcome:
        """Highest-priority outcome; INCONCLUSIVE for an empty input."""
        return max(
            (_outcome(item) for item in items),
            key=OUTCOME_PRIORITY.__getitem__,
            default=ComparisonOutcome.INCONCLUSIVE,
        )

    def aggregate_confidence(
        self, items: Iterable[Union[ComparisonMetric, ConfidenceLevel, float]]
    ) -> ConfidenceLevel:
        """Minimum confidence; 0.0 for an empty input."""
        values = [_confidence(item).value for item in items]
        if not values:
            return ConfidenceLevel.none()
        return ConfidenceLevel(min(values))
