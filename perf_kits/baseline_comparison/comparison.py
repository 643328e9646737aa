"""
Per-metric comparison.

For one metric:
1. compute absolute and relative change
2. ask the Tolerance whether the change is within bounds
3. score confidence (ConfidenceCalculator)
4. classify

Classification:
- within tolerance                              -> NO_SIGNIFICANT_CHANGE
- outside tolerance, confidence < threshold     -> INCONCLUSIVE
- outside tolerance, change favours direction   -> IMPROVEMENT
- outside tolerance otherwise                   -> REGRESSION

The tolerance check runs before the confidence gate: an in-tolerance change
always scores 0.0 confidence, and it is still a definite "no change".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .confidence import ConfidenceCalculator, ConfidenceLevel, validate_threshold
from .exceptions import DirectionConflictError, InvalidMetricError, MissingDirectionError
from .metrics import Direction, Metric, coerce_value
from .tolerance import Tolerance

DEFAULT_CONFIDENCE_THRESHOLD = 0.7


class ComparisonOutcome(str, Enum):
    IMPROVEMENT = "IMPROVEMENT"
    REGRESSION = "REGRESSION"
    NO_SIGNIFICANT_CHANGE = "NO_SIGNIFICANT_CHANGE"
    INCONCLUSIVE = "INCONCLUSIVE"


def resolve_direction(
    metric_name: str,
    baseline_direction: Optional[Direction],
    current_direction: Optional[Direction] = None,
    tolerance: Optional[Tolerance] = None,
) -> Direction:
    """
    Pick the improvement direction for a metric.

    The baseline metric's own direction wins; the current metric may repeat it
    but not contradict it; the tolerance rule is the fallback. No default.
    """
    if baseline_direction is not None:
        if current_direction is not None and current_direction is not baseline_direction:
            raise DirectionConflictError(metric_name, baseline_direction.value, current_direction.value)
        return baseline_direction
    if current_direction is not None:
        return current_direction
    if tolerance is not None and tolerance.direction is not None:
        return tolerance.direction
    raise MissingDirectionError(metric_name)


@dataclass(frozen=True)
class ComparisonMetric:
    """Result of comparing one metric against its baseline value."""

    metric_name: str
    baseline_value: float
    current_value: float
    tolerance: Tolerance
    direction: Direction
    outcome: ComparisonOutcome
    confidence: ConfidenceLevel
    absolute_change: float = field(init=False)
    relative_change: float = field(init=False)
    within_tolerance: bool = field(init=False)

    def __post_init__(self):
        if not isinstance(self.metric_name, str) or not self.metric_name.strip():
            raise InvalidMetricError(self.metric_name, "metric name cannot be empty")
        baseline_value = coerce_value(self.metric_name, self.baseline_value)
        current_value = coerce_value(self.metric_name, self.current_value)
        object.__setattr__(self, "baseline_value", baseline_value)
        object.__setattr__(self, "current_value", current_value)
        direction = Direction.parse(self.direction)
        if direction is None:
            raise MissingDirectionError(self.metric_name)
        object.__setattr__(self, "direction", direction)
        object.__setattr__(self, "outcome", ComparisonOutcome(self.outcome))
        if not isinstance(self.confidence, ConfidenceLevel):
            object.__setattr__(self, "confidence", ConfidenceLevel(self.confidence))

        absolute_change = current_value - baseline_value
        # Zero baseline has no meaningful relative change; report 0.
        relative_change = absolute_change / abs(baseline_value) if baseline_value != 0 else 0.0
        object.__setattr__(self, "absolute_change", absolute_change)
        object.__setattr__(self, "relative_change", relative_change)
        object.__setattr__(
            self, "within_tolerance", self.tolerance.is_within_tolerance(baseline_value, current_value)
        )

    @property
    def explanation(self) -> str:
        """One deterministic sentence explaining the verdict."""
        within = "within" if self.within_tolerance else "outside"
        return (
            f"{self.metric_name}: {self.baseline_value:g} -> {self.current_value:g} "
            f"(change {self.absolute_change:+g}, {self.relative_change:+.2%}) is {within} "
            f"tolerance {self.tolerance.describe()} [{self.direction.value}]; "
            f"{self.outcome.value} with confidence {self.confidence.value:.3f}"
        )


class ComparisonCalculator:
    """Deterministic, side-effect-free per-metric comparison."""

    def __init__(self, confidence_calculator: Optional[ConfidenceCalculator] = None):
        self.confidence_calculator = confidence_calculator or ConfidenceCalculator()

    def calculate_metric(
        self,
        baseline_value: float,
        current_value: float,
        tolerance: Tolerance,
        direction: Optional[Direction] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> ComparisonMetric:
        threshold = validate_threshold(confidence_threshold)
        resolved = resolve_direction(tolerance.metric_name, Direction.parse(direction), tolerance=tolerance)
        baseline_value = coerce_value(tolerance.metric_name, baseline_value)
        current_value = coerce_value(tolerance.metric_name, current_value)

        confidence = self.confidence_calculator.calculate(baseline_value, current_value, tolerance)
        outcome = self.determine_outcome(
            baseline_value, current_value, tolerance, resolved, confidence, threshold
        )
        return ComparisonMetric(
            metric_name=tolerance.metric_name,
            baseline_value=baseline_value,
            current_value=current_value,
            tolerance=tolerance,
            direction=resolved,
            outcome=outcome,
            confidence=confidence,
        )

    def compare(
        self,
        baseline_metric: Metric,
        current_metric: Metric,
        tolerance: Tolerance,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> ComparisonMetric:
        """Compare two metric triples of the same name."""
        if baseline_metric.name != current_metric.name or tolerance.metric_name != baseline_metric.name:
            raise InvalidMetricError(
                current_metric.name,
                f"name mismatch (baseline={baseline_metric.name!r}, tolerance={tolerance.metric_name!r})",
            )
        direction = resolve_direction(
            baseline_metric.name, baseline_metric.direction, current_metric.direction, tolerance
        )
        return self.calculate_metric(
            baseline_metric.value, current_metric.value, tolerance, direction, confidence_threshold
        )

    @staticmethod
    def determine_outcome(
        baseline_value: float,
        current_value: float,
        tolerance: Tolerance,
        direction: Direction,
        confidence: ConfidenceLevel,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> ComparisonOutcome:
        if tolerance.is_within_tolerance(baseline_value, current_value):
            return ComparisonOutcome.NO_SIGNIFICANT_CHANGE
        if not confidence.is_conclusive(confidence_threshold):
            return ComparisonOutcome.INCONCLUSIVE
        if direction.favours(current_value - baseline_value):
            return ComparisonOutcome.IMPROVEMENT
        return ComparisonOutcome.REGRESSION
