"""
Confidence scoring.

A confidence of 0.0 means the observed change sits exactly on the tolerance
boundary (or inside it); 1.0 means the change is at least double the
tolerance. Pure, no state: identical inputs always give identical scores.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import total_ordering
from typing import Any, Union

from .exceptions import ConfidenceValidationError
from .tolerance import BOUNDARY_REL_TOL, Tolerance, ToleranceKind

EPSILON = 1e-9


@total_ordering
@dataclass(frozen=True, eq=False)
class ConfidenceLevel:
    value: float

    def __post_init__(self):
        value = self.value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfidenceValidationError(value)
        value = float(value)
        if math.isnan(value) or value < 0.0 or value > 1.0:
            raise ConfidenceValidationError(value)
        object.__setattr__(self, "value", value)

    @classmethod
    def none(cls) -> "ConfidenceLevel":
        return cls(0.0)

    @classmethod
    def certain(cls) -> "ConfidenceLevel":
        return cls(1.0)

    def is_conclusive(self, threshold: float) -> bool:
        return self.value >= threshold

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ConfidenceLevel):
            return abs(self.value - other.value) < EPSILON
        return NotImplemented

    def __lt__(self, other: "ConfidenceLevel") -> bool:
        if not isinstance(other, ConfidenceLevel):
            return NotImplemented
        return self.value < other.value and not self == other

    def __hash__(self) -> int:
        # Epsilon equality is not transitive; only a constant hash agrees with it.
        return hash(ConfidenceLevel)

    def __float__(self) -> float:
        return self.value

    def __str__(self) -> str:
        return f"{self.value:.1%}"


def validate_threshold(threshold: Any) -> float:
    """Confidence thresholds obey the same [0, 1] range as confidence levels."""
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise ConfidenceValidationError(threshold, what="Confidence threshold")
    value = float(threshold)
    if math.isnan(value) or value < 0.0 or value > 1.0:
        raise ConfidenceValidationError(threshold, what="Confidence threshold")
    return value


class ConfidenceCalculator:
    """(baseline, current, tolerance) -> ConfidenceLevel."""

    def calculate(
        self,
        baseline_value: float,
        current_value: float,
        tolerance: Tolerance,
    ) -> ConfidenceLevel:
        if tolerance.kind is ToleranceKind.RELATIVE and baseline_value == 0:
            # Relative change from zero is undefined; any move is a certain change.
            return ConfidenceLevel(1.0 if current_value != 0 else 0.0)

        magnitude = tolerance.change_magnitude(baseline_value, current_value)
        return ConfidenceLevel(score(magnitude, tolerance.amount))


def score(magnitude: float, amount: float) -> float:
    """
    How far magnitude lies beyond amount, scaled by amount and capped at 1.

    deviation = max(magnitude - amount, 0)
    amount > 0  -> min(1, deviation / amount)
    amount == 0 -> 1.0 for any nonzero deviation, else 0.0
    """
    if math.isclose(magnitude, amount, rel_tol=BOUNDARY_REL_TOL, abs_tol=0.0):
        deviation = 0.0
    else:
        deviation = max(magnitude - amount, 0.0)

    if amount > 0:
        return min(1.0, deviation / amount)
    return 1.0 if deviation > 0 else 0.0


Number = Union[int, float]


def calculate_confidence(baseline_value: Number, current_value: Number, tolerance: Tolerance) -> ConfidenceLevel:
    return ConfidenceCalculator().calculate(baseline_value, current_value, tolerance)
