"""
Tolerance Rules

Define how much a metric may drift from its baseline before the change
counts as significant.

Two modes:
- relative: fraction of the baseline value (0.10 = +/-10%)
- absolute: fixed amount in the metric's own units

Boundaries are inclusive. Comparisons at the boundary go through
math.isclose so binary rounding (0.55 - 0.50) does not push an exact-boundary
change outside; a zero amount still requires exact equality.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .exceptions import ToleranceNotFoundError, ToleranceValidationError
from .metrics import Direction

# Relative amounts above this are rejected unless the caller lifts the ceiling.
DEFAULT_RELATIVE_CEILING = 1.0

# Relative slack for boundary comparisons only.
BOUNDARY_REL_TOL = 1e-9


def at_most(value: float, limit: float) -> bool:
    """value <= limit, treating values within rounding noise of limit as equal."""
    return value <= limit or math.isclose(value, limit, rel_tol=BOUNDARY_REL_TOL, abs_tol=0.0)


class ToleranceKind(str, Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"

    @classmethod
    def parse(cls, value: Any) -> "ToleranceKind":
        if isinstance(value, ToleranceKind):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if text == member.value:
                return member
        raise ValueError(f"Unknown tolerance kind: {value!r}")


@dataclass(frozen=True)
class Tolerance:
    """Acceptable variance for one metric."""

    metric_name: str
    kind: ToleranceKind
    amount: float
    direction: Optional[Direction] = None
    # None disables the ceiling for relative amounts.
    max_relative_amount: Optional[float] = field(
        default=DEFAULT_RELATIVE_CEILING, compare=False, repr=False
    )

    def __post_init__(self):
        name = self.metric_name
        if not isinstance(name, str) or not name.strip():
            raise ToleranceValidationError(name, "Metric name cannot be empty.")

        try:
            object.__setattr__(self, "kind", ToleranceKind.parse(self.kind))
            object.__setattr__(self, "direction", Direction.parse(self.direction))
        except ValueError as e:
            raise ToleranceValidationError(name, str(e)) from e

        if isinstance(self.amount, bool) or not isinstance(self.amount, (int, float)):
            raise ToleranceValidationError(name, f"Tolerance amount must be numeric. Got: {self.amount!r}")
        amount = float(self.amount)
        if not math.isfinite(amount):
            raise ToleranceValidationError(name, f"Tolerance amount must be finite. Got: {amount}")
        if amount < 0:
            raise ToleranceValidationError(name, f"Tolerance amount cannot be negative. Got: {amount}")
        ceiling = self.max_relative_amount
        if self.kind is ToleranceKind.RELATIVE and ceiling is not None and amount > ceiling:
            raise ToleranceValidationError(
                name, f"Relative tolerance cannot exceed {ceiling}. Got: {amount}"
            )
        object.__setattr__(self, "amount", amount)

    # Presets, one per family of performance metric.

    @classmethod
    def for_latency(cls, metric_name: str, amount: float = 0.10) -> "Tolerance":
        """Response times: +/-10% relative, lower is better."""
        return cls(metric_name, ToleranceKind.RELATIVE, amount, Direction.LOWER_IS_BETTER)

    @classmethod
    def for_throughput(cls, metric_name: str, amount: float = 0.10) -> "Tolerance":
        """Requests/sec and similar: +/-10% relative, higher is better."""
        return cls(metric_name, ToleranceKind.RELATIVE, amount, Direction.HIGHER_IS_BETTER)

    @classmethod
    def for_error_rate(cls, metric_name: str, amount: float = 0.05) -> "Tolerance":
        """
        Error rates in percent: absolute drift in percentage points.

        On a 0-1 ratio scale pass a matching amount (0.0005 for 0.05 points).
        """
        return cls(metric_name, ToleranceKind.ABSOLUTE, amount, Direction.LOWER_IS_BETTER)

    @classmethod
    def for_count(cls, metric_name: str, direction: Any = None) -> "Tolerance":
        """Exact-match metrics (counts): zero absolute drift."""
        return cls(metric_name, ToleranceKind.ABSOLUTE, 0.0, direction)

    def change_magnitude(self, baseline_value: float, current_value: float) -> float:
        """
        |change| in the unit this tolerance is expressed in.

        Relative against a zero baseline is undefined; callers handle that case
        before asking (see is_within_tolerance / ConfidenceCalculator).
        """
        diff = abs(current_value - baseline_value)
        if self.kind is ToleranceKind.ABSOLUTE:
            return diff
        return diff / abs(baseline_value)

    def is_within_tolerance(self, baseline_value: float, current_value: float) -> bool:
        if self.kind is ToleranceKind.RELATIVE and baseline_value == 0:
            # Any nonzero move away from a zero baseline is outside tolerance.
            return current_value == 0
        return at_most(self.change_magnitude(baseline_value, current_value), self.amount)

    def describe(self) -> str:
        if self.kind is ToleranceKind.RELATIVE:
            return f"{self.metric_name}: +/-{self.amount * 100:g}%"
        return f"{self.metric_name}: +/-{self.amount:g}"

    def to_dict(self) -> dict:
        return {
            "metric_name": self.metric_name,
            "kind": self.kind.value,
            "amount": self.amount,
            "direction": self.direction.value if self.direction else None,
        }


@dataclass(frozen=True)
class ToleranceConfiguration:
    """Immutable metric name -> Tolerance mapping."""

    tolerances: Tuple[Tolerance, ...]
    _by_name: Mapping[str, Tolerance] = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self):
        if self.tolerances is None:
            raise ToleranceValidationError("", "Tolerances collection cannot be None.")
        items = tuple(self.tolerances)
        if not items:
            raise ToleranceValidationError("", "At least one tolerance rule must be defined.")

        by_name: Dict[str, Tolerance] = {}
        duplicates = []
        for tol in items:
            if not isinstance(tol, Tolerance):
                raise ToleranceValidationError(
                    getattr(tol, "metric_name", ""), f"Expected Tolerance, got {type(tol).__name__}"
                )
            if tol.metric_name in by_name:
                duplicates.append(tol.metric_name)
            by_name[tol.metric_name] = tol
        if duplicates:
            raise ToleranceValidationError(
                ", ".join(sorted(set(duplicates))), "Duplicate tolerance rules for the same metric."
            )

        object.__setattr__(self, "tolerances", items)
        object.__setattr__(self, "_by_name", MappingProxyType(by_name))

    @classmethod
    def of(cls, *tolerances: Tolerance) -> "ToleranceConfiguration":
        return cls(tuple(tolerances))

    @classmethod
    def uniform(
        cls,
        metric_names: Iterable[str],
        kind: Any,
        amount: float,
        direction: Any = None,
    ) -> "ToleranceConfiguration":
        """Same rule for every metric name."""
        return cls(tuple(Tolerance(name, kind, amount, direction) for name in metric_names))

    def get_tolerance(self, metric_name: str) -> Tolerance:
        try:
            return self._by_name[metric_name]
        except (KeyError, TypeError):
            raise ToleranceNotFoundError(metric_name) from None

    def has_tolerance(self, metric_name: str) -> bool:
        try:
            return metric_name in self._by_name
        except TypeError:
            return False

    @property
    def metric_names(self) -> Tuple[str, ...]:
        return tuple(t.metric_name for t in self.tolerances)

    def __len__(self) -> int:
        return len(self.tolerances)

    def __iter__(self) -> Iterator[Tolerance]:
        return iter(self.tolerances)

    def __contains__(self, metric_name: object) -> bool:
        return self.has_tolerance(metric_name)  # type: ignore[arg-type]

    def __eq__(self, other: object) -> bool:
        # Order-insensitive: two configs with the same rules are equal.
        if not isinstance(other, ToleranceConfiguration):
            return NotImplemented
        return dict(self._by_name) == dict(other._by_name)

    def __hash__(self) -> int:
        return hash(frozenset(self._by_name.values()))

    def to_dict(self) -> dict:
        return {"tolerances": [t.to_dict() for t in self.tolerances]}
