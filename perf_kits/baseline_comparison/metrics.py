"""
Metric triples and the metric-source contract.

A metric is (name, value, direction). Any object exposing those three
attributes satisfies MetricSource; Metric is the frozen form the kit stores.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

import numpy as np

from .exceptions import InvalidMetricError


class Direction(str, Enum):
    """Which way a metric moves when performance gets better."""

    LOWER_IS_BETTER = "lower_is_better"
    HIGHER_IS_BETTER = "higher_is_better"

    @classmethod
    def parse(cls, value: Any) -> Optional["Direction"]:
        """Accept a Direction, its value, its name, or None."""
        if value is None or isinstance(value, Direction):
            return value
        text = str(value).strip().lower().replace("-", "_")
        if not text:
            return None
        for member in cls:
            if text in (member.value, member.name.lower()):
                return member
        if text in ("lower", "down", "min"):
            return cls.LOWER_IS_BETTER
        if text in ("higher", "up", "max"):
            return cls.HIGHER_IS_BETTER
        raise ValueError(f"Unknown direction: {value!r}")

    def favours(self, change: float) -> bool:
        """True when a signed change moves the metric the good way."""
        if self is Direction.LOWER_IS_BETTER:
            return change < 0
        return change > 0


@runtime_checkable
class MetricSource(Protocol):
    """Capability contract for anything that produces a metric."""

    name: str
    value: float
    direction: Optional[Direction]


def coerce_value(metric_name: Any, value: Any) -> float:
    """Return value as a finite float or raise InvalidMetricError."""
    if isinstance(value, (bool, np.bool_)):
        raise InvalidMetricError(metric_name, "boolean is not a numeric value")
    if not isinstance(value, (int, float, np.number)):
        raise InvalidMetricError(metric_name, f"non-numeric value of type {type(value).__name__}")
    result = float(value)
    if not math.isfinite(result):
        raise InvalidMetricError(metric_name, f"value must be finite, got {result}")
    return result


@dataclass(frozen=True)
class Metric:
    name: str
    value: float
    direction: Optional[Direction] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidMetricError(self.name, "metric name cannot be empty")
        object.__setattr__(self, "value", coerce_value(self.name, self.value))
        try:
            object.__setattr__(self, "direction", Direction.parse(self.direction))
        except ValueError as e:
            raise InvalidMetricError(self.name, str(e)) from e

    @classmethod
    def from_source(cls, source: Any) -> "Metric":
        """Freeze any MetricSource-shaped object into a Metric."""
        if isinstance(source, Metric):
            return source
        if not hasattr(source, "name") or not hasattr(source, "value"):
            raise InvalidMetricError(
                getattr(source, "name", repr(source)),
                "metric source must expose 'name' and 'value'",
            )
        return cls(source.name, source.value, getattr(source, "direction", None))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "value": self.value,
            "direction": self.direction.value if self.direction else None,
        }
