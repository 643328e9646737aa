"""
Baseline aggregate: an immutable snapshot of metric values plus the
tolerance rules that govern comparisons against it.

Invariants checked at construction:
- at least one metric
- metric names unique
- every metric has a tolerance rule
- every metric has an improvement direction (its own or its rule's)
"""

from __future__ import annotations

import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Tuple

from .exceptions import (
    DomainInvariantViolation,
    DuplicateMetricError,
    EmptyMetricSetError,
    MissingDirectionError,
    ToleranceCoverageError,
)
from .metrics import Direction, Metric
from .tolerance import Tolerance, ToleranceConfiguration, ToleranceKind


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class BaselineId:
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise DomainInvariantViolation("BaselineId", "Identifier cannot be empty.")

    @classmethod
    def new(cls) -> "BaselineId":
        return cls(str(uuid.uuid4()))

    @classmethod
    def of(cls, value: Any) -> "BaselineId":
        return value if isinstance(value, BaselineId) else cls(str(value))

    def __str__(self) -> str:
        return self.value


def assert_unique_names(names: Iterable[str], invariant: str) -> None:
    duplicates = [name for name, count in Counter(names).items() if count > 1]
    if duplicates:
        raise DuplicateMetricError(invariant, duplicates)


@dataclass(frozen=True)
class Baseline:
    metrics: Tuple[Metric, ...]
    tolerance_config: ToleranceConfiguration
    id: BaselineId = field(default_factory=BaselineId.new)
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if self.metrics is None:
            raise EmptyMetricSetError("Baseline.metrics")
        metrics = tuple(Metric.from_source(m) for m in self.metrics)
        if not metrics:
            raise EmptyMetricSetError("Baseline.metrics")
        assert_unique_names((m.name for m in metrics), "Baseline.metrics")

        if not isinstance(self.tolerance_config, ToleranceConfiguration):
            raise DomainInvariantViolation(
                "Baseline.tolerance_config", "Tolerance configuration is required."
            )
        uncovered = [m.name for m in metrics if not self.tolerance_config.has_tolerance(m.name)]
        if uncovered:
            raise ToleranceCoverageError(uncovered)

        for m in metrics:
            if m.direction is None and self.tolerance_config.get_tolerance(m.name).direction is None:
                raise MissingDirectionError(m.name)

        object.__setattr__(self, "metrics", metrics)
        object.__setattr__(self, "id", BaselineId.of(self.id))
        if self.created_at.tzinfo is None:
            object.__setattr__(self, "created_at", self.created_at.replace(tzinfo=timezone.utc))

    @property
    def metric_names(self) -> Tuple[str, ...]:
        return tuple(m.name for m in self.metrics)

    def get_metric(self, name: str) -> Optional[Metric]:
        for m in self.metrics:
            if m.name == name:
                return m
        return None

    def has_metric(self, name: str) -> bool:
        return self.get_metric(name) is not None

    def direction_of(self, name: str) -> Optional[Direction]:
        metric = self.get_metric(name)
        if metric is None:
            return None
        return metric.direction or self.tolerance_config.get_tolerance(name).direction

    def __str__(self) -> str:
        return f"Baseline {self.id} (created: {self.created_at.isoformat()}, metrics: {len(self.metrics)})"


class BaselineFactory:
    """Builds validated baselines from any metric source."""

    def create(
        self,
        metrics: Iterable[Any],
        tolerance_config: ToleranceConfiguration,
        baseline_id: Optional[Any] = None,
        created_at: Optional[datetime] = None,
    ) -> Baseline:
        return Baseline(
            metrics=tuple(metrics),
            tolerance_config=tolerance_config,
            id=BaselineId.of(baseline_id) if baseline_id is not None else BaselineId.new(),
            created_at=created_at or utc_now(),
        )

    def create_with_default_tolerances(
        self,
        metrics: Iterable[Any],
        amount: float,
        kind: Any = ToleranceKind.ABSOLUTE,
    ) -> Baseline:
        """Same tolerance rule for every metric; directions must come from the metrics."""
        frozen = tuple(Metric.from_source(m) for m in metrics)
        if not frozen:
            raise EmptyMetricSetError("Baseline.metrics")
        assert_unique_names((m.name for m in frozen), "Baseline.metrics")
        config = ToleranceConfiguration(tuple(Tolerance(m.name, kind, amount) for m in frozen))
        return self.create(frozen, config)
