"""Domain events emitted by the orchestrator. Plain immutable records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .comparison import ComparisonOutcome


@dataclass(frozen=True)
class BaselineCreatedEvent:
    baseline_id: str
    created_at: datetime
    metric_count: int

    event_type = 'baseline_created'

    def to_dict(self) -> dict:
        return {
            'event_type': self.event_type,
            'baseline_id': self.baseline_id,
            'created_at': self.created_at.isoformat(),
            'metric_count': self.metric_count,
        }


@dataclass(frozen=True)
class ComparisonPerformedEvent:
    comparison_id: str
    baseline_id: str
    outcome: ComparisonOutcome
    performed_at: datetime

    event_type = 'comparison_performed'

    def to_dict(self) -> dict:
        return {
            'event_type': self.event_type,
            'comparison_id': self.comparison_id,
            'baseline_id': self.baseline_id,
            'outcome': ComparisonOutcome(self.outcome).value,
            'performed_at': self.performed_at.isoformat(),
        }
