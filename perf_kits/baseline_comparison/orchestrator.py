"""
Comparison Orchestrator

Entry point for comparing a run against a stored baseline:

1. load the baseline (BaselineNotFoundError when absent or expired)
2. normalize current metrics, reject duplicates
3. every current metric must exist in the baseline (MetricNotFoundError)
4. compare each shared metric in baseline order
5. aggregate into an immutable ComparisonResult
6. emit ComparisonPerformedEvent, log one JSON line

Results depend only on (baseline, current metrics, tolerances, threshold,
comparison_id, compared_at). Supplying the last two makes output byte-identical.
"""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional

from .aggregation import OutcomeAggregator
from .baseline import Baseline, BaselineFactory, BaselineId, assert_unique_names, utc_now
from .comparison import DEFAULT_CONFIDENCE_THRESHOLD, ComparisonCalculator
from .confidence import validate_threshold
from .events import BaselineCreatedEvent, ComparisonPerformedEvent
from .exceptions import BaselineNotFoundError, EmptyMetricSetError, MetricNotFoundError
from .metrics import Metric
from .normalizer import MetricNormalizer
from .repository import BaselineRepository
from .result import ComparisonResult, ComparisonResultId
from .tolerance import ToleranceConfiguration

logger = logging.getLogger(__name__)

Listener = Callable[[object], None]


class ComparisonOrchestrator:
    def __init__(
        self,
        repository: BaselineRepository,
        calculator: Optional[ComparisonCalculator] = None,
        aggregator: Optional[OutcomeAggregator] = None,
        normalizer: Optional[MetricNormalizer] = None,
        listeners: Iterable[Listener] = (),
    ):
        self.repository = repository
        self.calculator = calculator or ComparisonCalculator()
        self.aggregator = aggregator or OutcomeAggregator()
        self.normalizer = normalizer or MetricNormalizer()
        self.factory = BaselineFactory()
        self.listeners: List[Listener] = list(listeners)

    def subscribe(self, listener: Listener) -> None:
        self.listeners.append(listener)

    def _emit(self, event) -> None:
        for listener in self.listeners:
            listener(event)

    # Baselines

    def create_baseline(
        self,
        metrics: Any,
        tolerance_config: ToleranceConfiguration,
        baseline_id: Optional[Any] = None,
        created_at: Optional[datetime] = None,
    ) -> Baseline:
        baseline = self.factory.create(
            self.normalizer.normalize(metrics), tolerance_config, baseline_id, created_at
        )
        self.repository.create(baseline)
        event = BaselineCreatedEvent(str(baseline.id), baseline.created_at, len(baseline.metrics))
        logger.info(json.dumps(event.to_dict()))
        self._emit(event)
        return baseline

    def get_baseline(self, baseline_id: Any) -> Baseline:
        baseline = self.repository.get_by_id(BaselineId.of(baseline_id))
        if baseline is None:
            raise BaselineNotFoundError(baseline_id)
        return baseline

    def baseline_exists(self, baseline_id: Any) -> bool:
        return self.repository.exists(BaselineId.of(baseline_id))

    def list_recent(self, count: int = 10) -> List[Baseline]:
        return self.repository.list_recent(count)

    def delete_baseline(self, baseline_id: Any) -> bool:
        return self.repository.delete(BaselineId.of(baseline_id))

    # Comparisons

    def compare(
        self,
        baseline_id: Any,
        current_metrics: Any,
        tolerance_config: Optional[ToleranceConfiguration] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        comparison_id: Optional[Any] = None,
        compared_at: Optional[datetime] = None,
    ) -> ComparisonResult:
        baseline = self.get_baseline(baseline_id)
        return self.compare_against(
            baseline, current_metrics, tolerance_config, confidence_threshold, comparison_id, compared_at
        )

    def compare_against(
        self,
        baseline: Baseline,
        current_metrics: Any,
        tolerance_config: Optional[ToleranceConfiguration] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        comparison_id: Optional[Any] = None,
        compared_at: Optional[datetime] = None,
    ) -> ComparisonResult:
        """Same as compare() for a baseline already in hand; the repository is not touched."""
        threshold = validate_threshold(confidence_threshold)
        config = tolerance_config if tolerance_config is not None else baseline.tolerance_config

        current = self.normalizer.normalize(current_metrics)
        if not current:
            raise EmptyMetricSetError("current_metrics")
        assert_unique_names((m.name for m in current), "current_metrics")

        unknown = sorted(m.name for m in current if not baseline.has_metric(m.name))
        if unknown:
            raise MetricNotFoundError(unknown, where=f"baseline {baseline.id}")

        current_by_name = {m.name: m for m in current}
        # The baseline's own rules still supply direction when an override rule has none.
        metric_results = [
            self.calculator.compare(
                Metric(baseline_metric.name, baseline_metric.value, baseline.direction_of(baseline_metric.name)),
                current_by_name[baseline_metric.name],
                config.get_tolerance(baseline_metric.name),
                threshold,
            )
            for baseline_metric in baseline.metrics
            if baseline_metric.name in current_by_name
        ]

        result = ComparisonResult(
            baseline_id=baseline.id,
            metric_results=tuple(metric_results),
            overall_outcome=self.aggregator.aggregate(metric_results),
            overall_confidence=self.aggregator.aggregate_confidence(metric_results),
            id=ComparisonResultId.of(comparison_id) if comparison_id is not None else ComparisonResultId.new(),
            compared_at=compared_at or utc_now(),
        )

        event = ComparisonPerformedEvent(
            str(result.id), str(baseline.id), result.overall_outcome, result.compared_at
        )
        logger.info(json.dumps({
            **event.to_dict(),
            "metric_count": len(metric_results),
            "overall_confidence": result.overall_confidence.value,
            "outcomes": result.outcomes_by_metric(),
        }))
        self._emit(event)
        return result
