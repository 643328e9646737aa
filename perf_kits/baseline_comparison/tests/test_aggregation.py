import itertools

import pytest

from perf_kits.baseline_comparison.aggregation import OutcomeAggregator
from perf_kits.baseline_comparison.comparison import ComparisonCalculator, ComparisonOutcome
from perf_kits.baseline_comparison.confidence import ConfidenceLevel
from perf_kits.baseline_comparison.tolerance import Tolerance

I = ComparisonOutcome.IMPROVEMENT
R = ComparisonOutcome.REGRESSION
N = ComparisonOutcome.NO_SIGNIFICANT_CHANGE
X = ComparisonOutcome.INCONCLUSIVE


@pytest.mark.parametrize('outcomes, expected', [
    ([I, R, N], R),
    ([I, N], I),
    ([N, N], N),
    ([X, X], X),
    ([X, N], N),
    ([X, I], I),
    ([R], R),
])
def test_priority(outcomes, expected):
    assert OutcomeAggregator().aggregate(outcomes) is expected


def test_empty_input():
    aggregator = OutcomeAggregator()
    assert aggregator.aggregate([]) is ComparisonOutcome.INCONCLUSIVE
    assert aggregator.aggregate_confidence([]) == ConfidenceLevel.none()


def test_order_independence():
    aggregator = OutcomeAggregator()
    outcomes = [I, R, N, X]
    confidences = [0.9, 0.4, 0.0, 0.65]
    for perm in itertools.permutations(range(4)):
        assert aggregator.aggregate([outcomes[i] for i in perm]) is R
        assert aggregator.aggregate_confidence([confidences[i] for i in perm]).value == 0.0


def test_minimum_confidence_over_metric_results():
    calculator = ComparisonCalculator()
    results = [
        calculator.calculate_metric(100, 200, Tolerance.for_latency('p95')),
        calculator.calculate_metric(100, 115, Tolerance.for_latency('p99'), confidence_threshold=0.4),
    ]
    aggregator = OutcomeAggregator()
    assert aggregator.aggregate(results) is R
    assert aggregator.aggregate_confidence(results).value == pytest.approx(0.5)


def test_accepts_plain_strings():
    assert OutcomeAggregator().aggregate(['IMPROVEMENT', 'NO_SIGNIFICANT_CHANGE']) is I
