import pytest

from perf_kits.baseline_comparison.error_taxonomy import ComparisonErrorTaxonomy
from perf_kits.baseline_comparison.exceptions import (
    AggregateMismatchError,
    BaselineNotFoundError,
    ConfidenceValidationError,
    DirectionConflictError,
    EmptyMetricSetError,
    MetricNotFoundError,
    RepositoryError,
    ToleranceCoverageError,
    ToleranceValidationError,
)


@pytest.mark.parametrize('exc, category, status', [
    (ToleranceValidationError('p95', 'negative'), 'configuration_error', 400),
    (DirectionConflictError('p95', 'lower_is_better', 'higher_is_better'), 'configuration_error', 400),
    (ToleranceCoverageError(['p99']), 'configuration_error', 400),
    (ConfidenceValidationError(1.5), 'range_error', 400),
    (BaselineNotFoundError('bl-1'), 'baseline_not_found', 404),
    (MetricNotFoundError(['cpu']), 'metric_not_found', 422),
    (EmptyMetricSetError('Baseline.metrics'), 'domain_invariant_violation', 422),
    (AggregateMismatchError('overall_outcome', 'IMPROVEMENT', 'REGRESSION'), 'domain_invariant_violation', 422),
    (RepositoryError('create', 'connection refused'), 'repository_error', 503),
])
def test_classify_exceptions(exc, category, status):
    info = ComparisonErrorTaxonomy.classify(exc)
    assert info['category'] == category
    assert info['http_status'] == status
    assert ComparisonErrorTaxonomy.http_status(exc) == status


def test_every_category_is_complete():
    for category in ComparisonErrorTaxonomy.all_categories():
        info = ComparisonErrorTaxonomy.classify(category)
        assert {'severity', 'recoverable', 'http_status', 'error_code', 'description'} <= set(info)


def test_unknown():
    assert ComparisonErrorTaxonomy.classify(KeyError('x'))['error_code'] == 'INTERNAL_ERROR'
    assert ComparisonErrorTaxonomy.severity_level('no_such_category') == 'unknown'
    assert ComparisonErrorTaxonomy.severity_level(BaselineNotFoundError('x')) == 'low'
