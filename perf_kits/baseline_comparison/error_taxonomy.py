"""
Baseline Comparison Error Taxonomy

Classify comparison failures in operator language (for CI logs and API clients).

Every error falls into one category, each with:
- severity: 'critical' | 'high' | 'medium' | 'low'
- recoverable: whether the caller can fix the request and retry
- http_status: status code the API answers with
- error_code: stable machine-readable code
- description: what went wrong
"""

from typing import Optional

from .exceptions import (
    BaselineNotFoundError,
    ConfidenceValidationError,
    ConfigurationError,
    DomainInvariantViolation,
    MetricNotFoundError,
    RepositoryError,
    ToleranceCoverageError,
)


class ComparisonErrorTaxonomy:
    """Map exceptions to operator-relevant categories."""

    CATEGORIES = {
        'configuration_error': {
            'severity': 'high',
            'recoverable': True,
            'http_status': 400,
            'error_code': 'INVALID_CONFIGURATION',
            'description': 'Tolerance rules, metric values or directions are invalid or incomplete',
        },
        'range_error': {
            'severity': 'medium',
            'recoverable': True,
            'http_status': 400,
            'error_code': 'CONFIDENCE_OUT_OF_RANGE',
            'description': 'A confidence value or threshold lies outside [0, 1]',
        },
        'baseline_not_found': {
            'severity': 'low',
            'recoverable': True,
            'http_status': 404,
            'error_code': 'BASELINE_NOT_FOUND',
            'description': 'The baseline does not exist or has expired',
        },
        'metric_not_found': {
            'severity': 'medium',
            'recoverable': True,
            'http_status': 422,
            'error_code': 'METRIC_NOT_FOUND',
            'description': 'A current metric has no counterpart in the baseline',
        },
        'domain_invariant_violation': {
            'severity': 'critical',
            'recoverable': False,
            'http_status': 422,
            'error_code': 'DOMAIN_INVARIANT_VIOLATION',
            'description': 'An aggregate was asked to hold an impossible state (empty or duplicate metrics)',
        },
        'repository_error': {
            'severity': 'critical',
            'recoverable': False,
            'http_status': 503,
            'error_code': 'REPOSITORY_UNAVAILABLE',
            'description': 'Baseline storage failed; the comparison was not performed',
        },
    }

    UNKNOWN = {
        'severity': 'unknown',
        'recoverable': False,
        'http_status': 500,
        'error_code': 'INTERNAL_ERROR',
        'description': 'See logs for details',
    }

    # Most specific first: ToleranceCoverageError is both an invariant and a config error.
    _EXCEPTION_CATEGORIES = (
        (ToleranceCoverageError, 'configuration_error'),
        (BaselineNotFoundError, 'baseline_not_found'),
        (MetricNotFoundError, 'metric_not_found'),
        (ConfidenceValidationError, 'range_error'),
        (ConfigurationError, 'configuration_error'),
        (DomainInvariantViolation, 'domain_invariant_violation'),
        (RepositoryError, 'repository_error'),
    )

    @classmethod
    def category_of(cls, exc: BaseException) -> Optional[str]:
        for exc_type, category in cls._EXCEPTION_CATEGORIES:
            if isinstance(exc, exc_type):
                return category
        return None

    @classmethod
    def classify(cls, error: object) -> dict:
        """
        Retrieve category info for an error.

        Args:
            error: a category key or an exception instance

        Returns:
            Dict with category, severity, recoverable, http_status, error_code, description
        """
        category = cls.category_of(error) if isinstance(error, BaseException) else error
        if category in cls.CATEGORIES:
            return {'category': category, **cls.CATEGORIES[category]}
        return {'category': 'unknown', **cls.UNKNOWN}

    @classmethod
    def all_categories(cls) -> list:
        """Return list of all error category names."""
        return list(cls.CATEGORIES.keys())

    @classmethod
    def severity_level(cls, error: object) -> str:
        return cls.classify(error)['severity']

    @classmethod
    def http_status(cls, error: object) -> int:
        return cls.classify(error)['http_status']
