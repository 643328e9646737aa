"""
Baseline Comparison Exceptions

Every failure path in the kit raises one of these; nothing returns None to
signal an error. Four families:

- configuration: bad tolerance rules, incomplete coverage, bad metric input
- domain invariant: empty/duplicate metric sets, aggregate mismatches
- range: confidence values outside [0, 1]
- not found: absent baseline, metric missing from the baseline

See error_taxonomy.py for how each family maps to severity and HTTP status.
"""

from __future__ import annotations

from typing import Any, Iterable


class BaselineComparisonError(Exception):
    """Base class for all baseline comparison errors."""


# --- configuration -------------------------------------------------------

class ConfigurationError(BaselineComparisonError):
    """Invalid configuration supplied by the caller. Never fixed by retrying."""


class ToleranceValidationError(ConfigurationError):
    def __init__(self, metric_name: Any, reason: str):
        self.metric_name = metric_name
        self.reason = reason
        super().__init__(f"Tolerance validation failed for metric '{metric_name}': {reason}")


class ToleranceNotFoundError(ConfigurationError):
    """Raised by ToleranceConfiguration.get_tolerance for an unknown metric."""

    def __init__(self, metric_name: Any):
        self.metric_name = metric_name
        super().__init__(f"Metric '{metric_name}' not found: no tolerance rule defined")


class InvalidMetricError(ConfigurationError):
    def __init__(self, metric_name: Any, reason: str):
        self.metric_name = metric_name
        self.reason = reason
        super().__init__(f"Invalid metric '{metric_name}': {reason}")


class MissingDirectionError(ConfigurationError):
    """Neither the metric nor its tolerance rule declares an improvement direction."""

    def __init__(self, metric_name: Any):
        self.metric_name = metric_name
        super().__init__(
            f"Metric '{metric_name}' has no improvement direction "
            "(set it on the metric or on its tolerance rule)"
        )


class DirectionConflictError(ConfigurationError):
    def __init__(self, metric_name: Any, expected: Any, got: Any):
        self.metric_name = metric_name
        self.expected = expected
        self.got = got
        super().__init__(
            f"Metric '{metric_name}' direction conflict: baseline declares {expected}, current declares {got}"
        )


# --- domain invariants ---------------------------------------------------

class DomainInvariantViolation(BaselineComparisonError):
    """A programming defect: an aggregate was asked to hold an impossible state."""

    def __init__(self, invariant: str, reason: str):
        self.invariant = invariant
        self.reason = reason
        super().__init__(f"Domain invariant violated: {invariant}. {reason}")


class EmptyMetricSetError(DomainInvariantViolation):
    def __init__(self, invariant: str):
        super().__init__(invariant, "At least one metric is required.")


class DuplicateMetricError(DomainInvariantViolation):
    def __init__(self, invariant: str, names: Iterable[str]):
        self.names = sorted(set(names))
        super().__init__(invariant, f"Duplicate metric names: {', '.join(self.names)}")


class ToleranceCoverageError(DomainInvariantViolation, ConfigurationError):
    """A baseline metric has no tolerance rule. Both an invariant and a config error."""

    def __init__(self, names: Iterable[str]):
        self.names = list(names)
        DomainInvariantViolation.__init__(
            self,
            "Baseline.tolerance_config",
            f"No tolerance rule defined for: {', '.join(self.names)}",
        )


class AggregateMismatchError(DomainInvariantViolation):
    def __init__(self, field_name: str, supplied: Any, derived: Any):
        self.field_name = field_name
        self.supplied = supplied
        self.derived = derived
        super().__init__(
            f"ComparisonResult.{field_name}",
            f"Supplied {supplied!r} but metric results aggregate to {derived!r}.",
        )


# --- range ---------------------------------------------------------------

class ConfidenceValidationError(BaselineComparisonError):
    def __init__(self, value: Any, what: str = "Confidence level"):
        self.value = value
        super().__init__(f"{what} {value!r} must be in range [0.0, 1.0]")


# --- not found -----------------------------------------------------------

class NotFoundError(BaselineComparisonError):
    """Expected runtime outcome the caller must handle, not a domain fault."""


class BaselineNotFoundError(NotFoundError):
    def __init__(self, baseline_id: Any):
        self.baseline_id = str(baseline_id)
        super().__init__(f"Baseline with ID '{baseline_id}' not found or has expired")


class MetricNotFoundError(NotFoundError):
    def __init__(self, metric_names: Iterable[str], where: str = "baseline"):
        self.metric_names = list(metric_names)
        self.where = where
        super().__init__(f"Metric(s) not found in {where}: {', '.join(self.metric_names)}")


# --- infrastructure ------------------------------------------------------

class RepositoryError(BaselineComparisonError):
    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Repository operation '{operation}' failed: {reason}")
