# Baseline Comparison Kit
# Compare performance-test metrics against stored baselines
# with tolerance-based, deterministic classification

from .metrics import Direction, Metric, MetricSource
from .tolerance import Tolerance, ToleranceConfiguration, ToleranceKind
from .confidence import ConfidenceCalculator, ConfidenceLevel
from .comparison import ComparisonCalculator, ComparisonMetric, ComparisonOutcome
from .aggregation import OutcomeAggregator
from .baseline import Baseline, BaselineFactory, BaselineId
from .result import ComparisonResult, ComparisonResultId
from .repository import BaselineRepository, InMemoryBaselineRepository
from .normalizer import MetricNormalizer, normalize_metrics
from .orchestrator import ComparisonOrchestrator
from .error_taxonomy import ComparisonErrorTaxonomy
from .exceptions import BaselineComparisonError

__all__ = [
    'Direction', 'Metric', 'MetricSource',
    'Tolerance', 'ToleranceConfiguration', 'ToleranceKind',
    'ConfidenceCalculator', 'ConfidenceLevel',
    'ComparisonCalculator', 'ComparisonMetric', 'ComparisonOutcome',
    'OutcomeAggregator',
    'Baseline', 'BaselineFactory', 'BaselineId',
    'ComparisonResult', 'ComparisonResultId',
    'BaselineRepository', 'InMemoryBaselineRepository',
    'MetricNormalizer', 'normalize_metrics',
    'ComparisonOrchestrator',
    'ComparisonErrorTaxonomy',
    'BaselineComparisonError',
]
__version__ = '1.0.0'
