import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from perf_kits.baseline_comparison.baseline import BaselineFactory
from perf_kits.baseline_comparison.normalizer import MetricNormalizer
from perf_kits.baseline_comparison.orchestrator import ComparisonOrchestrator
from perf_kits.baseline_comparison.repository import InMemoryBaselineRepository
from perf_kits.baseline_comparison.serialization import tolerance_config_from_dict

FIXTURES = Path(__file__).parent.parent / 'fixtures'

FIXED_TIME = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_time() -> datetime:
    return FIXED_TIME


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def tolerance_config():
    with open(FIXTURES / 'api_latency_tolerances.json') as f:
        return tolerance_config_from_dict(json.load(f))


@pytest.fixture
def baseline_metrics():
    return MetricNormalizer().load_csv(str(FIXTURES / 'api_latency_baseline.csv'))


@pytest.fixture
def baseline(baseline_metrics, tolerance_config):
    return BaselineFactory().create(
        baseline_metrics, tolerance_config, baseline_id='bl-api-latency', created_at=FIXED_TIME
    )


@pytest.fixture
def repository():
    return InMemoryBaselineRepository()


@pytest.fixture
def orchestrator(repository):
    return ComparisonOrchestrator(repository)
