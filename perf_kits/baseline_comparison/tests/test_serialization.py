import json

import pytest

from perf_kits.baseline_comparison.exceptions import AggregateMismatchError, InvalidMetricError
from perf_kits.baseline_comparison.serialization import (
    baseline_from_dict,
    baseline_to_dict,
    canonical_json,
    fingerprint,
    result_from_dict,
    result_to_dict,
)


def test_canonical_json_is_sorted_and_compact():
    assert canonical_json({'b': 1, 'a': [1.5, None]}) == '{"a":[1.5,null],"b":1}'
    with pytest.raises(ValueError):
        canonical_json({'a': float('nan')})


def test_fingerprint():
    fp = fingerprint({'a': 1})
    assert fp.startswith('sha256:')
    assert len(fp) == len('sha256:') + 64
    assert fp == fingerprint({'a': 1})
    assert fp != fingerprint({'a': 2})


def test_baseline_round_trip(baseline):
    data = baseline_to_dict(baseline)
    assert data['id'] == 'bl-api-latency'
    assert data['created_at'] == '2024-01-15T12:00:00+00:00'
    assert data['metrics'][2] == {'name': 'throughput_rps', 'value': 1200.0, 'direction': 'higher_is_better'}
    restored = baseline_from_dict(json.loads(json.dumps(data)))
    assert restored == baseline


def test_stored_relative_tolerance_above_ceiling_still_loads(baseline):
    data = baseline_to_dict(baseline)
    data['tolerance_config']['tolerances'][0]['amount'] = 2.5
    assert baseline_from_dict(data).tolerance_config.get_tolerance('p95_latency_ms').amount == 2.5


def test_result_round_trip(orchestrator, baseline, fixtures_dir, fixed_time):
    orchestrator.repository.create(baseline)
    result = orchestrator.compare(
        baseline.id,
        orchestrator.normalizer.load_csv(str(fixtures_dir / 'api_latency_regressed.csv')),
        comparison_id='cmp-1',
        compared_at=fixed_time,
    )
    data = result_to_dict(result)
    assert data['overall_outcome'] == 'REGRESSION'
    assert data['metric_results'][0]['outcome'] == 'REGRESSION'
    assert result_from_dict(json.loads(canonical_json(data))) == result


def test_tampered_result_rejected(orchestrator, baseline, fixed_time):
    orchestrator.repository.create(baseline)
    result = orchestrator.compare(baseline.id, {'p95_latency_ms': 200}, compared_at=fixed_time)
    data = result_to_dict(result)
    data['overall_outcome'] = 'IMPROVEMENT'
    with pytest.raises(AggregateMismatchError):
        result_from_dict(data)


def test_missing_fields():
    with pytest.raises(InvalidMetricError):
        baseline_from_dict({'id': 'x'})
    with pytest.raises(InvalidMetricError):
        result_from_dict({})
