import pytest
from fastapi.testclient import TestClient

from comparison_api.public.dependencies import get_orchestrator
from comparison_api.public.main import app
from comparison_api.public.settings import settings
from perf_kits.baseline_comparison.orchestrator import ComparisonOrchestrator
from perf_kits.baseline_comparison.repository import InMemoryBaselineRepository

BASELINE = {
    "baseline_id": "bl-checkout",
    "metrics": [
        {"name": "p95_latency_ms", "value": 150, "direction": "lower_is_better"},
        {"name": "throughput_rps", "value": 1200},
        {"name": "error_rate_pct", "value": 0.5},
    ],
    "tolerances": [
        {"metric_name": "p95_latency_ms", "kind": "relative", "amount": 0.10},
        {"metric_name": "throughput_rps", "kind": "relative", "amount": 0.05, "direction": "higher_is_better"},
        {"metric_name": "error_rate_pct", "kind": "absolute", "amount": 0.05, "direction": "lower_is_better"},
    ],
}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings, "api_keys", [])
    monkeypatch.delenv("EVIDENCE_SIGNING_KEY", raising=False)
    orchestrator = ComparisonOrchestrator(InMemoryBaselineRepository())
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def stored(client):
    resp = client.post("/api/baselines", json=BASELINE)
    assert resp.status_code == 201, resp.text
    return resp.json()["baseline"]


def compare(client, metrics, **extra):
    payload = {"baseline_id": "bl-checkout", "metrics": metrics, **extra}
    return client.post("/api/comparisons", json=payload)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["service"] == "perf-baseline-api"
    assert "X-Request-ID" in resp.headers


def test_create_and_get_baseline(client, stored):
    assert stored["id"] == "bl-checkout"
    assert stored["metrics"][0] == {"name": "p95_latency_ms", "value": 150.0, "direction": "lower_is_better"}

    resp = client.get("/api/baselines/bl-checkout", headers={"X-Request-ID": "trace-123"})
    assert resp.status_code == 200
    assert resp.json()["trace_id"] == "trace-123"
    assert resp.json()["baseline"] == stored

    listing = client.get("/api/baselines", params={"limit": 5}).json()
    assert [b["id"] for b in listing["baselines"]] == ["bl-checkout"]


def test_unknown_baseline_is_404(client):
    resp = client.get("/api/baselines/nope")
    assert resp.status_code == 404
    body = resp.json()
    assert body["status"] == "error"
    assert body["error"]["code"] == "BASELINE_NOT_FOUND"
    assert body["error"]["category"] == "baseline_not_found"

    assert compare(client, [{"name": "p95_latency_ms", "value": 1}]).status_code == 404


def test_invalid_baselines(client):
    missing_rule = dict(BASELINE, tolerances=BASELINE["tolerances"][:1])
    resp = client.post("/api/baselines", json=missing_rule)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_CONFIGURATION"

    negative = dict(BASELINE, tolerances=[dict(BASELINE["tolerances"][0], amount=-1)] + BASELINE["tolerances"][1:])
    assert client.post("/api/baselines", json=negative).status_code == 400

    duplicate = dict(BASELINE, metrics=BASELINE["metrics"] + BASELINE["metrics"][:1])
    resp = client.post("/api/baselines", json=duplicate)
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "DOMAIN_INVARIANT_VIOLATION"

    resp = client.post("/api/baselines", json={"metrics": "p95"})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "REQUEST_VALIDATION_ERROR"


def test_duplicate_baseline_id(client, stored):
    resp = client.post("/api/baselines", json=BASELINE)
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "REPOSITORY_UNAVAILABLE"


def test_comparison_verdicts(client, stored):
    resp = compare(client, [{"name": "p95_latency_ms", "value": 156}])
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["result"]["overall_outcome"] == "NO_SIGNIFICANT_CHANGE"
    assert body["fingerprint"].startswith("sha256:")
    assert body["signature"] is None

    regressed = compare(client, [
        {"name": "p95_latency_ms", "value": 200},
        {"name": "throughput_rps", "value": 1190},
    ]).json()
    assert regressed["result"]["overall_outcome"] == "REGRESSION"
    assert [r["metric_name"] for r in regressed["result"]["metric_results"]] == ["p95_latency_ms", "throughput_rps"]

    improved = compare(client, [{"name": "p95_latency_ms", "value": 120}]).json()
    assert improved["result"]["overall_outcome"] == "IMPROVEMENT"


def test_comparison_is_reproducible(client, stored):
    extra = {"comparison_id": "cmp-1", "compared_at": "2024-01-15T12:00:00Z"}
    metrics = [{"name": "p95_latency_ms", "value": 171}, {"name": "error_rate_pct", "value": 0.61}]
    first = compare(client, metrics, **extra).json()
    second = compare(client, list(reversed(metrics)), **extra).json()
    assert first["result"] == second["result"]
    assert first["fingerprint"] == second["fingerprint"]


def test_comparison_errors(client, stored):
    resp = compare(client, [{"name": "gc_pause_ms", "value": 12}])
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "METRIC_NOT_FOUND"

    resp = compare(client, [{"name": "p95_latency_ms", "value": 150}], confidence_threshold=1.5)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CONFIDENCE_OUT_OF_RANGE"

    resp = compare(client, [{"name": "p95_latency_ms", "value": 150, "direction": "higher_is_better"}])
    assert resp.status_code == 400


def test_tolerance_override_and_threshold(client, stored):
    strict = [{"metric_name": "p95_latency_ms", "kind": "relative", "amount": 0.01}]
    resp = compare(client, [{"name": "p95_latency_ms", "value": 156}], tolerances=strict)
    assert resp.json()["result"]["overall_outcome"] == "REGRESSION"

    # 12% against 10% scores 0.2: inconclusive at the default gate, a regression at 0.1.
    metrics = [{"name": "p95_latency_ms", "value": 168}]
    assert compare(client, metrics).json()["result"]["overall_outcome"] == "INCONCLUSIVE"
    assert compare(client, metrics, confidence_threshold=0.1).json()["result"]["overall_outcome"] == "REGRESSION"


def test_signed_comparison_verifies(client, stored, monkeypatch):
    monkeypatch.setenv("EVIDENCE_SIGNING_KEY", "test-signing-key")
    body = compare(client, [{"name": "p95_latency_ms", "value": 200}]).json()
    assert body["signature_alg"] == "hmac-sha256"

    verify = client.post("/api/comparisons/verify", json={
        "result": body["result"], "signature_alg": body["signature_alg"], "signature": body["signature"],
    }).json()
    assert verify["verified"] is True
    assert verify["fingerprint"] == body["fingerprint"]
    assert verify["reason"] is None

    tampered = dict(body["result"], overall_outcome="IMPROVEMENT")
    verify = client.post("/api/comparisons/verify", json={
        "result": tampered, "signature_alg": body["signature_alg"], "signature": body["signature"],
    }).json()
    assert verify["verified"] is False
    assert verify["reason"] == "RESULT_INCONSISTENT"

    resigned = dict(body["result"], id="cmp-other")
    verify = client.post("/api/comparisons/verify", json={
        "result": resigned, "signature_alg": body["signature_alg"], "signature": body["signature"],
    }).json()
    assert verify["reason"] == "SIGNATURE_INVALID"

    verify = client.post("/api/comparisons/verify", json={"result": body["result"]}).json()
    assert verify["reason"] == "SIGNATURE_MISSING"


def test_verify_without_key_is_503(client):
    resp = client.post("/api/comparisons/verify", json={"result": {}})
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "SIGNING_NOT_CONFIGURED"


def test_api_key_required_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "api_keys", ["secret-key"])
    assert client.get("/api/baselines").status_code == 401
    assert client.get("/api/baselines", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.get("/api/baselines", headers={"Authorization": "Bearer secret-key"}).status_code == 200
    # Health stays open.
    assert client.get("/health").status_code == 200
