import json
import logging

from fastapi.testclient import TestClient

from comparison_api.public.main import app
from comparison_api.public.middleware.audit_logging import AuditLogger, error_code_for_status


def test_redaction():
    audit = AuditLogger()
    assert "abc.def" not in audit.redact("Authorization: Bearer abc.def")
    assert audit.redact("Bearer abc.def") == "[REDACTED_API_KEY]"
    assert "secret" not in audit.redact("postgresql://perf:secret@db/perf")
    assert AuditLogger(enable_redaction=False).redact("Bearer abc") == "Bearer abc"


def test_key_and_payload_hashing():
    assert AuditLogger.obfuscate_api_key("Bearer key_1234567890") == "key_***67890"
    assert AuditLogger.obfuscate_api_key("") is None
    assert AuditLogger.hash_payload(b"") == "sha256:empty"
    assert AuditLogger.hash_payload(b"{}").startswith("sha256:")


def test_error_codes():
    assert error_code_for_status(200) is None
    assert error_code_for_status(404) == "NOT_FOUND"
    assert error_code_for_status(400) == "CLIENT_ERROR"
    assert error_code_for_status(502) == "SERVER_ERROR"


def test_middleware_logs_one_entry_per_request(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="audit"):
        client.get("/health", headers={"X-Request-ID": "trace-abc", "Authorization": "Bearer key_1234567890"})

    entries = [json.loads(r.getMessage()) for r in caplog.records if r.name == "audit"]
    assert len(entries) == 1
    entry = entries[0]
    assert entry["request_id"] == "trace-abc"
    assert entry["endpoint"] == "/health"
    assert entry["http_status"] == 200
    assert entry["api_key_id"] == "key_***67890"
    assert entry["error_code"] is None
