import json
import logging

from chat_core.infrastructure.logging import logger as logger_module
from chat_core.infrastructure.logging.logger import REDACT_LIMIT, JsonFormatter


def make_record(msg, **fields):
    record = logging.LogRecord("chat_core", logging.WARNING, __file__, 1, msg, None, None)
    record.extra = fields
    return record


def test_formatter_emits_json_with_extra_fields(monkeypatch):
    monkeypatch.setattr(logger_module.settings, "log_redact_content", False)
    frame = "x" * 200
    line = JsonFormatter().format(make_record("Skipped malformed stream frame", frame=frame, http_status=500))
    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["msg"] == "Skipped malformed stream frame"
    assert payload["frame"] == frame
    assert payload["http_status"] == 500
    assert payload["ts"].endswith("Z")


def test_redaction_truncates_content_fields(monkeypatch):
    monkeypatch.setattr(logger_module.settings, "log_redact_content", True)
    body = "secret conversation text " * 20
    line = JsonFormatter().format(make_record("Provider returned error status", body=body, frame=body, http_status=429))
    payload = json.loads(line)
    assert payload["body"] == body[:REDACT_LIMIT]
    assert payload["frame"] == body[:REDACT_LIMIT]
    assert payload["http_status"] == 429
