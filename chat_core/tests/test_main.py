import json
import logging

import pytest

from chat_core.cli import main as cli_main
from chat_core.domain.exceptions import ValidationError
from chat_core.infrastructure.logging.logger import JsonFormatter


def test_missing_credential_exits_before_session(monkeypatch):
    def no_key(cfg, prompt_fn=None):
        raise ValidationError(code="MISSING_API_KEY", message="GROQ_API_KEY is required")

    def no_transport(*args, **kwargs):
        raise AssertionError("session must not start")

    monkeypatch.setattr(cli_main, "ensure_api_key", no_key)
    monkeypatch.setattr(cli_main, "create_transport", no_transport)
    assert cli_main.main([]) == 1


@pytest.mark.parametrize("redact", [False, True])
def test_json_formatter_merges_extra(redact):
    record = logging.LogRecord("chat_core", logging.INFO, __file__, 1, "x" * 100, None, None)
    record.extra = {"trace_id": "tr-1", "model": "m1"}
    payload = json.loads(JsonFormatter(redact_content=redact).format(record))
    assert payload["level"] == "INFO"
    assert payload["trace_id"] == "tr-1"
    assert payload["model"] == "m1"
    assert len(payload["msg"]) == (64 if redact else 100)
