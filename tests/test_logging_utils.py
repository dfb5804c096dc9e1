"""Tests for logging utilities and sensitive data redaction."""

from __future__ import annotations

import json
import logging

import pytest

from larder.logging_utils import JsonFormatter, configure_logging


@pytest.mark.parametrize("fmt", ["plain", "json"])
def test_sensitive_data_filter_redacts_tokens(fmt):
    secret = "top-secret-token"
    configure_logging("INFO", fmt, [secret])

    handler = logging.getLogger().handlers[0]
    record = logging.LogRecord(
        name="larder.test.redaction",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg="Authorization header Bearer %s",
        args=(secret,),
        exc_info=None,
    )

    for filter_ in handler.filters:
        filter_.filter(record)

    formatted = handler.format(record)
    assert secret not in formatted
    assert "[redacted]" in formatted


def test_query_string_tokens_are_masked_without_configured_secrets():
    configure_logging("INFO", "plain", [])

    handler = logging.getLogger().handlers[0]
    record = logging.LogRecord(
        name="larder.test.redaction",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg="GET /shopping-list?api_token=abc123",
        args=(),
        exc_info=None,
    )

    for filter_ in handler.filters:
        filter_.filter(record)

    assert "abc123" not in handler.format(record)


def test_json_formatter_includes_request_context():
    record = logging.LogRecord(
        name="larder.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg="HTTP GET /inventory status=200",
        args=(),
        exc_info=None,
    )
    record.request_id = "req-1"
    record.user_id = "alice"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["request_id"] == "req-1"
    assert payload["user_id"] == "alice"
    assert payload["level"] == "INFO"
