"""Tests for observability utilities."""

import json
import logging

from hotelera.observability.correlation import correlation_scope, get_correlation_id
from hotelera.observability.logging import JsonFormatter
from hotelera.observability.redaction import (
    redact_string,
    redact_value,
    safe_log_context,
)


class TestRedaction:
    """Tests for redaction helpers."""

    def test_redact_phone_number(self):
        result = redact_string("Call me at 987654321")
        assert "987654321" not in result
        assert "[REDACTED]" in result

    def test_redact_national_id(self):
        result = redact_string("DNI 12345678 on file")
        assert "12345678" not in result

    def test_redact_email(self):
        result = redact_string("Email: ana@example.com")
        assert "ana@example.com" not in result
        assert "[REDACTED]" in result

    def test_short_numbers_survive(self):
        assert redact_string("room 101") == "room 101"

    def test_redact_value_dict_only_keys(self):
        result = redact_value({"password": "secret123", "user": "ana"})
        assert "secret123" not in result
        assert "ana" not in result
        assert "password" in result
        assert "user" in result

    def test_redact_value_list_only_len(self):
        result = redact_value(["a", "b", "c"])
        assert "len=3" in result

    def test_redact_value_scalars(self):
        from datetime import date

        assert redact_value(None) == "null"
        assert redact_value(True) == "true"
        assert redact_value(7) == "7"
        assert redact_value(date(2024, 1, 15)) == "2024-01-15"
        assert redact_value(object()) == "<object>"

    def test_safe_log_context(self):
        ctx = safe_log_context(phone="987654321", count=42)
        assert "[REDACTED]" in ctx["phone"]
        assert ctx["count"] == "42"


class TestCorrelation:
    def test_scope_binds_and_resets(self):
        assert get_correlation_id() == ""
        with correlation_scope("req-1") as cid:
            assert cid == "req-1"
            assert get_correlation_id() == "req-1"
        assert get_correlation_id() == ""

    def test_scope_generates_id(self):
        with correlation_scope() as cid:
            assert cid
            assert get_correlation_id() == cid


def _record(msg="hello", **attrs):
    record = logging.LogRecord("hotelera.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_basic_fields(self):
        payload = json.loads(JsonFormatter().format(_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "hotelera.test"
        assert payload["message"] == "hello"
        assert "correlationId" not in payload

    def test_includes_correlation_id(self):
        with correlation_scope("abc"):
            payload = json.loads(JsonFormatter().format(_record()))
        assert payload["correlationId"] == "abc"

    def test_merges_extra_fields(self):
        payload = json.loads(JsonFormatter().format(_record(extra_fields={"reservation_id": 7})))
        assert payload["reservation_id"] == 7


def test_safe_log_context_blanks_pii_keys():
    ctx = safe_log_context(first_name="Ana", customer_id=1)
    assert ctx == {"first_name": "[REDACTED]", "customer_id": "1"}
