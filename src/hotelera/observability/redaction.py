"""Keep customer PII out of logs.

Anything derived from a customer record (names, national ID, email, phone,
credentials) goes through ``safe_log_context`` or ``redact_value`` before it
reaches a logger. Reservation, room and customer ids are safe as they are.
"""

import re
from datetime import date
from typing import Any

_REDACTED = "[REDACTED]"

# Eight-digit national IDs and nine-digit phones, with or without separators.
_DIGIT_RUN = re.compile(r"\+?\d[\d\s\-()]{6,}\d")
_EMAIL = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Keys whose values are dropped outright by safe_log_context.
PII_FIELDS = frozenset(
    {
        "national_id",
        "first_name",
        "last_name",
        "full_name",
        "email",
        "phone",
        "username",
        "password",
    }
)


def redact_string(value: str) -> str:
    """Mask email addresses and long digit runs inside free text."""
    return _EMAIL.sub(_REDACTED, _DIGIT_RUN.sub(_REDACTED, value))


def redact_value(value: Any) -> str:
    """String form of ``value`` that is safe to log.

    Containers are summarized by shape only; unknown objects by type name.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build ``extra_fields`` for a log call; PII keys are blanked entirely."""
    return {
        key: _REDACTED if key in PII_FIELDS else redact_value(value)
        for key, value in kwargs.items()
    }
