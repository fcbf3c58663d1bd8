#!/usr/bin/env python3
"""Gate: customer PII must not reach the logs.

Walks every module under src/ with ``ast`` and fails if:
- print() is called in runtime code
- a logger call mentions a PII field without going through
  safe_log_context / redact_value / redact_string

Usage:
    python scripts/gate_security_pii.py
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path

# Customer fields that must never be logged raw
SENSITIVE_KEYWORDS = (
    "email",
    "phone",
    "national_id",
    "first_name",
    "last_name",
    "full_name",
    "password",
    "username",
)

LOG_METHODS = frozenset({"debug", "info", "warning", "error", "critical", "exception"})

REDACTION_CALLS = frozenset({"safe_log_context", "redact_value", "redact_string"})


def _is_logger_call(node: ast.Call) -> bool:
    func = node.func
    return (
        isinstance(func, ast.Attribute)
        and func.attr in LOG_METHODS
        and isinstance(func.value, ast.Name)
        and func.value.id == "logger"
    )


def _uses_redaction(node: ast.Call) -> bool:
    for child in ast.walk(node):
        if isinstance(child, ast.Call) and isinstance(child.func, ast.Name):
            if child.func.id in REDACTION_CALLS:
                return True
    return False


def check_source(source: str, filename: str = "<string>") -> list[str]:
    """Return one error message per violation found in ``source``."""
    errors: list[str] = []
    tree = ast.parse(source, filename=filename)

    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue

        if isinstance(node.func, ast.Name) and node.func.id == "print":
            errors.append(f"{filename}:{node.lineno}: print() not allowed in runtime code")
            continue

        if not _is_logger_call(node):
            continue

        segment = (ast.get_source_segment(source, node) or "").lower()
        hits = [kw for kw in SENSITIVE_KEYWORDS if kw in segment]
        if hits and not _uses_redaction(node):
            errors.append(
                f"{filename}:{node.lineno}: logger call mentions {', '.join(hits)} "
                "without redaction (safe_log_context/redact_value/redact_string)"
            )

    return errors


def check_file(filepath: Path) -> list[str]:
    try:
        source = filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return []
    return check_source(source, str(filepath))


def main() -> int:
    src_dir = Path("src")
    if not src_dir.exists():
        src_dir = Path(__file__).parent.parent / "src"
    if not src_dir.exists():
        sys.stderr.write("Error: src directory not found\n")
        return 1

    all_errors: list[str] = []
    for pyfile in sorted(src_dir.rglob("*.py")):
        all_errors.extend(check_file(pyfile))

    if all_errors:
        sys.stderr.write("PII gate FAILED:\n")
        for err in all_errors:
            sys.stderr.write(f"  {err}\n")
        return 1

    sys.stdout.write("PII gate PASSED\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
