"""Canonical error-code taxonomy for example repository flows."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Bounded canonical error codes for callers and observability."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTEGRITY_ERROR = "INTEGRITY_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_CODE_GROUPS: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_ERROR: "VALIDATION",
    ErrorCode.NOT_FOUND: "STORE",
    ErrorCode.INTEGRITY_ERROR: "STORE",
    ErrorCode.INTERNAL_ERROR: "INTERNAL",
}


def parse_error_code(
    value: Any,
    *,
    fallback: ErrorCode = ErrorCode.INTERNAL_ERROR,
) -> ErrorCode:
    """Parse string-like values to `ErrorCode` with safe fallback."""
    if isinstance(value, ErrorCode):
        return value
    if value is None:
        return fallback
    try:
        return ErrorCode(str(value).strip().upper())
    except ValueError:
        return fallback


def error_code_group(value: Any) -> str:
    """Return a stable coarse grouping for telemetry dimensions."""
    parsed = parse_error_code(value)
    return _CODE_GROUPS.get(parsed, "INTERNAL")
