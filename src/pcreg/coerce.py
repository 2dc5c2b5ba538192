"""Coercion helpers.

Centralizes defensive parsing of stored and imported values so the
models and the migration engine never have to guess at input types.
"""

from __future__ import annotations

import math
import secrets
import time
from datetime import UTC, datetime
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def int_or(value: Any, default: int) -> int:
    parsed = safe_int(value)
    return default if parsed is None else parsed


def str_or(value: Any, default: str) -> str:
    """Return *value* as text, or *default* when it is missing or blank."""
    text = safe_str(value)
    if text is None or not text.strip():
        return default
    return text


def optional_ref(value: Any) -> str | None:
    """Normalize a weak reference id: empty values become ``None``."""
    text = safe_str(value)
    if text is None or not text.strip():
        return None
    return text


def enabled_flag(value: Any) -> bool:
    """Only an explicit ``false`` disables a flag that defaults to on."""
    if isinstance(value, str):
        return value.strip().lower() not in {"false", "0", "no", "off"}
    return value is not False and value != 0


def utcnow() -> datetime:
    return datetime.now(UTC)


def isoformat(value: datetime) -> str:
    """Format *value* as an ISO-8601 UTC string with millisecond precision.

    ``2026-10-19T08:30:00.000Z``
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso(value: Any) -> datetime | None:
    """Best-effort parse of an ISO-8601 timestamp; ``None`` on failure."""
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    text = safe_str(value)
    if text is None:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def new_id(prefix: str = "ID") -> str:
    """Generate a record id such as ``TRN_3fa9c01b7e2d``.

    Eight random hex digits followed by the last four hex digits of the
    current epoch in milliseconds.
    """
    stamp = format(int(time.time() * 1000), "x")[-4:]
    return f"{prefix}_{secrets.token_hex(4)}{stamp}"
