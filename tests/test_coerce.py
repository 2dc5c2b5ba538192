from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta, timezone

import pytest

from pcreg.coerce import enabled_flag, int_or, isoformat, new_id, optional_ref, parse_iso, safe_float, safe_int, str_or


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (12, 12),
        ("12", 12),
        ("12.7", 12),
        (" 4 ", 4),
        ("abc", None),
        ("", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        ("inf", None),
    ],
)
def test_safe_int(value: object, expected: int | None) -> None:
    assert safe_int(value) == expected


def test_safe_float_rejects_bool() -> None:
    assert safe_float(False) is None
    assert safe_float("1.5") == 1.5


def test_defaults_for_missing_values() -> None:
    assert int_or("x", 7) == 7
    assert int_or("-3", 7) == -3
    assert str_or("   ", "fallback") == "fallback"
    assert str_or(0, "fallback") == "0"
    assert optional_ref("") is None
    assert optional_ref(" ") is None
    assert optional_ref("TRN_1") == "TRN_1"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, True),
        (True, True),
        ("yes", True),
        (False, False),
        ("false", False),
        ("OFF", False),
        (0, False),
    ],
)
def test_enabled_flag(value: object, expected: bool) -> None:
    assert enabled_flag(value) is expected


def test_isoformat_uses_milliseconds_and_z() -> None:
    assert isoformat(datetime(2026, 1, 1, 8, 0, 0, 123456, tzinfo=UTC)) == "2026-01-01T08:00:00.123Z"
    paris = timezone(timedelta(hours=2))
    assert isoformat(datetime(2026, 10, 19, 10, 30, tzinfo=paris)) == "2026-10-19T08:30:00.000Z"
    assert isoformat(datetime(2026, 10, 19, 8, 30)) == "2026-10-19T08:30:00.000Z"


def test_parse_iso() -> None:
    assert parse_iso("2026-10-19T08:30:00.000Z") == datetime(2026, 10, 19, 8, 30, tzinfo=UTC)
    assert parse_iso("yesterday") is None
    assert parse_iso(None) is None


def test_new_id_format() -> None:
    ids = {new_id("TRN") for _ in range(50)}

    assert len(ids) == 50
    assert all(re.fullmatch(r"TRN_[0-9a-f]{12}", i) for i in ids)
