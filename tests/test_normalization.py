from __future__ import annotations

import math
from datetime import UTC, datetime

import pytest

from guardwell.ingestion.normalize import (
    bool_or_false,
    float_or_zero,
    int_or_zero,
    parse_timestamp,
    safe_bool,
    safe_float,
    safe_int,
    safe_str,
    unwrap_list,
)


@pytest.mark.parametrize("value", [None, "", "--", "abc", math.nan, math.inf, True, [1]])
def test_safe_float_rejects_unusable_values(value: object) -> None:
    assert safe_float(value) is None


def test_safe_float_accepts_numeric_strings() -> None:
    assert safe_float("52.3") == 52.3
    assert safe_float(" 7 ") == 7.0
    assert safe_float(3) == 3.0


def test_safe_int_truncates_floats() -> None:
    assert safe_int("12.9") == 12
    assert safe_int("x") is None


def test_safe_str_strips_and_empties_to_none() -> None:
    assert safe_str("  DEV-001 ") == "DEV-001"
    assert safe_str("   ") is None
    assert safe_str(42) == "42"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (True, True),
        (False, False),
        (1, True),
        (0, False),
        ("true", True),
        ("FALSE", False),
        ("yes", True),
        ("off", False),
        ("1", True),
        ("maybe", None),
        (2, None),
        (None, None),
    ],
)
def test_safe_bool(value: object, expected: bool | None) -> None:
    assert safe_bool(value) is expected


def test_defaulting_helpers() -> None:
    assert float_or_zero("--") == 0.0
    assert int_or_zero(None) == 0
    assert bool_or_false("garbage") is False
    assert bool_or_false("on") is True


def test_parse_timestamp_iso_with_z_suffix() -> None:
    parsed = parse_timestamp("2026-03-02T08:00:00Z")
    assert parsed == datetime(2026, 3, 2, 8, 0, tzinfo=UTC)


def test_parse_timestamp_naive_assumed_utc() -> None:
    parsed = parse_timestamp("2026-03-02T08:00:00")
    assert parsed is not None
    assert parsed.tzinfo is not None
    assert parsed == datetime(2026, 3, 2, 8, 0, tzinfo=UTC)


def test_parse_timestamp_epoch_seconds_and_milliseconds_agree() -> None:
    seconds = parse_timestamp(1_772_438_400)
    millis = parse_timestamp(1_772_438_400_000)
    assert seconds == millis == datetime.fromtimestamp(1_772_438_400, tz=UTC)


@pytest.mark.parametrize(
    "value",
    [None, "", "not a date", 0, -5, True, 1e20, "99999999999999999999", 1e300, float("inf"), "Infinity"],
)
def test_parse_timestamp_rejects_garbage(value: object) -> None:
    assert parse_timestamp(value) is None


def test_unwrap_list_handles_envelopes() -> None:
    assert unwrap_list([1, 2]) == [1, 2]
    assert unwrap_list({"data": [1]}) == [1]
    assert unwrap_list({"alerts": [2]}) == [2]
    assert unwrap_list({"data": "nope"}) == []
    assert unwrap_list(None) == []
