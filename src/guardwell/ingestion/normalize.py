"""Normalization helpers.

Centralizes defensive parsing of device and backend payloads.  None of
these helpers raise: unparseable input becomes ``None`` and the caller
decides the default.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any

_TRUE_STRINGS = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "n", "off"})

# Threshold to distinguish epoch seconds from milliseconds.
_MS_THRESHOLD = 1e11


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--" or isinstance(value, bool):
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
    text = str(value).strip()
    return text if text else None


def safe_bool(value: Any) -> bool | None:
    """Parse device-style booleans (``True``, ``1``, ``"on"``...).

    Returns ``None`` for anything that is not recognisably true or false.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False
    return None


def float_or_zero(value: Any) -> float:
    parsed = safe_float(value)
    return 0.0 if parsed is None else parsed


def int_or_zero(value: Any) -> int:
    parsed = safe_int(value)
    return 0 if parsed is None else parsed


def bool_or_false(value: Any) -> bool:
    return safe_bool(value) is True


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or epoch number (seconds or ms) to an aware UTC datetime.

    - Empty/missing/unparseable -> None
    - Naive datetimes are assumed to be UTC
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        ts = float(value)
        if not math.isfinite(ts) or ts <= 0:
            return None
        if ts > _MS_THRESHOLD:
            ts /= 1000.0
        try:
            return datetime.fromtimestamp(ts, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        numeric = safe_float(text)
        if numeric is not None:
            return parse_timestamp(numeric)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    return None


_LIST_ENVELOPE_KEYS = ("data", "alerts", "devices", "items", "rows")


def unwrap_list(payload: Any) -> list[Any]:
    """Return the item list from a bare list or a ``{"data": [...]}`` style envelope."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in _LIST_ENVELOPE_KEYS:
            candidate = payload.get(key)
            if isinstance(candidate, list):
                return candidate
    return []
