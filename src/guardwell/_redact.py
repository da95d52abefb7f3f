"""Redaction for API trace logging.

With ``api_trace_enabled`` the transport logs request and response bodies
at DEBUG.  Those bodies carry the bearer token echo, worker contact and
medical fields from the device list, and operator free text (alert notes,
nudge messages, incident descriptions).  Secrets and contact fields are
replaced outright; free text is reduced to its length.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

# Keys are compared after lower-casing and dropping underscores, so
# ``contact_number`` and ``contactNumber`` hit the same entry.
_SECRET_KEYS: frozenset[str] = frozenset({"authorization", "token", "apitoken", "accesstoken", "password"})

_WORKER_PII_KEYS: frozenset[str] = frozenset(
    {
        "email",
        "contactnumber",
        "emergencycontact",
        "emergencycontactnumber",
        "address",
        "medicalconditions",
    }
)

_FREE_TEXT_KEYS: frozenset[str] = frozenset({"notes", "message", "description", "voicecommand"})

_MAX_DEPTH = 12


def _normalize_key(key: Any) -> str:
    return str(key).replace("_", "").lower()


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a copy of *value* that is safe to write to a debug log."""
    if _depth > _MAX_DEPTH:
        return "<nested>"
    if isinstance(value, Mapping):
        return {str(k): _redact_entry(k, v, max_string, _depth) for k, v in value.items()}
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return repr(value)


def _redact_entry(key: Any, value: Any, max_string: int, depth: int) -> Any:
    name = _normalize_key(key)
    if name in _SECRET_KEYS or name in _WORKER_PII_KEYS:
        return "<redacted>"
    if name in _FREE_TEXT_KEYS and isinstance(value, str):
        return f"<text:{len(value)}c>"
    return redact_for_log(value, max_string=max_string, _depth=depth + 1)
