"""Base model for guardwell records and payloads.

Every record model inherits from :class:`GuardwellBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase backend keys map
  automatically to snake_case fields (snake_case keys are accepted too,
  which is what devices send).
* A ``model_validator(mode="before")`` that strips sentinel values
  (``""``, ``"--"``, NaN) so the field default is used.
* A ``raw`` dict that captures the original payload.  It is excluded
  from ``model_dump`` so request bodies never echo it back.
"""

from __future__ import annotations

import math
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Sentinel strings devices and the backend use for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan", "null", "undefined"})


class GuardwellBaseModel(BaseModel):
    """Frozen, alias-aware base for guardwell models."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {}
    """Per-model ``{legacy_key: canonical_key}`` renames applied before validation."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original payload dict."""

    @staticmethod
    def _clean_dict(values: dict[str, Any], aliases: dict[str, str] | None = None) -> dict[str, Any]:
        """Strip sentinel values and apply key aliases on *values*."""
        working = dict(values)
        if aliases:
            for old_key, new_key in aliases.items():
                if old_key in working and new_key not in working:
                    working[new_key] = working.pop(old_key)

        cleaned: dict[str, Any] = {}
        for key, value in working.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Strip sentinel values, apply key aliases, and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        original = dict(values)

        aliases: dict[str, str] = getattr(cls, "_KEY_ALIASES", {})
        cleaned = GuardwellBaseModel._clean_dict(original, aliases)

        # Keep an explicitly supplied raw (e.g. model_copy or kwargs construction).
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned
