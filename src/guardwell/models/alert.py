"""Alert record model."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import AliasChoices, Field, field_validator, model_validator

from guardwell.ingestion.normalize import bool_or_false, parse_timestamp, safe_int, safe_str
from guardwell.models._base import GuardwellBaseModel


class AlertStatus(StrEnum):
    """Alert lifecycle state.

    ``RESOLVED`` is terminal.
    """

    PENDING = "Pending"
    ACKNOWLEDGED = "Acknowledged"
    RESOLVED = "Resolved"

    @classmethod
    def _missing_(cls, value: object) -> AlertStatus | None:
        if isinstance(value, str):
            normalized = value.strip().lower()
            # Older backends report an in-progress response as "Responding".
            if normalized == "responding":
                return cls.ACKNOWLEDGED
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        return None


def response_time_ms(created_at: datetime, acknowledged_at: datetime) -> int:
    """Milliseconds between alert creation and acknowledgement."""
    return int((acknowledged_at - created_at).total_seconds() * 1000)


class Alert(GuardwellBaseModel):
    """An emergency or threshold alert raised for a device.

    ``id`` is always a string; integer ids from the backend are normalised.
    """

    _KEY_ALIASES: ClassVar[dict[str, str]] = {
        "device": "deviceId",
        "device_id": "deviceId",
        "responseNotes": "notes",
    }

    id: str
    device_id: str
    worker_id: str | None = None
    type: str
    severity: str = "Critical"
    status: AlertStatus = AlertStatus.PENDING
    created_at: datetime = Field(validation_alias=AliasChoices("createdAt", "created_at", "timestamp"))
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    resolved_at: datetime | None = None
    notes: str | None = None
    escalated: bool = False
    priority: int | None = None
    response_time_ms: int | None = None

    @field_validator("id", "device_id", mode="before")
    @classmethod
    def _coerce_required_str(cls, value: Any) -> Any:
        text = safe_str(value)
        return text if text is not None else value

    @field_validator("worker_id", "acknowledged_by", "notes", mode="before")
    @classmethod
    def _coerce_optional_str(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return AlertStatus(value)
        return value

    @field_validator("created_at", "acknowledged_at", "resolved_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> Any:
        parsed = parse_timestamp(value)
        return parsed if parsed is not None else value

    @field_validator("escalated", mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool:
        return bool_or_false(value)

    @field_validator("priority", "response_time_ms", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        return safe_int(value)

    @model_validator(mode="after")
    def _fill_response_time(self) -> Alert:
        if self.response_time_ms is None and self.acknowledged_at is not None:
            object.__setattr__(self, "response_time_ms", response_time_ms(self.created_at, self.acknowledged_at))
        return self

    @property
    def is_active(self) -> bool:
        """Whether the alert belongs in the active projection."""
        return self.status != AlertStatus.RESOLVED
