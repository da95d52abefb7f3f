"""Incident models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from guardwell.ingestion.normalize import safe_str
from guardwell.models._base import GuardwellBaseModel


class IncidentType(StrEnum):
    EQUIPMENT_FAILURE = "Equipment Failure"
    MINOR_INJURY = "Minor Injury"
    MAJOR_INJURY = "Major Injury"
    NEAR_MISS = "Near Miss"
    ENVIRONMENTAL_HAZARD = "Environmental Hazard"
    FIRE_EXPLOSION = "Fire/Explosion"
    CHEMICAL_EXPOSURE = "Chemical Exposure"


class IncidentDraft(GuardwellBaseModel):
    """An incident proposed from an acknowledged alert, not yet committed.

    Dumped with ``by_alias=True`` this is the ``POST /incidents`` body.
    """

    title: str
    type: IncidentType
    severity: str
    worker_id: str | None = None
    worker_name: str
    location: str | None = None
    description: str
    linked_alert_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("alertId", "linkedAlertId", "linked_alert_id"),
        serialization_alias="alertId",
    )

    @field_validator("worker_id", "linked_alert_id", mode="before")
    @classmethod
    def _coerce_optional_str(cls, value: Any) -> str | None:
        return safe_str(value)


class Incident(IncidentDraft):
    """An incident record created by the backend."""

    id: str
    status: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        text = safe_str(value)
        return text if text is not None else value
