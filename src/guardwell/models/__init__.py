"""Data models for guardwell records."""

from guardwell.models._base import GuardwellBaseModel
from guardwell.models.alert import Alert, AlertStatus, response_time_ms
from guardwell.models.device import Device
from guardwell.models.incident import Incident, IncidentDraft, IncidentType
from guardwell.models.telemetry import DeviceTelemetry, GpsFix, Vector3, VoiceAlert

__all__ = [
    "Alert",
    "AlertStatus",
    "Device",
    "DeviceTelemetry",
    "GpsFix",
    "GuardwellBaseModel",
    "Incident",
    "IncidentDraft",
    "IncidentType",
    "Vector3",
    "VoiceAlert",
    "response_time_ms",
]
