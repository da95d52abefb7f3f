"""Telemetry push event schema.

Devices publish flat snake_case readings.  :class:`TelemetryEvent` is the
boundary schema for one such reading: every field has an explicit default
and every validator coerces instead of rejecting, so a malformed field
never discards the rest of the event.

Default-fill rules:

- numeric sensor fields (temperature, gas, humidity, battery, rssi,
  accel/gyro axes, gps speed/satellites/chars): ``0``
- latitude/longitude: ``None`` (``0,0`` is a real place)
- gps_valid: ``None`` (only an explicit false means "acquiring")
- emergency_button, voice_alert, geofence_violation: ``False``
- voice alert type/command/command id: ``None``
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, ClassVar

from pydantic import AliasChoices, Field, ValidationError, field_validator

from guardwell.exceptions import TelemetryValidationError
from guardwell.ingestion.normalize import (
    bool_or_false,
    float_or_zero,
    int_or_zero,
    parse_timestamp,
    safe_bool,
    safe_float,
    safe_str,
)
from guardwell.models._base import GuardwellBaseModel
from guardwell.models.telemetry import DeviceTelemetry, GpsFix, Vector3, VoiceAlert

_FLOAT_FIELDS = (
    "temperature",
    "gas_level",
    "humidity",
    "battery",
    "rssi",
    "accel_x",
    "accel_y",
    "accel_z",
    "gyro_x",
    "gyro_y",
    "gyro_z",
    "gps_speed",
)


class TelemetryEvent(GuardwellBaseModel):
    """One inbound device reading, as published by the device."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {"gas": "gas_level", "signal": "rssi"}

    device_id: str | None = Field(default=None, validation_alias=AliasChoices("device_id", "deviceId", "device"))
    temperature: float = 0.0
    gas_level: float = 0.0
    humidity: float = 0.0
    battery: float = 0.0
    rssi: float = 0.0
    accel_x: float = 0.0
    accel_y: float = 0.0
    accel_z: float = 0.0
    gyro_x: float = 0.0
    gyro_y: float = 0.0
    gyro_z: float = 0.0
    emergency_button: bool = False
    voice_alert: bool = False
    voice_alert_type: str | None = None
    voice_command: str | None = None
    voice_command_id: str | None = None
    geofence_violation: bool = False
    latitude: float | None = None
    longitude: float | None = None
    gps_valid: bool | None = None
    gps_speed: float = 0.0
    satellites: int = 0
    gps_chars: int = 0
    created_at: datetime | None = Field(default=None, validation_alias=AliasChoices("createdAt", "created_at"))

    @field_validator("device_id", "voice_alert_type", "voice_command", "voice_command_id", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator(*_FLOAT_FIELDS, mode="before")
    @classmethod
    def _coerce_float(cls, value: Any) -> float:
        return float_or_zero(value)

    @field_validator("satellites", "gps_chars", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int:
        return int_or_zero(value)

    @field_validator("emergency_button", "geofence_violation", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return bool_or_false(value)

    @field_validator("voice_alert", mode="before")
    @classmethod
    def _coerce_voice_alert(cls, value: Any) -> bool:
        # Some firmware nests the detector state: {"active": true, "type": ...}
        if isinstance(value, Mapping):
            return bool_or_false(value.get("active"))
        return bool_or_false(value)

    @field_validator("gps_valid", mode="before")
    @classmethod
    def _coerce_gps_valid(cls, value: Any) -> bool | None:
        return safe_bool(value)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinate(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_created_at(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    def to_telemetry(self, *, device_id: str, received_at: datetime) -> DeviceTelemetry:
        """Build the full replacement record for the store."""
        return DeviceTelemetry(
            device_id=device_id,
            received_at=received_at,
            temperature=self.temperature,
            gas_level=self.gas_level,
            humidity=self.humidity,
            battery=self.battery,
            signal_strength=self.rssi,
            accel=Vector3(x=self.accel_x, y=self.accel_y, z=self.accel_z),
            gyro=Vector3(x=self.gyro_x, y=self.gyro_y, z=self.gyro_z),
            emergency_button=self.emergency_button,
            voice_alert=VoiceAlert(
                active=self.voice_alert,
                type=self.voice_alert_type,
                command=self.voice_command,
                command_id=self.voice_command_id,
            ),
            gps=GpsFix(
                latitude=self.latitude,
                longitude=self.longitude,
                valid=self.gps_valid,
                speed=self.gps_speed,
                satellites=self.satellites,
                chars_received=self.gps_chars,
            ),
            geofence_violation=self.geofence_violation,
            raw=self.raw,
        )


def parse_telemetry_event(payload: Mapping[str, Any]) -> TelemetryEvent:
    """Validate a raw telemetry payload.

    Raises
    ------
    TelemetryValidationError
        If *payload* is not a mapping.  Individual malformed fields never
        raise; they take their documented default.
    """
    if not isinstance(payload, Mapping):
        raise TelemetryValidationError(f"telemetry payload must be a mapping, got {type(payload).__name__}")
    try:
        return TelemetryEvent.model_validate(dict(payload))
    except ValidationError as exc:
        raise TelemetryValidationError(f"telemetry payload rejected: {exc}") from exc


def build_telemetry(
    payload: Mapping[str, Any],
    *,
    fallback_received_at: datetime,
    device_id: str | None = None,
    received_at: datetime | None = None,
) -> DeviceTelemetry:
    """Turn a raw payload into a :class:`DeviceTelemetry` record.

    ``device_id`` overrides the id carried in the payload (e.g. when the
    transport derives it from a topic).  ``received_at`` wins over the
    payload's ``createdAt``, which wins over ``fallback_received_at``.
    """
    event = parse_telemetry_event(payload)
    resolved_id = safe_str(device_id) or event.device_id
    if resolved_id is None:
        raise TelemetryValidationError("telemetry payload has no device id")
    timestamp = received_at or event.created_at or fallback_received_at
    return event.to_telemetry(device_id=resolved_id, received_at=timestamp)
