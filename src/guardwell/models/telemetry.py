"""Device telemetry model.

One :class:`DeviceTelemetry` is the complete latest reading for a device.
Fields the device did not send hold their zero/unknown default; nothing
is carried over from an earlier reading.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from guardwell.models._base import GuardwellBaseModel


class Vector3(GuardwellBaseModel):
    """Three-axis accelerometer or gyroscope sample."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class VoiceAlert(GuardwellBaseModel):
    """Voice keyword detection state.

    Parameters
    ----------
    active : bool
        Whether the device is currently reporting a voice emergency.
    type : str or None
        Detector classification (e.g. ``"distress"``).
    command : str or None
        Recognised keyword (e.g. ``"tulong"``).
    command_id : str or None
        Device-side identifier of the recognised keyword.
    """

    active: bool = False
    type: str | None = None
    command: str | None = None
    command_id: str | None = None


class GpsFix(GuardwellBaseModel):
    """GPS receiver state.

    ``valid`` is ``None`` when the device did not report fix validity at all,
    which is distinct from an explicit ``False`` (receiver still acquiring).
    ``latitude``/``longitude`` are ``None`` when unknown.
    """

    latitude: float | None = None
    longitude: float | None = None
    valid: bool | None = None
    speed: float = 0.0
    satellites: int = 0
    chars_received: int = 0

    @property
    def has_fix(self) -> bool:
        """Whether the reading carries a position not flagged as invalid."""
        return self.valid is not False and self.latitude is not None and self.longitude is not None


class DeviceTelemetry(GuardwellBaseModel):
    """Latest full reading for one device."""

    device_id: str
    received_at: datetime
    temperature: float = 0.0
    gas_level: float = 0.0
    humidity: float = 0.0
    battery: float = 0.0
    signal_strength: float = 0.0
    accel: Vector3 = Field(default_factory=Vector3)
    gyro: Vector3 = Field(default_factory=Vector3)
    emergency_button: bool = False
    voice_alert: VoiceAlert = Field(default_factory=VoiceAlert)
    gps: GpsFix = Field(default_factory=GpsFix)
    geofence_violation: bool = False

    @property
    def emergency_signal(self) -> bool:
        """Whether this reading carries any emergency signal (button or voice)."""
        return self.emergency_button or self.voice_alert.active
