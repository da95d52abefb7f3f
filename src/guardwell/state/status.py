"""Safety status derivation.

Two independent derivations feed different parts of the dashboard and
must stay separate:

- :func:`derive_safety_status` drives the worker grid.  It reacts to raw
  temperature/gas thresholds.
- :func:`derive_indicator_state` drives the compact per-device badge that
  mirrors the device's own RGB LED.  It ignores thresholds but tells GPS
  acquisition apart from idle.

Both are pure and recomputed on every read; nothing here is stored.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from guardwell.config import StatusThresholds
from guardwell.models.telemetry import DeviceTelemetry

_DEFAULT_THRESHOLDS = StatusThresholds()


class SafetyStatus(StrEnum):
    NORMAL = "Normal"
    WARNING = "Warning"
    CRITICAL = "Critical"
    OFFLINE = "Offline"


class IndicatorState(StrEnum):
    OFFLINE = "offline"
    EMERGENCY = "emergency"
    GEOFENCE = "geofence"
    GPS_ACQUIRING = "gpsAcquiring"
    IDLE = "idle"


def derive_safety_status(
    telemetry: DeviceTelemetry | None,
    *,
    sos_active: bool,
    thresholds: StatusThresholds = _DEFAULT_THRESHOLDS,
) -> SafetyStatus:
    """Grid status, first match wins.

    1. Offline: no reading this session (``telemetry is None``), regardless
       of the SOS flag.
    2. Critical: SOS flag, emergency button, voice alert, geofence
       violation, or temperature/gas at or above the critical thresholds.
    3. Warning: temperature/gas at or above the warning thresholds.
    4. Normal.
    """
    if telemetry is None:
        return SafetyStatus.OFFLINE

    if (
        sos_active
        or telemetry.emergency_signal
        or telemetry.geofence_violation
        or telemetry.temperature >= thresholds.temp_critical
        or telemetry.gas_level >= thresholds.gas_critical
    ):
        return SafetyStatus.CRITICAL

    if telemetry.temperature >= thresholds.temp_warning or telemetry.gas_level >= thresholds.gas_warning:
        return SafetyStatus.WARNING

    return SafetyStatus.NORMAL


def derive_indicator_state(
    telemetry: DeviceTelemetry | None,
    status: SafetyStatus,
    *,
    sos_active: bool,
) -> IndicatorState:
    """Badge state, first match wins.

    Offline short-circuits every other signal, including an active SOS.
    GPS acquiring requires an explicit ``gps.valid is False``; an unknown
    validity reads as idle.
    """
    if status == SafetyStatus.OFFLINE or telemetry is None:
        return IndicatorState.OFFLINE

    if sos_active or telemetry.emergency_signal:
        return IndicatorState.EMERGENCY

    if telemetry.geofence_violation:
        return IndicatorState.GEOFENCE

    if telemetry.gps.valid is False:
        return IndicatorState.GPS_ACQUIRING

    return IndicatorState.IDLE


class DeviceSafetyState(BaseModel):
    """Everything the dashboard needs to render one device."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    status: SafetyStatus
    indicator: IndicatorState
    sos_active: bool = False
    recently_marked_safe: bool = False
    nudge_sent: bool = False
    telemetry: DeviceTelemetry | None = None
    worker_id: str | None = None
    worker_name: str | None = None
