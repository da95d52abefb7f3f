"""guardwell - Telemetry fusion and emergency-escalation engine for worker-safety wearables."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("guardwell")
except PackageNotFoundError:
    __version__ = "0+local"
from guardwell.backend import SafetyBackend
from guardwell.client import GuardwellClient
from guardwell.config import GuardwellConfig, StatusThresholds
from guardwell.engine import SafetyEngine
from guardwell.exceptions import (
    AlertBusyError,
    AlertError,
    AlertNotFoundError,
    AlertTransitionError,
    EscalationError,
    GuardwellApiError,
    GuardwellConfigError,
    GuardwellError,
    GuardwellTransportError,
    PayloadValidationError,
    TelemetryValidationError,
)
from guardwell.models import (
    Alert,
    AlertStatus,
    Device,
    DeviceTelemetry,
    GpsFix,
    Incident,
    IncidentDraft,
    IncidentType,
    Vector3,
    VoiceAlert,
)
from guardwell.state.events import (
    AlertAcknowledged,
    AlertMerged,
    AlertResolved,
    AlertsReloaded,
    DeviceMarkedSafe,
    EngineEvent,
    EventBus,
    IncidentCreated,
    IncidentProposed,
    NudgeSent,
    SosRaised,
    SosSource,
    TelemetryUpdated,
    TransientExpired,
    TransientIndicator,
)
from guardwell.state.queue import AlertFilter, AlertSort
from guardwell.state.status import DeviceSafetyState, IndicatorState, SafetyStatus

__all__ = [
    "__version__",
    "Alert",
    "AlertAcknowledged",
    "AlertBusyError",
    "AlertError",
    "AlertFilter",
    "AlertMerged",
    "AlertNotFoundError",
    "AlertResolved",
    "AlertSort",
    "AlertStatus",
    "AlertTransitionError",
    "AlertsReloaded",
    "Device",
    "DeviceMarkedSafe",
    "DeviceSafetyState",
    "DeviceTelemetry",
    "EngineEvent",
    "EscalationError",
    "EventBus",
    "GpsFix",
    "GuardwellApiError",
    "GuardwellClient",
    "GuardwellConfig",
    "GuardwellConfigError",
    "GuardwellError",
    "GuardwellTransportError",
    "Incident",
    "IncidentCreated",
    "IncidentDraft",
    "IncidentProposed",
    "IncidentType",
    "IndicatorState",
    "NudgeSent",
    "PayloadValidationError",
    "SafetyBackend",
    "SafetyEngine",
    "SafetyStatus",
    "SosRaised",
    "SosSource",
    "StatusThresholds",
    "TelemetryUpdated",
    "TelemetryValidationError",
    "TransientExpired",
    "TransientIndicator",
    "Vector3",
    "VoiceAlert",
]
