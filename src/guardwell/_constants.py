"""Internal constants shared across the library."""

BASE_URL = "http://localhost:3001/api"
USER_AGENT = "guardwell-python"

# ------------------------------------------------------------------
# Status thresholds (defaults for config.StatusThresholds)
# ------------------------------------------------------------------

TEMP_WARNING_C = 40.0
TEMP_CRITICAL_C = 50.0
GAS_WARNING_PPM = 200.0
GAS_CRITICAL_PPM = 400.0

# ------------------------------------------------------------------
# Transient indicator lifetimes (seconds)
# ------------------------------------------------------------------

MARKED_SAFE_TTL_S = 5.0
NUDGE_SENT_TTL_S = 10.0

# ------------------------------------------------------------------
# Incident escalation
# ------------------------------------------------------------------

DEFAULT_INCIDENT_TYPE = "Near Miss"
DEFAULT_INCIDENT_SEVERITY = "High"
UNKNOWN_WORKER_NAME = "Unknown Worker"

INCIDENT_TYPE_BY_ALERT_TYPE: dict[str, str] = {
    "High Temperature": "Environmental Hazard",
    "Gas Detection": "Chemical Exposure",
    "Fall Detected": "Major Injury",
    "Emergency Button": "Near Miss",
    "Voice Alert": "Near Miss",
    "Geofence Violation": "Near Miss",
    "Low Battery": "Equipment Failure",
    "Device Offline": "Equipment Failure",
}

INCIDENT_SEVERITIES: frozenset[str] = frozenset({"Low", "Medium", "High", "Critical"})


def incident_type_for(alert_type: str) -> str:
    """Map an alert type to the incident type offered after acknowledgement.

    Unknown alert types fall back to ``"Near Miss"``.
    """
    return INCIDENT_TYPE_BY_ALERT_TYPE.get(alert_type.strip(), DEFAULT_INCIDENT_TYPE)
