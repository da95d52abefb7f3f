"""Custom exception hierarchy for guardwell."""

from __future__ import annotations


class GuardwellError(Exception):
    """Base exception for all guardwell errors."""


class GuardwellConfigError(GuardwellError):
    """Invalid or missing configuration."""


class GuardwellTransportError(GuardwellError):
    """HTTP-level failure (network, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class GuardwellApiError(GuardwellError):
    """Backend rejected a request (non-2xx response with an error body)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
        status_code: int | None = None,
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)


class PayloadValidationError(GuardwellError):
    """An inbound push payload could not be turned into a record."""


class TelemetryValidationError(PayloadValidationError):
    """A telemetry payload could not be keyed to a device."""


class AlertError(GuardwellError):
    """Base for alert lifecycle errors."""

    def __init__(self, message: str, *, alert_id: str = "") -> None:
        self.alert_id = alert_id
        super().__init__(message)


class AlertNotFoundError(AlertError):
    """The alert id is not present in the queue."""


class AlertTransitionError(AlertError):
    """The requested transition is not legal from the alert's current status.

    ``current`` holds the status the alert was in when the request was
    rejected; no field of the alert was changed.
    """

    def __init__(self, message: str, *, alert_id: str = "", current: str = "") -> None:
        self.current = current
        super().__init__(message, alert_id=alert_id)


class AlertBusyError(AlertError):
    """Another transition for the same alert id is still in flight.

    Raised synchronously, before any backend call is made.  The caller may
    retry once the in-flight request has completed.
    """


class EscalationError(GuardwellError):
    """Incident creation was requested without a pending offer."""
