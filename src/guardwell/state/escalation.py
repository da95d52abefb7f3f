"""Post-acknowledge incident escalation.

A successful single acknowledge produces an :class:`IncidentDraft` offer
for the alert.  The offer stays until the operator creates the incident or
declines it.  Creating the incident is its own backend commit and never
touches the alert: a failed create keeps the offer so it can be retried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from guardwell._constants import (
    DEFAULT_INCIDENT_SEVERITY,
    INCIDENT_SEVERITIES,
    UNKNOWN_WORKER_NAME,
    incident_type_for,
)
from guardwell.backend import SafetyBackend
from guardwell.exceptions import AlertNotFoundError, EscalationError
from guardwell.models.alert import Alert
from guardwell.models.device import Device
from guardwell.models.incident import Incident, IncidentDraft, IncidentType
from guardwell.models.telemetry import DeviceTelemetry
from guardwell.state.events import AlertAcknowledged, EngineEvent, IncidentCreated, IncidentProposed
from guardwell.state.queue import AlertQueue
from guardwell.state.telemetry import TelemetryStore

_logger = logging.getLogger(__name__)


def _location(telemetry: DeviceTelemetry | None) -> str | None:
    if telemetry is None:
        return None
    gps = telemetry.gps
    if not gps.has_fix:
        return None
    return f"{gps.latitude}, {gps.longitude}"


def build_incident_draft(
    alert: Alert,
    *,
    device: Device | None = None,
    telemetry: DeviceTelemetry | None = None,
) -> IncidentDraft:
    """Pre-populate an incident for *alert*.

    Worker details come from the device snapshot, the location from the
    device's latest reading when it carries a position.
    """
    worker_name = device.worker_name if device is not None and device.worker_name else None
    worker_id = alert.worker_id or (device.worker_id if device is not None else None)
    severity = alert.severity if alert.severity in INCIDENT_SEVERITIES else DEFAULT_INCIDENT_SEVERITY

    description = f"Escalated from alert {alert.id} ({alert.type}) on device {alert.device_id}."
    if alert.acknowledged_by:
        description += f" Acknowledged by {alert.acknowledged_by}."
    if alert.notes:
        description += f" Notes: {alert.notes}"

    return IncidentDraft(
        title=f"{alert.type} - {worker_name or alert.device_id}",
        type=IncidentType(incident_type_for(alert.type)),
        severity=severity,
        worker_id=worker_id,
        worker_name=worker_name or UNKNOWN_WORKER_NAME,
        location=_location(telemetry),
        description=description,
        linked_alert_id=alert.id,
    )


class IncidentEscalation:
    """Holds incident offers keyed by alert id."""

    def __init__(
        self,
        queue: AlertQueue,
        backend: SafetyBackend,
        telemetry: TelemetryStore,
        *,
        device_lookup: Callable[[str], Device | None] | None = None,
        publish: Callable[[EngineEvent], None] | None = None,
    ) -> None:
        self._queue = queue
        self._backend = backend
        self._telemetry = telemetry
        self._device_lookup = device_lookup
        self._publish = publish
        self._offers: dict[str, IncidentDraft] = {}
        self._creating: set[str] = set()

    def _emit(self, event: EngineEvent) -> None:
        if self._publish is not None:
            self._publish(event)

    def on_acknowledged(self, event: AlertAcknowledged) -> None:
        """Event bus hook; batch acknowledges do not produce offers."""
        if event.batch:
            return
        self._offer_for(event.alert)

    def offer(self, alert_id: str) -> IncidentDraft:
        """Build (or rebuild) the offer for *alert_id* from the queue."""
        alert = self._queue.get(alert_id)
        if alert is None:
            raise AlertNotFoundError(f"Unknown alert {alert_id!r}", alert_id=alert_id)
        return self._offer_for(alert)

    def _offer_for(self, alert: Alert) -> IncidentDraft:
        alert_id = alert.id
        device = self._device_lookup(alert.device_id) if self._device_lookup is not None else None
        draft = build_incident_draft(alert, device=device, telemetry=self._telemetry.get(alert.device_id))
        self._offers[alert_id] = draft
        _logger.debug("Incident offered for alert %s as %s", alert_id, draft.type)
        self._emit(IncidentProposed(alert_id=alert_id, draft=draft))
        return draft

    def offers(self) -> dict[str, IncidentDraft]:
        return dict(self._offers)

    def decline(self, alert_id: str) -> bool:
        """Drop the offer; returns ``False`` if there was none."""
        return self._offers.pop(alert_id, None) is not None

    async def create(self, alert_id: str, **overrides: Any) -> Incident:
        """Commit the offered incident, optionally edited by *overrides*.

        Raises
        ------
        EscalationError
            If there is no offer for *alert_id* or a create is already in
            flight for it.
        """
        draft = self._offers.get(alert_id)
        if draft is None:
            raise EscalationError(f"No incident offer for alert {alert_id!r}")
        if alert_id in self._creating:
            raise EscalationError(f"Incident for alert {alert_id!r} is already being created")
        if overrides:
            draft = IncidentDraft.model_validate({**draft.model_dump(), **overrides})

        self._creating.add(alert_id)
        try:
            incident = await self._backend.create_incident(draft)
        except Exception:
            _logger.warning("Incident creation failed for alert %s; offer kept", alert_id, exc_info=True)
            raise
        finally:
            self._creating.discard(alert_id)

        self._offers.pop(alert_id, None)
        _logger.info("Incident %s created for alert %s", incident.id, alert_id)
        self._emit(IncidentCreated(alert_id=alert_id, incident=incident))
        return incident
