"""Telemetry fusion and emergency-escalation engine.

:class:`SafetyEngine` is the one object a presentation layer holds.  It
owns every state component, wires them together over an
:class:`~guardwell.state.events.EventBus`, and commits through a
:class:`~guardwell.backend.SafetyBackend`.

Usage::

    async with GuardwellClient(config) as client:
        async with SafetyEngine(client, config=config) as engine:
            await engine.initialize()
            engine.ingest_telemetry(payload)
            state = engine.safety_state("DEV-001")
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from functools import partial
from typing import Any, TypeVar

from guardwell.backend import SafetyBackend
from guardwell.config import GuardwellConfig
from guardwell.ingestion.alerts import parse_alert_event
from guardwell.ingestion.telemetry import build_telemetry
from guardwell.models.alert import Alert
from guardwell.models.device import Device
from guardwell.models.incident import Incident, IncidentDraft
from guardwell.models.telemetry import DeviceTelemetry
from guardwell.state.escalation import IncidentEscalation
from guardwell.state.events import (
    AlertAcknowledged,
    AlertMerged,
    AlertsReloaded,
    DeviceMarkedSafe,
    EngineEvent,
    EventBus,
    NudgeSent,
    SosRaised,
    TelemetryUpdated,
    TransientExpired,
    TransientIndicator,
)
from guardwell.state.lifecycle import AlertLifecycle
from guardwell.state.queue import AlertFilter, AlertQueue, AlertSort
from guardwell.state.sos import SosTracker
from guardwell.state.status import (
    DeviceSafetyState,
    IndicatorState,
    SafetyStatus,
    derive_indicator_state,
    derive_safety_status,
)
from guardwell.state.telemetry import TelemetryStore
from guardwell.state.timers import ExpiringFlags

_logger = logging.getLogger(__name__)

TEvent = TypeVar("TEvent", bound=EngineEvent)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SafetyEngine:
    """Fuses push events with backend snapshots into per-device safety state.

    Parameters
    ----------
    backend : SafetyBackend
        Commit target and snapshot source.
    config : GuardwellConfig or None
        Thresholds and indicator lifetimes; defaults when omitted.
    clock : callable
        Returns the current aware datetime.  Used for acknowledge/resolve
        times, mark-safe events and readings without a timestamp.
    bus : EventBus or None
        Shared bus; a private one is created when omitted.
    """

    def __init__(
        self,
        backend: SafetyBackend,
        *,
        config: GuardwellConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
        bus: EventBus | None = None,
    ) -> None:
        self._config = config or GuardwellConfig()
        self._backend = backend
        self._clock = clock
        self._bus = bus or EventBus()
        self._devices: dict[str, Device] = {}

        self._telemetry = TelemetryStore()
        self._sos = SosTracker(publish=self._bus.publish)
        self._queue = AlertQueue()
        self._lifecycle = AlertLifecycle(self._queue, backend, clock=clock, publish=self._bus.publish)
        self._escalation = IncidentEscalation(
            self._queue,
            backend,
            self._telemetry,
            device_lookup=self._devices.get,
            publish=self._bus.publish,
        )
        self._marked_safe = ExpiringFlags(
            "marked_safe",
            self._config.marked_safe_ttl,
            on_expire=partial(self._on_transient_expired, TransientIndicator.MARKED_SAFE),
        )
        self._nudge_sent = ExpiringFlags(
            "nudge_sent",
            self._config.nudge_ttl,
            on_expire=partial(self._on_transient_expired, TransientIndicator.NUDGE_SENT),
        )

        self._bus.subscribe(self._on_sos_raised, SosRaised)
        self._bus.subscribe(self._escalation.on_acknowledged, AlertAcknowledged)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SafetyEngine:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel every pending indicator timer."""
        await self._marked_safe.aclose()
        await self._nudge_sent.aclose()

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def config(self) -> GuardwellConfig:
        return self._config

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def telemetry(self) -> TelemetryStore:
        return self._telemetry

    @property
    def sos(self) -> SosTracker:
        return self._sos

    @property
    def queue(self) -> AlertQueue:
        return self._queue

    @property
    def lifecycle(self) -> AlertLifecycle:
        return self._lifecycle

    @property
    def escalation(self) -> IncidentEscalation:
        return self._escalation

    def subscribe(
        self,
        callback: Callable[[TEvent], None],
        event_type: type[TEvent] | None = None,
    ) -> Callable[[], None]:
        """Shortcut for :meth:`EventBus.subscribe`."""
        return self._bus.subscribe(callback, event_type)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Load the device list and the active alert snapshot."""
        await self.refresh_devices()
        await self.refresh_alerts()

    async def refresh_devices(self) -> list[Device]:
        devices = await self._backend.fetch_devices()
        self._devices.clear()
        for device in devices:
            self._devices.setdefault(device.device_id, device)
        _logger.debug("Loaded %d device(s)", len(self._devices))
        return list(self._devices.values())

    async def refresh_alerts(self, *, include_resolved: bool = False) -> int:
        """Replace the alert queue with a backend snapshot.

        By default only active alerts are loaded.  With *include_resolved* the
        full history is fetched, so resolved alerts from earlier sessions show
        up in ``queue.history()`` while staying out of ``alerts()``.
        """
        if include_resolved:
            alerts = await self._backend.fetch_all_alerts()
        else:
            alerts = await self._backend.fetch_active_alerts()
        count = self._queue.load_snapshot(alerts)
        _logger.debug("Loaded %d alert(s), include_resolved=%s", count, include_resolved)
        self._bus.publish(AlertsReloaded(count=count))
        return count

    # ------------------------------------------------------------------
    # Push ingestion
    # ------------------------------------------------------------------

    def ingest_telemetry(
        self,
        payload: Mapping[str, Any],
        *,
        device_id: str | None = None,
        received_at: datetime | None = None,
    ) -> DeviceTelemetry:
        """Apply one telemetry push event.

        The reading replaces the device's previous record, then feeds the
        SOS tracker.

        Raises
        ------
        TelemetryValidationError
            If the payload is not a mapping or names no device.
        """
        reading = build_telemetry(
            payload,
            fallback_received_at=self._clock(),
            device_id=device_id,
            received_at=received_at,
        )
        stored = self._telemetry.upsert(reading.device_id, reading)
        self._sos.on_reading(
            stored.device_id,
            stored.emergency_button,
            stored.voice_alert.active,
            timestamp=stored.received_at,
        )
        self._bus.publish(TelemetryUpdated(device_id=stored.device_id, timestamp=stored.received_at))
        return stored

    def ingest_alert(self, payload: Mapping[str, Any] | Alert) -> bool:
        """Merge one pushed alert; returns ``False`` for an already known id.

        Raises
        ------
        PayloadValidationError
            If the payload is not a valid alert.
        """
        alert = parse_alert_event(payload)
        added = self._queue.merge_incoming(alert)
        if added:
            self._bus.publish(AlertMerged(alert=alert))
        return added

    # ------------------------------------------------------------------
    # Devices and derived state
    # ------------------------------------------------------------------

    def device(self, device_id: str) -> Device | None:
        return self._devices.get(device_id)

    def device_ids(self) -> list[str]:
        """Known devices in snapshot order, then telemetry-only devices."""
        ids = list(self._devices)
        ids.extend(d for d in self._telemetry.device_ids() if d not in self._devices)
        return ids

    def safety_status(self, device_id: str) -> SafetyStatus:
        return derive_safety_status(
            self._telemetry.get(device_id),
            sos_active=self._sos.is_active(device_id),
            thresholds=self._config.thresholds,
        )

    def indicator_state(self, device_id: str) -> IndicatorState:
        return derive_indicator_state(
            self._telemetry.get(device_id),
            self.safety_status(device_id),
            sos_active=self._sos.is_active(device_id),
        )

    def safety_state(self, device_id: str) -> DeviceSafetyState:
        telemetry = self._telemetry.get(device_id)
        sos_active = self._sos.is_active(device_id)
        status = derive_safety_status(telemetry, sos_active=sos_active, thresholds=self._config.thresholds)
        device = self._devices.get(device_id)
        return DeviceSafetyState(
            device_id=device_id,
            status=status,
            indicator=derive_indicator_state(telemetry, status, sos_active=sos_active),
            sos_active=sos_active,
            recently_marked_safe=self._marked_safe.is_set(device_id),
            nudge_sent=self._nudge_sent.is_set(device_id),
            telemetry=telemetry,
            worker_id=device.worker_id if device is not None else None,
            worker_name=device.worker_name if device is not None else None,
        )

    def safety_states(self) -> list[DeviceSafetyState]:
        return [self.safety_state(device_id) for device_id in self.device_ids()]

    # ------------------------------------------------------------------
    # Operator actions on devices
    # ------------------------------------------------------------------

    def mark_safe(self, device_id: str, operator: str) -> DeviceMarkedSafe:
        """Clear the device's SOS flag and show the "marked safe" indicator.

        Must be called from inside the running event loop; outside one it
        raises ``RuntimeError`` before any state changes.
        """
        self._marked_safe.set(device_id)
        device = self._devices.get(device_id)
        event = self._sos.mark_safe(
            device_id,
            operator=operator,
            timestamp=self._clock(),
            worker_id=device.worker_id if device is not None else None,
        )
        return event

    async def send_nudge(self, device_id: str, message: str) -> None:
        """Send a nudge to the device; the indicator shows only on success."""
        await self._backend.send_nudge(device_id, message)
        self._nudge_sent.set(device_id)
        self._bus.publish(NudgeSent(device_id=device_id, message=message, timestamp=self._clock()))

    # ------------------------------------------------------------------
    # Alert queue and lifecycle
    # ------------------------------------------------------------------

    def alerts(
        self,
        sort: AlertSort = AlertSort.CREATED_DESC,
        filter_: AlertFilter = AlertFilter.ALL,
    ) -> list[Alert]:
        """The active projection of the queue."""
        return self._queue.project(sort, filter_)

    async def acknowledge(self, alert_id: str, actor: str, note: str | None = None) -> Alert:
        return await self._lifecycle.acknowledge(alert_id, actor, note)

    async def batch_acknowledge(self, alert_ids: Iterable[str], actor: str) -> list[Alert]:
        return await self._lifecycle.batch_acknowledge(alert_ids, actor)

    async def batch_acknowledge_selected(self, actor: str) -> list[Alert]:
        return await self._lifecycle.batch_acknowledge_selected(actor)

    async def resolve(self, alert_id: str, notes: str | None = None) -> Alert:
        return await self._lifecycle.resolve(alert_id, notes)

    # ------------------------------------------------------------------
    # Incident escalation
    # ------------------------------------------------------------------

    def incident_offers(self) -> dict[str, IncidentDraft]:
        return self._escalation.offers()

    def decline_incident(self, alert_id: str) -> bool:
        return self._escalation.decline(alert_id)

    async def create_incident(self, alert_id: str, **overrides: Any) -> Incident:
        return await self._escalation.create(alert_id, **overrides)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_sos_raised(self, event: SosRaised) -> None:
        if self._marked_safe.cancel(event.device_id):
            _logger.debug("Marked-safe indicator cleared for %s by new SOS", event.device_id)

    def _on_transient_expired(self, indicator: TransientIndicator, device_id: str) -> None:
        self._bus.publish(TransientExpired(device_id=device_id, indicator=indicator, timestamp=self._clock()))
