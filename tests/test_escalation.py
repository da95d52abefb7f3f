from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest
from conftest import FakeBackend, FakeClock, make_alert

from guardwell._constants import incident_type_for
from guardwell.exceptions import EscalationError, GuardwellTransportError
from guardwell.ingestion.telemetry import build_telemetry
from guardwell.models.alert import AlertStatus
from guardwell.models.device import Device
from guardwell.models.incident import IncidentType
from guardwell.state.escalation import IncidentEscalation, build_incident_draft
from guardwell.state.events import AlertAcknowledged, EngineEvent, EventBus, IncidentCreated, IncidentProposed
from guardwell.state.lifecycle import AlertLifecycle
from guardwell.state.queue import AlertQueue
from guardwell.state.telemetry import TelemetryStore


@pytest.mark.parametrize(
    ("alert_type", "incident_type"),
    [
        ("High Temperature", "Environmental Hazard"),
        ("Gas Detection", "Chemical Exposure"),
        ("Fall Detected", "Major Injury"),
        ("Emergency Button", "Near Miss"),
        ("Low Battery", "Equipment Failure"),
        ("Device Offline", "Equipment Failure"),
        ("Something New", "Near Miss"),
    ],
)
def test_incident_type_mapping(alert_type: str, incident_type: str) -> None:
    assert incident_type_for(alert_type) == incident_type


def test_draft_population() -> None:
    alert = make_alert("A1", type="Gas Detection", severity="Critical", device_id="DEV-002").model_copy(
        update={"acknowledged_by": "Officer1", "status": AlertStatus.ACKNOWLEDGED}
    )
    device = Device(device_id="DEV-002", worker_id="9", worker_name="Maria Santos")
    telemetry = build_telemetry(
        {"latitude": 14.5995, "longitude": 120.9842, "gps_valid": True},
        device_id="DEV-002",
        fallback_received_at=datetime(2026, 1, 1, tzinfo=UTC),
    )

    draft = build_incident_draft(alert, device=device, telemetry=telemetry)

    assert draft.title == "Gas Detection - Maria Santos"
    assert draft.type == IncidentType.CHEMICAL_EXPOSURE
    assert draft.severity == "Critical"
    assert draft.worker_id == "9"
    assert draft.worker_name == "Maria Santos"
    assert draft.location == "14.5995, 120.9842"
    assert draft.linked_alert_id == "A1"
    assert "A1" in draft.description
    assert "DEV-002" in draft.description
    assert "Officer1" in draft.description


def test_draft_defaults_without_device_or_fix() -> None:
    alert = make_alert("A1", type="Low Battery", severity="Informational", device_id="DEV-003")
    telemetry = build_telemetry(
        {"latitude": 14.6, "longitude": 121.0, "gps_valid": False},
        device_id="DEV-003",
        fallback_received_at=datetime(2026, 1, 1, tzinfo=UTC),
    )

    draft = build_incident_draft(alert, telemetry=telemetry)

    assert draft.title == "Low Battery - DEV-003"
    assert draft.type == IncidentType.EQUIPMENT_FAILURE
    assert draft.severity == "High"
    assert draft.worker_name == "Unknown Worker"
    assert draft.location is None


def _wire(backend: FakeBackend, clock: FakeClock, *alerts) -> tuple[AlertLifecycle, IncidentEscalation, list[EngineEvent]]:
    queue = AlertQueue()
    queue.load_snapshot(list(alerts))
    bus = EventBus()
    events: list[EngineEvent] = []
    bus.subscribe(events.append)
    escalation = IncidentEscalation(queue, backend, TelemetryStore(), publish=bus.publish)
    bus.subscribe(escalation.on_acknowledged, AlertAcknowledged)
    lifecycle = AlertLifecycle(queue, backend, clock=clock, publish=bus.publish)
    return lifecycle, escalation, events


@pytest.mark.asyncio
async def test_acknowledge_produces_offer_and_create_commits(backend: FakeBackend, clock: FakeClock) -> None:
    lifecycle, escalation, events = _wire(backend, clock, make_alert("A1", type="Fall Detected"))

    await lifecycle.acknowledge("A1", "Officer1")

    offers = escalation.offers()
    assert list(offers) == ["A1"]
    assert offers["A1"].type == IncidentType.MAJOR_INJURY
    assert any(isinstance(e, IncidentProposed) for e in events)

    incident = await escalation.create("A1", severity="Critical", location="Bay 4")

    assert incident.id == "1"
    assert incident.severity == "Critical"
    assert incident.location == "Bay 4"
    assert incident.linked_alert_id == "A1"
    assert escalation.offers() == {}
    assert isinstance(events[-1], IncidentCreated)


@pytest.mark.asyncio
async def test_batch_acknowledge_does_not_offer(backend: FakeBackend, clock: FakeClock) -> None:
    lifecycle, escalation, _ = _wire(backend, clock, make_alert("A1"), make_alert("A2"))
    await lifecycle.batch_acknowledge(["A1", "A2"], "Officer1")
    assert escalation.offers() == {}


@pytest.mark.asyncio
async def test_failed_create_keeps_offer_and_alert(backend: FakeBackend, clock: FakeClock) -> None:
    lifecycle, escalation, _ = _wire(backend, clock, make_alert("A1"))
    acked = await lifecycle.acknowledge("A1", "Officer1")
    backend.fail_with = GuardwellTransportError("timeout", endpoint="/incidents")

    with pytest.raises(GuardwellTransportError):
        await escalation.create("A1")

    assert "A1" in escalation.offers()
    assert lifecycle.in_flight("A1") is False
    assert acked.status == AlertStatus.ACKNOWLEDGED

    backend.fail_with = None
    incident = await escalation.create("A1")
    assert incident.linked_alert_id == "A1"


@pytest.mark.asyncio
async def test_create_without_offer_raises(backend: FakeBackend, clock: FakeClock) -> None:
    lifecycle, escalation, _ = _wire(backend, clock, make_alert("A1"))
    await lifecycle.acknowledge("A1", "Officer1")
    assert escalation.decline("A1") is True
    assert escalation.decline("A1") is False

    with pytest.raises(EscalationError):
        await escalation.create("A1")
    assert [c for c in backend.calls if c[0] == "create_incident"] == []


@pytest.mark.asyncio
async def test_offer_survives_snapshot_reload_during_acknowledge(backend: FakeBackend, clock: FakeClock) -> None:
    queue = AlertQueue()
    queue.load_snapshot([make_alert("A1", type="Gas Detection")])
    bus = EventBus()
    escalation = IncidentEscalation(queue, backend, TelemetryStore(), publish=bus.publish)
    bus.subscribe(escalation.on_acknowledged, AlertAcknowledged)
    lifecycle = AlertLifecycle(queue, backend, clock=clock, publish=bus.publish)
    backend.gate = asyncio.Event()

    pending = asyncio.create_task(lifecycle.acknowledge("A1", "Officer1"))
    await asyncio.sleep(0)
    queue.load_snapshot([])
    backend.gate.set()
    await pending

    assert "A1" not in queue
    draft = escalation.offers()["A1"]
    assert draft.type == IncidentType.CHEMICAL_EXPOSURE
    assert "Acknowledged by Officer1" in draft.description
