from __future__ import annotations

from datetime import UTC, datetime

from guardwell.ingestion.telemetry import build_telemetry
from guardwell.models.telemetry import DeviceTelemetry
from guardwell.state.events import DeviceMarkedSafe, EngineEvent, SosRaised, SosSource
from guardwell.state.sos import SosTracker
from guardwell.state.telemetry import TelemetryStore


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


def _reading(payload: dict[str, object]) -> DeviceTelemetry:
    return build_telemetry(payload, device_id="DEV-001", fallback_received_at=_dt())


# ------------------------------------------------------------------
# TelemetryStore
# ------------------------------------------------------------------


def test_no_reading_is_not_an_all_zero_reading() -> None:
    store = TelemetryStore()
    assert store.get("DEV-001") is None
    assert not store.has_live_data("DEV-001")

    store.upsert("DEV-001", _reading({}))

    reading = store.get("DEV-001")
    assert reading is not None
    assert reading.temperature == 0.0
    assert store.has_live_data("DEV-001")


def test_upsert_replaces_whole_record() -> None:
    store = TelemetryStore()
    store.upsert("DEV-001", _reading({"temperature": 45, "gas_level": 250, "latitude": 14.6, "longitude": 121.0}))
    store.upsert("DEV-001", _reading({"temperature": 30}))

    reading = store.get("DEV-001")
    assert reading is not None
    assert reading.temperature == 30.0
    # Absent fields are zero/unknown, never inherited from the previous reading.
    assert reading.gas_level == 0.0
    assert reading.gps.latitude is None


def test_upsert_keys_by_argument_not_payload() -> None:
    store = TelemetryStore()
    later = datetime(2026, 1, 2, tzinfo=UTC)
    stored = store.upsert("DEV-777", _reading({"temperature": 20}), received_at=later)

    assert stored.device_id == "DEV-777"
    assert stored.received_at == later
    assert store.get("DEV-001") is None
    assert store.device_ids() == ["DEV-777"]


def test_clear_forgets_everything() -> None:
    store = TelemetryStore()
    store.upsert("DEV-001", _reading({}))
    store.clear()
    assert not store.has_live_data("DEV-001")


# ------------------------------------------------------------------
# SosTracker
# ------------------------------------------------------------------


def test_sos_raised_once_per_rising_edge() -> None:
    events: list[EngineEvent] = []
    tracker = SosTracker(publish=events.append)

    assert tracker.on_reading("DEV-001", True, False) is True
    assert tracker.on_reading("DEV-001", True, False) is False
    assert tracker.on_reading("DEV-001", False, True) is False

    raised = [e for e in events if isinstance(e, SosRaised)]
    assert len(raised) == 1
    assert raised[0].source == SosSource.BUTTON


def test_sos_survives_signal_free_readings() -> None:
    tracker = SosTracker()
    tracker.on_reading("DEV-001", False, True)

    for _ in range(25):
        tracker.on_reading("DEV-001", False, False)

    assert tracker.is_active("DEV-001")
    assert tracker.active_devices() == frozenset({"DEV-001"})


def test_voice_source_reported() -> None:
    events: list[EngineEvent] = []
    tracker = SosTracker(publish=events.append)
    tracker.on_reading("DEV-002", False, True, timestamp=_dt())

    assert isinstance(events[0], SosRaised)
    assert events[0].source == SosSource.VOICE
    assert events[0].timestamp == _dt()


def test_mark_safe_clears_and_always_emits() -> None:
    events: list[EngineEvent] = []
    tracker = SosTracker(publish=events.append)
    tracker.on_reading("DEV-001", True, False)

    event = tracker.mark_safe("DEV-001", operator="Officer1", timestamp=_dt(), worker_id="9")
    assert not tracker.is_active("DEV-001")
    assert event == DeviceMarkedSafe(device_id="DEV-001", worker_id="9", operator="Officer1", timestamp=_dt())

    # No flag and no telemetry: still emitted.
    tracker.mark_safe("DEV-404", operator="Officer1", timestamp=_dt())
    marked = [e for e in events if isinstance(e, DeviceMarkedSafe)]
    assert [e.device_id for e in marked] == ["DEV-001", "DEV-404"]


def test_flag_can_be_raised_again_after_mark_safe() -> None:
    tracker = SosTracker()
    tracker.on_reading("DEV-001", True, False)
    tracker.mark_safe("DEV-001", operator="Officer1", timestamp=_dt())
    assert tracker.on_reading("DEV-001", True, False) is True
