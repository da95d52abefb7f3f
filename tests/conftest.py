from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from guardwell.models.alert import Alert
from guardwell.models.device import Device
from guardwell.models.incident import Incident, IncidentDraft


@dataclass
class FakeBackend:
    """In-memory SafetyBackend.

    ``fail_with`` makes every commit raise; ``gate`` (when set) blocks commits
    until the test sets the event.  ``gated_ids`` narrows the gate to commits
    whose first argument is one of those ids.  ``all_alerts`` backs the
    history fetch and defaults to the active list.
    """

    active_alerts: list[Alert] = field(default_factory=list)
    all_alerts: list[Alert] | None = None
    devices: list[Device] = field(default_factory=list)
    fail_with: Exception | None = None
    gate: asyncio.Event | None = None
    gated_ids: set[str] | None = None
    calls: list[tuple[str, Any]] = field(default_factory=list)
    next_incident_id: int = 1

    async def _commit(self, name: str, args: Any) -> None:
        self.calls.append((name, args))
        if self.gate is not None and self._gated(args):
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    def _gated(self, args: Any) -> bool:
        if self.gated_ids is None:
            return True
        return isinstance(args, tuple) and isinstance(args[0], str) and args[0] in self.gated_ids

    async def fetch_active_alerts(self) -> list[Alert]:
        self.calls.append(("fetch_active_alerts", None))
        return list(self.active_alerts)

    async def fetch_all_alerts(self) -> list[Alert]:
        self.calls.append(("fetch_all_alerts", None))
        return list(self.all_alerts if self.all_alerts is not None else self.active_alerts)

    async def acknowledge_alert(self, alert_id: str, actor: str, note: str | None = None) -> None:
        await self._commit("acknowledge_alert", (alert_id, actor, note))

    async def batch_acknowledge_alerts(self, alert_ids: Sequence[str], actor: str) -> None:
        await self._commit("batch_acknowledge_alerts", (list(alert_ids), actor))

    async def resolve_alert(self, alert_id: str, notes: str | None = None) -> None:
        await self._commit("resolve_alert", (alert_id, notes))

    async def fetch_devices(self) -> list[Device]:
        self.calls.append(("fetch_devices", None))
        return list(self.devices)

    async def send_nudge(self, device_id: str, message: str) -> None:
        await self._commit("send_nudge", (device_id, message))

    async def create_incident(self, draft: IncidentDraft) -> Incident:
        await self._commit("create_incident", draft)
        incident = Incident.model_validate({**draft.model_dump(), "id": str(self.next_incident_id)})
        self.next_incident_id += 1
        return incident


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


T0 = datetime(2026, 3, 2, 8, 0, 0, tzinfo=UTC)


def make_alert(alert_id: str, *, minutes: int = 0, **fields: Any) -> Alert:
    payload: dict[str, Any] = {
        "id": alert_id,
        "deviceId": fields.pop("device_id", "DEV-001"),
        "type": fields.pop("type", "Emergency Button"),
        "createdAt": (T0 + timedelta(minutes=minutes)).isoformat(),
    }
    payload.update(fields)
    return Alert.model_validate(payload)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)
