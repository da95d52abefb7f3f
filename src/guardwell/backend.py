"""The REST collaborator the engine commits through.

:class:`~guardwell.client.GuardwellClient` is the HTTP implementation;
tests pass in-memory fakes with the same shape.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from guardwell.models.alert import Alert
from guardwell.models.device import Device
from guardwell.models.incident import Incident, IncidentDraft


class SafetyBackend(Protocol):
    """Source of truth for alerts, devices and incidents.

    Every command either completes or raises; the engine treats any raised
    exception as "nothing was committed" and re-raises it unchanged.
    """

    async def fetch_active_alerts(self) -> list[Alert]:
        ...

    async def fetch_all_alerts(self) -> list[Alert]:
        ...

    async def acknowledge_alert(self, alert_id: str, actor: str, note: str | None = None) -> None:
        ...

    async def batch_acknowledge_alerts(self, alert_ids: Sequence[str], actor: str) -> None:
        """Acknowledge *alert_ids* as one unit.

        Implementations must be all-or-nothing: on success every id was
        acknowledged, on a raised exception none was.  The engine updates
        its local copies only after this returns and never retries on its
        own.  A backend that can partially apply a batch must raise and
        leave recovery to a snapshot reload (``fetch_active_alerts``),
        which is the only way the engine learns of server-side changes.
        """
        ...

    async def resolve_alert(self, alert_id: str, notes: str | None = None) -> None:
        ...

    async def fetch_devices(self) -> list[Device]:
        ...

    async def send_nudge(self, device_id: str, message: str) -> None:
        ...

    async def create_incident(self, draft: IncidentDraft) -> Incident:
        ...
