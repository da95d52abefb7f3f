"""High-level async client for the guardwell REST API."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import aiohttp

from guardwell._api import alerts as _alerts_api
from guardwell._api import devices as _devices_api
from guardwell._api import incidents as _incidents_api
from guardwell._transport import HttpTransport, Transport
from guardwell.config import GuardwellConfig
from guardwell.exceptions import GuardwellError
from guardwell.models.alert import Alert
from guardwell.models.device import Device
from guardwell.models.incident import Incident, IncidentDraft

_logger = logging.getLogger(__name__)


class GuardwellClient:
    """Async client for the guardwell backend; implements ``SafetyBackend``.

    Usage::

        async with GuardwellClient(GuardwellConfig.from_env()) as client:
            alerts = await client.fetch_active_alerts()

    An existing ``aiohttp.ClientSession`` may be passed in; it is then left
    open on exit.  ``transport`` replaces the HTTP layer entirely (tests).
    """

    def __init__(
        self,
        config: GuardwellConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config or GuardwellConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None

    @property
    def config(self) -> GuardwellConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GuardwellClient:
        if self._external_transport:
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise GuardwellError("Client not initialized. Use 'async with GuardwellClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    async def fetch_active_alerts(self) -> list[Alert]:
        return await _alerts_api.fetch_active_alerts(self._require_transport())

    async def fetch_all_alerts(self) -> list[Alert]:
        return await _alerts_api.fetch_all_alerts(self._require_transport())

    async def acknowledge_alert(self, alert_id: str, actor: str, note: str | None = None) -> None:
        await _alerts_api.acknowledge_alert(self._require_transport(), alert_id, actor, note)

    async def batch_acknowledge_alerts(self, alert_ids: Sequence[str], actor: str) -> None:
        await _alerts_api.batch_acknowledge_alerts(self._require_transport(), alert_ids, actor)

    async def resolve_alert(self, alert_id: str, notes: str | None = None) -> None:
        await _alerts_api.resolve_alert(self._require_transport(), alert_id, notes)

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------

    async def fetch_devices(self) -> list[Device]:
        return await _devices_api.fetch_devices(self._require_transport())

    async def send_nudge(self, device_id: str, message: str) -> None:
        await _devices_api.send_nudge(self._require_transport(), device_id, message)
        _logger.debug("Nudge sent to device %s", device_id)

    # ------------------------------------------------------------------
    # Incidents
    # ------------------------------------------------------------------

    async def create_incident(self, draft: IncidentDraft) -> Incident:
        return await _incidents_api.create_incident(self._require_transport(), draft)
