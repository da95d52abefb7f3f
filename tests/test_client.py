from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from guardwell._transport import ApiResponse
from guardwell.client import GuardwellClient
from guardwell.exceptions import GuardwellApiError, GuardwellError
from guardwell.models.alert import AlertStatus
from guardwell.models.incident import IncidentDraft, IncidentType


class _RecordingTransport:
    def __init__(self, responses: dict[tuple[str, str], ApiResponse]) -> None:
        self._responses = responses
        self.requests: list[tuple[str, str, Mapping[str, Any] | None]] = []

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
    ) -> ApiResponse:
        self.requests.append((method, endpoint, json_body))
        return self._responses.get((method, endpoint), ApiResponse(status=200, body={"message": "ok"}))


@pytest.mark.asyncio
async def test_fetch_active_alerts_parses_rows() -> None:
    transport = _RecordingTransport(
        {
            ("GET", "/alerts/active"): ApiResponse(
                status=200,
                body=[
                    {"id": 1, "deviceId": "DEV-001", "type": "Emergency Button", "createdAt": "2026-03-02T08:00:00Z"},
                    {"id": 2, "deviceId": "DEV-002", "type": "Gas Detection", "status": "Responding",
                     "createdAt": "2026-03-02T08:01:00Z"},
                ],
            )
        }
    )

    async with GuardwellClient(transport=transport) as client:
        alerts = await client.fetch_active_alerts()

    assert [a.id for a in alerts] == ["1", "2"]
    assert alerts[1].status == AlertStatus.ACKNOWLEDGED


@pytest.mark.asyncio
async def test_commands_send_expected_bodies() -> None:
    transport = _RecordingTransport({})

    async with GuardwellClient(transport=transport) as client:
        await client.acknowledge_alert("A 1", "Officer1")
        await client.acknowledge_alert("A2", "Officer1", note="on my way")
        await client.batch_acknowledge_alerts(["A3", "A4"], "Officer1")
        await client.resolve_alert("A2")
        await client.send_nudge("DEV-001", "Please check in")

    assert transport.requests == [
        ("POST", "/alerts/A%201/acknowledge", {"acknowledgedBy": "Officer1"}),
        ("POST", "/alerts/A2/acknowledge", {"acknowledgedBy": "Officer1", "notes": "on my way"}),
        ("POST", "/alerts/batch-acknowledge", {"alertIds": ["A3", "A4"], "acknowledgedBy": "Officer1"}),
        ("POST", "/alerts/A2/resolve", {}),
        ("POST", "/devices/DEV-001/nudge", {"message": "Please check in"}),
    ]


@pytest.mark.asyncio
async def test_error_reply_maps_to_api_error() -> None:
    transport = _RecordingTransport(
        {("POST", "/alerts/A9/acknowledge"): ApiResponse(status=404, body={"error": "Alert not found"})}
    )

    async with GuardwellClient(transport=transport) as client:
        with pytest.raises(GuardwellApiError) as exc_info:
            await client.acknowledge_alert("A9", "Officer1")

    exc = exc_info.value
    assert exc.status_code == 404
    assert exc.code == "404"
    assert exc.endpoint == "/alerts/A9/acknowledge"
    assert "Alert not found" in str(exc)


@pytest.mark.asyncio
async def test_fetch_devices_flattens_worker() -> None:
    transport = _RecordingTransport(
        {
            ("GET", "/devices"): ApiResponse(
                status=200,
                body=[{"id": 1, "deviceId": "DEV-001", "worker": {"id": 3, "fullName": "Juan dela Cruz"}}],
            )
        }
    )

    async with GuardwellClient(transport=transport) as client:
        devices = await client.fetch_devices()

    assert devices[0].worker_name == "Juan dela Cruz"
    assert devices[0].worker_id == "3"


@pytest.mark.asyncio
async def test_create_incident_merges_server_row() -> None:
    transport = _RecordingTransport(
        {("POST", "/incidents"): ApiResponse(status=201, body={"id": 12, "status": "Open", "title": "Fall Detected - W"})}
    )
    draft = IncidentDraft(
        title="Fall Detected - W",
        type=IncidentType.MAJOR_INJURY,
        severity="High",
        worker_name="W",
        description="Escalated from alert A1",
        linked_alert_id="A1",
    )

    async with GuardwellClient(transport=transport) as client:
        incident = await client.create_incident(draft)

    _, _, body = transport.requests[0]
    assert body is not None
    assert body["type"] == "Major Injury"
    assert body["alertId"] == "A1"
    assert incident.id == "12"
    assert incident.status == "Open"
    assert incident.linked_alert_id == "A1"


@pytest.mark.asyncio
async def test_create_incident_without_record_raises() -> None:
    transport = _RecordingTransport({("POST", "/incidents"): ApiResponse(status=201, body=None)})
    draft = IncidentDraft(title="t", type=IncidentType.NEAR_MISS, severity="Low", worker_name="w", description="d")

    async with GuardwellClient(transport=transport) as client:
        with pytest.raises(GuardwellApiError):
            await client.create_incident(draft)


@pytest.mark.asyncio
async def test_client_requires_context_manager() -> None:
    client = GuardwellClient()
    with pytest.raises(GuardwellError):
        await client.fetch_devices()
