"""Device endpoints: GET /devices, POST /devices/{id}/nudge."""

from __future__ import annotations

from guardwell._api._common import path_segment, request_json
from guardwell._transport import Transport
from guardwell.ingestion.devices import parse_device_list
from guardwell.models.device import Device


async def fetch_devices(transport: Transport) -> list[Device]:
    decoded = await request_json(transport, "GET", "/devices")
    return parse_device_list(decoded)


async def send_nudge(transport: Transport, device_id: str, message: str) -> None:
    await request_json(
        transport,
        "POST",
        f"/devices/{path_segment(device_id)}/nudge",
        json_body={"message": message},
    )
