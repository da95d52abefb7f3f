"""Alert endpoints.

Endpoints:
  - GET  /alerts/active
  - GET  /alerts
  - POST /alerts/{id}/acknowledge
  - POST /alerts/batch-acknowledge
  - POST /alerts/{id}/resolve
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from guardwell._api._common import path_segment, request_json
from guardwell._transport import Transport
from guardwell.ingestion.alerts import parse_alert_list
from guardwell.models.alert import Alert

_logger = logging.getLogger(__name__)


async def fetch_active_alerts(transport: Transport) -> list[Alert]:
    """Fetch every non-Resolved alert."""
    decoded = await request_json(transport, "GET", "/alerts/active")
    alerts = parse_alert_list(decoded)
    _logger.debug("Fetched %d active alert(s)", len(alerts))
    return alerts


async def fetch_all_alerts(transport: Transport) -> list[Alert]:
    """Fetch the full alert history."""
    decoded = await request_json(transport, "GET", "/alerts")
    return parse_alert_list(decoded)


async def acknowledge_alert(
    transport: Transport,
    alert_id: str,
    actor: str,
    note: str | None = None,
) -> None:
    body: dict[str, Any] = {"acknowledgedBy": actor}
    if note is not None:
        body["notes"] = note
    await request_json(transport, "POST", f"/alerts/{path_segment(alert_id)}/acknowledge", json_body=body)


async def batch_acknowledge_alerts(transport: Transport, alert_ids: Sequence[str], actor: str) -> None:
    """Acknowledge several alerts in one request.

    The server applies the batch in a single transaction; any error reply
    means no alert in the batch was changed.
    """
    body = {"alertIds": list(alert_ids), "acknowledgedBy": actor}
    await request_json(transport, "POST", "/alerts/batch-acknowledge", json_body=body)


async def resolve_alert(transport: Transport, alert_id: str, notes: str | None = None) -> None:
    body: dict[str, Any] = {}
    if notes is not None:
        body["notes"] = notes
    await request_json(transport, "POST", f"/alerts/{path_segment(alert_id)}/resolve", json_body=body)
