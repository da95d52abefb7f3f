"""Incident endpoint: POST /incidents."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import ValidationError

from guardwell._api._common import request_json
from guardwell._transport import Transport
from guardwell.exceptions import GuardwellApiError
from guardwell.models.incident import Incident, IncidentDraft

_ENDPOINT = "/incidents"


async def create_incident(transport: Transport, draft: IncidentDraft) -> Incident:
    """Create an incident and return the stored record.

    The reply is the created row; fields the server omits are taken from
    *draft*.
    """
    body = draft.model_dump(mode="json", by_alias=True)
    decoded = await request_json(transport, "POST", _ENDPOINT, json_body=body)
    if isinstance(decoded, Mapping) and isinstance(decoded.get("data"), Mapping):
        decoded = decoded["data"]
    if not isinstance(decoded, Mapping):
        raise GuardwellApiError(
            f"{_ENDPOINT} returned no incident record",
            code="invalid_response",
            endpoint=_ENDPOINT,
        )
    try:
        return Incident.model_validate({**body, **decoded})
    except ValidationError as exc:
        raise GuardwellApiError(
            f"{_ENDPOINT} returned an unusable incident record: {exc.error_count()} error(s)",
            code="invalid_response",
            endpoint=_ENDPOINT,
        ) from exc
