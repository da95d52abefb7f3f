"""Shared helpers for guardwell API endpoint modules.

This module centralizes the most repeated patterns:
- quoting path segments
- issuing a request and mapping non-2xx replies to ``GuardwellApiError``

It is internal to guardwell and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from guardwell._transport import ApiResponse, Transport
from guardwell.exceptions import GuardwellApiError


def path_segment(value: str) -> str:
    """Quote an id for use as a single URL path segment."""
    return quote(str(value), safe="")


def _error_message(response: ApiResponse) -> str:
    body = response.body
    if isinstance(body, Mapping):
        for key in ("error", "message", "detail"):
            text = body.get(key)
            if isinstance(text, str) and text:
                details = body.get("details")
                return f"{text} ({details})" if isinstance(details, str) and details else text
    return f"HTTP {response.status}"


def raise_for_status(endpoint: str, response: ApiResponse) -> None:
    if response.ok:
        return
    raise GuardwellApiError(
        f"{endpoint} failed: {_error_message(response)}",
        code=str(response.status),
        endpoint=endpoint,
        status_code=response.status,
    )


async def request_json(
    transport: Transport,
    method: str,
    endpoint: str,
    *,
    json_body: Mapping[str, Any] | None = None,
) -> Any:
    """Issue a request and return the decoded body of a 2xx reply.

    Returns `Any` since endpoints may return objects, lists or nothing.
    """
    response = await transport.request(method, endpoint, json_body=json_body)
    raise_for_status(endpoint, response)
    return response.body
