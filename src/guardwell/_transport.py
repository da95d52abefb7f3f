"""HTTP transport for the guardwell REST API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from guardwell._constants import USER_AGENT
from guardwell._redact import redact_for_log
from guardwell.config import GuardwellConfig
from guardwell.exceptions import GuardwellTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """Decoded HTTP reply: status code plus JSON body (``None`` when empty)."""

    status: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
    ) -> ApiResponse:
        ...


class HttpTransport:
    """JSON-over-HTTP transport with bearer-token auth.

    Network failures and undecodable bodies raise
    :class:`GuardwellTransportError`.  Non-2xx replies are returned as-is;
    mapping them to API errors is up to the endpoint helpers.
    """

    def __init__(self, config: GuardwellConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        if self._config.api_token:
            headers["authorization"] = f"Bearer {self._config.api_token}"
        return headers

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
    ) -> ApiResponse:
        url = f"{self._config.base_url}{endpoint}"
        data = json.dumps(json_body, separators=(",", ":")) if json_body is not None else None

        _logger.debug("%s %s", method, url)
        if self._config.api_trace_enabled and json_body is not None:
            _logger.debug("Request body %s: %s", endpoint, redact_for_log(dict(json_body)))

        try:
            async with self._http.request(
                method,
                url,
                data=data,
                headers=self._headers(),
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise GuardwellTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
        except TimeoutError as exc:
            raise GuardwellTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc

        if not text.strip():
            body: Any = None
        else:
            try:
                body = json.loads(text)
            except json.JSONDecodeError as exc:
                raise GuardwellTransportError(
                    f"Invalid JSON from {endpoint} (HTTP {status}): {text[:200]}",
                    status_code=status,
                    endpoint=endpoint,
                ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("Response %s HTTP %d: %s", endpoint, status, redact_for_log(body))

        return ApiResponse(status=status, body=body)
