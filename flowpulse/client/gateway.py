"""HTTP gateway to the automation server's REST API.

Two transports for the API key:

- DIRECT: ``X-N8N-API-KEY`` header straight to ``{base_url}/api/v1/...``.
  Use when the caller is trusted (local CLI, same origin).
- RELAY: request goes to ``{relay_url}/api/proxy/...`` with the server URL
  and key appended as ``_n8nUrl`` / ``_apiKey`` query parameters. The relay
  strips them and forwards upstream with the header (see relay.server).

Errors are mapped to client.errors: transport problems raise
ConnectionFailedError, non-2xx answers raise UpstreamError.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

import httpx

from flowpulse.client.errors import ConnectionFailedError, UpstreamError
from flowpulse.config import Credentials

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
RELAY_PREFIX = "/api/proxy"
API_KEY_HEADER = "X-N8N-API-KEY"
RELAY_URL_PARAM = "_n8nUrl"
RELAY_KEY_PARAM = "_apiKey"


class GatewayMode(str, Enum):
    DIRECT = "direct"
    RELAY = "relay"


class HttpGateway:
    """Authenticated async HTTP access to one automation server.

    Constructed once per session and passed to every call site.

    USAGE:
        async with HttpGateway(credentials) as gateway:
            payload = await gateway.get("/workflows", params={"active": "true"})
    """

    def __init__(
        self,
        credentials: Credentials,
        mode: GatewayMode | str = GatewayMode.DIRECT,
        relay_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.mode = GatewayMode(mode)
        if self.mode == GatewayMode.RELAY and not relay_url:
            raise ValueError("relay_url is required in relay mode")
        self.relay_url = relay_url.rstrip("/") if relay_url else None
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> HttpGateway:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def build_request(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> tuple[str, dict[str, Any], dict[str, str]]:
        """Resolve (url, query params, headers) for an API path.

        Example:
            build_request("/executions", {"limit": 250})
            DIRECT -> ("https://host/api/v1/executions", {"limit": 250}, {key header})
            RELAY  -> ("https://relay/api/proxy/executions",
                       {"limit": 250, "_n8nUrl": ..., "_apiKey": ...}, {})
        """
        path = path.lstrip("/")
        query = {k: v for k, v in (params or {}).items() if v is not None}
        headers = {"Content-Type": "application/json"}

        if self.mode == GatewayMode.DIRECT:
            headers[API_KEY_HEADER] = self.credentials.api_key
            return f"{self.credentials.base_url}{API_PREFIX}/{path}", query, headers

        query[RELAY_URL_PARAM] = self.credentials.base_url
        query[RELAY_KEY_PARAM] = self.credentials.api_key
        return f"{self.relay_url}{RELAY_PREFIX}/{path}", query, headers

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Issue a request and return the decoded JSON body (None if empty)."""
        url, query, headers = self.build_request(path, params)
        logger.debug("%s %s params=%s", method, url, sorted(k for k in query if not k.startswith("_")))

        try:
            response = await self._client.request(
                method, url, params=query, headers=headers, json=json
            )
        except httpx.TransportError as e:
            logger.debug("Transport failure for %s %s: %s", method, path, e)
            raise ConnectionFailedError() from e

        if not response.is_success:
            raise UpstreamError(response.status_code, _upstream_message(response))

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(response.status_code, "Server returned invalid JSON") from e

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, params: dict[str, Any] | None = None, json: Any = None) -> Any:
        return await self.request("POST", path, params=params, json=json)


def _upstream_message(response: httpx.Response) -> str | None:
    """Extract the server's error message when the body is JSON."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, str) and message:
            return message
    return None
