"""FastAPI request relay for browser clients.

Browsers cannot call the automation server directly (CORS), and must not
hold the API key in a header visible to third-party origins. The relay
accepts ``/api/proxy/{path}?...&_n8nUrl=<url>&_apiKey=<key>``, strips the two
credential parameters and forwards the request upstream to
``{_n8nUrl}/api/v1/{path}`` with the key as ``X-N8N-API-KEY``.

Contract:
- method, body (except GET/HEAD) and every other query parameter are
  forwarded verbatim
- upstream status code and body are returned unchanged
- permissive CORS headers are attached to every response
- any relay-side failure answers 500 with a generic error envelope

The relay is stateless; its trust model (forwarding a caller-supplied key)
is accepted as-is.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from flowpulse import __version__
from flowpulse.client.gateway import API_KEY_HEADER, API_PREFIX, RELAY_KEY_PARAM, RELAY_URL_PARAM

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}

RELAY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
UPSTREAM_TIMEOUT = 60.0


def create_app(transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """Build the relay app.

    Args:
        transport: Optional httpx transport for upstream calls (tests inject
            httpx.MockTransport here)
    """
    app = FastAPI(
        title="flowpulse relay",
        description="Forwards browser calls to an n8n REST API",
        version=__version__,
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.api_route("/api/proxy/{path:path}", methods=RELAY_METHODS)
    async def relay(request: Request, path: str) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        upstream_base = request.query_params.get(RELAY_URL_PARAM)
        api_key = request.query_params.get(RELAY_KEY_PARAM)
        if not upstream_base or not api_key:
            return JSONResponse(
                status_code=400,
                content={"error": "Missing credentials"},
                headers=CORS_HEADERS,
            )

        # Keep repeated keys and original order; drop only the credentials
        forward_params = [
            (key, value)
            for key, value in request.query_params.multi_items()
            if key not in (RELAY_URL_PARAM, RELAY_KEY_PARAM)
        ]
        target_url = f"{upstream_base.rstrip('/')}{API_PREFIX}/{path.lstrip('/')}"

        try:
            body = None
            if request.method not in ("GET", "HEAD"):
                body = await request.body() or None

            async with httpx.AsyncClient(transport=transport, timeout=UPSTREAM_TIMEOUT) as client:
                upstream = await client.request(
                    request.method,
                    target_url,
                    params=forward_params,
                    headers={API_KEY_HEADER: api_key, "Content-Type": "application/json"},
                    content=body,
                )
        except Exception:
            # Never echo the target URL or key back to the caller
            logger.exception("Relay to %s failed", upstream_base)
            return JSONResponse(
                status_code=500,
                content={"error": "Relay request failed"},
                headers=CORS_HEADERS,
            )

        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type="application/json",
            headers=CORS_HEADERS,
        )

    return app


app = create_app()
