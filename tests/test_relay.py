"""Tests for the FastAPI request relay.

Upstream calls go through an injected httpx.MockTransport.
"""

from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from flowpulse.relay.server import create_app

CREDS = {"_n8nUrl": "https://n8n.example.com", "_apiKey": "secret"}


@pytest.fixture
def upstream_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def client(upstream_requests) -> TestClient:
    def handler(request: httpx.Request) -> httpx.Response:
        upstream_requests.append(request)
        return httpx.Response(201, json={"echo": request.url.path})

    return TestClient(create_app(transport=httpx.MockTransport(handler)))


class TestRelay:
    """Tests for credential stripping and forwarding."""

    def test_forwards_with_header(self, client, upstream_requests):
        response = client.get("/api/proxy/executions", params={"limit": "5", **CREDS})

        assert response.status_code == 201
        assert response.json() == {"echo": "/api/v1/executions"}

        forwarded = upstream_requests[0]
        assert forwarded.url.host == "n8n.example.com"
        assert forwarded.headers["X-N8N-API-KEY"] == "secret"
        assert dict(forwarded.url.params) == {"limit": "5"}

    def test_repeated_params_preserved(self, client, upstream_requests):
        client.get("/api/proxy/workflows?tags=a&tags=b&_n8nUrl=https://n8n.example.com&_apiKey=k")
        assert upstream_requests[0].url.params.get_list("tags") == ["a", "b"]

    def test_forwards_body(self, client, upstream_requests):
        client.post("/api/proxy/workflows/3/activate", params=CREDS, json={"x": 1})

        forwarded = upstream_requests[0]
        assert forwarded.method == "POST"
        assert forwarded.url.path == "/api/v1/workflows/3/activate"
        assert json.loads(forwarded.content) == {"x": 1}

    def test_missing_credentials(self, client, upstream_requests):
        response = client.get("/api/proxy/workflows", params={"_n8nUrl": "https://n8n.example.com"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing credentials"}
        assert response.headers["access-control-allow-origin"] == "*"
        assert upstream_requests == []

    def test_preflight(self, client):
        response = client.options("/api/proxy/workflows")
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_cors_on_success(self, client):
        response = client.get("/api/proxy/workflows", params=CREDS)
        assert response.headers["access-control-allow-origin"] == "*"

    def test_upstream_failure(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = TestClient(create_app(transport=httpx.MockTransport(refuse)))
        response = client.get("/api/proxy/workflows", params=CREDS)

        assert response.status_code == 500
        assert response.json() == {"error": "Relay request failed"}
        assert "secret" not in response.text

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}
