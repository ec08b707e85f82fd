"""Typed access to workflows and executions on the automation server."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from flowpulse.client.errors import UpstreamError
from flowpulse.client.gateway import GatewayMode, HttpGateway
from flowpulse.config import Credentials, Settings
from flowpulse.core.models import ExecutionPage, ExecutionRecord, WorkflowDefinition

logger = logging.getLogger(__name__)

# Friendly messages for connection checks
_CONNECTION_MESSAGES = {
    401: "Invalid API key",
    403: "Insufficient permissions. Check your API key.",
    404: "Endpoint not found. Check the URL.",
}


def _unwrap_list(payload: Any) -> list[Any]:
    """List endpoints answer ``{"data": [...]}``; tolerate a bare list."""
    if isinstance(payload, dict):
        data = payload.get("data")
        return data if isinstance(data, list) else []
    if isinstance(payload, list):
        return payload
    return []


class DataProvider:
    """Workflow and execution endpoints of the n8n public API."""

    MAX_PAGE_SIZE = 250  # Server-side maximum for /executions

    def __init__(self, gateway: HttpGateway):
        self.gateway = gateway

    async def check_connection(self) -> None:
        """Validate credentials with a one-item workflow listing.

        Raises:
            UpstreamError: with a user-facing message on 401/403/404/5xx
            ConnectionFailedError: server unreachable
        """
        try:
            await self.gateway.get("/workflows", params={"limit": 1})
        except UpstreamError as e:
            message = _CONNECTION_MESSAGES.get(e.status_code, f"Server error: {e.status_code}")
            raise UpstreamError(e.status_code, message) from e

    async def list_workflows(self, active: bool | None = None) -> list[WorkflowDefinition]:
        params = {"active": str(active).lower()} if active is not None else None
        payload = await self.gateway.get("/workflows", params=params)
        return [WorkflowDefinition.model_validate(w) for w in _unwrap_list(payload)]

    async def get_workflow(self, workflow_id: str) -> WorkflowDefinition:
        payload = await self.gateway.get(f"/workflows/{workflow_id}")
        return WorkflowDefinition.model_validate(payload or {})

    async def activate_workflow(self, workflow_id: str) -> WorkflowDefinition:
        payload = await self.gateway.post(f"/workflows/{workflow_id}/activate")
        return WorkflowDefinition.model_validate(payload or {"id": workflow_id, "active": True})

    async def deactivate_workflow(self, workflow_id: str) -> WorkflowDefinition:
        payload = await self.gateway.post(f"/workflows/{workflow_id}/deactivate")
        return WorkflowDefinition.model_validate(payload or {"id": workflow_id, "active": False})

    async def toggle_workflow(self, workflow_id: str, active: bool) -> WorkflowDefinition:
        if active:
            return await self.activate_workflow(workflow_id)
        return await self.deactivate_workflow(workflow_id)

    async def list_executions(
        self,
        workflow_id: str | None = None,
        limit: int = 100,
        cursor: str | None = None,
    ) -> ExecutionPage:
        """Fetch one page of executions (limit is clamped to MAX_PAGE_SIZE)."""
        params: dict[str, Any] = {"limit": min(limit, self.MAX_PAGE_SIZE)}
        if workflow_id:
            params["workflowId"] = workflow_id
        if cursor:
            params["cursor"] = cursor

        payload = await self.gateway.get("/executions", params=params)
        next_cursor = payload.get("nextCursor") if isinstance(payload, dict) else None
        return ExecutionPage(
            executions=[ExecutionRecord.model_validate(e) for e in _unwrap_list(payload)],
            next_cursor=next_cursor or None,
        )

    async def get_execution(self, execution_id: str) -> ExecutionRecord:
        """Fetch one execution including per-node run data."""
        payload = await self.gateway.get(
            f"/executions/{execution_id}", params={"includeData": "true"}
        )
        return ExecutionRecord.model_validate(payload or {"id": execution_id})


@asynccontextmanager
async def open_provider(
    credentials: Credentials,
    settings: Settings | None = None,
) -> AsyncIterator[DataProvider]:
    """Session-scoped provider; closes the HTTP client on exit."""
    settings = settings or Settings()
    gateway = HttpGateway(
        credentials,
        mode=GatewayMode(settings.gateway.mode),
        relay_url=settings.gateway.relay_url,
        timeout=settings.gateway.timeout,
    )
    async with gateway:
        yield DataProvider(gateway)
