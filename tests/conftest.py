# conftest.py - Shared pytest fixtures for all tests
"""Shared pytest fixtures for the flowpulse test suite.

This module provides foundational fixtures used across all test modules:
- Sample workflow and execution payloads shaped like n8n API responses
- An isolated FLOWPULSE_HOME so tests never touch the real config
- A recording Rich console for renderer output assertions

Usage:
    Import fixtures implicitly via pytest's fixture discovery.
    All fixtures in this file are automatically available in test modules.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from io import StringIO
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from flowpulse.config import Credentials
from flowpulse.core.models import ExecutionRecord, WorkflowDefinition

# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def flowpulse_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point FLOWPULSE_HOME at a temp dir and clear credential env overrides."""
    home = tmp_path / "flowpulse-home"
    monkeypatch.setenv("FLOWPULSE_HOME", str(home))
    for var in (
        "FLOWPULSE_BASE_URL",
        "FLOWPULSE_API_KEY",
        "FLOWPULSE_GATEWAY_MODE",
        "FLOWPULSE_RELAY_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(base_url="https://n8n.example.com", api_key="test-key")


@pytest.fixture
def record_console() -> Console:
    """Console writing into a buffer; read it with console.file.getvalue()."""
    return Console(file=StringIO(), width=120, force_terminal=False, color_system=None)


# =============================================================================
# Workflow Payload Fixtures
# =============================================================================


@pytest.fixture
def workflow_payload() -> dict[str, Any]:
    """Three-node linear workflow: Webhook -> HTTP Request -> Send Email.

    Positions include negative coordinates to exercise translation.
    """
    return {
        "id": "wf-1",
        "name": "Order sync",
        "active": True,
        "updatedAt": "2024-05-01T10:00:00.000Z",
        "nodes": [
            {
                "id": "n1",
                "name": "Webhook",
                "type": "n8n-nodes-base.webhook",
                "position": [-200, 100],
            },
            {
                "id": "n2",
                "name": "HTTP Request",
                "type": "n8n-nodes-base.httpRequest",
                "position": [100, -50],
            },
            {
                "id": "n3",
                "name": "Send Email",
                "type": "n8n-nodes-base.emailSend",
                "position": [400, 100],
            },
        ],
        "connections": {
            "Webhook": {"main": [[{"node": "HTTP Request", "type": "main", "index": 0}]]},
            "HTTP Request": {"main": [[{"node": "Send Email", "type": "main", "index": 0}]]},
        },
    }


@pytest.fixture
def workflow(workflow_payload: dict[str, Any]) -> WorkflowDefinition:
    return WorkflowDefinition.model_validate(workflow_payload)


# =============================================================================
# Execution Payload Fixtures
# =============================================================================


@pytest.fixture
def failed_execution_payload() -> dict[str, Any]:
    """Execution where HTTP Request failed and Send Email never ran."""
    return {
        "id": "1001",
        "workflowId": "wf-1",
        "startedAt": "2024-05-01T10:00:00.000Z",
        "stoppedAt": "2024-05-01T10:00:02.500Z",
        "status": "error",
        "finished": False,
        "mode": "webhook",
        "data": {
            "resultData": {
                "runData": {
                    "Webhook": [
                        {
                            "executionTime": 3,
                            "data": {"main": [[{"json": {"order": 42}}]]},
                        }
                    ],
                    "HTTP Request": [
                        {
                            "executionTime": 120,
                            "inputData": {"main": [[{"json": {"order": 42}}]]},
                            "error": {"message": "Request failed with status code 500"},
                        }
                    ],
                },
                "lastNodeExecuted": "HTTP Request",
            }
        },
    }


@pytest.fixture
def failed_execution(failed_execution_payload: dict[str, Any]) -> ExecutionRecord:
    return ExecutionRecord.model_validate(failed_execution_payload)


def make_execution(
    execution_id: str,
    started_at: datetime | None,
    duration_ms: float | None = 1000,
    status: str | None = "success",
    finished: bool | None = None,
) -> ExecutionRecord:
    """Build a list-style execution record (no run data)."""
    stopped_at = None
    if started_at is not None and duration_ms is not None:
        stopped_at = started_at + timedelta(milliseconds=duration_ms)
    return ExecutionRecord(
        id=execution_id,
        workflow_id="wf-1",
        started_at=started_at,
        stopped_at=stopped_at,
        status=status,
        finished=finished,
        mode="trigger",
    )


@pytest.fixture
def execution_factory():
    """Factory fixture: execution_factory(id, started_at, duration_ms=..., status=...)."""
    return make_execution


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for window computations."""
    return datetime(2024, 5, 10, 12, 0, tzinfo=UTC)
