"""Data models for the flowpulse dashboard.

Uses Pydantic to validate raw payloads returned by the n8n public API.
Raw models accept unknown fields so that newer server versions never break
parsing. Derived render and metrics entities live next to the code that
computes them (see core.layout and metrics.engine).
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodeStatus(str, Enum):
    """Visual status of a declared node within one execution"""

    PENDING = "pending"  # Node has no run result (not executed)
    SUCCESS = "success"
    ERROR = "error"


class ExecutionStatus(str, Enum):
    """Derived status of a whole execution"""

    RUNNING = "running"  # running or waiting
    SUCCESS = "success"
    ERROR = "error"  # error or crashed


class RawModel(BaseModel):
    """Base for payloads coming from the automation server."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class WorkflowNode(RawModel):
    """A declared step in a workflow definition."""

    id: str | None = None
    name: str
    type: str = ""
    position: tuple[float, float] = (0.0, 0.0)

    @field_validator("position", mode="before")
    @classmethod
    def coerce_position(cls, v: Any) -> tuple[float, float]:
        """Missing or malformed positions fall back to the origin."""
        if isinstance(v, (list, tuple)) and len(v) >= 2:
            try:
                return (float(v[0]), float(v[1]))
            except (TypeError, ValueError):
                return (0.0, 0.0)
        return (0.0, 0.0)


class WorkflowDefinition(RawModel):
    """Workflow with its nodes and connection map.

    connections maps source node name -> output slot -> list of per-index
    target lists, e.g. ``{"Start": {"main": [[{"node": "HTTP"}]]}}``.
    """

    id: str = ""
    name: str = ""
    active: bool = False
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    nodes: list[WorkflowNode] = Field(default_factory=list)
    connections: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("connections", mode="before")
    @classmethod
    def coerce_connections(cls, v: Any) -> dict[str, Any]:
        return v if isinstance(v, dict) else {}

    def iter_connections(self) -> Iterator[tuple[str, str, str]]:
        """Yield (source, output_slot, target) for every well-formed connection.

        Malformed entries are skipped; target resolution is left to callers.
        """
        for source, outputs in self.connections.items():
            if not isinstance(outputs, dict):
                continue
            for slot, per_index in outputs.items():
                if not isinstance(per_index, list):
                    continue
                for targets in per_index:
                    if not isinstance(targets, list):
                        continue
                    for target in targets:
                        if isinstance(target, dict) and target.get("node"):
                            yield source, slot, str(target["node"])


class NodeRunResult(RawModel):
    """Recorded outcome of one node run inside an execution."""

    input_data: Any = Field(default=None, alias="inputData")
    data: Any = None
    error: Any = None
    execution_time: float | None = Field(default=None, alias="executionTime")
    start_time: float | None = Field(default=None, alias="startTime")

    @property
    def has_error(self) -> bool:
        return bool(self.error)

    @property
    def input_payload(self) -> Any:
        """Input items, preferring the ``main`` connection when present."""
        if isinstance(self.input_data, dict) and self.input_data.get("main"):
            return self.input_data["main"]
        return self.input_data

    @property
    def output_payload(self) -> Any:
        """Output items, preferring the ``main`` connection when present."""
        if isinstance(self.data, dict) and self.data.get("main"):
            return self.data["main"]
        return self.data


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class ExecutionRecord(RawModel):
    """One execution as returned by ``/executions`` or ``/executions/{id}``.

    ``data`` is only populated when the execution was fetched with
    ``includeData=true``; older servers put it under ``executionData``.
    """

    id: str
    workflow_id: str | None = Field(default=None, alias="workflowId")
    started_at: datetime | None = Field(default=None, alias="startedAt")
    stopped_at: datetime | None = Field(default=None, alias="stoppedAt")
    status: str | None = None
    finished: bool | None = None
    mode: str | None = None
    data: dict[str, Any] | None = None
    execution_data: dict[str, Any] | None = Field(default=None, alias="executionData")

    @field_validator("id", "workflow_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("started_at", "stopped_at", mode="after")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @field_validator("data", "execution_data", mode="before")
    @classmethod
    def drop_non_mapping(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None

    @property
    def duration_ms(self) -> float | None:
        """Wall-clock duration, or None when either timestamp is missing."""
        if self.started_at is None or self.stopped_at is None:
            return None
        return (self.stopped_at - self.started_at).total_seconds() * 1000

    def payload(self) -> dict[str, Any]:
        """Nested result structures keyed the way the server names them."""
        return {"data": self.data, "executionData": self.execution_data}


class ExecutionPage(BaseModel):
    """One cursor page of executions."""

    executions: list[ExecutionRecord] = Field(default_factory=list)
    next_cursor: str | None = None
