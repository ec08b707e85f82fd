"""Status and error extraction for nodes and executions.

Execution errors can live in several nested places depending on how the
execution failed. Each place is an explicit ErrorSource, resolved in a fixed
order so the priority chain can be tested on its own.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from flowpulse.core.correlator import extract_run_data, latest_run
from flowpulse.core.models import ExecutionRecord, ExecutionStatus, NodeRunResult, NodeStatus
from flowpulse.core.utils import dig

# Explicit status strings reported by the server
_STATUS_MAP: dict[str, ExecutionStatus] = {
    "running": ExecutionStatus.RUNNING,
    "waiting": ExecutionStatus.RUNNING,
    "error": ExecutionStatus.ERROR,
    "crashed": ExecutionStatus.ERROR,
    "success": ExecutionStatus.SUCCESS,
}


def node_status(result: NodeRunResult | None) -> NodeStatus:
    """Classify a node from its latest run result."""
    if result is None:
        return NodeStatus.PENDING
    if result.has_error:
        return NodeStatus.ERROR
    return NodeStatus.SUCCESS


def execution_status(execution: ExecutionRecord) -> ExecutionStatus:
    """Derive the status of an execution.

    Checked in order: explicit ``status``, then ``finished``, then default.
    The default is SUCCESS: the server omits failure signals on executions
    that completed normally. This can over-count successes for executions
    that never reported anything.
    """
    if execution.status:
        mapped = _STATUS_MAP.get(execution.status.lower())
        if mapped is not None:
            return mapped
    if execution.finished is False:
        return ExecutionStatus.ERROR
    if execution.finished is True:
        return ExecutionStatus.SUCCESS
    return ExecutionStatus.SUCCESS


def error_text(error: Any) -> str | None:
    """Human-readable text for an error object.

    Uses ``message``, else ``description``, else the compact JSON form.
    Empty errors yield None.
    """
    if not error:
        return None
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        for key in ("message", "description"):
            value = error.get(key)
            if value:
                return str(value)
        return json.dumps(error, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(error)


class ErrorSource(str, Enum):
    """Where an execution-level error message was found"""

    RESULT = "result"  # data.resultData.error
    NESTED_RESULT = "nested_result"  # data.executionData.resultData.error
    LAST_NODE = "last_node"  # error of data.resultData.lastNodeExecuted


@dataclass(frozen=True)
class ExecutionError:
    """Resolved execution-level error."""

    source: ErrorSource
    message: str
    node_name: str | None = None


def _result_error(execution: ExecutionRecord) -> ExecutionError | None:
    message = error_text(dig(execution.payload(), "data", "resultData", "error"))
    return ExecutionError(ErrorSource.RESULT, message) if message else None


def _nested_result_error(execution: ExecutionRecord) -> ExecutionError | None:
    error = dig(execution.payload(), "data", "executionData", "resultData", "error")
    message = error_text(error)
    return ExecutionError(ErrorSource.NESTED_RESULT, message) if message else None


def _last_node_error(execution: ExecutionRecord) -> ExecutionError | None:
    last_node = dig(execution.payload(), "data", "resultData", "lastNodeExecuted")
    if not isinstance(last_node, str) or not last_node:
        return None
    result = latest_run(extract_run_data(execution).get(last_node))
    if result is None:
        return None
    message = error_text(result.error)
    return ExecutionError(ErrorSource.LAST_NODE, message, node_name=last_node) if message else None


ERROR_RESOLVERS: tuple[Callable[[ExecutionRecord], ExecutionError | None], ...] = (
    _result_error,
    _nested_result_error,
    _last_node_error,
)


def resolve_execution_error(execution: ExecutionRecord) -> ExecutionError | None:
    """Return the first error found along ERROR_RESOLVERS, or None."""
    for resolver in ERROR_RESOLVERS:
        found = resolver(execution)
        if found is not None:
            return found
    return None


def execution_error_message(execution: ExecutionRecord) -> str | None:
    found = resolve_execution_error(execution)
    return found.message if found else None
