"""Filtering and counting for workflow and execution lists."""

from collections.abc import Iterable
from datetime import date
from enum import Enum

from flowpulse.core.models import ExecutionRecord, ExecutionStatus, WorkflowDefinition
from flowpulse.core.status import execution_status


class WorkflowFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"


class ExecutionFilter(str, Enum):
    ALL = "all"
    SUCCESS = "success"
    ERROR = "error"


def filter_workflows(
    workflows: Iterable[WorkflowDefinition],
    state: WorkflowFilter = WorkflowFilter.ALL,
    query: str | None = None,
) -> list[WorkflowDefinition]:
    """Filter by active state and a case-insensitive name substring."""
    needle = (query or "").strip().lower()
    selected = []
    for workflow in workflows:
        if state == WorkflowFilter.ACTIVE and not workflow.active:
            continue
        if state == WorkflowFilter.INACTIVE and workflow.active:
            continue
        if needle and needle not in (workflow.name or "").lower():
            continue
        selected.append(workflow)
    return selected


def count_workflows(workflows: Iterable[WorkflowDefinition]) -> tuple[int, int]:
    """Return (active, inactive) counts."""
    active = inactive = 0
    for workflow in workflows:
        if workflow.active:
            active += 1
        else:
            inactive += 1
    return active, inactive


def filter_executions(
    executions: Iterable[ExecutionRecord],
    status: ExecutionFilter = ExecutionFilter.ALL,
    on_date: date | None = None,
) -> list[ExecutionRecord]:
    """Filter by derived status and by UTC start day."""
    selected = []
    for execution in executions:
        derived = execution_status(execution)
        if status == ExecutionFilter.SUCCESS and derived != ExecutionStatus.SUCCESS:
            continue
        if status == ExecutionFilter.ERROR and derived != ExecutionStatus.ERROR:
            continue
        if on_date is not None:
            if execution.started_at is None or execution.started_at.date() != on_date:
                continue
        selected.append(execution)
    return selected


def count_executions(executions: Iterable[ExecutionRecord]) -> tuple[int, int]:
    """Return (success, error) counts; running executions count in neither."""
    success = error = 0
    for execution in executions:
        derived = execution_status(execution)
        if derived == ExecutionStatus.SUCCESS:
            success += 1
        elif derived == ExecutionStatus.ERROR:
            error += 1
    return success, error
