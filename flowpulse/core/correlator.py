"""Correlate declared workflow nodes with one execution's run results.

Run data is keyed by node *name*, not node id. A node renamed after an
execution therefore shows as not executed for that execution; this is a
known limitation of the server's data model, not an error.
"""

import logging
from enum import Enum
from typing import Any

from flowpulse.core.models import ExecutionRecord, NodeRunResult, WorkflowDefinition
from flowpulse.core.utils import dig

logger = logging.getLogger(__name__)

RunData = dict[str, Any]


class RunDataSource(str, Enum):
    """Places an execution payload may carry its run data, in lookup order"""

    RESULT = "data.resultData.runData"
    NESTED_RESULT = "data.executionData.resultData.runData"
    LEGACY = "executionData.resultData.runData"


RUN_DATA_SOURCES: tuple[RunDataSource, ...] = (
    RunDataSource.RESULT,
    RunDataSource.NESTED_RESULT,
    RunDataSource.LEGACY,
)


def extract_run_data(execution: ExecutionRecord) -> RunData:
    """Return the node-name -> run history mapping of an execution.

    The first non-empty source wins; executions fetched without
    ``includeData`` yield an empty mapping.
    """
    payload = execution.payload()
    for source in RUN_DATA_SOURCES:
        run_data = dig(payload, *source.value.split("."))
        if isinstance(run_data, dict) and run_data:
            logger.debug("Execution %s: run data from %s", execution.id, source.value)
            return run_data
    return {}


def latest_run(entry: Any) -> NodeRunResult | None:
    """Pick the authoritative run from a node's history.

    When a node ran several times (retries, loops) the last entry is the
    most recent and wins. Single results are accepted as-is.
    """
    if entry is None:
        return None
    if isinstance(entry, list):
        if not entry:
            return None
        entry = entry[-1]
    if isinstance(entry, NodeRunResult):
        return entry
    if isinstance(entry, dict):
        return NodeRunResult.model_validate(entry)
    return None


def correlate(
    workflow: WorkflowDefinition,
    run_data: RunData,
) -> dict[str, NodeRunResult | None]:
    """Map every declared node to its latest run result (None = not executed).

    Order follows the workflow's node declaration order.
    """
    return {node.name: latest_run(run_data.get(node.name)) for node in workflow.nodes}
