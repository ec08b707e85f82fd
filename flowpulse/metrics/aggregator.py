"""Execution aggregation across cursor pages.

Pages are fetched one after another; the loop stops when the server returns
no cursor or when MAX_PAGES pages have been read. The cap bounds memory and
protects against a server that keeps returning cursors forever.

Any failing page aborts the whole aggregation: partial results would silently
under-report metrics, so they are discarded and the page's error propagates.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

from flowpulse.core.models import ExecutionPage, ExecutionRecord

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class ExecutionPageSource(Protocol):
    """Anything that serves executions page by page (e.g. DataProvider)."""

    async def list_executions(
        self,
        workflow_id: str | None = None,
        limit: int = 100,
        cursor: str | None = None,
    ) -> ExecutionPage: ...


@dataclass
class AggregationResult:
    """Everything collected by one aggregation run."""

    executions: list[ExecutionRecord]
    pages: int
    truncated: bool  # True when MAX_PAGES stopped the loop with a cursor pending

    @property
    def count(self) -> int:
        return len(self.executions)


class ExecutionAggregator:
    """Collect every execution of a workflow (or of all workflows).

    USAGE:
        aggregator = ExecutionAggregator(provider)
        result = await aggregator.collect(on_progress=lambda n: print(n))
        metrics = compute_metrics(result.executions, days=7)
    """

    PAGE_SIZE = 250  # Server maximum per page
    MAX_PAGES = 20  # Safety cap: 20 * 250 = 5000 executions

    def __init__(
        self,
        source: ExecutionPageSource,
        page_size: int | None = None,
        max_pages: int | None = None,
    ):
        self.source = source
        self.page_size = page_size or self.PAGE_SIZE
        self.max_pages = max_pages or self.MAX_PAGES

    async def collect(
        self,
        workflow_id: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> AggregationResult:
        """Fetch all pages and return the combined executions.

        Args:
            workflow_id: Restrict to one workflow (None = all workflows)
            on_progress: Called after every page with the cumulative count

        Raises:
            Whatever the page source raises; nothing is returned in that case
        """
        collected: list[ExecutionRecord] = []
        cursor: str | None = None
        pages = 0

        while True:
            page = await self.source.list_executions(
                workflow_id=workflow_id,
                limit=self.page_size,
                cursor=cursor,
            )
            collected.extend(page.executions)
            cursor = page.next_cursor
            pages += 1
            logger.debug("Page %d: %d executions (total %d)", pages, len(page.executions), len(collected))

            if on_progress is not None:
                on_progress(len(collected))

            if not cursor:
                break
            if pages >= self.max_pages:
                logger.warning(
                    "Stopped after %d pages (%d executions); older executions were not loaded",
                    pages,
                    len(collected),
                )
                break

        return AggregationResult(
            executions=collected,
            pages=pages,
            truncated=bool(cursor),
        )
