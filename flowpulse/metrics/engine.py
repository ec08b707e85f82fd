"""Execution metrics over a trailing window of days.

Executions are classified with the same rule as the execution detail view
(core.status.execution_status). Running executions are reported separately
and are excluded from the failure rate.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from flowpulse.core.models import ExecutionRecord, ExecutionStatus
from flowpulse.core.status import execution_status

# Durations at or above this are treated as clock skew or stuck executions
MAX_RUN_TIME_MS = 3_600_000

WINDOW_CHOICES = (7, 14, 30)


@dataclass(frozen=True)
class DailyBucket:
    """Execution counts for one UTC calendar day."""

    date_key: str  # ISO date, e.g. "2024-05-01"
    success_count: int = 0
    failed_count: int = 0
    total_count: int = 0


@dataclass(frozen=True)
class ExecutionMetrics:
    """Summary of executions inside the window."""

    window_days: int
    total: int
    success: int
    failed: int
    running: int
    failure_rate: float
    avg_run_time_ms: float
    total_run_time_ms: float
    daily: tuple[DailyBucket, ...]

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 100.0
        return round(100.0 - self.failure_rate, 2)


def in_window(executions: Iterable[ExecutionRecord], days: int, now: datetime) -> list[ExecutionRecord]:
    """Executions started at or after ``now - days`` (no start time = excluded)."""
    lower = now - timedelta(days=days)
    return [e for e in executions if e.started_at is not None and e.started_at >= lower]


def day_keys(days: int, now: datetime) -> list[str]:
    """ISO dates of the window's days, oldest first, ending today (UTC)."""
    today = now.astimezone(UTC)
    return [(today - timedelta(days=i)).date().isoformat() for i in range(days - 1, -1, -1)]


def compute_metrics(
    executions: Iterable[ExecutionRecord],
    days: int,
    now: datetime | None = None,
) -> ExecutionMetrics:
    """Aggregate totals, failure rate, average run time and a daily series.

    Every day of the window gets a bucket, including days with no
    executions, so the series can be charted without gaps.
    """
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}")
    now = now or datetime.now(UTC)
    selected = in_window(executions, days, now)

    success = failed = running = 0
    run_time_total = 0.0
    timed = 0
    counts: dict[str, list[int]] = {key: [0, 0, 0] for key in day_keys(days, now)}

    for execution in selected:
        status = execution_status(execution)
        if status == ExecutionStatus.SUCCESS:
            success += 1
        elif status == ExecutionStatus.ERROR:
            failed += 1
        else:
            running += 1

        duration = execution.duration_ms
        if duration is not None and 0 < duration < MAX_RUN_TIME_MS:
            run_time_total += duration
            timed += 1

        bucket = counts.get(execution.started_at.astimezone(UTC).date().isoformat())
        if bucket is not None:
            if status == ExecutionStatus.SUCCESS:
                bucket[0] += 1
            elif status == ExecutionStatus.ERROR:
                bucket[1] += 1
            bucket[2] += 1

    total = success + failed
    failure_rate = round(failed / total * 100, 2) if total else 0.0

    return ExecutionMetrics(
        window_days=days,
        total=total,
        success=success,
        failed=failed,
        running=running,
        failure_rate=failure_rate,
        avg_run_time_ms=run_time_total / timed if timed else 0.0,
        total_run_time_ms=run_time_total,
        daily=tuple(
            DailyBucket(date_key=key, success_count=s, failed_count=f, total_count=t)
            for key, (s, f, t) in counts.items()
        ),
    )


def failure_bar_width(failure_rate: float) -> float:
    """Gauge fill in percent; the gauge tops out at a 20% failure rate."""
    return min(failure_rate * 5, 100.0)


def chart_max(daily: Iterable[DailyBucket]) -> int:
    """Tallest daily total, at least 1 so bar heights never divide by zero."""
    return max((b.total_count for b in daily), default=0) or 1
