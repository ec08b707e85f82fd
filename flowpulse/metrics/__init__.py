"""Execution aggregation, metrics and the insights dashboard."""

from flowpulse.metrics.aggregator import AggregationResult, ExecutionAggregator
from flowpulse.metrics.engine import DailyBucket, ExecutionMetrics, compute_metrics

__all__ = [
    "AggregationResult",
    "DailyBucket",
    "ExecutionAggregator",
    "ExecutionMetrics",
    "compute_metrics",
]
