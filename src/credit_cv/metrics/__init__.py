"""Metric scoring and aggregation."""

from .metrics_utils import (
    SUPPORTED_METRICS,
    MetricsConfig,
    MetricsConfigError,
    MetricSummary,
    aggregate_metrics,
    score_metrics,
)

__all__ = [
    "SUPPORTED_METRICS",
    "MetricsConfig",
    "MetricsConfigError",
    "MetricSummary",
    "aggregate_metrics",
    "score_metrics",
]
