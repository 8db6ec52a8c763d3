"""Metrics module for model evaluation."""

from .metrics import (
    RMSEMetric,
    R2Metric,
    MAEMetric,
    get_metric,
    compute_all_metrics,
    compute_baseline_metrics,
    create_standard_metrics,
)

__all__ = [
    "RMSEMetric",
    "R2Metric",
    "MAEMetric",
    "get_metric",
    "compute_all_metrics",
    "compute_baseline_metrics",
    "create_standard_metrics",
]
