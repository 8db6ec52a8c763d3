"""Metric implementations for price model evaluation.

Provides the regression metrics used to tune and compare model families
(RMSE, R2, MAE) and a mean-predictor baseline.
"""

from dataclasses import dataclass

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score


@dataclass(frozen=True)
class RMSEMetric:
    """Root Mean Squared Error metric."""

    @property
    def name(self) -> str:
        return "rmse"

    @property
    def greater_is_better(self) -> bool:
        return False

    def compute(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        return float(np.sqrt(mean_squared_error(y_true, y_pred)))


@dataclass(frozen=True)
class R2Metric:
    """R-squared (coefficient of determination) metric."""

    @property
    def name(self) -> str:
        return "r2"

    @property
    def greater_is_better(self) -> bool:
        return True

    def compute(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        return float(r2_score(y_true, y_pred))


@dataclass(frozen=True)
class MAEMetric:
    """Mean Absolute Error metric."""

    @property
    def name(self) -> str:
        return "mae"

    @property
    def greater_is_better(self) -> bool:
        return False

    def compute(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        return float(mean_absolute_error(y_true, y_pred))


_METRICS = {
    "rmse": RMSEMetric,
    "r2": R2Metric,
    "mae": MAEMetric,
}


def get_metric(name: str):
    """Look up a metric instance by name."""
    try:
        return _METRICS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown metric '{name}'. Available: {sorted(_METRICS)}"
        ) from None


def create_standard_metrics() -> list:
    """Create the list of metrics computed for every fold and final evaluation."""
    return [
        RMSEMetric(),
        R2Metric(),
        MAEMetric(),
    ]


def compute_all_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    metrics: list | None = None,
) -> dict[str, float]:
    """Compute all specified metrics.

    Args:
        y_true: Actual values
        y_pred: Predicted values
        metrics: List of metric instances. If None, uses standard metrics.

    Returns:
        Dictionary mapping metric names to computed values
    """
    if metrics is None:
        metrics = create_standard_metrics()

    return {metric.name: metric.compute(y_true, y_pred) for metric in metrics}


def compute_baseline_metrics(
    y_test: np.ndarray,
    y_train: np.ndarray,
) -> dict[str, float]:
    """Compute baseline metrics (predict the training mean price).

    Useful for comparison against trained model performance.
    """
    train_mean = float(np.mean(y_train))
    baseline_pred = np.full(len(y_test), train_mean, dtype=float)

    return {
        "baseline_mae": float(mean_absolute_error(y_test, baseline_pred)),
        "baseline_rmse": float(np.sqrt(mean_squared_error(y_test, baseline_pred))),
        "baseline_r2": float(r2_score(y_test, baseline_pred)),
        "train_mean": train_mean,
    }
