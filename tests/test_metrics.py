import numpy as np
import pytest

from vehicle_pricing.metrics.metrics import (
    compute_all_metrics,
    compute_baseline_metrics,
    get_metric,
)


def test_standard_metrics():
    y_true = np.array([1.0, 2.0, 3.0, 4.0])
    y_pred = np.array([1.0, 2.0, 3.0, 6.0])

    metrics = compute_all_metrics(y_true, y_pred)

    assert metrics["rmse"] == pytest.approx(1.0)
    assert metrics["mae"] == pytest.approx(0.5)
    assert metrics["r2"] == pytest.approx(1 - 4 / 5)


def test_metric_direction():
    assert get_metric("r2").greater_is_better
    assert not get_metric("rmse").greater_is_better


def test_unknown_metric():
    with pytest.raises(ValueError, match="Unknown metric"):
        get_metric("mape")


def test_baseline_predicts_training_mean():
    baseline = compute_baseline_metrics(np.array([10.0, 20.0]), np.array([14.0, 16.0]))

    assert baseline["train_mean"] == 15.0
    assert baseline["baseline_mae"] == pytest.approx(5.0)
    assert baseline["baseline_r2"] == pytest.approx(0.0)
