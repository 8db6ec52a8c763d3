import polars as pl
import pytest

from vehicle_pricing.artifact_store.artifact_store import ArtifactStore
from vehicle_pricing.domain.entities import TuningResult


@pytest.fixture
def tuning_result():
    return TuningResult(
        family_name="knn",
        parameter_names=["neighbors"],
        metric_names=["rmse"],
        metrics=pl.DataFrame(
            {
                "grid_id": [0, 0, 1, 1],
                "fold_id": ["Repeat1_Fold01", "Repeat1_Fold02"] * 2,
                "neighbors": [3, 3, 9, 9],
                "rmse": [10.0, 12.0, None, 8.0],
                "error": [None, None, "ValueError: boom", None],
            },
            schema_overrides={"error": pl.String},
        ),
    )


def test_tuning_result_round_trip(tmp_path, tuning_result):
    store = ArtifactStore(tmp_path)

    store.save_tuning_result(tuning_result)
    loaded = store.load_tuning_result("knn")

    assert loaded.parameter_names == ["neighbors"]
    assert loaded.metrics.equals(tuning_result.metrics)
    assert loaded.n_failed == 1


def test_summarize_excludes_failed_cells(tuning_result):
    summary = tuning_result.summarize()

    assert summary["n_folds"].to_list() == [2, 1]
    assert summary["mean_rmse"].to_list() == [11.0, 8.0]


def test_list_and_delete(tmp_path, tuning_result):
    store = ArtifactStore(tmp_path)
    store.save_tuning_result(tuning_result)

    assert store.list_tuning_results() == ["knn"]
    assert store.delete_tuning_result("knn")
    assert not store.delete_tuning_result("knn")
    assert store.list_tuning_results() == []


def test_missing_artifacts_raise(tmp_path):
    store = ArtifactStore(tmp_path)

    with pytest.raises(FileNotFoundError):
        store.load_tuning_result("lasso")
    with pytest.raises(FileNotFoundError):
        store.load_recipe()
    with pytest.raises(FileNotFoundError):
        store.load_model()
    with pytest.raises(FileNotFoundError):
        store.load_report()


def test_report_round_trip(tmp_path):
    store = ArtifactStore(tmp_path)

    store.save_report({"selection": {"family": "lasso", "cv_score": 1.5}})

    assert store.load_report()["selection"]["cv_score"] == 1.5
