import numpy as np
import pytest

from vehicle_pricing.domain.protocols import IModelFamily, ITrainedModel
from vehicle_pricing.models.regressors import (
    LassoFamily,
    NearestNeighborsFamily,
    RandomForestFamily,
    SupportVectorFamily,
    TrainedModel,
    available_families,
    get_family,
)


@pytest.fixture
def two_clusters():
    """Cheap cars around the origin, expensive ones around (10, 10)."""
    rng = np.random.default_rng(4)
    X = np.vstack([
        rng.normal(0, 0.5, size=(50, 2)),
        rng.normal(10, 0.5, size=(50, 2)),
    ])
    y = np.concatenate([
        rng.uniform(1_000, 2_000, size=50),
        rng.uniform(40_000, 50_000, size=50),
    ])
    return X, y


def test_knn_predicts_within_matching_cluster(two_clusters):
    X, y = two_clusters
    family = NearestNeighborsFamily()
    model = family.fit(X, y, {"neighbors": 5})

    pred = family.predict(model, np.array([[0.1, -0.2], [9.8, 10.3]]))

    assert 1_000 <= pred[0] <= 2_000
    assert 40_000 <= pred[1] <= 50_000


def test_knn_neighbors_clamped_to_sample_count():
    X = np.arange(8, dtype=float).reshape(4, 2)
    y = np.array([1.0, 2.0, 3.0, 4.0])
    family = NearestNeighborsFamily()

    model = family.fit(X, y, {"neighbors": 30})

    assert model.estimator.n_neighbors == 4
    assert family.predict(model, X) == pytest.approx([2.5] * 4)


def test_random_forest_mtry_clamped_to_feature_count(two_clusters):
    X, y = two_clusters
    model = RandomForestFamily(random_state=0).fit(X, y, {"trees": 10, "mtry": 30, "min_n": 2})

    assert model.estimator.max_features == 2
    assert model.estimator.min_samples_leaf == 2


def test_random_forest_is_seeded(two_clusters):
    X, y = two_clusters
    params = {"trees": 10, "mtry": 1, "min_n": 2}

    first = RandomForestFamily(random_state=3).fit(X, y, params).predict(X)
    second = RandomForestFamily(random_state=3).fit(X, y, params).predict(X)

    np.testing.assert_array_equal(first, second)


def test_lasso_recovers_linear_signal():
    rng = np.random.default_rng(2)
    X = rng.normal(size=(200, 3))
    y = 3.0 * X[:, 0] - 2.0 * X[:, 1] + rng.normal(0, 0.01, size=200)

    model = LassoFamily().fit(X, y, {"penalty": 0.001})

    np.testing.assert_allclose(model.estimator.coef_, [3.0, -2.0, 0.0], atol=0.05)


def test_svm_uses_cost_and_margin():
    estimator = SupportVectorFamily().build_estimator({"cost": 4.0, "margin": 0.2}, 10, 2)

    assert estimator.C == 4.0
    assert estimator.epsilon == 0.2
    assert estimator.kernel == "rbf"


def test_simplicity_keys_order_simpler_first():
    assert LassoFamily().simplicity_key({"penalty": 10.0}) < LassoFamily().simplicity_key({"penalty": 0.1})
    assert NearestNeighborsFamily().simplicity_key({"neighbors": 20}) < NearestNeighborsFamily().simplicity_key({"neighbors": 2})
    assert SupportVectorFamily().simplicity_key({"cost": 0.25}) < SupportVectorFamily().simplicity_key({"cost": 32.0})


def test_families_satisfy_protocols(two_clusters):
    X, y = two_clusters
    for name in available_families():
        family = get_family(name)
        assert isinstance(family, IModelFamily)
    assert isinstance(LassoFamily().fit(X, y, {"penalty": 1.0}), ITrainedModel)


def test_get_family_unknown_name():
    with pytest.raises(ValueError, match="Unknown model family"):
        get_family("xgboost")


def test_predict_rejects_model_from_other_family(two_clusters):
    X, y = two_clusters
    model = LassoFamily().fit(X, y, {"penalty": 1.0})

    with pytest.raises(ValueError):
        NearestNeighborsFamily().predict(model, X)


def test_model_name_encodes_params(two_clusters):
    X, y = two_clusters
    model = NearestNeighborsFamily().fit(X, y, {"neighbors": 5})

    assert model.model_name == "knn_neighbors5"


def test_trained_model_save_and_load(tmp_path, two_clusters):
    X, y = two_clusters
    model = LassoFamily().fit(X, y, {"penalty": 1.0}, feature_names=["a", "b"])
    path = tmp_path / "model.joblib"

    model.save(path)
    loaded = TrainedModel.load(path)

    assert loaded.family_name == "lasso"
    assert loaded.feature_names == ["a", "b"]
    np.testing.assert_array_equal(loaded.predict(X), model.predict(X))


def test_trained_model_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        TrainedModel.load(tmp_path / "missing.joblib")
