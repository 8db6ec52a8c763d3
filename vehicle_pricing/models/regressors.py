"""Regression model families used in the price comparison.

Each family wraps a scikit-learn estimator behind the ``IModelFamily``
interface: it turns one grid point into an estimator, fits it and predicts.
Hyperparameters use the tidymodels names:

- lasso: ``penalty``
- random_forest: ``trees``, ``mtry``, ``min_n``
- knn: ``neighbors``
- svm: ``cost`` (optional ``margin``)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar

import joblib
import numpy as np
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import Lasso
from sklearn.neighbors import KNeighborsRegressor
from sklearn.svm import SVR


@dataclass
class TrainedModel:
    """A fitted estimator with the family and grid point that produced it."""

    family_name: str
    params: dict[str, Any]
    estimator: Any
    feature_names: list[str] | None = None

    @property
    def model_name(self) -> str:
        settings = "_".join(f"{k}{v:g}" if isinstance(v, float) else f"{k}{v}" for k, v in self.params.items())
        return f"{self.family_name}_{settings}" if settings else self.family_name

    def predict(self, X: np.ndarray) -> np.ndarray:
        return np.asarray(self.estimator.predict(X), dtype=float)

    def save(self, path: Path) -> None:
        """Persist the trained model with joblib."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(self, path)

    @classmethod
    def load(cls, path: Path) -> "TrainedModel":
        """Load a model saved with ``save``."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Model file not found: {path}")
        model = joblib.load(path)
        if not isinstance(model, cls):
            raise TypeError(f"{path} does not contain a trained model")
        return model


@dataclass(frozen=True)
class SklearnFamily:
    """Shared fit/predict plumbing for scikit-learn backed families."""

    name: ClassVar[str] = "base"

    def build_estimator(self, params: dict[str, Any], n_samples: int, n_features: int) -> Any:
        raise NotImplementedError

    def simplicity_key(self, params: dict[str, Any]) -> tuple:
        return ()

    def fit(
        self,
        X: np.ndarray,
        y: np.ndarray,
        params: dict[str, Any],
        feature_names: list[str] | None = None,
    ) -> TrainedModel:
        estimator = self.build_estimator(params, X.shape[0], X.shape[1])
        estimator.fit(X, y)
        return TrainedModel(
            family_name=self.name,
            params=dict(params),
            estimator=estimator,
            feature_names=feature_names,
        )

    def predict(self, trained: TrainedModel, X: np.ndarray) -> np.ndarray:
        if trained.family_name != self.name:
            raise ValueError(f"Model from family '{trained.family_name}' passed to '{self.name}'")
        return trained.predict(X)


@dataclass(frozen=True)
class LassoFamily(SklearnFamily):
    """L1-penalized linear regression."""

    name: ClassVar[str] = "lasso"

    max_iter: int = 10000
    tol: float = 1e-4

    def build_estimator(self, params: dict[str, Any], n_samples: int, n_features: int) -> Lasso:
        return Lasso(alpha=float(params["penalty"]), max_iter=self.max_iter, tol=self.tol)

    def simplicity_key(self, params: dict[str, Any]) -> tuple:
        # more regularization is simpler
        return (-float(params["penalty"]),)


@dataclass(frozen=True)
class RandomForestFamily(SklearnFamily):
    """Random forest regression.

    ``mtry`` is the number of predictors sampled at each split and is clamped
    to the available feature count.
    """

    name: ClassVar[str] = "random_forest"

    random_state: int = 42

    def build_estimator(self, params: dict[str, Any], n_samples: int, n_features: int) -> RandomForestRegressor:
        mtry = min(max(int(params.get("mtry", n_features)), 1), n_features)
        return RandomForestRegressor(
            n_estimators=int(params.get("trees", 500)),
            max_features=mtry,
            min_samples_leaf=int(params.get("min_n", 5)),
            random_state=self.random_state,
            n_jobs=1,
        )

    def simplicity_key(self, params: dict[str, Any]) -> tuple:
        return (
            int(params.get("trees", 500)),
            int(params.get("mtry", 0)),
            -int(params.get("min_n", 5)),
        )


@dataclass(frozen=True)
class NearestNeighborsFamily(SklearnFamily):
    """k-nearest-neighbours regression."""

    name: ClassVar[str] = "knn"

    weights: str = "uniform"

    def build_estimator(self, params: dict[str, Any], n_samples: int, n_features: int) -> KNeighborsRegressor:
        k = min(int(params["neighbors"]), n_samples)
        return KNeighborsRegressor(n_neighbors=k, weights=self.weights)

    def simplicity_key(self, params: dict[str, Any]) -> tuple:
        # more neighbours gives a smoother fit
        return (-int(params["neighbors"]),)


@dataclass(frozen=True)
class SupportVectorFamily(SklearnFamily):
    """Radial basis function support vector regression."""

    name: ClassVar[str] = "svm"

    kernel: str = "rbf"
    cache_size: float = 500

    def build_estimator(self, params: dict[str, Any], n_samples: int, n_features: int) -> SVR:
        return SVR(
            kernel=self.kernel,
            C=float(params["cost"]),
            epsilon=float(params.get("margin", 0.1)),
            cache_size=self.cache_size,
        )

    def simplicity_key(self, params: dict[str, Any]) -> tuple:
        return (float(params["cost"]),)


_FAMILIES: dict[str, type[SklearnFamily]] = {
    LassoFamily.name: LassoFamily,
    RandomForestFamily.name: RandomForestFamily,
    NearestNeighborsFamily.name: NearestNeighborsFamily,
    SupportVectorFamily.name: SupportVectorFamily,
}


def available_families() -> list[str]:
    return list(_FAMILIES)


def get_family(name: str, **kwargs: Any) -> SklearnFamily:
    """Instantiate a model family by name."""
    try:
        family_cls = _FAMILIES[name]
    except KeyError:
        raise ValueError(f"Unknown model family '{name}'. Available: {available_families()}") from None
    return family_cls(**kwargs)
