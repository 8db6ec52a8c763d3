"""Protocol interfaces for the model comparison pipeline components."""

from typing import Protocol, runtime_checkable, Any

import numpy as np
import polars as pl


@runtime_checkable
class ITrainedModel(Protocol):
    """A fitted estimator together with the settings that produced it."""

    @property
    def family_name(self) -> str:
        ...

    @property
    def params(self) -> dict[str, Any]:
        ...


@runtime_checkable
class IModelFamily(Protocol):
    """Interface for a tunable regression model family.

    The search code is written against this interface only; the numerical
    fitting itself lives in the wrapped library estimator.
    """

    @property
    def name(self) -> str:
        """Return the family's identifier."""
        ...

    def fit(self, X: np.ndarray, y: np.ndarray, params: dict[str, Any]) -> ITrainedModel:
        """Train a model with one grid point of hyperparameters."""
        ...

    def predict(self, trained: ITrainedModel, X: np.ndarray) -> np.ndarray:
        """Generate predictions for input features."""
        ...

    def simplicity_key(self, params: dict[str, Any]) -> tuple:
        """Sort key where smaller means a simpler model; used to break ties."""
        ...


@runtime_checkable
class IRecipeStep(Protocol):
    """A single stateful column transformation of the feature recipe.

    ``fit`` learns parameters from training rows and returns a fitted copy;
    ``apply`` reuses those parameters without refitting.
    """

    @property
    def name(self) -> str:
        ...

    def fit(self, df: pl.DataFrame) -> "IRecipeStep":
        ...

    def apply(self, df: pl.DataFrame) -> pl.DataFrame:
        ...


@runtime_checkable
class IMetric(Protocol):
    """Interface for evaluation metrics."""

    @property
    def name(self) -> str:
        """Return the metric's identifier."""
        ...

    @property
    def greater_is_better(self) -> bool:
        """Whether larger values indicate a better model."""
        ...

    def compute(self, y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """Compute the metric value."""
        ...

