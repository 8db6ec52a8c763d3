"""Domain entities for the vehicle price model comparison pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import numpy as np
import polars as pl


TARGET_COLUMN = "price"

CATEGORICAL_COLUMNS = [
    "manufacturer",
    "model_name",
    "color",
    "body_type",
    "transmission",
    "fuel_type",
]

NUMERIC_COLUMNS = [
    "registration_year",
    "mileage",
    "engine_size",
    "seat_count",
    "door_count",
    "advertisement_time",
]

LISTING_COLUMNS = CATEGORICAL_COLUMNS + NUMERIC_COLUMNS + [TARGET_COLUMN]


@dataclass(frozen=True)
class VehicleListing:
    """A single used-vehicle advertisement."""
    manufacturer: str
    model_name: str
    color: str
    registration_year: int
    body_type: str
    mileage: float
    engine_size: float
    transmission: str
    fuel_type: str
    seat_count: int
    door_count: int
    advertisement_time: float
    price: float | None = None

    def to_row(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in LISTING_COLUMNS}


@dataclass(frozen=True)
class DataSplit:
    """Disjoint train/test partition of the listings."""
    train: pl.DataFrame
    test: pl.DataFrame

    @property
    def n_train(self) -> int:
        return self.train.height

    @property
    def n_test(self) -> int:
        return self.test.height


@dataclass(frozen=True)
class Fold:
    """One cross-validation resample of the training partition."""
    repeat: int
    fold: int
    train_index: np.ndarray
    holdout_index: np.ndarray

    @property
    def fold_id(self) -> str:
        return f"Repeat{self.repeat}_Fold{self.fold:02d}"

    def __post_init__(self) -> None:
        if np.intersect1d(self.train_index, self.holdout_index).size:
            raise ValueError(f"{self.fold_id}: train and holdout rows overlap")


class SearchStatus(str, Enum):
    """Terminal state of a model family's hyperparameter search."""
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    DISABLED = "disabled"


@dataclass
class TuningResult:
    """Per-fold metrics for every grid point of one model family.

    ``metrics`` has one row per (grid point, fold) with the columns
    ``grid_id``, ``fold_id``, one column per hyperparameter, one column per
    metric and ``error`` (null unless the cell failed).
    """
    family_name: str
    parameter_names: list[str]
    metric_names: list[str]
    metrics: pl.DataFrame

    @property
    def n_failed(self) -> int:
        return self.metrics.filter(pl.col("error").is_not_null()).height

    def summarize(self) -> pl.DataFrame:
        """Aggregate fold metrics into mean, std and count per grid point.

        Failed cells are excluded. The order of the rows follows grid order.
        """
        ok = self.metrics.filter(pl.col("error").is_null())
        aggs = [pl.len().alias("n_folds")]
        for name in self.metric_names:
            aggs.append(pl.col(name).mean().alias(f"mean_{name}"))
            aggs.append(pl.col(name).std().alias(f"std_{name}"))
        return (
            ok.group_by(["grid_id"] + self.parameter_names)
            .agg(aggs)
            .sort("grid_id")
        )


@dataclass
class FamilySearchOutcome:
    """Result of searching one model family, successful or not."""
    family_name: str
    status: SearchStatus
    tuning_result: TuningResult | None = None
    best_params: dict[str, Any] | None = None
    best_score: float | None = None
    message: str | None = None

    @property
    def is_selectable(self) -> bool:
        return self.status == SearchStatus.COMPLETED and self.best_params is not None


@dataclass(frozen=True)
class ModelSelection:
    """Winning model family and hyperparameters across all searches."""
    family_name: str
    params: dict[str, Any]
    score: float
    metric_name: str


@dataclass
class PredictionResult:
    """Result of a price prediction."""
    predicted_price: float
    model_version: str | None = None


@dataclass
class EvaluationResult:
    """Comprehensive evaluation results for a model."""
    metrics: dict[str, float]
    predictions: np.ndarray
    actuals: np.ndarray
    model_name: str
    evaluation_timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)

    def summary(self) -> str:
        lines = [
            f"Evaluation Results for: {self.model_name}",
            f"Timestamp: {self.evaluation_timestamp}",
            "-" * 50,
        ]
        for metric_name, value in self.metrics.items():
            lines.append(f"{metric_name}: {value:.6f}")
        return "\n".join(lines)


@dataclass(frozen=True)
class TrainingConfig:
    """Configuration for splitting, resampling and the feature recipe."""
    train_fraction: float = 0.8
    n_folds: int = 10
    n_repeats: int = 3
    strata_bins: int = 4
    split_strata_bins: int = 4
    seed: int = 42
    rare_category_threshold: float = 1000
    one_hot: bool = False
    selection_metric: str = "rmse"
    n_jobs: int = 1
