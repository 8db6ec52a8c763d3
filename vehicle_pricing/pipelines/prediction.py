"""Prediction pipeline for used-vehicle prices.

Loads the fitted recipe and final model saved by a comparison run and
predicts prices for new listings. Unseen categories go through the recipe's
novel/other fallback, so any listing with the full set of fields can be
priced.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import polars as pl

from vehicle_pricing.artifact_store.artifact_store import ArtifactStore
from vehicle_pricing.domain.entities import PredictionResult, VehicleListing
from vehicle_pricing.features.dataset import cast_listing_types
from vehicle_pricing.features.recipe import FittedRecipe
from vehicle_pricing.models.regressors import TrainedModel
from vehicle_pricing.pipelines.config import load_config


@dataclass
class PredictionPipeline:
    """Pipeline for generating price predictions."""

    artifacts_dir: Path

    _recipe: FittedRecipe | None = field(default=None, init=False)
    _model: TrainedModel | None = field(default=None, init=False)
    _is_loaded: bool = field(default=False, init=False)

    def load(self) -> "PredictionPipeline":
        """Load the recipe and model from the artifacts directory.

        Returns:
            self for method chaining
        """
        store = ArtifactStore(Path(self.artifacts_dir))
        self._recipe = store.load_recipe()
        self._model = store.load_model()
        self._is_loaded = True
        return self

    @property
    def model_version(self) -> str:
        if not self._is_loaded:
            raise RuntimeError("Pipeline must be loaded first")
        return self._model.model_name

    def predict_frame(self, listings: pl.DataFrame) -> np.ndarray:
        """Predict prices for a DataFrame of listings."""
        if not self._is_loaded:
            raise RuntimeError("Pipeline must be loaded before prediction")
        if listings.is_empty():
            return np.array([], dtype=float)

        data = cast_listing_types(listings, require_target=False)
        return self._model.predict(self._recipe.to_matrix(data))

    def predict(self, listing: VehicleListing | dict[str, Any]) -> PredictionResult:
        """Predict the price of a single listing."""
        return self.predict_batch([listing])[0]

    def predict_batch(
        self,
        listings: list[VehicleListing | dict[str, Any]],
    ) -> list[PredictionResult]:
        """Predict prices for multiple listings."""
        rows = [
            listing.to_row() if isinstance(listing, VehicleListing) else dict(listing)
            for listing in listings
        ]
        if not rows:
            return []

        predictions = self.predict_frame(pl.DataFrame(rows))
        version = self.model_version
        return [
            PredictionResult(predicted_price=float(p), model_version=version)
            for p in predictions
        ]


def create_prediction_pipeline(artifacts_dir: Path | str = "artifacts") -> PredictionPipeline:
    """Create and load a prediction pipeline from artifacts."""
    return PredictionPipeline(artifacts_dir=Path(artifacts_dir)).load()


def create_prediction_pipeline_from_config(
    config_path: Path | str = "pipeline_config.yml",
) -> PredictionPipeline:
    """Create a prediction pipeline using paths from a YAML config."""
    config = load_config(config_path)
    return create_prediction_pipeline(config.paths.output_dir)
