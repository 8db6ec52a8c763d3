"""Evaluation of the selected price model.

Provides:
- Final evaluation: refit the winning configuration on the whole training
  partition and score it once on the held-out test partition
- Re-evaluation of persisted artifacts on new labelled listings
- A plain-text evaluation report
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import numpy as np
import polars as pl

from vehicle_pricing.artifact_store.artifact_store import ArtifactStore
from vehicle_pricing.domain.entities import DataSplit, EvaluationResult, ModelSelection
from vehicle_pricing.domain.protocols import IMetric, IModelFamily
from vehicle_pricing.features.recipe import FittedRecipe, Recipe
from vehicle_pricing.metrics.metrics import (
    compute_all_metrics,
    compute_baseline_metrics,
    create_standard_metrics,
)
from vehicle_pricing.models.regressors import TrainedModel


@dataclass
class FinalEvaluation:
    """Artifacts produced by the final refit."""
    recipe: FittedRecipe
    model: TrainedModel
    result: EvaluationResult


def evaluate_final(
    family: IModelFamily,
    selection: ModelSelection,
    recipe: Recipe,
    split: DataSplit,
    metrics: list[IMetric] | None = None,
) -> FinalEvaluation:
    """Refit the winning configuration on all training rows and score the test set.

    The recipe is fitted on the training partition only; the test partition
    is transformed with that fitted recipe.
    """
    if metrics is None:
        metrics = create_standard_metrics()

    fitted_recipe = recipe.fit(split.train)
    X_train = fitted_recipe.to_matrix(split.train)
    y_train = fitted_recipe.outcome_values(split.train)

    model = family.fit(X_train, y_train, selection.params)
    model.feature_names = list(fitted_recipe.feature_columns)

    X_test = fitted_recipe.to_matrix(split.test)
    y_test = fitted_recipe.outcome_values(split.test)
    y_pred = family.predict(model, X_test)

    metrics_results = compute_all_metrics(y_test, y_pred, metrics)
    metrics_results.update(compute_baseline_metrics(y_test, y_train))

    result = EvaluationResult(
        metrics=metrics_results,
        predictions=y_pred,
        actuals=y_test,
        model_name=model.model_name,
        metadata={
            "family": selection.family_name,
            "params": dict(selection.params),
            "cv_metric": selection.metric_name,
            "cv_score": selection.score,
            "train_samples": split.n_train,
            "test_samples": split.n_test,
            "n_features": fitted_recipe.n_features,
        },
    )
    return FinalEvaluation(recipe=fitted_recipe, model=model, result=result)


@dataclass
class EvaluationPipeline:
    """Evaluates persisted artifacts on labelled listings."""

    artifacts_dir: Path | None = None

    _recipe: FittedRecipe | None = field(default=None, init=False)
    _model: TrainedModel | None = field(default=None, init=False)
    _is_loaded: bool = field(default=False, init=False)

    def load(
        self,
        recipe: FittedRecipe | None = None,
        model: TrainedModel | None = None,
    ) -> "EvaluationPipeline":
        """Load or set the recipe and model for evaluation.

        Returns:
            self for method chaining
        """
        if recipe is not None and model is not None:
            self._recipe, self._model = recipe, model
        elif self.artifacts_dir is not None:
            store = ArtifactStore(Path(self.artifacts_dir))
            self._recipe = store.load_recipe()
            self._model = store.load_model()
        else:
            raise ValueError("Either recipe and model or artifacts_dir must be provided")

        self._is_loaded = True
        return self

    def evaluate(
        self,
        listings: pl.DataFrame,
        metrics: list[IMetric] | None = None,
        y_train: np.ndarray | None = None,
    ) -> EvaluationResult:
        """Evaluate the model on labelled listings.

        Args:
            listings: Listings including the price column
            metrics: List of metrics to compute (uses standard if None)
            y_train: Optional training prices for baseline comparison
        """
        if not self._is_loaded:
            raise RuntimeError("Pipeline must be loaded before evaluation")

        if metrics is None:
            metrics = create_standard_metrics()

        y_true = self._recipe.outcome_values(listings)
        y_pred = self._model.predict(self._recipe.to_matrix(listings))

        metrics_results = compute_all_metrics(y_true, y_pred, metrics)
        if y_train is not None:
            metrics_results.update(compute_baseline_metrics(y_true, y_train))

        return EvaluationResult(
            metrics=metrics_results,
            predictions=y_pred,
            actuals=y_true,
            model_name=self._model.model_name,
            metadata={"n_samples": len(y_true)},
        )

    def generate_report(self, listings: pl.DataFrame) -> str:
        """Generate an evaluation report including per-price-band errors."""
        result = self.evaluate(listings)

        lines = [
            "=" * 70,
            "PRICE MODEL EVALUATION REPORT",
            f"Model: {result.model_name}",
            f"Timestamp: {datetime.now().isoformat()}",
            "=" * 70,
            "",
            "## Overall Performance",
            "-" * 50,
        ]
        for metric_name, value in result.metrics.items():
            lines.append(f"{metric_name}: {value:.4f}")

        lines.extend([
            "",
            "## Error by Price Quartile",
            "-" * 50,
            f"{'Band':<24} {'Count':>8} {'MAE':>12} {'Mean price':>12}",
        ])
        edges = np.quantile(result.actuals, [0.25, 0.5, 0.75])
        bands = np.searchsorted(edges, result.actuals, side="right")
        for band in range(4):
            mask = bands == band
            if not np.any(mask):
                continue
            low = result.actuals[mask].min()
            high = result.actuals[mask].max()
            mae = float(np.mean(np.abs(result.actuals[mask] - result.predictions[mask])))
            label = f"{low:,.0f} - {high:,.0f}"
            lines.append(
                f"{label:<24} {int(mask.sum()):>8,} {mae:>12,.2f} {result.actuals[mask].mean():>12,.2f}"
            )

        lines.append("=" * 70)
        return "\n".join(lines)
