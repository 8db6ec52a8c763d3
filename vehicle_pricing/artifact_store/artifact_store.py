"""Artifact store for the model comparison outputs.

Persists everything a comparison run produces so it can be reloaded later:

    storage_path/
        recipe.pkl                  fitted feature recipe (pickle)
        model.joblib                final trained model (joblib)
        report.json                 selection and held-out metrics
        tuning/
            <family>/
                results.parquet     per (grid point, fold) metrics
                metadata.json
"""

from dataclasses import dataclass
import json
from pathlib import Path
import shutil
from typing import Any

import polars as pl

from vehicle_pricing.domain.entities import TuningResult
from vehicle_pricing.features.recipe import FittedRecipe
from vehicle_pricing.models.regressors import TrainedModel


RECIPE_FILE = "recipe.pkl"
MODEL_FILE = "model.joblib"
REPORT_FILE = "report.json"
TUNING_DIR = "tuning"


@dataclass
class ArtifactStore:
    """Directory-backed store for recipes, models, tuning tables and reports."""

    storage_path: Path

    def __post_init__(self) -> None:
        self.storage_path = Path(self.storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)

    def save_tuning_result(self, result: TuningResult) -> Path:
        """Save a family's tuning table to parquet with its metadata.

        Returns:
            Path to the saved parquet file
        """
        family_dir = self.storage_path / TUNING_DIR / result.family_name
        family_dir.mkdir(parents=True, exist_ok=True)

        parquet_path = family_dir / "results.parquet"
        result.metrics.write_parquet(parquet_path)

        with open(family_dir / "metadata.json", "w") as f:
            json.dump({
                "family_name": result.family_name,
                "parameter_names": result.parameter_names,
                "metric_names": result.metric_names,
                "n_rows": result.metrics.height,
                "n_failed": result.n_failed,
            }, f, indent=2)

        return parquet_path

    def load_tuning_result(self, family_name: str) -> TuningResult:
        """Load a family's tuning table.

        Raises:
            FileNotFoundError: If no tuning result was saved for the family
        """
        family_dir = self.storage_path / TUNING_DIR / family_name
        parquet_path = family_dir / "results.parquet"

        if not parquet_path.exists():
            raise FileNotFoundError(f"Tuning result '{family_name}' not found at {parquet_path}")

        with open(family_dir / "metadata.json") as f:
            metadata = json.load(f)

        return TuningResult(
            family_name=metadata["family_name"],
            parameter_names=metadata["parameter_names"],
            metric_names=metadata["metric_names"],
            metrics=pl.read_parquet(parquet_path),
        )

    def list_tuning_results(self) -> list[str]:
        """List the families with a saved tuning table."""
        tuning_dir = self.storage_path / TUNING_DIR
        if not tuning_dir.exists():
            return []
        return sorted(
            d.name for d in tuning_dir.iterdir()
            if d.is_dir() and (d / "results.parquet").exists()
        )

    def delete_tuning_result(self, family_name: str) -> bool:
        """Delete a family's tuning table.

        Returns:
            True if deleted, False if not found
        """
        family_dir = self.storage_path / TUNING_DIR / family_name
        if not family_dir.exists():
            return False
        shutil.rmtree(family_dir)
        return True

    def save_recipe(self, recipe: FittedRecipe) -> Path:
        path = self.storage_path / RECIPE_FILE
        recipe.save(path)
        return path

    def load_recipe(self) -> FittedRecipe:
        path = self.storage_path / RECIPE_FILE
        if not path.exists():
            raise FileNotFoundError(f"Recipe not found at {path}")
        return FittedRecipe.load(path)

    def save_model(self, model: TrainedModel) -> Path:
        path = self.storage_path / MODEL_FILE
        model.save(path)
        return path

    def load_model(self) -> TrainedModel:
        return TrainedModel.load(self.storage_path / MODEL_FILE)

    def save_report(self, report: dict[str, Any]) -> Path:
        """Save the evaluation report as JSON."""
        path = self.storage_path / REPORT_FILE
        with open(path, "w") as f:
            json.dump(report, f, indent=2, default=str)
        return path

    def load_report(self) -> dict[str, Any]:
        path = self.storage_path / REPORT_FILE
        if not path.exists():
            raise FileNotFoundError(f"Report not found at {path}")
        with open(path) as f:
            return json.load(f)
