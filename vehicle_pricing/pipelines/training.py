"""Model comparison pipeline for used-vehicle prices.

Orchestrates the complete workflow:
1. Zero-mileage filtering
2. Stratified train/test split
3. Repeated stratified k-fold resampling
4. Hyperparameter search per model family
5. Model selection
6. Final evaluation on the test partition
7. Artifact persistence
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path

import polars as pl

from vehicle_pricing.artifact_store.artifact_store import ArtifactStore
from vehicle_pricing.domain.entities import (
    EvaluationResult,
    FamilySearchOutcome,
    ModelSelection,
    SearchStatus,
    TARGET_COLUMN,
    TrainingConfig,
)
from vehicle_pricing.domain.protocols import IModelFamily
from vehicle_pricing.features.dataset import filter_non_positive_mileage, load_listings
from vehicle_pricing.features.recipe import Recipe, build_recipe
from vehicle_pricing.features.resampling import create_folds, stratified_split
from vehicle_pricing.metrics.metrics import create_standard_metrics, get_metric
from vehicle_pricing.models.grids import HyperparameterGrid
from vehicle_pricing.models.regressors import get_family
from vehicle_pricing.pipelines.config import (
    ModelFamilyConfig,
    PipelineConfig,
    get_default_config,
    load_config,
)
from vehicle_pricing.pipelines.evaluation import FinalEvaluation, evaluate_final
from vehicle_pricing.pipelines.search import prepare_folds, search_family, select_model


logger = logging.getLogger(__name__)


@dataclass
class FamilyPlan:
    """A model family with its grid and search budget."""
    family: IModelFamily
    grid: HyperparameterGrid
    enabled: bool = True
    timeout_seconds: float | None = None


def plans_from_config(
    families: dict[str, ModelFamilyConfig],
    seed: int = 42,
) -> list[FamilyPlan]:
    """Turn the ``families`` config section into search plans."""
    plans = []
    for name, family_config in families.items():
        kwargs = {"random_state": seed} if name == "random_forest" else {}
        plans.append(
            FamilyPlan(
                family=get_family(name, **kwargs),
                grid=family_config.build_grid(),
                enabled=family_config.enabled,
                timeout_seconds=family_config.timeout_seconds,
            )
        )
    return plans


@dataclass
class ComparisonResult:
    """Everything a comparison run produced."""
    outcomes: list[FamilySearchOutcome]
    selection: ModelSelection
    final: FinalEvaluation
    n_excluded: int = 0

    @property
    def evaluation(self) -> EvaluationResult:
        return self.final.result

    def summary(self) -> str:
        lines = ["Model family search:"]
        for outcome in self.outcomes:
            if outcome.status == SearchStatus.COMPLETED:
                lines.append(
                    f"  {outcome.family_name:<15} {self.selection.metric_name}={outcome.best_score:.4f} "
                    f"params={outcome.best_params}"
                )
            else:
                reason = f" ({outcome.message})" if outcome.message else ""
                lines.append(f"  {outcome.family_name:<15} {outcome.status.value}{reason}")
        lines.append(f"Selected: {self.selection.family_name} {self.selection.params}")
        lines.append(self.evaluation.summary())
        return "\n".join(lines)

    def to_report(self) -> dict:
        return {
            "selection": {
                "family": self.selection.family_name,
                "params": self.selection.params,
                "metric": self.selection.metric_name,
                "cv_score": self.selection.score,
            },
            "families": [
                {
                    "family": o.family_name,
                    "status": o.status.value,
                    "best_params": o.best_params,
                    "best_score": o.best_score,
                    "message": o.message,
                }
                for o in self.outcomes
            ],
            "test_metrics": self.evaluation.metrics,
            "excluded_rows": self.n_excluded,
            "metadata": self.evaluation.metadata,
        }


@dataclass
class ModelComparisonPipeline:
    """Pipeline that tunes, compares and evaluates the price model families.

    Handles the complete workflow including filtering, splitting, resampling,
    grid search per family, selection and final held-out evaluation.
    """

    plans: list[FamilyPlan]
    training_config: TrainingConfig = field(default_factory=TrainingConfig)
    output_dir: Path | None = None
    recipe: Recipe | None = None

    _store: ArtifactStore | None = field(default=None, init=False)
    _result: ComparisonResult | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.recipe is None:
            self.recipe = build_recipe(
                rare_threshold=self.training_config.rare_category_threshold,
                one_hot=self.training_config.one_hot,
            )
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)
            self._store = ArtifactStore(self.output_dir)

    def run(self, listings: pl.DataFrame) -> ComparisonResult:
        """Execute the complete comparison.

        Args:
            listings: Cleaned listings including the price column

        Returns:
            ComparisonResult with search outcomes, selection and test metrics
        """
        cfg = self.training_config
        metric = get_metric(cfg.selection_metric)
        metrics = create_standard_metrics()

        # Step 1: Filter rows the log transform cannot take
        listings, n_excluded = filter_non_positive_mileage(listings)

        # Step 2: Stratified split
        split = stratified_split(
            listings,
            strata=TARGET_COLUMN,
            train_fraction=cfg.train_fraction,
            n_bins=cfg.split_strata_bins,
            seed=cfg.seed,
        )
        logger.info("Split %d train / %d test listings", split.n_train, split.n_test)

        # Step 3: Resampling on the training partition only
        folds = create_folds(
            split.train,
            strata=TARGET_COLUMN,
            n_folds=cfg.n_folds,
            n_repeats=cfg.n_repeats,
            n_bins=cfg.strata_bins,
            seed=cfg.seed,
        )
        prepared = prepare_folds(split.train, folds, self.recipe)

        # Step 4: Search each family
        outcomes = []
        for plan in self.plans:
            if not plan.enabled:
                logger.info("Skipping %s: disabled in configuration", plan.family.name)
                outcomes.append(FamilySearchOutcome(plan.family.name, SearchStatus.DISABLED))
                continue
            outcomes.append(
                search_family(
                    plan.family,
                    plan.grid,
                    prepared,
                    metric=metric,
                    metrics=metrics,
                    n_jobs=cfg.n_jobs,
                    timeout_seconds=plan.timeout_seconds,
                )
            )

        # Step 5: Select the winner
        selection = select_model(outcomes, metric)
        logger.info(
            "Selected %s with cross-validated %s=%.4f",
            selection.family_name, selection.metric_name, selection.score,
        )

        # Step 6: Refit on the full training partition and score the test set
        winner = next(p.family for p in self.plans if p.family.name == selection.family_name)
        final = evaluate_final(winner, selection, self.recipe, split, metrics)

        self._result = ComparisonResult(
            outcomes=outcomes,
            selection=selection,
            final=final,
            n_excluded=n_excluded,
        )

        # Step 7: Save artifacts
        if self._store is not None:
            self._save_artifacts(self._result)

        return self._result

    def _save_artifacts(self, result: ComparisonResult) -> None:
        """Save all comparison artifacts to disk."""
        for outcome in result.outcomes:
            if outcome.tuning_result is not None:
                self._store.save_tuning_result(outcome.tuning_result)
        self._store.save_recipe(result.final.recipe)
        self._store.save_model(result.final.model)
        self._store.save_report(result.to_report())
        logger.info("Artifacts saved to %s", self.output_dir)

    def get_result(self) -> ComparisonResult | None:
        """Return the result of the last run."""
        return self._result


def run_comparison(
    data_path: Path | None = None,
    output_dir: Path | None = None,
    training_config: TrainingConfig | None = None,
    config_path: Path | str | None = None,
) -> ComparisonResult:
    """Convenience function to run the complete comparison pipeline.

    Args:
        data_path: Path to the listings file (overrides config if provided)
        output_dir: Path for saving outputs (overrides config if provided)
        training_config: Optional training configuration (overrides config if provided)
        config_path: Path to YAML configuration file

    Returns:
        ComparisonResult
    """
    config = _resolve_config(config_path, data_path, output_dir)
    final_training_config = training_config or config.to_domain_training_config()

    listings = load_listings(config.paths.data_path)

    pipeline = ModelComparisonPipeline(
        plans=plans_from_config(config.families, seed=final_training_config.seed),
        training_config=final_training_config,
        output_dir=config.paths.output_dir,
    )
    return pipeline.run(listings)


def run_comparison_from_config(
    config_path: Path | str = "pipeline_config.yml",
) -> ComparisonResult:
    """Run the comparison using configuration from a YAML file."""
    return run_comparison(config_path=config_path)


def _resolve_config(
    config_path: Path | str | None,
    data_path: Path | None,
    output_dir: Path | None,
) -> PipelineConfig:
    """Load configuration and apply path overrides."""
    if config_path is not None:
        config = load_config(config_path)
    else:
        config = get_default_config()

    if data_path is not None or output_dir is not None:
        config = config.with_paths(data_path=data_path, output_dir=output_dir)

    return config
