"""Configuration loader for the model comparison pipelines.

Provides typed configuration loading from YAML files with
sensible defaults and validation using Pydantic.
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from vehicle_pricing.domain.entities import TrainingConfig
from vehicle_pricing.models.grids import HyperparameterGrid, ParameterRange, regular_grid


class PathsConfig(BaseModel):
    """Configuration for file system paths."""

    model_config = {"frozen": True}

    data_path: Path = Field(default=Path("data/listings.csv"))
    output_dir: Path = Field(default=Path("artifacts"))


class SplitConfig(BaseModel):
    """Train/test split settings."""

    model_config = {"frozen": True}

    train_fraction: float = Field(default=0.8, gt=0, lt=1)
    strata_bins: int = Field(default=4, ge=1)
    seed: int = Field(default=42)


class ResamplingConfig(BaseModel):
    """Repeated stratified k-fold settings."""

    model_config = {"frozen": True}

    n_folds: int = Field(default=10, ge=2)
    n_repeats: int = Field(default=3, ge=1)
    strata_bins: int = Field(default=4, ge=1)


class RecipeConfig(BaseModel):
    """Feature recipe settings."""

    model_config = {"frozen": True}

    rare_category_threshold: float = Field(default=1000, gt=0)
    one_hot: bool = Field(default=False)


class SearchConfig(BaseModel):
    """Grid search settings shared by all families."""

    model_config = {"frozen": True}

    selection_metric: Literal["rmse", "r2"] = Field(default="rmse")
    n_jobs: int = Field(default=1, description="Parallel workers; -1 uses every core")

    @field_validator("n_jobs")
    @classmethod
    def _check_n_jobs(cls, v: int) -> int:
        if v == 0:
            raise ValueError("n_jobs must be -1 or a positive worker count, got 0")
        return v


class ParameterRangeConfig(BaseModel):
    """Bounds of one hyperparameter, on the transformed scale."""

    model_config = {"frozen": True}

    low: float | None = None
    high: float | None = None
    transform: Literal["identity", "log10", "log2"] = "identity"
    integer: bool = False
    values: list[float] | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "ParameterRangeConfig":
        if self.values is None and (self.low is None or self.high is None):
            raise ValueError("either both low/high or values must be given")
        if self.values is None and self.low > self.high:
            raise ValueError(f"low ({self.low}) must not exceed high ({self.high})")
        return self

    def to_range(self, name: str) -> ParameterRange:
        return ParameterRange(
            name=name,
            low=self.low,
            high=self.high,
            transform=self.transform,
            integer=self.integer,
            values=tuple(self.values) if self.values is not None else None,
        )


class ModelFamilyConfig(BaseModel):
    """Grid and budget for one model family."""

    model_config = {"frozen": True}

    enabled: bool = True
    levels: int = Field(default=3, ge=1)
    timeout_seconds: float | None = Field(default=None, gt=0)
    parameters: dict[str, ParameterRangeConfig]

    def build_grid(self) -> HyperparameterGrid:
        return regular_grid(
            [param.to_range(name) for name, param in self.parameters.items()],
            levels=self.levels,
        )


def _default_families() -> dict[str, ModelFamilyConfig]:
    return {
        "lasso": ModelFamilyConfig(
            levels=20,
            parameters={"penalty": ParameterRangeConfig(low=-3, high=1, transform="log10")},
        ),
        "random_forest": ModelFamilyConfig(
            levels=3,
            parameters={
                "trees": ParameterRangeConfig(low=100, high=500, integer=True),
                "mtry": ParameterRangeConfig(low=5, high=30, integer=True),
                "min_n": ParameterRangeConfig(low=2, high=20, integer=True),
            },
        ),
        "knn": ModelFamilyConfig(
            levels=10,
            parameters={"neighbors": ParameterRangeConfig(low=1, high=30, integer=True)},
        ),
        "svm": ModelFamilyConfig(
            enabled=False,
            levels=5,
            timeout_seconds=3600,
            parameters={"cost": ParameterRangeConfig(low=-2, high=5, transform="log2")},
        ),
    }


class PipelineConfig(BaseModel):
    """Complete pipeline configuration."""

    model_config = {"frozen": True}

    paths: PathsConfig = Field(default_factory=PathsConfig)
    split: SplitConfig = Field(default_factory=SplitConfig)
    resampling: ResamplingConfig = Field(default_factory=ResamplingConfig)
    recipe: RecipeConfig = Field(default_factory=RecipeConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    families: dict[str, ModelFamilyConfig] = Field(default_factory=_default_families)

    def with_base_path(self, base_path: Path) -> "PipelineConfig":
        """Return a new config with paths resolved against base_path."""
        def resolve(p: Path) -> Path:
            if not p.is_absolute():
                return base_path / p
            return p

        resolved_paths = PathsConfig(
            data_path=resolve(self.paths.data_path),
            output_dir=resolve(self.paths.output_dir),
        )
        return self.model_copy(update={"paths": resolved_paths})

    def with_paths(self, data_path: Path | None = None, output_dir: Path | None = None) -> "PipelineConfig":
        """Return a new config with the given paths overridden."""
        paths = PathsConfig(
            data_path=Path(data_path) if data_path else self.paths.data_path,
            output_dir=Path(output_dir) if output_dir else self.paths.output_dir,
        )
        return self.model_copy(update={"paths": paths})

    def to_domain_training_config(self) -> TrainingConfig:
        """Convert to domain TrainingConfig entity."""
        return TrainingConfig(
            train_fraction=self.split.train_fraction,
            n_folds=self.resampling.n_folds,
            n_repeats=self.resampling.n_repeats,
            strata_bins=self.resampling.strata_bins,
            split_strata_bins=self.split.strata_bins,
            seed=self.split.seed,
            rare_category_threshold=self.recipe.rare_category_threshold,
            one_hot=self.recipe.one_hot,
            selection_metric=self.search.selection_metric,
            n_jobs=self.search.n_jobs,
        )


def load_config(config_path: Path | str, base_path: Path | None = None) -> PipelineConfig:
    """Load pipeline configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file
        base_path: Optional base path for resolving relative paths.
                   Defaults to the parent directory of the config file.

    Returns:
        PipelineConfig with all settings loaded

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If configuration validation fails
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if base_path is None:
        base_path = config_path.parent

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    config = PipelineConfig.model_validate(data)
    return config.with_base_path(base_path)


def get_default_config(base_path: Path | None = None) -> PipelineConfig:
    """Get default configuration without loading from file.

    Args:
        base_path: Optional base path for resolving relative paths.

    Returns:
        PipelineConfig with all default values
    """
    config = PipelineConfig()
    if base_path:
        return config.with_base_path(base_path)
    return config
