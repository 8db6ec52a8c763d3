from pathlib import Path

import pytest
from pydantic import ValidationError

from vehicle_pricing.pipelines.config import (
    ParameterRangeConfig,
    PipelineConfig,
    get_default_config,
    load_config,
)


REPO_CONFIG = Path(__file__).resolve().parent.parent / "pipeline_config.yml"


def test_default_config_matches_standard_study():
    config = get_default_config()

    assert config.split.train_fraction == 0.8
    assert config.resampling.n_folds == 10
    assert config.resampling.n_repeats == 3
    assert config.recipe.rare_category_threshold == 1000
    assert list(config.families) == ["lasso", "random_forest", "knn", "svm"]
    assert not config.families["svm"].enabled
    assert len(config.families["lasso"].build_grid()) == 20
    assert len(config.families["random_forest"].build_grid()) == 27


def test_repository_config_loads():
    config = load_config(REPO_CONFIG)

    assert config.paths.data_path == REPO_CONFIG.parent / "data" / "listings.csv"
    assert config.search.selection_metric == "rmse"
    assert config.families["svm"].timeout_seconds == 3600


def test_load_config_resolves_relative_paths(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("paths:\n  data_path: raw/adverts.csv\n  output_dir: /abs/out\n")

    config = load_config(path)

    assert config.paths.data_path == tmp_path / "raw" / "adverts.csv"
    assert config.paths.output_dir == Path("/abs/out")


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("")

    assert load_config(path).resampling == PipelineConfig().resampling


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yml")


def test_invalid_metric_rejected(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("search:\n  selection_metric: mape\n")

    with pytest.raises(ValidationError):
        load_config(path)


def test_parameter_range_needs_bounds_or_values():
    with pytest.raises(ValidationError):
        ParameterRangeConfig(low=1)
    with pytest.raises(ValidationError):
        ParameterRangeConfig(low=5, high=1)


def test_domain_training_config():
    config = get_default_config()

    training = config.to_domain_training_config()

    assert training.n_folds == 10
    assert training.seed == 42
    assert training.selection_metric == "rmse"
    assert training.one_hot is False


def test_with_paths_overrides_only_given_paths():
    config = get_default_config().with_paths(output_dir=Path("elsewhere"))

    assert config.paths.output_dir == Path("elsewhere")
    assert config.paths.data_path == Path("data/listings.csv")


def test_split_and_resampling_bins_are_independent():
    config = PipelineConfig.model_validate({
        "split": {"strata_bins": 10},
        "resampling": {"strata_bins": 4},
    })

    training = config.to_domain_training_config()

    assert training.split_strata_bins == 10
    assert training.strata_bins == 4


def test_zero_workers_rejected_at_load(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("search:\n  n_jobs: 0\n")

    with pytest.raises(ValidationError, match="n_jobs"):
        load_config(path)


@pytest.mark.parametrize("n_jobs", [-1, 1, 4])
def test_valid_worker_counts_accepted(n_jobs):
    config = PipelineConfig.model_validate({"search": {"n_jobs": n_jobs}})

    assert config.to_domain_training_config().n_jobs == n_jobs
