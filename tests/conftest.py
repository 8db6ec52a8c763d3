"""Shared fixtures: synthetic listings generated with a seeded numpy RNG."""

from pathlib import Path

import numpy as np
import polars as pl
import pytest

from vehicle_pricing.artifact_store.artifact_store import ArtifactStore
from vehicle_pricing.features.recipe import build_recipe
from vehicle_pricing.features.resampling import create_folds
from vehicle_pricing.models.regressors import LassoFamily
from vehicle_pricing.pipelines.search import prepare_folds


MODELS = {
    "Ford": ["Fiesta", "Focus", "Kuga"],
    "BMW": ["1 Series", "3 Series"],
    "Toyota": ["Yaris", "Corolla"],
    "Audi": ["A3"],
}


def make_listings(n: int = 600, seed: int = 0) -> pl.DataFrame:
    """Listings in the cleaned schema with a price driven by a few fields."""
    rng = np.random.default_rng(seed)

    makers = rng.choice(list(MODELS), size=n, p=[0.4, 0.25, 0.25, 0.1])
    model_names = [str(rng.choice(MODELS[m])) for m in makers]
    engine_size = rng.choice([1.0, 1.4, 1.6, 2.0, 3.0], size=n)
    mileage = rng.uniform(1_000, 120_000, size=n).round()
    registration_year = rng.integers(2005, 2019, size=n)
    noise = rng.normal(0, 500, size=n)

    price = (
        5_000
        + 3_000 * engine_size
        - 50 * mileage / 1_000
        + 400 * (registration_year - 2005)
        + noise
    )

    return pl.DataFrame({
        "manufacturer": makers.tolist(),
        "model_name": model_names,
        "color": rng.choice(["Black", "White", "Silver", "Red"], size=n).tolist(),
        "body_type": rng.choice(["Hatchback", "Saloon", "SUV"], size=n).tolist(),
        "transmission": rng.choice(["Manual", "Automatic"], size=n).tolist(),
        "fuel_type": rng.choice(["Petrol", "Diesel"], size=n).tolist(),
        "registration_year": registration_year.astype(np.int64),
        "mileage": mileage,
        "engine_size": engine_size,
        "seat_count": rng.choice([4, 5, 7], size=n).astype(np.int64),
        "door_count": rng.choice([3, 5], size=n).astype(np.int64),
        "advertisement_time": 2018 + rng.integers(0, 12, size=n) / 12,
        "price": price,
    })


def make_linear_listings(n: int = 1000, seed: int = 1) -> pl.DataFrame:
    """Listings where price = 1000 * engine_size - 50 * mileage / 1000 + noise."""
    rng = np.random.default_rng(seed)
    df = make_listings(n, seed)
    engine_size = rng.uniform(1.0, 5.0, size=n)
    mileage = rng.uniform(1_000, 60_000, size=n)
    price = 1_000 * engine_size - 50 * mileage / 1_000 + rng.normal(0, 100, size=n)
    return df.with_columns(
        pl.Series("engine_size", engine_size),
        pl.Series("mileage", mileage),
        pl.Series("price", price),
    )


@pytest.fixture
def listings() -> pl.DataFrame:
    return make_listings()


@pytest.fixture
def recipe():
    return build_recipe(rare_threshold=20)


@pytest.fixture
def prepared_folds(listings, recipe):
    folds = create_folds(listings, strata="price", n_folds=3, n_repeats=1, seed=7)
    return prepare_folds(listings, folds, recipe)


@pytest.fixture
def artifacts_dir(tmp_path: Path, listings, recipe) -> Path:
    """Artifacts directory holding a fitted recipe and a lasso model."""
    fitted = recipe.fit(listings)
    family = LassoFamily()
    model = family.fit(
        fitted.to_matrix(listings),
        fitted.outcome_values(listings),
        {"penalty": 1.0},
        feature_names=list(fitted.feature_columns),
    )
    store = ArtifactStore(tmp_path / "artifacts")
    store.save_recipe(fitted)
    store.save_model(model)
    return store.storage_path
