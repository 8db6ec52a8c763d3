"""Loading of the used-vehicle listings table.

The raw advert table uses the DVM-Car column names; they are renamed to the
snake_case schema in ``vehicle_pricing.domain.entities`` and cast to a fixed
representation (strings for categorical fields, floats/ints for numbers).
"""

import logging
from pathlib import Path

import polars as pl

from vehicle_pricing.domain.entities import (
    CATEGORICAL_COLUMNS,
    LISTING_COLUMNS,
    TARGET_COLUMN,
)


logger = logging.getLogger(__name__)

DEFAULT_COLUMN_MAPPING = {
    "Maker": "manufacturer",
    "Genmodel": "model_name",
    "Color": "color",
    "Reg_year": "registration_year",
    "Bodytype": "body_type",
    "Runned_Miles": "mileage",
    "Engin_size": "engine_size",
    "Gearbox": "transmission",
    "Fuel_type": "fuel_type",
    "Seat_num": "seat_count",
    "Door_num": "door_count",
    "Adv_year": "adv_year",
    "Adv_month": "adv_month",
    "Price": "price",
}

DEFAULT_ID_COLUMNS = ["Adv_ID", "Genmodel_ID", "adv_id", "genmodel_id"]

INTEGER_COLUMNS = ["registration_year", "seat_count", "door_count"]
FLOAT_COLUMNS = ["mileage", "engine_size", "advertisement_time", TARGET_COLUMN]


def read_table(path: Path | str) -> pl.DataFrame:
    """Read a CSV or Parquet file into a DataFrame."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Listings file not found: {path}")

    if path.suffix == ".parquet":
        return pl.read_parquet(path)
    return pl.read_csv(path, infer_schema_length=10000)


def add_advertisement_time(df: pl.DataFrame) -> pl.DataFrame:
    """Derive a continuous advertisement time from year and month fields.

    January maps to the whole year, December to year + 11/12.
    """
    if "advertisement_time" in df.columns:
        return df
    for col in ("adv_year", "adv_month"):
        if col not in df.columns:
            raise ValueError(f"Missing required column: {col}")

    return df.with_columns(
        (pl.col("adv_year") + (pl.col("adv_month") - 1) / 12).alias("advertisement_time")
    ).drop(["adv_year", "adv_month"])


def cast_listing_types(df: pl.DataFrame, require_target: bool = True) -> pl.DataFrame:
    """Select the listing columns and cast them to the fixed representation."""
    required = [c for c in LISTING_COLUMNS if c != TARGET_COLUMN or require_target]
    for col in required:
        if col not in df.columns:
            raise ValueError(f"Missing required column: {col}")

    casts = [pl.col(c).cast(pl.String).str.strip_chars() for c in CATEGORICAL_COLUMNS]
    casts += [pl.col(c).cast(pl.Int64) for c in INTEGER_COLUMNS]
    casts += [pl.col(c).cast(pl.Float64) for c in FLOAT_COLUMNS if c in df.columns]

    columns = [c for c in LISTING_COLUMNS if c in df.columns]
    return df.select(columns).with_columns(casts)


def prepare_listings(
    raw_df: pl.DataFrame,
    column_mapping: dict[str, str] | None = None,
    id_columns: list[str] | None = None,
    require_target: bool = True,
) -> pl.DataFrame:
    """Rename, drop identifiers, derive advertisement time and cast types."""
    mapping = DEFAULT_COLUMN_MAPPING if column_mapping is None else column_mapping
    id_columns = DEFAULT_ID_COLUMNS if id_columns is None else id_columns

    df = raw_df.drop([c for c in id_columns if c in raw_df.columns])
    df = df.rename({k: v for k, v in mapping.items() if k in df.columns})
    df = add_advertisement_time(df)
    return cast_listing_types(df, require_target=require_target)


def load_listings(
    path: Path | str,
    column_mapping: dict[str, str] | None = None,
    id_columns: list[str] | None = None,
) -> pl.DataFrame:
    """Load the cleaned listings table from disk.

    Args:
        path: CSV or Parquet file
        column_mapping: Raw column name -> schema column name
        id_columns: Identifier columns to drop

    Returns:
        DataFrame with the columns of ``LISTING_COLUMNS``
    """
    df = prepare_listings(read_table(path), column_mapping, id_columns)
    logger.info("Loaded %d listings from %s", df.height, path)
    return df


def filter_non_positive_mileage(df: pl.DataFrame) -> tuple[pl.DataFrame, int]:
    """Drop listings whose mileage cannot be log transformed.

    Returns:
        Tuple of (filtered listings, number of excluded rows)
    """
    kept = df.filter(pl.col("mileage") > 0)
    excluded = df.height - kept.height
    if excluded:
        logger.info("Excluded %d listing(s) with non-positive mileage", excluded)
    return kept, excluded
