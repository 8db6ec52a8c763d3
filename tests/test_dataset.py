import polars as pl
import pytest

from vehicle_pricing.domain.entities import LISTING_COLUMNS
from vehicle_pricing.features.dataset import (
    cast_listing_types,
    filter_non_positive_mileage,
    load_listings,
    prepare_listings,
    read_table,
)


def _raw_adverts() -> pl.DataFrame:
    return pl.DataFrame({
        "Maker": ["Ford", "BMW", "Toyota"],
        "Genmodel": ["Focus", "3 Series", "Yaris"],
        "Genmodel_ID": ["29_1", "8_5", "88_12"],
        "Adv_ID": ["29_1$$1", "8_5$$2", "88_12$$3"],
        "Adv_year": [2018, 2019, 2020],
        "Adv_month": [1, 4, 12],
        "Color": ["Blue ", "Black", "Red"],
        "Reg_year": [2014, 2016, 2012],
        "Bodytype": ["Hatchback", "Saloon", "Hatchback"],
        "Runned_Miles": [45000, 0, 61234],
        "Engin_size": [1.6, 2.0, 1.0],
        "Gearbox": ["Manual", "Automatic", "Manual"],
        "Fuel_type": ["Petrol", "Diesel", "Petrol"],
        "Price": [7995, 14500, 3450],
        "Seat_num": [5, 5, 4],
        "Door_num": [5, 4, 3],
    })


def test_prepare_listings_renames_and_drops_ids():
    df = prepare_listings(_raw_adverts())

    assert df.columns == LISTING_COLUMNS
    assert df["manufacturer"].to_list() == ["Ford", "BMW", "Toyota"]
    assert df["mileage"].dtype == pl.Float64
    assert df["door_count"].dtype == pl.Int64


def test_prepare_listings_strips_category_whitespace():
    df = prepare_listings(_raw_adverts())

    assert df["color"][0] == "Blue"


def test_advertisement_time_combines_year_and_month():
    df = prepare_listings(_raw_adverts())

    assert df["advertisement_time"].to_list() == pytest.approx([2018.0, 2019.25, 2020 + 11 / 12])


def test_missing_column_raises():
    with pytest.raises(ValueError, match="engine_size"):
        prepare_listings(_raw_adverts().drop("Engin_size"))


def test_price_optional_when_not_required():
    df = prepare_listings(_raw_adverts().drop("Price"), require_target=False)

    assert "price" not in df.columns
    assert df.height == 3


def test_load_listings_from_csv(tmp_path):
    path = tmp_path / "adverts.csv"
    _raw_adverts().write_csv(path)

    df = load_listings(path)

    assert df.height == 3
    assert "Adv_ID" not in df.columns


def test_load_listings_from_parquet(tmp_path):
    path = tmp_path / "adverts.parquet"
    _raw_adverts().write_parquet(path)

    assert load_listings(path).columns == LISTING_COLUMNS


def test_read_table_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_table(tmp_path / "nope.csv")


def test_filter_drops_zero_mileage():
    df = prepare_listings(_raw_adverts())

    kept, excluded = filter_non_positive_mileage(df)

    assert excluded == 1
    assert kept.height == 2
    assert kept.filter(pl.col("mileage") <= 0).is_empty()


def test_cast_listing_types_accepts_cleaned_schema(listings):
    assert cast_listing_types(listings).columns == LISTING_COLUMNS
