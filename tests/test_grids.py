import pytest

from vehicle_pricing.models.grids import ParameterRange, regular_grid


def test_log10_range_is_spaced_on_log_scale():
    values = ParameterRange("penalty", low=-3, high=1, transform="log10").grid_values(5)

    assert values == pytest.approx([0.001, 0.01, 0.1, 1.0, 10.0])


def test_log2_range():
    values = ParameterRange("cost", low=-2, high=5, transform="log2").grid_values(8)

    assert values == pytest.approx([0.25, 0.5, 1, 2, 4, 8, 16, 32])


def test_integer_range_rounds_and_dedupes():
    values = ParameterRange("neighbors", low=1, high=3, integer=True).grid_values(10)

    assert values == [1, 2, 3]
    assert all(isinstance(v, int) for v in values)


def test_explicit_values_ignore_levels():
    values = ParameterRange("penalty", values=(0.01, 0.1, 1.0, 10.0)).grid_values(20)

    assert values == [0.01, 0.1, 1.0, 10.0]


def test_single_level_uses_low_bound():
    assert ParameterRange("trees", low=100, high=500, integer=True).grid_values(1) == [100]


def test_unknown_transform_rejected():
    with pytest.raises(ValueError, match="Unknown transform"):
        ParameterRange("penalty", low=0, high=1, transform="sqrt")


def test_missing_bounds_rejected():
    with pytest.raises(ValueError):
        ParameterRange("penalty", low=0)


def test_regular_grid_crosses_parameters():
    grid = regular_grid(
        [
            ParameterRange("trees", low=100, high=500, integer=True),
            ParameterRange("mtry", low=5, high=30, integer=True),
            ParameterRange("min_n", low=2, high=20, integer=True),
        ],
        levels=3,
    )

    assert len(grid) == 27
    assert grid.parameter_names == ("trees", "mtry", "min_n")
    assert grid.get(0) == {"trees": 100, "mtry": 5, "min_n": 2}
    assert grid.get(26) == {"trees": 500, "mtry": 30, "min_n": 20}


def test_grid_iterates_in_order():
    grid = regular_grid([ParameterRange("neighbors", values=(5, 1, 3))])

    assert list(grid) == [(0, {"neighbors": 5.0}), (1, {"neighbors": 1.0}), (2, {"neighbors": 3.0})]


def test_regular_grid_needs_ranges():
    with pytest.raises(ValueError):
        regular_grid([])
