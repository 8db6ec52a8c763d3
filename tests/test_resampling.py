import numpy as np
import pytest
from scipy.stats import ks_2samp

from vehicle_pricing.features.resampling import create_folds, quantile_bins, stratified_split

from conftest import make_listings


@pytest.fixture
def big_listings():
    return make_listings(n=2000, seed=11)


def test_stratified_split_preserves_price_distribution(big_listings):
    split = stratified_split(big_listings, strata="price", train_fraction=0.8, seed=5)
    full = big_listings["price"].to_numpy()

    assert ks_2samp(split.train["price"].to_numpy(), full).statistic < 0.05
    assert ks_2samp(split.test["price"].to_numpy(), full).statistic < 0.05


def test_stratified_split_sizes(big_listings):
    split = stratified_split(big_listings, strata="price", train_fraction=0.8, seed=5)

    assert split.n_train + split.n_test == big_listings.height
    assert split.n_train == 1600


def test_stratified_split_is_reproducible(big_listings):
    first = stratified_split(big_listings, strata="price", seed=5)
    second = stratified_split(big_listings, strata="price", seed=5)

    assert first.train.equals(second.train)


def test_stratified_split_rejects_bad_fraction(listings):
    with pytest.raises(ValueError):
        stratified_split(listings, strata="price", train_fraction=1.0)


def test_folds_hold_out_every_row_once_per_repeat(listings):
    folds = create_folds(listings, strata="price", n_folds=5, n_repeats=2, seed=1)

    assert len(folds) == 10
    for repeat in (1, 2):
        holdouts = [f.holdout_index for f in folds if f.repeat == repeat]
        combined = np.concatenate(holdouts)
        assert combined.size == listings.height
        assert np.array_equal(np.sort(combined), np.arange(listings.height))


def test_fold_train_and_holdout_are_disjoint(listings):
    for fold in create_folds(listings, strata="price", n_folds=4, seed=1):
        assert np.intersect1d(fold.train_index, fold.holdout_index).size == 0
        assert fold.train_index.size + fold.holdout_index.size == listings.height


def test_fold_ids(listings):
    folds = create_folds(listings, strata="price", n_folds=10, n_repeats=3, seed=1)

    assert folds[0].fold_id == "Repeat1_Fold01"
    assert folds[-1].fold_id == "Repeat3_Fold10"
    assert len({f.fold_id for f in folds}) == 30


def test_create_folds_requires_two_folds(listings):
    with pytest.raises(ValueError):
        create_folds(listings, strata="price", n_folds=1)


def test_quantile_bins_quartiles():
    labels = quantile_bins(np.arange(100), n_bins=4)

    assert np.bincount(labels).tolist() == [25, 25, 25, 25]


def test_quantile_bins_falls_back_on_small_samples():
    labels = quantile_bins(np.array([1.0, 2.0, 3.0]), n_bins=4, min_bin_size=2)

    assert labels.tolist() == [0, 0, 0]
