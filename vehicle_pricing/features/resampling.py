"""Stratified train/test splitting and repeated k-fold resampling.

A continuous target is stratified by binning it into quantiles; the bins are
then used as class labels for scikit-learn's stratified splitters. Every
random choice takes an explicit seed.
"""

import numpy as np
import polars as pl
from sklearn.model_selection import RepeatedStratifiedKFold, train_test_split

from vehicle_pricing.domain.entities import DataSplit, Fold


def quantile_bins(values: np.ndarray, n_bins: int = 4, min_bin_size: int = 2) -> np.ndarray:
    """Assign each value to a quantile bin.

    The number of bins is reduced until every bin holds at least
    ``min_bin_size`` rows; with too few rows everything lands in one bin.
    """
    values = np.asarray(values, dtype=float)
    for bins in range(max(n_bins, 1), 1, -1):
        edges = np.unique(np.quantile(values, np.linspace(0, 1, bins + 1)[1:-1]))
        labels = np.searchsorted(edges, values, side="right")
        counts = np.bincount(labels)
        if counts.size > 1 and counts[counts > 0].min() >= min_bin_size:
            return labels
    return np.zeros(values.shape[0], dtype=int)


def stratified_split(
    df: pl.DataFrame,
    strata: str,
    train_fraction: float = 0.8,
    n_bins: int = 4,
    seed: int = 42,
) -> DataSplit:
    """Split rows into train/test keeping the binned ``strata`` distribution."""
    if not 0 < train_fraction < 1:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")

    index = np.arange(df.height)
    labels = quantile_bins(df[strata].to_numpy(), n_bins, min_bin_size=2)
    train_idx, test_idx = train_test_split(
        index,
        train_size=train_fraction,
        stratify=labels,
        random_state=seed,
    )
    return DataSplit(
        train=df[np.sort(train_idx)],
        test=df[np.sort(test_idx)],
    )


def create_folds(
    df: pl.DataFrame,
    strata: str,
    n_folds: int = 10,
    n_repeats: int = 1,
    n_bins: int = 4,
    seed: int = 42,
) -> list[Fold]:
    """Build ``n_repeats`` x ``n_folds`` stratified cross-validation folds.

    Within a repeat each row is held out exactly once.
    """
    if n_folds < 2:
        raise ValueError(f"n_folds must be at least 2, got {n_folds}")

    labels = quantile_bins(df[strata].to_numpy(), n_bins, min_bin_size=n_folds)
    splitter = RepeatedStratifiedKFold(
        n_splits=n_folds, n_repeats=n_repeats, random_state=seed
    )

    folds = []
    for i, (train_idx, holdout_idx) in enumerate(
        splitter.split(np.zeros(df.height), labels)
    ):
        folds.append(
            Fold(
                repeat=i // n_folds + 1,
                fold=i % n_folds + 1,
                train_index=train_idx,
                holdout_index=holdout_idx,
            )
        )
    return folds
