"""Feature recipe for the vehicle price models.

A recipe is an ordered list of step objects. ``Recipe.fit`` fits each step
on the output of the previous one and returns a ``FittedRecipe`` that applies
the learned parameters to any later data without refitting:

1. Novel category handling (unseen values -> "unknown")
2. Rare category collapse on model_name (-> "other")
3. Dummy encoding of every categorical column
4. Interaction terms (model_name indicators x door_count, door_count x seat_count)
5. log10 of mileage
6. Zero-variance filter
7. Standardization

The outcome column never enters the steps.
"""

from dataclasses import dataclass, field, replace
from fnmatch import fnmatchcase
import logging
import math
from pathlib import Path
import pickle
from typing import ClassVar

import numpy as np
import polars as pl

from vehicle_pricing.domain.entities import CATEGORICAL_COLUMNS, TARGET_COLUMN
from vehicle_pricing.domain.errors import NonPositiveValueError
from vehicle_pricing.domain.protocols import IRecipeStep


logger = logging.getLogger(__name__)

NOVEL_LEVEL = "unknown"
OTHER_LEVEL = "other"

DEFAULT_INTERACTIONS = (
    ("model_name_*", "door_count"),
    ("door_count", "seat_count"),
)


def _require_fitted(step, attr: str) -> None:
    if getattr(step, attr) is None:
        raise RuntimeError(f"Step '{step.name}' must be fitted before apply")


def _as_enum(expr: pl.Expr, levels: tuple[str, ...]) -> pl.Expr:
    return expr.cast(pl.Enum(list(levels)))


@dataclass(frozen=True)
class NovelCategoryStep:
    """Map categorical values unseen at fit time to a sentinel level.

    The fitted category set of each column is the observed levels plus the
    sentinel, carried as a polars Enum so later steps see the full domain.
    """

    name: ClassVar[str] = "novel"

    columns: tuple[str, ...] = tuple(CATEGORICAL_COLUMNS)
    novel_level: str = NOVEL_LEVEL
    levels: dict[str, tuple[str, ...]] | None = None

    def fit(self, df: pl.DataFrame) -> "NovelCategoryStep":
        levels = {}
        for col in self.columns:
            observed = sorted(
                v for v in df[col].cast(pl.String).unique().to_list() if v is not None
            )
            if self.novel_level not in observed:
                observed.append(self.novel_level)
            levels[col] = tuple(observed)
        return replace(self, levels=levels)

    def apply(self, df: pl.DataFrame) -> pl.DataFrame:
        _require_fitted(self, "levels")
        exprs = []
        for col, levels in self.levels.items():
            value = pl.col(col).cast(pl.String)
            exprs.append(
                _as_enum(
                    pl.when(value.is_in(list(levels))).then(value).otherwise(pl.lit(self.novel_level)),
                    levels,
                ).alias(col)
            )
        return df.with_columns(exprs)


@dataclass(frozen=True)
class OtherCategoryStep:
    """Collapse infrequent levels into a single "other" level.

    ``threshold`` >= 1 is a minimum row count; below 1 it is a minimum
    fraction of the fit rows. Anything outside the retained levels at apply
    time, including the novel sentinel, becomes "other".
    """

    name: ClassVar[str] = "other"

    columns: tuple[str, ...] = ("model_name",)
    threshold: float = 1000
    other_level: str = OTHER_LEVEL
    retained: dict[str, tuple[str, ...]] | None = None

    def _min_count(self, n_rows: int) -> float:
        if self.threshold >= 1:
            return self.threshold
        return self.threshold * n_rows

    def fit(self, df: pl.DataFrame) -> "OtherCategoryStep":
        min_count = self._min_count(df.height)
        retained = {}
        for col in self.columns:
            counts = df.select(pl.col(col).cast(pl.String)).to_series().value_counts()
            keep = counts.filter(pl.col("count") >= min_count)[col].to_list()
            levels = sorted(v for v in keep if v is not None and v != self.other_level)
            n_collapsed = counts.height - len(levels)
            if n_collapsed:
                logger.debug("Collapsed %d level(s) of '%s' into '%s'", n_collapsed, col, self.other_level)
            retained[col] = tuple(levels) + (self.other_level,)
        return replace(self, retained=retained)

    def apply(self, df: pl.DataFrame) -> pl.DataFrame:
        _require_fitted(self, "retained")
        exprs = []
        for col, levels in self.retained.items():
            value = pl.col(col).cast(pl.String)
            exprs.append(
                _as_enum(
                    pl.when(value.is_in(list(levels))).then(value).otherwise(pl.lit(self.other_level)),
                    levels,
                ).alias(col)
            )
        return df.with_columns(exprs)


@dataclass(frozen=True)
class DummyEncodingStep:
    """Expand categorical columns into indicator columns.

    Levels come from the column's Enum categories when present, otherwise from
    the observed values. Unless ``one_hot`` is set the first level that is not
    a sentinel is the dropped reference level.
    """

    name: ClassVar[str] = "dummy"

    columns: tuple[str, ...] = tuple(CATEGORICAL_COLUMNS)
    one_hot: bool = False
    sentinel_levels: tuple[str, ...] = (NOVEL_LEVEL,)
    encoded: dict[str, tuple[str, ...]] | None = None

    def _levels(self, series: pl.Series) -> list[str]:
        if isinstance(series.dtype, pl.Enum):
            return list(series.dtype.categories.to_list())
        return sorted(v for v in series.cast(pl.String).unique().to_list() if v is not None)

    def fit(self, df: pl.DataFrame) -> "DummyEncodingStep":
        encoded = {}
        for col in self.columns:
            levels = self._levels(df[col])
            if not self.one_hot:
                reference = next((lv for lv in levels if lv not in self.sentinel_levels), None)
                if reference is not None:
                    levels = [lv for lv in levels if lv != reference]
            encoded[col] = tuple(levels)
        return replace(self, encoded=encoded)

    def apply(self, df: pl.DataFrame) -> pl.DataFrame:
        _require_fitted(self, "encoded")
        exprs = []
        for col, levels in self.encoded.items():
            value = pl.col(col).cast(pl.String)
            for level in levels:
                exprs.append((value == level).cast(pl.Float64).alias(f"{col}_{level}"))
        return df.with_columns(exprs).drop(list(self.encoded))


@dataclass(frozen=True)
class InteractionStep:
    """Pairwise product features between column groups.

    Each term is a pair of glob patterns resolved against the columns present
    at fit time; the product of ``a`` and ``b`` is named ``a_x_b``.
    """

    name: ClassVar[str] = "interact"

    terms: tuple[tuple[str, str], ...] = DEFAULT_INTERACTIONS
    pairs: tuple[tuple[str, str], ...] | None = None

    def fit(self, df: pl.DataFrame) -> "InteractionStep":
        pairs = []
        for left, right in self.terms:
            lefts = [c for c in df.columns if fnmatchcase(c, left)]
            rights = [c for c in df.columns if fnmatchcase(c, right)]
            if not lefts or not rights:
                logger.debug("Interaction %s x %s matched no columns", left, right)
            pairs.extend((a, b) for a in lefts for b in rights if a != b)
        return replace(self, pairs=tuple(pairs))

    def apply(self, df: pl.DataFrame) -> pl.DataFrame:
        _require_fitted(self, "pairs")
        if not self.pairs:
            return df
        return df.with_columns([
            (pl.col(a) * pl.col(b)).alias(f"{a}_x_{b}") for a, b in self.pairs
        ])


@dataclass(frozen=True)
class LogTransformStep:
    """Logarithm of strictly positive columns."""

    name: ClassVar[str] = "log"

    columns: tuple[str, ...] = ("mileage",)
    base: float = 10.0

    def _check_positive(self, df: pl.DataFrame) -> None:
        for col in self.columns:
            n_bad = df.filter(pl.col(col) <= 0).height
            if n_bad:
                raise NonPositiveValueError(col, n_bad)

    def fit(self, df: pl.DataFrame) -> "LogTransformStep":
        self._check_positive(df)
        return self

    def apply(self, df: pl.DataFrame) -> pl.DataFrame:
        self._check_positive(df)
        return df.with_columns([
            pl.col(col).cast(pl.Float64).log(self.base).alias(col) for col in self.columns
        ])


@dataclass(frozen=True)
class ZeroVarianceStep:
    """Drop columns holding a single distinct value in the fit data."""

    name: ClassVar[str] = "zv"

    removed: tuple[str, ...] | None = None

    def fit(self, df: pl.DataFrame) -> "ZeroVarianceStep":
        removed = tuple(c for c in df.columns if df[c].n_unique() <= 1)
        if removed:
            logger.debug("Dropping %d zero-variance column(s)", len(removed))
        return replace(self, removed=removed)

    def apply(self, df: pl.DataFrame) -> pl.DataFrame:
        _require_fitted(self, "removed")
        return df.drop([c for c in self.removed if c in df.columns])


@dataclass(frozen=True)
class StandardizeStep:
    """Center and scale numeric columns with fit-time mean and std."""

    name: ClassVar[str] = "normalize"

    means: dict[str, float] | None = None
    stds: dict[str, float] | None = None

    def fit(self, df: pl.DataFrame) -> "StandardizeStep":
        numeric = [c for c, dtype in df.schema.items() if dtype.is_numeric()]
        means, stds = {}, {}
        for col in numeric:
            series = df[col].cast(pl.Float64)
            means[col] = float(series.mean())
            std = series.std(ddof=1)
            stds[col] = float(std) if std is not None and not math.isnan(std) and std > 0 else 1.0
        return replace(self, means=means, stds=stds)

    def apply(self, df: pl.DataFrame) -> pl.DataFrame:
        _require_fitted(self, "means")
        return df.with_columns([
            ((pl.col(col).cast(pl.Float64) - self.means[col]) / self.stds[col]).alias(col)
            for col in self.means
        ])


@dataclass(frozen=True)
class FittedRecipe:
    """A recipe whose steps have learned their parameters from training rows."""

    steps: tuple[IRecipeStep, ...]
    feature_columns: tuple[str, ...]
    outcome: str = TARGET_COLUMN

    @property
    def n_features(self) -> int:
        return len(self.feature_columns)

    def apply(self, df: pl.DataFrame) -> pl.DataFrame:
        """Transform listings into the fixed feature frame."""
        data = df.drop(self.outcome) if self.outcome in df.columns else df
        for step in self.steps:
            data = step.apply(data)
        return data.select(list(self.feature_columns))

    def to_matrix(self, df: pl.DataFrame) -> np.ndarray:
        return self.apply(df).to_numpy().astype(np.float64)

    def outcome_values(self, df: pl.DataFrame) -> np.ndarray:
        return df[self.outcome].to_numpy().astype(np.float64)

    def get_step(self, name: str) -> IRecipeStep:
        for step in self.steps:
            if step.name == name:
                return step
        raise KeyError(f"No step named '{name}'")

    def save(self, path: Path) -> None:
        """Save fitted state to disk."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            pickle.dump(self, f)

    @classmethod
    def load(cls, path: Path) -> "FittedRecipe":
        """Load fitted state from disk."""
        with open(path, "rb") as f:
            recipe = pickle.load(f)
        if not isinstance(recipe, cls):
            raise TypeError(f"{path} does not contain a fitted recipe")
        return recipe


@dataclass(frozen=True)
class Recipe:
    """Ordered, unfitted sequence of recipe steps."""

    steps: tuple[IRecipeStep, ...] = field(default_factory=tuple)
    outcome: str = TARGET_COLUMN

    def fit(self, df: pl.DataFrame) -> FittedRecipe:
        """Fit every step in order on the training rows."""
        data = df.drop(self.outcome) if self.outcome in df.columns else df
        fitted = []
        for step in self.steps:
            step = step.fit(data)
            data = step.apply(data)
            fitted.append(step)

        feature_columns = tuple(c for c, dtype in data.schema.items() if dtype.is_numeric())
        return FittedRecipe(
            steps=tuple(fitted),
            feature_columns=feature_columns,
            outcome=self.outcome,
        )


def build_recipe(
    rare_threshold: float = 1000,
    one_hot: bool = False,
    categorical_columns: list[str] | None = None,
    interactions: tuple[tuple[str, str], ...] = DEFAULT_INTERACTIONS,
    log_columns: tuple[str, ...] = ("mileage",),
    novel_level: str = NOVEL_LEVEL,
    other_level: str = OTHER_LEVEL,
    outcome: str = TARGET_COLUMN,
) -> Recipe:
    """Build the standard listing recipe in its fixed step order."""
    columns = tuple(categorical_columns or CATEGORICAL_COLUMNS)
    return Recipe(
        steps=(
            NovelCategoryStep(columns=columns, novel_level=novel_level),
            OtherCategoryStep(columns=("model_name",), threshold=rare_threshold, other_level=other_level),
            DummyEncodingStep(columns=columns, one_hot=one_hot, sentinel_levels=(novel_level,)),
            InteractionStep(terms=tuple(interactions)),
            LogTransformStep(columns=tuple(log_columns)),
            ZeroVarianceStep(),
            StandardizeStep(),
        ),
        outcome=outcome,
    )
