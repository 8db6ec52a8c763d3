"""Cross-validated hyperparameter search and model selection.

The recipe is fitted once per fold on that fold's training rows (fitting is
deterministic, so this equals fitting it for every cell). Every
(fold x grid point) cell is then an independent unit of work dispatched with
joblib; cells share only read-only matrices and are reduced per grid point.
"""

from dataclasses import dataclass
import logging
import math
import multiprocessing
import time
from typing import Any

import numpy as np
import polars as pl
from joblib import Parallel, delayed

from vehicle_pricing.domain.entities import (
    FamilySearchOutcome,
    Fold,
    ModelSelection,
    SearchStatus,
    TuningResult,
)
from vehicle_pricing.domain.errors import SearchFailedError, SearchTimeoutError
from vehicle_pricing.domain.protocols import IMetric, IModelFamily
from vehicle_pricing.features.recipe import Recipe
from vehicle_pricing.metrics.metrics import create_standard_metrics
from vehicle_pricing.models.grids import HyperparameterGrid


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedFold:
    """Baked feature matrices of one resample."""
    fold_id: str
    X_train: np.ndarray
    y_train: np.ndarray
    X_holdout: np.ndarray
    y_holdout: np.ndarray
    feature_names: tuple[str, ...]


def prepare_folds(data: pl.DataFrame, folds: list[Fold], recipe: Recipe) -> list[PreparedFold]:
    """Fit the recipe on each fold's training rows and bake both sides."""
    prepared = []
    for fold in folds:
        train = data[fold.train_index]
        holdout = data[fold.holdout_index]
        fitted = recipe.fit(train)
        prepared.append(
            PreparedFold(
                fold_id=fold.fold_id,
                X_train=fitted.to_matrix(train),
                y_train=fitted.outcome_values(train),
                X_holdout=fitted.to_matrix(holdout),
                y_holdout=fitted.outcome_values(holdout),
                feature_names=fitted.feature_columns,
            )
        )
    return prepared


def _evaluate_cell(
    family: IModelFamily,
    grid_id: int,
    params: dict[str, Any],
    fold: PreparedFold,
    metrics: list[IMetric],
) -> dict[str, Any]:
    row: dict[str, Any] = {"grid_id": grid_id, "fold_id": fold.fold_id, **params}
    try:
        trained = family.fit(fold.X_train, fold.y_train, params)
        y_pred = family.predict(trained, fold.X_holdout)
        for metric in metrics:
            row[metric.name] = metric.compute(fold.y_holdout, y_pred)
        row["error"] = None
    except Exception as exc:  # the failure is recorded against this cell only
        for metric in metrics:
            row[metric.name] = None
        row["error"] = f"{type(exc).__name__}: {exc}"
    return row


def tune_family(
    family: IModelFamily,
    grid: HyperparameterGrid,
    folds: list[PreparedFold],
    metrics: list[IMetric] | None = None,
    n_jobs: int = 1,
    timeout_seconds: float | None = None,
) -> TuningResult:
    """Evaluate every grid point on every fold.

    Raises:
        SearchTimeoutError: If the search exceeds ``timeout_seconds``
        SearchFailedError: If every cell failed
    """
    if metrics is None:
        metrics = create_standard_metrics()
    if not folds:
        raise ValueError("At least one fold is required")

    cells = [(grid_id, params, fold) for fold in folds for grid_id, params in grid]
    logger.info(
        "Tuning %s: %d grid point(s) x %d fold(s)", family.name, len(grid), len(folds)
    )

    started = time.monotonic()
    if n_jobs == 1:
        rows = []
        for grid_id, params, fold in cells:
            rows.append(_evaluate_cell(family, grid_id, params, fold, metrics))
            if timeout_seconds is not None and time.monotonic() - started > timeout_seconds:
                raise SearchTimeoutError(
                    f"{family.name} search exceeded {timeout_seconds:g}s "
                    f"after {len(rows)}/{len(cells)} cells"
                )
    else:
        try:
            rows = Parallel(n_jobs=n_jobs, timeout=timeout_seconds)(
                delayed(_evaluate_cell)(family, grid_id, params, fold, metrics)
                for grid_id, params, fold in cells
            )
        except (TimeoutError, multiprocessing.TimeoutError) as exc:
            raise SearchTimeoutError(
                f"{family.name} search exceeded {timeout_seconds:g}s"
            ) from exc

    metric_names = [m.name for m in metrics]
    schema_overrides = {name: pl.Float64 for name in metric_names}
    schema_overrides.update({"grid_id": pl.Int64, "fold_id": pl.String, "error": pl.String})
    result = TuningResult(
        family_name=family.name,
        parameter_names=list(grid.parameter_names),
        metric_names=metric_names,
        metrics=pl.DataFrame(rows, schema_overrides=schema_overrides, infer_schema_length=None),
    )

    n_failed = result.n_failed
    if n_failed == len(cells):
        first_error = result.metrics["error"][0]
        raise SearchFailedError(f"All {len(cells)} fits of {family.name} failed; first error: {first_error}")
    if n_failed:
        logger.warning("%s: %d of %d cell(s) failed", family.name, n_failed, len(cells))

    logger.info("Tuned %s in %.1fs", family.name, time.monotonic() - started)
    return result


def select_best(
    result: TuningResult,
    family: IModelFamily,
    metric: IMetric,
) -> tuple[dict[str, Any], float]:
    """Pick the grid point with the best mean metric.

    Ties are broken by the family's simplicity ordering, then grid order.

    Returns:
        Tuple of (best params, best mean metric)
    """
    column = f"mean_{metric.name}"
    summary = result.summarize().filter(pl.col(column).is_not_null() & pl.col(column).is_not_nan())
    if summary.is_empty():
        raise SearchFailedError(f"No grid point of {family.name} produced a {metric.name} value")

    scores = summary[column].to_list()
    best = max(scores) if metric.greater_is_better else min(scores)

    candidates = []
    for row in summary.iter_rows(named=True):
        if math.isclose(row[column], best, rel_tol=1e-12, abs_tol=1e-12):
            params = {name: row[name] for name in result.parameter_names}
            candidates.append((family.simplicity_key(params), row["grid_id"], params))

    _, _, params = min(candidates, key=lambda c: (c[0], c[1]))
    return params, float(best)


def search_family(
    family: IModelFamily,
    grid: HyperparameterGrid,
    folds: list[PreparedFold],
    metric: IMetric,
    metrics: list[IMetric] | None = None,
    n_jobs: int = 1,
    timeout_seconds: float | None = None,
) -> FamilySearchOutcome:
    """Tune one family and report its outcome without raising.

    A failed or timed-out family is returned with the matching status so the
    remaining families can still be compared.
    """
    if metrics is None:
        metrics = create_standard_metrics()
    if metric.name not in [m.name for m in metrics]:
        metrics = list(metrics) + [metric]

    try:
        result = tune_family(family, grid, folds, metrics, n_jobs, timeout_seconds)
        params, score = select_best(result, family, metric)
    except SearchTimeoutError as exc:
        logger.warning("Skipping %s: %s", family.name, exc)
        return FamilySearchOutcome(family.name, SearchStatus.TIMED_OUT, message=str(exc))
    except SearchFailedError as exc:
        logger.warning("Skipping %s: %s", family.name, exc)
        return FamilySearchOutcome(family.name, SearchStatus.FAILED, message=str(exc))

    logger.info("%s best %s=%.4f with %s", family.name, metric.name, score, params)
    return FamilySearchOutcome(
        family_name=family.name,
        status=SearchStatus.COMPLETED,
        tuning_result=result,
        best_params=params,
        best_score=score,
    )


def select_model(outcomes: list[FamilySearchOutcome], metric: IMetric) -> ModelSelection:
    """Compare the best cross-validated scores across families.

    Only completed searches take part; on equal scores the family listed
    first wins.
    """
    selectable = [o for o in outcomes if o.is_selectable]
    if not selectable:
        statuses = ", ".join(f"{o.family_name}={o.status.value}" for o in outcomes)
        raise SearchFailedError(f"No model family completed its search ({statuses})")

    sign = -1.0 if metric.greater_is_better else 1.0
    winner = min(selectable, key=lambda o: sign * o.best_score)
    return ModelSelection(
        family_name=winner.family_name,
        params=dict(winner.best_params),
        score=winner.best_score,
        metric_name=metric.name,
    )
