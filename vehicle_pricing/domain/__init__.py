"""Domain layer: entities, protocols and errors."""

from .entities import (
    VehicleListing,
    DataSplit,
    Fold,
    SearchStatus,
    TuningResult,
    FamilySearchOutcome,
    ModelSelection,
    PredictionResult,
    EvaluationResult,
    TrainingConfig,
    CATEGORICAL_COLUMNS,
    NUMERIC_COLUMNS,
    LISTING_COLUMNS,
    TARGET_COLUMN,
)

from .errors import (
    NonPositiveValueError,
    SearchFailedError,
    SearchTimeoutError,
)

from .protocols import (
    IModelFamily,
    ITrainedModel,
    IRecipeStep,
    IMetric,
)

__all__ = [
    "VehicleListing",
    "DataSplit",
    "Fold",
    "SearchStatus",
    "TuningResult",
    "FamilySearchOutcome",
    "ModelSelection",
    "PredictionResult",
    "EvaluationResult",
    "TrainingConfig",
    "CATEGORICAL_COLUMNS",
    "NUMERIC_COLUMNS",
    "LISTING_COLUMNS",
    "TARGET_COLUMN",
    "NonPositiveValueError",
    "SearchFailedError",
    "SearchTimeoutError",
    "IModelFamily",
    "ITrainedModel",
    "IRecipeStep",
    "IMetric",
]
