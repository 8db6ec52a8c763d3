"""Model families and hyperparameter grids."""

from .grids import HyperparameterGrid, ParameterRange, regular_grid
from .regressors import (
    TrainedModel,
    LassoFamily,
    RandomForestFamily,
    NearestNeighborsFamily,
    SupportVectorFamily,
    available_families,
    get_family,
)

__all__ = [
    "HyperparameterGrid",
    "ParameterRange",
    "regular_grid",
    "TrainedModel",
    "LassoFamily",
    "RandomForestFamily",
    "NearestNeighborsFamily",
    "SupportVectorFamily",
    "available_families",
    "get_family",
]
