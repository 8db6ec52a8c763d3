"""Dataset loading, resampling and the feature recipe."""

from .dataset import load_listings, prepare_listings, filter_non_positive_mileage
from .recipe import FittedRecipe, Recipe, build_recipe, NOVEL_LEVEL, OTHER_LEVEL
from .resampling import create_folds, quantile_bins, stratified_split

__all__ = [
    "load_listings",
    "prepare_listings",
    "filter_non_positive_mileage",
    "FittedRecipe",
    "Recipe",
    "build_recipe",
    "NOVEL_LEVEL",
    "OTHER_LEVEL",
    "create_folds",
    "quantile_bins",
    "stratified_split",
]
