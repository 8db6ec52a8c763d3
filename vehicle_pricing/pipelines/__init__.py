"""Pipeline implementations for the vehicle price model comparison."""

from .config import (
    PipelineConfig,
    PathsConfig,
    SplitConfig,
    ResamplingConfig,
    RecipeConfig,
    SearchConfig,
    ModelFamilyConfig,
    ParameterRangeConfig,
    load_config,
    get_default_config,
)
from .search import (
    prepare_folds,
    tune_family,
    select_best,
    search_family,
    select_model,
)
from .training import (
    ModelComparisonPipeline,
    ComparisonResult,
    FamilyPlan,
    plans_from_config,
    run_comparison,
    run_comparison_from_config,
)
from .prediction import (
    PredictionPipeline,
    create_prediction_pipeline,
    create_prediction_pipeline_from_config,
)
from .evaluation import (
    EvaluationPipeline,
    FinalEvaluation,
    evaluate_final,
)

__all__ = [
    # Config
    "PipelineConfig",
    "PathsConfig",
    "SplitConfig",
    "ResamplingConfig",
    "RecipeConfig",
    "SearchConfig",
    "ModelFamilyConfig",
    "ParameterRangeConfig",
    "load_config",
    "get_default_config",
    # Search
    "prepare_folds",
    "tune_family",
    "select_best",
    "search_family",
    "select_model",
    # Training
    "ModelComparisonPipeline",
    "ComparisonResult",
    "FamilyPlan",
    "plans_from_config",
    "run_comparison",
    "run_comparison_from_config",
    # Prediction
    "PredictionPipeline",
    "create_prediction_pipeline",
    "create_prediction_pipeline_from_config",
    # Evaluation
    "EvaluationPipeline",
    "FinalEvaluation",
    "evaluate_final",
]
