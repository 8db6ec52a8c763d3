from vehicle_pricing.api.dtos import ListingInput, PredictionOutput
from vehicle_pricing.pipelines.prediction import PredictionPipeline


class PricePredictionService:
    """Service class that encapsulates the prediction pipeline."""

    def __init__(self, pipeline: PredictionPipeline) -> None:
        self._pipeline = pipeline

    def predict_batch(self, inputs: list[ListingInput]) -> list[PredictionOutput]:
        """Generate price predictions for multiple listings."""
        predictions = self._pipeline.predict_batch([item.model_dump() for item in inputs])
        return [PredictionOutput(
            estimated_price=prediction.predicted_price,
            model_id=prediction.model_version or "unknown",
        ) for prediction in predictions]
