"""FastAPI application for the price prediction service.

Run with ``uvicorn --factory vehicle_pricing.api.app:create_app``.
"""

import time
import uuid

from fastapi import FastAPI, HTTPException

from vehicle_pricing.api.config import app_config
from vehicle_pricing.api.service import PricePredictionService
from vehicle_pricing.domain.errors import NonPositiveValueError
from vehicle_pricing.pipelines.prediction import PredictionPipeline, create_prediction_pipeline

from .dtos import InvokeRequest, InvokeResponse


def create_app(pipeline: PredictionPipeline | None = None) -> FastAPI:
    """Build the API around a loaded prediction pipeline."""
    if pipeline is None:
        pipeline = create_prediction_pipeline(app_config.artifacts_dir)
    service = PricePredictionService(pipeline)

    app = FastAPI(
        title="Vehicle Price API",
        description="API for predicting used-vehicle prices",
        version="1.0.0",
    )

    @app.post("/invoke", response_model=InvokeResponse)
    def invoke(request: InvokeRequest) -> InvokeResponse:
        """Generate price predictions for listings."""
        start_time = time.perf_counter()

        try:
            predictions = service.predict_batch(request.data)
        except NonPositiveValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

        elapsed_seconds = time.perf_counter() - start_time

        return InvokeResponse(
            predictions=predictions,
            execution_time_ms=elapsed_seconds * 1000,
            response_id=uuid.uuid4(),
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "model": pipeline.model_version}

    return app
