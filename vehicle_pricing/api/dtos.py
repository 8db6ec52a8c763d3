"""Data Transfer Objects for the price prediction API."""

from uuid import UUID

from pydantic import BaseModel, Field
import pydantic


class ListingInput(BaseModel):
    """Single listing to price."""

    manufacturer: str
    model_name: str
    color: str
    registration_year: int = Field(..., ge=1900)
    body_type: str
    mileage: float = Field(..., gt=0)
    engine_size: float = Field(..., gt=0)
    transmission: str
    fuel_type: str
    seat_count: int = Field(..., ge=1)
    door_count: int = Field(..., ge=0)
    advertisement_time: float


class InvokeRequest(BaseModel):
    """Request payload for the /invoke endpoint."""

    data: list[ListingInput] = Field(
        ..., min_length=1, description="Listings to price"
    )


class PredictionOutput(BaseModel):
    """Single prediction result."""

    estimated_price: float
    model_id: str


class InvokeResponse(BaseModel):
    """Response payload from the /invoke endpoint."""

    predictions: list[PredictionOutput]
    execution_time_ms: float
    response_id: UUID

    @pydantic.field_validator("execution_time_ms", mode="before")
    def round_execution_time_ms(cls, v: float) -> float:
        return round(v, 2)
