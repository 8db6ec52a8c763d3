"""API module for the price prediction service."""

from .app import create_app
from .dtos import InvokeRequest, InvokeResponse, ListingInput, PredictionOutput

__all__ = [
    "create_app",
    "InvokeRequest",
    "InvokeResponse",
    "ListingInput",
    "PredictionOutput",
]
