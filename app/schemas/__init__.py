"""
Schemas Module
==============

This module provides Pydantic models for request/response validation.
Schemas ensure data integrity and provide automatic validation.
"""

from app.schemas.watering import (
    CompleteWaterEventRequest,
    CreatePlantRequest,
    CreateWaterEventRequest,
    OverdueQuery,
    UpdatePlantRequest,
    WaterEventRangeQuery,
)

__all__ = [
    "CompleteWaterEventRequest",
    "CreatePlantRequest",
    "CreateWaterEventRequest",
    "OverdueQuery",
    "UpdatePlantRequest",
    "WaterEventRangeQuery",
]
