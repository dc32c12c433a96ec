"""
Enums Module
============

This module provides enumeration types for the plant watering scheduler.
Enums ensure type safety and consistency across the codebase.
"""

from app.enums.watering import (
    StorageMode,
    WateringAction,
    WateringStatus,
    WaterNeed,
)

__all__ = [
    "StorageMode",
    "WateringAction",
    "WateringStatus",
    "WaterNeed",
]
