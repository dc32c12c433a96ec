"""
Watering Domain Module
======================

Domain model for recurring watering reminders.

This module provides:
- WateringEvent / PlantRecord / Species: entities shared by all backends
- IntervalPolicy: water-need to interval mapping
- EventStore / PlantStore: protocols for persistence
"""
from app.domain.watering.entities import PlantRecord, Species, WateringEvent
from app.domain.watering.interval_policy import IntervalPolicy
from app.domain.watering.repository import EventStore, PlantStore

__all__ = [
    "EventStore",
    "IntervalPolicy",
    "PlantRecord",
    "PlantStore",
    "Species",
    "WateringEvent",
]
