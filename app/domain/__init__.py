"""
Domain Package
==============
Entities, policies and storage protocols of the watering scheduler.

Nothing in this package performs I/O; storage is reached only through the
protocols in ``app.domain.watering.repository``.
"""

from .exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    MissingSpeciesError,
    NotFoundError,
    PlantCareError,
    RepositoryError,
    ValidationError,
)
from .watering import EventStore, IntervalPolicy, PlantRecord, PlantStore, Species, WateringEvent

__all__ = [
    # Errors
    "ConflictError",
    "ForbiddenError",
    "InvalidStateError",
    "MissingSpeciesError",
    "NotFoundError",
    "PlantCareError",
    "RepositoryError",
    "ValidationError",
    # Watering
    "EventStore",
    "IntervalPolicy",
    "PlantRecord",
    "PlantStore",
    "Species",
    "WateringEvent",
]
