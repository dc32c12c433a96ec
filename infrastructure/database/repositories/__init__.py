"""Repository facades exposing typed accessors over low-level mixins."""

from infrastructure.database.repositories.plants import SqlPlantStore
from infrastructure.database.repositories.watering import SqlEventStore

__all__ = [
    "SqlEventStore",
    "SqlPlantStore",
]
