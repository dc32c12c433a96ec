"""Device-local (guest mode) storage backends."""

from infrastructure.local.event_store import LocalEventStore
from infrastructure.local.plant_store import LOCAL_OWNER_REF, LocalPlantStore

__all__ = ["LOCAL_OWNER_REF", "LocalEventStore", "LocalPlantStore"]
