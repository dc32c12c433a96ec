"""
Local Plant Store
=================

PlantStore implementation over the device-local key-value store. Plant
records embed their species object, since a guest device has no catalog
service to join against; a species cache array backs ``get_species``.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Tuple

from app.domain.watering.entities import PlantRecord, Species
from app.utils.persistent_store import LocalKeyValueStore
from app.utils.time import utc_now
from infrastructure.local.event_store import new_local_id

logger = logging.getLogger(__name__)

LOCAL_OWNER_REF = "local"


class LocalPlantStore:
    """PlantStore backed by a single JSON array of plants."""

    def __init__(self, storage: LocalKeyValueStore) -> None:
        self._storage = storage

    def _read(self) -> Tuple[List[PlantRecord], List[Any]]:
        plants: List[PlantRecord] = []
        unreadable: List[Any] = []
        for raw in self._storage.get_list(LocalKeyValueStore.GUEST_PLANTS):
            try:
                plants.append(PlantRecord.from_dict(raw))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                # Written back verbatim on the next rewrite
                logger.warning("Keeping unreadable local plant %r as-is: %s", raw, e)
                unreadable.append(raw)
        return plants, unreadable

    def _load(self) -> List[PlantRecord]:
        return self._read()[0]

    def _save(self, plants: List[PlantRecord], unreadable: List[Any]) -> None:
        items = [p.to_dict() for p in plants] + list(unreadable)
        self._storage.set_list(LocalKeyValueStore.GUEST_PLANTS, items)

    def _resolve_species(self, plant: PlantRecord) -> None:
        if plant.species_id is None:
            plant.species = None
        elif plant.species is None or plant.species.species_id != plant.species_id:
            plant.species = self.get_species(plant.species_id)

    # ==================== Species cache ====================

    def cache_species(self, species: Iterable[Species]) -> int:
        """Replace the device species cache."""
        items = [s.to_dict() for s in species]
        self._storage.set_list(LocalKeyValueStore.GUEST_SPECIES_CACHE, items)
        return len(items)

    def get_species(self, species_id: str) -> Optional[Species]:
        return next((s for s in self.list_species() if s.species_id == species_id), None)

    def list_species(self) -> List[Species]:
        return [
            Species.from_dict(raw)
            for raw in self._storage.get_list(LocalKeyValueStore.GUEST_SPECIES_CACHE)
            if raw.get("species_id")
        ]

    # ==================== Plants ====================

    def create(self, plant: PlantRecord) -> PlantRecord:
        plants, unreadable = self._read()
        now = utc_now()
        plant.plant_id = plant.plant_id or new_local_id()
        plant.owner_ref = plant.owner_ref or LOCAL_OWNER_REF
        plant.created_at = now
        plant.updated_at = now
        self._resolve_species(plant)
        plants.append(plant)
        self._save(plants, unreadable)
        logger.info("Created local plant %s (%s)", plant.plant_id, plant.name)
        return plant

    def get(self, plant_id: str) -> Optional[PlantRecord]:
        return next((p for p in self._load() if p.plant_id == plant_id), None)

    def get_owned(self, plant_id: str, owner_ref: str) -> Optional[PlantRecord]:
        # Single implicit owner on a device
        return self.get(plant_id)

    def list_by_owner(self, owner_ref: str) -> List[PlantRecord]:
        return self.list_all()

    def update(self, plant: PlantRecord) -> Optional[PlantRecord]:
        plants, unreadable = self._read()
        for index, existing in enumerate(plants):
            if existing.plant_id == plant.plant_id:
                plant.created_at = existing.created_at
                plant.updated_at = utc_now()
                self._resolve_species(plant)
                plants[index] = plant
                self._save(plants, unreadable)
                return plant
        return None

    def delete(self, plant_id: str) -> bool:
        plants, unreadable = self._read()
        kept = [p for p in plants if p.plant_id != plant_id]
        if len(kept) == len(plants):
            return False
        self._save(kept, unreadable)
        return True

    def list_all(self) -> List[PlantRecord]:
        return sorted(self._load(), key=lambda p: p.created_at, reverse=True)
