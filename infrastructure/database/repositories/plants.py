"""
Plant Repository
================

Server-side implementation of the PlantStore protocol using SQLite.
Wraps the PlantOperations mixin from the infrastructure layer.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from app.domain.watering.entities import PlantRecord, Species

if TYPE_CHECKING:
    from infrastructure.database.ops.plants import PlantOperations


class SqlPlantStore:
    """PlantStore backed by the shared relational database."""

    def __init__(self, backend: "PlantOperations") -> None:
        self._backend = backend

    def create(self, plant: PlantRecord) -> PlantRecord:
        return self._backend.insert_plant(plant)

    def get(self, plant_id: str) -> Optional[PlantRecord]:
        return self._backend.get_plant(plant_id)

    def get_owned(self, plant_id: str, owner_ref: str) -> Optional[PlantRecord]:
        return self._backend.get_plant_for_owner(plant_id, owner_ref)

    def list_by_owner(self, owner_ref: str) -> List[PlantRecord]:
        return self._backend.list_plants_for_owner(owner_ref)

    def update(self, plant: PlantRecord) -> Optional[PlantRecord]:
        return self._backend.update_plant(plant)

    def delete(self, plant_id: str) -> bool:
        return self._backend.delete_plant(plant_id)

    def get_species(self, species_id: str) -> Optional[Species]:
        return self._backend.get_species(species_id)

    def list_species(self) -> List[Species]:
        return self._backend.list_species()

    def list_all(self) -> List[PlantRecord]:
        return self._backend.get_all_plants()
