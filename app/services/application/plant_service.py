"""
Plant Service
=============
Application-level service for the plant lifecycle as seen by the watering
scheduler.

This service provides:
- Plant CRUD for one owner (server user or the device's guest owner)
- Initial watering event when a plant is created with a species
- Schedule rebuild when the species assignment changes or is removed
- Removal of a plant's watering events with the plant

Responsibilities:
- The plant write always commits first; scheduling side effects are
  best-effort and surface as warnings, never as a failed plant write
- Species references are validated against the store's species catalog
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING

from app.domain.exceptions import NotFoundError, ValidationError
from app.domain.watering.entities import PlantRecord, Species, WateringEvent
from app.domain.watering.repository import EventStore, PlantStore
from app.utils.time import coerce_date

if TYPE_CHECKING:
    from app.services.application.schedule_engine import ScheduleEngine

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "location", "acquisition_date", "notes", "photos", "species_id")


@dataclass
class PlantOutcome:
    """A committed plant write plus the scheduling side effect it triggered."""

    plant: PlantRecord
    water_event: Optional[WateringEvent] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plant": self.plant.to_dict(),
            "water_event": self.water_event.to_dict() if self.water_event else None,
            "warnings": list(self.warnings),
        }


class PlantLifecycleService:
    """Plant CRUD wired to the watering schedule."""

    def __init__(
        self,
        *,
        plant_store: PlantStore,
        event_store: EventStore,
        schedule_engine: "ScheduleEngine",
        audit_logger: Optional[Any] = None,
    ):
        """
        Initialize plant lifecycle service.

        Args:
            plant_store: Store holding the owner's plants
            event_store: Store holding the plants' watering events
            schedule_engine: Engine used for initial events and recalculation
            audit_logger: Optional audit logger for plant writes
        """
        self.plant_store = plant_store
        self.event_store = event_store
        self.schedule_engine = schedule_engine
        self.audit_logger = audit_logger

    def _audit(self, actor: str, action: str, plant_id: Optional[str], **meta: Any) -> None:
        if self.audit_logger is not None:
            self.audit_logger.log_event(actor, action, f"plant:{plant_id}", "success", **meta)

    def _require_species(self, species_id: Optional[str]) -> Optional[Species]:
        if not species_id:
            return None
        species = self.plant_store.get_species(species_id)
        if species is None:
            raise ValidationError(f"Unknown species {species_id}", detail={"field": "species_id"})
        return species

    @staticmethod
    def _clean_name(name: Any) -> str:
        cleaned = str(name or "").strip()
        if not cleaned:
            raise ValidationError("Plant name is required", detail={"field": "name"})
        return cleaned

    @staticmethod
    def _parse_acquisition(value: Any):
        if value is None or value == "":
            return None
        parsed = coerce_date(value)
        if parsed is None:
            raise ValidationError(f"Invalid acquisition_date: {value!r}", detail={"field": "acquisition_date"})
        return parsed

    # ==================== Queries ====================

    def get_plant(self, plant_id: str, owner_ref: str) -> PlantRecord:
        plant = self.plant_store.get_owned(plant_id, owner_ref)
        if plant is None:
            raise NotFoundError(f"Plant with ID {plant_id} not found")
        return plant

    def list_plants(self, owner_ref: str) -> List[PlantRecord]:
        return self.plant_store.list_by_owner(owner_ref)

    def list_species(self) -> List[Species]:
        return self.plant_store.list_species()

    # ==================== Writes ====================

    def create_plant(
        self,
        owner_ref: str,
        *,
        name: str,
        location: Optional[str] = None,
        acquisition_date: Any = None,
        notes: Optional[str] = None,
        photos: Optional[Iterable[str]] = None,
        species_id: Optional[str] = None,
        schedule_initial: bool = True,
    ) -> PlantOutcome:
        """
        Create a plant and, when it has a species, its first watering event.

        Args:
            owner_ref: Owning user (or the local owner)
            name: Display name (required)
            location: Free-text location
            acquisition_date: Base date for the first schedule
            notes: Free-text notes
            photos: Photo references
            species_id: Catalog species; must exist when given
            schedule_initial: False to skip the initial event, used when the
                caller replays an existing schedule for this plant

        Returns:
            PlantOutcome with the stored plant and the initial event, if any
        """
        species = self._require_species(species_id)
        plant = PlantRecord(
            owner_ref=owner_ref,
            name=self._clean_name(name),
            location=location,
            acquisition_date=self._parse_acquisition(acquisition_date),
            notes=notes,
            photos=list(photos or []),
            species_id=species.species_id if species else None,
            species=species,
        )
        plant = self.plant_store.create(plant)
        outcome = PlantOutcome(plant=plant)
        logger.info("Created plant %s (%s) for owner %s", plant.plant_id, plant.name, owner_ref)
        self._audit(owner_ref, "plant.create", plant.plant_id, species_id=plant.species_id)

        if plant.species_id and schedule_initial:
            try:
                outcome.water_event = self.schedule_engine.create_initial_event(plant)
            except Exception as e:
                logger.error("Failed to create initial water event for plant %s: %s", plant.plant_id, e, exc_info=True)
                outcome.warnings.append(f"Initial water event not created: {e}")
        return outcome

    def update_plant(self, plant_id: str, owner_ref: str, changes: Dict[str, Any]) -> PlantOutcome:
        """
        Apply a partial update to a plant.

        Only keys present in *changes* are touched; ``species_id: None``
        removes the species. A changed species triggers a schedule rebuild.
        """
        plant = self.get_plant(plant_id, owner_ref)
        previous_species_id = plant.species_id

        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown plant fields: {', '.join(sorted(unknown))}")

        if "name" in changes:
            plant.name = self._clean_name(changes["name"])
        if "location" in changes:
            plant.location = changes["location"]
        if "acquisition_date" in changes:
            plant.acquisition_date = self._parse_acquisition(changes["acquisition_date"])
        if "notes" in changes:
            plant.notes = changes["notes"]
        if "photos" in changes:
            plant.photos = list(changes["photos"] or [])
        if "species_id" in changes:
            species = self._require_species(changes["species_id"])
            plant.species = species
            plant.species_id = species.species_id if species else None

        updated = self.plant_store.update(plant)
        if updated is None:
            raise NotFoundError(f"Plant with ID {plant_id} not found")
        outcome = PlantOutcome(plant=updated)
        self._audit(owner_ref, "plant.update", plant_id, fields=sorted(changes))

        if updated.species_id != previous_species_id:
            logger.info(
                "Plant %s species changed %s -> %s; recalculating schedule",
                plant_id, previous_species_id, updated.species_id,
            )
            try:
                outcome.water_event = self.schedule_engine.recalculate_for_plant(plant_id)
            except Exception as e:
                logger.error("Failed to recalculate water events for plant %s: %s", plant_id, e, exc_info=True)
                outcome.warnings.append(f"Watering schedule not recalculated: {e}")
        return outcome

    def delete_plant(self, plant_id: str, owner_ref: str) -> int:
        """
        Delete a plant together with all of its watering events.

        Returns:
            Number of watering events removed with the plant
        """
        self.get_plant(plant_id, owner_ref)
        removed = self.event_store.delete_by_plant(plant_id)
        self.plant_store.delete(plant_id)
        logger.info("Deleted plant %s and %d water events", plant_id, removed)
        self._audit(owner_ref, "plant.delete", plant_id, water_events_removed=removed)
        return removed
