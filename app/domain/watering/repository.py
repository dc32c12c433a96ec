"""
Watering Storage Protocols
==========================

Defines the storage interfaces the scheduler depends on. Two families of
implementations exist:

- SQLite-backed server stores (shared, multi-user, filtered by owner)
- Device-local JSON stores (single implicit owner, no concurrency)

The scheduler is written only against these protocols and never inspects
which backend it was given.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import ContextManager, Protocol

from app.domain.watering.entities import PlantRecord, Species, WateringEvent
from app.enums.watering import WateringStatus


class EventStore(Protocol):
    """Protocol for watering-event persistence operations."""

    @abstractmethod
    def atomic(self) -> ContextManager[object]:
        """
        Group several writes so no other writer can interleave with them.

        Used around read-decide-write sequences that must leave a plant
        with a single PENDING event, e.g. delete-pending-then-create.
        """
        ...

    @abstractmethod
    def create(self, event: WateringEvent) -> WateringEvent:
        """
        Persist a new PENDING event.

        Args:
            event: Event to create (event_id should be None)

        Returns:
            Created event with assigned event_id
        """
        ...

    @abstractmethod
    def import_event(self, event: WateringEvent) -> WateringEvent:
        """
        Persist an event exactly as given, including a terminal status.

        Used when replaying another store's history.
        """
        ...

    @abstractmethod
    def find_by_id(self, event_id: str) -> WateringEvent | None:
        """Get an event by ID, None if absent."""
        ...

    @abstractmethod
    def find_pending_by_plant(self, plant_id: str) -> list[WateringEvent]:
        """Get all PENDING events of a plant."""
        ...

    @abstractmethod
    def delete_pending_by_plant(self, plant_id: str) -> int:
        """
        Delete every PENDING event of a plant.

        Returns:
            Number of events deleted
        """
        ...

    @abstractmethod
    def delete_by_plant(self, plant_id: str) -> int:
        """Delete every event of a plant regardless of status."""
        ...

    @abstractmethod
    def find_last_watered_by_plant(self, plant_id: str) -> WateringEvent | None:
        """Most recent WATERED event of a plant by completed_date."""
        ...

    @abstractmethod
    def mark_resolved(self, event_id: str, status: WateringStatus, completed_date: date) -> bool:
        """
        Atomically move a PENDING event to a terminal status.

        Args:
            event_id: Event to resolve
            status: WATERED or POSTPONED
            completed_date: Calendar date of resolution

        Returns:
            True if the event was PENDING and is now resolved, False if it
            was missing or already resolved
        """
        ...

    @abstractmethod
    def find_in_range(self, owner_ref: str, start: date, end: date) -> list[WateringEvent]:
        """
        Events of any status whose scheduled_date is within [start, end].

        Returns:
            Events ordered by scheduled_date ascending
        """
        ...

    @abstractmethod
    def find_overdue(self, owner_ref: str, as_of: date) -> list[WateringEvent]:
        """
        PENDING events scheduled strictly before *as_of*.

        Returns:
            Events ordered by scheduled_date ascending
        """
        ...

    @abstractmethod
    def list_all(self) -> list[WateringEvent]:
        """Every stored event."""
        ...


class PlantStore(Protocol):
    """Protocol for the plant collaborator the scheduler reads from."""

    @abstractmethod
    def create(self, plant: PlantRecord) -> PlantRecord:
        """Persist a new plant and return it with plant_id assigned."""
        ...

    @abstractmethod
    def get(self, plant_id: str) -> PlantRecord | None:
        """Get a plant by ID with its species resolved."""
        ...

    @abstractmethod
    def get_owned(self, plant_id: str, owner_ref: str) -> PlantRecord | None:
        """Get a plant by ID only if it belongs to *owner_ref*."""
        ...

    @abstractmethod
    def list_by_owner(self, owner_ref: str) -> list[PlantRecord]:
        """All plants of an owner, newest first."""
        ...

    @abstractmethod
    def update(self, plant: PlantRecord) -> PlantRecord | None:
        """Persist changes to an existing plant, None if it does not exist."""
        ...

    @abstractmethod
    def delete(self, plant_id: str) -> bool:
        """Delete a plant, True if it existed."""
        ...

    @abstractmethod
    def get_species(self, species_id: str) -> Species | None:
        """Look up a species by ID."""
        ...

    @abstractmethod
    def list_species(self) -> list[Species]:
        """All known species."""
        ...

    @abstractmethod
    def list_all(self) -> list[PlantRecord]:
        """Every stored plant."""
        ...
