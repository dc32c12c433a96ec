"""
Watering Event Repository
=========================

Server-side implementation of the EventStore protocol using SQLite.
Wraps the WateringOperations mixin from the infrastructure layer.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import date
from typing import TYPE_CHECKING, Iterator, List, Optional

from app.domain.exceptions import RepositoryError
from app.domain.watering.entities import WateringEvent
from app.enums.watering import WateringStatus

if TYPE_CHECKING:
    from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler


class SqlEventStore:
    """
    EventStore backed by the shared relational database.

    Range and overdue queries are filtered by owner through the Plants table.
    """

    def __init__(self, backend: "SQLiteDatabaseHandler") -> None:
        """
        Initialize with database backend.

        Args:
            backend: Database handler providing WateringOperations and transaction()
        """
        self._backend = backend

    # ==================== Writes ====================

    @contextmanager
    def atomic(self) -> Iterator[None]:
        try:
            with self._backend.transaction():
                yield
        except sqlite3.Error as e:
            raise RepositoryError("Water event transaction failed") from e

    def create(self, event: WateringEvent) -> WateringEvent:
        """Persist a new PENDING event."""
        event.status = WateringStatus.PENDING
        event.completed_date = None
        return self._backend.insert_water_event(event)

    def import_event(self, event: WateringEvent) -> WateringEvent:
        return self._backend.insert_water_event(event)

    def mark_resolved(self, event_id: str, status: WateringStatus, completed_date: date) -> bool:
        return self._backend.resolve_water_event(event_id, status, completed_date)

    def delete_pending_by_plant(self, plant_id: str) -> int:
        return self._backend.delete_pending_water_events(plant_id)

    def delete_by_plant(self, plant_id: str) -> int:
        return self._backend.delete_water_events_for_plant(plant_id)

    # ==================== Queries ====================

    def find_by_id(self, event_id: str) -> Optional[WateringEvent]:
        return self._backend.get_water_event(event_id)

    def find_pending_by_plant(self, plant_id: str) -> List[WateringEvent]:
        return self._backend.get_pending_water_events(plant_id)

    def find_last_watered_by_plant(self, plant_id: str) -> Optional[WateringEvent]:
        return self._backend.get_last_watered_event(plant_id)

    def find_in_range(self, owner_ref: str, start: date, end: date) -> List[WateringEvent]:
        return self._backend.get_water_events_in_range(owner_ref, start, end)

    def find_overdue(self, owner_ref: str, as_of: date) -> List[WateringEvent]:
        return self._backend.get_overdue_water_events(owner_ref, as_of)

    def list_all(self) -> List[WateringEvent]:
        return self._backend.get_all_water_events()
