"""
Local Watering Event Store
==========================

EventStore implementation over the device-local key-value store. All events
live in one serialized array; every query loads the full array and filters
it in memory, and every mutation rewrites the full array.

There is exactly one implicit owner on a device, so ``owner_ref`` arguments
are accepted and ignored. Access is single-process and not reentrant:
callers must not interleave two mutations.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import date
from typing import Any, Callable, Iterator, List, Optional, Tuple

from app.domain.watering.entities import WateringEvent
from app.enums.watering import WateringStatus
from app.utils.persistent_store import LocalKeyValueStore
from app.utils.time import utc_now

logger = logging.getLogger(__name__)


def new_local_id() -> str:
    return f"local-{uuid.uuid4().hex}"


class LocalEventStore:
    """EventStore backed by a single JSON array of events."""

    def __init__(self, storage: LocalKeyValueStore) -> None:
        self._storage = storage

    # ==================== Array I/O ====================

    def _read(self) -> Tuple[List[WateringEvent], List[Any]]:
        """Parse the stored array into events plus the raw items that failed to parse.

        Unreadable items are carried through every rewrite untouched so a
        later migration or a newer client can still recover them.
        """
        events: List[WateringEvent] = []
        unreadable: List[Any] = []
        for raw in self._storage.get_list(LocalKeyValueStore.GUEST_WATER_EVENTS):
            try:
                events.append(WateringEvent.from_dict(raw))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Keeping unreadable local water event %r as-is: %s", raw, e)
                unreadable.append(raw)
        return events, unreadable

    def _load(self) -> List[WateringEvent]:
        return self._read()[0]

    def _save(self, events: List[WateringEvent], unreadable: List[Any]) -> None:
        items = [e.to_dict() for e in events] + list(unreadable)
        self._storage.set_list(LocalKeyValueStore.GUEST_WATER_EVENTS, items)

    def _delete_where(self, predicate: Callable[[WateringEvent], bool]) -> int:
        events, unreadable = self._read()
        kept = [e for e in events if not predicate(e)]
        removed = len(events) - len(kept)
        if removed:
            self._save(kept, unreadable)
        return removed

    @staticmethod
    def _sorted(events: List[WateringEvent]) -> List[WateringEvent]:
        return sorted(events, key=lambda e: (e.scheduled_date, e.created_at))

    # ==================== Writes ====================

    @contextmanager
    def atomic(self) -> Iterator[None]:
        # Device access is single-process; every mutation is already one rewrite
        yield


    def create(self, event: WateringEvent) -> WateringEvent:
        event.status = WateringStatus.PENDING
        event.completed_date = None
        return self.import_event(event)

    def import_event(self, event: WateringEvent) -> WateringEvent:
        events, unreadable = self._read()
        now = utc_now()
        event.event_id = event.event_id or new_local_id()
        event.created_at = now
        event.updated_at = now
        events.append(event)
        self._save(events, unreadable)
        logger.debug("Created local water event %s for plant %s", event.event_id, event.plant_id)
        return event

    def mark_resolved(self, event_id: str, status: WateringStatus, completed_date: date) -> bool:
        events, unreadable = self._read()
        for event in events:
            if event.event_id != event_id:
                continue
            if not event.is_pending:
                return False
            event.status = status
            event.completed_date = completed_date
            event.updated_at = utc_now()
            self._save(events, unreadable)
            return True
        return False

    def delete_pending_by_plant(self, plant_id: str) -> int:
        return self._delete_where(lambda e: e.plant_id == plant_id and e.is_pending)

    def delete_by_plant(self, plant_id: str) -> int:
        return self._delete_where(lambda e: e.plant_id == plant_id)

    # ==================== Queries ====================

    def find_by_id(self, event_id: str) -> Optional[WateringEvent]:
        return next((e for e in self._load() if e.event_id == event_id), None)

    def find_pending_by_plant(self, plant_id: str) -> List[WateringEvent]:
        return self._sorted([e for e in self._load() if e.plant_id == plant_id and e.is_pending])

    def find_last_watered_by_plant(self, plant_id: str) -> Optional[WateringEvent]:
        watered = [
            e
            for e in self._load()
            if e.plant_id == plant_id and e.status is WateringStatus.WATERED and e.completed_date is not None
        ]
        if not watered:
            return None
        return max(watered, key=lambda e: (e.completed_date, e.updated_at))

    def find_in_range(self, owner_ref: str, start: date, end: date) -> List[WateringEvent]:
        return self._sorted([e for e in self._load() if start <= e.scheduled_date <= end])

    def find_overdue(self, owner_ref: str, as_of: date) -> List[WateringEvent]:
        return self._sorted([e for e in self._load() if e.is_pending and e.scheduled_date < as_of])

    def list_all(self) -> List[WateringEvent]:
        return self._sorted(self._load())
