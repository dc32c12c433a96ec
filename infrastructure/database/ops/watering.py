"""
Watering Event Database Operations
==================================

Database operations for the WaterEvents table. Owner-scoped queries join
through Plants so a user only ever sees events of their own plants.

Dates are stored as ISO ``YYYY-MM-DD`` text, which sorts and compares
correctly as strings.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

from app.domain.exceptions import RepositoryError
from app.domain.watering.entities import WateringEvent
from app.enums.watering import WateringStatus
from app.utils.time import coerce_date, coerce_datetime, utc_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)

_EVENT_COLUMNS = "e.event_id, e.plant_id, e.scheduled_date, e.status, e.completed_date, e.created_at, e.updated_at"


class WateringOperations:
    """Watering-event CRUD helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def end_write(self, db: "Connection") -> None:
        """Commit unless an enclosing transaction owns the commit."""
        raise NotImplementedError("Subclass must implement end_write()")

    def abort_write(self, db: "Connection") -> None:
        raise NotImplementedError("Subclass must implement abort_write()")

    # =========================================================================
    # Writes
    # =========================================================================

    def insert_water_event(self, event: WateringEvent) -> WateringEvent:
        """
        Insert an event with whatever status it carries.

        Args:
            event: Event to insert; event_id is generated when missing

        Returns:
            The same event with event_id and timestamps set
        """
        db = self.get_db()
        now = utc_now()
        event_id = event.event_id or str(uuid.uuid4())

        try:
            db.execute(
                """
                INSERT INTO WaterEvents (
                    event_id, plant_id, scheduled_date, status,
                    completed_date, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event_id,
                    event.plant_id,
                    event.scheduled_date.isoformat(),
                    event.status.value,
                    event.completed_date.isoformat() if event.completed_date else None,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            self.end_write(db)
        except sqlite3.Error as e:
            self.abort_write(db)
            logger.error("Error creating water event for plant %s: %s", event.plant_id, e)
            raise RepositoryError(f"Failed to create water event for plant {event.plant_id}") from e

        event.event_id = event_id
        event.created_at = now
        event.updated_at = now
        logger.debug("Created water event %s for plant %s on %s", event_id, event.plant_id, event.scheduled_date)
        return event

    def resolve_water_event(self, event_id: str, status: WateringStatus, completed_date: date) -> bool:
        """
        Conditionally move a PENDING event to *status*.

        The status check and the write are one statement, so of two
        concurrent resolutions exactly one sees ``rowcount == 1``.
        """
        db = self.get_db()
        try:
            cursor = db.execute(
                """
                UPDATE WaterEvents
                SET status = ?, completed_date = ?, updated_at = ?
                WHERE event_id = ? AND status = ?
                """,
                (
                    status.value,
                    completed_date.isoformat(),
                    utc_now().isoformat(),
                    event_id,
                    WateringStatus.PENDING.value,
                ),
            )
            self.end_write(db)
        except sqlite3.Error as e:
            self.abort_write(db)
            logger.error("Error resolving water event %s: %s", event_id, e)
            raise RepositoryError(f"Failed to resolve water event {event_id}") from e
        return cursor.rowcount == 1

    def delete_pending_water_events(self, plant_id: str) -> int:
        """Delete all PENDING events of a plant, returning the count."""
        return self._delete_events(
            "DELETE FROM WaterEvents WHERE plant_id = ? AND status = ?",
            (plant_id, WateringStatus.PENDING.value),
            plant_id,
        )

    def delete_water_events_for_plant(self, plant_id: str) -> int:
        """Delete all events of a plant, returning the count."""
        return self._delete_events("DELETE FROM WaterEvents WHERE plant_id = ?", (plant_id,), plant_id)

    def _delete_events(self, sql: str, params: tuple[Any, ...], plant_id: str) -> int:
        db = self.get_db()
        try:
            cursor = db.execute(sql, params)
            self.end_write(db)
        except sqlite3.Error as e:
            self.abort_write(db)
            logger.error("Error deleting water events for plant %s: %s", plant_id, e)
            raise RepositoryError(f"Failed to delete water events for plant {plant_id}") from e
        return cursor.rowcount

    # =========================================================================
    # Reads
    # =========================================================================

    def get_water_event(self, event_id: str) -> WateringEvent | None:
        rows = self._query_events(f"SELECT {_EVENT_COLUMNS} FROM WaterEvents e WHERE e.event_id = ?", (event_id,))
        return rows[0] if rows else None

    def get_pending_water_events(self, plant_id: str) -> list[WateringEvent]:
        return self._query_events(
            f"""
            SELECT {_EVENT_COLUMNS} FROM WaterEvents e
            WHERE e.plant_id = ? AND e.status = ?
            ORDER BY e.scheduled_date ASC, e.created_at ASC
            """,
            (plant_id, WateringStatus.PENDING.value),
        )

    def get_last_watered_event(self, plant_id: str) -> WateringEvent | None:
        rows = self._query_events(
            f"""
            SELECT {_EVENT_COLUMNS} FROM WaterEvents e
            WHERE e.plant_id = ? AND e.status = ? AND e.completed_date IS NOT NULL
            ORDER BY e.completed_date DESC, e.updated_at DESC
            LIMIT 1
            """,
            (plant_id, WateringStatus.WATERED.value),
        )
        return rows[0] if rows else None

    def get_water_events_in_range(self, owner_ref: str, start: date, end: date) -> list[WateringEvent]:
        return self._query_events(
            f"""
            SELECT {_EVENT_COLUMNS} FROM WaterEvents e
            INNER JOIN Plants p ON p.plant_id = e.plant_id
            WHERE p.owner_ref = ? AND e.scheduled_date BETWEEN ? AND ?
            ORDER BY e.scheduled_date ASC, e.created_at ASC
            """,
            (owner_ref, start.isoformat(), end.isoformat()),
        )

    def get_overdue_water_events(self, owner_ref: str, as_of: date) -> list[WateringEvent]:
        return self._query_events(
            f"""
            SELECT {_EVENT_COLUMNS} FROM WaterEvents e
            INNER JOIN Plants p ON p.plant_id = e.plant_id
            WHERE p.owner_ref = ? AND e.status = ? AND e.scheduled_date < ?
            ORDER BY e.scheduled_date ASC, e.created_at ASC
            """,
            (owner_ref, WateringStatus.PENDING.value, as_of.isoformat()),
        )

    def get_all_water_events(self) -> list[WateringEvent]:
        return self._query_events(
            f"SELECT {_EVENT_COLUMNS} FROM WaterEvents e ORDER BY e.scheduled_date ASC, e.created_at ASC", ()
        )

    def _query_events(self, sql: str, params: tuple[Any, ...]) -> list[WateringEvent]:
        db = self.get_db()
        try:
            rows = db.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error("Error querying water events: %s", e)
            raise RepositoryError("Failed to query water events") from e
        return [self._row_to_event(dict(row)) for row in rows]

    @staticmethod
    def _row_to_event(row: dict[str, Any]) -> WateringEvent:
        return WateringEvent(
            event_id=row["event_id"],
            plant_id=row["plant_id"],
            scheduled_date=coerce_date(row["scheduled_date"]),
            status=WateringStatus(row["status"]),
            completed_date=coerce_date(row.get("completed_date")),
            created_at=coerce_datetime(row.get("created_at")) or utc_now(),
            updated_at=coerce_datetime(row.get("updated_at")) or utc_now(),
        )
