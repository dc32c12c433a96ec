"""
Scheduling Context
==================

Binds the watering scheduler to exactly one storage backend for one session:

- signed-in user: the shared server database, filtered by user
- guest device: the device-local store with a single implicit owner

Callers never choose per operation; they resolve a SessionContext once and
use the SchedulingServices built for it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional, TYPE_CHECKING

from app.domain.exceptions import ConfigurationError, ValidationError
from app.domain.watering.repository import EventStore, PlantStore
from app.enums.watering import StorageMode
from app.services.application.plant_service import PlantLifecycleService
from app.services.application.schedule_engine import ScheduleEngine
from app.utils.persistent_store import LocalKeyValueStore
from app.utils.time import today
from infrastructure.database.repositories import SqlEventStore, SqlPlantStore
from infrastructure.local import LOCAL_OWNER_REF, LocalEventStore, LocalPlantStore

if TYPE_CHECKING:
    from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Who is scheduling, and against which backend."""

    mode: StorageMode
    owner_ref: str

    @classmethod
    def for_user(cls, user_id: Any) -> "SessionContext":
        owner = str(user_id).strip() if user_id is not None else ""
        if not owner:
            raise ValidationError("A signed-in session requires a user id")
        return cls(mode=StorageMode.SERVER, owner_ref=owner)

    @classmethod
    def guest(cls) -> "SessionContext":
        return cls(mode=StorageMode.LOCAL, owner_ref=LOCAL_OWNER_REF)

    @classmethod
    def from_device(cls, storage: LocalKeyValueStore, user_id: Any = None) -> "SessionContext":
        """Guest when the device flag says so or nobody is signed in."""
        if storage.is_guest_mode() or user_id is None:
            return cls.guest()
        return cls.for_user(user_id)

    @property
    def is_local(self) -> bool:
        return self.mode is StorageMode.LOCAL


@dataclass
class SchedulingServices:
    """Scheduler and plant lifecycle bound to one session's backend."""

    session: SessionContext
    event_store: EventStore
    plant_store: PlantStore
    schedule_engine: ScheduleEngine
    plant_service: PlantLifecycleService


def build_scheduler(
    session: SessionContext,
    *,
    database: Optional["SQLiteDatabaseHandler"] = None,
    local_storage: Optional[LocalKeyValueStore] = None,
    audit_logger: Optional[Any] = None,
    clock: Callable[[], date] = today,
) -> SchedulingServices:
    """
    Wire stores, engine and plant service for *session*.

    Raises:
        ConfigurationError: the backend the session needs was not provided
    """
    event_store: EventStore
    plant_store: PlantStore
    if session.is_local:
        if local_storage is None:
            raise ConfigurationError("Guest session requires device-local storage")
        event_store = LocalEventStore(local_storage)
        plant_store = LocalPlantStore(local_storage)
    else:
        if database is None:
            raise ConfigurationError("Signed-in session requires the server database")
        event_store = SqlEventStore(database)
        plant_store = SqlPlantStore(database)

    engine = ScheduleEngine(
        event_store=event_store,
        plant_store=plant_store,
        audit_logger=audit_logger,
        clock=clock,
    )
    plant_service = PlantLifecycleService(
        plant_store=plant_store,
        event_store=event_store,
        schedule_engine=engine,
        audit_logger=audit_logger,
    )
    logger.debug("Built scheduler for %s session (owner=%s)", session.mode.value, session.owner_ref)
    return SchedulingServices(
        session=session,
        event_store=event_store,
        plant_store=plant_store,
        schedule_engine=engine,
        plant_service=plant_service,
    )
