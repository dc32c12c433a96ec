"""
Reconciliation Service
======================

One-shot migration of a guest device's plants and watering events into a
signed-in user's server account.

Migration is deliberately NOT all-or-nothing: every plant and event is
attempted, failures are collected in ``SyncResult.errors`` and the run is a
success when at least one item made it across. Events whose plant failed to
migrate are skipped and reported.

The server is reached through a ServerGateway, either in-process (direct
service calls) or over HTTP (see ``infrastructure.http.server_gateway``).
"""
from __future__ import annotations

import logging
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from app.domain.watering.entities import PlantRecord, WateringEvent
from app.domain.watering.repository import EventStore, PlantStore
from app.services.scheduling_context import SchedulingServices

logger = logging.getLogger(__name__)

# (step, current, total, percentage)
ProgressCallback = Callable[[str, int, int, int], None]


class ServerGateway(Protocol):
    """Write path into the server account guest data is migrated to."""

    @abstractmethod
    def create_plant(self, plant: PlantRecord, *, schedule_initial: bool = True) -> str:
        """
        Create *plant* on the server for the signed-in user.

        Args:
            plant: Local plant whose attributes are copied
            schedule_initial: Whether the server creates its own initial event

        Returns:
            Server plant id
        """
        ...

    @abstractmethod
    def create_water_event(self, plant_id: str, event: WateringEvent) -> str:
        """Replay *event* under server plant *plant_id*, returning the server event id."""
        ...

    @abstractmethod
    def list_plant_ids(self) -> List[str]:
        """Ids of every plant the signed-in user owns on the server."""
        ...


@dataclass
class SyncIdMapping:
    plants: Dict[str, str] = field(default_factory=dict)
    water_events: Dict[str, str] = field(default_factory=dict)


@dataclass
class SyncResult:
    """Outcome of one migration run."""

    success: bool = False
    plants_synced: int = 0
    water_events_synced: int = 0
    photos_synced: int = 0
    errors: List[str] = field(default_factory=list)
    id_mapping: SyncIdMapping = field(default_factory=SyncIdMapping)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "plants_synced": self.plants_synced,
            "water_events_synced": self.water_events_synced,
            "photos_synced": self.photos_synced,
            "errors": list(self.errors),
            "id_mapping": {
                "plants": dict(self.id_mapping.plants),
                "water_events": dict(self.id_mapping.water_events),
            },
        }


class InProcessServerGateway:
    """ServerGateway calling the server scheduling services directly."""

    def __init__(self, services: SchedulingServices, owner_ref: str) -> None:
        self._services = services
        self._owner_ref = owner_ref

    def create_plant(self, plant: PlantRecord, *, schedule_initial: bool = True) -> str:
        outcome = self._services.plant_service.create_plant(
            self._owner_ref,
            name=plant.name,
            location=plant.location,
            acquisition_date=plant.acquisition_date,
            notes=plant.notes,
            photos=plant.photos,
            species_id=plant.species_id,
            schedule_initial=schedule_initial,
        )
        return str(outcome.plant.plant_id)

    def create_water_event(self, plant_id: str, event: WateringEvent) -> str:
        created = self._services.schedule_engine.import_event(
            plant_id,
            self._owner_ref,
            event.scheduled_date,
            event.status,
            event.completed_date,
        )
        return str(created.event_id)

    def list_plant_ids(self) -> List[str]:
        return [str(p.plant_id) for p in self._services.plant_service.list_plants(self._owner_ref)]


class ReconciliationService:
    """Replays guest-mode data against the server."""

    def __init__(
        self,
        *,
        local_plants: PlantStore,
        local_events: EventStore,
        gateway: ServerGateway,
        audit_logger: Optional[Any] = None,
        actor: str = "guest",
    ) -> None:
        self._local_plants = local_plants
        self._local_events = local_events
        self._gateway = gateway
        self._audit = audit_logger
        self._actor = actor

    @staticmethod
    def _report(on_progress: Optional[ProgressCallback], step: str, current: int, total: int) -> None:
        if on_progress is None:
            return
        percentage = int(current * 100 / total) if total else 100
        try:
            on_progress(step, current, total, percentage)
        except Exception as e:
            logger.warning("Progress callback failed at %s %d/%d: %s", step, current, total, e)

    def migrate_guest_data(self, on_progress: Optional[ProgressCallback] = None) -> SyncResult:
        """
        Copy every local plant, then every local event, to the server.

        Reading the local store is the only hard failure; every per-item
        failure is recorded in the result instead of raised.
        """
        plants = self._local_plants.list_all()
        events = self._local_events.list_all()
        total = len(plants) + len(events)
        done = 0
        result = SyncResult()
        plants_with_history = {e.plant_id for e in events}

        logger.info("Migrating guest data: %d plants, %d water events", len(plants), len(events))

        for plant in plants:
            try:
                server_id = self._gateway.create_plant(
                    plant,
                    schedule_initial=plant.plant_id not in plants_with_history,
                )
                result.id_mapping.plants[str(plant.plant_id)] = server_id
                result.plants_synced += 1
                result.photos_synced += len(plant.photos)
            except Exception as e:
                logger.error("Failed to migrate plant %s: %s", plant.plant_id, e, exc_info=True)
                result.errors.append(f"Plant {plant.name} ({plant.plant_id}): {e}")
            done += 1
            self._report(on_progress, "plants", done, total)

        for event in events:
            server_plant_id = result.id_mapping.plants.get(event.plant_id)
            if server_plant_id is None:
                result.errors.append(
                    f"Water event {event.event_id}: plant {event.plant_id} was not migrated"
                )
            else:
                try:
                    server_event_id = self._gateway.create_water_event(server_plant_id, event)
                    result.id_mapping.water_events[str(event.event_id)] = server_event_id
                    result.water_events_synced += 1
                except Exception as e:
                    logger.error("Failed to migrate water event %s: %s", event.event_id, e, exc_info=True)
                    result.errors.append(f"Water event {event.event_id}: {e}")
            done += 1
            self._report(on_progress, "water_events", done, total)

        result.success = result.plants_synced > 0 or result.water_events_synced > 0
        logger.info(
            "Guest data migration finished: success=%s plants=%d events=%d photos=%d errors=%d",
            result.success, result.plants_synced, result.water_events_synced,
            result.photos_synced, len(result.errors),
        )
        if self._audit is not None:
            self._audit.log_event(
                self._actor,
                "guest_data.migrate",
                "account",
                "success" if result.success else "failure",
                plants_synced=result.plants_synced,
                water_events_synced=result.water_events_synced,
                errors=len(result.errors),
            )
        return result

    def validate_sync(self, result: SyncResult) -> bool:
        """Check every mapped plant now exists on the server."""
        if not result.success:
            return False
        try:
            server_ids = set(self._gateway.list_plant_ids())
        except Exception as e:
            logger.warning("Could not validate guest data migration: %s", e)
            return False

        missing = [pid for pid in result.id_mapping.plants.values() if pid not in server_ids]
        if missing:
            logger.warning("Migrated plants missing on server: %s", ", ".join(missing))
            return False
        return True
