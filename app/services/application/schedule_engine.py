"""
Watering schedule engine.

Owns every rule that creates, advances or retires watering events:

- initial event when a plant gets a species
- PENDING -> WATERED / POSTPONED resolution with an automatic successor
- rebuild of the schedule when a plant's species changes or is removed
- manual / imported events and the calendar queries

The engine works against the EventStore and PlantStore protocols only, so
the same instance logic serves the server database and the device-local
store.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from app.domain.exceptions import (
    ForbiddenError,
    InvalidStateError,
    MissingSpeciesError,
    NotFoundError,
    ValidationError,
)
from app.domain.watering.entities import PlantRecord, WateringEvent
from app.domain.watering.interval_policy import IntervalPolicy
from app.domain.watering.repository import EventStore, PlantStore
from app.enums.watering import WateringAction, WateringStatus, WaterNeed
from app.utils.time import add_days, coerce_date, today

logger = logging.getLogger(__name__)


@dataclass
class ResolveOutcome:
    """Primary result of a resolution plus its best-effort side effects."""

    event: WateringEvent
    successor: Optional[WateringEvent] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event.to_dict(),
            "successor": self.successor.to_dict() if self.successor else None,
            "warnings": list(self.warnings),
        }


def parse_date(value: Any, field_name: str) -> date:
    """Coerce *value* to a calendar date or raise ValidationError."""
    parsed = coerce_date(value)
    if parsed is None:
        raise ValidationError(f"Invalid {field_name}: {value!r}", detail={"field": field_name})
    return parsed


def parse_action(value: Any) -> WateringAction:
    try:
        return WateringAction(value)
    except ValueError:
        raise ValidationError(
            f"Unknown action {value!r}; expected one of {[a.value for a in WateringAction]}",
            detail={"field": "action"},
        ) from None


class ScheduleEngine:
    """Backend-agnostic watering scheduler."""

    def __init__(
        self,
        *,
        event_store: EventStore,
        plant_store: PlantStore,
        policy: type[IntervalPolicy] = IntervalPolicy,
        audit_logger: Optional[Any] = None,
        clock: Callable[[], date] = today,
    ) -> None:
        self._events = event_store
        self._plants = plant_store
        self._policy = policy
        self._audit = audit_logger
        self._clock = clock

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _water_need(self, plant: PlantRecord) -> Optional[WaterNeed]:
        """Species water need, loading the species when only its id is known."""
        if plant.species is None and plant.species_id:
            plant.species = self._plants.get_species(plant.species_id)
        return plant.water_need

    def _audit_event(self, actor: str, action: str, resource: str, outcome: str = "success", **meta: Any) -> None:
        if self._audit is not None:
            self._audit.log_event(actor, action, resource, outcome, **meta)

    def _new_pending(self, plant_id: str, scheduled: date) -> WateringEvent:
        return self._events.create(WateringEvent(plant_id=plant_id, scheduled_date=scheduled))

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def create_initial_event(self, plant: PlantRecord) -> WateringEvent:
        """
        Create the first PENDING event for a plant that has a species.

        Scheduled for acquisition date (or today) plus the watering interval.

        Raises:
            MissingSpeciesError: plant has no resolvable species
        """
        need = self._water_need(plant)
        if need is None:
            raise MissingSpeciesError(
                f"Cannot create water event for plant {plant.plant_id} without species",
                detail={"plant_id": plant.plant_id},
            )

        base = plant.acquisition_date or self._clock()
        event = self._new_pending(plant.plant_id, self._policy.next_watering_date(base, need))
        logger.info(
            "Initial water event %s for plant %s on %s (need=%s)",
            event.event_id, plant.plant_id, event.scheduled_date, need,
        )
        self._audit_event(plant.owner_ref, "water_event.create_initial", f"plant:{plant.plant_id}",
                          event_id=event.event_id, scheduled_date=event.scheduled_date)
        return event

    def resolve_event(
        self,
        event_id: str,
        caller_owner_ref: str,
        action: WateringAction | str,
        completed_date: date | str | None = None,
    ) -> ResolveOutcome:
        """
        Mark a PENDING event WATERED or POSTPONED and schedule its successor.

        The resolution is committed before the successor is attempted; a
        failure creating the successor is logged and reported in
        ``ResolveOutcome.warnings`` without undoing the resolution.

        Raises:
            ValidationError: unknown action or malformed completion date
            NotFoundError: event (or its plant) does not exist
            ForbiddenError: event belongs to another owner
            InvalidStateError: event is already resolved
        """
        resolved_action = parse_action(action)
        completed = parse_date(completed_date, "completed_date") if completed_date is not None else self._clock()

        event = self._events.find_by_id(event_id)
        if event is None:
            raise NotFoundError(f"Water event with ID {event_id} not found")

        plant = self._plants.get(event.plant_id)
        if plant is None:
            raise NotFoundError(f"Plant {event.plant_id} for water event {event_id} not found")
        if plant.owner_ref != caller_owner_ref:
            raise ForbiddenError("You do not have access to this water event", detail={"event_id": event_id})

        if not event.is_pending:
            raise InvalidStateError(
                f"Water event {event_id} is already {event.status.value}",
                detail={"event_id": event_id, "status": event.status.value},
            )

        status = resolved_action.resulting_status
        outcome = ResolveOutcome(event=event)
        # Resolution and successor commit together; a concurrent recalculation
        # of the same plant runs entirely before or entirely after this block
        with self._events.atomic():
            if not self._events.mark_resolved(event_id, status, completed):
                # Lost a race against a concurrent resolution
                raise InvalidStateError(
                    f"Water event {event_id} was resolved concurrently", detail={"event_id": event_id}
                )

            event.status = status
            event.completed_date = completed
            logger.info("Water event %s resolved %s on %s", event_id, status.value, completed)

            try:
                need = self._water_need(plant)
                if need is None:
                    logger.info("Plant %s has no species; no successor for event %s", plant.plant_id, event_id)
                else:
                    interval = self._policy.interval_for(resolved_action, need)
                    outcome.successor = self._new_pending(plant.plant_id, add_days(completed, interval))
                    logger.info(
                        "Successor water event %s for plant %s on %s",
                        outcome.successor.event_id, plant.plant_id, outcome.successor.scheduled_date,
                    )
            except Exception as exc:
                logger.error("Failed to create successor for water event %s: %s", event_id, exc, exc_info=True)
                outcome.warnings.append(f"Successor event not created: {exc}")

        self._audit_event(caller_owner_ref, "water_event.resolve", f"water_event:{event_id}",
                          status=status.value, completed_date=completed)
        return outcome

    def recalculate_for_plant(self, plant_id: str, owner_ref: Optional[str] = None) -> Optional[WateringEvent]:
        """
        Rebuild a plant's schedule after its species changed or was removed.

        Every PENDING event is deleted. If the plant still has a species, one
        new PENDING event is created from the last WATERED completion date,
        else the acquisition date, else today.

        Args:
            plant_id: Plant whose schedule is rebuilt
            owner_ref: When given, the plant must belong to this owner

        Returns:
            The new PENDING event, or None when the plant has no species
        """
        plant = self._plants.get(plant_id) if owner_ref is None else self._plants.get_owned(plant_id, owner_ref)
        if plant is None:
            raise NotFoundError(f"Plant with ID {plant_id} not found")

        with self._events.atomic():
            removed = self._events.delete_pending_by_plant(plant_id)
            need = self._water_need(plant)
            if need is None:
                event = None
            else:
                last_watered = self._events.find_last_watered_by_plant(plant_id)
                if last_watered is not None and last_watered.completed_date is not None:
                    base = last_watered.completed_date
                else:
                    base = plant.acquisition_date or self._clock()
                event = self._new_pending(plant_id, self._policy.next_watering_date(base, need))

        if event is None:
            logger.info("Plant %s has no species; removed %d pending water events", plant_id, removed)
            self._audit_event(plant.owner_ref, "water_event.recalculate", f"plant:{plant_id}",
                              removed=removed, scheduled_date=None)
            return None

        logger.info(
            "Recalculated plant %s: removed %d pending, next watering %s (need=%s)",
            plant_id, removed, event.scheduled_date, need,
        )
        self._audit_event(plant.owner_ref, "water_event.recalculate", f"plant:{plant_id}",
                          removed=removed, scheduled_date=event.scheduled_date)
        return event

    def create_manual_event(self, plant_id: str, owner_ref: str, scheduled_date: date | str) -> WateringEvent:
        """Create a PENDING event at an explicit date; manual events do not chain."""
        scheduled = parse_date(scheduled_date, "scheduled_date")
        plant = self._plants.get_owned(plant_id, owner_ref)
        if plant is None:
            raise NotFoundError(f"Plant with ID {plant_id} not found")

        event = self._new_pending(plant_id, scheduled)
        self._audit_event(owner_ref, "water_event.create_manual", f"plant:{plant_id}",
                          event_id=event.event_id, scheduled_date=scheduled)
        return event

    def import_event(
        self,
        plant_id: str,
        owner_ref: str,
        scheduled_date: date | str,
        status: WateringStatus | str = WateringStatus.PENDING,
        completed_date: date | str | None = None,
    ) -> WateringEvent:
        """
        Persist an event replayed from another store, keeping its status.

        Raises:
            ValidationError: bad status/date, or a resolved event without a completion date
            NotFoundError: plant does not belong to *owner_ref*
        """
        scheduled = parse_date(scheduled_date, "scheduled_date")
        try:
            resolved_status = WateringStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown status {status!r}", detail={"field": "status"}) from None

        completed: Optional[date] = None
        if resolved_status.is_terminal:
            if completed_date is None:
                raise ValidationError(
                    f"A {resolved_status.value} event requires completed_date", detail={"field": "completed_date"}
                )
            completed = parse_date(completed_date, "completed_date")

        plant = self._plants.get_owned(plant_id, owner_ref)
        if plant is None:
            raise NotFoundError(f"Plant with ID {plant_id} not found")

        event = self._events.import_event(
            WateringEvent(plant_id=plant_id, scheduled_date=scheduled, status=resolved_status, completed_date=completed)
        )
        self._audit_event(owner_ref, "water_event.import", f"plant:{plant_id}",
                          event_id=event.event_id, status=resolved_status.value)
        return event

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_event(self, event_id: str, owner_ref: str) -> WateringEvent:
        event = self._events.find_by_id(event_id)
        if event is None:
            raise NotFoundError(f"Water event with ID {event_id} not found")
        plant = self._plants.get(event.plant_id)
        if plant is None or plant.owner_ref != owner_ref:
            raise ForbiddenError("You do not have access to this water event", detail={"event_id": event_id})
        return event

    def query_due_in_range(self, owner_ref: str, start_date: date | str, end_date: date | str) -> List[WateringEvent]:
        """Events of any status scheduled within [start_date, end_date], ascending."""
        start = parse_date(start_date, "start_date")
        end = parse_date(end_date, "end_date")
        if start > end:
            raise ValidationError("start_date must not be after end_date")
        return self._events.find_in_range(owner_ref, start, end)

    def query_overdue(self, owner_ref: str, as_of_date: date | str | None = None) -> List[WateringEvent]:
        """PENDING events scheduled strictly before *as_of_date* (default today)."""
        as_of = parse_date(as_of_date, "as_of") if as_of_date is not None else self._clock()
        return self._events.find_overdue(owner_ref, as_of)
