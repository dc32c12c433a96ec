"""
Water Event Endpoints
=====================

Calendar and overdue queries, manual scheduling, event resolution and
per-plant recalculation. Every route acts on the caller's own plants.
"""

from __future__ import annotations

import logging

from flask import Response, request
from pydantic import ValidationError

from app.blueprints.api._common import (
    get_json,
    get_scheduling as _scheduling,
    get_user_id,
    invalid as _invalid,
    success as _success,
)
from app.schemas import CompleteWaterEventRequest, CreateWaterEventRequest, OverdueQuery, WaterEventRangeQuery
from app.utils.http import safe_route

from . import water_events_api

logger = logging.getLogger("water_events_api.routes")


@water_events_api.get("")
@safe_route("Listing water events")
def list_water_events() -> Response:
    """Events of any status due within [start_date, end_date]"""
    try:
        query = WaterEventRangeQuery(
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
    except ValidationError as ve:
        return _invalid(ve)

    owner = get_user_id()
    events = _scheduling().schedule_engine.query_due_in_range(owner, query.start_date, query.end_date)
    logger.info("Found %s water events for user %s in %s..%s", len(events), owner, query.start_date, query.end_date)
    return _success({"water_events": [e.to_dict() for e in events], "count": len(events)})


@water_events_api.get("/overdue")
@safe_route("Listing overdue water events")
def list_overdue_events() -> Response:
    """PENDING events scheduled before as_of (default today)"""
    try:
        query = OverdueQuery(as_of=request.args.get("as_of"))
    except ValidationError as ve:
        return _invalid(ve)

    events = _scheduling().schedule_engine.query_overdue(get_user_id(), query.as_of)
    return _success({"water_events": [e.to_dict() for e in events], "count": len(events)})


@water_events_api.get("/<event_id>")
@safe_route("Loading water event")
def get_water_event(event_id: str) -> Response:
    event = _scheduling().schedule_engine.get_event(event_id, get_user_id())
    return _success(event.to_dict())


@water_events_api.post("")
@safe_route("Scheduling water event")
def create_water_event() -> Response:
    """Schedule a watering manually, or replay one when a status is given"""
    try:
        body = CreateWaterEventRequest.model_validate(get_json())
    except ValidationError as ve:
        return _invalid(ve)

    owner = get_user_id()
    engine = _scheduling().schedule_engine
    if body.is_import:
        event = engine.import_event(body.plant_id, owner, body.scheduled_date, body.status, body.completed_date)
    else:
        event = engine.create_manual_event(body.plant_id, owner, body.scheduled_date)
    logger.info("Created water event %s for plant %s", event.event_id, body.plant_id)
    return _success(event.to_dict(), 201)


@water_events_api.patch("/<event_id>/complete")
@safe_route("Completing water event")
def complete_water_event(event_id: str) -> Response:
    """Mark a PENDING event WATERED or POSTPONED"""
    try:
        body = CompleteWaterEventRequest.model_validate(get_json())
    except ValidationError as ve:
        return _invalid(ve)

    outcome = _scheduling().schedule_engine.resolve_event(
        event_id,
        get_user_id(),
        body.action,
        body.completed_date,
    )
    return _success(outcome.to_dict())


@water_events_api.post("/plants/<plant_id>/recalculate")
@safe_route("Recalculating water events")
def recalculate_plant_events(plant_id: str) -> Response:
    """Rebuild a plant's pending schedule from its watering history"""
    event = _scheduling().schedule_engine.recalculate_for_plant(plant_id, owner_ref=get_user_id())
    return _success({"water_event": event.to_dict() if event else None})
