"""
Plant CRUD Operations
=====================

Endpoints for creating, reading, updating, and deleting the caller's plants.
Species changes rebuild the watering schedule; deletes remove the plant's
watering events.
"""

from __future__ import annotations

import logging

from flask import Response
from pydantic import ValidationError

from app.blueprints.api._common import (
    fail as _fail,
    get_container,
    get_json,
    get_scheduling as _scheduling,
    get_user_id,
    invalid as _invalid,
    success as _success,
)
from app.schemas import CreatePlantRequest, UpdatePlantRequest
from app.utils.http import safe_route

from . import plants_api

logger = logging.getLogger("plants_api.crud")


# ============================================================================
# PLANT CRUD OPERATIONS
# ============================================================================


@plants_api.get("")
@safe_route("Listing plants")
def list_plants() -> Response:
    """List all plants of the caller"""
    owner = get_user_id()
    plants = _scheduling().plant_service.list_plants(owner)
    logger.info("Found %s plants for user %s", len(plants), owner)
    return _success({"plants": [p.to_dict() for p in plants], "count": len(plants)})


@plants_api.post("")
@safe_route("Adding plant")
def add_plant() -> Response:
    """Add a new plant; a plant with a species gets its first watering event"""
    try:
        body = CreatePlantRequest.model_validate(get_json())
    except ValidationError as ve:
        return _invalid(ve)

    outcome = _scheduling().plant_service.create_plant(
        get_user_id(),
        name=body.name,
        location=body.location,
        acquisition_date=body.acquisition_date,
        notes=body.notes,
        photos=body.photos,
        species_id=body.species_id,
        schedule_initial=body.schedule_initial,
    )
    logger.info("Created plant %s", outcome.plant.plant_id)
    return _success(outcome.to_dict(), 201)


@plants_api.get("/species")
@safe_route("Listing species")
def list_species() -> Response:
    """Species catalog; public so guest devices can fill their species cache"""
    species = get_container().server.plant_service.list_species()
    return _success({"species": [s.to_dict() for s in species], "count": len(species)})


@plants_api.get("/<plant_id>")
@safe_route("Loading plant")
def get_plant(plant_id: str) -> Response:
    plant = _scheduling().plant_service.get_plant(plant_id, get_user_id())
    return _success(plant.to_dict())


@plants_api.patch("/<plant_id>")
@safe_route("Updating plant")
def update_plant(plant_id: str) -> Response:
    """Update plant information"""
    raw = get_json()
    if not raw:
        return _fail("No update data provided", 400)

    try:
        body = UpdatePlantRequest.model_validate(raw)
    except ValidationError as ve:
        return _invalid(ve)

    outcome = _scheduling().plant_service.update_plant(plant_id, get_user_id(), body.changes())
    return _success(outcome.to_dict())


@plants_api.delete("/<plant_id>")
@safe_route("Deleting plant")
def delete_plant(plant_id: str) -> Response:
    """Delete a plant and its watering events"""
    removed = _scheduling().plant_service.delete_plant(plant_id, get_user_id())
    return _success({"plant_id": plant_id, "water_events_removed": removed})
