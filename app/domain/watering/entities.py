"""
Watering Domain Entities
========================

Plain dataclasses shared by the scheduler and both storage backends:

- Species: catalog entry carrying the water-need classification
- PlantRecord: the owned plant a schedule belongs to
- WateringEvent: one due date for one plant, PENDING until resolved

Serialization (``to_dict`` / ``from_dict``) uses ISO strings for dates so the
same records round-trip through SQLite rows, the device-local JSON store and
HTTP payloads.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any

from app.enums.watering import WateringStatus, WaterNeed
from app.utils.time import coerce_date, coerce_datetime, utc_now


def _iso(value: datetime.date | datetime.datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass
class Species:
    """Plant species as far as scheduling is concerned."""

    species_id: str
    common_name: str = ""
    latin_name: str = ""
    water_need: WaterNeed = WaterNeed.MEDIUM

    def to_dict(self) -> dict[str, Any]:
        return {
            "species_id": self.species_id,
            "common_name": self.common_name,
            "latin_name": self.latin_name,
            "water_need": self.water_need.value,
        }

    @staticmethod
    def from_dict(data: dict[str, Any] | None) -> "Species" | None:
        if not data:
            return None
        return Species(
            species_id=str(data["species_id"]),
            common_name=data.get("common_name") or "",
            latin_name=data.get("latin_name") or "",
            water_need=WaterNeed(data.get("water_need", WaterNeed.MEDIUM.value)),
        )


@dataclass
class PlantRecord:
    """
    An owned plant.

    Attributes:
        plant_id: Opaque identifier (None until persisted)
        owner_ref: Owning user; the constant local owner in guest mode
        name: Display name
        location: Free-text location in the home
        acquisition_date: Date the plant was acquired, base of the first schedule
        notes: Free-text notes
        photos: Photo references (URLs or device paths)
        species_id: Catalog species reference, None when unclassified
        species: Resolved species, None when unclassified or not loaded
    """

    plant_id: str | None = None
    owner_ref: str = ""
    name: str = ""
    location: str | None = None
    acquisition_date: datetime.date | None = None
    notes: str | None = None
    photos: list[str] = field(default_factory=list)
    species_id: str | None = None
    species: Species | None = None
    created_at: datetime.datetime = field(default_factory=utc_now)
    updated_at: datetime.datetime = field(default_factory=utc_now)

    @property
    def water_need(self) -> WaterNeed | None:
        return self.species.water_need if self.species else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "plant_id": self.plant_id,
            "owner_ref": self.owner_ref,
            "name": self.name,
            "location": self.location,
            "acquisition_date": _iso(self.acquisition_date),
            "notes": self.notes,
            "photos": list(self.photos),
            "species_id": self.species_id,
            "species": self.species.to_dict() if self.species else None,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "PlantRecord":
        species = Species.from_dict(data.get("species"))
        return PlantRecord(
            plant_id=data.get("plant_id"),
            owner_ref=str(data.get("owner_ref") or ""),
            name=data.get("name") or "",
            location=data.get("location"),
            acquisition_date=coerce_date(data.get("acquisition_date")),
            notes=data.get("notes"),
            photos=list(data.get("photos") or []),
            species_id=data.get("species_id") or (species.species_id if species else None),
            species=species,
            created_at=coerce_datetime(data.get("created_at")) or utc_now(),
            updated_at=coerce_datetime(data.get("updated_at")) or utc_now(),
        )


@dataclass
class WateringEvent:
    """
    A single watering due date for a plant.

    The only mutation an event ever sees is the PENDING -> WATERED/POSTPONED
    transition, which also stamps ``completed_date``. Resolved events are
    never reopened.
    """

    event_id: str | None = None
    plant_id: str = ""
    scheduled_date: datetime.date = field(default_factory=datetime.date.today)
    status: WateringStatus = WateringStatus.PENDING
    completed_date: datetime.date | None = None
    created_at: datetime.datetime = field(default_factory=utc_now)
    updated_at: datetime.datetime = field(default_factory=utc_now)

    @property
    def is_pending(self) -> bool:
        return self.status is WateringStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "plant_id": self.plant_id,
            "scheduled_date": _iso(self.scheduled_date),
            "status": self.status.value,
            "completed_date": _iso(self.completed_date),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "WateringEvent":
        scheduled = coerce_date(data.get("scheduled_date"))
        if scheduled is None:
            raise ValueError(f"Invalid scheduled_date: {data.get('scheduled_date')!r}")
        return WateringEvent(
            event_id=data.get("event_id"),
            plant_id=str(data.get("plant_id") or ""),
            scheduled_date=scheduled,
            status=WateringStatus(data.get("status", WateringStatus.PENDING.value)),
            completed_date=coerce_date(data.get("completed_date")),
            created_at=coerce_datetime(data.get("created_at")) or utc_now(),
            updated_at=coerce_datetime(data.get("updated_at")) or utc_now(),
        )
