"""
Watering Schemas
================

Request schemas for the water-event and plant endpoints.

Dates accept plain ISO dates or full ISO timestamps; a timestamp is
truncated to the calendar date as written.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from app.enums.watering import WateringAction, WateringStatus
from app.utils.time import coerce_date


def _to_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    parsed = coerce_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}. Expected ISO 8601.")
    return parsed


class CompleteWaterEventRequest(BaseModel):
    """Body of PATCH /api/water-events/<id>/complete."""

    action: WateringAction = Field(..., description="WATERED or POSTPONED")
    completed_date: date | None = Field(default=None, description="Completion date (default: today)")

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("completed_date", mode="before")
    @classmethod
    def parse_completed(cls, v):
        return _to_date(v)


class CreateWaterEventRequest(BaseModel):
    """Body of POST /api/water-events; a ``status`` turns it into an import."""

    plant_id: str = Field(..., min_length=1, description="Owned plant id")
    scheduled_date: date = Field(..., description="Due date")
    status: WateringStatus | None = Field(default=None, description="Replayed status (import only)")
    completed_date: date | None = Field(default=None, description="Completion date of a replayed event")

    @field_validator("plant_id", mode="before")
    @classmethod
    def stringify_plant_id(cls, v):
        return str(v) if isinstance(v, int) else v

    @field_validator("scheduled_date", "completed_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _to_date(v)

    @model_validator(mode="after")
    def check_completion(self):
        if self.status is not None and self.status.is_terminal and self.completed_date is None:
            raise ValueError(f"completed_date is required for a {self.status.value} event")
        return self

    @property
    def is_import(self) -> bool:
        return self.status is not None


class WaterEventRangeQuery(BaseModel):
    """Query string of GET /api/water-events."""

    start_date: date
    end_date: date

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _to_date(v)

    @model_validator(mode="after")
    def check_order(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class OverdueQuery(BaseModel):
    """Query string of GET /api/water-events/overdue."""

    as_of: date | None = None

    @field_validator("as_of", mode="before")
    @classmethod
    def parse_as_of(cls, v):
        return _to_date(v)


class CreatePlantRequest(BaseModel):
    """Body of POST /api/plants."""

    name: str = Field(..., min_length=1, max_length=200)
    location: str | None = Field(default=None, max_length=200)
    acquisition_date: date | None = None
    notes: str | None = None
    photos: list[str] = Field(default_factory=list)
    species_id: str | None = None
    schedule_initial: bool = Field(default=True, description="False when the caller replays an existing schedule")

    @field_validator("acquisition_date", mode="before")
    @classmethod
    def parse_acquisition(cls, v):
        return _to_date(v)


class UpdatePlantRequest(BaseModel):
    """Body of PATCH /api/plants/<id>; only the keys sent are changed."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    location: str | None = Field(default=None, max_length=200)
    acquisition_date: date | None = None
    notes: str | None = None
    photos: list[str] | None = None
    species_id: str | None = None

    @field_validator("acquisition_date", mode="before")
    @classmethod
    def parse_acquisition(cls, v):
        return _to_date(v)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
