"""
Plant Database Operations
=========================

Database operations for the Plants and PlantSpecies tables. Plants are
always returned with their species joined in, since every scheduling
decision needs the species' water need.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from typing import TYPE_CHECKING, Any

from app.domain.exceptions import RepositoryError
from app.domain.watering.entities import PlantRecord, Species
from app.enums.watering import WaterNeed
from app.utils.time import coerce_date, coerce_datetime, utc_now

if TYPE_CHECKING:
    from sqlite3 import Connection

logger = logging.getLogger(__name__)

_PLANT_SELECT = """
    SELECT p.plant_id, p.owner_ref, p.name, p.location, p.acquisition_date,
           p.notes, p.photos, p.species_id, p.created_at, p.updated_at,
           s.common_name AS species_common_name,
           s.latin_name AS species_latin_name,
           s.water_need AS species_water_need
    FROM Plants p
    LEFT JOIN PlantSpecies s ON s.species_id = p.species_id
"""


class PlantOperations:
    """Plant and species helpers for database handlers."""

    def get_db(self) -> "Connection":
        """Get database connection. Must be implemented by mixing class."""
        raise NotImplementedError("Subclass must implement get_db()")

    def end_write(self, db: "Connection") -> None:
        """Commit unless an enclosing transaction owns the commit."""
        raise NotImplementedError("Subclass must implement end_write()")

    def abort_write(self, db: "Connection") -> None:
        raise NotImplementedError("Subclass must implement abort_write()")

    # =========================================================================
    # Species
    # =========================================================================

    def get_species(self, species_id: str) -> Species | None:
        db = self.get_db()
        try:
            row = db.execute(
                "SELECT species_id, common_name, latin_name, water_need FROM PlantSpecies WHERE species_id = ?",
                (species_id,),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("Error getting species %s: %s", species_id, e)
            raise RepositoryError(f"Failed to load species {species_id}") from e
        if row is None:
            return None
        return Species(
            species_id=row["species_id"],
            common_name=row["common_name"],
            latin_name=row["latin_name"],
            water_need=WaterNeed(row["water_need"]),
        )

    def list_species(self) -> list[Species]:
        db = self.get_db()
        try:
            rows = db.execute(
                "SELECT species_id, common_name, latin_name, water_need FROM PlantSpecies ORDER BY common_name"
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Error listing species: %s", e)
            raise RepositoryError("Failed to list species") from e
        return [
            Species(
                species_id=row["species_id"],
                common_name=row["common_name"],
                latin_name=row["latin_name"],
                water_need=WaterNeed(row["water_need"]),
            )
            for row in rows
        ]

    # =========================================================================
    # Plants
    # =========================================================================

    def insert_plant(self, plant: PlantRecord) -> PlantRecord:
        db = self.get_db()
        now = utc_now()
        plant_id = plant.plant_id or str(uuid.uuid4())
        try:
            db.execute(
                """
                INSERT INTO Plants (
                    plant_id, owner_ref, name, location, acquisition_date,
                    notes, photos, species_id, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    plant_id,
                    plant.owner_ref,
                    plant.name,
                    plant.location,
                    plant.acquisition_date.isoformat() if plant.acquisition_date else None,
                    plant.notes,
                    json.dumps(plant.photos or []),
                    plant.species_id,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            self.end_write(db)
        except sqlite3.Error as e:
            self.abort_write(db)
            logger.error("Error creating plant %r: %s", plant.name, e)
            raise RepositoryError(f"Failed to create plant {plant.name!r}") from e

        logger.info("Created plant %s (%s) for owner %s", plant_id, plant.name, plant.owner_ref)
        return self.get_plant(plant_id)

    def update_plant(self, plant: PlantRecord) -> PlantRecord | None:
        db = self.get_db()
        try:
            cursor = db.execute(
                """
                UPDATE Plants
                SET name = ?, location = ?, acquisition_date = ?, notes = ?,
                    photos = ?, species_id = ?, updated_at = ?
                WHERE plant_id = ?
                """,
                (
                    plant.name,
                    plant.location,
                    plant.acquisition_date.isoformat() if plant.acquisition_date else None,
                    plant.notes,
                    json.dumps(plant.photos or []),
                    plant.species_id,
                    utc_now().isoformat(),
                    plant.plant_id,
                ),
            )
            self.end_write(db)
        except sqlite3.Error as e:
            self.abort_write(db)
            logger.error("Error updating plant %s: %s", plant.plant_id, e)
            raise RepositoryError(f"Failed to update plant {plant.plant_id}") from e
        if cursor.rowcount == 0:
            return None
        return self.get_plant(plant.plant_id)

    def delete_plant(self, plant_id: str) -> bool:
        db = self.get_db()
        try:
            cursor = db.execute("DELETE FROM Plants WHERE plant_id = ?", (plant_id,))
            self.end_write(db)
        except sqlite3.Error as e:
            self.abort_write(db)
            logger.error("Error deleting plant %s: %s", plant_id, e)
            raise RepositoryError(f"Failed to delete plant {plant_id}") from e
        return cursor.rowcount > 0

    def get_plant(self, plant_id: str) -> PlantRecord | None:
        rows = self._query_plants(f"{_PLANT_SELECT} WHERE p.plant_id = ?", (plant_id,))
        return rows[0] if rows else None

    def get_plant_for_owner(self, plant_id: str, owner_ref: str) -> PlantRecord | None:
        rows = self._query_plants(f"{_PLANT_SELECT} WHERE p.plant_id = ? AND p.owner_ref = ?", (plant_id, owner_ref))
        return rows[0] if rows else None

    def list_plants_for_owner(self, owner_ref: str) -> list[PlantRecord]:
        return self._query_plants(f"{_PLANT_SELECT} WHERE p.owner_ref = ? ORDER BY p.created_at DESC", (owner_ref,))

    def get_all_plants(self) -> list[PlantRecord]:
        return self._query_plants(f"{_PLANT_SELECT} ORDER BY p.created_at DESC", ())

    def _query_plants(self, sql: str, params: tuple[Any, ...]) -> list[PlantRecord]:
        db = self.get_db()
        try:
            rows = db.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error("Error querying plants: %s", e)
            raise RepositoryError("Failed to query plants") from e
        return [self._row_to_plant(dict(row)) for row in rows]

    @staticmethod
    def _row_to_plant(row: dict[str, Any]) -> PlantRecord:
        species = None
        if row.get("species_id") and row.get("species_water_need"):
            species = Species(
                species_id=row["species_id"],
                common_name=row.get("species_common_name") or "",
                latin_name=row.get("species_latin_name") or "",
                water_need=WaterNeed(row["species_water_need"]),
            )
        try:
            photos = json.loads(row["photos"]) if row.get("photos") else []
        except ValueError:
            photos = []
        return PlantRecord(
            plant_id=row["plant_id"],
            owner_ref=row["owner_ref"],
            name=row["name"],
            location=row.get("location"),
            acquisition_date=coerce_date(row.get("acquisition_date")),
            notes=row.get("notes"),
            photos=photos,
            species_id=row.get("species_id"),
            species=species,
            created_at=coerce_datetime(row.get("created_at")) or utc_now(),
            updated_at=coerce_datetime(row.get("updated_at")) or utc_now(),
        )
