import logging
import shutil
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from flask import Flask

from infrastructure.database.ops.plants import PlantOperations
from infrastructure.database.ops.watering import WateringOperations
from infrastructure.database.seeds import SPECIES_CATALOG_PATH, load_species_catalog

logger = logging.getLogger(__name__)


class SQLiteDatabaseHandler(
    PlantOperations,
    WateringOperations,
):
    """Thread-safe SQLite handler decoupled from Flask globals."""

    def __init__(self, database_path: str) -> None:
        self._database_path = database_path
        self._local = threading.local()

        # Ensure the directory for the database file exists
        if database_path != ":memory:":
            db_path = Path(database_path)
            if not db_path.parent.exists():
                db_path.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Created database directory: %s", db_path.parent)

    # --- Lifecycle ------------------------------------------------------------
    def init_app(self, app: Flask | None = None, *, seed_species: bool = True) -> None:
        if app is not None:
            app.teardown_appcontext(self.close_db)
        self.create_tables()
        if seed_species:
            self.seed_species_catalog()

    def get_db(self) -> sqlite3.Connection:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            try:
                connection = self._open_connection()
            except sqlite3.DatabaseError as exc:
                if self._is_corruption_error(exc):
                    logger.error("Database appears corrupt (%s). Recreating a fresh database.", exc)
                    self._quarantine_corrupt_db()
                    connection = self._open_connection()
                else:
                    raise
            self._local.connection = connection
        return connection

    def _open_connection(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._database_path, check_same_thread=False, timeout=10.0)
        try:
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            return connection
        except Exception:
            connection.close()
            raise

    def _is_corruption_error(self, exc: sqlite3.Error) -> bool:
        message = str(exc).lower()
        return (
            "database disk image is malformed" in message
            or "file is not a database" in message
            or "file is encrypted or is not a database" in message
        )

    def _quarantine_corrupt_db(self) -> Optional[Path]:
        db_path = Path(self._database_path)
        if not db_path.exists():
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        quarantine_dir = db_path.parent / "corrupt"
        quarantine_dir.mkdir(parents=True, exist_ok=True)

        suffix = db_path.suffix or ".db"
        quarantined = quarantine_dir / f"{db_path.stem}_corrupt_{timestamp}{suffix}"
        try:
            shutil.move(str(db_path), str(quarantined))
            for sidecar_suffix in ("-wal", "-shm"):
                sidecar = Path(f"{db_path}{sidecar_suffix}")
                if sidecar.exists():
                    shutil.move(str(sidecar), str(quarantine_dir / f"{sidecar.name}_{timestamp}"))
            logger.warning("Quarantined corrupt database to %s", quarantined)
            return quarantined
        except OSError as exc:
            logger.error("Failed to quarantine corrupt database %s: %s", db_path, exc)
            return None

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        """Configure SQLite connection.

        - WAL mode: concurrent readers alongside a single writer
        - foreign_keys: plant deletion cascades to its watering events
        """
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute("PRAGMA foreign_keys=ON")
        connection.execute("PRAGMA temp_store=MEMORY")
        connection.commit()

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.get_db()
        try:
            yield conn
        finally:
            conn.commit()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run the enclosed writes as one BEGIN IMMEDIATE transaction.

        The write lock is taken up front, so a second writer on another
        connection waits (up to the busy timeout) instead of interleaving.
        Nested calls on the same thread join the outer transaction.
        """
        conn = self.get_db()
        if getattr(self._local, "in_transaction", False):
            yield conn
            return
        if conn.in_transaction:
            conn.commit()
        conn.execute("BEGIN IMMEDIATE")
        self._local.in_transaction = True
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        else:
            conn.commit()
        finally:
            self._local.in_transaction = False

    def end_write(self, db: sqlite3.Connection) -> None:
        if not getattr(self._local, "in_transaction", False):
            db.commit()

    def abort_write(self, db: sqlite3.Connection) -> None:
        # A failed statement inside transaction() leaves the rollback to it
        if not getattr(self._local, "in_transaction", False):
            db.rollback()
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        else:
            conn.commit()

    # --- Schema ----------------------------------------------------------------
    def create_tables(self) -> None:
        """Creates the necessary tables in the database if they do not already exist."""
        try:
            with self.connection() as db:
                # Species catalog
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS PlantSpecies (
                        species_id TEXT PRIMARY KEY,
                        common_name TEXT UNIQUE NOT NULL,
                        latin_name TEXT NOT NULL DEFAULT '',
                        water_need TEXT NOT NULL CHECK (water_need IN ('LOW', 'MEDIUM', 'HIGH')),
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                    """
                )
                # Owned plants
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Plants (
                        plant_id TEXT PRIMARY KEY,
                        owner_ref TEXT NOT NULL,
                        name TEXT NOT NULL,
                        location TEXT,
                        acquisition_date DATE,
                        notes TEXT,
                        photos TEXT,
                        species_id TEXT,
                        created_at TIMESTAMP NOT NULL,
                        updated_at TIMESTAMP NOT NULL,
                        FOREIGN KEY (species_id) REFERENCES PlantSpecies(species_id) ON DELETE SET NULL
                    )
                    """
                )
                db.execute("CREATE INDEX IF NOT EXISTS idx_plants_owner ON Plants(owner_ref)")
                # Watering events
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS WaterEvents (
                        event_id TEXT PRIMARY KEY,
                        plant_id TEXT NOT NULL,
                        scheduled_date DATE NOT NULL,
                        status TEXT NOT NULL DEFAULT 'PENDING'
                            CHECK (status IN ('PENDING', 'WATERED', 'POSTPONED')),
                        completed_date DATE,
                        created_at TIMESTAMP NOT NULL,
                        updated_at TIMESTAMP NOT NULL,
                        FOREIGN KEY (plant_id) REFERENCES Plants(plant_id) ON DELETE CASCADE
                    )
                    """
                )
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_water_events_plant_status ON WaterEvents(plant_id, status)"
                )
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_water_events_scheduled ON WaterEvents(scheduled_date)"
                )
        except sqlite3.Error as exc:
            logger.error("Error creating tables: %s", exc)
            raise

    def seed_species_catalog(self, catalog_path: Path = SPECIES_CATALOG_PATH) -> int:
        """Populate the PlantSpecies table with catalog data when empty."""
        try:
            with self.connection() as conn:
                existing = conn.execute("SELECT COUNT(*) FROM PlantSpecies").fetchone()[0]
                if existing:
                    return 0
        except sqlite3.Error as exc:
            logger.error("Error checking PlantSpecies table: %s", exc)
            return 0

        catalog = load_species_catalog(catalog_path)
        if not catalog:
            logger.info("No catalog entries found for seeding PlantSpecies table.")
            return 0

        with self.connection() as conn:
            conn.executemany(
                "INSERT INTO PlantSpecies (species_id, common_name, latin_name, water_need) VALUES (?, ?, ?, ?)",
                [(s.species_id, s.common_name, s.latin_name, s.water_need.value) for s in catalog],
            )
        logger.info("Seeded PlantSpecies table with %d catalog entries.", len(catalog))
        return len(catalog)
