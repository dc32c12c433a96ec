"""
Shared test fixtures for the PlantCare watering test suite.

Provides:
- In-memory SQLite database with all tables created and species seeded
- A temp-dir device-local key-value store with the species cache filled
- Scheduling services for the server and the guest backend, with a fixed clock
- A ``services`` fixture parametrized over both backends
- Helper utilities for seeding test data

Usage:
    def test_example(services, seed):
        plant = seed.plant(species_id=MEDIUM_SPECIES)
        assert services.event_store.find_pending_by_plant(plant.plant_id)
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

import pytest

from app.domain.watering.entities import PlantRecord, WateringEvent
from app.services.scheduling_context import SchedulingServices, SessionContext, build_scheduler
from app.utils.persistent_store import LocalKeyValueStore
from infrastructure.database.seeds import load_species_catalog
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.local import LocalPlantStore

# ---------------------------------------------------------------------------
# Logging — keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)

# Catalog species by water need
HIGH_SPECIES = "nephrolepis-exaltata"
MEDIUM_SPECIES = "epipremnum-aureum"
LOW_SPECIES = "sansevieria-trifasciata"

DAY_0 = date(2026, 3, 1)
TODAY = date(2026, 3, 15)


def day(n: int) -> date:
    """Calendar date *n* days after DAY_0."""
    return DAY_0 + timedelta(days=n)


# ========================== Storage Fixtures ===============================


@pytest.fixture()
def db_handler():
    """In-memory SQLite database with all tables created and the catalog seeded.

    Each test gets a fresh database — no cross-test contamination.
    """
    handler = SQLiteDatabaseHandler(":memory:")
    handler.create_tables()
    handler.seed_species_catalog()
    yield handler
    handler.close_db()


@pytest.fixture()
def local_storage(tmp_path):
    """Device-local key-value store in a temp directory, species cache filled."""
    storage = LocalKeyValueStore(tmp_path / "device")
    LocalPlantStore(storage).cache_species(load_species_catalog())
    return storage


# ========================== Service Fixtures ===============================


@pytest.fixture()
def server_services(db_handler) -> SchedulingServices:
    """Server-backed scheduler for user ``alice`` with the clock fixed at TODAY."""
    return build_scheduler(SessionContext.for_user("alice"), database=db_handler, clock=lambda: TODAY)


@pytest.fixture()
def local_services(local_storage) -> SchedulingServices:
    """Guest-mode scheduler over the device-local store, clock fixed at TODAY."""
    return build_scheduler(SessionContext.guest(), local_storage=local_storage, clock=lambda: TODAY)


@pytest.fixture(params=["server", "local"])
def services(request) -> SchedulingServices:
    """The same scheduler contract on each backend."""
    return request.getfixturevalue(f"{request.param}_services")


# ========================== Seed Data Helpers ==============================


class SeedData:
    """Helper to create commonly needed test data.

    Usage in tests::

        def test_something(services, seed):
            plant = seed.plant(species_id=HIGH_SPECIES, acquisition_date=day(0))
            event = seed.event(plant, day(10))
    """

    def __init__(self, services: SchedulingServices):
        self._services = services

    @property
    def owner(self) -> str:
        return self._services.session.owner_ref

    def plant(
        self,
        name: str = "Test Plant",
        *,
        species_id: str | None = MEDIUM_SPECIES,
        acquisition_date: date | None = DAY_0,
        schedule_initial: bool = True,
        **attrs: Any,
    ) -> PlantRecord:
        """Create a plant through the lifecycle service."""
        outcome = self._services.plant_service.create_plant(
            self.owner,
            name=name,
            species_id=species_id,
            acquisition_date=acquisition_date,
            schedule_initial=schedule_initial,
            **attrs,
        )
        return outcome.plant

    def event(self, plant: PlantRecord, scheduled: date) -> WateringEvent:
        """Create a manual PENDING event."""
        return self._services.schedule_engine.create_manual_event(plant.plant_id, self.owner, scheduled)

    def pending_dates(self, plant: PlantRecord) -> list[date]:
        return [e.scheduled_date for e in self._services.event_store.find_pending_by_plant(plant.plant_id)]


@pytest.fixture()
def seed(services) -> SeedData:
    return SeedData(services)


# ========================== Flask Fixtures =================================


@pytest.fixture()
def app(tmp_path, monkeypatch):
    """Server app over a temp-file database; logs land in the temp dir."""
    from app import create_app

    monkeypatch.chdir(tmp_path)
    flask_app = create_app(
        {
            "database_path": str(tmp_path / "plantcare.db"),
            "audit_log_path": str(tmp_path / "logs" / "audit.log"),
            "local_store_dir": str(tmp_path / "var"),
            "trust_user_header": True,
        }
    )
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.extensions["plantcare_shutdown"]("test")


@pytest.fixture()
def client(app):
    return app.test_client()


def as_user(user_id: str) -> dict[str, str]:
    """Request headers identifying *user_id*."""
    return {"X-User-Id": user_id}
