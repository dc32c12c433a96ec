"""Guest-device data migration into a signed-in server account."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.domain.exceptions import ExternalServiceError
from app.enums.watering import WateringStatus
from app.services.application.reconciliation_service import (
    InProcessServerGateway,
    ReconciliationService,
    SyncResult,
)

from conftest import HIGH_SPECIES, LOW_SPECIES, SeedData, day


@pytest.fixture()
def guest(local_services) -> SeedData:
    return SeedData(local_services)


@pytest.fixture()
def gateway(server_services) -> InProcessServerGateway:
    return InProcessServerGateway(server_services, "alice")


def _service(local_services, gateway, **kwargs) -> ReconciliationService:
    return ReconciliationService(
        local_plants=local_services.plant_store,
        local_events=local_services.event_store,
        gateway=gateway,
        **kwargs,
    )


def test_migrates_plants_events_and_photos(local_services, server_services, guest, gateway):
    fern = guest.plant("Fern", species_id=HIGH_SPECIES, photos=["a.jpg", "b.jpg"])
    first = local_services.event_store.find_pending_by_plant(fern.plant_id)[0]
    local_services.schedule_engine.resolve_event(first.event_id, guest.owner, "WATERED", day(5))
    guest.plant("Unknown", species_id=None)

    result = _service(local_services, gateway).migrate_guest_data()

    assert result.success is True
    assert result.plants_synced == 2
    assert result.water_events_synced == 2
    assert result.photos_synced == 2
    assert result.errors == []
    assert len(result.id_mapping.plants) == 2

    server_fern_id = result.id_mapping.plants[fern.plant_id]
    server_fern = server_services.plant_service.get_plant(server_fern_id, "alice")
    assert server_fern.name == "Fern"
    assert server_fern.photos == ["a.jpg", "b.jpg"]
    assert server_fern.owner_ref == "alice"

    migrated = server_services.event_store.find_by_id(result.id_mapping.water_events[first.event_id])
    assert migrated.status is WateringStatus.WATERED
    assert migrated.completed_date == day(5)
    assert migrated.plant_id == server_fern_id


def test_local_schedule_replaces_server_initial_event(local_services, server_services, guest, gateway):
    fern = guest.plant("Fern", species_id=HIGH_SPECIES)
    first = local_services.event_store.find_pending_by_plant(fern.plant_id)[0]
    # Postponed locally: successor at day 7 instead of the day 4 initial date
    local_services.schedule_engine.resolve_event(first.event_id, guest.owner, "POSTPONED", day(5))

    result = _service(local_services, gateway).migrate_guest_data()

    server_fern_id = result.id_mapping.plants[fern.plant_id]
    pending = server_services.event_store.find_pending_by_plant(server_fern_id)
    assert [e.scheduled_date for e in pending] == [day(7)]


def test_plant_without_local_events_gets_server_schedule(local_services, server_services, guest, gateway):
    cactus = guest.plant("Snake", species_id=LOW_SPECIES, schedule_initial=False)

    result = _service(local_services, gateway).migrate_guest_data()

    assert result.water_events_synced == 0
    server_id = result.id_mapping.plants[cactus.plant_id]
    assert [e.scheduled_date for e in server_services.event_store.find_pending_by_plant(server_id)] == [day(30)]


def test_partial_failure_keeps_going(local_services, guest):
    good = guest.plant("Good", species_id=HIGH_SPECIES)
    bad = guest.plant("Bad", species_id=HIGH_SPECIES)
    gateway = MagicMock()

    def _create_plant(plant, *, schedule_initial=True):
        if plant.plant_id == bad.plant_id:
            raise ExternalServiceError("server rejected plant")
        return "server-good"

    gateway.create_plant.side_effect = _create_plant
    gateway.create_water_event.return_value = "server-event"

    result = _service(local_services, gateway).migrate_guest_data()

    assert result.success is True
    assert result.plants_synced == 1
    assert result.water_events_synced == 1
    assert result.id_mapping.plants == {good.plant_id: "server-good"}
    assert len(result.errors) == 2
    assert any("server rejected plant" in e for e in result.errors)
    assert any("was not migrated" in e for e in result.errors)
    gateway.create_water_event.assert_called_once()
    assert gateway.create_water_event.call_args.args[0] == "server-good"


def test_failed_event_is_reported(local_services, guest):
    guest.plant("Fern", species_id=HIGH_SPECIES)
    gateway = MagicMock()
    gateway.create_plant.return_value = "server-plant"
    gateway.create_water_event.side_effect = ExternalServiceError("timeout")

    result = _service(local_services, gateway).migrate_guest_data()

    assert result.success is True
    assert result.water_events_synced == 0
    assert result.errors and "timeout" in result.errors[0]


def test_nothing_to_migrate_is_not_success(local_services, gateway):
    progress = MagicMock()

    result = _service(local_services, gateway).migrate_guest_data(on_progress=progress)

    assert result.success is False
    assert result.plants_synced == 0
    progress.assert_not_called()


def test_progress_reports_each_step(local_services, guest, gateway):
    guest.plant("Fern", species_id=HIGH_SPECIES)
    guest.plant("Plain", species_id=None)
    calls = []

    _service(local_services, gateway).migrate_guest_data(on_progress=lambda *args: calls.append(args))

    assert calls == [
        ("plants", 1, 3, 33),
        ("plants", 2, 3, 66),
        ("water_events", 3, 3, 100),
    ]


def test_broken_progress_callback_does_not_abort(local_services, guest, gateway):
    guest.plant("Fern", species_id=HIGH_SPECIES)

    def _explode(*_args):
        raise RuntimeError("ui gone")

    result = _service(local_services, gateway).migrate_guest_data(on_progress=_explode)

    assert result.success is True
    assert result.water_events_synced == 1


def test_migration_is_audited(local_services, guest, gateway):
    guest.plant("Fern", species_id=None)
    audit = MagicMock()

    _service(local_services, gateway, audit_logger=audit, actor="alice").migrate_guest_data()

    audit.log_event.assert_called_once()
    args, kwargs = audit.log_event.call_args
    assert args == ("alice", "guest_data.migrate", "account", "success")
    assert kwargs["plants_synced"] == 1


def test_validate_sync_confirms_server_plants(local_services, guest, gateway):
    guest.plant("Fern", species_id=HIGH_SPECIES)
    service = _service(local_services, gateway)

    result = service.migrate_guest_data()

    assert service.validate_sync(result) is True


def test_validate_sync_rejects_failed_or_missing(local_services, gateway):
    service = _service(local_services, gateway)

    assert service.validate_sync(SyncResult(success=False)) is False

    missing = SyncResult(success=True, plants_synced=1)
    missing.id_mapping.plants["local-1"] = "not-on-server"
    assert service.validate_sync(missing) is False


def test_validate_sync_fails_when_server_unreachable(local_services):
    gateway = MagicMock()
    gateway.list_plant_ids.side_effect = ExternalServiceError("connection refused")
    service = _service(local_services, gateway)

    assert service.validate_sync(SyncResult(success=True, plants_synced=1)) is False


def test_validate_sync_fails_on_unexpected_gateway_error(local_services):
    gateway = MagicMock()
    gateway.list_plant_ids.side_effect = RuntimeError("malformed server reply")
    service = _service(local_services, gateway)

    assert service.validate_sync(SyncResult(success=True, plants_synced=1)) is False
