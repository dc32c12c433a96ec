"""EventStore contract shared by the SQLite and device-local backends."""

from __future__ import annotations

from app.domain.watering.entities import WateringEvent
from app.enums.watering import WateringStatus
from app.utils.persistent_store import LocalKeyValueStore

from conftest import HIGH_SPECIES, SeedData, day


def test_create_always_stores_pending(services, seed):
    plant = seed.plant(species_id=HIGH_SPECIES, schedule_initial=False)

    event = services.event_store.create(
        WateringEvent(plant_id=plant.plant_id, scheduled_date=day(3), status=WateringStatus.WATERED)
    )

    stored = services.event_store.find_by_id(event.event_id)
    assert stored.status is WateringStatus.PENDING
    assert stored.completed_date is None
    assert stored.scheduled_date == day(3)


def test_mark_resolved_succeeds_once(services, seed):
    plant = seed.plant(schedule_initial=False)
    event = seed.event(plant, day(3))
    store = services.event_store

    assert store.mark_resolved(event.event_id, WateringStatus.WATERED, day(4)) is True
    assert store.mark_resolved(event.event_id, WateringStatus.POSTPONED, day(5)) is False

    stored = store.find_by_id(event.event_id)
    assert stored.status is WateringStatus.WATERED
    assert stored.completed_date == day(4)


def test_mark_resolved_unknown_event(services):
    assert services.event_store.mark_resolved("missing", WateringStatus.WATERED, day(1)) is False


def test_delete_pending_keeps_resolved(services, seed):
    plant = seed.plant(schedule_initial=False)
    done = seed.event(plant, day(1))
    services.event_store.mark_resolved(done.event_id, WateringStatus.WATERED, day(1))
    seed.event(plant, day(2))
    seed.event(plant, day(3))

    assert services.event_store.delete_pending_by_plant(plant.plant_id) == 2
    assert seed.pending_dates(plant) == []
    assert services.event_store.find_by_id(done.event_id) is not None


def test_delete_by_plant_removes_everything(services, seed):
    plant = seed.plant(schedule_initial=False)
    other = seed.plant("Other", schedule_initial=False)
    done = seed.event(plant, day(1))
    services.event_store.mark_resolved(done.event_id, WateringStatus.POSTPONED, day(1))
    seed.event(plant, day(2))
    kept = seed.event(other, day(2))

    assert services.event_store.delete_by_plant(plant.plant_id) == 2
    assert [e.event_id for e in services.event_store.list_all()] == [kept.event_id]


def test_last_watered_ignores_postponed(services, seed):
    plant = seed.plant(schedule_initial=False)
    store = services.event_store
    older = seed.event(plant, day(1))
    newer = seed.event(plant, day(2))
    postponed = seed.event(plant, day(3))
    store.mark_resolved(newer.event_id, WateringStatus.WATERED, day(6))
    store.mark_resolved(older.event_id, WateringStatus.WATERED, day(2))
    store.mark_resolved(postponed.event_id, WateringStatus.POSTPONED, day(9))

    assert store.find_last_watered_by_plant(plant.plant_id).event_id == newer.event_id


def test_last_watered_none_without_history(services, seed):
    plant = seed.plant(schedule_initial=False)
    seed.event(plant, day(1))

    assert services.event_store.find_last_watered_by_plant(plant.plant_id) is None


def test_import_event_keeps_status(services, seed):
    plant = seed.plant(schedule_initial=False)

    event = services.event_store.import_event(
        WateringEvent(
            plant_id=plant.plant_id,
            scheduled_date=day(1),
            status=WateringStatus.POSTPONED,
            completed_date=day(2),
        )
    )

    stored = services.event_store.find_by_id(event.event_id)
    assert stored.status is WateringStatus.POSTPONED
    assert stored.completed_date == day(2)


def test_local_rewrite_keeps_unreadable_event_records(local_services, local_storage):
    legacy = {"event_id": "legacy-1", "plant_id": "p-old", "scheduled_date": "03/01/2026", "status": "PENDING"}
    local_storage.set_list(LocalKeyValueStore.GUEST_WATER_EVENTS, [legacy])
    seed = SeedData(local_services)
    plant = seed.plant(species_id=HIGH_SPECIES, schedule_initial=False)

    seed.event(plant, day(20))

    stored = local_storage.get_list(LocalKeyValueStore.GUEST_WATER_EVENTS)
    assert legacy in stored
    assert len(stored) == 2
    # Unreadable records stay invisible to queries
    assert "legacy-1" not in [e.event_id for e in local_services.event_store.list_all()]


def test_local_rewrite_keeps_unreadable_plant_records(local_services, local_storage):
    legacy = {"plant_id": "legacy-p", "name": "Old fern", "species": {"species_id": "x", "water_need": "DAILY"}}
    local_storage.set_list(LocalKeyValueStore.GUEST_PLANTS, [legacy])
    seed = SeedData(local_services)

    plant = seed.plant(schedule_initial=False)
    local_services.plant_store.delete(plant.plant_id)

    assert local_storage.get_list(LocalKeyValueStore.GUEST_PLANTS) == [legacy]
    assert local_services.plant_store.list_all() == []
