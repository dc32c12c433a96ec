"""Device-local key-value storage and the guest-mode flags."""

from __future__ import annotations

import pytest

from app.domain.exceptions import ConfigurationError, RepositoryError, ValidationError
from app.enums.watering import StorageMode
from app.services.scheduling_context import SessionContext, build_scheduler
from app.utils.persistent_store import FileLock, LocalKeyValueStore


@pytest.fixture()
def store(tmp_path) -> LocalKeyValueStore:
    return LocalKeyValueStore(tmp_path / "device")


def test_round_trip_and_defaults(store):
    assert store.get("missing", "fallback") == "fallback"
    assert store.get_list(LocalKeyValueStore.GUEST_PLANTS) == []

    store.set_list(LocalKeyValueStore.GUEST_PLANTS, [{"plant_id": "local-1"}])

    assert store.get_list(LocalKeyValueStore.GUEST_PLANTS) == [{"plant_id": "local-1"}]
    assert store.has_guest_data() is True
    assert not list(store.directory.glob("*.tmp"))
    assert not list(store.directory.glob("*.lock"))


def test_rejects_path_like_keys(store):
    with pytest.raises(ValueError):
        store.set("../escape", 1)


def test_corrupt_file_raises_repository_error(store):
    (store.directory / "guest_plants.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(RepositoryError):
        store.get_list(LocalKeyValueStore.GUEST_PLANTS)


def test_non_list_value_reads_as_empty(store):
    store.set(LocalKeyValueStore.GUEST_WATER_EVENTS, {"oops": True})

    assert store.get_list(LocalKeyValueStore.GUEST_WATER_EVENTS) == []


def test_clear_guest_data_removes_every_key(store):
    store.set_guest_mode(True)
    store.set_list(LocalKeyValueStore.GUEST_PLANTS, [{"plant_id": "p"}])
    store.set_list(LocalKeyValueStore.GUEST_WATER_EVENTS, [{"event_id": "e"}])

    store.clear_guest_data()

    assert store.is_guest_mode() is False
    assert store.has_guest_data() is False


def test_held_lock_times_out(store):
    lock_path = str(store.directory / "guest_plants.json.lock")
    holder = FileLock(lock_path)
    assert holder.acquire() is True
    try:
        assert FileLock(lock_path, timeout=0.1).acquire() is False
        with pytest.raises(TimeoutError):
            with FileLock(lock_path, timeout=0.1):
                pass
    finally:
        holder.release()

    with FileLock(lock_path, timeout=0.1) as lock:
        assert lock._acquired is True


def test_session_from_device(store):
    assert SessionContext.from_device(store).mode is StorageMode.LOCAL
    assert SessionContext.from_device(store, user_id=42) == SessionContext(StorageMode.SERVER, "42")

    store.set_guest_mode(True)
    assert SessionContext.from_device(store, user_id=42).is_local


def test_signed_in_session_requires_user():
    with pytest.raises(ValidationError):
        SessionContext.for_user("  ")


def test_scheduler_needs_the_session_backend(store):
    with pytest.raises(ConfigurationError):
        build_scheduler(SessionContext.guest())
    with pytest.raises(ConfigurationError):
        build_scheduler(SessionContext.for_user("alice"), local_storage=store)
