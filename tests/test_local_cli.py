"""Guest-mode command line over a temp device store."""

from __future__ import annotations

import json

import pytest

from app.services.application.reconciliation_service import InProcessServerGateway
from app.utils.persistent_store import LocalKeyValueStore
from app.workers import local_cli

from conftest import HIGH_SPECIES, LOW_SPECIES


@pytest.fixture()
def store_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("PLANTCARE_LOCAL_STORE_DIR", str(tmp_path / "device"))
    monkeypatch.setenv("PLANTCARE_AUDIT_LOG_PATH", str(tmp_path / "logs" / "audit.log"))
    monkeypatch.setattr(local_cli, "setup_logging", lambda **kwargs: None)
    return tmp_path / "device"


@pytest.fixture()
def run(store_dir, capsys):
    def _run(*argv: str):
        code = local_cli.main(list(argv))
        out = capsys.readouterr().out
        return code, (json.loads(out) if out.strip() else None)

    return _run


def _add_fern(run) -> dict:
    code, out = run("add-plant", "--name", "Fern", "--species", HIGH_SPECIES, "--acquired", "2026-03-01")
    assert code == 0, out
    return out["data"]


def test_species_cache_starts_from_bundled_catalog(run, store_dir):
    code, out = run("species")

    assert code == 0
    assert len(out["data"]) == 10
    assert (store_dir / "guest_species_cache.json").exists()


def test_add_plant_and_water(run):
    created = _add_fern(run)
    event_id = created["water_event"]["event_id"]
    assert created["water_event"]["scheduled_date"] == "2026-03-05"

    code, out = run("water", event_id, "--date", "2026-03-06")

    assert code == 0
    assert out["data"]["event"]["status"] == "WATERED"
    assert out["data"]["successor"]["scheduled_date"] == "2026-03-10"


def test_postpone_and_queries(run):
    created = _add_fern(run)
    run("postpone", created["water_event"]["event_id"], "--date", "2026-03-05")

    _, due = run("due", "--start", "2026-03-01", "--end", "2026-03-31")
    _, overdue = run("overdue", "--as-of", "2026-03-08")

    assert [(e["scheduled_date"], e["status"]) for e in due["data"]] == [
        ("2026-03-05", "POSTPONED"),
        ("2026-03-07", "PENDING"),
    ]
    assert [e["scheduled_date"] for e in overdue["data"]] == ["2026-03-07"]


def test_update_and_delete_plant(run):
    created = _add_fern(run)
    plant_id = created["plant"]["plant_id"]

    _, updated = run("update-plant", plant_id, "--species", LOW_SPECIES)
    _, cleared = run("update-plant", plant_id, "--clear-species")
    _, deleted = run("delete-plant", plant_id)
    _, plants = run("plants")

    assert updated["data"]["water_event"]["scheduled_date"] == "2026-03-31"
    assert cleared["data"]["plant"]["species_id"] is None
    assert deleted["data"] == {"plant_id": plant_id, "water_events_removed": 0}
    assert plants["data"] == []


def test_domain_error_exits_with_one(run):
    code, out = run("water", "no-such-event")

    assert code == 1
    assert out["ok"] is False
    assert out["error"]["type"] == "NotFoundError"


def test_double_resolution_is_reported(run):
    event_id = _add_fern(run)["water_event"]["event_id"]
    run("water", event_id, "--date", "2026-03-05")

    code, out = run("postpone", event_id)

    assert code == 1
    assert out["error"]["type"] == "InvalidStateError"


def test_usage_error_exits_with_two(run):
    code, _ = run("due", "--start", "2026-03-01")

    assert code == 2


class _FakeHttpGateway(InProcessServerGateway):
    instances: list["_FakeHttpGateway"] = []
    services = None

    def __init__(self, base_url, user_id, *, timeout=10):
        super().__init__(self.services, user_id)
        self.base_url = base_url
        self.closed = False
        _FakeHttpGateway.instances.append(self)

    def close(self):
        self.closed = True


@pytest.fixture()
def fake_gateway(monkeypatch, server_services):
    _FakeHttpGateway.instances = []
    _FakeHttpGateway.services = server_services
    monkeypatch.setattr(local_cli, "HttpServerGateway", _FakeHttpGateway)
    return _FakeHttpGateway


def test_migrate_and_clear(run, store_dir, server_services, fake_gateway):
    created = _add_fern(run)
    run("postpone", created["water_event"]["event_id"], "--date", "2026-03-05")

    code, out = run("migrate", "--user-id", "alice", "--server-url", "http://server.test", "--clear")

    assert code == 0
    data = out["data"]
    assert data["success"] is True
    assert data["plants_synced"] == 1
    assert data["water_events_synced"] == 2
    assert data["validated"] is True
    assert data["cleared"] is True
    assert fake_gateway.instances[0].base_url == "http://server.test"
    assert fake_gateway.instances[0].closed is True

    storage = LocalKeyValueStore(store_dir)
    assert storage.get(LocalKeyValueStore.GUEST_DATA_SYNCED) is True
    assert storage.get_list(LocalKeyValueStore.GUEST_PLANTS) == []

    server_plant_id = data["id_mapping"]["plants"][created["plant"]["plant_id"]]
    pending = server_services.event_store.find_pending_by_plant(server_plant_id)
    assert [e.scheduled_date.isoformat() for e in pending] == ["2026-03-07"]


def test_migrate_without_clear_keeps_guest_data(run, store_dir, fake_gateway):
    _add_fern(run)

    code, out = run("migrate", "--user-id", "alice")

    assert code == 0
    assert out["data"]["cleared"] is False
    assert LocalKeyValueStore(store_dir).get_list(LocalKeyValueStore.GUEST_PLANTS)
