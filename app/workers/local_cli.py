"""Guest-mode command line: the watering scheduler over device-local storage."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from app.config import load_config, setup_logging
from app.domain.exceptions import PlantCareError
from app.services.application.reconciliation_service import ReconciliationService
from app.services.scheduling_context import SchedulingServices, SessionContext, build_scheduler
from app.utils.persistent_store import LocalKeyValueStore
from infrastructure.database.seeds import load_species_catalog
from infrastructure.http import HttpServerGateway
from infrastructure.local import LocalPlantStore
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="plantcare-local", description="Guest-mode watering schedule")
    parser.add_argument("--store-dir", help="Device-local storage directory (default: PLANTCARE_LOCAL_STORE_DIR)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    species = sub.add_parser("species", help="List the cached species catalog")
    species.add_argument("--refresh", action="store_true", help="Reload the cache from the server")
    species.add_argument("--server-url", help="Server base URL (default: PLANTCARE_SERVER_URL)")

    add = sub.add_parser("add-plant", help="Add a plant")
    add.add_argument("--name", required=True)
    add.add_argument("--species", dest="species_id")
    add.add_argument("--location")
    add.add_argument("--acquired", dest="acquisition_date", help="Acquisition date (YYYY-MM-DD)")
    add.add_argument("--notes")
    add.add_argument("--photo", dest="photos", action="append", default=[])

    sub.add_parser("plants", help="List plants")

    update = sub.add_parser("update-plant", help="Change a plant; a species change rebuilds its schedule")
    update.add_argument("plant_id")
    update.add_argument("--name")
    update.add_argument("--location")
    species_group = update.add_mutually_exclusive_group()
    species_group.add_argument("--species", dest="species_id")
    species_group.add_argument("--clear-species", action="store_true")

    delete = sub.add_parser("delete-plant", help="Delete a plant and its watering events")
    delete.add_argument("plant_id")

    due = sub.add_parser("due", help="Events scheduled within a date range")
    due.add_argument("--start", required=True)
    due.add_argument("--end", required=True)

    overdue = sub.add_parser("overdue", help="Pending events scheduled before a date")
    overdue.add_argument("--as-of")

    for name, help_text in (("water", "Mark an event watered"), ("postpone", "Postpone an event")):
        resolve = sub.add_parser(name, help=help_text)
        resolve.add_argument("event_id")
        resolve.add_argument("--date", help="Completion date (default: today)")

    migrate = sub.add_parser("migrate", help="Copy guest data into a server account")
    migrate.add_argument("--user-id", required=True)
    migrate.add_argument("--server-url", help="Server base URL (default: PLANTCARE_SERVER_URL)")
    migrate.add_argument("--clear", action="store_true", help="Clear guest data after a validated migration")
    return parser


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _ensure_species_cache(plant_store: LocalPlantStore) -> None:
    # Offline devices start from the bundled catalog until refreshed from a server
    if not plant_store.list_species():
        plant_store.cache_species(load_species_catalog())


def _run(args: argparse.Namespace, storage: LocalKeyValueStore, services: SchedulingServices, config, audit) -> Any:
    owner = services.session.owner_ref
    plant_service = services.plant_service
    engine = services.schedule_engine

    if args.command == "species":
        store = services.plant_store
        if args.refresh:
            gateway = HttpServerGateway(args.server_url or config.server_url, owner, timeout=config.http_timeout_seconds)
            try:
                store.cache_species(gateway.list_species())
            finally:
                gateway.close()
        return [s.to_dict() for s in store.list_species()]

    if args.command == "add-plant":
        outcome = plant_service.create_plant(
            owner,
            name=args.name,
            location=args.location,
            acquisition_date=args.acquisition_date,
            notes=args.notes,
            photos=args.photos,
            species_id=args.species_id,
        )
        return outcome.to_dict()

    if args.command == "plants":
        return [p.to_dict() for p in plant_service.list_plants(owner)]

    if args.command == "update-plant":
        changes: dict[str, Any] = {}
        if args.name is not None:
            changes["name"] = args.name
        if args.location is not None:
            changes["location"] = args.location
        if args.clear_species:
            changes["species_id"] = None
        elif args.species_id is not None:
            changes["species_id"] = args.species_id
        return plant_service.update_plant(args.plant_id, owner, changes).to_dict()

    if args.command == "delete-plant":
        removed = plant_service.delete_plant(args.plant_id, owner)
        return {"plant_id": args.plant_id, "water_events_removed": removed}

    if args.command == "due":
        return [e.to_dict() for e in engine.query_due_in_range(owner, args.start, args.end)]

    if args.command == "overdue":
        return [e.to_dict() for e in engine.query_overdue(owner, args.as_of)]

    if args.command in ("water", "postpone"):
        action = "WATERED" if args.command == "water" else "POSTPONED"
        return engine.resolve_event(args.event_id, owner, action, args.date).to_dict()

    if args.command == "migrate":
        gateway = HttpServerGateway(
            args.server_url or config.server_url,
            args.user_id,
            timeout=config.http_timeout_seconds,
        )
        try:
            reconciler = ReconciliationService(
                local_plants=services.plant_store,
                local_events=services.event_store,
                gateway=gateway,
                audit_logger=audit,
                actor=args.user_id,
            )
            result = reconciler.migrate_guest_data(
                on_progress=lambda step, current, total, pct: logger.info(
                    "Migrating %s: %d/%d (%d%%)", step, current, total, pct
                )
            )
            validated = reconciler.validate_sync(result)
        finally:
            gateway.close()

        if args.clear and validated:
            storage.clear_guest_data()
            storage.set(LocalKeyValueStore.GUEST_DATA_SYNCED, True)
        payload = result.to_dict()
        payload["validated"] = validated
        payload["cleared"] = bool(args.clear and validated)
        return payload

    raise ValueError(f"Unhandled command {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Run one guest-mode command and print its JSON result."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return int(exc.code or 0)

    config = load_config()
    setup_logging(debug=args.verbose or config.DEBUG, log_dir=str(Path(config.audit_log_path).parent))
    audit = AuditLogger(config.audit_log_path, level=config.log_level)

    try:
        storage = LocalKeyValueStore(args.store_dir or config.local_store_dir)
        session = SessionContext.from_device(storage)
        services = build_scheduler(session, local_storage=storage, audit_logger=audit)
        _ensure_species_cache(services.plant_store)
        _emit({"ok": True, "data": _run(args, storage, services, config, audit), "error": None})
        return 0
    except PlantCareError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        _emit({"ok": False, "data": None, "error": {"type": type(exc).__name__, "message": str(exc)}})
        return 1
    finally:
        audit.close()


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
