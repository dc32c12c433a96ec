from __future__ import annotations

import atexit
import logging
import threading
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.plants import plants_api
from app.blueprints.api.water_events import water_events_api
from app.config import load_config, setup_logging


def create_app(config_overrides: dict[str, Any] | None = None) -> Flask:
    """Build the watering scheduler server.

    Args:
        config_overrides: AppConfig field values replacing the environment
            defaults, e.g. ``{"database_path": ":memory:"}`` in tests
    """
    config = load_config(**(config_overrides or {}))

    # Configure logging early so container startup (schema creation, species seeding) is visible.
    setup_logging(debug=config.DEBUG)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.config["SESSION_COOKIE_HTTPONLY"] = True
    flask_app.config["SESSION_COOKIE_SAMESITE"] = "Lax"
    flask_app.config["SESSION_COOKIE_SECURE"] = config.environment == "production"

    from app.services.container import ServiceContainer

    container = ServiceContainer.build(config, app=flask_app)
    flask_app.config["CONTAINER"] = container

    # ── Graceful shutdown ──────────────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            container.shutdown()
        except Exception as exc:
            logging.warning("Error during graceful shutdown: %s", exc)

    atexit.register(_graceful_shutdown, "atexit")
    flask_app.extensions["plantcare_shutdown"] = _graceful_shutdown

    # Global JSON error handler: domain exceptions carry their own ``http_status``.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            raise exc
        from app.utils.http import error_envelope, exception_envelope

        if isinstance(exc, HTTPException) and (exc.code or 500) < 500:
            return error_envelope(exc.description or "Request failed", int(exc.code))
        return exception_envelope(exc, f"{request.method} {request.path}")

    flask_app.register_blueprint(water_events_api, url_prefix="/api/water-events")
    flask_app.register_blueprint(plants_api, url_prefix="/api/plants")

    for bp_name in flask_app.blueprints:
        logging.info(" Registered blueprint: %s", bp_name)

    logging.getLogger(__name__).info("PlantCare application initialized successfully.")
    return flask_app


__all__ = ["create_app"]
