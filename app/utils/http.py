"""
API Response Envelope
=====================

Every ``/api`` response body has the same three keys::

    {"ok": true,  "data": {...}, "error": null}
    {"ok": false, "data": null,  "error": {"message": "...", ...}}

Client errors (4xx) carry the exception message, which is written for the
caller. Server errors (5xx) carry a fixed message per status; the real
exception only goes to the log.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, jsonify

from app.domain.exceptions import PlantCareError

logger = logging.getLogger(__name__)

_SERVER_ERROR_MESSAGES: dict[int, str] = {
    500: "Internal server error",
    502: "Plant server unavailable",
    503: "Service unavailable",
}


def envelope(data: Any = None, status: int = 200) -> Response:
    response = jsonify({"ok": True, "data": data, "error": None})
    response.status_code = status
    return response


def error_envelope(message: str, status: int, **extra: Any) -> Response:
    """Failure envelope; *extra* keys (e.g. ``errors``) land inside ``error``."""
    response = jsonify({"ok": False, "data": None, "error": {"message": message, **extra}})
    response.status_code = status
    return response


def exception_envelope(exc: BaseException, context: str) -> Response:
    """Map an exception raised while handling *context* to a failure envelope."""
    status = exc.http_status if isinstance(exc, PlantCareError) else 500
    if status >= 500:
        logger.error("%s failed: %s", context, exc, exc_info=exc)
        return error_envelope(_SERVER_ERROR_MESSAGES.get(status, _SERVER_ERROR_MESSAGES[500]), status)
    logger.debug("%s rejected (%d): %s", context, status, exc)
    return error_envelope(str(exc) or context, status)


def safe_route(context: str) -> Callable:
    """Turn any exception escaping a route into a failure envelope.

    Usage::

        @water_events_api.get("/overdue")
        @safe_route("Listing overdue water events")
        def get_overdue_events():
            ...
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except Exception as exc:
                return exception_envelope(exc, context)

        return wrapper

    return decorator
