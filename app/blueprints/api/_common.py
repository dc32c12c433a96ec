"""
Blueprint Common Utilities
==========================

Shared helper functions for all API blueprints.
Import these instead of duplicating helper code in each blueprint.

Usage:
    from app.blueprints.api._common import (
        get_container, get_session_context, get_scheduling, success, fail,
    )

This module centralizes:
- Caller identity resolution
- Service container access
- Request JSON parsing
- Standardized response helpers
"""
from __future__ import annotations

import logging

from flask import current_app, request, session
from pydantic import ValidationError as PydanticValidationError

from app.domain.exceptions import PlantCareError, ValidationError
from app.services.scheduling_context import SchedulingServices, SessionContext
from app.utils.http import envelope, error_envelope

logger = logging.getLogger("api._common")

# Identity header sent by the device client when migrating guest data. Anyone
# can set it, so it is only honoured when TRUST_USER_HEADER is enabled, i.e.
# behind a gateway that authenticates the device and overwrites the header.
USER_ID_HEADER = "X-User-Id"


class AuthenticationRequired(PlantCareError):
    """No signed-in user on the request (HTTP 401)."""

    http_status: int = 401


# ============================================================================
# User Session Utilities
# ============================================================================


def get_user_id() -> str:
    """
    Get the calling user's id.

    Read from the Flask session, else (only with TRUST_USER_HEADER on)
    from the ``X-User-Id`` header set by the device client during
    guest-data migration.

    Raises:
        AuthenticationRequired: No identity on the request
    """
    user_id = session.get("user_id")
    if not user_id and current_app.config.get("TRUST_USER_HEADER", False):
        user_id = request.headers.get(USER_ID_HEADER)
    if user_id is None or not str(user_id).strip():
        raise AuthenticationRequired("Authentication required")
    return str(user_id).strip()


def get_session_context() -> SessionContext:
    """Server session for the calling user."""
    return SessionContext.for_user(get_user_id())


# ============================================================================
# CONTAINER ACCESS
# ============================================================================

def get_container():
    """
    Get the service container from Flask app config.

    Returns:
        ServiceContainer: The application service container

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_scheduling() -> SchedulingServices:
    """Scheduler and plant services bound to the calling user's session."""
    return get_container().scheduling_for(get_session_context())


# ============================================================================
# REQUEST HELPERS
# ============================================================================

def get_json() -> dict:
    """
    Get the JSON request body as a dict.

    A missing or unparseable body reads as ``{}`` so schema validation
    reports the missing fields.

    Raises:
        ValidationError: The body is JSON but not an object
    """
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def invalid(ve: PydanticValidationError):
    """400 response for a schema validation failure."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in ve.errors()
    ]
    return fail("Invalid request", 400, errors=errors)


# ============================================================================
# RESPONSE HELPERS
# ============================================================================

def success(data: dict | list | None = None, status: int = 200):
    """{"ok": true, "data": ..., "error": null}"""
    return envelope(data, status)


def fail(message: str, status: int = 400, **extra):
    """{"ok": false, "data": null, "error": {"message": ..., **extra}}"""
    return error_envelope(message, status, **extra)
