"""Centralized exception hierarchy for the plant watering scheduler.

All domain and service exceptions inherit from :class:`PlantCareError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``app/utils/http.safe_route``) maps these
to the correct HTTP status codes automatically.

Hierarchy
---------
::

    PlantCareError (base — maps to 500)
    ├── ValidationError          (400 — bad input from caller)
    │   └── MissingSpeciesError  (400 — no usable water need)
    ├── NotFoundError            (404 — entity does not exist / not yours)
    ├── ForbiddenError           (403 — entity exists, caller not owner)
    ├── ConflictError            (409 — duplicate / state conflict)
    │   └── InvalidStateError    (409 — transition on a resolved event)
    ├── ServiceError             (500 — business-logic failure)
    │   ├── RepositoryError      (500 — database / persistence)
    │   └── ExternalServiceError (502 — remote server / network)
    └── ConfigurationError       (500 — missing / invalid config)
"""

from __future__ import annotations


class PlantCareError(Exception):
    """Base exception for all application errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, returned to the
        HTTP client only for 4xx classes).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(PlantCareError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class MissingSpeciesError(ValidationError):
    """Plant has no species, so no watering interval can be derived."""


class NotFoundError(PlantCareError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404


class ForbiddenError(PlantCareError):
    """Entity exists but belongs to another owner (HTTP 403)."""

    http_status: int = 403


class ConflictError(PlantCareError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409


class InvalidStateError(ConflictError):
    """Transition attempted on an event that is no longer PENDING."""


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(PlantCareError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class RepositoryError(ServiceError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500


class ExternalServiceError(ServiceError):
    """Remote server or network dependency failure (HTTP 502)."""

    http_status: int = 502


class ConfigurationError(PlantCareError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500
