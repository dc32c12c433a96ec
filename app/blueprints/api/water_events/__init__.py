"""
Water Events API Module
=======================

Watering schedule endpoints for the signed-in user:
- routes.py: calendar queries, manual scheduling, resolution, recalculation
"""

from flask import Blueprint

from app.utils.http import error_envelope

# Create blueprint here to avoid circular imports
water_events_api = Blueprint("water_events_api", __name__)


@water_events_api.errorhandler(404)
def not_found(error):
    """Handle 404 errors"""
    return error_envelope("Resource not found", 404)


@water_events_api.errorhandler(405)
def method_not_allowed(error):
    """Handle 405 errors"""
    return error_envelope("Method not allowed", 405)


# Import submodules to register routes (must be after blueprint creation)
from . import routes  # noqa: E402,F401

__all__ = ["water_events_api"]
