"""
Plants API Module
=================

Plant endpoints for the signed-in user:
- crud.py: Plant CRUD operations and the species catalog
"""

from flask import Blueprint

from app.utils.http import error_envelope

# Create blueprint here to avoid circular imports
plants_api = Blueprint("plants_api", __name__)


# Error handlers
@plants_api.errorhandler(404)
def not_found(error):
    """Handle 404 errors"""
    return error_envelope("Resource not found", 404)


@plants_api.errorhandler(405)
def method_not_allowed(error):
    """Handle 405 errors"""
    return error_envelope("Method not allowed", 405)


# Import submodules to register routes (must be after blueprint creation)
from . import crud  # noqa: E402,F401

__all__ = ["plants_api"]
