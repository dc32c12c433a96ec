"""HTTP clients for remote PlantCare services."""

from infrastructure.http.server_gateway import HttpServerGateway

__all__ = ["HttpServerGateway"]
