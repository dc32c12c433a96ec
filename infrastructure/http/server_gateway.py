"""
HTTP Server Gateway
===================

ServerGateway implementation that migrates guest data through the server's
JSON API. The signed-in user is identified with the ``X-User-Id`` header.

Every transport, status or payload problem surfaces as ExternalServiceError
so the reconciliation loop can record it per item and move on.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from app.domain.exceptions import ExternalServiceError
from app.domain.watering.entities import PlantRecord, Species, WateringEvent

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"


class HttpServerGateway:
    """Talks to ``/api/plants`` and ``/api/water-events`` on a PlantCare server."""

    def __init__(
        self,
        base_url: str,
        user_id: str,
        *,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({USER_ID_HEADER: str(user_id), "Accept": "application/json"})

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Request to %s %s failed: %s", method, url, e)
            raise ExternalServiceError(f"Server unreachable: {e}", detail={"url": url}) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.ok or not isinstance(body, dict) or not body.get("ok"):
            message = None
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                message = body["error"].get("message")
            message = message or response.reason or "unexpected response"
            logger.warning("Server rejected %s %s (%s): %s", method, path, response.status_code, message)
            raise ExternalServiceError(
                f"Server error {response.status_code}: {message}",
                detail={"url": url, "status": response.status_code},
            )
        return body.get("data")

    def create_plant(self, plant: PlantRecord, *, schedule_initial: bool = True) -> str:
        payload = {
            "name": plant.name,
            "location": plant.location,
            "acquisition_date": plant.acquisition_date.isoformat() if plant.acquisition_date else None,
            "notes": plant.notes,
            "photos": list(plant.photos),
            "species_id": plant.species_id,
            "schedule_initial": schedule_initial,
        }
        data = self._request("POST", "/api/plants", payload)
        try:
            return str(data["plant"]["plant_id"])
        except (KeyError, TypeError) as e:
            raise ExternalServiceError("Server response is missing the plant id") from e

    def create_water_event(self, plant_id: str, event: WateringEvent) -> str:
        payload = {
            "plant_id": plant_id,
            "scheduled_date": event.scheduled_date.isoformat(),
            "status": event.status.value,
            "completed_date": event.completed_date.isoformat() if event.completed_date else None,
        }
        data = self._request("POST", "/api/water-events", payload)
        try:
            return str(data["event_id"])
        except (KeyError, TypeError) as e:
            raise ExternalServiceError("Server response is missing the water event id") from e

    def list_plant_ids(self) -> List[str]:
        data = self._request("GET", "/api/plants")
        try:
            return [str(p["plant_id"]) for p in data["plants"]]
        except (KeyError, TypeError) as e:
            raise ExternalServiceError("Server response is missing the plant list") from e

    def list_species(self) -> List[Species]:
        """Server species catalog, used to fill a device's species cache."""
        data = self._request("GET", "/api/plants/species")
        try:
            return [Species.from_dict(raw) for raw in data["species"]]
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalServiceError("Server response is missing the species list") from e

    def close(self) -> None:
        self._session.close()
