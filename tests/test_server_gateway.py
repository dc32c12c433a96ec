"""HTTP gateway used by the device to migrate guest data."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from app.domain.exceptions import ExternalServiceError
from app.domain.watering.entities import PlantRecord, WateringEvent
from app.enums.watering import WateringStatus
from infrastructure.http import HttpServerGateway

from conftest import HIGH_SPECIES, day


def _response(status: int = 200, body=None, reason: str = "OK"):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.reason = reason
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture()
def session():
    mock = MagicMock()
    mock.headers = {}
    return mock


@pytest.fixture()
def gateway(session) -> HttpServerGateway:
    return HttpServerGateway("http://plantcare.test/", "alice", timeout=3, session=session)


def test_identifies_user_on_every_request(gateway, session):
    assert session.headers["X-User-Id"] == "alice"
    assert session.headers["Accept"] == "application/json"
    assert gateway.base_url == "http://plantcare.test"


def test_create_plant_posts_attributes(gateway, session):
    session.request.return_value = _response(201, {"ok": True, "data": {"plant": {"plant_id": "p-1"}}, "error": None})
    plant = PlantRecord(
        plant_id="local-1",
        name="Fern",
        acquisition_date=day(0),
        photos=["a.jpg"],
        species_id=HIGH_SPECIES,
    )

    server_id = gateway.create_plant(plant, schedule_initial=False)

    assert server_id == "p-1"
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert (method, url) == ("POST", "http://plantcare.test/api/plants")
    assert kwargs["timeout"] == 3
    assert kwargs["json"] == {
        "name": "Fern",
        "location": None,
        "acquisition_date": "2026-03-01",
        "notes": None,
        "photos": ["a.jpg"],
        "species_id": HIGH_SPECIES,
        "schedule_initial": False,
    }


def test_create_water_event_keeps_status(gateway, session):
    session.request.return_value = _response(201, {"ok": True, "data": {"event_id": "e-9"}, "error": None})
    event = WateringEvent(
        event_id="local-e",
        plant_id="local-1",
        scheduled_date=day(4),
        status=WateringStatus.WATERED,
        completed_date=day(5),
    )

    assert gateway.create_water_event("p-1", event) == "e-9"
    assert session.request.call_args.kwargs["json"] == {
        "plant_id": "p-1",
        "scheduled_date": "2026-03-05",
        "status": "WATERED",
        "completed_date": "2026-03-06",
    }


def test_list_plant_ids(gateway, session):
    session.request.return_value = _response(
        200, {"ok": True, "data": {"plants": [{"plant_id": "p-1"}, {"plant_id": "p-2"}], "count": 2}}
    )

    assert gateway.list_plant_ids() == ["p-1", "p-2"]
    assert session.request.call_args.args == ("GET", "http://plantcare.test/api/plants")


def test_list_species(gateway, session):
    session.request.return_value = _response(
        200,
        {
            "ok": True,
            "data": {
                "species": [
                    {"species_id": HIGH_SPECIES, "common_name": "Boston Fern", "latin_name": "", "water_need": "HIGH"}
                ],
                "count": 1,
            },
        },
    )

    species = gateway.list_species()

    assert [s.species_id for s in species] == [HIGH_SPECIES]
    assert species[0].water_need.value == "HIGH"


def test_server_error_message_is_surfaced(gateway, session):
    session.request.return_value = _response(
        400, {"ok": False, "data": None, "error": {"message": "Unknown species x"}}, reason="BAD REQUEST"
    )

    with pytest.raises(ExternalServiceError, match="Unknown species x"):
        gateway.create_plant(PlantRecord(name="Fern"))


def test_non_json_response_is_rejected(gateway, session):
    session.request.return_value = _response(502, ValueError("not json"), reason="Bad Gateway")

    with pytest.raises(ExternalServiceError, match="Bad Gateway"):
        gateway.list_plant_ids()


def test_transport_failure_is_wrapped(gateway, session):
    session.request.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(ExternalServiceError, match="unreachable"):
        gateway.list_plant_ids()


def test_malformed_success_payload(gateway, session):
    session.request.return_value = _response(201, {"ok": True, "data": {}, "error": None})

    with pytest.raises(ExternalServiceError):
        gateway.create_water_event(
            "p-1", WateringEvent(plant_id="p-1", scheduled_date=day(1))
        )
