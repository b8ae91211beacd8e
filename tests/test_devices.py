import datetime

import pytest

from devregistry.api import Request, Router
from devregistry.db import Database, Location
from devregistry.devices import (
    DeviceHandler,
    is_alphanumeric,
    is_valid_date,
    today,
)

_SCHEMA = """
CREATE TABLE locations (id INTEGER PRIMARY KEY, name TEXT NOT NULL, type TEXT NOT NULL);
CREATE TABLE devices (
    serial_number TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    creation_date TEXT NOT NULL,
    location_id INTEGER NOT NULL
);
"""


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "registry.db")
    database.open()
    database._conn.executescript(_SCHEMA)
    database.add_location(Location(id=1, name="Lab", type="indoor"))
    yield database
    database.close()


@pytest.fixture
def handler(db):
    return DeviceHandler(db)


def _add(handler, **params):
    base = {"serial_number": "SN1", "name": "Sensor", "type": "temp", "location_id": "1"}
    base.update(params)
    return handler.add_device(Request("POST", "/devices", base))


def test_list_empty_is_not_found(handler):
    response = handler.list_devices(Request())
    assert response.status == 404
    assert response.payload["message"] == "No devices found in devices table"


def test_add_then_list(handler):
    response = _add(handler, creation_date="2024-01-15")
    assert response.status == 200
    assert response.payload["message"] == (
        "New device created successfully: SN1 | Sensor | temp | 2024-01-15 | 1"
    )
    listed = handler.list_devices(Request())
    assert listed.status == 200
    assert listed.payload == [
        {
            "serial_number": "SN1",
            "name": "Sensor",
            "type": "temp",
            "creation_date": "2024-01-15",
            "location_id": 1,
            "location_name": "Lab",
            "location_type": "indoor",
        }
    ]


def test_add_defaults_creation_date_to_today(handler, db):
    assert _add(handler).status == 200
    assert db.devices()[0].creation_date == today()


def test_add_missing_params(handler):
    response = handler.add_device(Request("POST", "/devices", {"name": "x"}))
    assert response.status == 400
    assert response.payload["status"] == "invalid"


def test_add_invalid_serial(handler):
    response = _add(handler, serial_number="AB-12")
    assert response.status == 400
    assert response.payload["message"] == "Invalid serial_number"


def test_add_duplicate_serial(handler):
    assert _add(handler).status == 200
    response = _add(handler)
    assert response.status == 409
    assert response.payload["status"] == "conflict"


def test_add_unknown_location(handler):
    response = _add(handler, location_id="99")
    assert response.status == 404
    assert response.payload["message"] == "Location ID does not exist in locations table"


@pytest.mark.parametrize("location_id", ["abc", "", "99999999999"])
def test_add_invalid_location_id(handler, location_id):
    response = _add(handler, location_id=location_id)
    assert response.status == 400
    assert response.payload["message"] == "Invalid location_id"


def test_add_invalid_date(handler, db):
    response = _add(handler, creation_date="2023-02-30")
    assert response.status == 400
    assert response.payload["message"] == "Invalid creation_date"
    assert db.devices() == []


def test_filter_requires_known_param(handler):
    response = handler.filter_devices(Request(params={"colour": "red"}))
    assert response.status == 400


def test_filter_by_type_and_dates(handler):
    _add(handler, serial_number="A1", type="temp", creation_date="2024-01-10")
    _add(handler, serial_number="B2", type="humidity", creation_date="2024-03-10")
    by_type = handler.filter_devices(Request(params={"type": "humidity"}))
    assert [d["serial_number"] for d in by_type.payload] == ["B2"]
    by_date = handler.filter_devices(
        Request(params={"start_date": "2024-01-01", "end_date": "2024-02-01"})
    )
    assert [d["serial_number"] for d in by_date.payload] == ["A1"]
    by_location = handler.filter_devices(Request(params={"location_id": "1"}))
    assert {d["serial_number"] for d in by_location.payload} == {"A1", "B2"}


def test_filter_no_match(handler):
    _add(handler)
    response = handler.filter_devices(Request(params={"location_name": "Nowhere"}))
    assert response.status == 404
    assert response.payload["message"] == "No devices match filters"


def test_update_requires_fields(handler):
    _add(handler)
    response = handler.update_device(Request("PATCH", "/devices/SN1", {}, ("SN1",)))
    assert response.status == 400


def test_update_unknown_serial(handler):
    response = handler.update_device(Request("PATCH", "/devices/X", {"name": "n"}, ("X",)))
    assert response.status == 404
    assert response.payload["message"] == "Serial Number does not exist in devices table"


def test_update_changes_name(handler, db):
    _add(handler)
    response = handler.update_device(
        Request("PATCH", "/devices/SN1", {"name": "Probe"}, ("SN1",))
    )
    assert response.status == 200
    assert response.payload["message"] == "Successfully updated device: SN1"
    assert db.devices()[0].name == "Probe"


def test_update_bad_location_and_date(handler):
    _add(handler)
    missing = handler.update_device(
        Request("PATCH", "/devices/SN1", {"location_id": "42"}, ("SN1",))
    )
    assert missing.status == 404
    bad = handler.update_device(
        Request("PATCH", "/devices/SN1", {"location_id": "x"}, ("SN1",))
    )
    assert bad.status == 400
    date = handler.update_device(
        Request("PATCH", "/devices/SN1", {"creation_date": "2024-13-01"}, ("SN1",))
    )
    assert date.status == 400


def test_update_with_only_empty_values_fails(handler):
    _add(handler)
    response = handler.update_device(Request("PATCH", "/devices/SN1", {"name": ""}, ("SN1",)))
    assert response.status == 500


def test_delete(handler, db):
    _add(handler)
    response = handler.delete_device(Request("DELETE", "/devices/SN1", {}, ("SN1",)))
    assert response.status == 200
    assert response.payload["message"] == "Successfully deleted device: SN1"
    assert not db.serial_number_exists("SN1")
    again = handler.delete_device(Request("DELETE", "/devices/SN1", {}, ("SN1",)))
    assert again.status == 404


def test_routes_through_router(handler, db):
    router = Router()
    handler.register(router)
    created = router.dispatch(
        "POST",
        "/devices",
        {"serial_number": "R1", "name": "n", "type": "t", "location_id": "1"},
    )
    assert created.status == 200
    patched = router.dispatch("PATCH", "/devices/R1", {"type": "u"})
    assert patched.status == 200
    assert db.devices()[0].type == "u"
    assert router.dispatch("GET", "/devices/filter", {"type": "u"}).status == 200
    assert router.dispatch("DELETE", "/devices/R1").status == 200
    assert router.dispatch("GET", "/devices").status == 404


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2024-02-29", True),
        ("2023-02-29", False),
        ("2024-13-01", False),
        ("2024-01-00", False),
        ("not a date", False),
        ("1960-01-01", False),
        ("2024-01", False),
    ],
)
def test_is_valid_date(text, expected):
    assert is_valid_date(text) is expected


@pytest.mark.parametrize(
    "text, expected",
    [("ABC123", True), ("", True), ("AB-12", False), ("café", False), ("a b", False)],
)
def test_is_alphanumeric(text, expected):
    assert is_alphanumeric(text) is expected


def test_today_is_iso_date():
    value = today()
    assert datetime.date.fromisoformat(value) == datetime.date.today()
    assert is_valid_date(value)