"""HTTP handlers for the ``/devices`` endpoints."""

from __future__ import annotations

import datetime
import logging
import re
from dataclasses import asdict

from .api import Request, Response, Router
from .db import Database, DatabaseError, Device

log = logging.getLogger(__name__)

FILTER_PARAMS = frozenset(
    {
        "serial_number",
        "name",
        "type",
        "creation_date",
        "location_id",
        "start_date",
        "end_date",
        "location_name",
        "location_type",
    }
)

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_DATE_PREFIX = re.compile(r"\s*(\d{1,4})-\s*(\d{1,2})-\s*(\d{1,2})")
_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1
_EPOCH = datetime.date(1970, 1, 1)


def _reply(status: int, state: str, message: str) -> Response:
    return Response(status, {"status": state, "message": message})


def _parse_int(text: str) -> int:
    """Read a leading integer as a 32-bit value, ignoring anything after it."""
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"not an integer: {text!r}")
    value = int(match.group(1))
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def today():
    """Return today's local date as YYYY-MM-DD."""
    return datetime.date.today().isoformat()


def is_valid_date(text):
    """Tell whether ``text`` starts with a real calendar date YYYY-MM-DD, not before 1970."""
    match = _DATE_PREFIX.match(text)
    if match is None:
        return False
    try:
        date = datetime.date(*(int(part) for part in match.groups()))
    except ValueError:
        return False
    return date >= _EPOCH


def is_alphanumeric(text):
    """Tell whether every character is an ASCII letter or digit (true for "")."""
    return all(ch.isascii() and ch.isalnum() for ch in text)


class DeviceHandler:
    """Serves listing, filtering, creation, update and deletion of devices."""

    def __init__(self, db: Database):
        self.db = db

    def register(self, router: Router):
        """Attach the device routes to ``router``."""
        router.add("GET", r"/devices", self.list_devices)
        router.add("GET", r"/devices/filter", self.filter_devices)
        router.add("POST", r"/devices", self.add_device)
        router.add("PATCH", r"/devices/([^/]+)", self.update_device)
        router.add("DELETE", r"/devices/([^/]+)", self.delete_device)

    def list_devices(self, request: Request) -> Response:
        try:
            devices = self.db.devices()
        except DatabaseError as exc:
            log.error("Error listing devices: %s", exc)
            devices = []
        if not devices:
            return _reply(404, "not found", "No devices found in devices table")
        return Response(200, [asdict(device) for device in devices])

    def filter_devices(self, request: Request) -> Response:
        params = request.params
        if not FILTER_PARAMS.intersection(params):
            return _reply(
                400,
                "invalid",
                "Invalid request parameters: Only serial_number, name, type, creation_date, "
                "location_id, start_date, end_date, location_name, location_type",
            )
        filters = {key: params.get(key, "") for key in FILTER_PARAMS}
        try:
            devices = self.db.filter_devices(**filters)
        except DatabaseError as exc:
            log.error("Error filtering devices: %s", exc)
            devices = []
        if not devices:
            return _reply(404, "not found", "No devices match filters")
        return Response(200, [asdict(device) for device in devices])

    def add_device(self, request: Request) -> Response:
        params = request.params
        required = ("serial_number", "name", "type", "location_id")
        if not all(key in params for key in required):
            return _reply(
                400,
                "invalid",
                "Invalid request parameters: Must have at least serial_number, name, type, "
                "and location_id",
            )

        serial_number = params["serial_number"]
        if not is_alphanumeric(serial_number):
            return _reply(400, "invalid", "Invalid serial_number")
        if self.db.serial_number_exists(serial_number):
            return _reply(409, "conflict", "Serial Number already exists in devices table")

        try:
            location_id = _parse_int(params["location_id"])
        except ValueError:
            return _reply(400, "invalid", "Invalid location_id")
        if not self.db.location_exists(location_id):
            return _reply(404, "not found", "Location ID does not exist in locations table")

        if "creation_date" in params:
            creation_date = params["creation_date"]
            if not is_valid_date(creation_date):
                return _reply(400, "invalid", "Invalid creation_date")
        else:
            creation_date = today()

        device = Device(
            serial_number=serial_number,
            name=params["name"],
            type=params["type"],
            creation_date=creation_date,
            location_id=location_id,
        )
        try:
            self.db.add_device(device)
        except DatabaseError as exc:
            log.error("Error adding device: %s", exc)
            return _reply(500, "error", "Failed to create new device in DBHandler")
        summary = " | ".join(
            [device.serial_number, device.name, device.type, device.creation_date, str(location_id)]
        )
        return _reply(200, "success", f"New device created successfully: {summary}")

    def update_device(self, request: Request) -> Response:
        params = request.params
        if not any(key in params for key in ("name", "type", "creation_date", "location_id")):
            return _reply(
                400,
                "invalid",
                "Invalid request parameters: Only name &/or type &/or creation_date &/or "
                "location_id",
            )

        serial_number = request.groups[0]
        if not self.db.serial_number_exists(serial_number):
            return _reply(404, "not found", "Serial Number does not exist in devices table")

        creation_date = params.get("creation_date", "")
        if creation_date and not is_valid_date(creation_date):
            return _reply(400, "invalid", "Invalid creation_date")

        location_id = params.get("location_id", "")
        if location_id:
            try:
                parsed = _parse_int(location_id)
            except ValueError:
                return _reply(400, "invalid", "Invalid location_id")
            if not self.db.location_exists(parsed):
                return _reply(404, "not found", "Location ID does not exist in locations table")

        try:
            self.db.update_device(
                serial_number,
                params.get("name", ""),
                params.get("type", ""),
                creation_date,
                location_id,
            )
        except DatabaseError as exc:
            log.error("Error updating device: %s", exc)
            return _reply(500, "error", "Failed to update device in DBHandler")
        return _reply(200, "success", f"Successfully updated device: {serial_number}")

    def delete_device(self, request: Request) -> Response:
        serial_number = request.groups[0]
        if not self.db.serial_number_exists(serial_number):
            return _reply(404, "not found", "Serial Number does not exist in devices table")
        try:
            self.db.delete_device(serial_number)
        except DatabaseError as exc:
            log.error("Error deleting device: %s", exc)
            return _reply(500, "error", "Failed to delete device in DBHandler")
        return _reply(200, "success", f"Successfully deleted device: {serial_number}")