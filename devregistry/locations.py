"""HTTP handlers for the ``/locations`` endpoints."""

from __future__ import annotations

import logging
import re
from dataclasses import asdict

from .api import Request, Response, Router
from .db import Database, DatabaseError, Location

log = logging.getLogger(__name__)

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1


def _reply(status: int, state: str, message: str) -> Response:
    return Response(status, {"status": state, "message": message})


def _parse_id(text: str) -> int:
    """Read a leading integer as a 32-bit value, ignoring anything after it."""
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"not an integer: {text!r}")
    value = int(match.group(1))
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


class LocationHandler:
    """Serves listing, creation, update and deletion of locations."""

    def __init__(self, db: Database):
        self.db = db

    def register(self, router: Router):
        """Attach the location routes to ``router``."""
        router.add("GET", r"/locations", self.list_locations)
        router.add("POST", r"/locations", self.add_location)
        router.add("PATCH", r"/locations/(\d+)", self.update_location)
        router.add("DELETE", r"/locations/(\d+)", self.delete_location)

    def list_locations(self, request: Request) -> Response:
        try:
            locations = self.db.locations()
        except DatabaseError as exc:
            log.error("Error listing locations: %s", exc)
            locations = []
        if not locations:
            return _reply(404, "not found", "No locations found in locations table")
        return Response(200, [asdict(location) for location in locations])

    def add_location(self, request: Request) -> Response:
        params = request.params
        if not ("name" in params and "type" in params):
            return _reply(
                400,
                "invalid",
                "Invalid request parameters: Must have at least both name and type",
            )

        location = Location(name=params["name"], type=params["type"])
        if "id" in params:
            try:
                location.id = _parse_id(params["id"])
            except ValueError:
                return _reply(400, "invalid", "Invalid id")
            if self.db.location_exists(location.id):
                return _reply(409, "conflict", "Location ID already exists in locations table")

        try:
            self.db.add_location(location)
        except DatabaseError as exc:
            log.error("Error adding location: %s", exc)
            return _reply(500, "error", "Failed to create new location in DBHandler")
        return _reply(
            200,
            "success",
            f"New location created successfully: {location.name} | {location.type}",
        )

    def update_location(self, request: Request) -> Response:
        params = request.params
        if not ("name" in params or "type" in params):
            return _reply(400, "invalid", "Invalid request parameters: Only name &/or type")

        location_id = _parse_id(request.groups[0])
        if not self.db.location_exists(location_id):
            return _reply(404, "not found", "Location ID does not exist in locations table")

        try:
            self.db.update_location(location_id, params.get("name", ""), params.get("type", ""))
        except DatabaseError as exc:
            log.error("Error updating location: %s", exc)
            return _reply(500, "error", "Failed to update location in DBHandler")
        return _reply(200, "success", f"Successfully updated location: {location_id}")

    def delete_location(self, request: Request) -> Response:
        location_id = _parse_id(request.groups[0])
        if not self.db.location_exists(location_id):
            return _reply(404, "not found", "Location ID does not exist in locations table")

        try:
            self.db.delete_location(location_id)
        except DatabaseError as exc:
            log.error("Error deleting location: %s", exc)
            return _reply(
                500,
                "error",
                "Failed to delete location and devices with this location id in DBHandler",
            )
        return _reply(
            200,
            "success",
            f"Successfully deleted location and devices with location id: {location_id}",
        )