"""SQLite storage for the device registry: devices and the locations they belong to."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from typing import Iterator

_DEVICE_SELECT = (
    "SELECT devices.serial_number, devices.name, devices.type, devices.creation_date, "
    "devices.location_id, locations.name, locations.type "
    "FROM devices INNER JOIN locations ON devices.location_id = locations.id"
)


class DatabaseError(Exception):
    """Raised when the registry database cannot carry out an operation."""


@dataclass
class Device:
    """A registered device, joined with the name and type of its location."""

    serial_number: str
    name: str
    type: str
    creation_date: str
    location_id: int
    location_name: str = ""
    location_type: str = ""


@dataclass
class Location:
    """A location; ``id`` is ``None`` when the database should assign one."""

    name: str
    type: str
    id: int | None = None


class Database:
    """Connection to the registry database holding ``devices`` and ``locations``."""

    def __init__(self, path):
        self.path = str(path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def open(self):
        """Open the connection, raising DatabaseError if that fails."""
        if self._conn is not None:
            return
        try:
            self._conn = sqlite3.connect(
                self.path, isolation_level=None, check_same_thread=False
            )
        except sqlite3.Error as exc:
            raise DatabaseError(f"cannot open database {self.path!r}: {exc}") from exc

    def close(self):
        """Close the connection if it is open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if self._conn is None:
            raise DatabaseError("database is not open")
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc

    def _query_devices(self, sql: str, params: tuple = ()) -> list[Device]:
        with self._lock:
            rows = self._execute(sql, params).fetchall()
        return [Device(*row) for row in rows]

    # Devices

    def devices(self):
        """Return every device whose location exists."""
        return self._query_devices(_DEVICE_SELECT)

    def filter_devices(
        self,
        *,
        serial_number="",
        name="",
        type="",
        creation_date="",
        location_id="",
        start_date="",
        end_date="",
        location_name="",
        location_type="",
    ):
        """Return devices matching the given filters; empty filters are ignored.

        ``name`` and ``creation_date`` are accepted but do not narrow the result;
        dates are filtered through ``start_date`` and ``end_date`` (inclusive).
        """
        conditions = [
            ("devices.serial_number = ?", serial_number),
            ("devices.type = ?", type),
            ("devices.creation_date >= ?", start_date),
            ("devices.creation_date <= ?", end_date),
            ("locations.name = ?", location_name),
            ("locations.type = ?", location_type),
            ("devices.location_id = ?", location_id),
        ]
        active = [(clause, value) for clause, value in conditions if value not in ("", None)]
        sql = _DEVICE_SELECT + " WHERE 1=1" + "".join(f" AND {c}" for c, _ in active)
        return self._query_devices(sql, tuple(value for _, value in active))

    def add_device(self, device):
        """Insert a device; its location fields beyond ``location_id`` are not stored."""
        with self._lock:
            self._execute(
                "INSERT INTO devices (serial_number, name, type, creation_date, location_id) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    device.serial_number,
                    device.name,
                    device.type,
                    device.creation_date,
                    int(device.location_id),
                ),
            )

    def update_device(self, serial_number, name="", type="", creation_date="", location_id=""):
        """Update the non-empty fields of the device with this serial number."""
        changes = [
            (column, value)
            for column, value in (
                ("name", name),
                ("type", type),
                ("creation_date", creation_date),
                ("location_id", location_id),
            )
            if value not in ("", None)
        ]
        if not changes:
            raise DatabaseError("no fields to update")
        assignments = ", ".join(f"{column} = ?" for column, _ in changes)
        params = tuple(str(value) for _, value in changes) + (serial_number,)
        with self._lock:
            self._execute(f"UPDATE devices SET {assignments} WHERE serial_number = ?", params)

    def delete_device(self, serial_number):
        """Delete the device with this serial number."""
        with self._lock:
            self._execute("DELETE FROM devices WHERE serial_number = ?", (serial_number,))

    # Locations

    def locations(self):
        """Return every location."""
        with self._lock:
            rows = self._execute("SELECT id, name, type FROM locations").fetchall()
        return [Location(id=row[0], name=row[1], type=row[2]) for row in rows]

    def add_location(self, location):
        """Insert a location and return its id."""
        if location.id is None:
            sql = "INSERT INTO locations (name, type) VALUES (?, ?)"
            params: tuple = (location.name, location.type)
        else:
            sql = "INSERT INTO locations (id, name, type) VALUES (?, ?, ?)"
            params = (int(location.id), location.name, location.type)
        with self._lock:
            cursor = self._execute(sql, params)
        return cursor.lastrowid if location.id is None else int(location.id)

    def update_location(self, location_id, name="", type=""):
        """Update the non-empty fields of the location with this id."""
        changes = [(c, v) for c, v in (("name", name), ("type", type)) if v not in ("", None)]
        if not changes:
            raise DatabaseError("no fields to update")
        assignments = ", ".join(f"{column} = ?" for column, _ in changes)
        params = tuple(value for _, value in changes) + (int(location_id),)
        with self._lock:
            self._execute(f"UPDATE locations SET {assignments} WHERE id = ?", params)

    def delete_location(self, location_id):
        """Delete a location together with every device placed there."""
        with self._lock:
            self._execute("DELETE FROM devices WHERE location_id = ?", (int(location_id),))
            self._execute("DELETE FROM locations WHERE id = ?", (int(location_id),))

    # Lookups

    def serial_number_exists(self, serial_number):
        """Tell whether a device with this serial number is stored."""
        with self._lock:
            (count,) = self._execute(
                "SELECT COUNT(*) FROM devices WHERE serial_number = ?", (serial_number,)
            ).fetchone()
        return count > 0

    def location_exists(self, location_id):
        """Tell whether a location with this id is stored."""
        with self._lock:
            (count,) = self._execute(
                "SELECT COUNT(*) FROM locations WHERE id = ?", (int(location_id),)
            ).fetchone()
        return count > 0

    def __iter__(self) -> Iterator[Device]:
        return iter(self.devices())