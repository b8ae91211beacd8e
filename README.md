# devregistry

devregistry is a small HTTP service that keeps a register of devices and the locations they belong to. The data lives in a SQLite file, and every endpoint replies in JSON. It needs nothing beyond the Python standard library.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Running the server

```
devregistry
```

By default the server opens `registry.db` in the current directory and listens on `0.0.0.0:8080`. The options are:

| Option | Default | Meaning |
|--------|---------|---------|
| `--db PATH` | `registry.db` | Path of the SQLite database. |
| `--host ADDRESS` | `0.0.0.0` | Address to listen on. |
| `--port PORT` | `8080` | Port to listen on. |

On start it prints `Connected to database.`, then serves requests until interrupted with Ctrl-C. If the database cannot be opened it prints `Failed to connect to database` and exits with status 1. If the port cannot be bound, it also exits with status 1.

## Endpoints

Parameters are read from the query string. For requests with an `application/x-www-form-urlencoded` body, the body's fields are read as well. A query parameter wins over a body field of the same name. If a parameter is repeated, the first value is used.

### Devices

| Method | Path | Description |
|--------|------|-------------|
| GET | `/devices` | List every device together with its location's name and type. |
| GET | `/devices/filter` | List the devices that match the given filters. |
| POST | `/devices` | Create a device. |
| PATCH | `/devices/<serial_number>` | Change one or more of a device's fields. |
| DELETE | `/devices/<serial_number>` | Delete a device. |

Listing only returns devices whose location exists.

Filtering with `/devices/filter`:

- At least one of these parameters must be present: `serial_number`, `name`, `type`, `creation_date`, `location_id`, `start_date`, `end_date`, `location_name`, `location_type`.
- The following parameters narrow the result when they are non-empty:
  - `serial_number`, `type`, `location_id`, `location_name` and `location_type` must match exactly.
  - `start_date` and `end_date` bound `creation_date`, and both bounds are inclusive.
- `name` and `creation_date` are accepted but do not narrow the result.

Creating a device with POST:

- `serial_number`, `name`, `type` and `location_id` are required.
- `serial_number` must consist of ASCII letters and digits only, and must not already be in use.
- `location_id` must start with an integer and must refer to an existing location.
- `creation_date` is optional and has the form `YYYY-MM-DD`.
  - It must be a real calendar date no earlier than 1970-01-01.
  - If it is missing, today's local date is used.

Updating a device with PATCH:

- The accepted parameters are `name`, `type`, `creation_date` and `location_id`.
- At least one of them must be given.
- Empty values are left unchanged.
- A serial number cannot be changed. To change one, delete the device and create it again.

### Locations

| Method | Path | Description |
|--------|------|-------------|
| GET | `/locations` | List every location. |
| POST | `/locations` | Create a location from `name` and `type`. An integer `id` may also be given. Without one, the database assigns the id. |
| PATCH | `/locations/<id>` | Change a location's `name` or `type`, or both. |
| DELETE | `/locations/<id>` | Delete a location together with every device assigned to it. |

The `<id>` in a path must be made of digits only.

### Responses

Lists come back as JSON arrays of objects. Every other reply from an endpoint is an object with a `status` and a `message`, for example:

```json
{"message":"Successfully deleted device: ABC123","status":"success"}
```

The `status` value depends on the HTTP code:

| HTTP code | `status` |
|-----------|----------|
| 200 | `success` |
| 400 | `invalid` |
| 404 | `not found` |
| 409 | `conflict` |
| 500 | `error` |

Two cases give a status code with an empty body:

- A path or method that no endpoint serves gets `404`.
- A handler that fails unexpectedly gets `500`.

## Using it from Python

`devregistry.db.Database` wraps the SQLite file and can be used as a context manager. `Device` and `Location` are plain dataclasses. Failures raise `DatabaseError`.

```python
from devregistry.db import Database, Location
from devregistry.server import build_router, make_server

with Database("registry.db") as db:
    location_id = db.add_location(Location(name="Lab", type="office"))
    print(db.locations())

    server = make_server(build_router(db), "127.0.0.1", 8080)
    server.serve_forever()
```

You can also drive the endpoints without a network, through `Router.dispatch`:

```python
router = build_router(db)
response = router.dispatch("GET", "/locations", {})
print(response.status, response.body())
```

## What it does not do

- It does not create the database schema. The database file must already hold these tables:
  - a `locations` table with the columns `id`, `name` and `type`;
  - a `devices` table with the columns `serial_number`, `name`, `type`, `creation_date` and `location_id`.
- It has no authentication and no TLS.