"""HTTP server wiring the device and location handlers to the registry database."""

from __future__ import annotations

import argparse
import logging
import sys
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qsl, unquote, urlsplit

from .api import Router
from .db import Database, DatabaseError
from .devices import DeviceHandler
from .locations import LocationHandler

log = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _first_values(query: str) -> dict[str, str]:
    """Map each parameter name to the first value given for it."""
    values: dict[str, str] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        values.setdefault(key, value)
    return values


class _RegistryServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address, router: Router):
        self.router = router
        super().__init__(address, _RequestHandler)


class _RequestHandler(BaseHTTPRequestHandler):
    server: _RegistryServer

    def _handle(self):
        parts = urlsplit(self.path)
        params = _first_values(parts.query)
        length = int(self.headers.get("Content-Length") or 0)
        if length > 0:
            payload = self.rfile.read(length)
            if self.headers.get_content_type() == FORM_CONTENT_TYPE:
                for key, value in _first_values(payload.decode("utf-8", "replace")).items():
                    params.setdefault(key, value)

        response = self.server.router.dispatch(self.command, unquote(parts.path), params)
        body = response.body()
        self.send_response(response.status)
        self.send_header("Content-Type", response.content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    do_GET = do_POST = do_PATCH = do_DELETE = _handle

    def log_message(self, format, *args):
        log.info("%s - %s", self.address_string(), format % args)


def build_router(db):
    """Return a router serving the device and location endpoints backed by ``db``."""
    router = Router()
    DeviceHandler(db).register(router)
    LocationHandler(db).register(router)
    return router


def make_server(router, host, port):
    """Bind a threading HTTP server that dispatches every request through ``router``."""
    return _RegistryServer((host, port), router)


def main(argv=None):
    """Open the registry database and serve the HTTP API until interrupted."""
    parser = argparse.ArgumentParser(
        prog="devregistry", description="Serve the device registry over HTTP."
    )
    parser.add_argument("--db", default="registry.db", help="path of the SQLite database")
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--port", type=int, default=8080, help="port to listen on")
    args = parser.parse_args(argv)

    db = Database(args.db)
    try:
        db.open()
    except DatabaseError:
        print("Failed to connect to database")
        return 1
    print("Connected to database.")

    try:
        server = make_server(build_router(db), args.host, args.port)
    except OSError as exc:
        print(f"Failed to listen on {args.host}:{args.port}: {exc}", file=sys.stderr)
        db.close()
        return 1

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
        db.close()
    return 0