"""Minimal request routing and JSON responses for the registry's HTTP handlers."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

log = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


@dataclass
class Request:
    """An incoming request: query parameters plus the groups captured from its path."""

    method: str = "GET"
    path: str = "/"
    params: Mapping[str, str] = field(default_factory=dict)
    groups: tuple[str, ...] = ()


@dataclass
class Response:
    """A handler's answer; ``payload`` is serialised as compact JSON."""

    status: int
    payload: Any = None
    content_type: str = JSON_CONTENT_TYPE

    def body(self):
        """Return the encoded response body; empty when there is no payload."""
        if self.payload is None:
            return b""
        text = json.dumps(
            self.payload, separators=(",", ":"), sort_keys=True, ensure_ascii=False
        )
        return text.encode("utf-8")


Handler = Callable[[Request], Response]


class Router:
    """Dispatches requests to handlers by method and a regular expression on the path."""

    def __init__(self):
        self._routes: list[tuple[str, re.Pattern[str], Handler]] = []

    def add(self, method, pattern, handler):
        """Register ``handler`` for ``method`` on paths fully matching ``pattern``."""
        self._routes.append((method.upper(), re.compile(pattern), handler))

    def dispatch(self, method, path, params=None):
        """Run the first matching handler; 404 when none matches, 500 if it fails."""
        method = method.upper()
        for route_method, regex, handler in self._routes:
            if route_method != method:
                continue
            match = regex.fullmatch(path)
            if match is None:
                continue
            request = Request(method, path, dict(params or {}), match.groups())
            try:
                return handler(request)
            except Exception:
                log.exception("handler for %s %s failed", method, path)
                return Response(500)
        return Response(404)