"""Minimal request/response types and error handling for the HTTP API."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, urlsplit

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class Request:
    """An incoming HTTP request: method, target (path plus query) and body."""

    method: str
    target: str = "/"
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return urlsplit(self.target).path

    def query_param(self, name: str) -> str:
        """First value of a query parameter, or an empty string when absent."""
        values = parse_qs(urlsplit(self.target).query, keep_blank_values=True).get(name)
        return values[0] if values else ""


@dataclass
class Response:
    """An outgoing HTTP response."""

    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.body.decode("utf-8"))

    @classmethod
    def json_response(cls, payload: Any, status: int = 200) -> Response:
        """Encode a payload as one line of JSON followed by a newline."""
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False) + "\n"
        return cls(
            status=status,
            headers={"Content-Type": JSON_CONTENT_TYPE},
            body=text.encode("utf-8"),
        )


class HttpError(Exception):
    """An error that maps onto a specific HTTP status code."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


Handler = Callable[[Request], Response]


def handle_errors(handler: Handler) -> Handler:
    """Turn exceptions raised by a handler into error responses."""

    def wrapped(request: Request) -> Response:
        try:
            return handler(request)
        except HttpError as exc:
            status, message = exc.status_code, str(exc)
        except Exception as exc:  # noqa: BLE001 - every failure becomes a 500
            logger.warning("request %s %s failed: %s", request.method, request.target, exc)
            status, message = 500, str(exc)
        return Response(
            status=status,
            headers={"Content-Type": "text/plain; charset=utf-8"},
            body=(message + "\n").encode("utf-8"),
        )

    return wrapped


def require_method(request: Request, method: str) -> None:
    """Raise a 405 error unless the request uses the given method."""
    if request.method.upper() != method.upper():
        raise HttpError("method not allowed", 405)


def health_handler() -> Handler:
    """Handler for the health endpoint."""

    def handler(request: Request) -> Response:
        require_method(request, "GET")
        return Response(
            status=200,
            headers={"Content-Type": JSON_CONTENT_TYPE},
            body=b'{"status":"ok"}',
        )

    return handler


class Server:
    """Runs a serve function supplied by the caller."""

    def __init__(self, run_func: Callable[[], Any]) -> None:
        self.run_func = run_func

    def listen_and_serve(self) -> Any:
        """Run the underlying serve function and return what it returns."""
        return self.run_func()