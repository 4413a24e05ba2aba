"""Read-only API endpoints: status, queue, completed prompts and inbox."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Any

from .status import Checker
from .web import Handler, Request, Response, require_method

DEFAULT_LIMIT = 10
MAX_LIMIT = 1000

_INTEGER = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class InboxFile:
    """A markdown file waiting in the inbox."""

    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name}


def status_handler(checker: Checker) -> Handler:
    """Handler returning the daemon status."""

    def handler(request: Request) -> Response:
        require_method(request, "GET")
        return Response.json_response(checker.get_status().to_dict())

    return handler


def queue_handler(checker: Checker) -> Handler:
    """Handler listing the queued prompts."""

    def handler(request: Request) -> Response:
        require_method(request, "GET")
        return Response.json_response(
            [prompt.to_dict() for prompt in checker.get_queued_prompts()]
        )

    return handler


def _parse_limit(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        return DEFAULT_LIMIT
    value = int(text)
    if value <= 0:
        return DEFAULT_LIMIT
    return min(value, MAX_LIMIT)


def completed_handler(checker: Checker) -> Handler:
    """Handler listing recently completed prompts; ``limit`` defaults to 10."""

    def handler(request: Request) -> Response:
        require_method(request, "GET")
        limit = _parse_limit(request.query_param("limit"))
        return Response.json_response(
            [prompt.to_dict() for prompt in checker.get_completed_prompts(limit)]
        )

    return handler


def inbox_handler(inbox_dir: str) -> Handler:
    """Handler listing the markdown files in the inbox directory."""

    def handler(request: Request) -> Response:
        require_method(request, "GET")
        with os.scandir(inbox_dir) as entries:
            names = sorted(
                entry.name
                for entry in entries
                if entry.name.endswith(".md") and not entry.is_dir()
            )
        files = [InboxFile(name=name).to_dict() for name in names]
        return Response.json_response({"files": files})

    return handler