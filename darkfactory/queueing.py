"""Moving prompt files from the inbox into the queue, and its API endpoint."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

from .prompts import PromptManager, PromptStatus
from .web import Handler, HttpError, Request, Response, require_method

MAX_BODY_SIZE = 1024 * 1024


@dataclass(frozen=True)
class QueuedFile:
    """A file moved into the queue, with its name before and after numbering."""

    old: str
    new: str

    def to_dict(self) -> dict[str, Any]:
        return {"old": self.old, "new": self.new}


def move_to_queue(
    inbox_dir: str, queue_dir: str, prompt_manager: PromptManager, filename: str
) -> str:
    """Move a file into the queue, mark it queued and return its final name."""
    new_path = os.path.join(queue_dir, filename)
    os.rename(os.path.join(inbox_dir, filename), new_path)
    prompt_manager.set_status(new_path, PromptStatus.QUEUED)
    for rename in prompt_manager.normalize_filenames(queue_dir):
        if os.path.basename(rename.old_path) == filename:
            return os.path.basename(rename.new_path)
    return filename


def queue_single_file(
    inbox_dir: str, queue_dir: str, prompt_manager: PromptManager, filename: str
) -> QueuedFile:
    """Queue one inbox file; raises FileNotFoundError when it is not in the inbox."""
    os.stat(os.path.join(inbox_dir, filename))
    try:
        new_name = move_to_queue(inbox_dir, queue_dir, prompt_manager, filename)
    except OSError as exc:
        raise RuntimeError(f"move to queue: {exc}") from exc
    return QueuedFile(old=filename, new=new_name)


def queue_all_files(
    inbox_dir: str, queue_dir: str, prompt_manager: PromptManager
) -> list[QueuedFile]:
    """Queue every markdown file in the inbox, in filename order."""
    with os.scandir(inbox_dir) as entries:
        names = sorted(
            entry.name
            for entry in entries
            if entry.name.endswith(".md") and not entry.is_dir()
        )
    return [
        QueuedFile(old=name, new=move_to_queue(inbox_dir, queue_dir, prompt_manager, name))
        for name in names
    ]


def _base_name(path: str) -> str:
    trimmed = path.rstrip("/")
    if not trimmed:
        return "/" if path else "."
    return trimmed.rsplit("/", 1)[-1]


def _requested_file(body: bytes) -> str:
    if len(body) > MAX_BODY_SIZE:
        raise HttpError("invalid request body: request body too large", 400)
    try:
        text = body.decode("utf-8").lstrip()
        payload, _ = json.JSONDecoder().raw_decode(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise HttpError(f"invalid request body: {exc}", 400) from exc
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise HttpError("invalid request body: expected an object", 400)
    file = payload.get("file") or ""
    if not isinstance(file, str):
        raise HttpError("invalid request body: file must be a string", 400)
    return file


def _queue_response(queued: list[QueuedFile]) -> Response:
    return Response.json_response({"queued": [item.to_dict() for item in queued]})


def queue_action_handler(
    inbox_dir: str, queue_dir: str, prompt_manager: PromptManager
) -> Handler:
    """Handler queueing one inbox file, or all of them when the path ends in /all."""

    def handler(request: Request) -> Response:
        require_method(request, "POST")
        if request.path.endswith("/all"):
            return _queue_response(queue_all_files(inbox_dir, queue_dir, prompt_manager))

        requested = _requested_file(request.body)
        if not requested:
            raise HttpError("missing file parameter", 400)
        filename = _base_name(requested)
        if filename in (".", "..", "/"):
            raise HttpError("invalid filename", 400)
        try:
            queued = queue_single_file(inbox_dir, queue_dir, prompt_manager, filename)
        except FileNotFoundError as exc:
            raise HttpError(str(exc), 404) from exc
        return _queue_response([queued])

    return handler