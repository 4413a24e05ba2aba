"""Prompt files in the queue: frontmatter, status and filename numbering."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum

_DELIMITER = "---"
_NUMBER_PREFIX = re.compile(r"^(\d{3})-")


class PromptStatus(str, Enum):
    """Lifecycle state of a prompt file."""

    QUEUED = "queued"
    EXECUTING = "executing"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Frontmatter:
    """Metadata stored in the YAML-style header of a prompt file."""

    status: str = ""
    container: str = ""
    started: str = ""
    completed: str = ""


@dataclass(frozen=True)
class Prompt:
    """A prompt file and its status."""

    path: str
    status: PromptStatus


@dataclass(frozen=True)
class Rename:
    """A file renamed during filename normalization."""

    old_path: str
    new_path: str


def _split_frontmatter(text: str) -> tuple[list[str] | None, str]:
    """Return the header lines (or None when absent) and the remaining body."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != _DELIMITER:
        return None, text
    for end, line in enumerate(lines[1:], start=1):
        if line.rstrip("\r\n") == _DELIMITER:
            header = [entry.rstrip("\r\n") for entry in lines[1:end]]
            return header, "".join(lines[end + 1 :])
    return None, text


def _parse_fields(header: list[str]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in header:
        if not line or line[0] in " \t#" or ":" not in line:
            continue
        key, _, value = line.partition(":")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        fields[key.strip()] = value
    return fields


def _markdown_files(directory: str) -> list[str]:
    with os.scandir(directory) as entries:
        names = sorted(
            entry.name
            for entry in entries
            if entry.name.endswith(".md") and not entry.is_dir()
        )
    return [os.path.join(directory, name) for name in names]


class PromptManager:
    """Reads and updates the prompt files of one queue directory."""

    def __init__(self, queue_dir: str) -> None:
        self.queue_dir = queue_dir

    def read_frontmatter(self, path: str) -> Frontmatter:
        """Parse the header of a prompt file; an absent header gives empty fields."""
        with open(path, encoding="utf-8") as handle:
            header, _ = _split_frontmatter(handle.read())
        fields = _parse_fields(header or [])
        return Frontmatter(
            status=fields.get("status", ""),
            container=fields.get("container", ""),
            started=fields.get("started", ""),
            completed=fields.get("completed", ""),
        )

    def set_status(self, path: str, status: PromptStatus | str) -> None:
        """Write the status field into the file's header, creating one if needed."""
        value = status.value if isinstance(status, PromptStatus) else str(status)
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
        header, body = _split_frontmatter(text)
        if header is None:
            header, body = [], text
        status_line = f"status: {value}"
        replaced = False
        updated = []
        for line in header:
            if not replaced and line.partition(":")[0].strip() == "status":
                updated.append(status_line)
                replaced = True
            else:
                updated.append(line)
        if not replaced:
            updated.append(status_line)
        content = "\n".join([_DELIMITER, *updated, _DELIMITER]) + "\n" + body
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(content)

    def title(self, path: str) -> str:
        """Return the first level-one heading of the prompt body."""
        with open(path, encoding="utf-8") as handle:
            _, body = _split_frontmatter(handle.read())
        for line in body.splitlines():
            if line.startswith("# "):
                return line[2:].strip()
        raise ValueError(f"no title found in {path}")

    def _statuses(self) -> list[tuple[str, str]]:
        result = []
        for path in _markdown_files(self.queue_dir):
            try:
                result.append((path, self.read_frontmatter(path).status))
            except (OSError, ValueError):
                continue
        return result

    def list_queued(self) -> list[Prompt]:
        """Prompts in the queue directory waiting to run, ordered by filename."""
        return [
            Prompt(path=path, status=PromptStatus.QUEUED)
            for path, status in self._statuses()
            if status in ("", PromptStatus.QUEUED.value)
        ]

    def has_executing(self) -> bool:
        """Whether any prompt in the queue directory is executing."""
        return any(
            status == PromptStatus.EXECUTING.value for _, status in self._statuses()
        )

    def normalize_filenames(self, directory: str) -> list[Rename]:
        """Give every markdown file lacking an NNN- prefix the next free number."""
        files = _markdown_files(directory)
        used = {
            int(match.group(1))
            for path in files
            if (match := _NUMBER_PREFIX.match(os.path.basename(path)))
        }
        next_number = max(used, default=0) + 1
        renames = []
        for path in files:
            name = os.path.basename(path)
            if _NUMBER_PREFIX.match(name):
                continue
            new_path = os.path.join(directory, f"{next_number:03d}-{name}")
            os.rename(path, new_path)
            renames.append(Rename(old_path=path, new_path=new_path))
            next_number += 1
        return renames