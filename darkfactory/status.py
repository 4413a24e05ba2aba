"""Daemon status collection from the prompt directories."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from .prompts import PromptManager, PromptStatus


def _parse_timestamp(value: str) -> datetime | None:
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def _format_timestamp(moment: datetime) -> str:
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0) and text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def format_duration(seconds: float | timedelta) -> str:
    """Render a duration as e.g. 45s, 2m30s, 1h15m20s or 2h."""
    if isinstance(seconds, timedelta):
        seconds = seconds.total_seconds()
    total = max(0, int(seconds + 0.5))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        parts = [f"{hours}h"]
        if minutes:
            parts.append(f"{minutes}m")
        if secs:
            parts.append(f"{secs}s")
        return "".join(parts)
    if minutes:
        return f"{minutes}m{secs}s" if secs else f"{minutes}m"
    return f"{secs}s"


@dataclass
class Status:
    """Snapshot of the daemon and its queues."""

    daemon: str = "not running"
    daemon_pid: int = 0
    current_prompt: str = ""
    executing_since: str = ""
    container: str = ""
    container_running: bool = False
    queue_count: int = 0
    queued_prompts: list[str] = field(default_factory=list)
    completed_count: int = 0
    ideas_count: int = 0
    last_log_file: str = ""
    last_log_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        """JSON form; optional fields are left out when empty."""
        data: dict[str, Any] = {"daemon": self.daemon}
        if self.daemon_pid:
            data["daemon_pid"] = self.daemon_pid
        if self.current_prompt:
            data["current_prompt"] = self.current_prompt
        if self.executing_since:
            data["executing_since"] = self.executing_since
        if self.container:
            data["container"] = self.container
        if self.container_running:
            data["container_running"] = True
        data["queue_count"] = self.queue_count
        data["queued_prompts"] = list(self.queued_prompts)
        data["completed_count"] = self.completed_count
        data["ideas_count"] = self.ideas_count
        if self.last_log_file:
            data["last_log_file"] = self.last_log_file
        if self.last_log_size:
            data["last_log_size"] = self.last_log_size
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Status:
        return cls(
            daemon=data.get("daemon", ""),
            daemon_pid=data.get("daemon_pid", 0),
            current_prompt=data.get("current_prompt", ""),
            executing_since=data.get("executing_since", ""),
            container=data.get("container", ""),
            container_running=data.get("container_running", False),
            queue_count=data.get("queue_count", 0),
            queued_prompts=list(data.get("queued_prompts") or []),
            completed_count=data.get("completed_count", 0),
            ideas_count=data.get("ideas_count", 0),
            last_log_file=data.get("last_log_file", ""),
            last_log_size=data.get("last_log_size", 0),
        )


@dataclass(frozen=True)
class QueuedPrompt:
    """A queued prompt with its title and file size."""

    name: str
    title: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "title": self.title, "size": self.size}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueuedPrompt:
        return cls(
            name=data.get("name", ""),
            title=data.get("title", ""),
            size=data.get("size", 0),
        )


@dataclass(frozen=True)
class CompletedPrompt:
    """A completed prompt and when it finished."""

    name: str
    completed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "completed_at": _format_timestamp(self.completed_at)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompletedPrompt:
        moment = _parse_timestamp(data["completed_at"])
        if moment is None:
            raise ValueError(f"invalid completed_at: {data['completed_at']!r}")
        return cls(name=data["name"], completed_at=moment)


def _count_markdown_files(directory: str) -> int:
    try:
        with os.scandir(directory) as entries:
            return sum(
                1
                for entry in entries
                if entry.name.endswith(".md") and not entry.is_dir()
            )
    except FileNotFoundError:
        return 0


def _markdown_entries(directory: str) -> list[os.DirEntry]:
    with os.scandir(directory) as entries:
        found = [
            entry
            for entry in entries
            if entry.name.endswith(".md") and not entry.is_dir()
        ]
    return sorted(found, key=lambda entry: entry.name)


class Checker:
    """Collects daemon status from the queue, completed, ideas and log directories."""

    def __init__(
        self,
        queue_dir: str,
        completed_dir: str,
        ideas_dir: str,
        prompt_manager: PromptManager,
        log_dir: str = "prompts/log",
        server_port: int = 8080,
    ) -> None:
        self.queue_dir = queue_dir
        self.completed_dir = completed_dir
        self.ideas_dir = ideas_dir
        self.prompt_manager = prompt_manager
        self.log_dir = log_dir
        self.server_port = server_port

    def get_status(self) -> Status:
        """Build the current status; directory read failures propagate."""
        status = Status(daemon="not running")
        self._populate_executing_prompt(status)

        queued = self.prompt_manager.list_queued()
        status.queued_prompts = [os.path.basename(p.path) for p in queued]
        status.queue_count = len(queued)

        status.completed_count = _count_markdown_files(self.completed_dir)
        status.ideas_count = _count_markdown_files(self.ideas_dir)

        self._populate_log_info(status)
        return status

    def get_queued_prompts(self) -> list[QueuedPrompt]:
        """Queued prompts with titles and sizes."""
        result = []
        for queued in self.prompt_manager.list_queued():
            name = os.path.basename(queued.path)
            try:
                title = self.prompt_manager.title(queued.path)
            except (OSError, ValueError):
                title = name
            try:
                size = os.stat(queued.path).st_size
            except OSError:
                size = 0
            result.append(QueuedPrompt(name=name, title=title, size=size))
        return result

    def get_completed_prompts(self, limit: int) -> list[CompletedPrompt]:
        """Completed prompts, most recent first, at most ``limit`` when positive."""
        try:
            entries = _markdown_entries(self.completed_dir)
        except FileNotFoundError:
            return []
        prompts = []
        for entry in entries:
            moment = self._completion_time(entry)
            if moment is not None:
                prompts.append(CompletedPrompt(name=entry.name, completed_at=moment))
        prompts.sort(key=lambda p: p.completed_at, reverse=True)
        if limit > 0:
            prompts = prompts[:limit]
        return prompts

    def _completion_time(self, entry: os.DirEntry) -> datetime | None:
        path = os.path.join(self.completed_dir, entry.name)
        try:
            frontmatter = self.prompt_manager.read_frontmatter(path)
        except (OSError, ValueError):
            frontmatter = None
        if frontmatter is not None and frontmatter.completed:
            moment = _parse_timestamp(frontmatter.completed)
            if moment is not None:
                return moment
        try:
            mtime = entry.stat().st_mtime
        except OSError:
            return None
        return datetime.fromtimestamp(mtime, tz=timezone.utc)

    def _populate_executing_prompt(self, status: Status) -> None:
        if not self.prompt_manager.has_executing():
            return
        for entry in _markdown_entries(self.queue_dir):
            path = os.path.join(self.queue_dir, entry.name)
            try:
                frontmatter = self.prompt_manager.read_frontmatter(path)
            except (OSError, ValueError):
                continue
            if frontmatter.status != PromptStatus.EXECUTING.value:
                continue
            status.current_prompt = entry.name
            status.container = frontmatter.container
            started = _parse_timestamp(frontmatter.started) if frontmatter.started else None
            if started is not None:
                status.executing_since = format_duration(
                    datetime.now(timezone.utc) - started
                )
            # Container state is not probed; it is reported as not running.
            status.container_running = False
            return

    def _populate_log_info(self, status: Status) -> None:
        try:
            with os.scandir(self.log_dir) as entries:
                logs = sorted(
                    (
                        entry
                        for entry in entries
                        if entry.name.endswith(".log") and not entry.is_dir()
                    ),
                    key=lambda entry: entry.name,
                )
        except FileNotFoundError:
            return
        latest_name = ""
        latest_time = 0.0
        for entry in logs:
            try:
                mtime = entry.stat().st_mtime
            except OSError:
                continue
            if not latest_name or mtime > latest_time:
                latest_name, latest_time = entry.name, mtime
        if not latest_name:
            return
        log_path = os.path.join(self.log_dir, latest_name)
        status.last_log_file = log_path
        try:
            status.last_log_size = os.stat(log_path).st_size
        except OSError:
            pass