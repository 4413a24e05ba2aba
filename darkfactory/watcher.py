"""Watching the queue directory and normalizing prompt filenames on change."""

from __future__ import annotations

import errno
import logging
import os
import queue
import threading
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .prompts import PromptManager

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.1


class _EventForwarder(FileSystemEventHandler):
    def __init__(self, watcher: Watcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in (EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED):
            self._watcher._handle_event(os.fsdecode(event.src_path))
        elif event.event_type == EVENT_TYPE_MOVED:
            # A file appearing under a new name counts as a creation.
            self._watcher._handle_event(os.fsdecode(event.dest_path))


class Watcher:
    """Normalizes filenames in the queue directory whenever a markdown file changes.

    Events are debounced per file; after each normalization a signal is put
    on ``ready`` without blocking, and dropped when the queue is full.
    """

    def __init__(
        self,
        queue_dir: str,
        prompt_manager: PromptManager,
        ready: queue.Queue[Any],
        debounce: float = 0.5,
    ) -> None:
        self.queue_dir = queue_dir
        self.prompt_manager = prompt_manager
        self.ready = ready
        self.debounce = debounce
        self._lock = threading.Lock()
        self._timers: dict[str, threading.Timer] = {}

    def queue_path(self) -> str:
        """The queue directory as an absolute path."""
        if os.path.isabs(self.queue_dir):
            return self.queue_dir
        try:
            cwd = os.getcwd()
        except OSError:
            return self.queue_dir
        return os.path.join(cwd, self.queue_dir)

    def watch(self, stop: threading.Event) -> None:
        """Watch until ``stop`` is set; raises if the directory cannot be watched."""
        path = self.queue_path()
        if not os.path.isdir(path):
            raise FileNotFoundError(errno.ENOENT, "add watch path", path)

        observer = Observer()
        observer.schedule(_EventForwarder(self), path, recursive=False)
        observer.start()
        logger.info("dark-factory: watcher started on %s", path)
        try:
            while not stop.wait(_POLL_INTERVAL):
                if not observer.is_alive():
                    raise RuntimeError("watcher stopped unexpectedly")
            logger.info("dark-factory: watcher shutting down")
        finally:
            observer.stop()
            observer.join()
            self._cancel_timers()

    def _handle_event(self, path: str) -> None:
        if not path.endswith(".md"):
            return
        with self._lock:
            pending = self._timers.get(path)
            if pending is not None:
                pending.cancel()
            timer = threading.Timer(self.debounce, self._fire, args=(path, None))
            timer.daemon = True
            timer.args = (path, timer)
            self._timers[path] = timer
            timer.start()

    def _fire(self, path: str, timer: threading.Timer | None) -> None:
        with self._lock:
            if self._timers.get(path) is timer:
                del self._timers[path]
        self._normalize()

    def _cancel_timers(self) -> None:
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()

    def _normalize(self) -> None:
        try:
            renames = self.prompt_manager.normalize_filenames(self.queue_dir)
        except Exception as exc:  # noqa: BLE001 - logged, the watcher keeps running
            logger.warning("dark-factory: failed to normalize filenames: %s", exc)
            return
        for rename in renames:
            logger.info(
                "dark-factory: renamed %s -> %s",
                os.path.basename(rename.old_path),
                os.path.basename(rename.new_path),
            )
        try:
            self.ready.put_nowait(None)
        except queue.Full:
            pass