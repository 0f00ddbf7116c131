"""Watches the credentials file so a token refreshed by Claude Code is picked up.

The watcher only raises a flag. Deciding when to reload is left to the core,
which polls the flag once per timer tick.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from .credentials import expand_path
from .errors import WatcherError

log = logging.getLogger(__name__)

_TRIGGER_EVENTS = frozenset({"created", "modified", "moved"})


class _CredentialsEventHandler(FileSystemEventHandler):
    """Filters directory events down to the one credentials file."""

    def __init__(self, target: Path, on_change: Callable[[], None]) -> None:
        super().__init__()
        self._target = os.path.normcase(str(target))
        self._on_change = on_change

    def _matches(self, path: object) -> bool:
        if not path:
            return False
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        return os.path.normcase(os.path.abspath(str(path))) == self._target

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _TRIGGER_EVENTS:
            return
        # Atomic rewrites show up as a move onto the target path
        if self._matches(event.src_path) or self._matches(getattr(event, "dest_path", "")):
            log.debug("Credentials file %s", event.event_type)
            self._on_change()


class CredentialsWatcher:
    """Sets a changed-since-last-check flag whenever the credentials file changes."""

    def __init__(self, observer_factory: Callable[[], BaseObserver] = Observer) -> None:
        self._observer_factory = observer_factory
        self._observer: BaseObserver | None = None
        self._path: Path | None = None
        self._flag_lock = threading.Lock()
        self._changed = False

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    @property
    def path(self) -> Path | None:
        return self._path

    def start(self, path: str | Path | None = None) -> None:
        """Watch ``path``, replacing any existing subscription."""
        self.stop()

        target = expand_path(path).absolute()
        directory = target.parent
        if not directory.is_dir():
            raise WatcherError(f"Cannot watch {target}: directory does not exist")

        handler = _CredentialsEventHandler(target, self._mark_changed)
        observer = self._observer_factory()
        try:
            observer.schedule(handler, str(directory), recursive=False)
            observer.start()
        except OSError as exc:
            raise WatcherError(f"Cannot watch {target}: {exc}") from exc

        self._observer = observer
        self._path = target
        log.info("Watching credentials file %s", target)

    def stop(self) -> None:
        """Remove the subscription. Safe to call when not watching."""
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        if observer.is_alive():
            observer.join(timeout=5)
        log.info("Stopped watching %s", self._path)
        self._path = None

    def changed(self) -> bool:
        """Return whether the file changed since the last call, clearing the flag."""
        with self._flag_lock:
            result = self._changed
            self._changed = False
        return result

    def _mark_changed(self) -> None:
        with self._flag_lock:
            self._changed = True
