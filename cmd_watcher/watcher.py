"""Control-file watcher for Command Watcher.

Uses the watchdog library to observe the control file.  Change events
are pushed onto a queue; a single consumer thread reads the file on
every modification, parses the pending command and submits it to
FileOperations without waiting for it to finish.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from cmd_watcher.grammar import Command, describe, parse
from cmd_watcher.operations import FileOperations
from cmd_watcher.reader import ControlFileReader

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """Kinds of change notification; only MODIFIED triggers a command."""

    MODIFIED = "modified"
    CREATED = "created"
    DELETED = "deleted"
    MOVED = "moved"
    CLOSED = "closed"
    OTHER = "other"

    @classmethod
    def from_event_type(cls, event_type: str) -> "ChangeKind":
        try:
            return cls(event_type)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class ChangeEvent:
    kind: ChangeKind
    path: Path


class LoopState(str, Enum):
    IDLE = "idle"
    READING = "reading"
    DISPATCHING = "dispatching"
    STOPPED = "stopped"


@dataclass
class SessionStats:
    """Counters kept by the watch session."""

    events_seen: int = 0
    events_ignored: int = 0
    cycles: int = 0
    commands_dispatched: int = 0
    read_failures: int = 0


class ControlFileHandler(FileSystemEventHandler):
    """Watchdog handler that forwards events about the control file."""

    def __init__(self, control_path: Path, on_change: Callable[[ChangeEvent], None]):
        super().__init__()
        self._control_path = control_path
        self._on_change = on_change
        self._real_path = os.path.realpath(control_path)

    def _concerns_control_file(self, event: FileSystemEvent) -> bool:
        paths = [event.src_path, getattr(event, "dest_path", "")]
        for raw in paths:
            if not raw:
                continue
            if isinstance(raw, bytes):
                raw = os.fsdecode(raw)
            if os.path.abspath(raw) == str(self._control_path):
                return True
            if os.path.realpath(raw) == self._real_path:
                return True
        return False

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Queue a ChangeEvent for any event touching the control file."""
        if event.is_directory or not self._concerns_control_file(event):
            return
        self._on_change(
            ChangeEvent(kind=ChangeKind.from_event_type(event.event_type), path=self._control_path)
        )


class WatchSession:
    """Owns the control-file handle, the watchdog subscription and the event queue.

    Usage:
        session = WatchSession("command.txt", FileOperations())
        session.start()
        ...
        session.stop()
    """

    def __init__(
        self,
        control_file: str | Path,
        operations: FileOperations,
        drain_timeout: float = 10.0,
        observer_factory: Callable[[], Any] = Observer,
    ):
        self.control_file = Path(os.path.abspath(control_file))
        self._operations = operations
        self._drain_timeout = drain_timeout
        self._observer_factory = observer_factory
        self._reader = ControlFileReader(self.control_file)
        self._handler = ControlFileHandler(self.control_file, self.notify)
        self._events: queue.Queue[ChangeEvent | None] = queue.Queue()
        self._observer: Any | None = None
        self._consumer: threading.Thread | None = None
        self.state = LoopState.IDLE
        self.stats = SessionStats()

    # ---- lifecycle ----

    def start(self) -> None:
        """Open the control file and start watching it.

        Raises FileNotFoundError or PermissionError if the control file
        cannot be opened.
        """
        try:
            self._reader.open()
        except OSError as exc:
            logger.error("Cannot open control file %s: %s", self.control_file, exc)
            raise

        try:
            observer = self._observer_factory()
            observer.schedule(self._handler, str(self.control_file.parent), recursive=False)
            observer.start()
        except Exception as exc:
            logger.error("Cannot watch %s: %s", self.control_file.parent, exc)
            self._reader.close()
            raise
        self._observer = observer

        self.state = LoopState.IDLE
        self._consumer = threading.Thread(target=self._consume, daemon=True, name="WatchLoop")
        self._consumer.start()
        logger.info("Watching control file '%s'", self.control_file)

    def stop(self) -> None:
        """Stop watching, finish queued events, drain operations and close the handle."""
        if self._observer:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
        if self._consumer:
            # Sentinel goes behind anything already queued
            self._events.put(None)
            self._consumer.join()
            self._consumer = None
        self._operations.drain(self._drain_timeout)
        self._reader.close()
        self.state = LoopState.STOPPED
        logger.info(
            "Watcher stopped after %s cycles, %s commands dispatched.",
            self.stats.cycles,
            self.stats.commands_dispatched,
        )

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and self._consumer.is_alive()

    def __enter__(self) -> "WatchSession":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    # ---- event flow ----

    def notify(self, event: ChangeEvent) -> None:
        """Queue *event* for the consumer thread."""
        self._events.put(event)

    def _consume(self) -> None:
        while True:
            event = self._events.get()
            if event is None:
                break
            try:
                self.handle(event)
            except Exception:
                logger.exception("Error handling %s", event)
                self.state = LoopState.IDLE

    def handle(self, event: ChangeEvent) -> Command | None:
        """Run one read+dispatch cycle for a MODIFIED event; ignore the rest."""
        self.stats.events_seen += 1
        if event.kind is not ChangeKind.MODIFIED:
            self.stats.events_ignored += 1
            logger.debug("Ignoring %s event on %s", event.kind.value, event.path)
            return None

        logger.info("The control file was changed")
        self.state = LoopState.READING
        try:
            data = self._reader.read_all()
        except (OSError, ValueError) as exc:
            self.stats.read_failures += 1
            self.state = LoopState.IDLE
            logger.error("Failed to read control file %s: %s", self.control_file, exc)
            return None

        self.state = LoopState.DISPATCHING
        command = parse(data)
        self.stats.cycles += 1
        if command is not None:
            logger.info("Dispatching %s", describe(command))
            self._operations.submit(command)
            self.stats.commands_dispatched += 1
        self.state = LoopState.IDLE
        return command
