"""
File operations triggered by control-file commands.

Creates, deletes, renames and appends to files.  Each operation is
reported as an OperationResult which is logged, recorded in the running
statistics and handed to an optional completion callback.
Submitted operations run in background threads so the watch loop never
waits on the filesystem.
"""

import errno
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from cmd_watcher.grammar import (
    AppendToFile,
    Command,
    CreateFile,
    DeleteFile,
    RenameFile,
    describe,
)

logger = logging.getLogger(__name__)

_HISTORY_LIMIT = 1000


class Outcome(str, Enum):
    """How an operation ended."""

    SUCCESS = "success"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    IO_ERROR = "io_error"


def _outcome_for(exc: OSError) -> Outcome:
    if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
        return Outcome.NOT_FOUND
    if isinstance(exc, PermissionError):
        return Outcome.PERMISSION_DENIED
    if isinstance(exc, FileExistsError):
        return Outcome.ALREADY_EXISTS
    return Outcome.IO_ERROR


@dataclass
class OperationResult:
    """Record of a single applied command."""
    command: Command
    outcome: Outcome = Outcome.IO_ERROR
    error: str = ""
    started: float = 0.0
    finished: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @property
    def duration(self) -> float:
        if self.finished and self.started:
            return self.finished - self.started
        return 0.0


@dataclass
class OperationStats:
    """Aggregated operation statistics."""
    total_succeeded: int = 0
    total_failed: int = 0
    total_already_existed: int = 0
    history: list[OperationResult] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, result: OperationResult) -> None:
        with self._lock:
            self.history.append(result)
            if result.outcome is Outcome.SUCCESS:
                self.total_succeeded += 1
            elif result.outcome is Outcome.ALREADY_EXISTS:
                self.total_already_existed += 1
            else:
                self.total_failed += 1
            if len(self.history) > _HISTORY_LIMIT:
                self.history = self.history[-_HISTORY_LIMIT:]


class FileOperations:
    """
    Applies commands to the filesystem.

    Parameters
    ----------
    base_directory : Path, optional
        Relative command paths resolve against this directory
        (default: the process working directory).
    placeholder : str
        Text written into files made by ``create a file``.
    truncate_on_add : bool
        If True, ``add to the file`` replaces the file's contents instead
        of appending to them.
    on_complete : callable, optional
        Callback invoked after each operation with its OperationResult.
    """

    def __init__(
        self,
        base_directory: Path | None = None,
        placeholder: str = "test",
        truncate_on_add: bool = False,
        on_complete: Callable[[OperationResult], None] | None = None,
    ):
        self.base_directory = Path(base_directory) if base_directory else None
        self.placeholder = placeholder
        self.truncate_on_add = truncate_on_add
        self._on_complete = on_complete
        self.stats = OperationStats()
        self._threads: set[threading.Thread] = set()
        self._lock = threading.Lock()

    @property
    def active_operations(self) -> int:
        with self._lock:
            return len(self._threads)

    def resolve(self, path: str | Path) -> Path:
        """Return *path* resolved against the base directory."""
        p = Path(path)
        if self.base_directory is not None and not p.is_absolute():
            return self.base_directory / p
        return p

    # ---- handlers ----

    def create_file(self, path: str | Path) -> Outcome:
        """Create *path* with the placeholder payload unless it already exists."""
        target = self.resolve(path)
        try:
            with open(target, "rb"):
                pass
        except FileNotFoundError:
            pass
        else:
            logger.info("The file %s already exists", target)
            return Outcome.ALREADY_EXISTS

        # "x" so a file appearing since the check above is never truncated
        with open(target, "x", encoding="utf-8") as fh:
            logger.info("A new file was successfully created: %s", target)
            fh.write(self.placeholder)
        return Outcome.SUCCESS

    def delete_file(self, path: str | Path) -> Outcome:
        target = self.resolve(path)
        os.unlink(target)
        logger.info("Deleted %s", target)
        return Outcome.SUCCESS

    def rename_file(self, old_path: str | Path, new_path: str | Path) -> Outcome:
        """Rename *old_path* to *new_path*, replacing *new_path* if present."""
        source = self.resolve(old_path)
        dest = self.resolve(new_path)
        os.replace(source, dest)
        logger.info("Renamed %s -> %s", source, dest)
        return Outcome.SUCCESS

    def add_to_file(self, path: str | Path, content: str) -> Outcome:
        target = self.resolve(path)
        mode = "w" if self.truncate_on_add else "a"
        with open(target, mode, encoding="utf-8") as fh:
            fh.write(content)
        logger.info("Added %d chars to %s", len(content), target)
        return Outcome.SUCCESS

    # ---- dispatch ----

    def apply(self, command: Command) -> OperationResult:
        """Apply *command* synchronously and report how it went."""
        result = OperationResult(command=command, started=time.time())
        logger.info("Applying command: %s", describe(command))
        try:
            if isinstance(command, CreateFile):
                result.outcome = self.create_file(command.path)
            elif isinstance(command, DeleteFile):
                result.outcome = self.delete_file(command.path)
            elif isinstance(command, RenameFile):
                result.outcome = self.rename_file(command.old_path, command.new_path)
            elif isinstance(command, AppendToFile):
                result.outcome = self.add_to_file(command.path, command.content)
            else:
                raise TypeError(f"Unsupported command: {command!r}")
        except OSError as exc:
            result.outcome = _outcome_for(exc)
            result.error = str(exc)
            logger.error("Command failed (%s): %s: %s", result.outcome.value, describe(command), exc)
        except Exception as exc:
            result.error = str(exc)
            logger.exception("Unexpected error applying %s", describe(command))
        finally:
            result.finished = time.time()
            self.stats.record(result)

        if result.ok:
            logger.info("Command succeeded in %.3fs: %s", result.duration, describe(command))

        if self._on_complete:
            try:
                self._on_complete(result)
            except Exception:
                logger.exception("Error in on_complete callback")
        return result

    def submit(self, command: Command) -> threading.Thread:
        """Apply *command* in a background thread and return immediately."""
        thread = threading.Thread(
            target=self._run,
            args=(command,),
            daemon=True,
            name=f"Op-{type(command).__name__}",
        )
        with self._lock:
            self._threads.add(thread)
        thread.start()
        return thread

    def _run(self, command: Command) -> None:
        try:
            self.apply(command)
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for in-flight operations; return False if some are still running."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                pending = list(self._threads)
            if not pending:
                return True
            for thread in pending:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                thread.join(remaining)
            if deadline is not None and time.monotonic() >= deadline:
                with self._lock:
                    left = len(self._threads)
                if left:
                    logger.warning("%d operation(s) still running after drain timeout", left)
                return left == 0
