"""Configuration management for Command Watcher.

Stores and retrieves settings from a JSON config file in the
platform-appropriate application data directory, or from an explicit
path given on the command line.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_APP_DIR_NAME = "CommandWatcher"

DEFAULT_CONFIG: dict[str, Any] = {
    "control_file": "./command.txt",
    "base_directory": "",  # Empty = process working directory
    "placeholder_payload": "test",  # written into freshly created files
    "truncate_on_add": False,  # True = "add to the file" overwrites instead of appending
    "log_level": "INFO",
    # ---- log rotation ----
    "max_log_size_mb": 10,
    "log_backup_count": 3,
    # ---- shutdown ----
    "drain_timeout_seconds": 10,  # wait for in-flight operations on stop
}


def get_config_dir() -> Path:
    """
    Return the application config directory, created if needed.

    - Windows : ``%APPDATA%\\CommandWatcher``
    - macOS   : ``~/Library/Application Support/CommandWatcher``
    - Linux   : ``$XDG_CONFIG_HOME/CommandWatcher`` (default ``~/.config``)
    """
    if sys.platform == "win32":
        base = os.environ.get("APPDATA", str(Path.home()))
    elif sys.platform == "darwin":
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))

    config_dir = Path(base) / _APP_DIR_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Return the path to the default configuration file."""
    return get_config_dir() / "config.json"


class Config:
    """Configuration manager backed by a JSON file."""

    def __init__(self, path: Path | None = None):
        """Load config from *path*, falling back to the platform default."""
        self._path = path or get_config_path()
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        self.load()

    @property
    def path(self) -> Path:
        """Return the file this configuration is stored in."""
        return self._path

    # ---- persistence ----

    def load(self) -> None:
        """Load configuration from disk, applying defaults for missing keys."""
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as fh:
                    stored = json.load(fh)
                if not isinstance(stored, dict):
                    raise ValueError("configuration root must be an object")
                # Merge stored values over defaults so new keys get defaults
                self._data = {**DEFAULT_CONFIG, **stored}
                logger.info("Configuration loaded from %s", self._path)
            except (json.JSONDecodeError, ValueError, OSError) as exc:
                logger.warning("Could not read config (%s); using defaults.", exc)
                self._data = dict(DEFAULT_CONFIG)
        else:
            self._data = dict(DEFAULT_CONFIG)
            self.save()
            logger.info("Created default configuration at %s", self._path)

    def save(self) -> None:
        """Persist the current configuration to disk."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2)
            logger.info("Configuration saved.")
        except OSError as exc:
            logger.error("Failed to save configuration: %s", exc)

    # ---- control file ----

    @property
    def control_file(self) -> Path:
        """Return the path of the watched control file."""
        return Path(self._data.get("control_file") or DEFAULT_CONFIG["control_file"])

    @control_file.setter
    def control_file(self, value: str | Path) -> None:
        self._data["control_file"] = str(value)

    @property
    def base_directory(self) -> Path | None:
        """Directory relative command paths resolve against (None = cwd)."""
        value = self._data.get("base_directory", "")
        return Path(value) if value else None

    @base_directory.setter
    def base_directory(self, value: str | Path | None) -> None:
        self._data["base_directory"] = str(value) if value else ""

    # ---- operations ----

    @property
    def placeholder_payload(self) -> str:
        """Return the text written into files made by ``create a file``."""
        return str(self._data.get("placeholder_payload", "test"))

    @placeholder_payload.setter
    def placeholder_payload(self, value: str) -> None:
        self._data["placeholder_payload"] = value

    @property
    def truncate_on_add(self) -> bool:
        """Return whether ``add to the file`` truncates before writing."""
        return bool(self._data.get("truncate_on_add", False))

    @truncate_on_add.setter
    def truncate_on_add(self, value: bool) -> None:
        self._data["truncate_on_add"] = value

    @property
    def drain_timeout(self) -> float:
        """Return seconds to wait for in-flight operations on shutdown."""
        return float(self._data.get("drain_timeout_seconds", 10))

    @drain_timeout.setter
    def drain_timeout(self, value: float) -> None:
        """Set the drain timeout (minimum 0 s)."""
        self._data["drain_timeout_seconds"] = max(0.0, float(value))

    # ---- logging ----

    @property
    def log_level(self) -> str:
        """Return the current logging level name."""
        return self._data.get("log_level", "INFO")

    @log_level.setter
    def log_level(self, value: str) -> None:
        self._data["log_level"] = value

    @property
    def log_path(self) -> Path:
        """Return the path to the log file (beside the config file)."""
        return self._path.parent / "command_watcher.log"

    @property
    def max_log_size_mb(self) -> int:
        """Return the maximum log file size in MB before rotation."""
        return int(self._data.get("max_log_size_mb", 10))

    @max_log_size_mb.setter
    def max_log_size_mb(self, value: int) -> None:
        """Set the maximum log file size in MB (minimum 1)."""
        self._data["max_log_size_mb"] = max(1, int(value))

    @property
    def log_backup_count(self) -> int:
        """Return the number of rotated log backups to keep."""
        return int(self._data.get("log_backup_count", 3))

    @log_backup_count.setter
    def log_backup_count(self, value: int) -> None:
        """Set the number of rotated log backups to keep."""
        self._data["log_backup_count"] = max(0, int(value))
