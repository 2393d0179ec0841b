"""
Foreground runner and command line for Command Watcher.

    python -m cmd_watcher start [CONFIG]          Watch the control file until Ctrl-C
    python -m cmd_watcher copy SRC DST [MODE]     Copy a file (MODE: sync, callback, future)
"""

import logging
import logging.handlers
import signal
import sys
import threading
from pathlib import Path

from cmd_watcher import __app_name__, __version__
from cmd_watcher.config import Config
from cmd_watcher.copier import copy_file_async, copy_file_callback, copy_file_sync
from cmd_watcher.operations import FileOperations
from cmd_watcher.watcher import WatchSession

logger = logging.getLogger(__name__)


def setup_logging(config: Config) -> None:
    """Configure rotating file log and stderr handler."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    try:
        config.log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            str(config.log_path),
            maxBytes=config.max_log_size_mb * 1024 * 1024,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
        fh.setLevel(level)
        fh.setFormatter(fmt)
        root_logger.addHandler(fh)
    except OSError as exc:
        print(f"Could not open log file {config.log_path}: {exc}", file=sys.stderr)

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(level)
    sh.setFormatter(fmt)
    root_logger.addHandler(sh)


def build_session(config: Config) -> WatchSession:
    """Create the watch session described by *config* (not started)."""
    operations = FileOperations(
        base_directory=config.base_directory,
        placeholder=config.placeholder_payload,
        truncate_on_add=config.truncate_on_add,
    )
    return WatchSession(
        config.control_file,
        operations,
        drain_timeout=config.drain_timeout,
    )


def run_foreground(config: Config) -> int:
    """Run the watch session until SIGINT/SIGTERM; return an exit status."""
    session = build_session(config)
    try:
        session.start()
    except OSError:
        return 1

    stop = threading.Event()

    def _handler(sig, frame):
        stop.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)

    print(f"{__app_name__} watching {session.control_file} (press Ctrl-C to stop)…")
    try:
        while not stop.wait(timeout=1):
            pass
    finally:
        session.stop()
    print(f"{__app_name__} stopped.")
    return 0


def _copy(args: list[str]) -> int:
    if len(args) < 2:
        _show_help()
        return 2
    source, destination = args[0], args[1]
    mode = args[2] if len(args) > 2 else "sync"

    try:
        if mode == "sync":
            copy_file_sync(source, destination)
        elif mode == "callback":
            done = threading.Event()
            errors: list[Exception] = []

            def _finished(error: Exception | None) -> None:
                if error is not None:
                    errors.append(error)
                done.set()

            copy_file_callback(source, destination, _finished)
            done.wait()
            if errors:
                raise errors[0]
        elif mode == "future":
            copy_file_async(source, destination).result()
        else:
            _show_help()
            return 2
    except OSError as exc:
        print(f"Copy failed: {exc}", file=sys.stderr)
        return 1
    print(f"Copied {source} -> {destination}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the command line."""
    args = list(sys.argv[1:] if argv is None else argv)
    cmd = args.pop(0) if args else "start"

    if cmd == "start":
        config = Config(Path(args[0]) if args else None)
        setup_logging(config)
        logger.info("%s %s starting.", __app_name__, __version__)
        return run_foreground(config)
    if cmd == "copy":
        logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        return _copy(args)

    _show_help()
    return 0 if cmd in ("-h", "--help", "help") else 2


def _show_help() -> None:
    print(f"{__app_name__} {__version__}")
    print()
    print("Usage:")
    print("  python -m cmd_watcher start [CONFIG]          Watch the control file (Ctrl-C to stop)")
    print("  python -m cmd_watcher copy SRC DST [MODE]     Copy a file; MODE is sync, callback or future")


if __name__ == "__main__":
    sys.exit(main())
