"""Entry point for Command Watcher.

Usage:
    python -m cmd_watcher                  Watch the configured control file
    python -m cmd_watcher start CONFIG     Watch using an explicit config file
    python -m cmd_watcher copy SRC DST     Copy a file
"""

import sys


def main() -> None:
    """Delegate to the service command line."""
    from cmd_watcher.service import main as service_main

    sys.exit(service_main())


if __name__ == "__main__":
    main()
