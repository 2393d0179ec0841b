"""Command Watcher: run file operations written into a watched control file.

Watches a single control file for modifications, parses the pending
command it holds and creates, deletes, renames or appends to files
accordingly.
"""

__version__ = "1.0.0"
__app_name__ = "Command Watcher"
