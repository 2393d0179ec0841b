"""
Whole-file copy helper for Command Watcher.

Independent of the watch loop.  Offers the same copy three ways:
blocking, with a completion callback run from a background thread,
and returning a Future.  Optionally verifies the copy with SHA-256.
"""

import hashlib
import logging
import shutil
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

_HASH_CHUNK = 256 * 1024  # 256 KiB read chunks for hashing


class CopyVerificationError(OSError):
    """Raised when a copied file's checksum differs from its source."""


def _sha256(filepath: Path) -> str:
    """Return the hex SHA-256 digest of *filepath*."""
    h = hashlib.sha256()
    with open(filepath, "rb") as fh:
        while chunk := fh.read(_HASH_CHUNK):
            h.update(chunk)
    return h.hexdigest()


def copy_file_sync(source: str | Path, destination: str | Path, verify: bool = False) -> Path:
    """Copy *source* to *destination*, overwriting it; return the destination."""
    src = Path(source)
    dest = Path(destination)
    logger.info("Copying %s -> %s", src, dest)
    shutil.copyfile(src, dest)
    if verify:
        src_hash = _sha256(src)
        dst_hash = _sha256(dest)
        if src_hash != dst_hash:
            raise CopyVerificationError(
                f"SHA-256 mismatch after copying {src} "
                f"(src={src_hash[:12]}… dst={dst_hash[:12]}…)"
            )
        logger.info("Verified copy (SHA-256 match): %s", dest)
    return dest


def copy_file_callback(
    source: str | Path,
    destination: str | Path,
    callback: Callable[[Exception | None], None],
    verify: bool = False,
) -> threading.Thread:
    """Copy in a background thread, then call *callback* with the error or None."""

    def _do_copy() -> None:
        error: Exception | None = None
        try:
            copy_file_sync(source, destination, verify=verify)
        except OSError as exc:
            logger.error("Copy failed for %s: %s", source, exc)
            error = exc
        except Exception as exc:
            logger.exception("Unexpected error copying %s", source)
            error = exc
        try:
            callback(error)
        except Exception:
            logger.exception("Error in copy callback")

    thread = threading.Thread(
        target=_do_copy,
        daemon=True,
        name=f"Copy-{Path(source).name}",
    )
    thread.start()
    return thread


def copy_file_async(source: str | Path, destination: str | Path, verify: bool = False) -> "Future[Path]":
    """Start a background copy and return a Future resolving to the destination."""
    future: Future[Path] = Future()

    def _done(error: Exception | None) -> None:
        if error is None:
            future.set_result(Path(destination))
        else:
            future.set_exception(error)

    future.set_running_or_notify_cancel()
    copy_file_callback(source, destination, _done, verify=verify)
    return future
