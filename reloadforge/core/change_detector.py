"""Polling change detection over a directory tree.

A scan walks the whole tree and reports whether any regular file has a
modification time strictly later than a watermark.  Nothing is cached
between scans: each call is a fresh, stateless walk.

Traversal problems (permission denied, broken symlinks, entries removed
mid-walk) never abort a scan.  Each one becomes a ``ScanError`` that is
logged, handed to the optional ``on_error`` callback, and otherwise
treated as "unchanged".  A change missed this way is picked up by the next
scan as long as the file's mtime is still after the watermark.
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

Since = datetime | float


class ScanError(RuntimeError):
    """A single entry could not be inspected during a scan."""

    def __init__(self, path: str | os.PathLike[str], cause: OSError) -> None:
        self.path = os.fspath(path)
        self.cause = cause
        super().__init__(f"cannot scan {self.path}: {cause.strerror or cause}")


def _to_timestamp(since: Since) -> float:
    """POSIX seconds for a watermark given as datetime or float."""
    if isinstance(since, datetime):
        return since.timestamp()
    return float(since)


def has_changed(
    root: str | os.PathLike[str],
    since: Since,
    *,
    on_error: Callable[[ScanError], None] | None = None,
) -> bool:
    """Return ``True`` if any regular file under *root* was modified after *since*.

    Directory modification times are ignored; only files count.  Symlinked
    directories are not descended into.  Returns on the first hit.
    """
    watermark = _to_timestamp(since)

    def _skip(exc: OSError, path: str | os.PathLike[str] | None = None) -> None:
        err = ScanError(path if path is not None else (exc.filename or root), exc)
        logger.debug("Skipping unreadable entry: %s", err)
        if on_error is not None:
            on_error(err)

    for dirpath, _dirnames, filenames in os.walk(root, onerror=_skip):
        for name in filenames:
            path = os.path.join(dirpath, name)
            try:
                st = os.stat(path)
            except OSError as exc:
                _skip(exc, path)
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
            if st.st_mtime > watermark:
                logger.debug("Changed: %s", path)
                return True
    return False


class ChangeDetector:
    """A change detector bound to one watch directory.

    Keeps the scan errors of the most recent call in ``last_errors`` so
    callers can surface them without the scan itself failing.
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root)
        self.last_errors: list[ScanError] = []

    def has_changed(self, since: Since) -> bool:
        errors: list[ScanError] = []
        changed = has_changed(self.root, since, on_error=errors.append)
        self.last_errors = errors
        return changed

    def __repr__(self) -> str:
        return f"<ChangeDetector root={str(self.root)!r}>"
