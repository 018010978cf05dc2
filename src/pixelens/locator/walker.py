"""Depth-first source tree traversal with directory pruning."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Iterable, Iterator
from pathlib import Path

from pixelens.core.config import normalize_extension

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative stop signal for walks, with an optional deadline.

    Checked between files only, so partial results always consist of
    whole files.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
            return True
        return False


def walk(
    root: Path,
    allowed_extensions: Iterable[str],
    excluded_dir_names: Iterable[str],
    cancel: CancellationToken | None = None,
) -> Iterator[Path]:
    """Lazily yield eligible files under *root*.

    Directories whose lower-cased name is excluded are never opened.
    Siblings are visited in sorted name order; a directory's entries are
    fully handled (recursing as directories are met) before moving on.
    """
    extensions = frozenset(normalize_extension(ext) for ext in allowed_extensions)
    excluded = frozenset(name.lower() for name in excluded_dir_names)
    yield from _walk_dir(Path(root), extensions, excluded, cancel)


def _walk_dir(
    directory: Path,
    extensions: frozenset[str],
    excluded: frozenset[str],
    cancel: CancellationToken | None,
) -> Iterator[Path]:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.warning("Skipping unreadable directory %s: %s", directory, e)
        return

    for entry in entries:
        if cancel is not None and cancel.cancelled:
            return
        try:
            if entry.is_dir(follow_symlinks=False):
                if entry.name.lower() in excluded:
                    continue
                yield from _walk_dir(Path(entry.path), extensions, excluded, cancel)
            elif entry.is_file():
                if os.path.splitext(entry.name)[1].lower() in extensions:
                    yield Path(entry.path)
        except OSError as e:
            logger.warning("Skipping %s: %s", entry.path, e)
