"""Temporary extraction directories with guaranteed, retried cleanup."""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
import time
from pathlib import Path
from types import TracebackType
from typing import Self

logger = logging.getLogger(__name__)

CLEANUP_ATTEMPTS = 10
CLEANUP_BACKOFF_SECONDS = 0.1

_UNSAFE_NAME_RE = re.compile(r"[^\w.\- ]+")


def remove_tree(
    path: Path,
    *,
    attempts: int = CLEANUP_ATTEMPTS,
    backoff: float = CLEANUP_BACKOFF_SECONDS,
) -> bool:
    """Delete *path* recursively, retrying transient failures.

    Antivirus scanners and search indexers briefly lock freshly extracted
    files on Windows, so a failed removal is retried with a growing delay.
    Returns ``False`` when the tree is still present after the last attempt.
    """
    for attempt in range(1, attempts + 1):
        try:
            shutil.rmtree(path)
            return True
        except FileNotFoundError:
            return True
        except OSError as exc:
            if attempt == attempts:
                logger.warning("Could not remove %s after %d attempts: %s", path, attempts, exc)
                return False
            logger.debug("Removing %s failed (attempt %d): %s", path, attempt, exc)
            time.sleep(backoff * attempt)
    return False


class ExtractionWorkspace:
    """Owns one temporary directory and everything allocated below it.

    Use as a context manager; the directory is removed on every exit path,
    including errors raised half-way through an extraction.
    """

    def __init__(self, prefix: str = "dci-", base_dir: Path | None = None) -> None:
        self._prefix = prefix
        self._base_dir = base_dir
        self._root: Path | None = None
        self._allocated = 0

    @property
    def root(self) -> Path:
        if self._root is None:
            raise RuntimeError("ExtractionWorkspace not entered as context manager")
        return self._root

    def __enter__(self) -> Self:
        if self._base_dir is not None:
            self._base_dir.mkdir(parents=True, exist_ok=True)
        self._root = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._base_dir))
        logger.debug("Created workspace %s", self._root)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    def allocate(self, name: str) -> Path:
        """Create and return a fresh subdirectory named after *name*."""
        self._allocated += 1
        safe = _UNSAFE_NAME_RE.sub("_", name).strip() or "archive"
        directory = self.root / f"{self._allocated:03d}-{safe}"
        directory.mkdir(parents=True)
        return directory

    def cleanup(self) -> None:
        if self._root is None:
            return
        remove_tree(self._root)
        self._root = None
