"""Removal of installed archives from a library.

Files still claimed by another installed archive (the retain set) are never
deleted.  After every deletion attempt, directories left empty are pruned
upward until the library root, which itself is always kept.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from daz_content_installer.models.install import InstalledArchive
from daz_content_installer.schemas.install import UninstallItemResult
from daz_content_installer.services.progress import ProgressCallback, noop_progress
from daz_content_installer.utils.paths import is_within, library_file_path

logger = logging.getLogger(__name__)


def shared_file_exceptions(
    archives: Iterable[InstalledArchive],
    retain_paths: Iterable[str],
) -> set[str]:
    """Lower-cased installed paths owned by *archives* that others still claim."""
    owned = {f.installed_path.lower() for a in archives for f in a.files if f.installed_path}
    return {p.lower() for p in retain_paths if p and p.lower() in owned}


def prune_empty_directories(start: Path, library_root: Path) -> int:
    """Remove *start* and its ancestors while they are empty.

    Stops at the library root (never removed), at the first non-empty
    directory, or at the first directory that cannot be removed.
    Returns the number of directories removed.
    """
    root = library_root.resolve()
    directory = start.resolve()
    removed = 0

    while directory != root and directory.is_relative_to(root):
        try:
            if any(directory.iterdir()):
                break
            directory.rmdir()
            removed += 1
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove directory %s: %s", directory, exc)
            break
        directory = directory.parent

    return removed


class LibraryUninstaller:
    def __init__(
        self,
        library_path: str | Path,
        *,
        on_progress: ProgressCallback = noop_progress,
    ) -> None:
        self.library_path = Path(library_path)
        self._on_progress = on_progress

    def uninstall(
        self,
        archives: Sequence[InstalledArchive],
        retain_paths: Iterable[str] = (),
    ) -> list[UninstallItemResult]:
        exceptions = shared_file_exceptions(archives, retain_paths)
        results: list[UninstallItemResult] = []
        total = len(archives)

        self._on_progress("uninstall", f"Reading {total} archives to uninstall...", 0)
        for index, archive in enumerate(archives, start=1):
            results.append(self._uninstall_one(archive, exceptions))
            self._on_progress(
                "uninstall", f"Uninstalled {archive.name}", int(index / total * 100)
            )

        self._on_progress("uninstall", f"Uninstalled {total} archives", 100)
        return results

    def _uninstall_one(self, archive: InstalledArchive, exceptions: set[str]) -> UninstallItemResult:
        result = UninstallItemResult(archive_id=archive.id, name=archive.name)

        for f in archive.files:
            if not f.installed_path:
                continue
            if f.installed_path.lower() in exceptions:
                result.files_retained += 1
                continue

            file_path = library_file_path(self.library_path, f.installed_path)
            if not is_within(self.library_path, file_path):
                logger.warning("Refusing to delete outside library: %s", f.installed_path)
                result.errors.append(f"{f.installed_path}: outside library")
                continue

            try:
                file_path.unlink()
                result.files_deleted += 1
            except FileNotFoundError:
                result.files_missing += 1
            except OSError as exc:
                logger.warning("Could not delete %s: %s", file_path, exc)
                result.errors.append(f"{f.installed_path}: {exc}")

            result.directories_removed += prune_empty_directories(
                file_path.parent, self.library_path
            )

        logger.info(
            "Uninstalled '%s' (%d deleted, %d retained, %d missing)",
            archive.name,
            result.files_deleted,
            result.files_retained,
            result.files_missing,
        )
        return result


def uninstall_archives(
    archives: Sequence[InstalledArchive],
    library_path: str | Path,
    retain_paths: Iterable[str] = (),
    *,
    on_progress: ProgressCallback = noop_progress,
) -> list[UninstallItemResult]:
    """Delete the files owned by *archives* except those in *retain_paths*."""
    return LibraryUninstaller(library_path, on_progress=on_progress).uninstall(
        archives, retain_paths
    )
