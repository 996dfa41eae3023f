"""Materialization of loaded archives into an asset library.

Handles duplicate detection across the whole batch, re-extraction of
archives through their parent chain, installed-path normalization, the
per-file copy into the library and the optional archive backup.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from types import TracebackType
from typing import Self

from daz_content_installer.archive.handler import ArchiveError, open_archive
from daz_content_installer.constants import BACKUP_FOLDER
from daz_content_installer.models.enums import ArchiveStatus
from daz_content_installer.models.install import InstalledArchive, InstalledAssetFile
from daz_content_installer.services.library_uninstaller import prune_empty_directories
from daz_content_installer.services.loaded_archive import LoadedArchive
from daz_content_installer.services.progress import ProgressCallback, noop_progress
from daz_content_installer.services.workspace import ExtractionWorkspace
from daz_content_installer.utils.paths import compute_installed_path, is_within, library_file_path

logger = logging.getLogger(__name__)


@dataclass
class InstallOutcome:
    archive: LoadedArchive
    status: ArchiveStatus
    installed: InstalledArchive | None = None
    error: str | None = None
    files_copied: int = 0
    skipped: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    left_behind: list[str] = field(default_factory=list)


def _duplicate_key(name: str, file_count: int) -> tuple[str, int]:
    return name.casefold(), file_count


def find_duplicates(
    archives: Sequence[LoadedArchive],
    existing: Iterable[InstalledArchive],
) -> set[LoadedArchive]:
    """Return the archives already installed or repeated earlier in the batch.

    Two archives are equivalent when their resolved names match
    (case-insensitively) and they own the same number of files.
    """
    seen = {_duplicate_key(a.name, a.file_count) for a in existing}
    duplicates: set[LoadedArchive] = set()
    for archive in archives:
        key = _duplicate_key(archive.resolved_name, archive.file_count)
        if key in seen:
            duplicates.add(archive)
        else:
            seen.add(key)
    return duplicates


class LibraryInstaller:
    """Installs loaded archives into one library.

    Extraction happens in a private workspace that lives as long as the
    installer context; a parent archive shared by several nested archives
    is extracted once per run.
    """

    def __init__(
        self,
        library_path: str | Path,
        *,
        backup_enabled: bool = True,
        temp_dir: Path | None = None,
        on_progress: ProgressCallback = noop_progress,
    ) -> None:
        self.library_path = Path(library_path)
        self.backup_enabled = backup_enabled
        self._on_progress = on_progress
        self._workspace = ExtractionWorkspace(prefix="dci-install-", base_dir=temp_dir)
        self._extracted: dict[LoadedArchive, Path] = {}

    def __enter__(self) -> Self:
        self._workspace.__enter__()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self._extracted.clear()
        self._workspace.__exit__(exc_type, exc_val, exc_tb)

    def install(
        self,
        archives: Sequence[LoadedArchive],
        existing: Iterable[InstalledArchive] = (),
    ) -> list[InstallOutcome]:
        """Install *archives*; returns one outcome per archive, in input order."""
        duplicates = find_duplicates(archives, existing)
        outcomes: dict[LoadedArchive, InstallOutcome] = {}

        for archive in archives:
            if archive in duplicates:
                archive.status = ArchiveStatus.DUPLICATE
                outcomes[archive] = InstallOutcome(archive, ArchiveStatus.DUPLICATE)
                logger.info("Skipping duplicate '%s'", archive.resolved_name)

        pending = [a for a in archives if a not in duplicates]
        share = 100 / len(pending) if pending else 100
        installed = 0

        for index, archive in enumerate(pending):
            offset = index * share
            archive.status = ArchiveStatus.INSTALLING
            outcome = InstallOutcome(archive, ArchiveStatus.INSTALLING)
            outcomes[archive] = outcome
            try:
                self._install_one(outcome, offset, share)
            except (ArchiveError, OSError) as exc:
                archive.record_error(str(exc))
                outcome.status = ArchiveStatus.ERROR
                outcome.error = str(exc)
                logger.warning("Failed to install '%s': %s", archive.name, exc)
                self._rollback(outcome)
                self._report(f"Failed to install {archive.name}", offset + share)
                continue

            archive.status = ArchiveStatus.INSTALLED
            outcome.status = ArchiveStatus.INSTALLED
            installed += 1

        self._report(f"Installed {installed} archives", 100)
        return [outcomes[a] for a in archives]

    def _report(self, message: str, percent: float) -> None:
        self._on_progress("install", message, min(100, int(percent)))

    def _rollback(self, outcome: InstallOutcome) -> None:
        """Delete the files a failed install created; pre-existing files stay."""
        for record in outcome.archive.files:
            record.installed_path = None
        for installed_path in reversed(outcome.created):
            target = library_file_path(self.library_path, installed_path)
            try:
                target.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not roll back %s: %s", target, exc)
                outcome.left_behind.append(installed_path)
                continue
            prune_empty_directories(target.parent, self.library_path)
        if outcome.created:
            logger.info(
                "Rolled back %d files of '%s'",
                len(outcome.created) - len(outcome.left_behind),
                outcome.archive.name,
            )

    def _install_one(self, outcome: InstallOutcome, offset: float, share: float) -> None:
        archive = outcome.archive
        extracted = self.extract(archive)
        self._report(f"Extracted {archive.name}...", offset + share / 3)

        files = self._copy_files(archive, extracted, outcome)
        self._report(f"Installed {archive.name}...", offset + 2 * share / 3)

        if self.backup_enabled:
            self._backup(archive)

        outcome.installed = InstalledArchive(
            name=archive.resolved_name,
            archive_size=archive.size,
            status=ArchiveStatus.INSTALLED,
            category=archive.category,
            base_directory=archive.base_directory,
            file_count=archive.file_count,
            files=files,
        )
        self._report(f"Finished {archive.name}", offset + share)
        logger.info(
            "Installed '%s' into %s (%d files, %d skipped)",
            archive.resolved_name,
            self.library_path,
            outcome.files_copied,
            len(outcome.skipped),
        )

    def extract(self, archive: LoadedArchive) -> Path:
        """Extract *archive* (and its parent chain first) and return the directory."""
        if archive in self._extracted:
            return self._extracted[archive]

        if archive.parent is None:
            archive_path = Path(archive.source_path)
            destination = self._workspace.allocate(archive_path.stem)
        else:
            parent_dir = self.extract(archive.parent)
            archive_path = parent_dir / archive.source_path
            destination = parent_dir / PurePosixPath(archive.source_path).with_suffix("")

        if not archive_path.is_file():
            raise FileNotFoundError(f"Archive not found: {archive_path}")

        with open_archive(archive_path) as handler:
            destination.mkdir(parents=True, exist_ok=True)
            handler.extract_all(destination)

        self._extracted[archive] = destination
        return destination

    def _copy_files(
        self,
        archive: LoadedArchive,
        extracted: Path,
        outcome: InstallOutcome,
    ) -> list[InstalledAssetFile]:
        self.library_path.mkdir(parents=True, exist_ok=True)
        files: list[InstalledAssetFile] = []

        for record in archive.files:
            installed_path = compute_installed_path(record.source_path, archive.base_directory)
            target = library_file_path(self.library_path, installed_path)
            if not installed_path or not is_within(self.library_path, target):
                logger.warning("Skipping path traversal entry: %s", record.source_path)
                outcome.skipped.append(record.source_path)
                continue

            source = extracted / record.source_path
            existed = target.exists()
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
            if not existed:
                outcome.created.append(installed_path)

            record.installed_path = installed_path
            outcome.files_copied += 1
            files.append(
                InstalledAssetFile(
                    source_path=record.source_path,
                    size=record.size,
                    installed_path=installed_path,
                )
            )
        return files

    def _backup(self, archive: LoadedArchive) -> Path:
        if archive.parent is None:
            original = Path(archive.source_path)
        else:
            original = self.extract(archive.parent) / archive.source_path

        backup_dir = self.library_path / BACKUP_FOLDER
        backup_dir.mkdir(parents=True, exist_ok=True)
        destination = backup_dir / original.name
        shutil.copyfile(original, destination)
        logger.debug("Backed up %s to %s", original.name, destination)
        return destination


def install_archives(
    archives: Sequence[LoadedArchive],
    library_path: str | Path,
    *,
    existing: Iterable[InstalledArchive] = (),
    backup_enabled: bool = True,
    temp_dir: Path | None = None,
    on_progress: ProgressCallback = noop_progress,
) -> list[InstallOutcome]:
    """Install a batch of loaded archives into *library_path*.

    Duplicates (against *existing* and within the batch) are resolved before
    anything is copied.  A failing archive is reported as ``ERROR`` and the
    rest of the batch continues.
    """
    with LibraryInstaller(
        library_path,
        backup_enabled=backup_enabled,
        temp_dir=temp_dir,
        on_progress=on_progress,
    ) as installer:
        return installer.install(archives, existing)
