"""Persistence glue between the install engine and the installed-archive catalog."""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from sqlmodel import Session, select

from daz_content_installer.config import settings
from daz_content_installer.models.enums import ArchiveStatus
from daz_content_installer.models.install import InstalledArchive, InstalledAssetFile
from daz_content_installer.models.library import AssetLibrary
from daz_content_installer.schemas.install import (
    InstallBatchResult,
    InstallItemResult,
    UninstallBatchResult,
)
from daz_content_installer.services.library_installer import install_archives
from daz_content_installer.services.library_uninstaller import uninstall_archives
from daz_content_installer.services.loaded_archive import LoadedArchive
from daz_content_installer.services.progress import ProgressCallback, noop_progress

logger = logging.getLogger(__name__)


def list_installed(session: Session, library: AssetLibrary) -> list[InstalledArchive]:
    return list(
        session.exec(
            select(InstalledArchive)
            .where(InstalledArchive.library_id == library.id)
            .order_by(InstalledArchive.installed_at)  # type: ignore[arg-type]
        ).all()
    )


def retain_paths(session: Session, library: AssetLibrary, excluding: set[int]) -> set[str]:
    """Installed paths still claimed by archives outside *excluding*."""
    rows = session.exec(
        select(InstalledAssetFile.installed_path)
        .join(InstalledArchive)
        .where(InstalledArchive.library_id == library.id)
        .where(InstalledArchive.id.not_in(list(excluding)))  # type: ignore[union-attr]
    ).all()
    return {p for p in rows if p}


def install_into_library(
    session: Session,
    library: AssetLibrary,
    archives: Sequence[LoadedArchive],
    *,
    tokens: Sequence[str | None] | None = None,
    backup: bool | None = None,
    on_progress: ProgressCallback = noop_progress,
) -> InstallBatchResult:
    """Install *archives* into *library* and record the successful ones."""
    existing = [a for a in list_installed(session, library) if a.status == ArchiveStatus.INSTALLED]
    outcomes = install_archives(
        archives,
        library.path,
        existing=existing,
        backup_enabled=settings.backup_before_install if backup is None else backup,
        temp_dir=settings.temp_dir,
        on_progress=on_progress,
    )

    items: list[InstallItemResult] = []
    tokens = list(tokens) if tokens is not None else [None] * len(outcomes)
    for token, outcome in zip(tokens, outcomes, strict=True):
        installed = outcome.installed
        if installed is not None:
            installed.library_id = library.id  # type: ignore[assignment]
            session.add(installed)
            session.flush()
        items.append(
            InstallItemResult(
                token=token,
                name=outcome.archive.resolved_name,
                status=outcome.status,
                installed_archive_id=installed.id if installed else None,
                files_copied=outcome.files_copied,
                files_skipped=outcome.skipped,
                files_left_behind=outcome.left_behind,
                error=outcome.error,
            )
        )

    library.last_used_at = datetime.now(UTC)
    session.add(library)
    session.commit()

    count = sum(1 for item in items if item.status is ArchiveStatus.INSTALLED)
    summary = f"Installed {count} archives"
    logger.info("%s into '%s'", summary, library.name)
    return InstallBatchResult(
        summary=summary,
        items=items,
        failed=[i for i in items if i.status is ArchiveStatus.ERROR],
    )


def uninstall_from_library(
    session: Session,
    library: AssetLibrary,
    archive_ids: Sequence[int],
    *,
    on_progress: ProgressCallback = noop_progress,
) -> UninstallBatchResult:
    """Remove the given installed archives from disk and from the catalog.

    Records whose files could not all be deleted are kept so the removal
    can be retried.

    Raises:
        LookupError: If an id does not belong to an archive in *library*.
    """
    archives: list[InstalledArchive] = []
    for archive_id in dict.fromkeys(archive_ids):
        archive = session.get(InstalledArchive, archive_id)
        if archive is None or archive.library_id != library.id:
            raise LookupError(f"Installed archive {archive_id} not found")
        archives.append(archive)

    keep = retain_paths(session, library, {a.id for a in archives if a.id is not None})
    results = uninstall_archives(archives, Path(library.path), keep, on_progress=on_progress)

    removed = 0
    for archive, result in zip(archives, results, strict=True):
        if result.succeeded:
            session.delete(archive)
            removed += 1
        else:
            archive.status = ArchiveStatus.ERROR
            session.add(archive)

    library.last_used_at = datetime.now(UTC)
    session.add(library)
    session.commit()

    summary = f"Uninstalled {removed} archives"
    logger.info("%s from '%s'", summary, library.name)
    return UninstallBatchResult(
        summary=summary,
        items=results,
        failed=[r for r in results if not r.succeeded],
    )
