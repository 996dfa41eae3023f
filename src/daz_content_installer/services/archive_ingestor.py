"""Recursive ingestion of content archives.

A root archive is extracted into a private workspace.  Carrier archives
(only images, text and further archives) are not content themselves: each
nested archive is extracted beside itself and ingested in turn, linked to
the carrier through ``LoadedArchive.parent``.  Template archives without any
library folder are skipped; everything else is analysed as one unit.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from daz_content_installer.archive.handler import ArchiveCorruptError, ArchiveEntry, open_archive
from daz_content_installer.constants import (
    CARRIER_EXTENSIONS,
    CONTENT_FOLDER,
    NESTED_ARCHIVE_EXTENSIONS,
    STANDARD_ASSET_ROOTS,
)
from daz_content_installer.services.archive_analyzer import analyze_archive
from daz_content_installer.services.loaded_archive import LoadedArchive
from daz_content_installer.services.progress import ProgressCallback, noop_progress
from daz_content_installer.services.workspace import ExtractionWorkspace
from daz_content_installer.utils.paths import path_parts

logger = logging.getLogger(__name__)


def is_carrier_archive(entries: list[ArchiveEntry]) -> bool:
    """True when every file entry is an image, a text file or another archive."""
    files = [e for e in entries if not e.is_dir and e.path]
    return bool(files) and all(
        PurePosixPath(e.path).suffix.lower() in CARRIER_EXTENSIONS for e in files
    )


def is_template_archive(
    entries: list[ArchiveEntry],
    roots: frozenset[str] = STANDARD_ASSET_ROOTS,
) -> bool:
    """True when no folder in the archive is a library root or a Content folder."""
    markers = set(roots) | {CONTENT_FOLDER}
    for entry in entries:
        parts = path_parts(entry.path)
        folders = parts if entry.is_dir else parts[:-1]
        if any(folder.lower() in markers for folder in folders):
            return False
    return True


class ArchiveIngestor:
    """Turns one root archive into an ordered list of loaded archives.

    Units are produced depth-first: a carrier before the archives nested in
    it, nested archives in listing order.  Units without files (carriers,
    templates) are dropped from the result.
    """

    def __init__(
        self,
        *,
        roots: frozenset[str] = STANDARD_ASSET_ROOTS,
        temp_dir: Path | None = None,
        on_progress: ProgressCallback = noop_progress,
    ) -> None:
        self._roots = roots
        self._temp_dir = temp_dir
        self._on_progress = on_progress

    def ingest(self, archive_path: str | Path) -> list[LoadedArchive]:
        archive_path = Path(archive_path)
        if not archive_path.is_file():
            raise FileNotFoundError(f"Archive not found: {archive_path}")

        units: list[LoadedArchive] = []
        with ExtractionWorkspace(
            prefix=f"dci-load-{archive_path.stem[:32]}-", base_dir=self._temp_dir
        ) as workspace:
            self._ingest_level(
                archive_path,
                workspace.allocate(archive_path.stem),
                source_path=str(archive_path),
                name=archive_path.stem,
                parent=None,
                units=units,
            )

        loaded = [u for u in units if u.files]
        self._on_progress("ingest", f"Finished loading {archive_path.name}", 100)
        logger.info("Loaded %d archive(s) from %s", len(loaded), archive_path.name)
        return loaded

    def _ingest_level(
        self,
        archive_path: Path,
        extract_dir: Path,
        *,
        source_path: str,
        name: str,
        parent: LoadedArchive | None,
        units: list[LoadedArchive],
    ) -> None:
        nested: list[str] = []

        with open_archive(archive_path) as handler:
            if not handler.test_integrity():
                raise ArchiveCorruptError(
                    f"Archive could not be read or is corrupted: {archive_path.name}"
                )

            entries = handler.list_entries()
            extract_dir.mkdir(parents=True, exist_ok=True)
            handler.extract_all(extract_dir)
            self._on_progress("ingest", f"Extracted archive: {archive_path.name}", 0)

            unit = LoadedArchive(
                name=name,
                source_path=source_path,
                size=archive_path.stat().st_size,
                parent=parent,
            )
            units.append(unit)

            if is_carrier_archive(entries):
                nested = [
                    e.path
                    for e in entries
                    if not e.is_dir and PurePosixPath(e.path).suffix.lower() in NESTED_ARCHIVE_EXTENSIONS
                ]
                logger.debug("%s is a carrier of %d archive(s)", archive_path.name, len(nested))
            elif is_template_archive(entries, self._roots):
                logger.info("Skipping template archive %s", archive_path.name)
            else:
                analyze_archive(unit, handler, roots=self._roots, on_progress=self._on_progress)
                self._on_progress("ingest", f"Analyzed {archive_path.name}", 0)

        total = len(nested)
        for index, relative in enumerate(nested, start=1):
            child = PurePosixPath(relative)
            self._on_progress(
                "ingest", f"Reading sub-archive {index} of {total}...", int(index / total * 100)
            )
            self._ingest_level(
                extract_dir / relative,
                extract_dir / child.with_suffix(""),
                source_path=relative,
                name=f"{_label(unit)}/{child.name}",
                parent=unit,
                units=units,
            )


def _label(unit: LoadedArchive) -> str:
    if unit.parent is None:
        return Path(unit.source_path).name
    return unit.name


def ingest(
    archive_path: str | Path,
    *,
    roots: frozenset[str] = STANDARD_ASSET_ROOTS,
    temp_dir: Path | None = None,
    on_progress: ProgressCallback = noop_progress,
) -> list[LoadedArchive]:
    """Load every content archive contained in *archive_path*.

    Raises:
        FileNotFoundError: If the archive does not exist.
        ArchiveCorruptError: If the archive or one nested in it is corrupt.
        UnsupportedArchiveError: If the root archive is not a known container.
    """
    ingestor = ArchiveIngestor(roots=roots, temp_dir=temp_dir, on_progress=on_progress)
    return ingestor.ingest(archive_path)
