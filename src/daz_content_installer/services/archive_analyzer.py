"""Content analysis of a single opened archive.

Walks the archive listing to record owned files, classify them, flag the
DAZ file types present, locate the content base directory and read the
small product metadata documents shipped with DAZ packages.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import Iterable
from pathlib import PurePosixPath
from typing import Any

import defusedxml.ElementTree as DefusedET
from defusedxml import DefusedXmlException

from daz_content_installer.archive.handler import ArchiveEntry, ArchiveError, ArchiveHandler
from daz_content_installer.constants import (
    BASE_DIRECTORY_MAX_DEPTH,
    CONTENT_FOLDER,
    DAZ_FILE_EXTENSIONS,
    MACOS_METADATA_FOLDER,
    METADATA_FILES,
    METADATA_SIZE_LIMIT,
    STANDARD_ASSET_ROOTS,
)
from daz_content_installer.models.enums import ArchiveStatus
from daz_content_installer.services.loaded_archive import AssetFileRecord, LoadedArchive
from daz_content_installer.services.path_classifier import (
    Classification,
    classify_path,
    resolve_category,
)
from daz_content_installer.services.progress import ProgressCallback, noop_progress
from daz_content_installer.utils.paths import path_parts

logger = logging.getLogger(__name__)

_JSON_FIELDS = ("ProductName", "Artist", "Version")


def analyze_archive(
    archive: LoadedArchive,
    handler: ArchiveHandler,
    *,
    roots: frozenset[str] = STANDARD_ASSET_ROOTS,
    metadata_size_limit: int = METADATA_SIZE_LIMIT,
    on_progress: ProgressCallback = noop_progress,
) -> LoadedArchive:
    """Populate *archive* from the contents of the opened *handler*.

    The archive ends in ``READY`` unless a metadata document failed to
    parse, in which case it is ``ERROR`` with the message under
    ``metadata["Error"]``.
    """
    entries = [e for e in handler.list_entries() if not e.is_dir]

    analyze_contents(archive, entries, on_progress=on_progress)
    archive.base_directory = detect_base_directory(
        (f.source_path for f in archive.files), roots=roots
    )

    on_progress("analyze", f"Extracting metadata of {archive.name}...", 0)
    extract_metadata(archive, handler, entries, size_limit=metadata_size_limit)
    improve_naming(archive)

    if archive.status is not ArchiveStatus.ERROR:
        archive.status = ArchiveStatus.READY
    logger.info(
        "Analyzed '%s': %d files, category %s, base directory %r",
        archive.name,
        archive.file_count,
        archive.category,
        archive.base_directory,
    )
    return archive


def analyze_contents(
    archive: LoadedArchive,
    entries: Iterable[ArchiveEntry],
    *,
    on_progress: ProgressCallback = noop_progress,
) -> None:
    """Record file entries, classify their paths and flag DAZ file types."""
    found = Classification()
    file_count = 0

    for entry in entries:
        path = entry.path
        if not path:
            continue
        archive.files.append(AssetFileRecord(source_path=path, size=entry.size))
        found.update(classify_path(path))

        extension = PurePosixPath(path).suffix.lower()
        if extension in DAZ_FILE_EXTENSIONS:
            archive.metadata[f"Has{extension.lstrip('.').upper()}Files"] = True

        file_count += 1
        if file_count % 100 == 0:
            on_progress("analyze", f"Analyzed {file_count} files...", 0)

    archive.tags |= found.keywords
    archive.category = resolve_category(found.categories, archive.category)

    previous = archive.metadata.get("FileCount", 0)
    archive.metadata["FileCount"] = (previous if isinstance(previous, int) else 0) + file_count


def detect_base_directory(
    paths: Iterable[str],
    *,
    roots: frozenset[str] = STANDARD_ASSET_ROOTS,
    max_depth: int = BASE_DIRECTORY_MAX_DEPTH,
) -> str | None:
    """Find the prefix that must be stripped so paths become library-relative.

    Descends one folder level at a time until a top-level folder is a
    standard library root or a ``Content`` folder.  Returns the original-case
    prefix, or ``None`` when the content already starts at the top level.

    >>> detect_base_directory(["props/chair.duf"]) is None
    True
    >>> detect_base_directory(["MyProduct/props/chair.duf"])
    'MyProduct'
    """
    stop_names = set(roots) | {CONTENT_FOLDER}
    levels = [parts for p in paths if (parts := path_parts(p))]
    levels = [parts for parts in levels if parts[0] != MACOS_METADATA_FOLDER]

    prefix: list[str] = []
    for _ in range(max_depth):
        folders: dict[str, str] = {}
        for parts in levels:
            if len(parts) > 1:
                folders.setdefault(parts[0].lower(), parts[0])
        if not folders or folders.keys() & stop_names:
            break

        chosen = _pick_descent(folders, levels, stop_names)
        prefix.append(folders[chosen])
        levels = [parts[1:] for parts in levels if len(parts) > 1 and parts[0].lower() == chosen]

    return "/".join(prefix) or None


def _pick_descent(
    folders: dict[str, str],
    levels: list[tuple[str, ...]],
    stop_names: set[str],
) -> str:
    """Prefer the folder whose subtree holds a library root; else the first by name."""
    ordered = sorted(folders)
    for folder in ordered:
        for parts in levels:
            if len(parts) > 1 and parts[0].lower() == folder:
                if any(segment.lower() in stop_names for segment in parts[1:-1]):
                    return folder
    return ordered[0]


def extract_metadata(
    archive: LoadedArchive,
    handler: ArchiveHandler,
    entries: list[ArchiveEntry],
    *,
    size_limit: int = METADATA_SIZE_LIMIT,
) -> None:
    """Read the well-known product documents and record what they describe."""
    for document in METADATA_FILES:
        entry = next(
            (e for e in entries if PurePosixPath(e.path).name.lower() == document.lower()),
            None,
        )
        if entry is None:
            continue
        if entry.size > size_limit:
            logger.debug("Skipping oversized %s (%d bytes) in %s", entry.path, entry.size, archive.name)
            continue

        try:
            content = handler.read_file(entry).decode("utf-8-sig", errors="replace")
        except (ArchiveError, OSError, RuntimeError) as exc:
            logger.warning("Could not read %s from %s: %s", entry.path, archive.name, exc)
            continue

        if document.endswith(".dsx"):
            _apply_supplement(archive, entry.path, content)
        else:
            _apply_json_manifest(archive, entry.path, content)

    product = archive.metadata.get("ProductName")
    if isinstance(product, str) and product:
        archive.name = product


def _apply_supplement(archive: LoadedArchive, path: str, content: str) -> None:
    try:
        root = DefusedET.fromstring(content)
        element = root.find("ProductName")
        if element is None or not element.get("VALUE"):
            raise ValueError("Supplement has no ProductName VALUE")
    except (DefusedET.ParseError, DefusedXmlException, ValueError) as exc:
        logger.warning("Failed to parse %s in %s: %s", path, archive.name, exc)
        archive.record_error(f"{path}: {exc}")
        return
    archive.metadata["ProductName"] = element.get("VALUE", "")


def _apply_json_manifest(archive: LoadedArchive, path: str, content: str) -> None:
    try:
        data = json.loads(content)
    except ValueError as exc:
        logger.warning("Failed to parse %s in %s: %s", path, archive.name, exc)
        archive.record_error(f"{path}: {exc}")
        return

    for key in _JSON_FIELDS:
        if key in archive.metadata:
            continue
        value = _find_json_value(data, key.lower())
        if value:
            archive.metadata[key] = value


def _find_json_value(data: Any, key: str) -> str | None:
    """Depth-first search for a non-empty string under *key* (case-insensitive)."""
    if isinstance(data, dict):
        for name, value in data.items():
            if isinstance(name, str) and name.lower() == key and isinstance(value, str | int | float):
                text = str(value).strip()
                if text:
                    return text
        for value in data.values():
            found = _find_json_value(value, key)
            if found:
                return found
    elif isinstance(data, list):
        for item in data:
            found = _find_json_value(item, key)
            if found:
                return found
    return None


def improve_naming(archive: LoadedArchive) -> None:
    """Record naming hints derived from the folder structure."""
    top_folders = Counter(
        parts[0]
        for f in archive.files
        if len(parts := path_parts(f.source_path)) > 1 and parts[0] != MACOS_METADATA_FOLDER
    )
    if top_folders:
        folder, _ = top_folders.most_common(1)[0]
        if (
            folder.lower() != CONTENT_FOLDER
            and len(folder) > 3
            and folder.lower() != archive.name.lower()
        ):
            archive.metadata["SuggestedName"] = folder

    for f in archive.files:
        if "product" not in f.source_path.lower():
            continue
        directory = str(PurePosixPath(f.source_path).parent)
        if directory and directory != ".":
            archive.metadata["ProductFolder"] = directory
            break
