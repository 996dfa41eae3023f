"""Endpoints for loading archives into the install queue."""

import logging

from fastapi import APIRouter, HTTPException

from daz_content_installer.archive import ArchiveError
from daz_content_installer.config import settings
from daz_content_installer.constants import standard_roots
from daz_content_installer.schemas.install import (
    IngestFailure,
    IngestRequest,
    IngestResult,
    LoadedArchiveOut,
)
from daz_content_installer.services.archive_ingestor import ingest
from daz_content_installer.services.loaded_archive import LoadedArchive, loaded_archives
from daz_content_installer.utils.formatting import format_file_size

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/archives", tags=["archives"])


def loaded_archive_out(token: str, archive: LoadedArchive) -> LoadedArchiveOut:
    return LoadedArchiveOut(
        token=token,
        name=archive.name,
        source_path=archive.source_path,
        parent_name=archive.parent.name if archive.parent else None,
        size=archive.size,
        size_display=format_file_size(archive.size),
        status=archive.status,
        category=archive.category,
        tags=sorted(archive.tags),
        file_count=archive.file_count,
        base_directory=archive.base_directory,
        metadata=archive.metadata,
    )


@router.post("/ingest", response_model=IngestResult)
def ingest_archives(data: IngestRequest) -> IngestResult:
    """Load and analyse archives; the results wait in the queue for installation."""
    roots = standard_roots(include_documentation=settings.include_documentation_root)
    result = IngestResult(archives=[])

    for path in data.paths:
        try:
            units = ingest(path, roots=roots, temp_dir=settings.temp_dir)
        except (ArchiveError, FileNotFoundError) as exc:
            logger.warning("Could not load %s: %s", path, exc)
            result.failed.append(IngestFailure(path=path, error=str(exc)))
            continue
        for unit in units:
            token = loaded_archives.register(unit)
            result.archives.append(loaded_archive_out(token, unit))

    return result


@router.get("/loaded", response_model=list[LoadedArchiveOut])
def list_loaded() -> list[LoadedArchiveOut]:
    return [loaded_archive_out(token, a) for token, a in loaded_archives.items()]


@router.delete("/loaded/{token}", status_code=204)
def remove_loaded(token: str) -> None:
    if loaded_archives.pop(token) is None:
        raise HTTPException(404, "Loaded archive not found")
