"""Endpoints for installing queued archives into a library and removing them again."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from daz_content_installer.database import get_session
from daz_content_installer.models.enums import ArchiveStatus
from daz_content_installer.models.install import InstalledArchive
from daz_content_installer.routers.deps import get_library_or_404
from daz_content_installer.schemas.install import (
    FileTreeNode,
    InstallBatchResult,
    InstalledArchiveOut,
    InstallRequest,
    UninstallBatchResult,
    UninstallRequest,
)
from daz_content_installer.services.catalog import (
    install_into_library,
    list_installed,
    uninstall_from_library,
)
from daz_content_installer.services.installed_tree import build_file_tree
from daz_content_installer.services.loaded_archive import LoadedArchive, loaded_archives
from daz_content_installer.utils.formatting import format_file_size

router = APIRouter(prefix="/libraries/{library_id}", tags=["install"])


@router.post("/install", response_model=InstallBatchResult)
def install(
    library_id: int,
    data: InstallRequest,
    session: Session = Depends(get_session),
) -> InstallBatchResult:
    """Install queued archives (by token) into the library."""
    library = get_library_or_404(library_id, session)

    archives: list[LoadedArchive] = []
    for token in data.tokens:
        archive = loaded_archives.get(token)
        if archive is None:
            raise HTTPException(404, f"Loaded archive not found: {token}")
        archives.append(archive)

    result = install_into_library(
        session, library, archives, tokens=data.tokens, backup=data.backup
    )
    for item in result.items:
        if item.token and item.status is not ArchiveStatus.ERROR:
            loaded_archives.pop(item.token)
    return result


@router.get("/installed", response_model=list[InstalledArchiveOut])
def installed(library_id: int, session: Session = Depends(get_session)) -> list[InstalledArchiveOut]:
    library = get_library_or_404(library_id, session)
    return [
        InstalledArchiveOut(
            id=a.id,  # type: ignore[arg-type]
            name=a.name,
            category=a.category,
            status=a.status,
            archive_size=a.archive_size,
            total_size=a.total_size,
            size_display=format_file_size(a.total_size),
            file_count=len(a.files),
            base_directory=a.base_directory,
            installed_at=a.installed_at,
        )
        for a in list_installed(session, library)
    ]


@router.get("/installed/{archive_id}/tree", response_model=FileTreeNode)
def installed_tree(
    library_id: int,
    archive_id: int,
    session: Session = Depends(get_session),
) -> FileTreeNode:
    """Folder tree of the files an installed archive put into the library."""
    library = get_library_or_404(library_id, session)
    archive = session.get(InstalledArchive, archive_id)
    if not archive or archive.library_id != library.id:
        raise HTTPException(404, "Installed archive not found")
    return build_file_tree(archive.files, root_name=archive.name)


@router.post("/uninstall", response_model=UninstallBatchResult)
def uninstall(
    library_id: int,
    data: UninstallRequest,
    session: Session = Depends(get_session),
) -> UninstallBatchResult:
    library = get_library_or_404(library_id, session)
    try:
        return uninstall_from_library(session, library, data.archive_ids)
    except LookupError as exc:
        raise HTTPException(404, str(exc)) from exc
