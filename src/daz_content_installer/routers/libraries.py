from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from daz_content_installer.database import get_session
from daz_content_installer.models.install import InstalledArchive
from daz_content_installer.models.library import AssetLibrary
from daz_content_installer.routers.deps import get_library_or_404
from daz_content_installer.schemas.library import LibraryCreate, LibraryOut
from daz_content_installer.services.library_service import (
    add_library,
    auto_detect_libraries,
    list_libraries,
    remove_library,
    set_default_library,
)

router = APIRouter(prefix="/libraries", tags=["libraries"])


def _to_out(library: AssetLibrary, session: Session) -> LibraryOut:
    count = session.exec(
        select(func.count()).select_from(InstalledArchive).where(
            InstalledArchive.library_id == library.id
        )
    ).one()
    return LibraryOut(
        id=library.id,  # type: ignore[arg-type]
        name=library.name,
        path=library.path,
        is_default=library.is_default,
        created_at=library.created_at,
        last_used_at=library.last_used_at,
        installed_count=count,
    )


@router.get("/", response_model=list[LibraryOut])
def list_all(session: Session = Depends(get_session)) -> list[LibraryOut]:
    return [_to_out(lib, session) for lib in list_libraries(session)]


@router.post("/", response_model=LibraryOut, status_code=201)
def create_library(data: LibraryCreate, session: Session = Depends(get_session)) -> LibraryOut:
    try:
        library = add_library(session, data.name, data.path, is_default=data.is_default)
    except ValueError as exc:
        raise HTTPException(409, str(exc)) from exc
    return _to_out(library, session)


@router.post("/detect", response_model=list[LibraryOut])
def detect_libraries(session: Session = Depends(get_session)) -> list[LibraryOut]:
    """Register the standard DAZ library folders found on this machine."""
    return [_to_out(lib, session) for lib in auto_detect_libraries(session)]


@router.get("/{library_id}", response_model=LibraryOut)
def get_library(library_id: int, session: Session = Depends(get_session)) -> LibraryOut:
    return _to_out(get_library_or_404(library_id, session), session)


@router.post("/{library_id}/default", response_model=LibraryOut)
def make_default(library_id: int, session: Session = Depends(get_session)) -> LibraryOut:
    library = set_default_library(session, get_library_or_404(library_id, session))
    return _to_out(library, session)


@router.delete("/{library_id}", status_code=204)
def delete_library(library_id: int, session: Session = Depends(get_session)) -> None:
    remove_library(session, get_library_or_404(library_id, session))
