"""Shared FastAPI dependencies used across routers."""

from fastapi import HTTPException
from sqlmodel import Session

from daz_content_installer.models.library import AssetLibrary


def get_library_or_404(library_id: int, session: Session) -> AssetLibrary:
    """Look up a library by id, raising 404 if not found."""
    library = session.get(AssetLibrary, library_id)
    if not library:
        raise HTTPException(404, f"Library {library_id} not found")
    return library
