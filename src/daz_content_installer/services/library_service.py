"""Asset library registration and the single-default invariant."""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from sqlmodel import Session, select

from daz_content_installer.constants import DEFAULT_LIBRARY_CANDIDATES
from daz_content_installer.models.library import AssetLibrary

logger = logging.getLogger(__name__)


def _normalise_library_path(path: str | Path) -> str:
    return str(Path(path).expanduser().resolve())


def list_libraries(session: Session) -> list[AssetLibrary]:
    return list(session.exec(select(AssetLibrary).order_by(AssetLibrary.id)).all())  # type: ignore[arg-type]


def get_default_library(session: Session) -> AssetLibrary | None:
    return session.exec(select(AssetLibrary).where(AssetLibrary.is_default)).first()


def add_library(
    session: Session,
    name: str,
    path: str | Path,
    *,
    is_default: bool = False,
) -> AssetLibrary:
    """Register a library folder.

    The first library registered becomes the default.

    Raises:
        ValueError: If a library with the same path already exists.
    """
    normalised = _normalise_library_path(path)
    existing = session.exec(select(AssetLibrary).where(AssetLibrary.path == normalised)).first()
    if existing:
        raise ValueError(f"Library already registered: {normalised}")

    first = get_default_library(session) is None
    library = AssetLibrary(name=name.strip() or Path(normalised).name, path=normalised)
    session.add(library)
    session.flush()

    if is_default or first:
        _make_default(session, library)
    session.commit()
    session.refresh(library)
    logger.info("Added library '%s' at %s", library.name, library.path)
    return library


def set_default_library(session: Session, library: AssetLibrary) -> AssetLibrary:
    _make_default(session, library)
    session.commit()
    session.refresh(library)
    return library


def _make_default(session: Session, library: AssetLibrary) -> None:
    for other in session.exec(select(AssetLibrary).where(AssetLibrary.is_default)).all():
        if other.id != library.id:
            other.is_default = False
            session.add(other)
    library.is_default = True
    library.last_used_at = datetime.now(UTC)
    session.add(library)


def remove_library(session: Session, library: AssetLibrary) -> None:
    """Forget a library and its catalog; files on disk are left alone."""
    from daz_content_installer.models.install import InstalledArchive

    was_default = library.is_default
    for archive in session.exec(
        select(InstalledArchive).where(InstalledArchive.library_id == library.id)
    ).all():
        session.delete(archive)
    session.delete(library)
    session.flush()

    if was_default:
        successor = session.exec(select(AssetLibrary).order_by(AssetLibrary.id)).first()  # type: ignore[arg-type]
        if successor:
            _make_default(session, successor)
    session.commit()
    logger.info("Removed library '%s'", library.name)


def auto_detect_libraries(
    session: Session,
    candidates: Iterable[Path] | None = None,
) -> list[AssetLibrary]:
    """Register every existing standard library folder not yet known."""
    if candidates is None:
        candidates = DEFAULT_LIBRARY_CANDIDATES
    known = {lib.path for lib in list_libraries(session)}
    added: list[AssetLibrary] = []
    for candidate in candidates:
        if not candidate.is_dir():
            continue
        if _normalise_library_path(candidate) in known:
            continue
        library = add_library(session, candidate.name, candidate)
        known.add(library.path)
        added.append(library)
    if added:
        logger.info("Auto-detected %d libraries", len(added))
    return added
