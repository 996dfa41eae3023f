import os
import tempfile
from collections.abc import Generator
from pathlib import Path

os.environ.setdefault("DCI_DATA_DIR", tempfile.mkdtemp(prefix="dci-test-data-"))
os.environ["DCI_AUTO_DETECT_LIBRARIES"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

import daz_content_installer.models  # noqa: E402, F401 - register all tables
from daz_content_installer.database import get_session  # noqa: E402
from daz_content_installer.main import app  # noqa: E402
from daz_content_installer.models.library import AssetLibrary  # noqa: E402
from daz_content_installer.services.loaded_archive import loaded_archives  # noqa: E402


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(eng)
    return eng


@pytest.fixture
def session(engine, monkeypatch):
    monkeypatch.setattr("daz_content_installer.database.engine", engine)
    with Session(engine) as sess:
        yield sess


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setattr("daz_content_installer.config.settings.temp_dir", tmp_path / "tmp")
    monkeypatch.setattr("daz_content_installer.config.settings.auto_detect_libraries", False)
    loaded_archives.clear()
    yield
    loaded_archives.clear()


@pytest.fixture
def client(engine, monkeypatch):
    monkeypatch.setattr("daz_content_installer.database.engine", engine)

    def _override_session() -> Generator[Session, None, None]:
        with Session(engine) as sess:
            yield sess

    app.dependency_overrides[get_session] = _override_session
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc
    app.dependency_overrides.clear()


@pytest.fixture
def library_dir(tmp_path) -> Path:
    path = tmp_path / "My Library"
    path.mkdir()
    return path


@pytest.fixture
def make_library(session, library_dir):
    def _make(path: Path | None = None, name: str = "My Library", is_default: bool = True):
        library = AssetLibrary(
            name=name,
            path=str(path or library_dir),
            is_default=is_default,
        )
        session.add(library)
        session.commit()
        session.refresh(library)
        return library

    return _make
