import zipfile
from pathlib import Path

import pytest


def _make_zip(path: Path, files: dict[str, bytes]) -> Path:
    """Create a zip archive at *path* containing the given files."""
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


@pytest.fixture
def library_id(client, library_dir) -> int:
    r = client.post("/api/v1/libraries/", json={"name": "Main", "path": str(library_dir)})
    assert r.status_code == 201
    return r.json()["id"]


def _ingest(client, path: Path) -> list[str]:
    r = client.post("/api/v1/archives/ingest", json={"paths": [str(path)]})
    return [a["token"] for a in r.json()["archives"]]


class TestInstall:
    def test_install_and_list(self, client, tmp_path, library_id, library_dir):
        tokens = _ingest(
            client, _make_zip(tmp_path / "Hair01.zip", {"Content/hair/style.duf": b"{}"})
        )

        r = client.post(f"/api/v1/libraries/{library_id}/install", json={"tokens": tokens})

        assert r.status_code == 200
        data = r.json()
        assert data["summary"] == "Installed 1 archives"
        assert data["items"][0]["status"] == "Installed"
        assert (library_dir / "hair" / "style.duf").is_file()
        assert client.get("/api/v1/archives/loaded").json() == []

        installed = client.get(f"/api/v1/libraries/{library_id}/installed").json()
        assert [a["name"] for a in installed] == ["Hair01"]
        assert installed[0]["file_count"] == 1
        assert installed[0]["size_display"] == "2 B"

    def test_duplicate_second_install(self, client, tmp_path, library_id):
        path = _make_zip(tmp_path / "Hair01.zip", {"Content/hair/style.duf": b"{}"})
        url = f"/api/v1/libraries/{library_id}/install"
        client.post(url, json={"tokens": _ingest(client, path)})

        r = client.post(url, json={"tokens": _ingest(client, path)})

        assert r.json()["summary"] == "Installed 0 archives"
        assert r.json()["items"][0]["status"] == "Duplicate"

    def test_unknown_token(self, client, library_id):
        r = client.post(f"/api/v1/libraries/{library_id}/install", json={"tokens": ["nope"]})
        assert r.status_code == 404

    def test_unknown_library(self, client):
        r = client.post("/api/v1/libraries/999/install", json={"tokens": []})
        assert r.status_code == 404

    def test_tree(self, client, tmp_path, library_id):
        path = _make_zip(
            tmp_path / "Pack.zip",
            {"props/chairs/a.duf": b"a", "props/b.duf": b"b", "data/x.dsf": b"x"},
        )
        client.post(
            f"/api/v1/libraries/{library_id}/install", json={"tokens": _ingest(client, path)}
        )
        [archive] = client.get(f"/api/v1/libraries/{library_id}/installed").json()

        r = client.get(f"/api/v1/libraries/{library_id}/installed/{archive['id']}/tree")

        assert r.status_code == 200
        tree = r.json()
        assert tree["name"] == "Pack"
        assert [c["name"] for c in tree["children"]] == ["data", "props"]
        assert [c["name"] for c in tree["children"][1]["children"]] == ["chairs", "b.duf"]

    def test_tree_unknown_archive(self, client, library_id):
        r = client.get(f"/api/v1/libraries/{library_id}/installed/42/tree")
        assert r.status_code == 404


class TestUninstall:
    def test_uninstall_removes_files_and_record(self, client, tmp_path, library_id, library_dir):
        path = _make_zip(tmp_path / "Hair01.zip", {"Content/hair/style.duf": b"{}"})
        client.post(
            f"/api/v1/libraries/{library_id}/install",
            json={"tokens": _ingest(client, path), "backup": False},
        )
        [archive] = client.get(f"/api/v1/libraries/{library_id}/installed").json()

        r = client.post(
            f"/api/v1/libraries/{library_id}/uninstall", json={"archive_ids": [archive["id"]]}
        )

        assert r.status_code == 200
        data = r.json()
        assert data["summary"] == "Uninstalled 1 archives"
        assert data["items"][0]["files_deleted"] == 1
        assert list(library_dir.iterdir()) == []
        assert client.get(f"/api/v1/libraries/{library_id}/installed").json() == []

    def test_uninstall_unknown_archive(self, client, library_id):
        r = client.post(f"/api/v1/libraries/{library_id}/uninstall", json={"archive_ids": [7]})
        assert r.status_code == 404
