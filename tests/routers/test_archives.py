import zipfile
from pathlib import Path


def _make_zip(path: Path, files: dict[str, bytes]) -> Path:
    """Create a zip archive at *path* containing the given files."""
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


class TestIngest:
    def test_ingest_registers_loaded_archive(self, client, tmp_path):
        path = _make_zip(tmp_path / "Hair01.zip", {"Content/hair/style.duf": b"{}"})

        r = client.post("/api/v1/archives/ingest", json={"paths": [str(path)]})

        assert r.status_code == 200
        data = r.json()
        assert data["failed"] == []
        [loaded] = data["archives"]
        assert loaded["name"] == "Hair01"
        assert loaded["status"] == "Ready"
        assert loaded["category"] == "Hair"
        assert loaded["tags"] == ["hair"]
        assert loaded["file_count"] == 1
        assert loaded["metadata"]["HasDUFFiles"] is True
        assert loaded["parent_name"] is None
        assert loaded["token"]

        listed = client.get("/api/v1/archives/loaded").json()
        assert [a["token"] for a in listed] == [loaded["token"]]

    def test_failures_are_reported_per_path(self, client, tmp_path):
        good = _make_zip(tmp_path / "Hair01.zip", {"Content/hair/style.duf": b"{}"})
        broken = tmp_path / "Broken.zip"
        broken.write_bytes(b"nope")

        r = client.post(
            "/api/v1/archives/ingest",
            json={"paths": [str(broken), str(tmp_path / "missing.zip"), str(good)]},
        )

        data = r.json()
        assert [f["path"] for f in data["failed"]] == [str(broken), str(tmp_path / "missing.zip")]
        assert [a["name"] for a in data["archives"]] == ["Hair01"]

    def test_nested_archives_report_parent(self, client, tmp_path):
        inner = tmp_path / "inner.zip"
        _make_zip(inner, {"props/table.duf": b"{}"})
        outer = _make_zip(tmp_path / "Bundle.zip", {"Table.zip": inner.read_bytes()})

        data = client.post("/api/v1/archives/ingest", json={"paths": [str(outer)]}).json()

        [loaded] = data["archives"]
        assert loaded["name"] == "Bundle.zip/Table.zip"
        assert loaded["parent_name"] == "Bundle"

    def test_remove_loaded(self, client, tmp_path):
        path = _make_zip(tmp_path / "Hair01.zip", {"Content/hair/style.duf": b"{}"})
        token = client.post("/api/v1/archives/ingest", json={"paths": [str(path)]}).json()[
            "archives"
        ][0]["token"]

        assert client.delete(f"/api/v1/archives/loaded/{token}").status_code == 204
        assert client.get("/api/v1/archives/loaded").json() == []
        assert client.delete(f"/api/v1/archives/loaded/{token}").status_code == 404
