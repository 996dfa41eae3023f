import io
import zipfile
from pathlib import Path

import pytest

from daz_content_installer.archive.handler import (
    ArchiveCorruptError,
    ArchiveEntry,
    UnsupportedArchiveError,
)
from daz_content_installer.models.enums import ArchiveStatus, AssetCategory
from daz_content_installer.services.archive_ingestor import (
    ingest,
    is_carrier_archive,
    is_template_archive,
)


def _zip_bytes(files: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def _make_zip(path: Path, files: dict[str, bytes]) -> Path:
    path.write_bytes(_zip_bytes(files))
    return path


def _entries(*names: str) -> list[ArchiveEntry]:
    return [ArchiveEntry(filename=n, is_dir=n.endswith("/")) for n in names]


class TestCarrierDetection:
    def test_images_text_and_archives(self):
        assert is_carrier_archive(_entries("preview.JPG", "readme.txt", "Pack.zip", "x/Pack2.7z"))

    def test_content_file_breaks_carrier(self):
        assert not is_carrier_archive(_entries("preview.jpg", "props/table.duf"))

    def test_empty_archive_is_not_carrier(self):
        assert not is_carrier_archive(_entries("folder/"))


class TestTemplateDetection:
    def test_no_library_folder(self):
        assert is_template_archive(_entries("Templates/model.obj", "Templates/readme.pdf"))

    def test_library_root_anywhere(self):
        assert not is_template_archive(_entries("Pack/People/Genesis 9/x.duf"))

    def test_content_folder_counts(self):
        assert not is_template_archive(_entries("Content/hair/style.duf"))

    def test_only_folder_names_are_checked(self):
        assert is_template_archive(_entries("Misc/props"))

    def test_documentation_only_with_opt_in(self):
        entries = _entries("Documentation/manual.pdf")
        assert is_template_archive(entries)
        assert not is_template_archive(entries, frozenset({"documentation"}))


class TestIngest:
    def test_single_content_archive(self, tmp_path):
        path = _make_zip(tmp_path / "Hair01.zip", {"Content/hair/style.duf": b"{}"})

        loaded = ingest(path, temp_dir=tmp_path / "work")

        assert len(loaded) == 1
        unit = loaded[0]
        assert unit.name == "Hair01"
        assert unit.source_path == str(path)
        assert unit.parent is None
        assert unit.size == path.stat().st_size
        assert unit.status is ArchiveStatus.READY
        assert unit.category is AssetCategory.HAIR
        assert unit.base_directory is None

    def test_template_archive_is_skipped(self, tmp_path):
        path = _make_zip(
            tmp_path / "Templates.zip",
            {"Templates/model.obj": b"o", "Templates/guide.pdf": b"p"},
        )
        assert ingest(path, temp_dir=tmp_path / "work") == []

    def test_carrier_archive_yields_nested_units(self, tmp_path):
        inner1 = _zip_bytes({"Content/hair/style.duf": b"{}"})
        inner2 = _zip_bytes({"MyProps/props/table.duf": b"{}"})
        path = _make_zip(
            tmp_path / "Bundle.zip",
            {
                "preview.jpg": b"jpg",
                "readme.txt": b"read me",
                "Hair.zip": inner1,
                "extras/Props.zip": inner2,
            },
        )

        loaded = ingest(path, temp_dir=tmp_path / "work")

        assert [u.name for u in loaded] == ["Bundle.zip/Hair.zip", "Bundle.zip/Props.zip"]
        assert [u.source_path for u in loaded] == ["Hair.zip", "extras/Props.zip"]
        carrier = loaded[0].parent
        assert carrier is not None
        assert carrier is loaded[1].parent
        assert carrier.source_path == str(path)
        assert carrier.files == []
        assert loaded[1].base_directory == "MyProps"
        assert loaded[1].category is AssetCategory.PROPS

    def test_carrier_inside_carrier(self, tmp_path):
        leaf = _zip_bytes({"props/table.duf": b"{}"})
        middle = _zip_bytes({"Leaf.zip": leaf, "cover.png": b"png"})
        path = _make_zip(tmp_path / "Outer.zip", {"Middle.zip": middle})

        loaded = ingest(path, temp_dir=tmp_path / "work")

        assert len(loaded) == 1
        assert loaded[0].name == "Outer.zip/Middle.zip/Leaf.zip"
        assert loaded[0].parent is not None
        assert loaded[0].parent.parent is not None
        assert loaded[0].parent.parent.parent is None

    def test_missing_archive(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ingest(tmp_path / "nope.zip", temp_dir=tmp_path / "work")

    def test_unsupported_container(self, tmp_path):
        path = tmp_path / "pack.tar"
        path.write_bytes(b"tar")
        with pytest.raises(UnsupportedArchiveError):
            ingest(path, temp_dir=tmp_path / "work")

    def test_corrupt_root_archive(self, tmp_path):
        path = tmp_path / "broken.zip"
        path.write_bytes(b"definitely not a zip")
        with pytest.raises(ArchiveCorruptError):
            ingest(path, temp_dir=tmp_path / "work")

    def test_corrupt_nested_archive_propagates(self, tmp_path):
        path = _make_zip(tmp_path / "Bundle.zip", {"Broken.zip": b"garbage", "a.txt": b"x"})
        with pytest.raises(ArchiveCorruptError):
            ingest(path, temp_dir=tmp_path / "work")

    def test_workspace_removed_after_success(self, tmp_path):
        work = tmp_path / "work"
        path = _make_zip(tmp_path / "Hair01.zip", {"Content/hair/style.duf": b"{}"})

        ingest(path, temp_dir=work)

        assert list(work.iterdir()) == []

    def test_workspace_removed_after_failure(self, tmp_path):
        work = tmp_path / "work"
        path = _make_zip(tmp_path / "Bundle.zip", {"Broken.zip": b"garbage"})

        with pytest.raises(ArchiveCorruptError):
            ingest(path, temp_dir=work)

        assert list(work.iterdir()) == []

    def test_reports_progress(self, tmp_path):
        events: list[tuple[str, str, int]] = []
        path = _make_zip(tmp_path / "Hair01.zip", {"Content/hair/style.duf": b"{}"})

        ingest(path, temp_dir=tmp_path / "work", on_progress=lambda *e: events.append(e))

        assert events[-1] == ("ingest", "Finished loading Hair01.zip", 100)
