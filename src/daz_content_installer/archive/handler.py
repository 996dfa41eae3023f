"""Abstract archive handler with implementations for ZIP, 7z, and RAR.

Provides a uniform interface for listing, verifying, extracting and reading
files from content archives regardless of container format.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
import zipfile
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import py7zr
from py7zr.exceptions import Bad7zFile

SUPPORTED_EXTENSIONS = {".zip", ".7z", ".rar"}


class ArchiveError(Exception):
    """Base class for archive collaborator failures."""


class ArchiveCorruptError(ArchiveError):
    """The archive failed to open or did not pass its integrity check."""


class UnsupportedArchiveError(ArchiveError, ValueError):
    """The file extension is not a supported archive container."""


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    filename: str
    is_dir: bool
    size: int = 0

    @property
    def path(self) -> str:
        """Entry name with forward slashes and no leading/trailing separators."""
        return self.filename.replace("\\", "/").strip("/")


class ArchiveHandler(ABC):
    """Base class for archive format handlers."""

    path: Path

    @abstractmethod
    def list_entries(self) -> list[ArchiveEntry]:
        """Return all entries in the archive."""

    @abstractmethod
    def read_file(self, entry: ArchiveEntry) -> bytes:
        """Read the contents of a single file entry."""

    @abstractmethod
    def test_integrity(self) -> bool:
        """Return ``True`` when every member passes the container's checks."""

    @abstractmethod
    def extract_all(self, destination: Path) -> None:
        """Extract every member into *destination*."""

    @abstractmethod
    def close(self) -> None:
        """Release resources."""

    def __enter__(self) -> ArchiveHandler:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()


class ZipHandler(ArchiveHandler):
    """Handler for .zip archives using stdlib zipfile."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        try:
            self._zf = zipfile.ZipFile(self.path, "r")
        except zipfile.BadZipFile as exc:
            raise ArchiveCorruptError(f"Not a readable zip archive: {self.path.name}") from exc

    def list_entries(self) -> list[ArchiveEntry]:
        entries: list[ArchiveEntry] = []
        for info in self._zf.infolist():
            entries.append(
                ArchiveEntry(
                    filename=info.filename,
                    is_dir=info.is_dir(),
                    size=info.file_size,
                )
            )
        return entries

    def read_file(self, entry: ArchiveEntry) -> bytes:
        return self._zf.read(entry.filename)

    def test_integrity(self) -> bool:
        try:
            return self._zf.testzip() is None
        except (zipfile.BadZipFile, zlib.error, EOFError, OSError):
            return False

    def extract_all(self, destination: Path) -> None:
        """Extract members under their normalised paths.

        Backslash-separated names are written as nested folders; empty,
        ``.``, ``..`` and drive components are dropped the way
        ``zipfile`` sanitizes them.
        """
        for info in self._zf.infolist():
            name = info.filename.replace("\\", "/")
            parts = [p for p in name.split("/") if p not in ("", ".", "..")]
            if parts and parts[0].endswith(":"):
                parts = parts[1:]
            if not parts:
                continue
            target = destination.joinpath(*parts)
            if name.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with self._zf.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)

    def close(self) -> None:
        self._zf.close()


class SevenZipHandler(ArchiveHandler):
    """Handler for .7z archives using py7zr.

    py7zr >= 1.0 removed the ``read()`` method.  All extraction now goes
    through ``extract(path, targets)`` which writes to disk, so we use a
    temporary directory for in-memory reads.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        try:
            self._archive = py7zr.SevenZipFile(self.path, mode="r")
        except Bad7zFile as exc:
            raise ArchiveCorruptError(f"Not a readable 7z archive: {self.path.name}") from exc

    def list_entries(self) -> list[ArchiveEntry]:
        entries: list[ArchiveEntry] = []
        for entry in self._archive.list():
            entries.append(
                ArchiveEntry(
                    filename=entry.filename,
                    is_dir=entry.is_directory,
                    size=entry.uncompressed if hasattr(entry, "uncompressed") else 0,
                )
            )
        return entries

    def _extract_to_bytes(self, targets: list[str]) -> dict[str, bytes]:
        """Extract *targets* to a temp dir and return their contents as bytes."""
        self._archive.reset()
        with tempfile.TemporaryDirectory() as tmpdir:
            tmpdir_path = Path(tmpdir).resolve()
            self._archive.extract(path=tmpdir, targets=targets)
            result: dict[str, bytes] = {}
            for name in targets:
                extracted = (tmpdir_path / name).resolve()
                if extracted.is_file() and tmpdir_path in extracted.parents:
                    result[name] = extracted.read_bytes()
        return result

    def read_file(self, entry: ArchiveEntry) -> bytes:
        return self._extract_to_bytes([entry.filename]).get(entry.filename, b"")

    def test_integrity(self) -> bool:
        self._archive.reset()
        try:
            return self._archive.testzip() is None
        except (Bad7zFile, EOFError, OSError, ValueError):
            return False

    def extract_all(self, destination: Path) -> None:
        self._archive.reset()
        self._archive.extractall(path=destination)

    def close(self) -> None:
        self._archive.close()


def _find_7zip() -> str | None:
    """Locate the 7-Zip CLI executable."""
    common = [
        r"C:\Program Files\7-Zip\7z.exe",
        r"C:\Program Files (x86)\7-Zip\7z.exe",
    ]
    for p in common:
        if Path(p).exists():
            return p
    return shutil.which("7z")


class RarHandler(ArchiveHandler):
    """Handler for .rar archives using 7-Zip CLI.

    RAR extraction requires 7-Zip to be installed on the system.
    """

    def __init__(self, path: str | Path) -> None:
        self._exe = _find_7zip()
        if not self._exe:
            raise FileNotFoundError(
                "RAR extraction requires 7-Zip. Install via: winget install 7zip.7zip"
            )
        self.path = Path(path)

    def _run(self, *args: str, timeout: int = 120) -> subprocess.CompletedProcess[bytes]:
        return subprocess.run(
            [self._exe, *args],  # type: ignore[list-item]
            capture_output=True,
            timeout=timeout,
        )

    def list_entries(self) -> list[ArchiveEntry]:
        result = self._run("l", "-slt", str(self.path), timeout=60)
        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace")
            raise ArchiveCorruptError(f"7z list failed (exit {result.returncode}): {stderr}")

        entries: list[ArchiveEntry] = []
        current_path = ""
        current_size = 0
        current_is_dir = False

        # The first "Path = " block describes the archive itself.
        in_listing = False
        for line in result.stdout.decode(errors="replace").splitlines():
            line = line.strip()
            if line.startswith("----------"):
                in_listing = True
                continue
            if not in_listing:
                continue
            if line.startswith("Path = "):
                if current_path:
                    entries.append(
                        ArchiveEntry(
                            filename=current_path,
                            is_dir=current_is_dir,
                            size=current_size,
                        )
                    )
                current_path = line[7:]
                current_size = 0
                current_is_dir = False
            elif line.startswith("Size = "):
                try:
                    current_size = int(line[7:])
                except ValueError:
                    current_size = 0
            elif line.startswith("Folder = +"):
                current_is_dir = True

        if current_path:
            entries.append(
                ArchiveEntry(
                    filename=current_path,
                    is_dir=current_is_dir,
                    size=current_size,
                )
            )

        return entries

    def read_file(self, entry: ArchiveEntry) -> bytes:
        result = self._run("e", "-so", str(self.path), entry.filename)
        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace")
            raise ArchiveError(f"7z extract failed (exit {result.returncode}): {stderr}")
        return result.stdout

    def test_integrity(self) -> bool:
        return self._run("t", str(self.path), timeout=600).returncode == 0

    def extract_all(self, destination: Path) -> None:
        result = self._run("x", "-y", f"-o{destination}", str(self.path), timeout=600)
        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace")
            raise ArchiveError(f"7z extract failed (exit {result.returncode}): {stderr}")

    def close(self) -> None:
        pass


def open_archive(path: str | Path) -> ArchiveHandler:
    """Open an archive file and return the appropriate handler.

    Raises:
        UnsupportedArchiveError: If the file extension is not supported.
        FileNotFoundError: For RAR files when 7-Zip is not installed.
        ArchiveCorruptError: If the container cannot be opened at all.
    """
    path = Path(path)
    ext = path.suffix.lower()

    if ext == ".zip":
        return ZipHandler(path)
    if ext == ".7z":
        return SevenZipHandler(path)
    if ext == ".rar":
        return RarHandler(path)

    raise UnsupportedArchiveError(f"Unsupported archive format: {ext}")
