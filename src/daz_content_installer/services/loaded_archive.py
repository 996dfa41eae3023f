"""In-memory representation of archives between ingestion and installation."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from daz_content_installer.models.enums import ArchiveStatus, AssetCategory

MetadataValue = str | int | float | bool


@dataclass(slots=True)
class AssetFileRecord:
    source_path: str
    size: int = 0
    installed_path: str | None = None


@dataclass(eq=False)
class LoadedArchive:
    """One classified content archive, ready for installation.

    ``source_path`` is absolute for a root archive.  For an archive found
    inside a carrier archive it is relative to the parent's extraction
    directory, so the installer can locate the bytes again by extracting
    the parent chain.  Instances compare and hash by identity, and the
    ``parent`` link is fixed at construction.
    """

    name: str
    source_path: str
    size: int = 0
    status: ArchiveStatus = ArchiveStatus.LOADING
    category: AssetCategory = AssetCategory.UNKNOWN
    tags: set[str] = field(default_factory=set)
    files: list[AssetFileRecord] = field(default_factory=list)
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    parent: LoadedArchive | None = None
    base_directory: str | None = None

    def __setattr__(self, name: str, value: object) -> None:
        if name == "parent" and "parent" in self.__dict__:
            raise AttributeError("LoadedArchive.parent is read-only")
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        if name == "parent":
            raise AttributeError("LoadedArchive.parent is read-only")
        super().__delattr__(name)

    @property
    def resolved_name(self) -> str:
        """Product name from metadata when known, else the display name."""
        product = self.metadata.get("ProductName")
        if isinstance(product, str) and product:
            return product
        return self.name

    @property
    def file_count(self) -> int:
        return len(self.files)

    def record_error(self, message: str) -> None:
        self.status = ArchiveStatus.ERROR
        previous = self.metadata.get("Error")
        self.metadata["Error"] = f"{previous}; {message}" if previous else message


class LoadedArchiveRegistry:
    """Process-wide holding area for ingested archives awaiting installation."""

    def __init__(self) -> None:
        self._archives: dict[str, LoadedArchive] = {}

    def register(self, archive: LoadedArchive) -> str:
        token = uuid.uuid4().hex
        self._archives[token] = archive
        return token

    def get(self, token: str) -> LoadedArchive | None:
        return self._archives.get(token)

    def pop(self, token: str) -> LoadedArchive | None:
        return self._archives.pop(token, None)

    def items(self) -> list[tuple[str, LoadedArchive]]:
        return list(self._archives.items())

    def clear(self) -> None:
        self._archives.clear()


loaded_archives = LoadedArchiveRegistry()
