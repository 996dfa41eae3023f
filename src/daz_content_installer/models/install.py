from datetime import UTC, datetime

from sqlmodel import Field, Relationship, SQLModel

from daz_content_installer.models.enums import ArchiveStatus, AssetCategory


class InstalledArchive(SQLModel, table=True):
    __tablename__ = "installed_archives"

    id: int | None = Field(default=None, primary_key=True)
    library_id: int = Field(foreign_key="asset_libraries.id", index=True)
    name: str = Field(index=True)
    archive_size: int = 0
    file_count: int = 0
    status: ArchiveStatus = ArchiveStatus.INSTALLED
    category: AssetCategory = AssetCategory.UNKNOWN
    base_directory: str | None = None
    installed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    files: list["InstalledAssetFile"] = Relationship(
        back_populates="archive",
        cascade_delete=True,
    )

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)


class InstalledAssetFile(SQLModel, table=True):
    __tablename__ = "installed_asset_files"

    id: int | None = Field(default=None, primary_key=True)
    archive_id: int = Field(foreign_key="installed_archives.id", index=True, ondelete="CASCADE")
    source_path: str
    size: int = 0
    installed_path: str | None = Field(default=None, index=True)

    archive: InstalledArchive | None = Relationship(back_populates="files")
