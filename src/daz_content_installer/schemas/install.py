from datetime import datetime

from pydantic import BaseModel, Field

from daz_content_installer.models.enums import ArchiveStatus, AssetCategory


class IngestRequest(BaseModel):
    paths: list[str]


class LoadedArchiveOut(BaseModel):
    token: str
    name: str
    source_path: str
    parent_name: str | None = None
    size: int
    size_display: str
    status: ArchiveStatus
    category: AssetCategory
    tags: list[str]
    file_count: int
    base_directory: str | None = None
    metadata: dict[str, str | bool | int | float] = {}


class IngestFailure(BaseModel):
    path: str
    error: str


class IngestResult(BaseModel):
    archives: list[LoadedArchiveOut]
    failed: list[IngestFailure] = []


class InstallRequest(BaseModel):
    tokens: list[str]
    backup: bool | None = None


class InstallItemResult(BaseModel):
    token: str | None = None
    name: str
    status: ArchiveStatus
    installed_archive_id: int | None = None
    files_copied: int = 0
    files_skipped: list[str] = []
    files_left_behind: list[str] = []
    error: str | None = None


class InstallBatchResult(BaseModel):
    summary: str
    items: list[InstallItemResult]
    failed: list[InstallItemResult] = []


class InstalledArchiveOut(BaseModel):
    id: int
    name: str
    category: AssetCategory
    status: ArchiveStatus
    archive_size: int
    total_size: int
    size_display: str
    file_count: int
    base_directory: str | None = None
    installed_at: datetime


class UninstallRequest(BaseModel):
    archive_ids: list[int]


class UninstallItemResult(BaseModel):
    archive_id: int | None = None
    name: str
    files_deleted: int = 0
    files_retained: int = 0
    files_missing: int = 0
    directories_removed: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors


class UninstallBatchResult(BaseModel):
    summary: str
    items: list[UninstallItemResult]
    failed: list[UninstallItemResult] = []


class FileTreeNode(BaseModel):
    name: str
    is_dir: bool = False
    file_id: int | None = None
    children: list["FileTreeNode"] = []
