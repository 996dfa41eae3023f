from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class AssetLibrary(SQLModel, table=True):
    __tablename__ = "asset_libraries"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    path: str = Field(unique=True, index=True)
    is_default: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_used_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
