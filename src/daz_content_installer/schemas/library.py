from datetime import datetime

from pydantic import BaseModel


class LibraryCreate(BaseModel):
    name: str
    path: str
    is_default: bool = False


class LibraryOut(BaseModel):
    id: int
    name: str
    path: str
    is_default: bool
    created_at: datetime
    last_used_at: datetime
    installed_count: int = 0
