from daz_content_installer.archive.handler import (
    ArchiveCorruptError,
    ArchiveEntry,
    ArchiveError,
    ArchiveHandler,
    RarHandler,
    SevenZipHandler,
    UnsupportedArchiveError,
    ZipHandler,
    open_archive,
)

__all__ = [
    "ArchiveCorruptError",
    "ArchiveEntry",
    "ArchiveError",
    "ArchiveHandler",
    "RarHandler",
    "SevenZipHandler",
    "UnsupportedArchiveError",
    "ZipHandler",
    "open_archive",
]
