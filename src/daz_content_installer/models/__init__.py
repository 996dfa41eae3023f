from daz_content_installer.models.enums import ArchiveStatus, AssetCategory
from daz_content_installer.models.install import InstalledArchive, InstalledAssetFile
from daz_content_installer.models.library import AssetLibrary

__all__ = [
    "ArchiveStatus",
    "AssetCategory",
    "AssetLibrary",
    "InstalledArchive",
    "InstalledAssetFile",
]
