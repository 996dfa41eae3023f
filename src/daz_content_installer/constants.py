from pathlib import Path

from daz_content_installer.models.enums import AssetCategory

# Keyword -> category, matched as a substring of each lower-cased path segment.
FOLDER_CATEGORY_KEYWORDS: dict[str, AssetCategory] = {
    "characters": AssetCategory.CHARACTER,
    "anatomy": AssetCategory.ANATOMY,
    "clothing": AssetCategory.CLOTHING,
    "wardrobe": AssetCategory.CLOTHING,
    "hair": AssetCategory.HAIR,
    "props": AssetCategory.PROPS,
    "vehicles": AssetCategory.PROPS,
    "environments": AssetCategory.ENVIRONMENT,
    "scenes": AssetCategory.ENVIRONMENT,
    "poses": AssetCategory.POSES,
    "expressions": AssetCategory.POSES,
    "animations": AssetCategory.POSES,
    "materials": AssetCategory.MATERIALS,
    "shaders": AssetCategory.MATERIALS,
    "morphs": AssetCategory.MORPHS,
    "lights": AssetCategory.LIGHTS,
    "cameras": AssetCategory.CAMERAS,
    "scripts": AssetCategory.SCRIPTS,
    "textures": AssetCategory.TEXTURES,
}

DAZ_FILE_EXTENSIONS = frozenset(
    {
        ".duf",
        ".dsf",
        ".dse",
        ".dsa",
        ".daz",
        ".pz2",
        ".cr2",
        ".pp2",
        ".hr2",
        ".fc2",
        ".hd2",
        ".lt2",
        ".cm2",
        ".mc6",
        ".mt5",
        ".mat",
        ".obj",
        ".fbx",
    }
)

# Top-level folders of a DAZ library. "documentation" is opt-in because
# template archives often ship a separate documentation folder.
STANDARD_ASSET_ROOTS = frozenset(
    {"data", "people", "props", "environments", "runtime", "scene", "scripts"}
)
DOCUMENTATION_ROOT = "documentation"
CONTENT_FOLDER = "content"

NESTED_ARCHIVE_EXTENSIONS = frozenset({".zip", ".rar", ".7z"})
CARRIER_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".txt"}) | NESTED_ARCHIVE_EXTENSIONS

METADATA_FILES = ("Supplement.dsx", "manifest.json", "ProductInformation.json")
METADATA_SIZE_LIMIT = 100_000

BASE_DIRECTORY_MAX_DEPTH = 10
MACOS_METADATA_FOLDER = "__MACOSX"
BACKUP_FOLDER = "ArchiveBackup"

DEFAULT_LIBRARY_CANDIDATES: list[Path] = [
    Path.home() / "Documents" / "DAZ 3D" / "Studio" / "My Library",
    Path.home() / "Documents" / "DAZ 3D" / "Studio" / "My DAZ 3D Library",
    Path("C:/Users/Public/Documents/My DAZ 3D Library"),
]


def standard_roots(*, include_documentation: bool = False) -> frozenset[str]:
    """Return the lower-cased library root names used for layout detection."""
    if include_documentation:
        return STANDARD_ASSET_ROOTS | {DOCUMENTATION_ROOT}
    return STANDARD_ASSET_ROOTS
