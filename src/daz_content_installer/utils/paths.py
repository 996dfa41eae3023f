"""Path helpers shared by the analyzer, installer and uninstaller.

Archive member names may use backslash separators (archives built on
Windows); every archive-internal or library-relative path handled by the
engine is normalised to forward slashes first.
"""

import os
from pathlib import Path, PurePosixPath

from daz_content_installer.constants import CONTENT_FOLDER


def normalise_relative_path(path: str) -> str:
    """Convert *path* to forward slashes without leading/trailing separators.

    >>> normalise_relative_path("\\\\Content\\\\hair\\\\style.duf")
    'Content/hair/style.duf'
    """
    return path.replace("\\", "/").strip("/")


def path_parts(path: str) -> tuple[str, ...]:
    """Split an archive-internal path into its segments."""
    normalised = normalise_relative_path(path)
    if not normalised:
        return ()
    return PurePosixPath(normalised).parts


def strip_path_prefix(path: str, prefix: str) -> str:
    """Remove *prefix* (whole segments, case-insensitive) from the front of *path*.

    The path is returned unchanged when it does not start with the prefix.

    >>> strip_path_prefix("MyProduct/props/chair.duf", "myproduct")
    'props/chair.duf'
    >>> strip_path_prefix("Other/props/chair.duf", "MyProduct")
    'Other/props/chair.duf'
    """
    normalised = normalise_relative_path(path)
    prefix = normalise_relative_path(prefix)
    if not prefix:
        return normalised
    head = prefix + "/"
    if normalised.lower().startswith(head.lower()):
        return normalised[len(head) :]
    return normalised


def compute_installed_path(source_path: str, base_directory: str | None) -> str:
    """Map an archive member to its path relative to the library root.

    The custom base directory is stripped first, then a single redundant
    leading ``content/`` segment.

    >>> compute_installed_path("MyProduct/Content/props/x.duf", "MyProduct")
    'props/x.duf'
    >>> compute_installed_path("Content/hair/style.duf", None)
    'hair/style.duf'
    """
    path = normalise_relative_path(source_path)
    if base_directory:
        path = strip_path_prefix(path, base_directory)
    return strip_path_prefix(path, CONTENT_FOLDER)


def library_file_path(library_root: str | Path, installed_path: str) -> Path:
    """Build a native absolute path from a library root and an installed path."""
    return Path(library_root) / normalise_relative_path(installed_path).replace("/", os.sep)


def is_within(root: Path, target: Path) -> bool:
    """Return ``True`` when *target* resolves to a location inside *root*."""
    return target.resolve().is_relative_to(root.resolve())
