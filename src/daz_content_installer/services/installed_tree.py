from collections.abc import Iterable

from daz_content_installer.models.install import InstalledAssetFile
from daz_content_installer.schemas.install import FileTreeNode
from daz_content_installer.utils.paths import path_parts


def build_file_tree(files: Iterable[InstalledAssetFile], root_name: str = "") -> FileTreeNode:
    """Nest installed paths into folders; folders first, then files, by name."""
    root = FileTreeNode(name=root_name, is_dir=True)
    for f in files:
        parts = path_parts(f.installed_path or "")
        if not parts:
            continue
        node = root
        for folder in parts[:-1]:
            child = next((c for c in node.children if c.is_dir and c.name == folder), None)
            if child is None:
                child = FileTreeNode(name=folder, is_dir=True)
                node.children.append(child)
            node = child
        node.children.append(FileTreeNode(name=parts[-1], file_id=f.id))
    _sort(root)
    return root


def _sort(node: FileTreeNode) -> None:
    node.children.sort(key=lambda c: (not c.is_dir, c.name.lower()))
    for child in node.children:
        _sort(child)
