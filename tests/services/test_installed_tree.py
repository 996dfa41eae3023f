from daz_content_installer.models.install import InstalledAssetFile
from daz_content_installer.services.installed_tree import build_file_tree


def _file(file_id: int, path: str | None) -> InstalledAssetFile:
    return InstalledAssetFile(id=file_id, source_path=path or "", installed_path=path)


def test_nested_sorted_tree():
    tree = build_file_tree(
        [
            _file(1, "props/Tables/oak.duf"),
            _file(2, "props/chairs/b.duf"),
            _file(3, "props/chairs/A.duf"),
            _file(4, "readme.txt"),
            _file(5, "data/x.dsf"),
        ],
        root_name="Pack",
    )

    assert tree.name == "Pack"
    assert [c.name for c in tree.children] == ["data", "props", "readme.txt"]
    props = tree.children[1]
    assert [c.name for c in props.children] == ["chairs", "Tables"]
    chairs = props.children[0]
    assert [(c.name, c.file_id) for c in chairs.children] == [("A.duf", 3), ("b.duf", 2)]
    assert all(not c.is_dir for c in chairs.children)


def test_files_without_installed_path_are_ignored():
    tree = build_file_tree([_file(1, None), _file(2, "x.duf")])
    assert [c.name for c in tree.children] == ["x.duf"]
