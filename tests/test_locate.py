import sys
from pathlib import Path

import pytest

from frtopojson.pipeline.locate import Entry, find_shapefile, iter_files


def virtual_tree(tree: dict):
    """list_dir over a nested dict; records every directory listed."""
    listed: list[Path] = []

    def list_dir(path: Path):
        listed.append(path)
        node = tree
        for part in path.relative_to("/root").parts:
            node = node[part]
        return [Entry(name, isinstance(child, dict)) for name, child in node.items()]

    return list_dir, listed


def test_finds_nested_file(tmp_path):
    target = tmp_path / "a" / "b" / "REGION.shp"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"")
    (tmp_path / "a" / "REGION.dbf").write_bytes(b"")

    found = find_shapefile(tmp_path, "REGION.shp")

    assert found == target
    assert found.as_posix().endswith("a/b/REGION.shp")


def test_not_found_returns_none(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "DEPARTEMENT.shp").write_bytes(b"")

    assert find_shapefile(tmp_path, "REGION.shp") is None


def test_missing_root_returns_none(tmp_path):
    assert find_shapefile(tmp_path / "not-extracted", "REGION.shp") is None


def test_directory_with_target_name_is_not_a_match(tmp_path):
    (tmp_path / "REGION.shp").mkdir()

    assert find_shapefile(tmp_path, "REGION.shp") is None


def test_traversal_is_depth_first_in_name_order(tmp_path):
    for rel in ("b/2.shp", "a/z/1.shp", "a/0.shp", "c.shp"):
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")

    names = [p.relative_to(tmp_path).as_posix() for p in iter_files(tmp_path)]

    assert names == ["a/0.shp", "a/z/1.shp", "b/2.shp", "c.shp"]


def test_search_stops_at_first_match():
    list_dir, listed = virtual_tree({
        "ADMIN": {"1_DONNEES": {"REGION.shp": None, "REGION.dbf": None}},
        "LISEZ-MOI": {"notes.txt": None},
    })

    found = find_shapefile(Path("/root"), "REGION.shp", list_dir)

    assert found == Path("/root/ADMIN/1_DONNEES/REGION.shp")
    assert Path("/root/LISEZ-MOI") not in listed


def test_virtual_tree_not_found():
    list_dir, _ = virtual_tree({"ADMIN": {"COMMUNE.shp": None}})

    assert find_shapefile(Path("/root"), "REGION.shp", list_dir) is None


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
def test_symlinked_directory_loop_is_not_followed(tmp_path):
    data = tmp_path / "regions" / "ADMIN"
    data.mkdir(parents=True)
    (data / "REGION.shp").write_bytes(b"shape")
    (data / "REGION.prj").symlink_to(data / "REGION.shp")
    (data / "loop").symlink_to(tmp_path / "regions", target_is_directory=True)

    assert find_shapefile(tmp_path, "COMMUNE.shp") is None
    assert find_shapefile(tmp_path, "REGION.prj") == data / "REGION.prj"
    assert sorted(p.name for p in iter_files(tmp_path)) == ["REGION.prj", "REGION.shp"]
