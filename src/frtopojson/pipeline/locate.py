"""
Locate stage - Find a geometry file in an extracted archive

IGN archives nest their shapefiles under folders whose names change with
every release, so the file is found by name anywhere in the tree.

Traversal order: depth-first, entries of each directory sorted by name, a
subdirectory being walked completely when it is reached in that order.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Iterable, Iterator, NamedTuple, Optional


class Entry(NamedTuple):
    """A directory entry: its name and whether it is a directory."""
    name: str
    is_dir: bool


ListDir = Callable[[Path], Iterable[Entry]]


def list_directory(path: Path) -> list[Entry]:
    """
    List a real directory. Unreadable directories are treated as empty.

    Symlinked directories are not entered, so a link loop cannot recurse.
    """
    entries = []
    try:
        with os.scandir(path) as it:
            for e in it:
                if e.is_dir(follow_symlinks=False):
                    entries.append(Entry(e.name, True))
                elif e.is_file():
                    entries.append(Entry(e.name, False))
    except OSError:
        return []
    return sorted(entries, key=lambda e: e.name)


def iter_files(root: Path, list_dir: ListDir = list_directory) -> Iterator[Path]:
    """
    Yield every regular file under ``root``, depth-first.

    Args:
        root: Directory to walk
        list_dir: Returns the entries of one directory, in traversal order

    Yields:
        Full path of each file, lazily
    """
    for entry in list_dir(root):
        path = root / entry.name
        if entry.is_dir:
            yield from iter_files(path, list_dir)
        else:
            yield path


def find_shapefile(root: Path, file_name: str, list_dir: ListDir = list_directory) -> Optional[Path]:
    """
    Find the first file named exactly ``file_name`` under ``root``.

    Returns:
        Full path of the match, or None if nothing matches (or root is missing)
    """
    for path in iter_files(root, list_dir):
        if path.name == file_name:
            return path
    return None
