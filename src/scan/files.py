"""Source file scanning used by eager loading."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


def _should_include_file(path: Path, directory: Path) -> bool:
    """Check if a file should be eager-loaded from ``directory``."""
    if not path.is_file() or path.is_symlink():
        return False

    return _is_within_root(path, directory)


def _is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        root_resolved = root.resolve()
        path_resolved = path.resolve()
    except OSError:
        return False

    try:
        path_resolved.relative_to(root_resolved)
    except ValueError:
        return False

    return True


def find_python_files(directory: Path) -> Iterator[Path]:
    """Find all Python files below a directory.

    Args:
        directory: Directory to search for Python files

    Yields:
        Path objects for each Python file found, sorted lexicographically
        by relative path for deterministic ordering. Symlinked files and
        files resolving outside ``directory`` are skipped.
    """
    matched_files = [
        path for path in directory.rglob("*.py") if _should_include_file(path, directory)
    ]

    matched_files.sort(key=lambda p: p.relative_to(directory).as_posix())

    yield from matched_files


__all__ = ["_should_include_file", "find_python_files"]
