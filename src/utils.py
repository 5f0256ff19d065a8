"""Shared utilities for depstubs."""

from __future__ import annotations

import logging
from pathlib import Path


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with a terse CLI format.

    Pass ``force=True`` to reconfigure during tests or nested entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(levelname)s [%(name)s] %(message)s",
        force=force,
    )


def canonical_name(name: str) -> str:
    """Normalize a distribution name the way package indexes compare them.

    Examples:
        >>> canonical_name("Typing_Extensions")
        'typing-extensions'
        >>> canonical_name("zope.interface")
        'zope-interface'
    """
    parts = [part for part in name.replace("_", "-").replace(".", "-").split("-") if part]
    return "-".join(parts).lower()


def path_to_module(file_path: str | Path) -> str:
    """Convert a file path relative to an import root to a module name.

    Args:
        file_path: Relative file path (e.g., "pkg/sub/mod.py" or Path object)

    Returns:
        Module name (e.g., "pkg.sub.mod")

    Examples:
        >>> path_to_module("pkg/sub/mod.py")
        'pkg.sub.mod'
        >>> path_to_module("pkg/__init__.py")
        'pkg'
        >>> path_to_module(Path("foo/bar.py"))
        'foo.bar'
    """
    path_str = file_path.as_posix() if isinstance(file_path, Path) else str(file_path)
    module_parts = [part for part in path_str.replace("\\", "/").split("/") if part]

    if module_parts and module_parts[-1].endswith(".py"):
        module_parts[-1] = module_parts[-1][:-3]

    if module_parts and module_parts[-1] == "__init__":
        module_parts = module_parts[:-1]

    return ".".join(module_parts)


def is_module_name(name: str) -> bool:
    """Return True when every dotted segment is a valid identifier."""
    return bool(name) and all(part.isidentifier() for part in name.split("."))
