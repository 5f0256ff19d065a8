"""File discovery and loading shared by engines and autoloaders."""

from __future__ import annotations

import importlib
import importlib.util
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

_IDENTIFIER = re.compile(r"^[A-Za-z_]\w*$")
_UNSAFE_CHARS = re.compile(r"\W")


def source_files(directory: Path) -> Iterator[Path]:
    """Python files below ``directory`` in a stable order.

    Symlinks and anything resolving outside ``directory`` are left out.
    """
    base = directory.resolve()
    found = []
    for path in directory.rglob("*.py"):
        if path.is_symlink() or not path.is_file():
            continue
        if not path.resolve().is_relative_to(base):
            continue
        found.append(path)
    found.sort(key=lambda p: p.relative_to(directory).as_posix())
    yield from found


def _module_name(path: Path) -> str | None:
    resolved = path.resolve()
    for entry in sys.path:
        try:
            base = Path(entry or ".").resolve()
        except OSError:
            continue
        if not resolved.is_relative_to(base):
            continue
        parts = list(resolved.relative_to(base).with_suffix("").parts)
        if parts and parts[-1] == "__init__":
            parts.pop()
        if parts and all(_IDENTIFIER.match(part) for part in parts):
            return ".".join(parts)
    return None


def load_file(path: Path) -> None:
    """Import ``path`` by module name when it is on ``sys.path``, else run it once."""
    name = _module_name(path)
    if name is not None:
        importlib.import_module(name)
        return

    resolved = path.resolve()
    name = "_appkit_file_" + _UNSAFE_CHARS.sub("_", resolved.as_posix())
    if name in sys.modules:
        return

    spec = importlib.util.spec_from_file_location(name, resolved)
    if spec is None or spec.loader is None:
        msg = f"Cannot load {resolved}"
        raise ImportError(msg, path=str(resolved))
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        del sys.modules[name]
        raise


def load_tree(directory: Path) -> None:
    """Load every source file below ``directory``; the first failure propagates."""
    for file_path in source_files(directory):
        load_file(file_path)
