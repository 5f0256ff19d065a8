"""Loading helpers for modules and standalone Python files."""

from __future__ import annotations

import importlib
import importlib.util
import re
import sys
from pathlib import Path

from utils import is_module_name, path_to_module

_FILE_MODULE_PREFIX = "_depstubs_file_"
_UNSAFE_CHARS = re.compile(r"\W")


def safe_require(module_name: str) -> bool:
    """Import ``module_name``, treating its absence as a no-op.

    Only a missing ``module_name`` (or one of its parent packages) is
    absorbed; a module that exists but fails to import, including one that
    imports something missing, still raises.

    Returns:
        True if the module is imported, False if it does not exist.
    """
    try:
        importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        missing = exc.name or ""
        if module_name == missing or module_name.startswith(f"{missing}."):
            return False
        raise
    return True


def file_module_name(path: Path) -> str:
    """Synthetic, stable module name under which a file path is loaded."""
    return _FILE_MODULE_PREFIX + _UNSAFE_CHARS.sub("_", path.as_posix())


def require_file(path: str | Path) -> bool:
    """Execute a Python file once per process, keyed by its absolute path.

    Returns:
        True if the file was executed by this call, False if it was
        already loaded.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    resolved = Path(path).resolve()
    if not resolved.is_file():
        msg = f"No such file to load: {resolved}"
        raise FileNotFoundError(msg)

    name = file_module_name(resolved)
    if name in sys.modules:
        return False

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
    return True


def require_helper(path: str | None) -> bool:
    """Load an optional hook file, skipping silently when it is absent."""
    if not path:
        return False

    resolved = Path(path).absolute()
    if not resolved.exists():
        return False

    return require_file(resolved)


def module_name_for(path: Path) -> str | None:
    """Return the import name of ``path`` under the first matching sys.path entry."""
    resolved = path.resolve()
    for entry in sys.path:
        try:
            base = Path(entry or ".").resolve()
        except OSError:
            continue
        if not resolved.is_relative_to(base):
            continue
        name = path_to_module(resolved.relative_to(base))
        if is_module_name(name):
            return name
    return None


def require_dependency(path: str | Path) -> None:
    """Load a source file found while eager loading a directory.

    Files importable from ``sys.path`` are imported under their module name
    so package-relative imports keep working; anything else is executed by
    path.
    """
    name = module_name_for(Path(path))
    if name is not None:
        importlib.import_module(name)
        return
    require_file(path)


__all__ = [
    "file_module_name",
    "module_name_for",
    "require_dependency",
    "require_file",
    "require_helper",
    "safe_require",
]
