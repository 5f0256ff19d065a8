"""Directory-based autoloading with a process-wide loader registry."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from appkit.loading import load_tree

if TYPE_CHECKING:
    from collections.abc import Iterator


class Registry:
    """Every autoloader created in the process, in creation order."""

    def __init__(self) -> None:
        self.loaders: list[Autoloader] = []

    def register(self, loader: Autoloader) -> None:
        if loader not in self.loaders:
            self.loaders.append(loader)

    def unregister(self, loader: Autoloader) -> None:
        if loader in self.loaders:
            self.loaders.remove(loader)


registry = Registry()


class Autoloader:
    """Loads the Python files of a set of root directories on demand."""

    def __init__(self, name: str = "main", *, register: bool = True) -> None:
        self.name = name
        self.dirs: list[Path] = []
        self.is_setup = False
        if register:
            registry.register(self)

    def __repr__(self) -> str:
        return f"<Autoloader {self.name} dirs={len(self.dirs)}>"

    def push_dir(self, path: str | Path) -> None:
        resolved = Path(path).resolve()
        if not resolved.is_dir():
            msg = f"Autoload root is not a directory: {resolved}"
            raise NotADirectoryError(msg)
        if resolved not in self.dirs:
            self.dirs.append(resolved)

    def setup(self) -> None:
        """Make every root importable."""
        for directory in self.dirs:
            entry = str(directory)
            if entry not in sys.path:
                sys.path.append(entry)
        self.is_setup = True

    def eager_load(self) -> None:
        """Import every file below every root; the first failure propagates."""
        if not self.is_setup:
            self.setup()
        for directory in self.dirs:
            load_tree(directory)


def eager_load_all() -> None:
    for loader in list(registry.loaders):
        loader.eager_load()


class Autoloaders:
    def __init__(self) -> None:
        self.main = Autoloader("main")
        self.once = Autoloader("once")
        self.enabled = True

    def __iter__(self) -> Iterator[Autoloader]:
        yield self.main
        yield self.once


@dataclass
class Dependencies:
    """Autoload paths collected from the application and its engines."""

    autoload_paths: list[str] = field(default_factory=list)
    autoload_once_paths: list[str] = field(default_factory=list)


autoloaders = Autoloaders()
dependencies = Dependencies()
