"""Engines: self-contained units a dependency ships for a host application.

An engine owns a set of initializers (setup steps ordered by ``before`` /
``after`` constraints) and the directories holding its code::

    class BillingEngine(Engine):
        eager_load_paths = ("app",)

        @initializer("billing.currencies", after="appkit.set_autoload_paths")
        def load_currencies(self, app):
            ...
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from appkit.autoload import dependencies
from appkit.loading import load_tree

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

_INITIALIZER_ATTR = "__appkit_initializer__"


def _names(value: str | Iterable[str]) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class Initializer:
    name: str
    block: Callable[[Any], None]
    before: tuple[str, ...] = ()
    after: tuple[str, ...] = ()

    def run(self, application: Any) -> None:
        self.block(application)


def initializer(
    name: str,
    *,
    before: str | Iterable[str] = (),
    after: str | Iterable[str] = (),
) -> Callable[[Callable[..., None]], Callable[..., None]]:
    """Mark an engine method as an initializer called with the application."""

    def decorator(fn: Callable[..., None]) -> Callable[..., None]:
        setattr(fn, _INITIALIZER_ATTR, (name, _names(before), _names(after)))
        return fn

    return decorator


def _defining_root(cls: type) -> Path | None:
    module = sys.modules.get(cls.__module__)
    module_file = getattr(module, "__file__", None)
    if not module_file:
        return None
    return Path(module_file).resolve().parent


class Engine:
    abstract: ClassVar[bool] = True
    root: ClassVar[Path | None] = None
    eager_load_paths: ClassVar[tuple[str, ...]] = ("app",)
    _instance: ClassVar[Engine | None] = None

    def __init_subclass__(cls, *, abstract: bool = False, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.abstract = abstract
        if "root" not in cls.__dict__:
            cls.root = _defining_root(cls)
        cls._instance = None

    @classmethod
    def instance(cls) -> Engine:
        if cls.__dict__.get("_instance") is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def descendants(cls) -> list[type[Engine]]:
        """Every subclass, depth first, in definition order."""
        found: dict[type[Engine], None] = {}
        for subclass in cls.__subclasses__():
            found[subclass] = None
            found.update(dict.fromkeys(subclass.descendants()))
        return list(found)

    def eager_load_dirs(self) -> list[Path]:
        if self.root is None:
            return []
        return [self.root / path for path in self.eager_load_paths]

    def initializers(self) -> list[Initializer]:
        """Initializers declared on this engine and its bases, bound to it."""
        found: dict[str, Initializer] = {}
        for klass in reversed(type(self).__mro__):
            for attr, value in vars(klass).items():
                marker = getattr(value, _INITIALIZER_ATTR, None)
                if marker is None:
                    continue
                name, before, after = marker
                found[name] = Initializer(
                    name=name,
                    block=getattr(self, attr),
                    before=before,
                    after=after,
                )
        return list(found.values())

    def eager_load(self) -> None:
        for directory in self.eager_load_dirs():
            if directory.is_dir():
                load_tree(directory)

    @initializer("appkit.set_autoload_paths")
    def set_autoload_paths(self, application: Any) -> None:
        for directory in self.eager_load_dirs():
            entry = str(directory)
            if entry not in dependencies.autoload_paths:
                dependencies.autoload_paths.append(entry)
