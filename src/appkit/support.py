"""Deprecation reporting and lazy load hooks."""

from __future__ import annotations

import warnings
from collections import defaultdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


class Deprecation:
    def __init__(self) -> None:
        self.silenced = False

    def warn(self, message: str) -> None:
        if not self.silenced:
            warnings.warn(message, DeprecationWarning, stacklevel=2)


deprecation = Deprecation()

_load_hooks: defaultdict[str, list[Callable[[Any], None]]] = defaultdict(list)
_loaded: defaultdict[str, list[Any]] = defaultdict(list)


def on_load(name: str, hook: Callable[[Any], None]) -> None:
    """Register ``hook`` for the ``name`` event; replay it for past runs."""
    _load_hooks[name].append(hook)
    for base in _loaded[name]:
        hook(base)


def run_load_hooks(name: str, base: Any = None) -> None:
    """Fire the ``name`` event with ``base``, running every registered hook."""
    _loaded[name].append(base)
    for hook in list(_load_hooks[name]):
        hook(base)
