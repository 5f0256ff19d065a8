"""Reconciliation plan between the stubs on disk and the manifest."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class ReconciliationPlan:
    """Dependencies whose stubs must go, and those that must be (re)generated.

    Both tuples are sorted. ``updates`` covers new dependencies as well as
    version changes; a name never appears in both.
    """

    removals: tuple[str, ...] = ()
    updates: tuple[str, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.removals and not self.updates


def compute_plan(
    existing: Mapping[str, str], expected: Mapping[str, str]
) -> ReconciliationPlan:
    """Diff the name -> version mappings found on disk and wanted by the manifest.

    Example:
        >>> compute_plan({"foo": "1.0.0", "bar": "2.0.0"}, {"bar": "2.0.0"})
        ReconciliationPlan(removals=('foo',), updates=())
    """
    removals = sorted(set(existing) - set(expected))
    updates = sorted(
        name for name, version in expected.items() if existing.get(name) != version
    )
    return ReconciliationPlan(removals=tuple(removals), updates=tuple(updates))


__all__ = ["ReconciliationPlan", "compute_plan"]
