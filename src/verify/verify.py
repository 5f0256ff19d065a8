"""Sync verification for a stub output directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from scan.artifacts import existing_state
from stubs.plan import compute_plan

if TYPE_CHECKING:
    from pathlib import Path

    from manifest.resolver import DependencyManifest


@dataclass(frozen=True)
class SyncResult:
    ok: bool
    removals: tuple[str, ...] = field(default_factory=tuple)
    updates: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "ok": self.ok,
            "removals": list(self.removals),
            "updates": list(self.updates),
        }


def verify_sync(*, out_dir: Path, manifest: DependencyManifest) -> SyncResult:
    """Check whether ``out_dir`` matches the manifest without touching it.

    Nothing is imported or written: the check compares filenames on disk
    with the resolved dependency versions.

    Args:
        out_dir: Stub output directory. A missing directory counts as empty.
        manifest: Dependency manifest of the project.

    Returns:
        SyncResult with ok status and the sorted names a sync would remove
        and (re)generate.

    Raises:
        NotADirectoryError: If out_dir exists but is not a directory.
        DuplicateArtifactError: If two stub files claim the same dependency.
    """
    expected = {dependency.name: dependency.version for dependency in manifest.dependencies()}
    plan = compute_plan(existing_state(out_dir), expected)
    return SyncResult(ok=plan.empty, removals=plan.removals, updates=plan.updates)
