"""Stub artifact contract definitions.

Artifacts live flat in the output directory and encode their identity in the
filename: ``<name>@<version>.pyi``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

STUB_SUFFIX = ".pyi"
NAME_VERSION_SEPARATOR = "@"
ARTIFACT_GLOB = f"*{NAME_VERSION_SEPARATOR}*{STUB_SUFFIX}"


@dataclass(frozen=True)
class ArtifactRecord:
    """A stub file found on disk."""

    name: str
    version: str
    path: Path


def artifact_filename(name: str, version: str) -> str:
    """Build the canonical artifact filename for a dependency.

    >>> artifact_filename("requests", "2.31.0")
    'requests@2.31.0.pyi'
    """
    return f"{name}{NAME_VERSION_SEPARATOR}{version}{STUB_SUFFIX}"


def parse_artifact_filename(filename: str) -> tuple[str, str] | None:
    """Split an artifact filename into ``(name, version)``.

    The name ends at the first separator. Returns None for filenames that do
    not follow the contract (wrong suffix, missing name or version).

    >>> parse_artifact_filename("requests@2.31.0.pyi")
    ('requests', '2.31.0')
    >>> parse_artifact_filename("notes.txt") is None
    True
    """
    if not filename.endswith(STUB_SUFFIX):
        return None
    stem = filename[: -len(STUB_SUFFIX)]
    name, separator, version = stem.partition(NAME_VERSION_SEPARATOR)
    if not separator or not name or not version:
        return None
    return name, version
