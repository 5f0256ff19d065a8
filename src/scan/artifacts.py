"""Index of the stub artifacts already present in an output directory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contract.artifacts import ARTIFACT_GLOB, ArtifactRecord, parse_artifact_filename

if TYPE_CHECKING:
    from pathlib import Path


class DuplicateArtifactError(Exception):
    """Raised when more than one artifact file claims the same dependency."""

    def __init__(self, duplicates: dict[str, list[Path]]) -> None:
        self.duplicates = duplicates
        details = "; ".join(
            f"{name}: {', '.join(path.name for path in paths)}"
            for name, paths in sorted(duplicates.items())
        )
        super().__init__(f"Multiple stub files found for the same dependency: {details}")


def scan_artifacts(out_dir: Path) -> dict[str, ArtifactRecord]:
    """Scan ``out_dir`` for ``<name>@<version>.pyi`` files.

    Args:
        out_dir: Directory holding generated stubs. A missing directory is
            treated as empty.

    Returns:
        Mapping of dependency name to its artifact record, in filename order.

    Raises:
        NotADirectoryError: If ``out_dir`` exists but is not a directory.
        DuplicateArtifactError: If two files parse to the same name.
    """
    if not out_dir.exists():
        return {}
    if not out_dir.is_dir():
        msg = f"Stub output path is not a directory: {out_dir}"
        raise NotADirectoryError(msg)

    records: dict[str, ArtifactRecord] = {}
    duplicates: dict[str, list[Path]] = {}
    for path in sorted(out_dir.glob(ARTIFACT_GLOB)):
        if not path.is_file():
            continue
        parsed = parse_artifact_filename(path.name)
        if parsed is None:
            continue
        name, version = parsed
        if name in records:
            duplicates.setdefault(name, [records[name].path]).append(path)
            continue
        records[name] = ArtifactRecord(name=name, version=version, path=path)

    if duplicates:
        raise DuplicateArtifactError(duplicates)

    return records


def existing_state(out_dir: Path) -> dict[str, str]:
    """Return the name -> version mapping of the artifacts on disk."""
    return {name: record.version for name, record in scan_artifacts(out_dir).items()}


__all__ = ["DuplicateArtifactError", "existing_state", "scan_artifacts"]
