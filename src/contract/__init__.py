"""Artifact naming contract for depstubs.

Treat these exports as the stable boundary between the generator and any
tooling that reads the output directory.
"""

from contract.artifacts import (
    ARTIFACT_GLOB,
    NAME_VERSION_SEPARATOR,
    STUB_SUFFIX,
    ArtifactRecord,
    artifact_filename,
    parse_artifact_filename,
)

__all__ = [
    "ARTIFACT_GLOB",
    "NAME_VERSION_SEPARATOR",
    "STUB_SUFFIX",
    "ArtifactRecord",
    "artifact_filename",
    "parse_artifact_filename",
]
