"""Project dependency manifest."""

from manifest.resolver import (
    DEFAULT_MANIFEST,
    Dependency,
    DependencyManifest,
    Manifest,
    ManifestError,
)

__all__ = [
    "DEFAULT_MANIFEST",
    "Dependency",
    "DependencyManifest",
    "Manifest",
    "ManifestError",
]
