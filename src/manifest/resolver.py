"""Dependency snapshot of a project, read from its ``pyproject.toml``.

Declared requirements are resolved against the distributions installed in
the running interpreter, which is the environment the stubs are generated
from.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from functools import cache
from importlib import metadata
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import tomllib
from packaging.requirements import InvalidRequirement
from packaging.requirements import Requirement as PackagingRequirement

from contract.artifacts import artifact_filename
from loaders.isolation import run_isolated
from loaders.require import safe_require
from utils import canonical_name

if TYPE_CHECKING:
    from collections.abc import Iterable

    from packaging.markers import Marker

log = logging.getLogger(__name__)

DEFAULT_MANIFEST = "pyproject.toml"


class ManifestError(Exception):
    """Raised when the manifest is missing or cannot be read."""


@dataclass(frozen=True)
class Dependency:
    name: str
    version: str
    modules: tuple[str, ...] = ()

    @property
    def artifact_filename(self) -> str:
        return artifact_filename(self.name, self.version)


class DependencyManifest(Protocol):
    root: Path

    def dependencies(self) -> list[Dependency]: ...

    def dependency(self, name: str) -> Dependency | None: ...

    def activate(self) -> None: ...


@dataclass(frozen=True)
class Requirement:
    name: str
    extras: frozenset[str] = frozenset()
    marker: Marker | None = None

    def applies(self, extras: Iterable[str] = ()) -> bool:
        """Evaluate the environment marker, once per requested extra."""
        if self.marker is None:
            return True
        candidates = sorted(extras) or [""]
        return any(self.marker.evaluate({"extra": extra}) for extra in candidates)


def parse_requirement(text: str) -> Requirement | None:
    """Extract the parts of a PEP 508 requirement depstubs needs.

    >>> parse_requirement("Requests[socks] >= 2.0")
    Requirement(name='requests', extras=frozenset({'socks'}), marker=None)
    """
    try:
        parsed = PackagingRequirement(text)
    except InvalidRequirement:
        return None
    return Requirement(
        name=canonical_name(parsed.name),
        extras=frozenset(canonical_name(extra) for extra in parsed.extras),
        marker=parsed.marker,
    )


@cache
def _modules_by_distribution() -> dict[str, tuple[str, ...]]:
    inverted: dict[str, set[str]] = {}
    for module, distributions in metadata.packages_distributions().items():
        if module.startswith("__") or not module.isidentifier():
            continue
        for distribution in distributions:
            inverted.setdefault(canonical_name(distribution), set()).add(module)
    return {name: tuple(sorted(modules)) for name, modules in inverted.items()}


def top_level_modules(name: str) -> tuple[str, ...]:
    return _modules_by_distribution().get(canonical_name(name), ())


def _installed(name: str) -> metadata.Distribution | None:
    try:
        return metadata.distribution(name)
    except metadata.PackageNotFoundError:
        return None


class Manifest:
    """Dependencies declared in ``[project].dependencies`` of a manifest file.

    Args:
        path: Path to the manifest (``pyproject.toml``).
        exclude: Dependency names left out of the snapshot.
        transitive: Follow the requirements of installed dependencies.
    """

    def __init__(
        self,
        path: Path,
        *,
        exclude: Iterable[str] = (),
        transitive: bool = True,
    ) -> None:
        self.path = path.resolve()
        self.root = self.path.parent
        self.exclude = frozenset(canonical_name(name) for name in exclude)
        self.transitive = transitive
        self._dependencies: list[Dependency] | None = None

    def declared_requirements(self) -> list[Requirement]:
        if not self.path.is_file():
            msg = f"Manifest not found: {self.path}"
            raise ManifestError(msg)

        try:
            with self.path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {self.path}: {e}"
            raise ManifestError(msg) from e

        declared = data.get("project", {}).get("dependencies", [])
        if not isinstance(declared, list) or not all(isinstance(d, str) for d in declared):
            msg = f"[project].dependencies in {self.path} must be a list of strings"
            raise ManifestError(msg)

        requirements = []
        for text in declared:
            requirement = parse_requirement(text)
            if requirement is None:
                log.warning("Ignoring unparsable requirement %r in %s", text, self.path)
                continue
            if not requirement.applies():
                log.debug("Skipping %s: marker does not match this environment", text)
                continue
            requirements.append(requirement)
        return requirements

    def dependencies(self) -> list[Dependency]:
        """Resolved dependencies, breadth first from the declared order."""
        if self._dependencies is None:
            self._dependencies = self._resolve()
        return self._dependencies

    def dependency(self, name: str) -> Dependency | None:
        wanted = canonical_name(name)
        for dependency in self.dependencies():
            if dependency.name == wanted:
                return dependency
        return None

    def _resolve(self) -> list[Dependency]:
        queue = deque((requirement, True) for requirement in self.declared_requirements())
        resolved: dict[str, Dependency] = {}

        while queue:
            requirement, direct = queue.popleft()
            if requirement.name in resolved or requirement.name in self.exclude:
                continue

            distribution = _installed(requirement.name)
            if distribution is None:
                if direct:
                    log.warning(
                        "Dependency %s is declared but not installed; skipping it",
                        requirement.name,
                    )
                continue

            resolved[requirement.name] = Dependency(
                name=requirement.name,
                version=distribution.version,
                modules=top_level_modules(requirement.name),
            )

            if self.transitive:
                queue.extend(
                    (child, False)
                    for child in self._requirements_of(distribution, requirement.extras)
                )

        return list(resolved.values())

    @staticmethod
    def _requirements_of(
        distribution: metadata.Distribution, extras: frozenset[str]
    ) -> list[Requirement]:
        children = []
        for text in distribution.requires or []:
            child = parse_requirement(text)
            if child is None:
                continue
            if child.applies(extras):
                children.append(child)
        return children

    def activate(self) -> None:
        """Import every dependency's top-level modules.

        A module that does not exist is skipped; a module that fails while
        importing is reported and the rest still load.
        """
        for dependency in self.dependencies():
            for module in dependency.modules:
                result = run_isolated(safe_require, module, label=module)
                if not result.ok:
                    log.warning(
                        "Failed to import %s from %s: %s",
                        module,
                        dependency.name,
                        result.error,
                    )


__all__ = [
    "DEFAULT_MANIFEST",
    "Dependency",
    "DependencyManifest",
    "Manifest",
    "ManifestError",
    "Requirement",
    "parse_requirement",
    "top_level_modules",
]
