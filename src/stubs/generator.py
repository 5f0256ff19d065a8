"""Generation of dependency stubs and reconciliation of the output directory."""

from __future__ import annotations

import logging
from functools import cached_property
from typing import TYPE_CHECKING, Any, Protocol

from compiler.symbol_table import SymbolTableCompiler
from contract.artifacts import artifact_filename
from loaders.bootstrap import Bootstrapper
from scan.artifacts import scan_artifacts
from stubs.plan import ReconciliationPlan, compute_plan
from stubs.report import Reporter

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from contract.artifacts import ArtifactRecord
    from manifest.resolver import Dependency, DependencyManifest

log = logging.getLogger(__name__)


class UnknownDependencyError(Exception):
    """Raised when a requested dependency is not part of the manifest."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Cannot find dependency '{name}'")


class Compiler(Protocol):
    def compile(self, dependency: Dependency) -> str: ...


class Loader(Protocol):
    def load(self) -> Any: ...


class Generator:
    """Writes one stub per dependency into ``out_dir`` and keeps it in sync.

    Args:
        out_dir: Directory holding ``<name>@<version>.pyi`` files.
        manifest: Source of the expected dependency snapshot.
        bootstrapper: Prepares the process before anything is compiled
            (default: a :class:`Bootstrapper` for ``manifest``).
        compiler: Renders stub text for one dependency.
        reporter: Console status output.
    """

    def __init__(
        self,
        *,
        out_dir: Path,
        manifest: DependencyManifest,
        bootstrapper: Loader | None = None,
        compiler: Compiler | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        self.out_dir = out_dir
        self.manifest = manifest
        self.bootstrapper = bootstrapper if bootstrapper is not None else Bootstrapper(manifest)
        self.compiler = compiler if compiler is not None else SymbolTableCompiler()
        self.reporter = reporter if reporter is not None else Reporter()

    @cached_property
    def existing_artifacts(self) -> dict[str, ArtifactRecord]:
        return scan_artifacts(self.out_dir)

    @property
    def existing_stubs(self) -> dict[str, str]:
        return {name: record.version for name, record in self.existing_artifacts.items()}

    @cached_property
    def expected_stubs(self) -> dict[str, str]:
        return {
            dependency.name: dependency.version
            for dependency in self.manifest.dependencies()
        }

    def refresh(self) -> None:
        """Forget the memoized existing and expected state."""
        self.__dict__.pop("existing_artifacts", None)
        self.__dict__.pop("expected_stubs", None)

    def plan(self) -> ReconciliationPlan:
        return compute_plan(self.existing_stubs, self.expected_stubs)

    def stub_path(self, name: str, version: str) -> Path:
        return self.out_dir / artifact_filename(name, version)

    def build_dependency_stubs(self, names: Sequence[str] = ()) -> list[Path]:
        """Generate stubs for the named dependencies, or for all of them.

        Raises:
            UnknownDependencyError: If a name is not in the manifest. Raised
                before anything is loaded or written.
        """
        dependencies = self.dependencies_to_generate(names)
        # An inconsistent output directory fails before anything is loaded.
        self.existing_artifacts  # noqa: B018
        self.require_dependencies()

        written = []
        for dependency in dependencies:
            self.reporter.say(f"Processing '{dependency.name}' dependency:", "green")
            with self.reporter.indent():
                self._move_existing(dependency)
                written.append(self.compile_stub(dependency))
                self.reporter.newline()

        self.refresh()
        self._say_done()
        return written

    def sync_stubs_with_manifest(self) -> bool:
        """Converge ``out_dir`` on the manifest; return True if anything changed."""
        plan = self.plan()
        log.debug("Reconciliation plan: removals=%s updates=%s", plan.removals, plan.updates)
        changed = self.apply(plan)

        if changed:
            self._say_done()
        else:
            self.reporter.say(
                "No operations performed, all stubs are up-to-date.", "green", "bold"
            )
        self.reporter.newline()

        self.refresh()
        return changed

    def apply(self, plan: ReconciliationPlan) -> bool:
        removed = self._perform_removals(plan.removals)
        added = self._perform_additions(plan.updates)
        return removed or added

    def dependencies_to_generate(self, names: Sequence[str]) -> list[Dependency]:
        if not names:
            return list(self.manifest.dependencies())

        dependencies = []
        for name in names:
            dependency = self.manifest.dependency(name)
            if dependency is None:
                raise UnknownDependencyError(name)
            dependencies.append(dependency)
        return dependencies

    def require_dependencies(self) -> None:
        self.bootstrapper.load()

    def compile_stub(self, dependency: Dependency) -> Path:
        self.reporter.say(f"Compiling {dependency.name}, this may take a few seconds...")

        content = self.compiler.compile(dependency)

        self.out_dir.mkdir(parents=True, exist_ok=True)
        path = self.stub_path(dependency.name, dependency.version)
        path.write_text(content, encoding="utf-8")

        self.reporter.say(f"Compiled {path}")
        return path

    def _perform_removals(self, names: Sequence[str]) -> bool:
        self.reporter.say(
            "Removing stub files of dependencies that have been removed:", "blue", "bold"
        )
        self.reporter.newline()

        with self.reporter.indent():
            if not names:
                self.reporter.say("Nothing to do.")
            for name in names:
                record = self.existing_artifacts.get(name)
                if record is not None:
                    self._remove(record.path)

        self.reporter.newline()
        return bool(names)

    def _perform_additions(self, names: Sequence[str]) -> bool:
        self.reporter.say(
            "Generating stub files of dependencies that are added or updated:",
            "blue",
            "bold",
        )
        self.reporter.newline()

        with self.reporter.indent():
            if not names:
                self.reporter.say("Nothing to do.")
            else:
                self.require_dependencies()

            for name in names:
                dependency = self.manifest.dependency(name)
                if dependency is None:
                    raise UnknownDependencyError(name)

                self._move_existing(dependency)
                path = self.compile_stub(dependency)
                self.reporter.say(f"++ Adding: {path}", "green")
                self.reporter.newline()

        self.reporter.newline()
        return bool(names)

    def _move_existing(self, dependency: Dependency) -> None:
        record = self.existing_artifacts.get(dependency.name)
        target = self.stub_path(dependency.name, dependency.version)
        if record is None or record.path == target or not record.path.exists():
            return
        self.reporter.say(f"-> Moving: {record.path} to {target}", "green")
        record.path.rename(target)

    def _remove(self, path: Path) -> None:
        self.reporter.say(f"-- Removing: {path}", "green")
        path.unlink(missing_ok=True)

    def _say_done(self) -> None:
        self.reporter.say("All operations performed in working directory.", "green", "bold")
        self.reporter.say("Please review changes and commit them.", "green", "bold")


__all__ = ["Compiler", "Generator", "Loader", "UnknownDependencyError"]
