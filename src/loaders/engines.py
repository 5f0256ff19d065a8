"""Loading of engines bundled with the project's dependencies.

Engines contribute initializers and code that only becomes visible once
their initializers have run and their directories have been eager loaded.
Every initializer, autoloader and directory is loaded behind its own failure
boundary so one broken engine never hides the others.
"""

from __future__ import annotations

import logging
import sysconfig
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from graph.algos import topological_order
from loaders.isolation import IsolatedResult, failures, run_isolated
from loaders.require import require_dependency
from loaders.states import AutoloadMode, BootstrapState
from scan.files import find_python_files

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from loaders.framework import HostFramework

log = logging.getLogger(__name__)


@dataclass
class EngineLoadResult:
    engines: list[str] = field(default_factory=list)
    mode: AutoloadMode | None = None
    results: list[IsolatedResult] = field(default_factory=list)

    @property
    def failures(self) -> list[IsolatedResult]:
        return failures(self.results)


@contextmanager
def substituted_application(handle: Any, factory: Callable[[], Any]) -> Iterator[Any]:
    """Make sure ``handle.current`` holds an application while the block runs.

    Some engines expect a live application during their initializers. When
    the handle is empty a placeholder from ``factory`` is installed; on every
    exit path the handle gets back exactly what it held before.
    """
    original = handle.current
    try:
        if original is None:
            handle.current = factory()
        yield handle.current
    finally:
        handle.current = original


def installation_dirs() -> list[Path]:
    """Directories where installed distributions live."""
    paths = sysconfig.get_paths()
    return sorted({Path(paths[key]).resolve() for key in ("purelib", "platlib")})


def in_project(
    engine_root: str | Path | None,
    project_root: Path,
    install_dirs: Sequence[Path],
) -> bool:
    """Return True when an engine is part of the analyzed project itself.

    An engine installed into a virtualenv that happens to live inside the
    project directory is still external.
    """
    if engine_root is None:
        return False
    resolved = Path(engine_root).resolve()
    if not resolved.is_relative_to(project_root.resolve()):
        return False
    return not any(resolved.is_relative_to(path) for path in install_dirs)


def _engine_name(engine: type) -> str:
    return f"{engine.__module__}.{engine.__qualname__}"


def ordered_initializers(engine: Any) -> list[Any]:
    """An engine's initializers in an order honouring every ``before``/``after``.

    Raises:
        CycleError: If the constraints contradict each other.
    """
    initializers = engine.initializers()
    by_name = {item.name: item for item in initializers}
    graph = {item.name: set(item.after) for item in initializers}
    for item in initializers:
        for target in item.before:
            if target in graph:
                graph[target].add(item.name)
    return [by_name[name] for name in topological_order(graph)]


def _load_tree(path: Path) -> None:
    if not path.is_dir():
        return
    for file_path in find_python_files(path):
        require_dependency(file_path)


class EngineLoader:
    """Discovers external engines and loads them into the process."""

    def __init__(
        self,
        framework: HostFramework,
        project_root: Path,
        *,
        install_dirs: Sequence[Path] | None = None,
    ) -> None:
        self.framework = framework
        self.project_root = project_root
        self.install_dirs = (
            list(install_dirs) if install_dirs is not None else installation_dirs()
        )

    def engines(self) -> list[type]:
        """Concrete engines that come from outside the project, in definition order."""
        if not (self.framework.present and self.framework.capabilities.engines):
            return []

        return [
            engine
            for engine in self.framework.module.Engine.descendants()
            if not engine.abstract
            and not in_project(engine.root, self.project_root, self.install_dirs)
        ]

    def load(
        self,
        on_state: Callable[[BootstrapState], None] | None = None,
    ) -> EngineLoadResult:
        def reached(state: BootstrapState) -> None:
            if on_state is not None:
                on_state(state)

        engines = self.engines()
        result = EngineLoadResult(engines=[_engine_name(engine) for engine in engines])
        if not engines:
            return result
        reached(BootstrapState.ENGINES_DISCOVERED)

        module = self.framework.module
        with substituted_application(
            module.handle, lambda: module.Application(root=self.project_root)
        ) as application:
            result.results.extend(self.run_initializers(engines, application))
            reached(BootstrapState.INITIALIZERS_RUN)

            if self.framework.capabilities.registry_autoloading:
                result.mode = AutoloadMode.REGISTRY
                result.results.extend(self.load_in_registry_mode(reached))
            else:
                result.mode = AutoloadMode.DIRECTORY
                reached(BootstrapState.AUTOLOAD_SETUP)
                result.results.extend(self.load_in_directory_mode(engines))
            reached(BootstrapState.EAGER_LOAD_ATTEMPTED)

        return result

    def run_initializers(self, engines: list[type], application: Any) -> list[IsolatedResult]:
        results: list[IsolatedResult] = []
        for engine in engines:
            name = _engine_name(engine)
            try:
                initializers = ordered_initializers(engine.instance())
            except Exception as exc:  # noqa: BLE001
                log.warning("Skipping initializers of engine %s: %s", name, exc)
                results.append(IsolatedResult(ok=False, label=name, error=exc))
                continue

            for initializer in initializers:
                results.append(
                    run_isolated(
                        initializer.run, application, label=f"{name}:{initializer.name}"
                    )
                )
        return results

    def load_in_registry_mode(
        self, reached: Callable[[BootstrapState], None]
    ) -> list[IsolatedResult]:
        module = self.framework.module
        dependencies = module.dependencies
        paths = dict.fromkeys(
            [*dependencies.autoload_once_paths, *dependencies.autoload_paths]
        )

        autoloader = module.Autoloader(name="engines")
        try:
            for path in paths:
                if Path(path).is_dir():
                    autoloader.push_dir(path)

            results = [run_isolated(autoloader.setup, label="engines:setup")]
            reached(BootstrapState.AUTOLOAD_SETUP)

            # Each loader on its own: a loader that raises must not stop the rest.
            for loader in list(module.registry.loaders):
                label = f"eager_load:{getattr(loader, 'name', loader)!s}"
                results.append(run_isolated(loader.eager_load, label=label))
        finally:
            module.registry.unregister(autoloader)
        return results

    def load_in_directory_mode(self, engines: list[type]) -> list[IsolatedResult]:
        results: list[IsolatedResult] = []
        for engine in engines:
            name = _engine_name(engine)
            try:
                load_paths = list(engine.instance().eager_load_dirs())
            except Exception as exc:  # noqa: BLE001
                results.append(IsolatedResult(ok=False, label=name, error=exc))
                continue

            for load_path in load_paths:
                results.append(
                    run_isolated(_load_tree, Path(load_path), label=f"{name}:{load_path}")
                )
        return results


__all__ = [
    "EngineLoadResult",
    "EngineLoader",
    "in_project",
    "installation_dirs",
    "ordered_initializers",
    "substituted_application",
]
