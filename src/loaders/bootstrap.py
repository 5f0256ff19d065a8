"""Bootstrap of the host project before its dependencies are introspected.

The goal is to get as much of the class and module graph loaded as
possible. Nothing here is fatal: a missing hook is skipped, a broken host
application is reported and left out, and every other step degrades on its
own.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loaders.engines import EngineLoader
from loaders.framework import FRAMEWORK_MODULE, HostFramework, detect_host_framework
from loaders.isolation import IsolatedResult, failures, run_isolated
from loaders.require import require_file, require_helper
from loaders.states import AutoloadMode, BootstrapState

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from pathlib import Path

    from manifest.resolver import DependencyManifest

log = logging.getLogger(__name__)

APPLICATION_FILE = "config/application.py"
ENVIRONMENT_FILE = "config/environment.py"


@dataclass
class BootstrapReport:
    states: list[BootstrapState] = field(
        default_factory=lambda: [BootstrapState.NOT_STARTED]
    )
    host_loaded: bool = False
    engines: list[str] = field(default_factory=list)
    mode: AutoloadMode | None = None
    results: list[IsolatedResult] = field(default_factory=list)

    @property
    def state(self) -> BootstrapState:
        return self.states[-1]

    @property
    def failures(self) -> list[IsolatedResult]:
        return failures(self.results)

    def reached(self, state: BootstrapState) -> None:
        self.states.append(state)


def _eager_load_namespaces(namespaces: Iterable[Any]) -> None:
    for namespace in namespaces:
        namespace.eager_load()


class Bootstrapper:
    """Loads hooks, the host application, the dependency bundle and engines.

    Args:
        manifest: Dependency manifest; its ``root`` is the project root.
        app_root: Directory holding ``config/application.py`` (default: the
            project root).
        prerequire: Optional file loaded before anything else.
        postrequire: Optional file loaded after the bundle is activated.
        environment_load: Load ``config/environment.py`` instead of
            ``config/application.py``.
        eager_load: Eager load the host application once it is loaded.
        detect: Host framework detection, called at each boundary where the
            framework may have been imported.
    """

    def __init__(
        self,
        manifest: DependencyManifest,
        *,
        app_root: Path | None = None,
        prerequire: str | None = None,
        postrequire: str | None = None,
        environment_load: bool = False,
        eager_load: bool = False,
        detect: Callable[[], HostFramework] = detect_host_framework,
        install_dirs: Sequence[Path] | None = None,
    ) -> None:
        self.manifest = manifest
        self.app_root = app_root if app_root is not None else manifest.root
        self.prerequire = prerequire
        self.postrequire = postrequire
        self.environment_load = environment_load
        self.eager_load = eager_load
        self.detect = detect
        self.install_dirs = install_dirs
        self._report: BootstrapReport | None = None

    def load(self) -> BootstrapReport:
        """Run the bootstrap sequence once and return what it achieved."""
        if self._report is not None:
            return self._report

        report = BootstrapReport()
        self._report = report

        self._run_hook(self.prerequire, report)
        report.reached(BootstrapState.PRE_HOOK_RUN)

        report.host_loaded = self.load_host_application(report)
        report.reached(
            BootstrapState.HOST_LOADED if report.host_loaded else BootstrapState.HOST_SKIPPED
        )

        activation = run_isolated(self.manifest.activate, label="bundle")
        if not activation.ok:
            log.warning("Activating the dependency bundle failed: %s", activation.error)
        report.results.append(activation)
        report.reached(BootstrapState.BUNDLE_ACTIVATED)

        self._run_hook(self.postrequire, report)
        report.reached(BootstrapState.POST_HOOK_RUN)

        self.load_engines(report)
        report.reached(BootstrapState.DONE)
        return report

    def _run_hook(self, path: str | None, report: BootstrapReport) -> None:
        if not path:
            return
        result = run_isolated(require_helper, path, label=f"hook:{path}")
        if not result.ok:
            log.warning("Loading %s failed: %s", path, result.error)
        report.results.append(result)

    def load_host_application(self, report: BootstrapReport) -> bool:
        """Load the host application if the project has one.

        Returns:
            True when the application entry file loaded without error.
        """
        application_file = self.app_root / APPLICATION_FILE
        if not application_file.exists():
            return False

        self._silence_deprecations()
        entry_file = self.app_root / (
            ENVIRONMENT_FILE if self.environment_load else APPLICATION_FILE
        )
        self._add_app_root_to_path()

        try:
            require_file(entry_file)
        except Exception as exc:  # noqa: BLE001
            log.warning(
                "Attempted to load the host application after finding %s, but it "
                "failed. If your project uses %s, please ensure it can be loaded "
                "correctly before generating stubs.\n%s",
                application_file,
                FRAMEWORK_MODULE,
                exc,
                exc_info=exc,
            )
            log.warning("Continuing stub generation without loading the host application.")
            return False

        if self.eager_load:
            report.results.extend(self.eager_load_application())
        return True

    def _add_app_root_to_path(self) -> None:
        entry = str(self.app_root.resolve())
        if entry not in sys.path:
            sys.path.insert(0, entry)

    def _silence_deprecations(self) -> None:
        framework = self.detect()
        if framework.capabilities.deprecation_reporting:
            framework.module.deprecation.silenced = True

    def eager_load_application(self) -> list[IsolatedResult]:
        """Run the framework's own eager loading, each part independently."""
        framework = self.detect()
        if not framework.present:
            return []

        module = framework.module
        application = framework.application
        results: list[IsolatedResult] = []

        if framework.capabilities.load_hooks:
            results.append(
                run_isolated(
                    module.run_load_hooks,
                    "before_eager_load",
                    application,
                    label="before_eager_load",
                )
            )

        if framework.capabilities.autoloader_registry:
            results.append(run_isolated(module.eager_load_all, label="eager_load_all"))

        namespaces = getattr(getattr(application, "config", None), "eager_load_namespaces", None)
        if namespaces is not None:
            results.append(
                run_isolated(_eager_load_namespaces, namespaces, label="eager_load_namespaces")
            )

        return results

    def load_engines(self, report: BootstrapReport) -> None:
        loader = EngineLoader(
            self.detect(), self.manifest.root, install_dirs=self.install_dirs
        )
        try:
            result = loader.load(report.reached)
        except Exception as exc:  # noqa: BLE001
            log.warning("Loading engines failed: %s", exc, exc_info=exc)
            report.results.append(IsolatedResult(ok=False, label="engines", error=exc))
            return

        report.engines = result.engines
        report.mode = result.mode
        report.results.extend(result.results)


__all__ = ["APPLICATION_FILE", "ENVIRONMENT_FILE", "BootstrapReport", "Bootstrapper"]
