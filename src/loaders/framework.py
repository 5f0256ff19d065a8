"""Detection of the host application framework and what it can do."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

FRAMEWORK_MODULE = "appkit"


@dataclass(frozen=True)
class FrameworkCapabilities:
    """Framework subsystems the loaders may use."""

    engines: bool = False
    deprecation_reporting: bool = False
    load_hooks: bool = False
    autoloader_registry: bool = False
    registry_autoloading: bool = False


@dataclass(frozen=True)
class HostFramework:
    """An imported host framework together with its capabilities.

    ``module`` is None when the project never imported the framework; every
    capability is then off.
    """

    module: Any = None
    capabilities: FrameworkCapabilities = field(default_factory=FrameworkCapabilities)

    @property
    def present(self) -> bool:
        return self.module is not None

    @property
    def handle(self) -> Any:
        return getattr(self.module, "handle", None)

    @property
    def application(self) -> Any:
        return getattr(self.handle, "current", None)


def detect_host_framework(
    name: str = FRAMEWORK_MODULE,
    modules: Mapping[str, Any] | None = None,
) -> HostFramework:
    """Describe the host framework as currently loaded in the process.

    The framework counts as present only once something (the host
    application, a dependency or a hook) has imported it; detection never
    imports it by itself.
    """
    module = (sys.modules if modules is None else modules).get(name)
    if module is None:
        return HostFramework()

    autoloaders = getattr(module, "autoloaders", None)
    autoloader_registry = hasattr(module, "registry") and callable(
        getattr(module, "eager_load_all", None)
    )
    capabilities = FrameworkCapabilities(
        engines=hasattr(module, "Engine"),
        deprecation_reporting=hasattr(module, "deprecation"),
        load_hooks=callable(getattr(module, "run_load_hooks", None)),
        autoloader_registry=autoloader_registry,
        registry_autoloading=(
            autoloader_registry
            and hasattr(module, "dependencies")
            and bool(getattr(autoloaders, "enabled", False))
        ),
    )
    return HostFramework(module=module, capabilities=capabilities)


__all__ = [
    "FRAMEWORK_MODULE",
    "FrameworkCapabilities",
    "HostFramework",
    "detect_host_framework",
]
