"""Preparing the process before dependencies are introspected."""

from loaders.bootstrap import BootstrapReport, Bootstrapper
from loaders.engines import EngineLoader, EngineLoadResult, substituted_application
from loaders.framework import FrameworkCapabilities, HostFramework, detect_host_framework
from loaders.isolation import IsolatedResult, run_isolated
from loaders.require import require_dependency, require_file, require_helper, safe_require
from loaders.states import AutoloadMode, BootstrapState

__all__ = [
    "AutoloadMode",
    "BootstrapReport",
    "BootstrapState",
    "Bootstrapper",
    "EngineLoadResult",
    "EngineLoader",
    "FrameworkCapabilities",
    "HostFramework",
    "IsolatedResult",
    "detect_host_framework",
    "require_dependency",
    "require_file",
    "require_helper",
    "run_isolated",
    "safe_require",
    "substituted_application",
]
