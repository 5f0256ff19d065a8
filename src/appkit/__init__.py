"""A small application framework: engines, initializers and autoloading.

Host projects import it from ``config/application.py``; depstubs detects it
there and uses it to load every engine the project's dependencies ship.
"""

from appkit.application import Application, ApplicationConfig, ApplicationHandle, handle
from appkit.autoload import (
    Autoloader,
    Autoloaders,
    Dependencies,
    Registry,
    autoloaders,
    dependencies,
    eager_load_all,
    registry,
)
from appkit.engine import Engine, Initializer, initializer
from appkit.support import Deprecation, deprecation, on_load, run_load_hooks

__all__ = [
    "Application",
    "ApplicationConfig",
    "ApplicationHandle",
    "Autoloader",
    "Autoloaders",
    "Dependencies",
    "Deprecation",
    "Engine",
    "Initializer",
    "Registry",
    "autoloaders",
    "dependencies",
    "deprecation",
    "eager_load_all",
    "handle",
    "initializer",
    "on_load",
    "registry",
    "run_load_hooks",
]
