from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class ApplicationConfig:
    root: Path = field(default_factory=Path.cwd)
    eager_load: bool = False
    eager_load_namespaces: list[Any] = field(default_factory=list)


class Application:
    """The host application. Projects subclass it in ``config/application.py``."""

    def __init__(self, root: str | Path | None = None) -> None:
        resolved = Path(root).resolve() if root is not None else Path.cwd()
        self.config = ApplicationConfig(root=resolved)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} root={self.config.root}>"


class ApplicationHandle:
    """Holder for the one live application of the process."""

    def __init__(self) -> None:
        self.current: Application | None = None

    def install(self, application: Application) -> Application:
        self.current = application
        return application


handle = ApplicationHandle()
