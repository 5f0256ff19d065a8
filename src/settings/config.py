from __future__ import annotations

from pathlib import Path
from typing import Any

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils import canonical_name

CONFIG_FILENAME = "depstubs.toml"


class DepStubsConfig(BaseModel):
    """Configuration for depstubs stub generation."""

    model_config = ConfigDict(extra="forbid")

    output_dir: str = Field(
        default="stubs/deps",
        description="Output directory for generated stubs, relative to the root",
    )
    manifest: str = Field(
        default="pyproject.toml",
        description="Manifest declaring the project's dependencies",
    )
    prerequire: str | None = Field(
        default=None,
        description="File loaded before the host application and dependencies",
    )
    postrequire: str | None = Field(
        default=None,
        description="File loaded after the dependencies are imported",
    )
    app_root: str = Field(
        default=".",
        description="Directory holding config/application.py",
    )
    environment_load: bool = Field(
        default=False,
        description="Load config/environment.py instead of config/application.py",
    )
    eager_load: bool = Field(
        default=False,
        description="Eager load the host application before generating",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Dependencies to leave out of generation and sync",
    )
    transitive: bool = Field(
        default=True,
        description="Include the dependencies of declared dependencies",
    )

    @field_validator("exclude", mode="before")
    @classmethod
    def validate_exclude(cls, v: Any) -> Any:
        """Normalize excluded names so they compare like manifest names.

        Note: this runs in `mode="before"` so we can report a clear error
        message using the raw TOML values.
        """

        if v is None:
            return []

        if not isinstance(v, list) or not all(isinstance(name, str) for name in v):
            msg = "exclude must be a list of dependency names"
            raise TypeError(msg)

        return [canonical_name(name) for name in v]


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def resolve_output_dir(root: Path, output_dir: str) -> Path:
    """Resolve a config-provided output_dir safely within the project root.

    The config output_dir must be a non-empty relative path that remains
    within the project root after resolution. Absolute paths and paths
    that escape the root are rejected.
    """
    if not output_dir:
        msg = "output_dir must be a non-empty relative path"
        raise ConfigError(msg)

    if output_dir.startswith("~"):
        msg = "output_dir must be a relative path within the project root"
        raise ConfigError(msg)

    output_path = Path(output_dir)
    if output_path.is_absolute():
        msg = "output_dir must be a relative path within the project root"
        raise ConfigError(msg)

    try:
        resolved_root = root.resolve()
        resolved_output = (resolved_root / output_path).resolve()
    except OSError as exc:
        msg = f"Failed to resolve output_dir '{output_dir}': {exc}"
        raise ConfigError(msg) from exc

    try:
        resolved_output.relative_to(resolved_root)
    except ValueError as exc:
        msg = f"output_dir '{output_dir}' escapes the project root"
        raise ConfigError(msg) from exc

    return resolved_output


def load_config(root: Path) -> DepStubsConfig:
    """Load configuration from depstubs.toml if it exists."""
    config_path = root / CONFIG_FILENAME

    if not config_path.is_file():
        return DepStubsConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return DepStubsConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
