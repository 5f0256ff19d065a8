from settings.config import (
    CONFIG_FILENAME,
    ConfigError,
    DepStubsConfig,
    load_config,
    resolve_output_dir,
)

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DepStubsConfig",
    "load_config",
    "resolve_output_dir",
]
