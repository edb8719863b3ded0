"""Configuration package for Lumina."""

from lumina.config.app_config import (
    AppConfig,
    DatabaseConfig,
    GeneratorConfig,
    ProviderConfig,
    ServerConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "GeneratorConfig",
    "ProviderConfig",
    "ServerConfig",
    "clear_config_cache",
    "load_app_config",
]
