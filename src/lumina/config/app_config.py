"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
(or the file named by LUMINA_CONFIG), falling back to built-in defaults.

Usage:
    from lumina.config.app_config import load_app_config

    config = load_app_config()
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")
CONFIG_ENV = "LUMINA_CONFIG"
DB_PATH_ENV = "LUMINA_DB_PATH"


@dataclass
class ProviderConfig:
    """Configuration for a single generative-text provider."""

    base_url: str | None
    default_model: str
    api_key_env: str | None = None
    supports_json_schema: bool = False

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


@dataclass
class GeneratorConfig:
    """Defaults for lesson generation calls."""

    default_provider: str = "gemini"
    temperature: float = 0.7
    max_tokens: int = 8192
    timeout: int = 180


@dataclass
class DatabaseConfig:
    """SQLite store location."""

    path: str = "homeschool.db"


@dataclass
class ServerConfig:
    """HTTP server and login defaults."""

    host: str = "0.0.0.0"
    port: int = 3000
    email_domain: str = "lumina.edu"


@dataclass
class AppConfig:
    """Application-wide configuration."""

    providers: dict[str, ProviderConfig] = field(default_factory=dict)
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "providers": {
            "gemini": {
                "base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
                "default_model": "gemini-2.5-flash",
                "api_key_env": "GEMINI_API_KEY",
                "supports_json_schema": True,
            },
            "openai": {
                "base_url": "https://api.openai.com/v1",
                "default_model": "gpt-4o-mini",
                "api_key_env": "OPENAI_API_KEY",
                "supports_json_schema": True,
            },
            "lmstudio": {
                "base_url": "http://localhost:1234/v1",
                "default_model": "llama-3.2-3b-instruct",
                "api_key_env": None,
                "supports_json_schema": False,
            },
        },
        "generator": {
            "default_provider": "gemini",
            "temperature": 0.7,
            "max_tokens": 8192,
            "timeout": 180,
        },
        "database": {"path": "homeschool.db"},
        "server": {"host": "0.0.0.0", "port": 3000, "email_domain": "lumina.edu"},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    providers = {}
    for name, pconfig in (data.get("providers") or defaults["providers"]).items():
        providers[name] = ProviderConfig(
            base_url=pconfig.get("base_url"),
            default_model=pconfig.get("default_model", "default"),
            api_key_env=pconfig.get("api_key_env"),
            supports_json_schema=bool(pconfig.get("supports_json_schema", False)),
        )

    gen_data = {**defaults["generator"], **(data.get("generator") or {})}
    generator = GeneratorConfig(
        default_provider=gen_data["default_provider"],
        temperature=float(gen_data["temperature"]),
        max_tokens=int(gen_data["max_tokens"]),
        timeout=int(gen_data["timeout"]),
    )

    db_data = {**defaults["database"], **(data.get("database") or {})}
    database = DatabaseConfig(path=os.environ.get(DB_PATH_ENV, db_data["path"]))

    server_data = {**defaults["server"], **(data.get("server") or {})}
    server = ServerConfig(
        host=server_data["host"],
        port=int(server_data["port"]),
        email_domain=server_data["email_domain"],
    )

    return AppConfig(
        providers=providers,
        generator=generator,
        database=database,
        server=server,
    )


def load_app_config(
    config_path: Path | None = None,
    force_reload: bool = False,
) -> AppConfig:
    """Load application config, using defaults when no file is present.

    Args:
        config_path: Explicit config file. Defaults to $LUMINA_CONFIG or
            data/config/app_config_v1.yaml.
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload and config_path is None:
        return _cached_config

    if config_path is None:
        config_path = Path(os.environ.get(CONFIG_ENV, CONFIG_FILE))

    data: dict[str, Any]
    if config_path.exists():
        logger.debug("loading_app_config", source=str(config_path))
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache."""
    global _cached_config
    _cached_config = None
