"""Configuration management for the template registry.

Loads configuration from:
1. templates.toml or templates.json (defaults)
2. Environment variables and .env (overrides)

Relative paths in a config file (local template directories, the cache
directory) are resolved against the directory holding that file.
"""

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from registry.errors import ConfigurationError
from schemas.registry import RegistryConfig

CONFIG_FILE_NAMES = ("templates.toml", "templates.json")

DEFAULT_CONFIG_TOML = '''# Template registry configuration

[logging]
level = "WARNING"

[registry]
cache_dir = ".template_cache"
cache_ttl = 3600  # seconds

[[registry.registries]]
name = "local"
enabled = true
priority = 0

[registry.registries.source]
type = "local"
path = "./templates"

# [[registry.registries]]
# name = "company-git"
# enabled = true
# priority = 10
#
# [registry.registries.source]
# type = "git"
# url = "https://github.com/acme/project-templates.git"
# branch = "main"
# subfolder = "templates"
# auth = { username = "ci-bot", token = "..." }

# [[registry.registries]]
# name = "archive"
# priority = 20
#
# [registry.registries.source]
# type = "http"
# url = "https://example.com/templates.tar.gz"
# checksum = "sha256:..."

# [[registry.registries]]
# name = "npm"
# priority = 30
#
# [registry.registries.source]
# type = "npm"
# package = "@acme/project-templates"
# version = "1.2.0"
'''


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "%(message)s"


@dataclass
class Config:
    """Main configuration container."""

    registry: RegistryConfig = field(default_factory=RegistryConfig.default)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    source_path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], source_path: Path | None = None) -> "Config":
        """Create Config from dictionary.

        Raises:
            ConfigurationError: If the registry section is invalid.
        """
        registry_data = data.get("registry", {})
        logging_data = data.get("logging", {})

        if not isinstance(registry_data, dict) or not isinstance(logging_data, dict):
            raise ConfigurationError("'registry' and 'logging' must be tables")

        if "registries" not in registry_data and "entries" not in registry_data:
            default = RegistryConfig.default()
            registry_data = {
                **registry_data,
                "registries": [entry.model_dump() for entry in default.registries],
            }

        try:
            registry = RegistryConfig.model_validate(registry_data)
        except ValidationError as e:
            where = f" in {source_path}" if source_path else ""
            raise ConfigurationError(f"Invalid registry configuration{where}: {e}")

        try:
            logging_config = LoggingConfig(**logging_data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid logging configuration: {e}")

        return cls(registry=registry, logging=logging_config, source_path=source_path)


def find_config_file() -> Path | None:
    """Find a registry config file in current or parent directories.

    Returns:
        Path to templates.toml/templates.json or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        for name in CONFIG_FILE_NAMES:
            config_path = directory / name
            if config_path.exists():
                return config_path

    return None


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        if path.suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        else:
            with open(path, "rb") as f:
                data = tomllib.load(f)
    except (OSError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {path}")
    return data


def _resolve_relative_paths(registry_data: dict[str, Any], base_dir: Path) -> None:
    """Anchor relative paths from a config file at the file's directory."""
    cache_dir = registry_data.get("cache_dir")
    if isinstance(cache_dir, str) and not Path(cache_dir).expanduser().is_absolute():
        registry_data["cache_dir"] = str(base_dir / cache_dir)

    for key in ("registries", "entries"):
        for entry in registry_data.get(key) or []:
            source = entry.get("source") if isinstance(entry, dict) else None
            if not isinstance(source, dict) or source.get("type") != "local":
                continue
            path = source.get("path")
            if isinstance(path, str) and not Path(path).expanduser().is_absolute():
                source["path"] = str(base_dir / path)


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to a config file.

    Returns:
        Config object with merged settings.

    Raises:
        ConfigurationError: If the file is unreadable or invalid.
    """
    load_dotenv()

    config_data: dict[str, Any] = {}
    path: Path | None = None

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
    else:
        path = find_config_file()

    if path is not None:
        config_data = _read_config_file(path)
        registry_data = config_data.setdefault("registry", {})
        if isinstance(registry_data, dict):
            _resolve_relative_paths(registry_data, path.parent.resolve())

    # Apply environment variable overrides
    env_overrides = {
        "registry": {
            "cache_dir": os.getenv("TEMPLATE_CACHE_DIR"),
            "cache_ttl": _int_or_none(os.getenv("TEMPLATE_CACHE_TTL")),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if not isinstance(config_data.get(section), dict):
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return Config.from_dict(config_data, source_path=path)


def _int_or_none(value: str | None) -> int | None:
    """Convert string to int, or return None."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Path | str | None = None) -> Config:
    """Force reload of configuration.

    Returns:
        Fresh Config object.
    """
    global _config
    _config = load_config(config_path)
    return _config
