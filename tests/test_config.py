"""
Tests for configuration loading.
"""

import json
from pathlib import Path

import pytest

from registry.config import DEFAULT_CONFIG_TOML, Config, load_config, reload_config
from registry.errors import ConfigurationError
from schemas.registry import GitSource, LocalSource

TOML_CONFIG = """
[logging]
level = "DEBUG"

[registry]
cache_dir = "cache"
cache_ttl = 120

[[registry.registries]]
name = "local"
priority = 0

[registry.registries.source]
type = "local"
path = "./my-templates"

[[registry.registries]]
name = "company"
priority = 10
enabled = false

[registry.registries.source]
type = "git"
url = "https://example.com/templates.git"
branch = "main"
"""


class TestLoadConfig:
    """Loading from files and environment."""

    def test_toml(self, tmp_path: Path):
        path = tmp_path / "templates.toml"
        path.write_text(TOML_CONFIG, encoding="utf-8")

        config = load_config(path)

        assert config.source_path == path
        assert config.logging.level == "DEBUG"
        assert config.registry.cache_ttl == 120
        assert config.registry.cache_dir == tmp_path.resolve() / "cache"

        local, company = config.registry.registries
        assert isinstance(local.source, LocalSource)
        assert local.source.path == tmp_path.resolve() / "my-templates"
        assert isinstance(company.source, GitSource)
        assert company.enabled is False
        assert [entry.name for entry in config.registry.active_entries()] == ["local"]

    def test_json(self, tmp_path: Path):
        path = tmp_path / "templates.json"
        path.write_text(
            json.dumps(
                {
                    "registry": {
                        "registries": [
                            {
                                "name": "archive",
                                "source": {"type": "http", "url": "https://example.com/t.tgz"},
                            }
                        ]
                    }
                }
            ),
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.registry.registries[0].source_type == "http"

    def test_missing_registries_uses_default_entry(self, tmp_path: Path):
        path = tmp_path / "templates.toml"
        path.write_text("[registry]\ncache_ttl = 5\n", encoding="utf-8")

        config = load_config(path)

        assert config.registry.cache_ttl == 5
        assert [entry.name for entry in config.registry.registries] == ["local"]

    def test_explicit_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path: Path):
        path = tmp_path / "templates.toml"
        path.write_text("[registry\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Failed to read"):
            load_config(path)

    def test_invalid_registry(self, tmp_path: Path):
        path = tmp_path / "templates.json"
        path.write_text(
            json.dumps({"registry": {"registries": [{"name": "x", "source": {"type": "ftp"}}]}}),
            encoding="utf-8",
        )

        with pytest.raises(ConfigurationError, match="Invalid registry configuration"):
            load_config(path)

    def test_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        path = tmp_path / "templates.toml"
        path.write_text(TOML_CONFIG, encoding="utf-8")
        monkeypatch.setenv("TEMPLATE_CACHE_DIR", str(tmp_path / "elsewhere"))
        monkeypatch.setenv("TEMPLATE_CACHE_TTL", "7")
        monkeypatch.setenv("LOG_LEVEL", "INFO")

        config = load_config(path)

        assert config.registry.cache_dir == tmp_path / "elsewhere"
        assert config.registry.cache_ttl == 7
        assert config.logging.level == "INFO"

    def test_invalid_env_ttl_ignored(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        path = tmp_path / "templates.toml"
        path.write_text(TOML_CONFIG, encoding="utf-8")
        monkeypatch.setenv("TEMPLATE_CACHE_TTL", "soon")

        assert load_config(path).registry.cache_ttl == 120

    def test_discovers_file_in_parent(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        (tmp_path / "templates.toml").write_text(TOML_CONFIG, encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        config = reload_config()

        assert config.source_path.resolve() == (tmp_path / "templates.toml").resolve()

    def test_default_config_file_is_valid(self, tmp_path: Path):
        path = tmp_path / "templates.toml"
        path.write_text(DEFAULT_CONFIG_TOML, encoding="utf-8")

        config = load_config(path)

        assert config.registry.registries[0].source.path == tmp_path.resolve() / "templates"


def test_config_defaults():
    config = Config()

    assert config.registry.registries[0].name == "local"
    assert config.logging.level == "WARNING"
    assert config.source_path is None
