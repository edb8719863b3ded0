"""Tests for the application config loader."""

import pytest

from lumina.config.app_config import (
    DB_PATH_ENV,
    clear_config_cache,
    load_app_config,
)


@pytest.fixture(autouse=True)
def fresh_cache():
    clear_config_cache()
    yield
    clear_config_cache()


class TestDefaults:
    """Tests for built-in defaults."""

    def test_missing_file_uses_defaults(self, tmp_path):
        """Without a file every section has its default."""
        config = load_app_config(tmp_path / "missing.yaml")

        assert config.generator.default_provider == "gemini"
        assert config.database.path == "homeschool.db"
        assert config.server.port == 3000
        assert config.server.email_domain == "lumina.edu"
        assert set(config.providers) == {"gemini", "openai", "lmstudio"}

    def test_gemini_provider(self, tmp_path):
        config = load_app_config(tmp_path / "missing.yaml")
        gemini = config.providers["gemini"]

        assert gemini.api_key_env == "GEMINI_API_KEY"
        assert gemini.supports_json_schema is True
        assert "generativelanguage.googleapis.com" in gemini.base_url


class TestConfigFile:
    """Tests for YAML config files."""

    def test_partial_file_merges_with_defaults(self, tmp_path):
        """Sections missing from the file keep their defaults."""
        path = tmp_path / "app.yaml"
        path.write_text("server:\n  port: 8080\ngenerator:\n  default_provider: lmstudio\n")

        config = load_app_config(path)

        assert config.server.port == 8080
        assert config.server.email_domain == "lumina.edu"
        assert config.generator.default_provider == "lmstudio"
        assert config.generator.max_tokens == 8192

    def test_config_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("server:\n  email_domain: school.test\n")
        monkeypatch.setenv("LUMINA_CONFIG", str(path))

        assert load_app_config().server.email_domain == "school.test"

    def test_db_path_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv(DB_PATH_ENV, str(tmp_path / "override.db"))
        config = load_app_config(tmp_path / "missing.yaml")

        assert config.database.path == str(tmp_path / "override.db")

    def test_cache(self, tmp_path, monkeypatch):
        """Repeated loads return the cached object until cleared."""
        monkeypatch.setenv("LUMINA_CONFIG", str(tmp_path / "missing.yaml"))
        first = load_app_config()
        assert load_app_config() is first

        clear_config_cache()
        assert load_app_config() is not first


class TestProviderConfig:
    """Tests for provider lookups."""

    def test_api_key_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LUMINA_CONFIG", str(tmp_path / "missing.yaml"))
        monkeypatch.setenv("GEMINI_API_KEY", "secret")

        assert load_app_config().providers.get("gemini").get_api_key() == "secret"

    def test_keyless_provider(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LUMINA_CONFIG", str(tmp_path / "missing.yaml"))
        assert load_app_config().providers.get("lmstudio").get_api_key() is None

    def test_unknown_provider(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LUMINA_CONFIG", str(tmp_path / "missing.yaml"))
        assert load_app_config().providers.get("anthropic") is None
