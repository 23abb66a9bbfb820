"""
Tests for configuration loading from the environment.
"""

from config.settings import AppConfig, ConfigManager


class TestConfigManager:
    """Settings fall back to defaults when the environment is silent or malformed."""

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MIN_INVESTMENT", "2500")
        monkeypatch.setenv("CONFLICT_DEBOUNCE_MS", "250")
        monkeypatch.setenv("CONFLICT_LOOKUP_URL", "https://lookup.example")

        config = ConfigManager().load_config()

        assert config.min_investment == 2500.0
        assert config.conflict_debounce_seconds == 0.25
        assert config.conflict_lookup_url == "https://lookup.example"

    def test_malformed_values_use_defaults(self, monkeypatch):
        monkeypatch.setenv("MIN_INVESTMENT", "lots")
        monkeypatch.setenv("CACHE_TIMEOUT_HOURS", "1.5")
        monkeypatch.delenv("CONFLICT_LOOKUP_URL", raising=False)

        config = ConfigManager().load_config()

        assert config.min_investment == AppConfig.min_investment
        assert config.cache_timeout_hours == 24
        assert config.conflict_lookup_url is None

    def test_config_is_loaded_once(self, monkeypatch):
        manager = ConfigManager()
        first = manager.load_config()
        monkeypatch.setenv("MIN_INVESTMENT", "9999")

        assert manager.load_config() is first
