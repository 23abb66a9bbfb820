"""
Configuration management for the campaign configuration engine.
Handles collaborator endpoints, validation tolerances, and environment configuration.
"""

import os
import streamlit as st
from typing import Optional
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class AppConfig:
    """Application configuration settings."""
    min_investment: float = 1000.0
    percentage_tolerance: float = 0.5
    conflict_debounce_ms: int = 500
    conflict_date_window_days: int = 14
    conflict_lookup_url: Optional[str] = None
    conflict_lookup_api_key: Optional[str] = None
    conflict_lookup_timeout_seconds: float = 10.0
    campaign_registry_path: str = "campaigns.xlsx"
    cache_timeout_hours: int = 24

    @property
    def conflict_debounce_seconds(self) -> float:
        return self.conflict_debounce_ms / 1000.0


class ConfigManager:
    """Manages application configuration and settings."""

    def __init__(self):
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load configuration from Streamlit secrets and environment."""
        if self._config is not None:
            return self._config

        self._config = AppConfig(
            min_investment=self._get_float_setting("MIN_INVESTMENT", 1000.0),
            percentage_tolerance=self._get_float_setting("PERCENTAGE_TOLERANCE", 0.5),
            conflict_debounce_ms=self._get_int_setting("CONFLICT_DEBOUNCE_MS", 500),
            conflict_date_window_days=self._get_int_setting("CONFLICT_DATE_WINDOW_DAYS", 14),
            conflict_lookup_url=self._get_secret_or_env("CONFLICT_LOOKUP_URL"),
            conflict_lookup_api_key=self._get_secret_or_env("CONFLICT_LOOKUP_API_KEY"),
            conflict_lookup_timeout_seconds=self._get_float_setting("CONFLICT_LOOKUP_TIMEOUT_SECONDS", 10.0),
            campaign_registry_path=self._get_setting("CAMPAIGN_REGISTRY_PATH", "campaigns.xlsx"),
            cache_timeout_hours=self._get_int_setting("CACHE_TIMEOUT_HOURS", 24)
        )

        return self._config

    def _get_secret_or_env(self, key: str) -> Optional[str]:
        """Get value from Streamlit secrets or environment variables."""
        # Streamlit raises when no secrets.toml exists
        try:
            if hasattr(st, 'secrets') and key in st.secrets:
                return st.secrets[key]
        except Exception:
            pass

        return os.getenv(key)

    def _get_setting(self, key: str, default: str) -> str:
        """Get string setting with default value."""
        value = self._get_secret_or_env(key)
        return value if value is not None else default

    def _get_int_setting(self, key: str, default: int) -> int:
        """Get integer setting with default value."""
        value = self._get_secret_or_env(key)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                pass
        return default

    def _get_float_setting(self, key: str, default: float) -> float:
        """Get float setting with default value."""
        value = self._get_secret_or_env(key)
        if value is not None:
            try:
                return float(value)
            except ValueError:
                pass
        return default


# Global configuration manager instance
config_manager = ConfigManager()
