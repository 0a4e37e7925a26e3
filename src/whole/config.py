"""
Whole - Configuration and settings.

Settings are read from the environment / .env file. Nothing is loaded at
import time: use get_settings() or the lazy `settings` proxy.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class WholeSettings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase
    supabase_url: str
    supabase_anon_key: str

    # Application
    whole_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Entitlement
    free_quota: int = 10  # Feed positions a free user can browse before upsell
    trial_reminder_hours: int = 24  # Remind this long before the trial ends

    # Shared with the widget process (app group container)
    widget_defaults_path: Path = Path("shared/group.com.wholeapp.shared.json")

    # Dev user for the CLI
    dev_user_id: str = "00000000-0000-0000-0000-000000000001"

    @property
    def is_development(self) -> bool:
        return self.whole_env == "development"

    @property
    def is_production(self) -> bool:
        return self.whole_env == "production"


@lru_cache
def get_settings() -> WholeSettings:
    """Get cached settings instance."""
    return WholeSettings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: WholeSettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
