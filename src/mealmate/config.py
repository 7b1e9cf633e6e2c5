"""
MealMate - Configuration and settings.

Settings are read from the environment (or a local .env file). The recipe
provider key configured here is the shared default; users can upgrade to
their own key through the quota tracker.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class MealMateSettings(BaseSettings):
    """Application settings for the meal generation core."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Recipe provider
    recipe_api_base_url: str = "https://api.spoonacular.com"
    recipe_api_key: str = ""
    recipe_search_limit: int = 10
    recipe_http_timeout: float = 15.0

    # Quota (per provider key, per minute)
    quota_base_limit: int = 5
    quota_upgraded_limit: int = 150
    quota_window_seconds: int = 60
    quota_state_path: str = ".mealmate/rate_limit.json"
    retry_max_attempts: int = 3

    # Supabase (optional - in-memory store is used when unset)
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    documents_table: str = "user_documents"

    # Application
    mealmate_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def is_development(self) -> bool:
        return self.mealmate_env == "development"

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache
def get_settings() -> MealMateSettings:
    """Get cached settings instance."""
    return MealMateSettings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: MealMateSettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()


def configure_logging(level: str | None = None) -> None:
    """
    Attach a single stream handler to the mealmate logger tree.

    Safe to call more than once; the handler is only installed the first time.
    """
    root = logging.getLogger("mealmate")
    root.setLevel(level or settings.log_level)

    if not any(getattr(h, "_mealmate", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handler._mealmate = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # HTTP client chatter drowns out the planner logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
