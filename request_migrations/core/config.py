"""Runtime settings for the request migration middleware.

Values come from the environment (or ``.env``); explicit middleware
arguments take precedence.
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MIGRATIONS_VERSION_HEADER: str = "x-api-version"
    MIGRATIONS_DIR: Optional[str] = None
    MIGRATIONS_COMPARATOR: str = "lexicographic"  # lexicographic|semantic
    MIGRATIONS_MISSING_VERSION_POLICY: str = "latest"  # latest|oldest

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("MIGRATIONS_VERSION_HEADER")
    @classmethod
    def _lower_header(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("MIGRATIONS_VERSION_HEADER must not be empty")
        return value

    @field_validator("MIGRATIONS_COMPARATOR", "MIGRATIONS_MISSING_VERSION_POLICY")
    @classmethod
    def _lower_choice(cls, value: str) -> str:
        return value.strip().lower()


_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = Settings()
    return _settings_cache


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings_cache
    _settings_cache = None
