from __future__ import annotations

import logging
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from the environment (DELEGACJE_ prefix) or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="DELEGACJE_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: str = "Delegacje"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True

    default_country_code: str = "PL"
    default_ppk_percentage: Decimal = Decimal("2")

    # Alternative YAML rate table; the packaged one is used when unset.
    countries_file: Optional[Path] = None

    def init_post_load(self) -> None:
        """Normalize and validate derived fields."""
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unsupported log_level '{self.log_level}'")

        self.default_country_code = self.default_country_code.strip().upper()
        if len(self.default_country_code) != 2 or not self.default_country_code.isalpha():
            raise ValueError(
                f"default_country_code must be a two-letter code, got '{self.default_country_code}'"
            )

        if self.default_ppk_percentage < 0:
            raise ValueError("default_ppk_percentage must not be negative")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
