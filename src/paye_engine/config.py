"""Configuration management for the PAYE engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Engine settings loaded from environment."""

    engine_version: str
    default_tax_code: str
    default_ni_category: str
    default_tax_year: str

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            engine_version=os.getenv("PAYE_ENGINE_VERSION", "1.0.0"),
            default_tax_code=os.getenv("PAYE_DEFAULT_TAX_CODE", "1257L").strip().upper(),
            default_ni_category=os.getenv("PAYE_DEFAULT_NI_CATEGORY", "A").strip().upper(),
            default_tax_year=os.getenv("PAYE_DEFAULT_TAX_YEAR", "2024-25"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
