"""
config.py

Default CLI options via Pydantic Settings.
Every value can be overridden with a TBUCK_-prefixed environment variable
or a .env file; explicit command-line flags always win.
Use get_settings() rather than instantiating Settings at import time.

Example .env:
    TBUCK_GRANULARITY=30s
    TBUCK_MATCH_INDEX=1
    TBUCK_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .bucketing.granularity import Granularity

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TBUCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Bucketing
    GRANULARITY: str = "1m"
    FILL_GAPS: bool = True

    # Extraction
    MATCH_INDEX: int = 0

    # Input
    INPUT_ENCODING: str = "utf-8"

    # Logging (stderr only; stdout carries bucket rows)
    LOG_LEVEL: str = "WARNING"

    @field_validator("GRANULARITY")
    @classmethod
    def check_granularity(cls, v: str) -> str:
        # InvalidGranularity is a ValueError, so pydantic reports it as such
        Granularity.parse(v)
        return v

    @field_validator("MATCH_INDEX")
    @classmethod
    def check_match_index(cls, v: int) -> int:
        if v < 0:
            raise ValueError("match index must be >= 0")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalise_log_level(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in LOG_LEVELS:
                raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        return v


_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Load settings on first use.

    Deferred so that a bad environment value surfaces as a pydantic
    ValidationError the CLI can report, not as an import-time traceback.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
