"""Runtime settings, read from ``SECRETSWEEP_*`` environment variables.

Example .env:
    SECRETSWEEP_RULES_FILE=./rules/custom.json
    SECRETSWEEP_MAX_FILE_SIZE=2097152
    SECRETSWEEP_LOG_LEVEL=INFO
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from secretsweep.scanner.patterns import DEFAULT_RULES_PATH
from secretsweep.scanner.walker import MAX_FILE_SIZE

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Settings for the scanner and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="SECRETSWEEP_",
        env_file=".env",
        extra="ignore",
    )

    rules_file: Path = DEFAULT_RULES_PATH
    max_file_size: int = Field(default=MAX_FILE_SIZE, gt=0)
    progress_interval: int = Field(default=50, gt=0)
    clone_depth: int = Field(default=1, gt=0)
    clone_timeout: int = Field(default=300, gt=0)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")
        return level


def load_settings(**overrides: object) -> Settings:
    """Build settings from the environment, with explicit overrides on top.

    ``None`` overrides are ignored so CLI options that were not given do not
    mask environment values.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    return Settings(**values)
