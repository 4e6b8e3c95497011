"""Configuration management using pydantic-settings."""

import tomllib
from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.extractors import MAX_YEAR, MIN_YEAR
from .domain.filename import MAX_ASSET_LENGTH

DEFAULT_MAX_FILE_SIZE = 100_000_000  # 100 MB
DEFAULT_MAX_TEXT_CHARS = 2_000_000
DEFAULT_MAX_COLLISION_ATTEMPTS = 99
DEFAULT_MAX_FILENAME_BYTES = 255
CONFIG_PATH = Path("~/.config/tr-rename/config.toml").expanduser()


class LimitsConfig(BaseSettings):
    """Resource and filename limits."""

    max_file_size: int = Field(DEFAULT_MAX_FILE_SIZE, gt=0)
    max_text_chars: int = Field(DEFAULT_MAX_TEXT_CHARS, gt=0)
    max_asset_length: int = Field(MAX_ASSET_LENGTH, gt=0)
    max_collision_attempts: int = Field(DEFAULT_MAX_COLLISION_ATTEMPTS, ge=0)
    max_filename_bytes: int = Field(DEFAULT_MAX_FILENAME_BYTES, gt=0)


class DatesConfig(BaseSettings):
    """Plausible range for transaction dates."""

    min_year: int = MIN_YEAR
    max_year: int = MAX_YEAR

    @model_validator(mode="after")
    def check_range(self) -> Self:
        if self.min_year > self.max_year:
            raise ValueError("min_year must not be after max_year")
        return self


class RunConfig(BaseSettings):
    jobs: int = Field(1, ge=1)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TR_RENAME_", env_nested_delimiter="__"
    )

    limits: LimitsConfig = LimitsConfig()
    dates: DatesConfig = DatesConfig()
    run: RunConfig = RunConfig()


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings from TOML file, falling back to defaults."""
    path = config_path or CONFIG_PATH

    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)

        limits = LimitsConfig(**data.get("limits", {}))
        dates = DatesConfig(**data.get("dates", {}))
        run = RunConfig(**data.get("run", {}))
        return Settings(limits=limits, dates=dates, run=run)

    return Settings()
