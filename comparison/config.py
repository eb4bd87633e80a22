"""Comparison tool configuration settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ComparisonSettings(BaseSettings):
    """Comparison settings loaded from environment variables."""
    model_config = SettingsConfigDict(
        env_prefix="STORAGE_COMPARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gnuplot_binary: str = "gnuplot"
    output_dir: Path = Field(default=Path("./comparison_results"))

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
