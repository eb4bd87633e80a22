"""Benchmark tool configuration settings."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.errors import ConfigError
from common.models.workload import ProfileSettings
from common.utils import load_yaml


class BenchmarkSettings(BaseSettings):
    """Benchmark settings loaded from environment variables."""
    model_config = SettingsConfigDict(
        env_prefix="STORAGE_BENCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # External tools
    fio_binary: str = "fio"
    gnuplot_binary: str = "gnuplot"

    # Output
    output_root: Path = Field(default=Path("."))
    run_dir_prefix: str = "benchmark_results"

    # Workload parameters
    profiles: ProfileSettings = Field(default_factory=ProfileSettings)

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def load_profile_settings(
    path: str | Path,
    base: Optional[ProfileSettings] = None,
) -> ProfileSettings:
    """Overlay a YAML file onto profile settings."""
    try:
        data = load_yaml(path)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    # Accept either a bare mapping or one nested under "profiles"
    if isinstance(data, dict) and isinstance(data.get("profiles"), dict):
        data = data["profiles"]
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    merged = (base or ProfileSettings()).model_dump()
    merged.update(data)
    try:
        return ProfileSettings(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid profile settings in {path}: {e}") from e


def build_settings(config_file: Optional[str | Path] = None, **overrides) -> BenchmarkSettings:
    """Build settings from the environment, a YAML file and CLI overrides."""
    try:
        settings = BenchmarkSettings(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid benchmark settings: {e}") from e

    if config_file:
        profiles = load_profile_settings(config_file, base=settings.profiles)
        settings = settings.model_copy(update={"profiles": profiles})
    return settings
