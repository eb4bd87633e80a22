"""Host environment checks run before benchmarking."""

from __future__ import annotations

import logging
import os
import shutil

from pydantic import BaseModel, Field

from common.errors import ConfigError

logger = logging.getLogger(__name__)


class EnvironmentReport(BaseModel):
    """Outcome of the environment checks."""
    fio_path: str
    gnuplot_available: bool
    running_as_root: bool
    warnings: list[str] = Field(default_factory=list)


def is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def check_environment(fio_binary: str = "fio", gnuplot_binary: str = "gnuplot") -> EnvironmentReport:
    """Check required and optional tools.

    A missing load generator is fatal. Missing gnuplot and running
    without root privileges are only warnings.
    """
    fio_path = shutil.which(fio_binary)
    if fio_path is None:
        raise ConfigError(f"{fio_binary} is not installed. Install with: sudo apt install fio")

    warnings = []

    gnuplot_available = shutil.which(gnuplot_binary) is not None
    if not gnuplot_available:
        warnings.append(f"{gnuplot_binary} is not installed; graphs will not be generated")

    running_as_root = is_root()
    if not running_as_root:
        warnings.append(
            "Not running as root; cache-dependent results may be skewed and some tests may fail"
        )

    for w in warnings:
        logger.warning(w)

    return EnvironmentReport(
        fio_path=fio_path,
        gnuplot_available=gnuplot_available,
        running_as_root=running_as_root,
        warnings=warnings,
    )
