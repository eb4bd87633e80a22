"""Error taxonomy shared by the benchmark and comparison tools."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ExclusionReason(str, Enum):
    """Why a device target was excluded from a run."""
    PATH_MISSING = "path-missing"
    NOT_WRITABLE = "not-writable"


class BenchmarkError(Exception):
    """Base class for all benchmark errors."""


class ConfigError(BenchmarkError):
    """Fatal configuration problem; aborts the whole invocation."""


class DeviceCollisionError(ConfigError):
    """Same device label found in more than one run directory."""

    def __init__(self, label: str, directories: list[str]):
        self.label = label
        self.directories = directories
        super().__init__(
            f"Device '{label}' appears in multiple run directories: {', '.join(directories)}"
        )


class DeviceValidationError(BenchmarkError):
    """A device target failed validation and is excluded."""

    def __init__(self, label: str, path: str, reason: ExclusionReason):
        self.label = label
        self.path = path
        self.reason = reason
        super().__init__(f"Device '{label}' excluded ({reason.value}): {path}")


class ExecutionFailure(BenchmarkError):
    """The load generator could not run or exited nonzero."""

    def __init__(
        self,
        test_kind: str,
        message: str,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ):
        self.test_kind = test_kind
        self.exit_code = exit_code
        self.stderr = stderr
        detail = f" (exit code {exit_code})" if exit_code is not None else ""
        super().__init__(f"{test_kind}: {message}{detail}")


class ExtractionError(BenchmarkError):
    """An expected field is absent from a measurement payload."""

    def __init__(self, test_kind: str, field: str):
        self.test_kind = test_kind
        self.field = field
        super().__init__(f"{test_kind}: field '{field}' missing from payload")


class RenderWarning(BenchmarkError):
    """The charting engine is missing or failed; never fatal."""
