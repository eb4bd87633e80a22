"""Workload profile registry."""

from __future__ import annotations

import logging
from typing import Callable

from common.errors import ConfigError
from common.models.workload import (
    EXECUTION_ORDER,
    ProfileSettings,
    TestKind,
    WorkloadProfile,
)

logger = logging.getLogger(__name__)

DESCRIPTIONS = {
    TestKind.SEQ_READ: "Measures continuous read performance with large blocks.",
    TestKind.SEQ_WRITE: "Measures continuous write performance with large blocks.",
    TestKind.RAND_READ: "Measures non-sequential small block read performance.",
    TestKind.RAND_WRITE: "Measures non-sequential small block write performance.",
    TestKind.IOPS: "Measures maximum input/output operations per second.",
    TestKind.LATENCY: "Measures time delay between request and response.",
}


def _sequential(s: ProfileSettings) -> dict:
    return {"block_size": s.seq_block_size, "size": s.seq_test_size,
            "io_depth": s.seq_iodepth, "num_jobs": s.seq_jobs}


def _random(s: ProfileSettings) -> dict:
    return {"block_size": s.rand_block_size, "size": s.rand_test_size,
            "io_depth": s.rand_iodepth, "num_jobs": s.rand_jobs}


def _iops(s: ProfileSettings) -> dict:
    # Same access pattern as rand_read, many outstanding requests
    return {"block_size": s.rand_block_size, "size": s.rand_test_size,
            "io_depth": s.iops_iodepth, "num_jobs": s.iops_jobs}


def _latency(s: ProfileSettings) -> dict:
    # Same access pattern as rand_read, unqueued round trips
    return {"block_size": s.rand_block_size, "size": s.latency_test_size,
            "io_depth": s.latency_iodepth, "num_jobs": s.latency_jobs}


_PARAMETERS: dict[TestKind, Callable[[ProfileSettings], dict]] = {
    TestKind.SEQ_READ: _sequential,
    TestKind.SEQ_WRITE: _sequential,
    TestKind.RAND_READ: _random,
    TestKind.RAND_WRITE: _random,
    TestKind.IOPS: _iops,
    TestKind.LATENCY: _latency,
}


class ProfileRegistry:
    """Maps each test kind to its immutable workload profile."""

    def __init__(self, settings: ProfileSettings | None = None):
        self.settings = settings or ProfileSettings()
        missing = set(TestKind) - set(_PARAMETERS)
        if missing:
            raise ConfigError(f"No parameters defined for: {sorted(k.value for k in missing)}")
        self._profiles = {kind: self._build(kind) for kind in TestKind}

    def _build(self, kind: TestKind) -> WorkloadProfile:
        return WorkloadProfile(
            kind=kind,
            pattern=kind.pattern,
            direction=kind.direction,
            direct_io=self.settings.use_direct_io,
            runtime=self.settings.runtime,
            ioengine=self.settings.ioengine,
            description=DESCRIPTIONS[kind],
            **_PARAMETERS[kind](self.settings),
        )

    def profile_for(self, kind: TestKind | str) -> WorkloadProfile:
        """Look up the profile for a test kind."""
        try:
            kind = TestKind(kind)
        except ValueError:
            valid = ", ".join(k.value for k in TestKind)
            raise ConfigError(f"Unknown test kind: {kind!r} (expected one of: {valid})") from None
        return self._profiles[kind]

    def profiles(self) -> list[WorkloadProfile]:
        """All profiles in execution order."""
        return [self._profiles[kind] for kind in EXECUTION_ORDER]

    def describe(self) -> list[str]:
        """One summary line per test family, for the startup log."""
        s = self.settings
        return [
            f"Sequential tests: {s.seq_block_size} blocks, {s.seq_test_size} total, "
            f"{s.seq_iodepth} IO depth, {s.seq_jobs} jobs",
            f"Random tests: {s.rand_block_size} blocks, {s.rand_test_size} total, "
            f"{s.rand_iodepth} IO depth, {s.rand_jobs} jobs",
            f"IOPS test: {s.rand_block_size} blocks, {s.rand_test_size} total, "
            f"{s.iops_iodepth} IO depth, {s.iops_jobs} jobs",
            f"Latency test: {s.rand_block_size} blocks, {s.latency_test_size} total, "
            f"{s.latency_iodepth} IO depth, {s.latency_jobs} jobs",
            f"Direct I/O: {'Enabled' if s.use_direct_io else 'Disabled'}",
            f"Runtime per test: {s.runtime} seconds",
        ]
