"""Workload profile models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from common.utils import parse_size


class IOPattern(str, Enum):
    """I/O access pattern."""
    SEQUENTIAL = "sequential"
    RANDOM = "random"


class Direction(str, Enum):
    """I/O direction."""
    READ = "read"
    WRITE = "write"


class MetricFamily(str, Enum):
    """Normalized measurement categories."""
    BANDWIDTH = "bandwidth"
    IOPS = "iops"
    LATENCY = "latency"

    @property
    def table_name(self) -> str:
        """File name of the result table holding this family."""
        return f"{self.value}_results.csv"


class TestKind(str, Enum):
    """The six benchmark tests, in execution order."""
    __test__ = False

    SEQ_READ = "seq_read"
    SEQ_WRITE = "seq_write"
    RAND_READ = "rand_read"
    RAND_WRITE = "rand_write"
    IOPS = "iops"
    LATENCY = "latency"

    @property
    def pattern(self) -> IOPattern:
        if self in (TestKind.SEQ_READ, TestKind.SEQ_WRITE):
            return IOPattern.SEQUENTIAL
        return IOPattern.RANDOM

    @property
    def direction(self) -> Direction:
        if self in (TestKind.SEQ_WRITE, TestKind.RAND_WRITE):
            return Direction.WRITE
        return Direction.READ

    @property
    def metric_family(self) -> MetricFamily:
        if self == TestKind.IOPS:
            return MetricFamily.IOPS
        if self == TestKind.LATENCY:
            return MetricFamily.LATENCY
        return MetricFamily.BANDWIDTH

    @property
    def archive_suffix(self) -> str:
        """Suffix used in raw-payload archive file names."""
        if self in (TestKind.IOPS, TestKind.LATENCY):
            return f"{self.value}_test"
        return self.value

    @property
    def title(self) -> str:
        return _TITLES[self]


_TITLES = {
    TestKind.SEQ_READ: "Sequential Read",
    TestKind.SEQ_WRITE: "Sequential Write",
    TestKind.RAND_READ: "Random Read",
    TestKind.RAND_WRITE: "Random Write",
    TestKind.IOPS: "IOPS Test",
    TestKind.LATENCY: "Latency Test",
}

EXECUTION_ORDER: tuple[TestKind, ...] = (
    TestKind.SEQ_READ,
    TestKind.SEQ_WRITE,
    TestKind.RAND_READ,
    TestKind.RAND_WRITE,
    TestKind.IOPS,
    TestKind.LATENCY,
)

BANDWIDTH_TESTS: tuple[TestKind, ...] = EXECUTION_ORDER[:4]


class ProfileSettings(BaseModel):
    """Immutable workload parameters shared by all profiles."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Test sizes
    seq_test_size: str = Field(default="4g", description="Size for sequential tests")
    rand_test_size: str = Field(default="2g", description="Size for random and IOPS tests")
    latency_test_size: str = Field(default="256m", description="Size for latency test")

    # Block sizes
    seq_block_size: str = Field(default="1m", description="Block size for sequential tests")
    rand_block_size: str = Field(default="4k", description="Block size for random tests")

    # Queue depths
    seq_iodepth: int = Field(default=4, ge=1, le=4096)
    rand_iodepth: int = Field(default=32, ge=1, le=4096)
    iops_iodepth: int = Field(default=64, ge=1, le=4096)
    latency_iodepth: int = Field(default=1, ge=1, le=4096)

    # Job counts
    seq_jobs: int = Field(default=1, ge=1, le=256)
    rand_jobs: int = Field(default=4, ge=1, le=256)
    iops_jobs: int = Field(default=4, ge=1, le=256)
    latency_jobs: int = Field(default=1, ge=1, le=256)

    use_direct_io: bool = Field(default=True, description="Bypass the page cache")
    runtime: int = Field(default=10, ge=1, description="Runtime in seconds for each test")
    ioengine: str = Field(default="libaio", description="fio I/O engine")

    @field_validator(
        "seq_test_size",
        "rand_test_size",
        "latency_test_size",
        "seq_block_size",
        "rand_block_size",
    )
    @classmethod
    def validate_size(cls, v: str) -> str:
        """Reject size strings fio would not understand."""
        if parse_size(v) <= 0:
            raise ValueError(f"Size must be positive: {v}")
        return v.strip().lower()


class WorkloadProfile(BaseModel):
    """One benchmark test's I/O parameters."""
    model_config = ConfigDict(frozen=True)

    kind: TestKind
    pattern: IOPattern
    direction: Direction
    block_size: str
    size: str
    io_depth: int = Field(ge=1)
    num_jobs: int = Field(ge=1)
    direct_io: bool = True
    runtime: int = Field(ge=1)
    ioengine: str = "libaio"
    description: str = ""

    @property
    def rw(self) -> str:
        """fio rw mode for this profile."""
        if self.pattern == IOPattern.RANDOM:
            return f"rand{self.direction.value}"
        return self.direction.value
