"""Multi-run comparison models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from common.models.workload import BANDWIDTH_TESTS


class SortMethod(str, Enum):
    """Device ordering when no explicit order is given."""
    ALPHA = "alpha"
    PARAM = "param"


class CollisionPolicy(str, Enum):
    """What to do when one label appears in several run directories."""
    MERGE = "merge"
    ERROR = "error"


class AggregateOptions(BaseModel):
    """User options for a comparison."""
    devices: list[str] = Field(default_factory=list, description="Explicit device order")
    names: list[str] = Field(default_factory=list, description="Display names, by final order")
    sort: SortMethod = Field(default=SortMethod.PARAM)
    collision: CollisionPolicy = Field(default=CollisionPolicy.MERGE)


class ComparedDevice(BaseModel):
    """A device identity in the final comparison order."""
    model_config = ConfigDict(frozen=True)

    identity: str
    display_name: str
    plot_index: int = Field(ge=1)
    sources: tuple[str, ...] = ()


class BandwidthPoint(BaseModel):
    """A projected bandwidth row."""
    model_config = ConfigDict(frozen=True)

    device: str
    test: str
    value: float
    index: int


class ValuePoint(BaseModel):
    """A projected IOPS or latency row."""
    model_config = ConfigDict(frozen=True)

    device: str
    value: float
    index: int


class BandwidthMatrixRow(BaseModel):
    """Fixed-shape per-device row for the bandwidth chart."""
    model_config = ConfigDict(frozen=True)

    display_name: str
    index: int
    seq_read: float = 0
    seq_write: float = 0
    rand_read: float = 0
    rand_write: float = 0

    def values(self) -> tuple[float, float, float, float]:
        return tuple(getattr(self, kind.value) for kind in BANDWIDTH_TESTS)


class ComparisonDataset(BaseModel):
    """Merged, ordered view over several run directories."""
    model_config = ConfigDict(frozen=True)

    sources: tuple[str, ...] = ()
    devices: tuple[ComparedDevice, ...] = ()
    bandwidth: tuple[BandwidthPoint, ...] = ()
    iops: tuple[ValuePoint, ...] = ()
    latency: tuple[ValuePoint, ...] = ()
    bandwidth_matrix: tuple[BandwidthMatrixRow, ...] = ()

    @property
    def order(self) -> list[str]:
        return [d.identity for d in self.devices]

    def device(self, identity: str) -> ComparedDevice | None:
        for d in self.devices:
            if d.identity == identity:
                return d
        return None

    def matrix_row(self, identity: str) -> BandwidthMatrixRow | None:
        device = self.device(identity)
        if device is None:
            return None
        for row in self.bandwidth_matrix:
            if row.index == device.plot_index:
                return row
        return None
