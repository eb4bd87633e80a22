"""Measurement and result-table models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from common.models.workload import MetricFamily, TestKind

TABLE_HEADER = ("Device", "Test", "Value")


def format_value(value: float) -> str:
    """Render a metric value for a result table."""
    return repr(float(value))


class RawPayload(BaseModel):
    """Load generator output, kept verbatim alongside its parsed form."""
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Output exactly as produced")
    document: dict[str, Any] = Field(default_factory=dict)


class Metric(BaseModel):
    """One normalized metric extracted from a payload."""
    model_config = ConfigDict(frozen=True)

    family: MetricFamily
    value: float


class MeasurementResult(BaseModel):
    """Extracted metrics for one (device, test kind) pair."""
    model_config = ConfigDict(frozen=True)

    device: str
    kind: TestKind
    metrics: tuple[Metric, ...] = ()


class ResultRow(BaseModel):
    """One row of a result table."""
    model_config = ConfigDict(frozen=True)

    device: str
    test: str
    value: float

    def as_csv(self) -> list[str]:
        return [self.device, self.test, format_value(self.value)]
