"""Common data models for the storage benchmark tools."""

from common.models.workload import (
    TestKind,
    IOPattern,
    Direction,
    MetricFamily,
    ProfileSettings,
    WorkloadProfile,
    EXECUTION_ORDER,
    BANDWIDTH_TESTS,
)
from common.models.device import DeviceTarget, DeviceStatus, DeviceRun, ProfileFailure
from common.models.results import RawPayload, Metric, MeasurementResult, ResultRow
from common.models.comparison import (
    SortMethod,
    CollisionPolicy,
    AggregateOptions,
    ComparedDevice,
    ComparisonDataset,
)

__all__ = [
    "TestKind",
    "IOPattern",
    "Direction",
    "MetricFamily",
    "ProfileSettings",
    "WorkloadProfile",
    "EXECUTION_ORDER",
    "BANDWIDTH_TESTS",
    "DeviceTarget",
    "DeviceStatus",
    "DeviceRun",
    "ProfileFailure",
    "RawPayload",
    "Metric",
    "MeasurementResult",
    "ResultRow",
    "SortMethod",
    "CollisionPolicy",
    "AggregateOptions",
    "ComparedDevice",
    "ComparisonDataset",
]
