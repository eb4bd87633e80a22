"""Common models, storage and reporting shared by the benchmark and comparison tools."""

__version__ = "1.2.0"

from common.models.workload import TestKind, MetricFamily, ProfileSettings, WorkloadProfile
from common.models.device import DeviceTarget, DeviceStatus, DeviceRun
from common.models.comparison import ComparisonDataset, AggregateOptions

__all__ = [
    "__version__",
    "TestKind",
    "MetricFamily",
    "ProfileSettings",
    "WorkloadProfile",
    "DeviceTarget",
    "DeviceStatus",
    "DeviceRun",
    "ComparisonDataset",
    "AggregateOptions",
]
