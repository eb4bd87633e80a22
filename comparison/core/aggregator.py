"""Multi-run aggregator: merge several run directories into one comparison."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from common.errors import ConfigError, DeviceCollisionError
from common.models.comparison import (
    AggregateOptions,
    BandwidthMatrixRow,
    BandwidthPoint,
    CollisionPolicy,
    ComparedDevice,
    ComparisonDataset,
    SortMethod,
    ValuePoint,
)
from common.models.results import ResultRow
from common.models.workload import BANDWIDTH_TESTS, MetricFamily
from common.storage.result_store import ResultStore
from comparison.core.discovery import discover_devices

logger = logging.getLogger(__name__)


class RunSource:
    """One run directory opened read-only, with its tables cached."""

    def __init__(self, path: str | Path, discover: Callable[[ResultStore], list[str]]):
        self.path = Path(path)
        if not self.path.is_dir():
            raise ConfigError(f"Directory {self.path} does not exist")
        self.store = ResultStore(self.path, create=False)
        self.devices = discover(self.store)
        self._tables: dict[MetricFamily, list[ResultRow]] = {}

    @property
    def name(self) -> str:
        return str(self.path)

    def rows(self, family: MetricFamily) -> list[ResultRow]:
        if family not in self._tables:
            if not self.store.has_table(family):
                logger.warning(f"No {family.table_name} found in {self.path}")
            self._tables[family] = self.store.read_table(family)
        return self._tables[family]

    def contains(self, identity: str) -> bool:
        """Whether this directory holds any data for a device."""
        if identity in self.devices:
            return True
        return any(row.device == identity for row in self.rows(MetricFamily.BANDWIDTH))


def union_devices(sources: list[RunSource]) -> list[str]:
    """All discovered identities, first occurrence wins, in source order."""
    seen: set[str] = set()
    ordered = []
    for source in sources:
        for device in source.devices:
            if device not in seen:
                seen.add(device)
                ordered.append(device)
    return ordered


def order_devices(discovered: list[str], options: AggregateOptions) -> list[str]:
    """Final device order: explicit list, else alphabetic, else discovery order."""
    if options.devices:
        logger.info("Using custom device order")
        ordered = []
        for device in options.devices:
            if device in ordered:
                continue
            if device not in discovered:
                logger.warning(f"Custom device '{device}' not found in benchmark data")
            ordered.append(device)
        ordered.extend(d for d in discovered if d not in ordered)
        return ordered

    if options.sort == SortMethod.ALPHA:
        logger.info("Sorting devices alphabetically")
        return sorted(discovered)

    logger.info("Sorting devices by parameter order")
    return list(discovered)


def display_names(order: list[str], names: list[str]) -> list[str]:
    """Positional display names, padded with the identity itself."""
    if len(names) > len(order):
        logger.warning(f"Ignoring {len(names) - len(order)} extra display name(s)")
    return [names[i] if i < len(names) else device for i, device in enumerate(order)]


def build_bandwidth_matrix(
    devices: list[ComparedDevice],
    points: list[BandwidthPoint],
) -> list[BandwidthMatrixRow]:
    """One fixed-shape row per device; absent cells become 0."""
    matrix = []
    for device in devices:
        values = {}
        for point in points:
            if point.index == device.plot_index:
                values[point.test] = point.value

        cells = {}
        for kind in BANDWIDTH_TESTS:
            if kind.value in values:
                cells[kind.value] = values[kind.value]
            else:
                logger.warning(f"No {kind.value} bandwidth for {device.identity}; using 0")
                cells[kind.value] = 0.0

        matrix.append(BandwidthMatrixRow(
            display_name=device.display_name,
            index=device.plot_index,
            **cells,
        ))
    return matrix


class MultiRunAggregator:
    """Scan run directories and build a unified comparison dataset."""

    def __init__(
        self,
        options: Optional[AggregateOptions] = None,
        discover: Callable[[ResultStore], list[str]] = discover_devices,
    ):
        self.options = options or AggregateOptions()
        self.discover = discover

    def aggregate(self, run_dirs: list[str | Path]) -> ComparisonDataset:
        if not run_dirs:
            raise ConfigError("No benchmark directories provided")

        sources = []
        for run_dir in run_dirs:
            logger.info(f"Scanning directory: {run_dir}")
            source = RunSource(run_dir, self.discover)
            if source.devices:
                logger.info(f"  Found device(s): {', '.join(source.devices)}")
            else:
                logger.warning(f"No devices found in {run_dir}")
            sources.append(source)

        discovered = union_devices(sources)
        if not discovered:
            raise ConfigError("No devices found in the provided directories")
        logger.info(f"Found {len(discovered)} unique devices across {len(sources)} directories")

        order = order_devices(discovered, self.options)
        names = display_names(order, self.options.names)
        devices = self._compare_devices(order, names, sources)

        for device in devices:
            logger.info(f"  {device.plot_index}. {device.identity} (Display: {device.display_name})")

        bandwidth, iops, latency = self._project(devices, sources)

        return ComparisonDataset(
            sources=tuple(s.name for s in sources),
            devices=tuple(devices),
            bandwidth=tuple(bandwidth),
            iops=tuple(iops),
            latency=tuple(latency),
            bandwidth_matrix=tuple(build_bandwidth_matrix(devices, bandwidth)),
        )

    def _compare_devices(
        self,
        order: list[str],
        names: list[str],
        sources: list[RunSource],
    ) -> list[ComparedDevice]:
        devices = []
        for index, (identity, display_name) in enumerate(zip(order, names), start=1):
            found_in = [s.name for s in sources if s.contains(identity)]
            if len(found_in) > 1:
                if self.options.collision == CollisionPolicy.ERROR:
                    raise DeviceCollisionError(identity, found_in)
                logger.info(f"Merging data for {identity} from {len(found_in)} directories")
            devices.append(ComparedDevice(
                identity=identity,
                display_name=display_name,
                plot_index=index,
                sources=tuple(found_in),
            ))
        return devices

    def _project(
        self,
        devices: list[ComparedDevice],
        sources: list[RunSource],
    ) -> tuple[list[BandwidthPoint], list[ValuePoint], list[ValuePoint]]:
        """Re-project each source's rows under display name and plot index."""
        by_name = {s.name: s for s in sources}
        bandwidth: list[BandwidthPoint] = []
        iops: list[ValuePoint] = []
        latency: list[ValuePoint] = []

        for device in devices:
            for source_name in device.sources:
                source = by_name[source_name]
                logger.debug(f"Extracting data for {device.identity} from {source.path.name}")

                for row in source.rows(MetricFamily.BANDWIDTH):
                    if row.device == device.identity:
                        bandwidth.append(BandwidthPoint(
                            device=device.display_name,
                            test=row.test,
                            value=row.value,
                            index=device.plot_index,
                        ))
                for family, points in ((MetricFamily.IOPS, iops), (MetricFamily.LATENCY, latency)):
                    for row in source.rows(family):
                        if row.device == device.identity:
                            points.append(ValuePoint(
                                device=device.display_name,
                                value=row.value,
                                index=device.plot_index,
                            ))

        return bandwidth, iops, latency
