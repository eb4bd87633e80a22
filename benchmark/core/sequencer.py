"""Run sequencer: devices x profiles, one at a time."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Protocol

from benchmark.core.extractor import MetricExtractor
from benchmark.core.profiles import ProfileRegistry
from benchmark.prechecks.device import validate_target
from common.errors import DeviceValidationError, ExecutionFailure, ExtractionError
from common.models.device import DeviceRun, DeviceStatus, DeviceTarget, ProfileFailure
from common.models.results import MeasurementResult, RawPayload, ResultRow
from common.models.workload import EXECUTION_ORDER, WorkloadProfile
from common.storage.result_store import ResultStore

logger = logging.getLogger(__name__)


class Runner(Protocol):
    def run(self, profile: WorkloadProfile, device_path: str, device_label: str) -> RawPayload:
        ...


class RunSequencer:
    """Drive every device through every profile, sequentially.

    Profiles run in the fixed order seq_read, seq_write, rand_read,
    rand_write, iops, latency. Nothing runs concurrently so that each
    workload has the device to itself. A device that fails validation is
    excluded; a failing profile is recorded and the next one still runs.
    """

    def __init__(
        self,
        registry: ProfileRegistry,
        runner: Runner,
        store: ResultStore,
        extractor: Optional[MetricExtractor] = None,
    ):
        self.registry = registry
        self.runner = runner
        self.store = store
        self.extractor = extractor or MetricExtractor()
        self.runs: list[DeviceRun] = []

    def run(self, targets: list[DeviceTarget]) -> list[DeviceRun]:
        """Benchmark all targets and return their final run states."""
        self.runs = [DeviceRun(target=t) for t in targets]
        for device_run in self.runs:
            self.run_device(device_run)

        succeeded = sum(1 for r in self.runs if r.status == DeviceStatus.SUCCEEDED)
        logger.info(f"Benchmarked {succeeded}/{len(self.runs)} device(s)")
        return self.runs

    def run_device(self, device_run: DeviceRun) -> DeviceRun:
        """Validate one device, then run every profile against it."""
        target = device_run.target

        device_run.status = DeviceStatus.VALIDATING
        try:
            validate_target(target)
        except DeviceValidationError as e:
            device_run.status = DeviceStatus.EXCLUDED
            device_run.exclusion_reason = e.reason
            logger.warning(str(e))
            return device_run

        logger.info(f"===== Starting benchmarks for {target.label} ({target.path}) =====")
        device_run.status = DeviceStatus.RUNNING
        device_run.started_at = datetime.now()

        for kind in EXECUTION_ORDER:
            profile = self.registry.profile_for(kind)
            try:
                measurement = self._run_profile(profile, target)
            except (ExecutionFailure, ExtractionError, OSError) as e:
                logger.error(f"Test {kind.value} failed on {target.label}: {e}")
                device_run.failures.append(ProfileFailure(kind=kind, error=str(e)))
                continue

            self._record(measurement)
            device_run.completed_tests.append(kind)

        device_run.status = DeviceStatus.SUCCEEDED
        device_run.completed_at = datetime.now()
        logger.info(f"Benchmark complete for {target.label}: {device_run.status_line()}")
        return device_run

    def _run_profile(self, profile: WorkloadProfile, target: DeviceTarget) -> MeasurementResult:
        payload = self.runner.run(profile, target.path, target.label)
        self.store.archive(profile.kind, target.label, payload)
        metrics = self.extractor.extract(profile.kind, payload)
        return MeasurementResult(device=target.label, kind=profile.kind, metrics=tuple(metrics))

    def _record(self, measurement: MeasurementResult) -> None:
        for metric in measurement.metrics:
            row = ResultRow(device=measurement.device, test=measurement.kind.value, value=metric.value)
            self.store.append(metric.family, row)
