"""Workload runner: one profile against one device via fio."""

from __future__ import annotations

import json
import logging
import subprocess
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional

from benchmark.core.jobfile import FioJob, write_job_file
from common.errors import ExecutionFailure
from common.models.results import RawPayload
from common.models.workload import TestKind, WorkloadProfile
from common.utils import Timer, format_duration

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "benchmark_test_"


def scratch_path(device_path: str | Path, kind: TestKind) -> Path:
    """Scratch file used by one test kind on one device."""
    return Path(device_path) / f"{SCRATCH_PREFIX}{kind.value}.tmp"


@contextmanager
def scratch_file(device_path: str | Path, kind: TestKind) -> Iterator[Path]:
    """Acquire a scratch file under the device path; always remove it."""
    path = scratch_path(device_path, kind)
    path.touch()
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove scratch file {path}: {e}")


def parse_payload(kind: TestKind, output: str) -> RawPayload:
    """Parse fio JSON output, keeping the original text."""
    # fio may print notices before the JSON document
    json_start = output.find("{")
    if json_start < 0:
        raise ExecutionFailure(kind.value, "fio produced no JSON output")
    try:
        document = json.loads(output[json_start:])
    except json.JSONDecodeError as e:
        raise ExecutionFailure(kind.value, f"fio produced invalid JSON: {e}") from e
    if not isinstance(document, dict):
        raise ExecutionFailure(kind.value, "fio JSON output is not an object")
    return RawPayload(text=output[json_start:], document=document)


class WorkloadRunner:
    """Execute workload profiles with the external load generator."""

    def __init__(self, job_dir: str | Path, fio_binary: str = "fio"):
        self.job_dir = Path(job_dir)
        self.fio_binary = fio_binary
        self.command_log: list[dict[str, Any]] = []

    def log_command(
        self,
        device_label: str,
        kind: TestKind,
        command: list[str],
        exit_code: Optional[int],
    ) -> None:
        """Record an executed command for the run directory."""
        self.command_log.append({
            "timestamp": datetime.now().isoformat(),
            "device": device_label,
            "test": kind.value,
            "command": " ".join(command),
            "exit_code": exit_code,
        })

    def get_command_log(self) -> list[dict[str, Any]]:
        return self.command_log.copy()

    def build_command(self, job_path: Path) -> list[str]:
        return [self.fio_binary, "--output-format=json", str(job_path)]

    def run(self, profile: WorkloadProfile, device_path: str | Path, device_label: str) -> RawPayload:
        """Run one profile and return its raw payload.

        Raises ExecutionFailure when the scratch or job file cannot be
        written, fio is missing, exits nonzero or prints no usable JSON.
        The scratch file is removed either way.
        """
        kind = profile.kind
        job_path = self.job_dir / f"{device_label}_{kind.value}.fio"

        logger.info(f"Running test: {kind.value} on {device_path}")

        try:
            result, timer = self._execute(profile, device_path, device_label, job_path)
        except OSError as e:
            raise ExecutionFailure(kind.value, f"cannot prepare test on {device_path}: {e}") from e

        logger.info(
            f"Finished test: {kind.value} on {device_label} "
            f"in {format_duration(timer.elapsed_seconds)}"
        )
        return parse_payload(kind, result.stdout)

    def _execute(
        self,
        profile: WorkloadProfile,
        device_path: str | Path,
        device_label: str,
        job_path: Path,
    ) -> tuple[subprocess.CompletedProcess, Timer]:
        """Hold the scratch file while fio runs."""
        kind = profile.kind
        with scratch_file(device_path, kind) as target:
            write_job_file(FioJob.from_profile(profile, target), job_path)
            cmd = self.build_command(job_path)
            logger.debug(f"Running fio: {' '.join(cmd)}")

            with Timer() as timer:
                try:
                    result = subprocess.run(cmd, capture_output=True, text=True)
                except OSError as e:
                    self.log_command(device_label, kind, cmd, None)
                    raise ExecutionFailure(
                        kind.value, f"cannot execute {self.fio_binary}: {e}"
                    ) from e

            self.log_command(device_label, kind, cmd, result.returncode)

            if result.returncode != 0:
                raise ExecutionFailure(
                    kind.value,
                    f"fio failed: {result.stderr.strip() or result.stdout.strip()}",
                    exit_code=result.returncode,
                    stderr=result.stderr,
                )
        return result, timer
