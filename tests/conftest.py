"""Pytest configuration and shared fixtures."""

import json
import os
import tempfile
import shutil
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

from benchmark.core.profiles import ProfileRegistry
from common.errors import ExecutionFailure
from common.models.results import RawPayload, ResultRow
from common.models.workload import MetricFamily, ProfileSettings, TestKind
from common.storage.result_store import ResultStore, archive_name


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def device_dir(temp_dir: Path) -> Path:
    """A writable directory standing in for a mount point."""
    path = temp_dir / "mnt"
    path.mkdir()
    return path


@pytest.fixture
def profile_settings() -> ProfileSettings:
    """Small, fast profile settings."""
    return ProfileSettings(
        seq_test_size="64m",
        rand_test_size="32m",
        latency_test_size="16m",
        runtime=1,
    )


@pytest.fixture
def registry(profile_settings: ProfileSettings) -> ProfileRegistry:
    """Profile registry built from the test settings."""
    return ProfileRegistry(profile_settings)


@pytest.fixture
def fio_payload() -> Callable[..., dict]:
    """Factory for fio-like JSON documents."""
    def _make(
        read_bw: Optional[float] = 102400,
        write_bw: Optional[float] = 51200,
        read_iops: Optional[float] = 25000.0,
        lat_ns: Optional[float] = 500000.0,
    ) -> dict:
        read = {}
        if read_bw is not None:
            read["bw"] = read_bw
        if read_iops is not None:
            read["iops"] = read_iops
        if lat_ns is not None:
            read["lat_ns"] = {"min": 1000, "max": 900000, "mean": lat_ns}
        write = {} if write_bw is None else {"bw": write_bw}
        return {
            "fio version": "fio-3.28",
            "jobs": [{"jobname": "test", "read": read, "write": write}],
        }
    return _make


class StubRunner:
    """Workload runner double returning a fixed payload."""

    def __init__(self, document: dict, fail: tuple = ()):
        self.document = document
        self.fail = set(fail)
        self.calls = []

    def run(self, profile, device_path, device_label):
        self.calls.append((device_label, profile.kind))
        if profile.kind in self.fail:
            raise ExecutionFailure(profile.kind.value, "fio failed: simulated", exit_code=1)
        return RawPayload(text=json.dumps(self.document), document=self.document)


@pytest.fixture
def stub_runner(fio_payload) -> StubRunner:
    """Runner double that always succeeds."""
    return StubRunner(fio_payload())


@pytest.fixture
def make_run_dir(temp_dir: Path) -> Callable[..., Path]:
    """Build a run directory the way the benchmark tool leaves it.

    ``bandwidth`` holds (device, test, value) tuples; ``iops`` and
    ``latency`` hold (device, value) pairs; ``archives`` lists device
    labels whose payload archives are written, oldest first.
    """
    def _make(
        name: str,
        bandwidth: tuple = (),
        iops: tuple = (),
        latency: tuple = (),
        archives: tuple = (),
    ) -> Path:
        store = ResultStore(temp_dir / name)
        for device, test, value in bandwidth:
            store.append(MetricFamily.BANDWIDTH, ResultRow(device=device, test=test, value=value))
        for device, value in iops:
            store.append(MetricFamily.IOPS, ResultRow(device=device, test="iops", value=value))
        for device, value in latency:
            store.append(MetricFamily.LATENCY, ResultRow(device=device, test="latency", value=value))

        base_ns = 1_600_000_000 * 10**9
        for i, label in enumerate(archives):
            path = store.run_dir / archive_name(label, TestKind.SEQ_READ)
            path.write_text("{}")
            stamp = base_ns + i * 10**9
            os.utime(path, ns=(stamp, stamp))
        return store.run_dir
    return _make


def full_bandwidth(device: str, base: float = 100.0) -> tuple:
    """Four bandwidth rows for one device."""
    return (
        (device, "seq_read", base),
        (device, "seq_write", base / 2),
        (device, "rand_read", base / 4),
        (device, "rand_write", base / 8),
    )
