"""Unit tests for device discovery and the multi-run aggregator."""

import logging
import os

import pytest

from common.errors import ConfigError, DeviceCollisionError
from common.models.comparison import AggregateOptions, CollisionPolicy, SortMethod
from common.storage.result_store import ResultStore
from comparison.core.aggregator import MultiRunAggregator, display_names, order_devices
from comparison.core.discovery import device_from_archive_name, discover_devices

from conftest import full_bandwidth


class TestDiscovery:
    """Tests for device discovery."""

    def test_device_from_archive_name(self):
        """Test known suffixes are stripped."""
        assert device_from_archive_name("ssd_seq_read.json") == "ssd"
        assert device_from_archive_name("nvme_0_iops_test.json") == "nvme_0"
        assert device_from_archive_name("my_disk_latency_test.json") == "my_disk"
        assert device_from_archive_name("config.json") is None
        assert device_from_archive_name("_seq_read.json") is None

    def test_archives_in_write_order(self, make_run_dir):
        """Test archive discovery follows write order."""
        run_dir = make_run_dir("run", archives=("b", "a"))

        assert discover_devices(ResultStore(run_dir, create=False)) == ["b", "a"]

    def test_archives_with_equal_mtimes(self, make_run_dir):
        """Test a copied run keeps the bandwidth table order."""
        run_dir = make_run_dir(
            "run",
            bandwidth=full_bandwidth("zeta") + full_bandwidth("alpha"),
            archives=("zeta", "alpha"),
        )
        for path in run_dir.glob("*.json"):
            os.utime(path, ns=(10**18, 10**18))

        assert discover_devices(ResultStore(run_dir, create=False)) == ["zeta", "alpha"]

    def test_config_snapshot_order(self, make_run_dir):
        """Test the recorded device list outranks archive mtimes."""
        run_dir = make_run_dir("run", archives=("a", "b", "c"))
        ResultStore(run_dir).save_config({
            "devices": [{"label": "c", "path": "/mnt/c"}, {"label": "a", "path": "/mnt/a"}],
        })

        assert discover_devices(ResultStore(run_dir, create=False)) == ["c", "a", "b"]

    def test_table_fallback(self, make_run_dir):
        """Test the bandwidth table is used when no archive matches."""
        run_dir = make_run_dir("run", bandwidth=full_bandwidth("y") + full_bandwidth("x"))

        assert discover_devices(ResultStore(run_dir, create=False)) == ["y", "x"]


class TestOrdering:
    """Tests for ordering helpers."""

    def test_explicit_order(self):
        """Test named devices first, the rest appended."""
        options = AggregateOptions(devices=["Z", "X"])

        assert order_devices(["X", "Y", "Z"], options) == ["Z", "X", "Y"]

    def test_explicit_unknown_device(self, caplog):
        """Test an unknown explicit device is kept with a warning."""
        options = AggregateOptions(devices=["W", "X"])

        with caplog.at_level(logging.WARNING):
            order = order_devices(["X", "Y"], options)

        assert order == ["W", "X", "Y"]
        assert "'W' not found" in caplog.text

    def test_alpha_order(self):
        """Test alphabetic sort."""
        options = AggregateOptions(sort=SortMethod.ALPHA)

        assert order_devices(["b", "C", "a"], options) == ["C", "a", "b"]

    def test_param_order(self):
        """Test discovery order is kept."""
        assert order_devices(["b", "a"], AggregateOptions()) == ["b", "a"]

    def test_display_names_padding(self):
        """Test missing names fall back to the identity."""
        assert display_names(["X", "Y", "Z"], ["Fast"]) == ["Fast", "Y", "Z"]
        assert display_names(["X"], ["Fast", "Extra"]) == ["Fast"]


class TestMultiRunAggregator:
    """Tests for MultiRunAggregator."""

    def test_dedup_first_occurrence(self, make_run_dir):
        """Test devices are merged across directories in first-occurrence order."""
        d1 = make_run_dir("run1", bandwidth=full_bandwidth("X") + full_bandwidth("Y"))
        d2 = make_run_dir("run2", bandwidth=full_bandwidth("Y", 300) + full_bandwidth("Z"))

        dataset = MultiRunAggregator().aggregate([d1, d2])

        assert dataset.order == ["X", "Y", "Z"]
        assert [d.plot_index for d in dataset.devices] == [1, 2, 3]
        assert dataset.device("Y").sources == (str(d1), str(d2))

    def test_missing_cell_is_zero(self, make_run_dir, caplog):
        """Test an absent rand_write value becomes 0 in the matrix."""
        d1 = make_run_dir("run1", bandwidth=full_bandwidth("X")[:3] + full_bandwidth("Y"))

        with caplog.at_level(logging.WARNING):
            dataset = MultiRunAggregator().aggregate([d1])

        row = dataset.matrix_row("X")
        assert row.values() == (100.0, 50.0, 25.0, 0.0)
        assert dataset.matrix_row("Y").rand_write == 12.5
        assert "No rand_write bandwidth for X" in caplog.text

    def test_explicit_order_and_names(self, make_run_dir):
        """Test explicit order with display names by final position."""
        d1 = make_run_dir(
            "run1",
            bandwidth=full_bandwidth("X") + full_bandwidth("Y") + full_bandwidth("Z"),
            iops=(("X", 1000.0), ("Y", 2000.0), ("Z", 3000.0)),
            latency=(("X", 0.1), ("Y", 0.2), ("Z", 0.3)),
        )
        options = AggregateOptions(devices=["Z", "X"], names=["Zed", "Ex"])

        dataset = MultiRunAggregator(options).aggregate([d1])

        assert dataset.order == ["Z", "X", "Y"]
        assert [d.display_name for d in dataset.devices] == ["Zed", "Ex", "Y"]
        assert [(p.device, p.value, p.index) for p in dataset.iops] == [
            ("Zed", 3000.0, 1), ("Ex", 1000.0, 2), ("Y", 2000.0, 3),
        ]
        assert [p.index for p in dataset.latency] == [1, 2, 3]
        assert [r.display_name for r in dataset.bandwidth_matrix] == ["Zed", "Ex", "Y"]
        assert {p.device for p in dataset.bandwidth if p.index == 1} == {"Zed"}

    def test_collision_error_policy(self, make_run_dir):
        """Test the error policy rejects a label found twice."""
        d1 = make_run_dir("run1", bandwidth=full_bandwidth("X"))
        d2 = make_run_dir("run2", bandwidth=full_bandwidth("X"))
        options = AggregateOptions(collision=CollisionPolicy.ERROR)

        with pytest.raises(DeviceCollisionError) as exc_info:
            MultiRunAggregator(options).aggregate([d1, d2])

        assert exc_info.value.label == "X"

    def test_collision_merge_policy(self, make_run_dir):
        """Test the merge policy keeps rows from both directories."""
        d1 = make_run_dir("run1", iops=(("X", 10.0),), bandwidth=full_bandwidth("X"))
        d2 = make_run_dir("run2", iops=(("X", 20.0),), bandwidth=full_bandwidth("X"))

        dataset = MultiRunAggregator().aggregate([d1, d2])

        assert dataset.order == ["X"]
        assert [p.value for p in dataset.iops] == [10.0, 20.0]

    def test_no_directories(self):
        """Test an empty directory list."""
        with pytest.raises(ConfigError):
            MultiRunAggregator().aggregate([])

    def test_missing_directory(self, temp_dir):
        """Test a directory that does not exist."""
        with pytest.raises(ConfigError):
            MultiRunAggregator().aggregate([temp_dir / "nope"])

    def test_no_devices(self, make_run_dir):
        """Test directories without any device data."""
        with pytest.raises(ConfigError):
            MultiRunAggregator().aggregate([make_run_dir("empty")])

    def test_missing_table_warns(self, make_run_dir, caplog):
        """Test a deleted table is a warning, not an error."""
        d1 = make_run_dir("run1", bandwidth=full_bandwidth("X"))
        (d1 / "latency_results.csv").unlink()

        with caplog.at_level(logging.WARNING):
            dataset = MultiRunAggregator().aggregate([d1])

        assert dataset.latency == ()
        assert "No latency_results.csv found" in caplog.text
