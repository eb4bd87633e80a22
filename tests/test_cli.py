"""Tests for the storage-bench command line."""

import json
from unittest.mock import MagicMock, patch

import pytest

from benchmark.prechecks.environment import EnvironmentReport
from cli.main import build_parser, main
from common.models.workload import MetricFamily
from common.storage.result_store import ResultStore

from conftest import full_bandwidth


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch):
    """Leave pytest's log handlers in place."""
    monkeypatch.setattr("cli.main.setup_logging", lambda *args, **kwargs: None)


@pytest.fixture
def no_gnuplot():
    with patch("common.reporting.plots.shutil.which", return_value=None):
        yield


class TestArguments:
    """Tests for argument handling."""

    def test_odd_device_arguments(self, temp_dir):
        """Test a label without a path."""
        assert main(["run", "ssd", "--output-root", str(temp_dir)]) == 1

    def test_no_command(self):
        """Test running without a subcommand."""
        assert main([]) == 1

    def test_compare_without_directories(self):
        """Test compare needs at least one directory."""
        with pytest.raises(SystemExit) as exc_info:
            main(["compare"])

        assert exc_info.value.code == 1

    def test_invalid_sort(self, temp_dir):
        """Test an unknown sort method."""
        with pytest.raises(SystemExit) as exc_info:
            main(["compare", str(temp_dir), "-s", "size"])

        assert exc_info.value.code == 1

    def test_unknown_flag(self, temp_dir):
        """Test an unknown option."""
        with pytest.raises(SystemExit) as exc_info:
            main(["compare", str(temp_dir), "--colour"])

        assert exc_info.value.code == 1

    def test_compare_defaults(self):
        """Test default comparison options."""
        args = build_parser().parse_args(["compare", "a", "b"])

        assert args.directories == ["a", "b"]
        assert args.sort == "param"
        assert args.on_collision == "merge"
        assert args.output is None


class TestRunCommand:
    """Tests for the run subcommand."""

    def environment(self):
        return EnvironmentReport(fio_path="/usr/bin/fio", gnuplot_available=False, running_as_root=True)

    def test_run_with_excluded_device(self, temp_dir, device_dir, fio_payload, no_gnuplot):
        """Test one good and one missing device still exits 0."""
        output = json.dumps(fio_payload())
        fio = MagicMock(returncode=0, stdout=output, stderr="")
        config = temp_dir / "profiles.yaml"
        config.write_text("profiles:\n  runtime: 2\n")
        out = temp_dir / "results"

        with patch("cli.main.check_environment", return_value=self.environment()), \
                patch("benchmark.core.runner.subprocess.run", return_value=fio):
            code = main([
                "run", "A", str(device_dir), "B", str(temp_dir / "missing"),
                "--config", str(config), "--output-root", str(out),
            ])

        assert code == 0
        run_dirs = list(out.glob("benchmark_results_*"))
        assert len(run_dirs) == 1
        run_dir = run_dirs[0]

        store = ResultStore(run_dir, create=False)
        assert [r.test for r in store.read_table(MetricFamily.BANDWIDTH)] == [
            "seq_read", "seq_write", "rand_read", "rand_write",
        ]
        assert store.load_config()["profiles"]["runtime"] == 2
        assert len(json.loads((run_dir / "commands.json").read_text())) == 6
        assert (run_dir / "jobs" / "A_iops.fio").exists()
        assert (run_dir / "data" / "bandwidth.dat").exists()
        assert (run_dir / "benchmark.log").exists()

        report = (run_dir / "benchmark_report.txt").read_text()
        assert f"A ({device_dir}): Succeeded" in report
        assert f"B ({temp_dir / 'missing'}): Excluded (path-missing)" in report
        assert not list(device_dir.iterdir())

    def test_run_all_excluded(self, temp_dir, no_gnuplot):
        """Test exit code 1 when no device completed."""
        with patch("cli.main.check_environment", return_value=self.environment()):
            code = main(["run", "A", str(temp_dir / "missing"), "--output-root", str(temp_dir)])

        assert code == 1

    def test_run_missing_fio(self, temp_dir, device_dir):
        """Test a missing load generator aborts before any run directory."""
        with patch("benchmark.prechecks.environment.shutil.which", return_value=None):
            code = main(["run", "A", str(device_dir), "--output-root", str(temp_dir / "out")])

        assert code == 1
        assert not (temp_dir / "out").exists()

    def test_run_bad_config(self, temp_dir, device_dir):
        """Test an invalid profile file."""
        config = temp_dir / "bad.yaml"
        config.write_text("seq_iodepth: 0\n")

        assert main(["run", "A", str(device_dir), "--config", str(config)]) == 1


class TestCompareCommand:
    """Tests for the compare subcommand."""

    def test_compare(self, make_run_dir, temp_dir, no_gnuplot):
        """Test an end-to-end comparison without gnuplot."""
        d1 = make_run_dir("run1", bandwidth=full_bandwidth("X") + full_bandwidth("Y"), iops=(("X", 1.0),))
        d2 = make_run_dir("run2", bandwidth=full_bandwidth("Z"), latency=(("Z", 0.5),))
        out = temp_dir / "cmp"

        code = main([
            "compare", str(d1), str(d2),
            "-o", str(out), "-d", "Z", "-n", "Zed,Ex", "-s", "alpha",
        ])

        assert code == 0
        assert (out / "bandwidth_data.csv").read_text().splitlines()[1] == "Zed,seq_read,100.0,1"
        assert (out / "latency_data.csv").read_text().splitlines() == ["Device,Value,Index", "Zed,0.5,1"]
        assert (out / "data" / "bandwidth.dat").read_text().splitlines()[1:] == [
            '"Zed" 100.0 50.0 25.0 12.5',
            '"Ex" 100.0 50.0 25.0 12.5',
            '"Y" 100.0 50.0 25.0 12.5',
        ]
        assert (out / "bandwidth_plot.gnuplot").exists()
        assert "DEVICE ORDER" in (out / "comparison_report.txt").read_text()

    def test_compare_missing_directory(self, temp_dir):
        """Test a directory that does not exist."""
        assert main(["compare", str(temp_dir / "nope"), "-o", str(temp_dir / "cmp")]) == 1

    def test_compare_collision_error(self, make_run_dir, temp_dir):
        """Test the error collision policy."""
        d1 = make_run_dir("run1", bandwidth=full_bandwidth("X"))
        d2 = make_run_dir("run2", bandwidth=full_bandwidth("X"))

        code = main(["compare", str(d1), str(d2), "--on-collision", "error", "-o", str(temp_dir / "cmp")])

        assert code == 1
