"""Append-only result store backed by a run directory."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Iterator, Optional

from common.models.results import RawPayload, ResultRow, TABLE_HEADER
from common.models.workload import MetricFamily, TestKind
from common.utils import ensure_dir, load_yaml, save_yaml

logger = logging.getLogger(__name__)

CONFIG_SNAPSHOT = "config.yaml"
REPORT_FILE = "benchmark_report.txt"
LOG_FILE = "benchmark.log"
COMMAND_LOG = "commands.json"


def archive_name(device_label: str, kind: TestKind) -> str:
    """File name of the raw-payload archive for a (device, test) pair."""
    return f"{device_label}_{kind.archive_suffix}.json"


class ResultStore:
    """Write-once snapshot of one benchmark run.

    Three CSV tables (bandwidth, IOPS, latency) are only ever appended to;
    raw payload archives are written once per (device, test kind). Opening
    an existing directory with ``create=False`` gives read-only access used
    by the comparison tool.
    """

    def __init__(self, run_dir: str | Path, create: bool = True):
        self.run_dir = Path(run_dir)
        self.read_only = not create
        if create:
            self._init_directories()
            self._init_tables()
        elif not self.run_dir.is_dir():
            raise FileNotFoundError(f"Run directory not found: {self.run_dir}")

    def _init_directories(self) -> None:
        """Create required directories."""
        ensure_dir(self.run_dir)
        ensure_dir(self.jobs_dir)
        logger.info(f"Initialized result directory at {self.run_dir}")

    def _init_tables(self) -> None:
        """Write each table's header once, at creation."""
        for family in MetricFamily:
            path = self.table_path(family)
            if path.exists():
                continue
            with open(path, "w", newline="") as f:
                csv.writer(f, lineterminator="\n").writerow(TABLE_HEADER)

    @property
    def jobs_dir(self) -> Path:
        return self.run_dir / "jobs"

    @property
    def report_path(self) -> Path:
        return self.run_dir / REPORT_FILE

    @property
    def log_path(self) -> Path:
        return self.run_dir / LOG_FILE

    def table_path(self, family: MetricFamily) -> Path:
        return self.run_dir / family.table_name

    def archive_path(self, device_label: str, kind: TestKind) -> Path:
        return self.run_dir / archive_name(device_label, kind)

    # ==================== Writes ====================

    def _check_writable(self) -> None:
        if self.read_only:
            raise PermissionError(f"Result store opened read-only: {self.run_dir}")

    def append(self, family: MetricFamily, row: ResultRow) -> None:
        """Append one row to a result table."""
        self._check_writable()
        with open(self.table_path(family), "a", newline="") as f:
            csv.writer(f, lineterminator="\n").writerow(row.as_csv())
        logger.debug(f"Appended to {family.table_name}: {row.device},{row.test},{row.value}")

    def archive(self, kind: TestKind, device_label: str, payload: RawPayload) -> Path:
        """Persist a raw payload; each (device, test kind) is written once."""
        self._check_writable()
        path = self.archive_path(device_label, kind)
        # Mode "x" refuses to overwrite an earlier archive
        with open(path, "x") as f:
            f.write(payload.text)
        logger.debug(f"Archived raw payload: {path.name}")
        return path

    def save_config(self, snapshot: dict) -> Path:
        """Save the run configuration snapshot."""
        self._check_writable()
        path = self.run_dir / CONFIG_SNAPSHOT
        if path.exists():
            raise FileExistsError(f"Config snapshot already written: {path}")
        save_yaml(path, snapshot)
        logger.info(f"Saved run configuration: {path}")
        return path

    def save_command_log(self, entries: list[dict]) -> Path:
        """Save the executed load generator commands."""
        self._check_writable()
        path = self.run_dir / COMMAND_LOG
        with open(path, "w") as f:
            json.dump(entries, f, indent=2)
        return path

    def write_report(self, text: str) -> Path:
        """Write the textual report."""
        self._check_writable()
        self.report_path.write_text(text)
        logger.info(f"Report generated: {self.report_path}")
        return self.report_path

    # ==================== Reads ====================

    def iter_rows(self, family: MetricFamily) -> Iterator[ResultRow]:
        """Yield the rows of a table in insertion order."""
        path = self.table_path(family)
        if not path.exists():
            return
        with open(path, newline="") as f:
            reader = csv.reader(f)
            for line_no, record in enumerate(reader, start=1):
                if line_no == 1 and tuple(record) == TABLE_HEADER:
                    continue
                if len(record) < 3:
                    continue
                try:
                    value = float(record[2])
                except ValueError:
                    logger.warning(f"Skipping malformed row {line_no} in {path}: {record}")
                    continue
                yield ResultRow(device=record[0], test=record[1], value=value)

    def read_table(self, family: MetricFamily) -> list[ResultRow]:
        return list(self.iter_rows(family))

    def has_table(self, family: MetricFamily) -> bool:
        return self.table_path(family).exists()

    def table_text(self, family: MetricFamily) -> str:
        """Table contents exactly as stored."""
        path = self.table_path(family)
        if not path.exists():
            return ""
        return path.read_text()

    def archive_files(self) -> list[Path]:
        """Raw payload archives, oldest modification time first."""
        files = [
            p for p in self.run_dir.glob("*.json")
            if p.is_file() and p.name != COMMAND_LOG
        ]
        return sorted(files, key=lambda p: (p.stat().st_mtime_ns, p.name))

    def load_config(self) -> Optional[dict]:
        path = self.run_dir / CONFIG_SNAPSHOT
        if not path.exists():
            return None
        return load_yaml(path)
