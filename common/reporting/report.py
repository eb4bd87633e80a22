"""Textual reports for benchmark runs and multi-run comparisons."""

from __future__ import annotations

import csv
import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml

from common import __version__
from common.models.comparison import ComparisonDataset
from common.models.device import DeviceRun
from common.models.results import ResultRow, TABLE_HEADER, format_value
from common.models.workload import MetricFamily, WorkloadProfile
from common.reporting.plots import chart_label
from common.storage.result_store import ResultStore

logger = logging.getLogger(__name__)

RULE = "=" * 50

SECTION_TITLES = {
    MetricFamily.BANDWIDTH: "BANDWIDTH RESULTS (MB/s)",
    MetricFamily.IOPS: "IOPS RESULTS",
    MetricFamily.LATENCY: "LATENCY RESULTS (ms)",
}

GLOSSARY = [
    ("Bandwidth (MB/s)", "Amount of data transferred per second. Higher is better."),
    ("IOPS", "Input/Output Operations Per Second. Higher is better."),
    ("Latency (ms)", "Time from issuing a request to its completion. Lower is better."),
    ("Sequential I/O", "Reading or writing data in contiguous blocks."),
    ("Random I/O", "Reading or writing data at non-contiguous locations."),
    ("Block size", "Amount of data transferred in a single I/O operation."),
    ("IO depth", "Number of I/O requests kept in flight at once."),
    ("Jobs", "Number of parallel workers issuing I/O."),
    ("Direct I/O", "Bypasses the operating system page cache."),
]


def _section(title: str) -> list[str]:
    return [f"{title}:", "-" * (len(title) + 1)]


def _header(title: str, generated_at: datetime, version: str) -> list[str]:
    return [
        RULE,
        title,
        f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        f"Tool version: {version}",
        RULE,
        "",
    ]


def _glossary() -> list[str]:
    lines = _section("TERMINOLOGY")
    for term, meaning in GLOSSARY:
        lines.append(f"{term}: {meaning}")
    return lines


def _parameter_lines(profiles: list[WorkloadProfile]) -> list[str]:
    lines = _section("TEST PARAMETERS")
    if profiles:
        first = profiles[0]
        lines.append(f"Direct I/O: {'Enabled' if first.direct_io else 'Disabled'}")
        lines.append(f"Runtime per test: {first.runtime} seconds")
        lines.append(f"I/O engine: {first.ioengine}")
    for profile in profiles:
        lines.append("")
        lines.append(f"{profile.kind.value} ({profile.kind.title}):")
        lines.append(
            f"  Block size: {profile.block_size}, Size: {profile.size}, "
            f"IO depth: {profile.io_depth}, Jobs: {profile.num_jobs}"
        )
        lines.append(f"  {profile.description}")
    lines.append("")
    return lines


def render_benchmark_report(
    profiles: list[WorkloadProfile],
    store: ResultStore,
    runs: list[DeviceRun],
    generated_at: Optional[datetime] = None,
    version: str = __version__,
) -> str:
    """Render the report for one run directory.

    Result tables are embedded exactly as stored, so rendering twice from
    the same tables with the same ``generated_at`` yields the same text.
    """
    generated_at = generated_at or datetime.now()
    lines = _header("STORAGE BENCHMARK REPORT", generated_at, version)
    lines.extend(_parameter_lines(profiles))

    lines.extend(_section("DEVICE STATUS"))
    for run in runs:
        lines.append(f"{run.label} ({run.target.path}): {run.status_line()}")
    if not runs:
        lines.append("No devices.")
    lines.append("")

    for family in MetricFamily:
        lines.extend(_section(SECTION_TITLES[family]))
        text = store.table_text(family)
        if text:
            lines.extend(text.splitlines())
        else:
            lines.append("No results recorded.")
        lines.append("")

    lines.extend(_glossary())
    return "\n".join(lines) + "\n"


def parse_report_table(report: str, family: MetricFamily) -> list[ResultRow]:
    """Read one result table back out of a rendered report."""
    title = f"{SECTION_TITLES[family]}:"
    lines = report.splitlines()
    try:
        start = lines.index(title) + 2
    except ValueError:
        return []

    block = []
    for line in lines[start:]:
        if not line:
            break
        block.append(line)

    rows = []
    for record in csv.reader(block):
        if tuple(record) == TABLE_HEADER or len(record) < 3:
            continue
        try:
            rows.append(ResultRow(device=record[0], test=record[1], value=float(record[2])))
        except ValueError:
            continue
    return rows


def load_source_configs(sources: tuple[str, ...]) -> dict[str, Optional[dict]]:
    """Configuration snapshots of the compared run directories, if any."""
    configs = {}
    for source in sources:
        try:
            configs[source] = ResultStore(source, create=False).load_config()
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Cannot read configuration snapshot in {source}: {e}")
            configs[source] = None
    return configs


def _csv_block(header: list[str], records: list[list]) -> list[str]:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(records)
    return buffer.getvalue().splitlines()


def render_comparison_report(
    dataset: ComparisonDataset,
    configs: Optional[dict[str, Optional[dict]]] = None,
    generated_at: Optional[datetime] = None,
    version: str = __version__,
) -> str:
    """Render the comparison report: sources, final order, unified tables."""
    generated_at = generated_at or datetime.now()
    configs = configs or {}
    lines = _header("STORAGE BENCHMARK COMPARISON REPORT", generated_at, version)

    lines.extend(_section("SOURCE DIRECTORIES"))
    for source in dataset.sources:
        config = configs.get(source)
        if config:
            lines.append(
                f"{source} (tool version {config.get('tool_version', 'unknown')}, "
                f"started {config.get('started_at', 'unknown')})"
            )
        else:
            lines.append(source)
    lines.append("")

    lines.extend(_section("DEVICE ORDER"))
    for device in dataset.devices:
        sources = ", ".join(Path(s).name for s in device.sources) or "no data"
        label = chart_label(device.display_name)
        chart = f"; Chart label: {label}" if label != device.display_name else ""
        lines.append(
            f"{device.plot_index}. {device.identity} "
            f"(Display: {device.display_name}{chart}; Sources: {sources})"
        )
    lines.append("")

    lines.extend(_section(SECTION_TITLES[MetricFamily.BANDWIDTH]))
    lines.extend(_csv_block(
        ["Device", "Test", "Value", "Index"],
        [[p.device, p.test, format_value(p.value), p.index] for p in dataset.bandwidth],
    ))
    lines.append("")

    for family, points in ((MetricFamily.IOPS, dataset.iops), (MetricFamily.LATENCY, dataset.latency)):
        lines.extend(_section(SECTION_TITLES[family]))
        lines.extend(_csv_block(
            ["Device", "Value", "Index"],
            [[p.device, format_value(p.value), p.index] for p in points],
        ))
        lines.append("")

    lines.extend(_glossary())
    return "\n".join(lines) + "\n"
