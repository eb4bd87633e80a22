"""Chart data files, gnuplot scripts and best-effort rendering."""

from __future__ import annotations

import csv
import logging
import shutil
import subprocess
from pathlib import Path

from common.errors import RenderWarning
from common.models.comparison import ComparisonDataset, ValuePoint
from common.models.results import format_value
from common.models.workload import BANDWIDTH_TESTS
from common.utils import ensure_dir

logger = logging.getLogger(__name__)

# Per-device colors, assigned by plot index (wraps around)
PALETTE = [
    "blue", "red", "forest-green", "orange", "violet", "turquoise",
    "brown", "gold", "black", "gray", "pink", "dark-blue",
    "dark-red", "olive", "cyan", "magenta", "yellow", "dark-gray",
]

BANDWIDTH_COLORS = ["#4169E1", "#DC143C", "#228B22", "#FF8C00"]

_HEADER = (
    "set terminal pngcairo size {width},{height} enhanced font 'Arial,12'\n"
    "set output '{image}'\n"
    "set title \"{title}\\n{{/*0.8 {hint}}}\"\n"
    "set style fill solid 0.7 border -1\n"
    "set grid ytics\n"
    "set key outside right top vertical\n"
    "set xlabel 'Device'\n"
    "set ylabel '{ylabel}'\n"
    "set xtics rotate by -45\n"
    "set yrange [0:*]\n"
)


def chart_label(label: str) -> str:
    """Label as drawn on a chart; gnuplot data files cannot hold a double quote."""
    return label.replace('"', "'")


def quote_label(label: str) -> str:
    """Quote a label for a whitespace-delimited gnuplot data file."""
    return '"' + chart_label(label) + '"'


def bandwidth_script(data_file: str, image: str) -> str:
    """Grouped bars: one group per device, four series."""
    lines = [
        _HEADER.format(width=1200, height=800, image=image, hint="Higher is better",
                       title="Bandwidth Comparison (MB/s)", ylabel="MB/s"),
        "set style data histograms\n",
        "set style histogram clustered gap 1\n",
        "set boxwidth 0.9\n",
        "\n",
    ]
    series = []
    for column, (kind, color) in enumerate(zip(BANDWIDTH_TESTS, BANDWIDTH_COLORS), start=2):
        source = f"'{data_file}' using {column}:xtic(1)" if column == 2 else f"'' using {column}"
        series.append(f"{source} title '{kind.title}' lc rgb '{color}'")
    lines.append("plot " + ", \\\n     ".join(series) + "\n")
    return "".join(lines)


def single_series_script(data_file: str, image: str, title: str, ylabel: str, hint: str) -> str:
    """One bar per row, colored by the row's plot index."""
    lines = [
        _HEADER.format(width=1000, height=700, image=image, hint=hint, title=title, ylabel=ylabel),
        "set boxwidth 0.8\n",
    ]
    for lt, color in enumerate(PALETTE, start=1):
        lines.append(f"set linetype {lt} lc rgb '{color}'\n")
    lines.append(f"set linetype cycle {len(PALETTE)}\n")
    lines.append("\n")
    lines.append(f"plot '{data_file}' using 0:2:3:xtic(1) with boxes lc variable title '{ylabel}'\n")
    return "".join(lines)


class PlotEmitter:
    """Write chart inputs for a comparison dataset and render them."""

    CHARTS = ("bandwidth", "iops", "latency")

    def __init__(self, output_dir: str | Path, gnuplot_binary: str = "gnuplot"):
        self.output_dir = Path(output_dir)
        self.data_dir = self.output_dir / "data"
        self.gnuplot_binary = gnuplot_binary

    # ==================== Data files ====================

    def write_tables(self, dataset: ComparisonDataset) -> list[Path]:
        """Write the unified per-metric CSV tables."""
        ensure_dir(self.output_dir)
        bandwidth_path = self.output_dir / "bandwidth_data.csv"
        with open(bandwidth_path, "w", newline="") as f:
            writer = csv.writer(f, lineterminator="\n")
            writer.writerow(["Device", "Test", "Value", "Index"])
            for p in dataset.bandwidth:
                writer.writerow([p.device, p.test, format_value(p.value), p.index])

        paths = [bandwidth_path]
        for name, points in (("iops", dataset.iops), ("latency", dataset.latency)):
            path = self.output_dir / f"{name}_data.csv"
            with open(path, "w", newline="") as f:
                writer = csv.writer(f, lineterminator="\n")
                writer.writerow(["Device", "Value", "Index"])
                for p in points:
                    writer.writerow([p.device, format_value(p.value), p.index])
            paths.append(path)
        return paths

    def write_bandwidth_data(self, dataset: ComparisonDataset) -> Path:
        ensure_dir(self.data_dir)
        path = self.data_dir / "bandwidth.dat"
        lines = ["# Device SeqRead SeqWrite RandRead RandWrite"]
        for row in dataset.bandwidth_matrix:
            values = " ".join(format_value(v) for v in row.values())
            lines.append(f"{quote_label(row.display_name)} {values}")
        path.write_text("\n".join(lines) + "\n")
        return path

    def write_value_data(self, name: str, column: str, points: tuple[ValuePoint, ...]) -> Path:
        ensure_dir(self.data_dir)
        path = self.data_dir / f"{name}.dat"
        lines = [f"# Device {column} Index"]
        for p in points:
            lines.append(f"{quote_label(p.device)} {format_value(p.value)} {p.index}")
        path.write_text("\n".join(lines) + "\n")
        return path

    def write_scripts(self) -> dict[str, Path]:
        scripts = {
            "bandwidth": bandwidth_script("data/bandwidth.dat", "bandwidth_comparison.png"),
            "iops": single_series_script(
                "data/iops.dat", "iops_comparison.png",
                title="IOPS Comparison", ylabel="IOPS", hint="Higher is better",
            ),
            "latency": single_series_script(
                "data/latency.dat", "latency_comparison.png",
                title="Latency Comparison (ms)", ylabel="Latency (ms)", hint="Lower is better",
            ),
        }
        paths = {}
        for name, text in scripts.items():
            path = self.output_dir / f"{name}_plot.gnuplot"
            path.write_text(text)
            paths[name] = path
        return paths

    # ==================== Rendering ====================

    def gnuplot_available(self) -> bool:
        return shutil.which(self.gnuplot_binary) is not None

    def render(self, name: str, script: Path) -> Path:
        """Run gnuplot on one script; raise RenderWarning on any failure."""
        image = self.output_dir / f"{name}_comparison.png"
        log_path = self.output_dir / f"{name}_gnuplot.log"
        try:
            result = subprocess.run(
                [self.gnuplot_binary, script.name],
                cwd=self.output_dir,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise RenderWarning(f"Cannot run {self.gnuplot_binary}: {e}") from e

        log_path.write_text(result.stderr)
        if result.returncode != 0:
            raise RenderWarning(
                f"Error generating {name} graph (exit code {result.returncode}). See {log_path}"
            )
        if not image.exists() or image.stat().st_size == 0:
            raise RenderWarning(f"{name} graph is empty. See {log_path}")
        return image

    def emit(self, dataset: ComparisonDataset) -> list[Path]:
        """Write data files and scripts, then render what gnuplot allows.

        Rendering is best-effort: problems are logged as warnings and the
        data files and scripts are kept either way.
        """
        for device in dataset.devices:
            if chart_label(device.display_name) != device.display_name:
                logger.warning(
                    f"Display name {device.display_name} is shown as "
                    f"{chart_label(device.display_name)} in the charts"
                )
        self.write_bandwidth_data(dataset)
        self.write_value_data("iops", "IOPS", dataset.iops)
        self.write_value_data("latency", "Latency", dataset.latency)
        scripts = self.write_scripts()

        if not self.gnuplot_available():
            logger.warning(f"Cannot generate graphs, {self.gnuplot_binary} is not installed.")
            return []

        images = []
        for name in self.CHARTS:
            try:
                image = self.render(name, scripts[name])
            except RenderWarning as e:
                logger.warning(str(e))
                continue
            logger.info(f"{name.capitalize()} graph generated: {image}")
            images.append(image)

        if len(images) < len(self.CHARTS):
            logger.warning("Some graphs could not be generated or are empty.")
        return images
