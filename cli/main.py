"""Storage benchmark CLI - Command line interface."""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from benchmark.config import build_settings
from benchmark.core.profiles import ProfileRegistry
from benchmark.core.runner import WorkloadRunner
from benchmark.core.sequencer import RunSequencer
from benchmark.prechecks.device import parse_targets
from benchmark.prechecks.environment import check_environment
from common import __version__
from common.errors import BenchmarkError
from common.models.comparison import AggregateOptions, CollisionPolicy, SortMethod
from common.models.device import DeviceStatus
from common.models.workload import MetricFamily
from common.reporting.plots import PlotEmitter
from common.reporting.report import (
    load_source_configs,
    render_benchmark_report,
    render_comparison_report,
)
from common.storage.result_store import ResultStore
from common.utils import ensure_dir, generate_run_id, split_csv_option
from comparison.config import ComparisonSettings
from comparison.core.aggregator import MultiRunAggregator

logger = logging.getLogger("storage-bench")

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
COMPARISON_REPORT = "comparison_report.txt"


class CLIArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def setup_logging(level: str = "INFO", fmt: str = DEFAULT_LOG_FORMAT) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def add_file_handler(path: Path, fmt: str = DEFAULT_LOG_FORMAT) -> logging.Handler:
    """Mirror the log into a file inside the run directory."""
    handler = logging.FileHandler(path)
    handler.setFormatter(logging.Formatter(fmt))
    logging.getLogger().addHandler(handler)
    return handler


def emit_run_charts(store: ResultStore, gnuplot_binary: str) -> None:
    """Chart one run's own tables, one bar group per device label."""
    if next(store.iter_rows(MetricFamily.BANDWIDTH), None) is None:
        logger.warning("Not enough bandwidth data for plotting")
        return
    try:
        dataset = MultiRunAggregator().aggregate([store.run_dir])
    except BenchmarkError as e:
        logger.warning(f"Cannot prepare chart data: {e}")
        return
    PlotEmitter(store.run_dir, gnuplot_binary).emit(dataset)


def cmd_run(args) -> int:
    """Benchmark one or more labelled mount points."""
    targets = parse_targets(args.devices)

    overrides = {}
    if args.output_root:
        overrides["output_root"] = Path(args.output_root)
    settings = build_settings(args.config, **overrides)
    setup_logging(args.log_level or settings.log_level, settings.log_format)

    environment = check_environment(settings.fio_binary, settings.gnuplot_binary)

    registry = ProfileRegistry(settings.profiles)
    logger.info("Benchmark configuration:")
    for line in registry.describe():
        logger.info(f"  {line}")

    started_at = datetime.now()
    store = ResultStore(settings.output_root / generate_run_id(settings.run_dir_prefix, started_at))
    handler = add_file_handler(store.log_path, settings.log_format)
    try:
        store.save_config({
            "tool_version": __version__,
            "started_at": started_at.isoformat(),
            "fio_binary": environment.fio_path,
            "devices": [t.model_dump() for t in targets],
            "profiles": settings.profiles.model_dump(),
        })

        runner = WorkloadRunner(store.jobs_dir, settings.fio_binary)
        runs = RunSequencer(registry, runner, store).run(targets)
        store.save_command_log(runner.get_command_log())

        emit_run_charts(store, settings.gnuplot_binary)
        store.write_report(render_benchmark_report(registry.profiles(), store, runs))

        logger.info("Device status:")
        for run in runs:
            logger.info(f"  {run.label}: {run.status_line()}")
        logger.info(f"Results saved to: {store.run_dir}")
    finally:
        logging.getLogger().removeHandler(handler)
        handler.close()

    if not any(r.status == DeviceStatus.SUCCEEDED for r in runs):
        logger.error("No device completed the benchmark")
        return 1
    return 0


def cmd_compare(args) -> int:
    """Compare the results of several benchmark runs."""
    settings = ComparisonSettings()
    setup_logging(args.log_level or settings.log_level, settings.log_format)

    options = AggregateOptions(
        devices=split_csv_option(args.devices),
        names=split_csv_option(args.names),
        sort=SortMethod(args.sort),
        collision=CollisionPolicy(args.on_collision),
    )
    dataset = MultiRunAggregator(options).aggregate(args.directories)

    output_dir = ensure_dir(args.output or settings.output_dir)
    emitter = PlotEmitter(output_dir, settings.gnuplot_binary)
    emitter.write_tables(dataset)
    images = emitter.emit(dataset)

    report_path = output_dir / COMPARISON_REPORT
    report_path.write_text(render_comparison_report(dataset, load_source_configs(dataset.sources)))

    logger.info(f"Comparison complete. Results saved to: {output_dir}")
    logger.info(f"  Report: {report_path}")
    for image in images:
        logger.info(f"  Graph: {image}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = CLIArgumentParser(
        prog="storage-bench",
        description="Storage benchmark and comparison tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: from settings, INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # run
    run_parser = subparsers.add_parser(
        "run",
        help="Benchmark labelled mount points",
        epilog="Example: storage-bench run ssd /mnt/ssd hdd /mnt/hdd",
    )
    run_parser.add_argument("devices", nargs="*", metavar="LABEL PATH", help="Device label and mount path pairs")
    run_parser.add_argument("-c", "--config", help="YAML file overriding workload parameters")
    run_parser.add_argument("--output-root", help="Directory in which the run directory is created")
    run_parser.set_defaults(func=cmd_run)

    # compare
    compare_parser = subparsers.add_parser("compare", help="Compare several benchmark runs")
    compare_parser.add_argument("directories", nargs="+", metavar="DIR", help="Benchmark run directories")
    compare_parser.add_argument("-o", "--output", help="Output directory (default: ./comparison_results)")
    compare_parser.add_argument("-d", "--devices", help="Comma separated device order")
    compare_parser.add_argument("-n", "--names", help="Comma separated display names, by final order")
    compare_parser.add_argument(
        "-s", "--sort",
        choices=[m.value for m in SortMethod],
        default=SortMethod.PARAM.value,
        help="Device order when --devices is not given (default: param)",
    )
    compare_parser.add_argument(
        "--on-collision",
        choices=[p.value for p in CollisionPolicy],
        default=CollisionPolicy.MERGE.value,
        help="Same label in several directories: merge them or fail (default: merge)",
    )
    compare_parser.set_defaults(func=cmd_compare)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level or "INFO")
    try:
        return args.func(args)
    except BenchmarkError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
