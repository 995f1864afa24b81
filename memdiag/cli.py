"""Command-line interface for memdiag."""

import argparse
import sys
from pathlib import Path

from memdiag import __version__
from memdiag.core import Context, RunLogger, load_settings
from memdiag.core.output import MAGENTA, Report
from memdiag.report import run_pass, watch


def positive_float(value: str) -> float:
    """argparse type for a strictly positive number of seconds."""
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid interval: {value!r}")
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"interval must be positive: {value!r}")
    return seconds


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="memdiag",
        description="Memory usage report with OOM history and swap sizing advice",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"memdiag {__version__}",
    )
    parser.add_argument(
        "-w",
        "--watch",
        nargs="?",
        type=positive_float,
        const=0.0,
        default=None,
        metavar="INTERVAL",
        help="Refresh the report every INTERVAL seconds (default: 5, or watch_interval from config)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML config file (overrides user and project config)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--log-dir",
        help="Write a JSONL run log under this directory",
    )
    return parser


def main(argv: list[str] | None = None, context: Context | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    if args.no_color or not sys.stdout.isatty():
        settings.color = False
    if args.log_dir:
        settings.log_dir = args.log_dir
    if context is None:
        context = Context()

    with RunLogger.for_dir(settings.log_dir) as logger:
        try:
            if args.watch is not None:
                interval = args.watch or settings.watch_interval
                logger.info("Watch mode started", interval=interval)
                watch(context, settings, interval, logger=logger)
            else:
                print(run_pass(context, settings, logger).render())
                hint = Report(color=settings.color)
                hint.line()
                hint.line(hint.paint("Run with -w or --watch to continuously monitor", MAGENTA))
                hint.line(hint.paint("Example: memdiag --watch 2     # Updates every 2 seconds", MAGENTA))
                print(hint.render())
        except KeyboardInterrupt:
            logger.info("Interrupted")
            return 0

    return 0


def run_main() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run_main()
