"""
Command line entry point.

Usage Examples:
    # Benchmark every project and compare against the latest baseline
    perfrunner sample --baseline-dir baselines/ --projects-dir projects/ \\
        --tmp-dir /tmp/perf --out-dir results/

    # Same, with settings from a file and a CSV report
    perfrunner sample --config perfrunner.yaml --csv \\
        --baseline-dir baselines/ --projects-dir projects/ \\
        --tmp-dir /tmp/perf --out-dir results/

Exit codes:
    0  every calculation passed
    1  at least one regression
    2  the comparison could not be made (bad configuration, missing baselines,
       hyperfine failure, malformed measurements)
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from perfrunner import LoggingConfigError, __version__, initialize_logging, logger
from perfrunner.calculate import regressions
from perfrunner.config import load_settings
from perfrunner.exceptions import PerfRunnerError
from perfrunner.report import format_regression, log_summary, write_calculations, write_csv_report
from perfrunner.sampler import take_samples

EXIT_OK = 0
EXIT_REGRESSION = 1
EXIT_ERROR = 2

CALCULATIONS_FILE = "final_calculations.json"
CALCULATIONS_CSV = "final_calculations.csv"


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="perfrunner",
        description="Detect performance regressions against historical baselines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Console log level (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write DEBUG logs to this file",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sample = subparsers.add_parser(
        "sample",
        help="Benchmark projects and compare them against the latest baseline",
    )
    sample.add_argument("--baseline-dir", type=Path, required=True, help="Directory of baseline JSON files")
    sample.add_argument("--projects-dir", type=Path, required=True, help="Directory of projects to benchmark")
    sample.add_argument("--tmp-dir", type=Path, required=True, help="Scratch directory for hyperfine exports")
    sample.add_argument("--out-dir", type=Path, required=True, help="Directory for the calculation reports")
    sample.add_argument("--config", type=Path, default=None, help="YAML settings file")
    sample.add_argument(
        "--sigma",
        type=float,
        default=None,
        help="Standard deviations above the baseline mean that count as a regression (default: 3.0)",
    )
    sample.add_argument("--csv", action="store_true", help="Also write a CSV report")

    return parser


def run_sample(args: argparse.Namespace) -> int:
    settings = load_settings(args.config, sigma=args.sigma)

    calculations = regressions(
        args.baseline_dir,
        args.projects_dir,
        args.tmp_dir,
        sigma=settings.sigma,
        sampler=lambda projects_dir, tmp_dir: take_samples(projects_dir, tmp_dir, settings),
    )

    write_calculations(calculations, args.out_dir / CALCULATIONS_FILE)
    if args.csv:
        write_csv_report(calculations, args.out_dir / CALCULATIONS_CSV)

    summary = log_summary(calculations)
    if summary["regressions"]:
        for calc in calculations:
            if calc.regression:
                print(format_regression(calc))
        return EXIT_REGRESSION

    print(f"No regressions found in {summary['total']} calculation(s)")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        initialize_logging(level=args.log_level, log_file=args.log_file)
    except LoggingConfigError as e:
        parser.error(str(e))

    try:
        if args.command == "sample":
            return run_sample(args)
    except PerfRunnerError as e:
        logger.error(f"{e.__class__.__name__}: {e.message}")
        for key, value in e.context.items():
            logger.error(f"  {key}: {value}")
        return EXIT_ERROR

    parser.error(f"Unknown command: {args.command}")
    return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
