#!/usr/bin/env python3
"""
CLI entry point for the benchmarking system.

Usage:
    python -m imagebench ./data/
    python -m imagebench ./data/ --output ./results --format png
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from imagebench.config import get_data_dir, get_output_dir
from imagebench.decoders import FORMATS
from imagebench.session import BenchmarkConfig, BenchmarkSession, ConfigurationError


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the benchmark run."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def create_progress_callback(console: Console):
    """Create a rich progress callback; each format gets a fresh bar."""
    progress: Progress | None = None
    task_id = None

    def callback(current: int, total: int, message: str) -> None:
        nonlocal progress, task_id

        if progress is None:
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console,
                auto_refresh=False,
            )
            progress.start()
            task_id = progress.add_task(message, total=total, completed=current)
        else:
            progress.update(task_id, completed=current, description=message)
        # Drawn here only, between files; no refresh thread runs while timing
        progress.refresh()

        if current >= total:
            cleanup()

    def cleanup() -> None:
        nonlocal progress
        if progress is not None:
            progress.stop()
            progress = None

    return callback, cleanup


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the benchmark CLI."""
    parser = argparse.ArgumentParser(
        prog="imagebench",
        description="Benchmark PNG/JPEG decompression across a corpus of images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Benchmark data/png and data/jpg
    python -m imagebench ./data/

    # Write run folders somewhere else
    python -m imagebench ./data/ -o ./benchmark_results

    # Only PNG, first 500 files
    python -m imagebench ./data/ -f png --limit 500

    # Skip chart rendering
    python -m imagebench ./data/ --no-charts
        """,
    )

    parser.add_argument(
        "data_dir",
        type=Path,
        nargs="?",
        default=None,
        help=f"Corpus directory containing png/ and jpg/ subdirectories (default: {get_data_dir()})",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help=f"Directory for timestamped run folders (default: {get_output_dir()})",
    )

    parser.add_argument(
        "-f", "--format",
        dest="formats",
        action="append",
        choices=sorted(FORMATS),
        default=None,
        help="Format to benchmark; repeat for several (default: png and jpg)",
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Benchmark at most N files per format",
    )

    parser.add_argument(
        "--no-charts",
        action="store_true",
        help="Do not render throughput charts",
    )

    parser.add_argument(
        "--no-traces",
        action="store_true",
        help="Do not export Chrome trace timelines",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.verbose)

    data_dir = args.data_dir or get_data_dir()

    # Validate input directory
    if not data_dir.exists():
        print(f"Error: Data directory not found: {data_dir}", file=sys.stderr)
        return 1

    if not data_dir.is_dir():
        print(f"Error: Data path is not a directory: {data_dir}", file=sys.stderr)
        return 1

    if args.limit is not None and args.limit < 0:
        print("Error: --limit must not be negative", file=sys.stderr)
        return 1

    # Create configuration
    config = BenchmarkConfig(
        data_dir=data_dir,
        output_dir=args.output or get_output_dir(),
        formats=tuple(dict.fromkeys(args.formats)) if args.formats else ("png", "jpg"),
        limit=args.limit,
        write_charts=not args.no_charts,
        write_traces=not args.no_traces,
    )

    console = Console(highlight=False, soft_wrap=True)

    # Create progress callback
    progress_callback, cleanup = create_progress_callback(console)

    def echo(text: str) -> None:
        console.print(text, markup=False)
        console.print()

    try:
        session = BenchmarkSession(config, progress_callback=progress_callback, echo=echo)
        result = session.run()
        cleanup()

        console.print(f"Report saved to: {result.report_path}", markup=False)
        return 0

    except KeyboardInterrupt:
        cleanup()
        print("\nBenchmark interrupted by user")
        return 130

    except (ConfigurationError, OSError) as e:
        cleanup()
        logging.exception("Benchmark failed with error")
        print(f"\nError: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
