"""
Benchmark session orchestrator.

Runs each configured format independently (init, measure, summarise,
render) and persists the combined report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

from imagebench.config import get_data_dir, get_output_dir
from imagebench.decoders import Decoder, ImageFormat, get_decoder
from imagebench.metrics import BenchmarkRunSummary, FileBenchmarkResult, create_summary
from imagebench.report import ReportGenerator, render_banner, render_format_header, render_report
from imagebench.runner import BenchmarkRunner

logger = logging.getLogger(__name__)

DEFAULT_FORMATS = ("png", "jpg")


class ConfigurationError(Exception):
    """A required input directory is missing."""


@dataclass
class BenchmarkConfig:
    """Configuration for a benchmark run."""

    data_dir: Path = field(default_factory=get_data_dir)
    output_dir: Path = field(default_factory=get_output_dir)
    formats: tuple[str, ...] = DEFAULT_FORMATS
    limit: int | None = None  # Only benchmark the first N files per format

    # Artifacts written next to report.txt
    write_charts: bool = True
    write_traces: bool = True

    def __post_init__(self) -> None:
        """Convert paths to Path objects if needed."""
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)
        self.formats = tuple(f.lower() for f in self.formats)


@dataclass
class FormatRun:
    """Raw results and derived summary for one format."""

    image_format: ImageFormat
    results: list[FileBenchmarkResult]
    summary: BenchmarkRunSummary


@dataclass
class BenchmarkResult:
    """Result of a benchmark session."""

    runs: list[FormatRun]
    skipped: list[str]
    report_text: str
    report_path: Path
    start_time: datetime
    end_time: datetime

    @property
    def run_dir(self) -> Path:
        return self.report_path.parent

    @property
    def wall_time_s(self) -> float:
        """Total wall clock time in seconds."""
        return (self.end_time - self.start_time).total_seconds()

    def get_run(self, format_name: str) -> FormatRun | None:
        for run in self.runs:
            if run.image_format.name == format_name.upper():
                return run
        return None


class BenchmarkSession:
    """Manages a complete benchmark run over a corpus directory.

    The corpus holds one subdirectory per format (``png/``, ``jpg/``).
    A missing subdirectory skips that format only.
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        progress_callback: Callable[[int, int, str], None] | None = None,
        echo: Callable[[str], None] | None = None,
    ):
        """Initialize benchmark session.

        Args:
            config: Benchmark configuration
            progress_callback: Optional callback for progress updates.
                              Called with (current, total, message).
            echo: Optional sink receiving each report section as soon as
                  it is rendered, e.g. to print it to a console.
        """
        self.config = config
        self._progress_callback = progress_callback
        self._echo = echo
        self._sections: list[str] = []

    def _report_progress(self, current: int, total: int, message: str) -> None:
        """Report progress if callback is set."""
        if self._progress_callback:
            self._progress_callback(current, total, message)

    def _emit(self, text: str) -> None:
        self._sections.append(text)
        if self._echo:
            self._echo(text)

    def run(self) -> BenchmarkResult:
        """Execute the benchmark for every configured format.

        Raises:
            ConfigurationError: If the data directory does not exist.
            OSError: If report artifacts cannot be written.
        """
        if not self.config.data_dir.is_dir():
            raise ConfigurationError(f"Data directory not found: {self.config.data_dir}")

        start_time = datetime.now()
        run_dir = self.config.output_dir / f"benchmark-{start_time:%Y-%m%d-%H%M%S}"
        run_dir.mkdir(parents=True, exist_ok=True)

        # Set up logging to file
        file_handler = logging.FileHandler(run_dir / "benchmark.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        root_logger = logging.getLogger()
        root_logger.addHandler(file_handler)

        try:
            logger.info(f"Starting benchmark at {start_time}")
            self._sections = []
            self._emit(render_banner(start_time))

            runs: list[FormatRun] = []
            skipped: list[str] = []
            for format_key in self.config.formats:
                decoder = get_decoder(format_key)
                try:
                    runs.append(self.run_format(decoder))
                except ConfigurationError as e:
                    logger.warning(str(e))
                    self._emit(str(e))
                    skipped.append(decoder.format_name)

            end_time = datetime.now()
            logger.info(f"Benchmark completed at {end_time}")

            report_text = "\n\n".join(self._sections)
            generator = ReportGenerator(
                run_dir,
                write_charts=self.config.write_charts,
                write_traces=self.config.write_traces,
            )
            report_path = generator.generate_all(report_text, [(r.summary, r.results) for r in runs])

            return BenchmarkResult(
                runs=runs,
                skipped=skipped,
                report_text=report_text,
                report_path=report_path,
                start_time=start_time,
                end_time=end_time,
            )
        finally:
            root_logger.removeHandler(file_handler)
            file_handler.close()

    def run_format(self, decoder: Decoder) -> FormatRun:
        """Benchmark one format: init, measure every file, then summarise.

        Raises:
            ConfigurationError: If the format's directory is missing.
        """
        image_format = decoder.image_format
        directory = self.config.data_dir / image_format.subdirectory
        if not directory.is_dir():
            raise ConfigurationError(f"{image_format.name} directory not found: {directory}")

        runner = BenchmarkRunner(decoder)
        init_timing = runner.initialize()

        files = runner.discover_files(directory)
        if self.config.limit is not None:
            files = files[: self.config.limit]

        self._emit(
            render_format_header(image_format.name, decoder.name)
            + f"\nFiles found: {len(files)}"
        )

        # Measurement: nothing but reads, decodes and raw ticks
        logger.info(f"Benchmarking {len(files)} {image_format.name} files with {decoder.name}")
        results = runner.benchmark_files(
            files,
            progress_callback=lambda current, total: self._report_progress(
                current, total, f"Processed {current} of {total} {image_format.name} files"
            ),
        )

        # Post-processing: statistics and report text
        summary = create_summary(image_format.name, init_timing, results)
        self._emit(render_report(summary, results))
        logger.info(
            f"{image_format.name}: {summary.success_count} of {summary.total_files} files decoded, "
            f"{summary.failure_count} failed"
        )

        return FormatRun(image_format=image_format, results=results, summary=summary)
