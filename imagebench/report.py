"""
Report generation for benchmark results.

Rendering functions are pure and return text; ``ReportGenerator`` is the
only part that touches the filesystem.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from imagebench.metrics import export_chrome_trace, export_results_json
from imagebench.timing import ticks_to_nanoseconds, ticks_to_seconds

if TYPE_CHECKING:
    from imagebench.metrics import BenchmarkRunSummary, FileBenchmarkResult

logger = logging.getLogger(__name__)

RULE_WIDTH = 100
MAX_LISTED_FAILURES = 5


def format_bytes(num_bytes: int) -> str:
    if num_bytes >= 1_000_000_000:
        return f"{num_bytes / 1_000_000_000:.2f} GB"
    if num_bytes >= 1_000_000:
        return f"{num_bytes / 1_000_000:.2f} MB"
    if num_bytes >= 1_000:
        return f"{num_bytes / 1_000:.2f} KB"
    return f"{num_bytes} B"


def format_bytes_per_second(bytes_per_second: float | None) -> str:
    if bytes_per_second is None or not math.isfinite(bytes_per_second) or bytes_per_second <= 0:
        return "N/A"
    if bytes_per_second >= 1_000_000_000:
        return f"{bytes_per_second / 1_000_000_000:.2f} GB/s"
    if bytes_per_second >= 1_000_000:
        return f"{bytes_per_second / 1_000_000:.2f} MB/s"
    if bytes_per_second >= 1_000:
        return f"{bytes_per_second / 1_000:.2f} KB/s"
    return f"{bytes_per_second:.2f} B/s"


def format_time(nanoseconds: int) -> str:
    if nanoseconds >= 1_000_000_000:
        return f"{nanoseconds / 1_000_000_000:.3f} s"
    if nanoseconds >= 1_000_000:
        return f"{nanoseconds / 1_000_000:.2f} ms"
    if nanoseconds >= 1_000:
        return f"{nanoseconds / 1_000:.2f} us"
    return f"{nanoseconds} ns"


def format_ticks(ticks: int) -> str:
    return format_time(ticks_to_nanoseconds(ticks))


def throughput(num_bytes: int, decompress_ticks: int) -> float | None:
    """Bytes per second of decompression time, or None when undefined."""
    seconds = ticks_to_seconds(decompress_ticks)
    if seconds <= 0:
        return None
    rate = num_bytes / seconds
    return rate if math.isfinite(rate) else None


def size_label(range_label: str) -> str:
    return range_label if range_label.startswith(">") else f"{range_label}x{range_label}"


def render_banner(when: datetime) -> str:
    lines = [
        "=" * RULE_WIDTH,
        "Image Decompression Benchmark",
        f"Date: {when:%Y-%m-%d %H:%M:%S}",
        "=" * RULE_WIDTH,
    ]
    return "\n".join(lines)


def render_format_header(format_name: str, library_name: str) -> str:
    lines = [
        "-" * RULE_WIDTH,
        f"{format_name} Decompression Benchmark (Library: {library_name})",
        "-" * RULE_WIDTH,
    ]
    return "\n".join(lines)


def _table_row(
    label: str,
    count: int,
    library: str,
    read_ticks: int,
    decompress_ticks: int,
    bytes_in: int,
    bytes_out: int,
) -> str:
    return (
        f"{label:<10} | {count:<6} | {library:<14} | "
        f"{format_ticks(read_ticks):<12} | {format_ticks(decompress_ticks):<12} | "
        f"{format_bytes_per_second(throughput(bytes_in, decompress_ticks)):<12} | "
        f"{format_bytes_per_second(throughput(bytes_out, decompress_ticks)):<12}"
    )


def render_report(summary: BenchmarkRunSummary, results: Sequence[FileBenchmarkResult]) -> str:
    """Render one format's summary as a text table.

    Args:
        summary: Aggregated run summary
        results: The per-file results the summary was built from, used
                 for the failure listing

    Returns:
        The report text without a trailing newline.
    """
    init = summary.init_timing
    lines = [
        f"Processed: {summary.total_files} {summary.format} files",
        f"Results: {summary.success_count} of {summary.total_files} {summary.format} files "
        f"decompressed successfully",
        f"Library: {summary.library_name} {init.library_version} "
        f"(Init time: {format_ticks(init.library_init.elapsed_ticks)})",
        "",
        f"{'Size':<10} | {'Count':<6} | {'Library':<14} | {'Read Time':<12} | "
        f"{'Decomp Time':<12} | {'In B/s':<12} | {'Out B/s':<12}",
        "-" * RULE_WIDTH,
    ]

    for cat in summary.size_breakdown:
        lines.append(_table_row(
            size_label(cat.range_label),
            cat.file_count,
            cat.library_name,
            cat.total_read_ticks,
            cat.total_decompress_ticks,
            cat.total_bytes_in,
            cat.total_bytes_out,
        ))

    lines.append("-" * RULE_WIDTH)
    lines.append(_table_row(
        "TOTAL",
        summary.success_count,
        summary.library_name,
        summary.total_read_ticks,
        summary.total_decompress_ticks,
        summary.total_bytes_in,
        summary.total_bytes_out,
    ))
    lines.append("")

    lines.append(f"Total bytes in:  {format_bytes(summary.total_bytes_in)}")
    lines.append(f"Total bytes out: {format_bytes(summary.total_bytes_out)}")
    if summary.total_bytes_out > 0:
        lines.append(f"Compression ratio: {summary.total_bytes_in / summary.total_bytes_out:.3f}x")

    if summary.size_breakdown:
        lines.append("")
        lines.append("Decompression latency per file (ms):")
        lines.append(
            f"{'Size':<10} | {'Mean':>9} | {'P50':>9} | {'P95':>9} | {'P99':>9} | {'Max':>9}"
        )
        rows = [(size_label(c.range_label), c.latency) for c in summary.size_breakdown]
        rows.append(("TOTAL", summary.latency))
        for label, stats in rows:
            lines.append(
                f"{label:<10} | {stats.mean_ms:>9.3f} | {stats.p50_ms:>9.3f} | "
                f"{stats.p95_ms:>9.3f} | {stats.p99_ms:>9.3f} | {stats.max_ms:>9.3f}"
            )

    failures = [r for r in results if not r.success]
    if failures:
        lines.append("")
        lines.append(f"Failures ({len(failures)}):")
        for f in failures[:MAX_LISTED_FAILURES]:
            lines.append(f"  {f.file_name}: {f.error}")
        if len(failures) > MAX_LISTED_FAILURES:
            lines.append(f"  ... and {len(failures) - MAX_LISTED_FAILURES} more")

    return "\n".join(lines)


class ReportGenerator:
    """Writes the report text and supporting artifacts into a run directory.

    Layout:
        <run_dir>/report.txt
        <run_dir>/summary.json
        <run_dir>/<format>_raw_results.json
        <run_dir>/traces/<format>_timeline.json
        <run_dir>/charts/<format>_throughput.png
    """

    def __init__(self, run_dir: Path, write_charts: bool = True, write_traces: bool = True):
        self.run_dir = run_dir
        self.write_charts = write_charts
        self.write_traces = write_traces

    @property
    def report_path(self) -> Path:
        return self.run_dir / "report.txt"

    def generate_all(
        self,
        report_text: str,
        runs: Sequence[tuple[BenchmarkRunSummary, Sequence[FileBenchmarkResult]]],
    ) -> Path:
        """Persist every artifact. Returns the report path.

        Raises:
            OSError: If any artifact cannot be written.
        """
        logger.info("Writing benchmark reports...")
        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.generate_report_text(report_text)
        self.generate_summary_json([summary for summary, _ in runs])
        self.generate_raw_results_json(runs)

        for summary, results in runs:
            if self.write_traces:
                self.generate_trace(summary, results)
            if self.write_charts:
                self.generate_throughput_chart(summary)

        logger.info(f"Reports written to {self.run_dir}")
        return self.report_path

    def generate_report_text(self, report_text: str) -> None:
        self.report_path.write_text(report_text + "\n", encoding="utf-8")
        logger.info(f"Wrote report to {self.report_path}")

    def generate_summary_json(self, summaries: Sequence[BenchmarkRunSummary]) -> None:
        """Write aggregate summaries to summary.json."""
        path = self.run_dir / "summary.json"
        with open(path, "w") as f:
            json.dump({"runs": [s.to_dict() for s in summaries]}, f, indent=2)
        logger.info(f"Wrote summary to {path}")

    def generate_raw_results_json(
        self,
        runs: Sequence[tuple[BenchmarkRunSummary, Sequence[FileBenchmarkResult]]],
    ) -> None:
        for summary, results in runs:
            path = self.run_dir / f"{summary.format.lower()}_raw_results.json"
            export_results_json(results, path)
            logger.debug(f"Wrote raw results to {path}")

    def generate_trace(self, summary: BenchmarkRunSummary, results: Sequence[FileBenchmarkResult]) -> None:
        traces_dir = self.run_dir / "traces"
        traces_dir.mkdir(exist_ok=True)
        path = traces_dir / f"{summary.format.lower()}_timeline.json"
        export_chrome_trace(summary.format, results, path)
        logger.info(f"Exported Chrome trace to {path}")

    def generate_throughput_chart(self, summary: BenchmarkRunSummary) -> None:
        """Create bar chart of decompression throughput per size category."""
        if not summary.size_breakdown:
            logger.warning(f"No successful {summary.format} files, skipping throughput chart")
            return

        import matplotlib
        matplotlib.use("Agg")  # Non-interactive backend
        import matplotlib.pyplot as plt

        labels = [size_label(c.range_label) for c in summary.size_breakdown]
        in_rates = [
            (throughput(c.total_bytes_in, c.total_decompress_ticks) or 0.0) / 1_000_000
            for c in summary.size_breakdown
        ]
        out_rates = [
            (throughput(c.total_bytes_out, c.total_decompress_ticks) or 0.0) / 1_000_000
            for c in summary.size_breakdown
        ]

        fig, (ax_in, ax_out) = plt.subplots(1, 2, figsize=(12, 5))
        x = range(len(labels))

        ax_in.bar(x, in_rates, 0.8, color='#3498db')
        ax_in.set_title('Input throughput (encoded bytes)')
        ax_out.bar(x, out_rates, 0.8, color='#e74c3c')
        ax_out.set_title('Output throughput (RGBA bytes)')

        for ax in (ax_in, ax_out):
            ax.set_xlabel('Size category')
            ax.set_ylabel('MB/s')
            ax.set_xticks(list(x))
            ax.set_xticklabels(labels)

        fig.suptitle(f'{summary.format} decompression ({summary.library_name})')
        plt.tight_layout()

        charts_dir = self.run_dir / "charts"
        charts_dir.mkdir(exist_ok=True)
        chart_path = charts_dir / f"{summary.format.lower()}_throughput.png"
        plt.savefig(chart_path, dpi=150)
        plt.close(fig)
        logger.info(f"Saved throughput chart to {chart_path}")
