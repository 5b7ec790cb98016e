"""
Benchmark result records and post-processing aggregation.

Nothing in this module takes a timestamp. Everything here runs after the
measurement phase has closed every interval, so sorting, grouping and
statistics never leak into recorded latencies.
"""

from __future__ import annotations

import json
import statistics
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Sequence

from imagebench.timing import InitTiming, StageTiming, ticks_to_milliseconds

# Ordered label set; summaries follow this order, never result order.
SIZE_LABELS: tuple[str, ...] = ("32", "64", "128", "256", "512", "1024", ">1024")

_BREAKPOINTS: tuple[tuple[int, str], ...] = (
    (32, "32"),
    (64, "64"),
    (128, "128"),
    (256, "256"),
    (512, "512"),
    (1024, "1024"),
)


def range_label(width: int, height: int) -> str:
    """Size bucket for an image, keyed on its larger dimension."""
    max_dim = max(width, height)
    for limit, label in _BREAKPOINTS:
        if max_dim <= limit:
            return label
    return ">1024"


@dataclass(frozen=True)
class SizeCategory:
    exact_width: int = 0
    exact_height: int = 0
    range_label: str = ""

    @classmethod
    def from_dimensions(cls, width: int, height: int) -> SizeCategory:
        return cls(exact_width=width, exact_height=height, range_label=range_label(width, height))


@dataclass(frozen=True)
class FileBenchmarkResult:
    """Measurements for one input file. Immutable once phase 1 produces it."""

    file_path: str
    file_name: str
    library_name: str
    file_read_stage: StageTiming
    decompression_stage: StageTiming
    success: bool
    width: int = 0
    height: int = 0
    size: SizeCategory = field(default_factory=SizeCategory)
    bytes_in: int = 0
    bytes_out: int = 0
    error: str | None = None
    failure_kind: str | None = None  # "ReadError" or "DecodeError"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "file_path": self.file_path,
            "file_name": self.file_name,
            "library_name": self.library_name,
            "width": self.width,
            "height": self.height,
            "size_label": self.size.range_label,
            "bytes_in": self.bytes_in,
            "bytes_out": self.bytes_out,
            "file_read": self.file_read_stage.to_dict(),
            "decompression": self.decompression_stage.to_dict(),
            "success": self.success,
            "error": self.error,
            "failure_kind": self.failure_kind,
        }


@dataclass(frozen=True)
class LatencyStats:
    """Distribution of per-file decompression latency for one grouping."""

    count: int
    mean_ms: float
    std_ms: float
    min_ms: float
    max_ms: float
    p50_ms: float
    p95_ms: float
    p99_ms: float

    @classmethod
    def from_durations(cls, durations_ms: Sequence[float]) -> LatencyStats:
        """Create stats from a list of durations in milliseconds."""
        if not durations_ms:
            return cls(
                count=0,
                mean_ms=0.0,
                std_ms=0.0,
                min_ms=0.0,
                max_ms=0.0,
                p50_ms=0.0,
                p95_ms=0.0,
                p99_ms=0.0,
            )

        sorted_durations = sorted(durations_ms)

        return cls(
            count=len(durations_ms),
            mean_ms=statistics.mean(durations_ms),
            std_ms=statistics.stdev(durations_ms) if len(durations_ms) > 1 else 0.0,
            min_ms=sorted_durations[0],
            max_ms=sorted_durations[-1],
            p50_ms=percentile(sorted_durations, 50),
            p95_ms=percentile(sorted_durations, 95),
            p99_ms=percentile(sorted_durations, 99),
        )


def percentile(data: Sequence[float], p: float) -> float:
    """Linearly interpolated percentile of already-sorted data."""
    if not data:
        return 0.0
    k = (len(data) - 1) * p / 100
    f = int(k)
    c = f + 1 if f + 1 < len(data) else f
    return data[f] + (k - f) * (data[c] - data[f]) if c != f else data[f]


@dataclass(frozen=True)
class SizeCategorySummary:
    """Totals over the successful results sharing one size label."""

    range_label: str
    file_count: int
    library_name: str
    total_bytes_in: int
    total_bytes_out: int
    total_read_ticks: int
    total_decompress_ticks: int
    latency: LatencyStats

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BenchmarkRunSummary:
    """Everything the renderer needs for one format's run."""

    format: str
    library_name: str
    init_timing: InitTiming
    total_files: int
    success_count: int
    failure_count: int
    total_bytes_in: int
    total_bytes_out: int
    total_read_ticks: int
    total_decompress_ticks: int
    size_breakdown: tuple[SizeCategorySummary, ...]
    latency: LatencyStats

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "format": self.format,
            "library_name": self.library_name,
            "init_timing": self.init_timing.to_dict(),
            "total_files": self.total_files,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "total_bytes_in": self.total_bytes_in,
            "total_bytes_out": self.total_bytes_out,
            "total_read_ticks": self.total_read_ticks,
            "total_decompress_ticks": self.total_decompress_ticks,
            "latency": asdict(self.latency),
            "size_breakdown": [s.to_dict() for s in self.size_breakdown],
        }


def _decompress_latencies(results: Sequence[FileBenchmarkResult]) -> list[float]:
    return [ticks_to_milliseconds(r.decompression_stage.elapsed_ticks) for r in results]


def create_summary(
    format_name: str,
    init_timing: InitTiming,
    results: Sequence[FileBenchmarkResult],
) -> BenchmarkRunSummary:
    """Aggregate per-file results into a run summary.

    Only successful results contribute to byte and tick totals; failures
    are counted and nothing more. Size categories with no successful file
    are left out of the breakdown.

    Args:
        format_name: Display name of the format ("PNG", "JPG")
        init_timing: Library init captured before the run
        results: Every per-file result from the run, in run order

    Returns:
        BenchmarkRunSummary built purely from the arguments.
    """
    successful = [r for r in results if r.success]

    by_label: dict[str, list[FileBenchmarkResult]] = {label: [] for label in SIZE_LABELS}
    for r in successful:
        label = r.size.range_label
        if label not in by_label:
            label = range_label(r.width, r.height)
        by_label[label].append(r)

    breakdown = tuple(
        SizeCategorySummary(
            range_label=label,
            file_count=len(group),
            library_name=init_timing.library_name,
            total_bytes_in=sum(r.bytes_in for r in group),
            total_bytes_out=sum(r.bytes_out for r in group),
            total_read_ticks=sum(r.file_read_stage.elapsed_ticks for r in group),
            total_decompress_ticks=sum(r.decompression_stage.elapsed_ticks for r in group),
            latency=LatencyStats.from_durations(_decompress_latencies(group)),
        )
        for label, group in by_label.items()
        if group
    )

    return BenchmarkRunSummary(
        format=format_name,
        library_name=init_timing.library_name,
        init_timing=init_timing,
        total_files=len(results),
        success_count=len(successful),
        failure_count=len(results) - len(successful),
        total_bytes_in=sum(r.bytes_in for r in successful),
        total_bytes_out=sum(r.bytes_out for r in successful),
        total_read_ticks=sum(r.file_read_stage.elapsed_ticks for r in successful),
        total_decompress_ticks=sum(r.decompression_stage.elapsed_ticks for r in successful),
        size_breakdown=breakdown,
        latency=LatencyStats.from_durations(_decompress_latencies(successful)),
    )


def export_results_json(results: Sequence[FileBenchmarkResult], path: Path) -> None:
    """Export raw per-file records to JSON."""
    data = {"results": [r.to_dict() for r in results]}
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def export_chrome_trace(format_name: str, results: Sequence[FileBenchmarkResult], path: Path) -> None:
    """Export read/decode intervals as Chrome Trace format for Perfetto/Chrome DevTools.

    Events sit on the captured tick timeline, offset so the first event
    starts at zero. Stages that never ran are skipped.

    Format: https://docs.google.com/document/d/1CvAClvFfyA5R-PhYUmn5OOQtYMH4h6I0nSsKchNAySU
    """
    stages = [
        (r, stage, category)
        for r in results
        for stage, category in ((r.file_read_stage, "io"), (r.decompression_stage, "decode"))
        if stage.end_ticks
    ]
    origin = min((stage.start_ticks for _, stage, _ in stages), default=0)

    events = []
    for r, stage, category in stages:
        events.append({
            "name": stage.name,
            "cat": category,
            "ph": "X",
            "ts": ticks_to_milliseconds(stage.start_ticks - origin) * 1000,
            "dur": ticks_to_milliseconds(stage.elapsed_ticks) * 1000,
            "pid": 1,
            "tid": 1,
            "args": {"file": r.file_name, "bytes_in": r.bytes_in, "success": r.success},
        })

    trace_data = {
        "traceEvents": events,
        "displayTimeUnit": "ms",
        "metadata": {
            "benchmark": "imagebench",
            "format": format_name,
        },
    }

    with open(path, "w") as f:
        json.dump(trace_data, f, indent=2)
