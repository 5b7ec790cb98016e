"""
Image decompression benchmark.

Measures PNG/JPEG decode throughput across a corpus of files, bucketed by
image size. Measurement and post-processing are kept strictly apart: the
runner records raw tick intervals only, and every statistic is computed
afterwards.

Usage:
    python -m imagebench ./data/
    python -m imagebench ./data/ --output ./results --format png
"""

from imagebench.timing import (
    StageTiming,
    InitTiming,
    StageTimer,
    now,
    ticks_to_nanoseconds,
    ticks_to_milliseconds,
    ticks_to_seconds,
)
from imagebench.decoders import DecodeOutput, Decoder, ImageFormat, PillowDecoder, get_decoder
from imagebench.metrics import (
    SizeCategory,
    FileBenchmarkResult,
    LatencyStats,
    SizeCategorySummary,
    BenchmarkRunSummary,
    create_summary,
    range_label,
)
from imagebench.runner import BenchmarkRunner
from imagebench.report import ReportGenerator, render_report
from imagebench.session import BenchmarkConfig, BenchmarkSession, BenchmarkResult, ConfigurationError

__all__ = [
    # Timing primitives
    "StageTiming",
    "InitTiming",
    "StageTimer",
    "now",
    "ticks_to_nanoseconds",
    "ticks_to_milliseconds",
    "ticks_to_seconds",
    # Decoder adapters
    "DecodeOutput",
    "Decoder",
    "ImageFormat",
    "PillowDecoder",
    "get_decoder",
    # Results and aggregation
    "SizeCategory",
    "FileBenchmarkResult",
    "LatencyStats",
    "SizeCategorySummary",
    "BenchmarkRunSummary",
    "create_summary",
    "range_label",
    # Measurement
    "BenchmarkRunner",
    # Reporting
    "ReportGenerator",
    "render_report",
    # Session management
    "BenchmarkConfig",
    "BenchmarkSession",
    "BenchmarkResult",
    "ConfigurationError",
]
