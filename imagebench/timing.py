"""
Core timing primitives for the benchmarking system.

Ticks come from ``time.perf_counter_ns`` and are stored raw. Conversions to
wall-clock units happen only when a report is built.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

# Fixed for the lifetime of the process: perf_counter_ns ticks are nanoseconds.
TICKS_PER_SECOND = 1_000_000_000


def now() -> int:
    """Current monotonic high-resolution tick count."""
    return time.perf_counter_ns()


def ticks_to_nanoseconds(ticks: int) -> int:
    return (ticks * 1_000_000_000) // TICKS_PER_SECOND


def ticks_to_milliseconds(ticks: int) -> float:
    return ticks / TICKS_PER_SECOND * 1000.0


def ticks_to_seconds(ticks: int) -> float:
    return ticks / TICKS_PER_SECOND


@dataclass(frozen=True)
class StageTiming:
    """A captured start/end tick pair for one unit of work."""

    name: str
    start_ticks: int
    end_ticks: int

    @classmethod
    def empty(cls, name: str) -> StageTiming:
        """Zero-length interval for a stage that never ran."""
        return cls(name=name, start_ticks=0, end_ticks=0)

    @property
    def elapsed_ticks(self) -> int:
        return self.end_ticks - self.start_ticks

    @property
    def elapsed_ns(self) -> int:
        """Duration in nanoseconds."""
        return ticks_to_nanoseconds(self.elapsed_ticks)

    @property
    def elapsed_ms(self) -> float:
        """Duration in milliseconds."""
        return ticks_to_milliseconds(self.elapsed_ticks)

    @property
    def elapsed_s(self) -> float:
        """Duration in seconds."""
        return ticks_to_seconds(self.elapsed_ticks)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "start_ticks": self.start_ticks,
            "end_ticks": self.end_ticks,
            "elapsed_ticks": self.elapsed_ticks,
        }


@dataclass(frozen=True)
class InitTiming:
    """One-time library initialisation, captured before any per-file work."""

    library_init: StageTiming
    library_name: str
    library_version: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "library_init": self.library_init.to_dict(),
            "library_name": self.library_name,
            "library_version": self.library_version,
        }


class StageTimer:
    """Context manager that captures a single stage interval.

    Usage:
        with StageTimer("Decompression") as timer:
            output = decoder.decode(data)
        timing = timer.timing

    The start tick is the last thing taken on entry and the end tick the
    first thing taken on exit, so only the body of the block is measured.
    If the body raises, the interval is still closed before the exception
    propagates.
    """

    __slots__ = ("name", "_start_ticks", "_timing")

    def __init__(self, name: str):
        self.name = name
        self._start_ticks = 0
        self._timing: StageTiming | None = None

    def __enter__(self) -> StageTimer:
        self._start_ticks = time.perf_counter_ns()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        end_ticks = time.perf_counter_ns()
        self._timing = StageTiming(self.name, self._start_ticks, end_ticks)

    @property
    def timing(self) -> StageTiming:
        """The closed interval; only valid after the block has exited."""
        if self._timing is None:
            raise RuntimeError(f"Stage '{self.name}' has not finished")
        return self._timing
