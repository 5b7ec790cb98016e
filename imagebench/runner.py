"""
Per-file benchmark runner.

One runner serves every format: it is parameterised by a decoder adapter
and the format's file extensions. Files are processed one at a time and no
two timed intervals ever overlap.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from imagebench.decoders import Decoder, ImageFormat
from imagebench.metrics import FileBenchmarkResult, SizeCategory
from imagebench.timing import InitTiming, StageTiming, StageTimer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

READ_STAGE = "FileRead"
DECOMPRESSION_STAGE = "Decompression"
INIT_STAGE = "LibraryInit"


class BenchmarkRunner:
    """Measures file read and decode time for every file of one format.

    The runner only captures raw intervals and passes decoder output
    through. Categorisation happens after the decode interval closes, and
    no aggregation happens here at all.
    """

    def __init__(self, decoder: Decoder, image_format: ImageFormat | None = None):
        self.decoder = decoder
        self.image_format = image_format or decoder.image_format

    @property
    def library_name(self) -> str:
        return self.decoder.name

    def initialize(self) -> InitTiming:
        """Time the decoder library's one-time setup."""
        with StageTimer(INIT_STAGE) as timer:
            self.decoder.initialize()

        return InitTiming(
            library_init=timer.timing,
            library_name=self.decoder.name,
            library_version=self.decoder.version,
        )

    def discover_files(self, directory: Path) -> list[Path]:
        """Find the format's files directly inside a directory.

        Returns:
            Paths sorted by name, so runs are reproducible across platforms.
        """
        extensions = {ext.lower() for ext in self.image_format.extensions}
        files = [
            p for p in directory.iterdir()
            if p.suffix.lower() in extensions and p.is_file()
        ]
        return sorted(files, key=lambda p: p.name)

    def benchmark_file(self, file_path: Path) -> FileBenchmarkResult:
        """Read and decode one file, timing each stage separately."""
        path_str = str(file_path)
        file_name = file_path.name

        try:
            with StageTimer(READ_STAGE) as read_timer:
                data = file_path.read_bytes()
        except OSError as e:
            return FileBenchmarkResult(
                file_path=path_str,
                file_name=file_name,
                library_name=self.library_name,
                file_read_stage=StageTiming.empty(READ_STAGE),
                decompression_stage=StageTiming.empty(DECOMPRESSION_STAGE),
                success=False,
                error=f"Read error: {e}",
                failure_kind="ReadError",
            )

        with StageTimer(DECOMPRESSION_STAGE) as decode_timer:
            output = self.decoder.decode(data)

        # Both intervals are closed; everything below is untimed.
        if not output.success:
            return FileBenchmarkResult(
                file_path=path_str,
                file_name=file_name,
                library_name=self.library_name,
                file_read_stage=read_timer.timing,
                decompression_stage=decode_timer.timing,
                success=False,
                bytes_in=len(data),
                error=output.error or "Unknown decode error",
                failure_kind="DecodeError",
            )

        return FileBenchmarkResult(
            file_path=path_str,
            file_name=file_name,
            library_name=self.library_name,
            file_read_stage=read_timer.timing,
            decompression_stage=decode_timer.timing,
            success=True,
            width=output.width,
            height=output.height,
            size=SizeCategory.from_dimensions(output.width, output.height),
            bytes_in=len(data),
            bytes_out=len(output.pixel_data),
        )

    def benchmark_files(
        self,
        files: list[Path],
        progress_callback: ProgressCallback | None = None,
    ) -> list[FileBenchmarkResult]:
        """Benchmark files sequentially in the given order.

        Args:
            files: Files to process
            progress_callback: Optional callback invoked with (current, total)
                              after each file, outside any timed interval.
        """
        total = len(files)
        results: list[FileBenchmarkResult] = []

        for i, path in enumerate(files):
            result = self.benchmark_file(path)
            results.append(result)

            if result.success:
                logger.debug(
                    f"{result.file_name}: {result.width}x{result.height}, "
                    f"read={result.file_read_stage.elapsed_ms:.3f}ms, "
                    f"decode={result.decompression_stage.elapsed_ms:.3f}ms"
                )
            else:
                logger.debug(f"{result.file_name}: {result.error}")

            if progress_callback:
                progress_callback(i + 1, total)

        return results

    def benchmark_directory(
        self,
        directory: Path,
        progress_callback: ProgressCallback | None = None,
    ) -> list[FileBenchmarkResult]:
        """Benchmark every matching file in a directory, sorted by name."""
        files = self.discover_files(directory)
        logger.info(f"Discovered {len(files)} {self.image_format.name} files in {directory}")
        return self.benchmark_files(files, progress_callback)
