import json

import pytest

from imagebench.metrics import (
    SIZE_LABELS,
    FileBenchmarkResult,
    LatencyStats,
    SizeCategory,
    create_summary,
    export_chrome_trace,
    export_results_json,
    percentile,
    range_label,
)
from imagebench.timing import InitTiming, StageTiming, ticks_to_milliseconds

INIT = InitTiming(StageTiming("LibraryInit", 0, 500), "Pillow", "11.0.0")


def ok(name: str, width: int, height: int, bytes_in: int, read: int, decode: int, start: int = 1000):
    return FileBenchmarkResult(
        file_path=f"/data/png/{name}",
        file_name=name,
        library_name="Pillow",
        file_read_stage=StageTiming("FileRead", start, start + read),
        decompression_stage=StageTiming("Decompression", start + read, start + read + decode),
        success=True,
        width=width,
        height=height,
        size=SizeCategory.from_dimensions(width, height),
        bytes_in=bytes_in,
        bytes_out=width * height * 4,
    )


def failed(name: str, error: str = "bad data"):
    return FileBenchmarkResult(
        file_path=f"/data/png/{name}",
        file_name=name,
        library_name="Pillow",
        file_read_stage=StageTiming("FileRead", 10, 20),
        decompression_stage=StageTiming("Decompression", 20, 90),
        success=False,
        bytes_in=123,
        error=error,
        failure_kind="DecodeError",
    )


@pytest.mark.parametrize("width,height,label", [
    (1, 1, "32"),
    (32, 32, "32"),
    (33, 10, "64"),
    (10, 33, "64"),
    (64, 64, "64"),
    (100, 100, "128"),
    (128, 1, "128"),
    (129, 129, "256"),
    (256, 100, "256"),
    (512, 512, "512"),
    (513, 2, "1024"),
    (1024, 1024, "1024"),
    (1025, 1, ">1024"),
    (2000, 2000, ">1024"),
])
def test_range_label_breakpoints(width, height, label):
    assert range_label(width, height) == label


def test_range_label_ignores_aspect_ratio():
    assert range_label(200, 10) == range_label(10, 200) == range_label(200, 200)


def test_summary_sums_successful_records():
    results = [
        ok("a.png", 32, 32, 200, read=10, decode=100),
        ok("b.png", 100, 100, 2000, read=20, decode=300),
        failed("c.png"),
        ok("d.png", 2000, 2000, 500_000, read=40, decode=9000),
    ]
    summary = create_summary("PNG", INIT, results)
    successful = [r for r in results if r.success]

    assert summary.format == "PNG"
    assert summary.library_name == "Pillow"
    assert summary.init_timing is INIT
    assert summary.total_files == 4
    assert summary.success_count == 3
    assert summary.failure_count == 1
    assert summary.success_count + summary.failure_count == summary.total_files
    assert summary.total_bytes_in == sum(r.bytes_in for r in successful)
    assert summary.total_bytes_out == sum(r.bytes_out for r in successful)
    assert summary.total_read_ticks == 70
    assert summary.total_decompress_ticks == 9400


def test_breakdown_follows_fixed_label_order():
    results = [
        ok("big.png", 3000, 10, 1, 1, 1),
        ok("small.png", 5, 5, 1, 1, 1),
        ok("mid.png", 300, 300, 1, 1, 1),
        ok("small2.png", 20, 30, 1, 1, 1),
    ]
    summary = create_summary("PNG", INIT, results)

    assert [c.range_label for c in summary.size_breakdown] == ["32", "512", ">1024"]
    assert [c.file_count for c in summary.size_breakdown] == [2, 1, 1]
    labels = [c.range_label for c in summary.size_breakdown]
    assert labels == sorted(labels, key=SIZE_LABELS.index)


def test_category_totals():
    results = [
        ok("a.png", 10, 10, 100, read=5, decode=50),
        ok("b.png", 20, 20, 300, read=7, decode=70),
    ]
    (cat,) = create_summary("PNG", INIT, results).size_breakdown
    assert cat.range_label == "32"
    assert cat.library_name == "Pillow"
    assert cat.total_bytes_in == 400
    assert cat.total_bytes_out == 10 * 10 * 4 + 20 * 20 * 4
    assert cat.total_read_ticks == 12
    assert cat.total_decompress_ticks == 120
    assert cat.latency.count == 2


def test_failures_excluded_from_breakdown():
    summary = create_summary("JPG", INIT, [failed("x.jpg"), failed("y.jpg")])
    assert summary.size_breakdown == ()
    assert summary.total_bytes_in == 0
    assert summary.total_read_ticks == 0
    assert summary.failure_count == 2


def test_empty_results():
    summary = create_summary("PNG", INIT, [])
    assert summary.total_files == 0
    assert summary.size_breakdown == ()
    assert summary.latency.count == 0
    assert summary.latency.mean_ms == 0.0


def test_aggregation_is_idempotent():
    results = [ok("a.png", 64, 64, 10, 3, 4), failed("b.png"), ok("c.png", 700, 5, 20, 6, 8)]
    first = create_summary("PNG", INIT, results)
    second = create_summary("PNG", INIT, results)
    assert first == second
    assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())


def test_latency_stats():
    stats = LatencyStats.from_durations([4.0, 1.0, 3.0, 2.0])
    assert stats.count == 4
    assert stats.mean_ms == 2.5
    assert stats.min_ms == 1.0
    assert stats.max_ms == 4.0
    assert stats.p50_ms == 2.5


def test_latency_uses_decompression_ticks():
    results = [ok("a.png", 8, 8, 10, read=1_000_000, decode=2_000_000)]
    summary = create_summary("PNG", INIT, results)
    assert summary.latency.mean_ms == ticks_to_milliseconds(2_000_000)


def test_percentile():
    assert percentile([], 50) == 0.0
    assert percentile([7.0], 99) == 7.0
    assert percentile([0.0, 10.0], 50) == 5.0
    assert percentile([1.0, 2.0, 3.0], 100) == 3.0


def test_summary_to_dict_is_json_serializable():
    summary = create_summary("PNG", INIT, [ok("a.png", 8, 8, 10, 1, 2)])
    data = json.loads(json.dumps(summary.to_dict()))
    assert data["size_breakdown"][0]["range_label"] == "32"
    assert data["init_timing"]["library_version"] == "11.0.0"


def test_export_results_json(tmp_path):
    path = tmp_path / "raw.json"
    export_results_json([ok("a.png", 8, 8, 10, 1, 2), failed("b.png")], path)
    data = json.loads(path.read_text())
    assert [r["file_name"] for r in data["results"]] == ["a.png", "b.png"]
    assert data["results"][1]["error"] == "bad data"
    assert data["results"][0]["decompression"]["elapsed_ticks"] == 2


def test_export_chrome_trace(tmp_path):
    path = tmp_path / "trace.json"
    results = [
        ok("a.png", 8, 8, 10, read=1000, decode=2000, start=5000),
        ok("b.png", 8, 8, 10, read=1000, decode=2000, start=9000),
    ]
    export_chrome_trace("PNG", results, path)
    data = json.loads(path.read_text())

    events = data["traceEvents"]
    assert [e["name"] for e in events] == ["FileRead", "Decompression"] * 2
    assert events[0]["ts"] == 0
    assert all(e["ph"] == "X" for e in events)
    assert data["metadata"]["format"] == "PNG"


def test_chrome_trace_skips_stages_that_never_ran(tmp_path):
    never_read = FileBenchmarkResult(
        file_path="/x.png",
        file_name="x.png",
        library_name="Pillow",
        file_read_stage=StageTiming.empty("FileRead"),
        decompression_stage=StageTiming.empty("Decompression"),
        success=False,
        error="Read error: gone",
        failure_kind="ReadError",
    )
    path = tmp_path / "trace.json"
    export_chrome_trace("PNG", [never_read], path)
    assert json.loads(path.read_text())["traceEvents"] == []


def test_summary_labels_records_without_size_from_dimensions():
    unlabelled = FileBenchmarkResult(
        file_path="/data/png/raw.png",
        file_name="raw.png",
        library_name="Pillow",
        file_read_stage=StageTiming("FileRead", 0, 5),
        decompression_stage=StageTiming("Decompression", 5, 15),
        success=True,
        width=300,
        height=40,
        bytes_in=50,
        bytes_out=300 * 40 * 4,
    )
    summary = create_summary("PNG", INIT, [unlabelled, ok("a.png", 8, 8, 10, 1, 2)])

    assert [c.range_label for c in summary.size_breakdown] == ["32", "512"]
    assert summary.total_bytes_in == 60
