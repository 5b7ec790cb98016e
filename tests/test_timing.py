import pytest

from imagebench.timing import (
    TICKS_PER_SECOND,
    InitTiming,
    StageTimer,
    StageTiming,
    now,
    ticks_to_milliseconds,
    ticks_to_nanoseconds,
    ticks_to_seconds,
)


def test_now_is_monotonic():
    samples = [now() for _ in range(1000)]
    assert all(b >= a for a, b in zip(samples, samples[1:]))


def test_tick_conversions():
    assert ticks_to_nanoseconds(TICKS_PER_SECOND) == 1_000_000_000
    assert ticks_to_seconds(TICKS_PER_SECOND) == 1.0
    assert ticks_to_milliseconds(TICKS_PER_SECOND // 2) == 500.0
    assert ticks_to_nanoseconds(0) == 0
    assert isinstance(ticks_to_nanoseconds(12345), int)


def test_stage_timing_elapsed():
    stage = StageTiming("Decompression", start_ticks=100, end_ticks=2_500)
    assert stage.elapsed_ticks == 2_400
    assert stage.elapsed_ns == ticks_to_nanoseconds(2_400)
    assert stage.to_dict()["elapsed_ticks"] == 2_400


def test_stage_timing_is_immutable():
    stage = StageTiming("FileRead", 1, 2)
    with pytest.raises(AttributeError):
        stage.end_ticks = 5


def test_empty_stage():
    stage = StageTiming.empty("FileRead")
    assert stage.elapsed_ticks == 0
    assert stage.name == "FileRead"


def test_stage_timer_captures_interval():
    with StageTimer("work") as timer:
        sum(range(1000))
    timing = timer.timing
    assert timing.name == "work"
    assert timing.end_ticks >= timing.start_ticks > 0


def test_stage_timer_closes_on_exception():
    timer = StageTimer("read")
    with pytest.raises(OSError):
        with timer:
            raise OSError("boom")
    assert timer.timing.elapsed_ticks >= 0


def test_stage_timer_before_exit_raises():
    timer = StageTimer("open")
    with pytest.raises(RuntimeError):
        timer.timing


def test_init_timing_to_dict():
    init = InitTiming(StageTiming("LibraryInit", 10, 30), "Pillow", "11.0.0")
    data = init.to_dict()
    assert data["library_name"] == "Pillow"
    assert data["library_init"]["elapsed_ticks"] == 20
