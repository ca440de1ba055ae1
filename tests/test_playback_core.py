from __future__ import annotations

import logging
from dataclasses import dataclass, field

import pytest

from simon_game.playback import (
    FailureIndicator,
    PlaybackDriver,
    PlaybackTiming,
    highlight_alpha,
    play_clip_safely,
)
from simon_game.timers import TimerQueue


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


@dataclass
class RecordingSurface:
    clock: FakeClock
    highlights: list[tuple[int, int, float]] = field(default_factory=list)
    alphas: list[tuple[float, float]] = field(default_factory=list)

    def highlight(self, region_index: int, duration_ms: int) -> None:
        self.highlights.append((region_index, duration_ms, self.clock.now()))

    def set_all_alpha(self, alpha: float) -> None:
        self.alphas.append((alpha, self.clock.now()))


@dataclass
class RecordingAudio:
    clock: FakeClock
    clips: list[tuple[str, float]] = field(default_factory=list)

    def play_clip(self, name: str) -> None:
        self.clips.append((name, self.clock.now()))


class BrokenAudio:
    def play_clip(self, name: str) -> None:
        raise RuntimeError(f"clip {name} not loaded")


def _run_ms(clock: FakeClock, timer: TimerQueue, total_ms: int) -> None:
    for _ in range(total_ms):
        clock.advance(0.001)
        timer.poll()


def test_highlight_alpha_ramps_down_and_back_up() -> None:
    assert highlight_alpha(0, 350) == 1.0
    assert highlight_alpha(175, 350) == pytest.approx(0.35)
    assert highlight_alpha(87.5, 350) == pytest.approx(0.675)
    assert highlight_alpha(262.5, 350) == pytest.approx(0.675)
    assert highlight_alpha(350, 350) == 1.0
    assert highlight_alpha(10, 0) == 1.0


def test_timing_validation() -> None:
    with pytest.raises(ValueError):
        PlaybackTiming(highlight_ms=-1)
    with pytest.raises(ValueError):
        PlaybackTiming(dim_alpha=1.5)


def test_playback_is_strictly_sequential_with_default_delays() -> None:
    clock = FakeClock()
    timer = TimerQueue(clock=clock)
    surface = RecordingSurface(clock)
    audio = RecordingAudio(clock)
    driver = PlaybackDriver(timer=timer, surface=surface, audio=audio)
    completed: list[float] = []

    driver.play([2, 0, 3], lambda: completed.append(clock.now()))
    assert driver.busy is True
    assert driver.total_duration_ms(3) == 400 + 3 * 550

    _run_ms(clock, timer, 2200)

    assert [h[0] for h in surface.highlights] == [2, 0, 3]
    assert [h[1] for h in surface.highlights] == [350, 350, 350]
    starts = [h[2] for h in surface.highlights]
    assert starts == pytest.approx([0.400, 0.950, 1.500], abs=0.002)
    for prev, nxt in zip(starts, starts[1:]):
        assert nxt - prev >= 0.350 + 0.200 - 0.002

    assert [c[0] for c in audio.clips] == ["yellow", "green", "blue"]
    assert [c[1] for c in audio.clips] == pytest.approx(starts, abs=1e-9)

    assert completed == pytest.approx([2.050], abs=0.002)
    assert driver.busy is False


def test_completion_fires_once_and_not_before_final_pause() -> None:
    clock = FakeClock()
    timer = TimerQueue(clock=clock)
    driver = PlaybackDriver(timer=timer, surface=RecordingSurface(clock), audio=RecordingAudio(clock))
    completed: list[int] = []

    driver.play([1], lambda: completed.append(1))
    _run_ms(clock, timer, 940)
    assert completed == []

    _run_ms(clock, timer, 500)
    assert completed == [1]


def test_empty_sequence_still_waits_initial_pause() -> None:
    clock = FakeClock()
    timer = TimerQueue(clock=clock)
    surface = RecordingSurface(clock)
    driver = PlaybackDriver(timer=timer, surface=surface, audio=RecordingAudio(clock))
    completed: list[float] = []

    driver.play([], lambda: completed.append(clock.now()))
    _run_ms(clock, timer, 500)

    assert surface.highlights == []
    assert completed == pytest.approx([0.400], abs=0.002)


def test_invalid_index_and_overlapping_playback_are_rejected() -> None:
    clock = FakeClock()
    timer = TimerQueue(clock=clock)
    driver = PlaybackDriver(timer=timer, surface=RecordingSurface(clock), audio=RecordingAudio(clock))

    with pytest.raises(ValueError):
        driver.play([0, 4], lambda: None)
    assert timer.pending == 0
    assert driver.busy is False

    driver.play([0], lambda: None)
    with pytest.raises(RuntimeError):
        driver.play([1], lambda: None)


def test_audio_failure_is_logged_and_does_not_stop_playback(caplog: pytest.LogCaptureFixture) -> None:
    clock = FakeClock()
    timer = TimerQueue(clock=clock)
    surface = RecordingSurface(clock)
    driver = PlaybackDriver(timer=timer, surface=surface, audio=BrokenAudio())
    completed: list[int] = []

    with caplog.at_level(logging.WARNING, logger="simon_game.playback"):
        driver.play([3, 3], lambda: completed.append(1))
        _run_ms(clock, timer, 1600)

    assert [h[0] for h in surface.highlights] == [3, 3]
    assert completed == [1]
    assert "could not play clip" in caplog.text


def test_play_clip_safely_swallows_errors() -> None:
    play_clip_safely(BrokenAudio(), "gameover")


def test_failure_indicator_pulses_three_times_then_completes() -> None:
    clock = FakeClock()
    timer = TimerQueue(clock=clock)
    surface = RecordingSurface(clock)
    indicator = FailureIndicator(timer=timer, surface=surface)
    completed: list[float] = []

    assert indicator.total_duration_ms() == 720
    indicator.run(lambda: completed.append(clock.now()))
    _run_ms(clock, timer, 900)

    assert [a[0] for a in surface.alphas] == [0.2, 1.0, 0.2, 1.0, 0.2, 1.0]
    assert [a[1] for a in surface.alphas] == pytest.approx([0.0, 0.12, 0.24, 0.36, 0.48, 0.60], abs=0.002)
    assert completed == pytest.approx([0.72], abs=0.002)
