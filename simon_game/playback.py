from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from .sector_geometry import DEFAULT_REGIONS, Region
from .timers import TimerQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PlaybackTiming:
    # Milliseconds throughout.
    initial_pause_ms: int = 400
    highlight_ms: int = 350
    step_pause_ms: int = 200
    round_complete_pause_ms: int = 700
    tap_highlight_ms: int = 200
    failure_phase_ms: int = 120
    failure_pulses: int = 3
    dim_alpha: float = 0.35
    failure_dim_alpha: float = 0.2

    def __post_init__(self) -> None:
        for name in (
            "initial_pause_ms",
            "highlight_ms",
            "step_pause_ms",
            "round_complete_pause_ms",
            "tap_highlight_ms",
            "failure_phase_ms",
            "failure_pulses",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if not (0.0 <= self.dim_alpha <= 1.0):
            raise ValueError("dim_alpha must be in [0.0, 1.0]")
        if not (0.0 <= self.failure_dim_alpha <= 1.0):
            raise ValueError("failure_dim_alpha must be in [0.0, 1.0]")


class DrawingSurface(Protocol):
    def highlight(self, region_index: int, duration_ms: int) -> None: ...
    def set_all_alpha(self, alpha: float) -> None: ...


class AudioService(Protocol):
    def play_clip(self, name: str) -> None: ...


class NullSurface:
    """Surface used when nothing is rendering the board."""

    def highlight(self, region_index: int, duration_ms: int) -> None:
        _ = (region_index, duration_ms)

    def set_all_alpha(self, alpha: float) -> None:
        _ = alpha


class SilentAudio:
    def play_clip(self, name: str) -> None:
        _ = name


def play_clip_safely(audio: AudioService, name: str) -> None:
    """Fire-and-forget clip playback. Audio problems never reach game logic."""

    try:
        audio.play_clip(name)
    except Exception:
        logger.warning("could not play clip %r", name, exc_info=True)


def highlight_alpha(elapsed_ms: float, duration_ms: float, dim_alpha: float = 0.35) -> float:
    """Intensity of a highlighted region: 1.0 -> dim_alpha -> 1.0 over the duration."""

    if duration_ms <= 0 or elapsed_ms <= 0 or elapsed_ms >= duration_ms:
        return 1.0
    half = duration_ms / 2.0
    if elapsed_ms <= half:
        t = elapsed_ms / half
    else:
        t = (duration_ms - elapsed_ms) / half
    return 1.0 - (1.0 - dim_alpha) * t


class PlaybackDriver:
    """Shows a sequence as strictly sequential highlight effects.

    Timeline: initial pause, then per element a highlight (clip triggered at
    its start) followed by the step pause. The completion callback fires
    once, after the final step pause. Playback is never cancelled.
    """

    def __init__(
        self,
        *,
        timer: TimerQueue,
        surface: DrawingSurface,
        audio: AudioService,
        timing: PlaybackTiming | None = None,
        regions: Sequence[Region] = DEFAULT_REGIONS,
    ) -> None:
        self._timer = timer
        self._surface = surface
        self._audio = audio
        self._timing = timing or PlaybackTiming()
        self._regions = tuple(regions)
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def total_duration_ms(self, length: int) -> int:
        t = self._timing
        return t.initial_pause_ms + max(0, int(length)) * (t.highlight_ms + t.step_pause_ms)

    def play(self, sequence: Sequence[int], on_complete: Callable[[], None]) -> None:
        if self._busy:
            raise RuntimeError("playback already in progress")
        steps = tuple(int(i) for i in sequence)
        for idx in steps:
            if not (0 <= idx < len(self._regions)):
                raise ValueError(f"region index out of range: {idx}")

        self._busy = True

        def show(pos: int) -> None:
            if pos >= len(steps):
                self._busy = False
                on_complete()
                return
            self.flash(steps[pos], self._timing.highlight_ms)
            self._timer.after(
                self._timing.highlight_ms,
                lambda: self._timer.after(self._timing.step_pause_ms, lambda: show(pos + 1)),
            )

        self._timer.after(self._timing.initial_pause_ms, lambda: show(0))

    def flash(self, region_index: int, duration_ms: int) -> None:
        """Start one highlight effect and its clip; does not wait for it."""

        region = self._regions[region_index]
        play_clip_safely(self._audio, region.clip)
        self._surface.highlight(region.index, int(duration_ms))


class FailureIndicator:
    """Alternating dim/bright pulses over the whole board."""

    def __init__(
        self,
        *,
        timer: TimerQueue,
        surface: DrawingSurface,
        timing: PlaybackTiming | None = None,
    ) -> None:
        self._timer = timer
        self._surface = surface
        self._timing = timing or PlaybackTiming()

    def total_duration_ms(self) -> int:
        return 2 * self._timing.failure_pulses * self._timing.failure_phase_ms

    def run(self, on_complete: Callable[[], None]) -> None:
        t = self._timing

        def pulse(remaining: int) -> None:
            if remaining <= 0:
                on_complete()
                return
            self._surface.set_all_alpha(t.failure_dim_alpha)

            def brighten() -> None:
                self._surface.set_all_alpha(1.0)
                self._timer.after(t.failure_phase_ms, lambda: pulse(remaining - 1))

            self._timer.after(t.failure_phase_ms, brighten)

        pulse(t.failure_pulses)
