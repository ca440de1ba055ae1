from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import StrEnum

from .clock import Clock
from .playback import (
    AudioService,
    DrawingSurface,
    FailureIndicator,
    NullSurface,
    PlaybackDriver,
    PlaybackTiming,
    SilentAudio,
    play_clip_safely,
)
from .sector_geometry import DEFAULT_REGIONS, GAME_OVER_CLIP, Point, Region, resolve_sector, validate_regions
from .timers import TimerQueue

logger = logging.getLogger(__name__)


class RoundPhase(StrEnum):
    IDLE = "idle"
    PLAYBACK = "playback"
    AWAITING_INPUT = "awaiting_input"
    ROUND_COMPLETE = "round_complete"
    FAILED = "failed"


class TapOutcome(StrEnum):
    IGNORED = "ignored"
    ADVANCED = "advanced"
    ROUND_COMPLETE = "round_complete"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class BoardLayout:
    center: Point = (400.0, 260.0)
    radius: float = 140.0

    def __post_init__(self) -> None:
        if self.radius <= 0:
            raise ValueError("radius must be > 0")


@dataclass(frozen=True, slots=True)
class Session:
    """Live state of one game attempt. Replaced, never mutated."""

    sequence: tuple[int, ...] = ()
    player_step: int = 0
    accepting_input: bool = False
    phase: RoundPhase = RoundPhase.IDLE

    @classmethod
    def new(cls) -> Session:
        return cls()

    @property
    def score(self) -> int:
        return len(self.sequence)


@dataclass(frozen=True, slots=True)
class TapResult:
    session: Session
    outcome: TapOutcome


@dataclass(frozen=True, slots=True)
class TapEvent:
    round_number: int
    step: int
    expected: int
    actual: int
    outcome: TapOutcome
    at_s: float


@dataclass(frozen=True, slots=True)
class SimonSnapshot:
    """View model for the UI (pure data)."""

    phase: RoundPhase
    round_number: int
    round_label: str
    message: str
    accepting_input: bool
    player_step: int
    sequence_length: int
    final_score: int | None
    handed_off: bool


_MESSAGES: dict[RoundPhase, str] = {
    RoundPhase.IDLE: "Press PLAY to start",
    RoundPhase.PLAYBACK: "Watch the sequence...",
    RoundPhase.AWAITING_INPUT: "Tap the sectors in the same order",
    RoundPhase.ROUND_COMPLETE: "Well done! Preparing the next round...",
    RoundPhase.FAILED: "Wrong!",
}


def format_round(n: int) -> str:
    return f"{max(0, int(n)):02d}"


def begin_round(session: Session, next_region: int) -> Session:
    if session.phase not in (RoundPhase.IDLE, RoundPhase.ROUND_COMPLETE):
        raise ValueError(f"cannot start a round from {session.phase.value}")
    return Session(
        sequence=session.sequence + (int(next_region),),
        player_step=0,
        accepting_input=False,
        phase=RoundPhase.PLAYBACK,
    )


def open_input(session: Session) -> Session:
    if session.phase is not RoundPhase.PLAYBACK:
        return session
    return replace(session, phase=RoundPhase.AWAITING_INPUT, accepting_input=True)


def register_tap(session: Session, region: int) -> TapResult:
    if not session.accepting_input or session.phase is not RoundPhase.AWAITING_INPUT:
        return TapResult(session=session, outcome=TapOutcome.IGNORED)

    if region != session.sequence[session.player_step]:
        failed = replace(session, accepting_input=False, phase=RoundPhase.FAILED)
        return TapResult(session=failed, outcome=TapOutcome.FAILED)

    step = session.player_step + 1
    if step == len(session.sequence):
        done = replace(
            session,
            player_step=step,
            accepting_input=False,
            phase=RoundPhase.ROUND_COMPLETE,
        )
        return TapResult(session=done, outcome=TapOutcome.ROUND_COMPLETE)
    return TapResult(session=replace(session, player_step=step), outcome=TapOutcome.ADVANCED)


class SeededRng:
    """Seeded RNG wrapper to keep the sequence stream deterministic per seed."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)


class SimonEngine:
    """Round state machine for one board.

    Drives playback at round start, resolves pointer positions to regions,
    validates taps and hands the final score off once the failure
    indication has finished. Time only moves through ``update()``.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        seed: int,
        timing: PlaybackTiming | None = None,
        layout: BoardLayout | None = None,
        regions: Sequence[Region] = DEFAULT_REGIONS,
        surface: DrawingSurface | None = None,
        audio: AudioService | None = None,
        on_game_over: Callable[[int], None] | None = None,
    ) -> None:
        validate_regions(regions)

        self._clock = clock
        self._seed = int(seed)
        self._timing = timing or PlaybackTiming()
        self._layout = layout or BoardLayout()
        self._regions = tuple(regions)
        self._surface: DrawingSurface = surface or NullSurface()
        self._audio: AudioService = audio or SilentAudio()
        self._on_game_over = on_game_over

        self._rng = SeededRng(self._seed)
        self._timer = TimerQueue(clock=clock)
        self._playback = PlaybackDriver(
            timer=self._timer,
            surface=self._surface,
            audio=self._audio,
            timing=self._timing,
            regions=self._regions,
        )
        self._failure = FailureIndicator(timer=self._timer, surface=self._surface, timing=self._timing)

        self._session = Session.new()
        self._final_score: int | None = None
        self._handed_off = False
        self._events: list[TapEvent] = []

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def phase(self) -> RoundPhase:
        return self._session.phase

    @property
    def session(self) -> Session:
        return self._session

    @property
    def layout(self) -> BoardLayout:
        return self._layout

    @property
    def regions(self) -> tuple[Region, ...]:
        return self._regions

    @property
    def final_score(self) -> int | None:
        return self._final_score

    def events(self) -> list[TapEvent]:
        return list(self._events)

    def can_restart(self) -> bool:
        if self._session.phase is RoundPhase.IDLE:
            return True
        return self._session.phase is RoundPhase.FAILED and self._handed_off

    def start(self) -> bool:
        """Start a fresh session. Returns False while a session is still running."""

        if not self.can_restart():
            return False
        self._timer.clear()
        self._surface.set_all_alpha(1.0)
        self._session = Session.new()
        self._final_score = None
        self._handed_off = False
        self._events = []
        logger.info("new session started (seed=%d)", self._seed)
        self._begin_round()
        return True

    def update(self) -> None:
        self._timer.poll()

    def pointer_down(self, x: float, y: float) -> TapOutcome:
        region = resolve_sector((x, y), self._layout.center, self._layout.radius, self._regions)
        if region is None:
            return TapOutcome.IGNORED
        return self.tap_region(region)

    def tap_region(self, region: int) -> TapOutcome:
        if not (0 <= region < len(self._regions)):
            raise ValueError(f"region index out of range: {region}")

        before = self._session
        result = register_tap(before, region)
        if result.outcome is TapOutcome.IGNORED:
            return result.outcome

        self._session = result.session
        self._events.append(
            TapEvent(
                round_number=before.score,
                step=before.player_step,
                expected=before.sequence[before.player_step],
                actual=region,
                outcome=result.outcome,
                at_s=self._clock.now(),
            )
        )
        logger.debug("tap region=%d step=%d -> %s", region, before.player_step, result.outcome.value)

        # Tap feedback runs regardless of correctness.
        self._playback.flash(region, self._timing.tap_highlight_ms)

        if result.outcome is TapOutcome.ROUND_COMPLETE:
            self._timer.after(self._timing.round_complete_pause_ms, self._begin_round)
        elif result.outcome is TapOutcome.FAILED:
            self._fail()
        return result.outcome

    def snapshot(self) -> SimonSnapshot:
        s = self._session
        return SimonSnapshot(
            phase=s.phase,
            round_number=s.score,
            round_label=format_round(s.score),
            message=_MESSAGES[s.phase],
            accepting_input=s.accepting_input,
            player_step=s.player_step,
            sequence_length=len(s.sequence),
            final_score=self._final_score,
            handed_off=self._handed_off,
        )

    def _begin_round(self) -> None:
        next_region = self._rng.randint(0, len(self._regions) - 1)
        self._session = begin_round(self._session, next_region)
        logger.info("round %d started", self._session.score)
        self._playback.play(self._session.sequence, self._on_playback_complete)

    def _on_playback_complete(self) -> None:
        self._session = open_input(self._session)

    def _fail(self) -> None:
        self._final_score = self._session.score
        play_clip_safely(self._audio, GAME_OVER_CLIP)
        self._failure.run(self._hand_off)

    def _hand_off(self) -> None:
        assert self._final_score is not None
        self._handed_off = True
        logger.info("game over, score=%d", self._final_score)
        if self._on_game_over is not None:
            self._on_game_over(self._final_score)


def build_simon_game(
    *,
    clock: Clock,
    seed: int,
    timing: PlaybackTiming | None = None,
    layout: BoardLayout | None = None,
    regions: Sequence[Region] = DEFAULT_REGIONS,
    surface: DrawingSurface | None = None,
    audio: AudioService | None = None,
    on_game_over: Callable[[int], None] | None = None,
) -> SimonEngine:
    return SimonEngine(
        clock=clock,
        seed=seed,
        timing=timing,
        layout=layout,
        regions=regions,
        surface=surface,
        audio=audio,
        on_game_over=on_game_over,
    )
