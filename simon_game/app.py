"""Pygame UI shell for the Simon memory game.

Screens:
- Main menu (play, leaderboard, quit)
- Game board (four coloured wedges, PLAY button, round counter)
- Leaderboard (score list + email form to register the final score)

Deterministic round logic, timing and RNG live in simon_game/simon_core.py;
this module only draws, plays sounds and forwards input.
"""

from __future__ import annotations

import logging
import os
import random
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .audio import ToneAudio
from .clock import Clock, RealClock
from .leaderboard import InvalidEmailError, LeaderboardClient, LeaderboardEntry, LeaderboardError
from .playback import AudioService, PlaybackTiming, highlight_alpha
from .sector_geometry import DEFAULT_REGIONS, Color, Region, wedge_points
from .simon_core import BoardLayout, RoundPhase, SimonEngine, build_simon_game

logger = logging.getLogger(__name__)

WINDOW_SIZE = (800, 600)
TARGET_FPS = 60

_BG = (34, 34, 34)
_TEXT = (255, 255, 255)
_MUTED = (190, 198, 210)
_RIM = (0, 0, 0)
_HUB = (17, 17, 17)
_BUTTON = (142, 68, 173)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]


class App:
    """Screen stack: only the top screen gets input and draws."""

    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._stack: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def top(self) -> Screen | None:
        return self._stack[-1] if self._stack else None

    def push(self, screen: Screen) -> None:
        self._stack.append(screen)

    def pop(self) -> None:
        # The start menu at the bottom stays put.
        if len(self._stack) > 1:
            self._stack.pop()

    def replace(self, screen: Screen) -> None:
        """Swap the top screen, e.g. game board -> leaderboard after a loss."""

        if len(self._stack) > 1:
            self._stack[-1] = screen
        else:
            self._stack.append(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
        elif self.top is not None:
            self.top.handle_event(event)

    def render(self) -> None:
        if self.top is not None:
            self.top.render(self._surface)


def _blend(color: Color, background: Color, alpha: float) -> Color:
    a = max(0.0, min(1.0, float(alpha)))
    return (
        int(round(color[0] * a + background[0] * (1.0 - a))),
        int(round(color[1] * a + background[1] * (1.0 - a))),
        int(round(color[2] * a + background[2] * (1.0 - a))),
    )


class MenuScreen:
    """Start menu. Rows take the board colours and light up under the pointer.

    Up/Down or hover choose a row, Enter/Space or a click picks it, Esc quits.
    """

    def __init__(self, app: App, title: str, items: list[MenuItem]) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._title_font = pygame.font.Font(None, 64)
        self._item_font = pygame.font.Font(None, 36)
        self._hint_font = pygame.font.Font(None, 22)
        self._rows: list[pygame.Rect] = []

    @property
    def selected(self) -> int:
        return self._selected

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            if event.key in (pygame.K_UP, pygame.K_DOWN) and self._items:
                step = -1 if event.key == pygame.K_UP else 1
                self._selected = (self._selected + step) % len(self._items)
            elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                self._pick(self._selected)
            elif event.key == pygame.K_ESCAPE:
                self._app.quit()
        elif event.type in (pygame.MOUSEMOTION, pygame.MOUSEBUTTONDOWN):
            row = self._row_at(event.pos)
            if row is None:
                return
            self._selected = row
            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._pick(row)

    def _row_at(self, pos: tuple[int, int]) -> int | None:
        for idx, rect in enumerate(self._rows):
            if rect.collidepoint(pos):
                return idx
        return None

    def _pick(self, idx: int) -> None:
        if 0 <= idx < len(self._items):
            self._items[idx].action()

    def render(self, surface: pygame.Surface) -> None:
        w, h = surface.get_size()
        surface.fill(_BG)

        title = self._title_font.render(self._title, True, _TEXT)
        surface.blit(title, title.get_rect(center=(w // 2, h // 4)))

        row_w, row_h, gap = 240, 56, 14
        y = h // 2 - ((row_h + gap) * len(self._items)) // 2
        self._rows = []
        for idx, item in enumerate(self._items):
            rect = pygame.Rect(w // 2 - row_w // 2, y, row_w, row_h)
            lit = idx == self._selected
            base = DEFAULT_REGIONS[idx % len(DEFAULT_REGIONS)].color
            pygame.draw.rect(surface, _blend(base, _BG, 1.0 if lit else 0.45), rect, border_radius=10)
            if lit:
                pygame.draw.rect(surface, _TEXT, rect, 2, border_radius=10)
            text = self._item_font.render(item.label, True, _TEXT)
            surface.blit(text, text.get_rect(center=rect.center))
            self._rows.append(rect)
            y += row_h + gap

        foot = self._hint_font.render("Arrows or mouse to choose  |  Enter or click to go  |  Esc: Quit", True, _MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(w // 2, h - 16)))


class BoardSurface:
    """Drawing-surface side of the engine: tracks per-region intensity."""

    def __init__(self, *, clock: Clock, timing: PlaybackTiming) -> None:
        self._clock = clock
        self._timing = timing
        self._highlights: dict[int, tuple[float, int]] = {}
        self._global_alpha = 1.0

    def highlight(self, region_index: int, duration_ms: int) -> None:
        self._highlights[int(region_index)] = (self._clock.now(), int(duration_ms))

    def set_all_alpha(self, alpha: float) -> None:
        self._global_alpha = float(alpha)

    def alpha(self, region_index: int) -> float:
        value = self._global_alpha
        active = self._highlights.get(region_index)
        if active is not None:
            started_at_s, duration_ms = active
            elapsed_ms = (self._clock.now() - started_at_s) * 1000.0
            if elapsed_ms >= duration_ms:
                del self._highlights[region_index]
            else:
                value = min(value, highlight_alpha(elapsed_ms, duration_ms, self._timing.dim_alpha))
        return value


class SimonGameScreen:
    _KEY_REGIONS = {
        pygame.K_1: 0,
        pygame.K_2: 1,
        pygame.K_3: 2,
        pygame.K_4: 3,
        pygame.K_LEFT: 0,
        pygame.K_UP: 1,
        pygame.K_RIGHT: 2,
        pygame.K_DOWN: 3,
    }

    def __init__(
        self,
        app: App,
        *,
        clock: Clock,
        seed: int,
        audio: AudioService,
        on_game_over: Callable[[int], None],
        timing: PlaybackTiming | None = None,
        layout: BoardLayout | None = None,
        regions: tuple[Region, ...] = DEFAULT_REGIONS,
    ) -> None:
        self._app = app
        self._timing = timing or PlaybackTiming()
        self._layout = layout or BoardLayout()
        self._regions = regions
        self._board = BoardSurface(clock=clock, timing=self._timing)
        self._engine: SimonEngine = build_simon_game(
            clock=clock,
            seed=seed,
            timing=self._timing,
            layout=self._layout,
            regions=regions,
            surface=self._board,
            audio=audio,
            on_game_over=on_game_over,
        )
        self._title_font = pygame.font.Font(None, 64)
        self._round_font = pygame.font.Font(None, 40)
        self._info_font = pygame.font.Font(None, 26)
        self._button_font = pygame.font.Font(None, 32)
        cx, cy = self._layout.center
        self._play_rect = pygame.Rect(0, 0, 160, 48)
        self._play_rect.center = (int(cx), int(cy + self._layout.radius + 70))

    @property
    def engine(self) -> SimonEngine:
        return self._engine

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self._app.pop()
            elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
                self._press_play()
            elif event.key in self._KEY_REGIONS:
                self._engine.tap_region(self._KEY_REGIONS[event.key])
            return

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self._play_visible() and self._play_rect.collidepoint(event.pos):
                self._press_play()
                return
            x, y = event.pos
            self._engine.pointer_down(float(x), float(y))

    def _play_visible(self) -> bool:
        return self._engine.phase is RoundPhase.IDLE

    def _press_play(self) -> None:
        if not self._play_visible():
            return
        self._engine.start()

    def render(self, surface: pygame.Surface) -> None:
        self._engine.update()
        snap = self._engine.snapshot()

        w, _ = surface.get_size()
        surface.fill(_BG)
        title = self._title_font.render("SIMON", True, _TEXT)
        surface.blit(title, title.get_rect(center=(w // 2, 60)))

        center = self._layout.center
        radius = self._layout.radius
        cx, cy = int(center[0]), int(center[1])
        for region in self._regions:
            color = _blend(region.color, _BG, self._board.alpha(region.index))
            pygame.draw.polygon(surface, color, wedge_points(center, radius, region.start_deg, region.end_deg))

        pygame.draw.circle(surface, _RIM, (cx, cy), int(radius) + 10, 10)
        ext = int(radius) + 6
        pygame.draw.line(surface, _RIM, (cx - ext, cy), (cx + ext, cy), 4)
        pygame.draw.line(surface, _RIM, (cx, cy - ext), (cx, cy + ext), 4)
        pygame.draw.circle(surface, _RIM, (cx, cy), 50)
        pygame.draw.circle(surface, _HUB, (cx, cy), 40)

        label = self._round_font.render(snap.round_label, True, _TEXT)
        surface.blit(label, label.get_rect(center=(cx, cy)))

        info = self._info_font.render(snap.message, True, _TEXT)
        surface.blit(info, info.get_rect(center=(w // 2, 430)))

        if self._play_visible():
            pygame.draw.rect(surface, _BUTTON, self._play_rect, border_radius=14)
            txt = self._button_font.render("PLAY", True, _TEXT)
            surface.blit(txt, txt.get_rect(center=self._play_rect.center))


def _start_daemon(job: Callable[[], None]) -> None:
    threading.Thread(target=job, name="leaderboard", daemon=True).start()


class LeaderboardScreen:
    """Score list plus the email form for the score just achieved.

    HTTP calls go through ``runner`` (a daemon thread by default) so a slow
    or unreachable server never stalls the frame loop. Results land in plain
    attributes that ``render`` reads on the next frame.
    """

    def __init__(
        self,
        app: App,
        *,
        client: LeaderboardClient,
        score: int | None,
        on_play_again: Callable[[], None],
        runner: Callable[[Callable[[], None]], None] = _start_daemon,
    ) -> None:
        self._app = app
        self._client = client
        self._score = score
        self._on_play_again = on_play_again
        self._runner = runner
        self._entries: list[LeaderboardEntry] = []
        self._list_error: str | None = None
        self._loading = False
        self._saving = False
        self._email = ""
        self._message = ""
        self._registered = False
        self._title_font = pygame.font.Font(None, 48)
        self._row_font = pygame.font.Font(None, 28)
        self._hint_font = pygame.font.Font(None, 22)
        self.refresh()

    @property
    def entries(self) -> list[LeaderboardEntry]:
        return list(self._entries)

    @property
    def message(self) -> str:
        return self._message

    @property
    def loading(self) -> bool:
        return self._loading

    def refresh(self) -> None:
        if self._loading:
            return
        self._loading = True
        self._runner(self._load_entries)

    def _load_entries(self) -> None:
        try:
            entries = self._client.fetch_entries()
        except LeaderboardError:
            logger.warning("leaderboard fetch failed", exc_info=True)
            self._entries = []
            self._list_error = f"Could not load the leaderboard. Check the server at {self._client.url}"
        else:
            self._entries = entries
            self._list_error = None
        finally:
            self._loading = False

    def submit(self) -> None:
        if self._score is None or self._registered or self._saving:
            return
        self._saving = True
        self._message = "Saving..."
        email, score = self._email, self._score
        self._runner(lambda: self._save(email, score))

    def _save(self, email: str, score: int) -> None:
        try:
            entry = self._client.register_score(email, score)
        except (InvalidEmailError, LeaderboardError) as exc:
            self._message = str(exc)
        else:
            self._registered = True
            self._message = f"Saved! {entry.name}: {entry.score}"
            self._load_entries()
        finally:
            self._saving = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key == pygame.K_ESCAPE:
            self._app.pop()
        elif event.key == pygame.K_TAB:
            self._on_play_again()
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            self.submit()
        elif event.key == pygame.K_BACKSPACE:
            self._email = self._email[:-1]
        elif event.unicode and event.unicode.isprintable() and not self._registered:
            self._email += event.unicode

    def render(self, surface: pygame.Surface) -> None:
        w, h = surface.get_size()
        surface.fill(_BG)
        title = self._title_font.render("Leaderboard", True, _TEXT)
        surface.blit(title, title.get_rect(center=(w // 2, 48)))

        y = 96
        entries = self._entries
        if self._list_error is not None:
            err = self._row_font.render(self._list_error, True, _MUTED)
            surface.blit(err, err.get_rect(midtop=(w // 2, y)))
        elif self._loading and not entries:
            wait = self._row_font.render("Loading...", True, _MUTED)
            surface.blit(wait, wait.get_rect(midtop=(w // 2, y)))
        else:
            for rank, entry in enumerate(entries[:10], start=1):
                row = self._row_font.render(f"{rank:>2}. {entry.name}  {entry.score}", True, _TEXT)
                surface.blit(row, (w // 2 - 160, y))
                y += 30

        if self._score is not None:
            form_y = h - 190
            score_txt = self._row_font.render(f"Your score: {self._score}", True, _TEXT)
            surface.blit(score_txt, (w // 2 - 200, form_y))
            if not self._registered:
                prompt = self._row_font.render("Leave your email to save the result:", True, _MUTED)
                surface.blit(prompt, (w // 2 - 200, form_y + 32))
                box = pygame.Rect(w // 2 - 200, form_y + 62, 400, 34)
                pygame.draw.rect(surface, (250, 250, 250), box, border_radius=4)
                typed = self._row_font.render(self._email or "yourname@email.com", True, (20, 20, 20))
                surface.blit(typed, (box.x + 8, box.y + 7))
            if self._message:
                msg = self._row_font.render(self._message, True, _TEXT)
                surface.blit(msg, (w // 2 - 200, form_y + 104))

        hint = "Enter: Save score  |  Tab: Back to game  |  Esc: Menu"
        foot = self._hint_font.render(hint, True, _MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(w // 2, h - 16)))


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def _configure_logging() -> None:
    level = os.environ.get("SIMON_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    leaderboard: LeaderboardClient | None = None,
) -> int:
    _configure_logging()
    pygame.init()

    pygame.display.set_caption("Simon")
    surface = pygame.display.set_mode(WINDOW_SIZE)

    clock = pygame.time.Clock()

    app = App(surface=surface)
    real_clock = RealClock()
    audio = ToneAudio()
    client = leaderboard or LeaderboardClient()

    def open_leaderboard(score: int | None) -> LeaderboardScreen:
        return LeaderboardScreen(app, client=client, score=score, on_play_again=lambda: app.replace(new_game()))

    def new_game() -> SimonGameScreen:
        return SimonGameScreen(
            app,
            clock=real_clock,
            seed=_new_seed(),
            audio=audio,
            on_game_over=lambda score: app.replace(open_leaderboard(score)),
        )

    main_items = [
        MenuItem("START", lambda: app.push(new_game())),
        MenuItem("Leaderboard", lambda: app.push(open_leaderboard(None))),
        MenuItem("Quit", app.quit),
    ]

    app.push(MenuScreen(app, "Simon", main_items))
    logger.info("leaderboard service at %s", client.url)

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0
