from __future__ import annotations

import logging
import math
import os
from array import array
from collections.abc import Sequence

import pygame

from .sector_geometry import DEFAULT_REGIONS, GAME_OVER_CLIP, Region

logger = logging.getLogger(__name__)

# Classic Simon pitches, one per region index.
_REGION_FREQUENCIES_HZ: tuple[float, ...] = (415.0, 310.0, 252.0, 209.0)


class ToneAudio:
    """pygame mixer audio service with synthesised clips.

    Clips are rendered once as 16-bit mono PCM, so no asset files are needed.
    If the mixer is unavailable the service stays silent.
    """

    _sample_rate = 22050

    def __init__(self, *, regions: Sequence[Region] = DEFAULT_REGIONS, enabled: bool | None = None) -> None:
        if enabled is None:
            enabled = os.environ.get("SIMON_DISABLE_AUDIO", "0") != "1"
        self._regions = tuple(regions)
        self._enabled = bool(enabled)
        self._ready = False
        self._init_failed = False
        self._sounds: dict[str, pygame.mixer.Sound] = {}

    @property
    def available(self) -> bool:
        return self._ready

    def play_clip(self, name: str) -> None:
        if not self._ensure_ready():
            return
        self._sounds[name].play()

    def _ensure_ready(self) -> bool:
        if self._ready:
            return True
        if not self._enabled or self._init_failed:
            return False
        try:
            if pygame.mixer.get_init() is None:
                pygame.mixer.init(frequency=self._sample_rate, size=-16, channels=1, buffer=512)
            self._sounds = self._build_clips()
        except (pygame.error, ValueError):
            self._init_failed = True
            logger.warning("audio unavailable, continuing without sound", exc_info=True)
            return False
        self._ready = True
        return True

    def _build_clips(self) -> dict[str, pygame.mixer.Sound]:
        clips: dict[str, array[int]] = {}
        for region in self._regions:
            freq = _REGION_FREQUENCIES_HZ[region.index % len(_REGION_FREQUENCIES_HZ)]
            clips[region.clip] = tone_pcm(freq, 0.30, gain=0.38, sample_rate=self._sample_rate)
        clips[GAME_OVER_CLIP] = melody_pcm(_GAME_OVER_NOTES, sample_rate=self._sample_rate)
        return {name: pygame.mixer.Sound(buffer=pcm.tobytes()) for name, pcm in clips.items()}


# Falling "buzzer": (frequency Hz, seconds, gain).
_GAME_OVER_NOTES: tuple[tuple[float, float, float], ...] = (
    (220.0, 0.18, 0.42),
    (165.0, 0.18, 0.42),
    (110.0, 0.42, 0.45),
)


def tone_pcm(frequency_hz: float, duration_s: float, *, gain: float, sample_rate: int = 22050) -> array[int]:
    """16-bit mono sine burst with 8 ms linear ramps at both ends (no clicks)."""

    n = max(1, int(sample_rate * duration_s))
    ramp = max(1, int(sample_rate * 0.008))
    step = 2.0 * math.pi * float(frequency_hz) / sample_rate
    level = max(0.0, min(1.0, gain)) * 32767
    return array(
        "h",
        (int(level * min(1.0, i / ramp, (n - 1 - i) / ramp) * math.sin(step * i)) for i in range(n)),
    )


def melody_pcm(notes: Sequence[tuple[float, float, float]], *, sample_rate: int = 22050) -> array[int]:
    pcm = array("h")
    for freq, seconds, gain in notes:
        pcm.extend(tone_pcm(freq, seconds, gain=gain, sample_rate=sample_rate))
    return pcm
