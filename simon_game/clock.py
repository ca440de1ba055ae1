"""Time sources. The core reads seconds from a ``Clock``; durations are passed in ms."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float: ...


class RealClock:
    """``time.monotonic()``; wall-clock adjustments never shorten a round."""

    def now(self) -> float:
        return time.monotonic()


def ms_to_s(duration_ms: float) -> float:
    return max(0.0, float(duration_ms)) / 1000.0
