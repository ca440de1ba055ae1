from __future__ import annotations

import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field

from .clock import Clock, ms_to_s


@dataclass(order=True, slots=True)
class TimerHandle:
    due_at_s: float
    order: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class TimerQueue:
    """Single-shot delayed callbacks on one cooperative timeline.

    Nothing runs on its own: the owner calls ``poll()`` once per frame (or
    after advancing a fake clock) and every due callback fires in due-time
    order, ties in scheduling order.

    A timer scheduled from inside a firing callback counts from that
    callback's due time when the callback ran at most ``max_lag_ms`` late,
    so chained delays do not drift with ordinary frame jitter. After a longer
    stall it counts from ``clock.now()``: a chain never catches up on missed
    time, and one ``poll()`` advances it by a single link.
    """

    def __init__(self, *, clock: Clock, max_lag_ms: float = 50.0) -> None:
        if max_lag_ms < 0:
            raise ValueError("max_lag_ms must be >= 0")
        self._clock = clock
        self._max_lag_s = ms_to_s(max_lag_ms)
        self._heap: list[TimerHandle] = []
        self._counter = itertools.count()
        self._firing_at_s: float | None = None

    @property
    def pending(self) -> int:
        return sum(1 for h in self._heap if not h.cancelled)

    def after(self, duration_ms: float, callback: Callable[[], None]) -> TimerHandle:
        now = self._clock.now()
        base_s = now
        if self._firing_at_s is not None and now - self._firing_at_s <= self._max_lag_s:
            base_s = self._firing_at_s
        handle = TimerHandle(
            due_at_s=base_s + ms_to_s(duration_ms),
            order=next(self._counter),
            callback=callback,
        )
        heapq.heappush(self._heap, handle)
        return handle

    def poll(self) -> int:
        now = self._clock.now()
        fired = 0
        while self._heap and self._heap[0].due_at_s <= now:
            handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            self._firing_at_s = handle.due_at_s
            try:
                handle.callback()
            finally:
                self._firing_at_s = None
            fired += 1
        return fired

    def clear(self) -> None:
        for handle in self._heap:
            handle.cancelled = True
        self._heap.clear()
