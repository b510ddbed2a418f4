from __future__ import annotations
"""Fixed-interval driver that never overlaps ticks.

The callback runs on the calling thread. When a tick overruns its period the
pending firing runs right after it and any further missed firings are dropped,
the same coalescing a ticker channel with a single slot gives.
"""

import logging
import math
import threading
import time
from typing import Any, Callable, Optional

log = logging.getLogger(__name__)


class TickScheduler:
    def __init__(
        self,
        callback: Callable[[int], Any],
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        if not math.isfinite(interval) or interval <= 0:
            raise ValueError("interval must be a finite positive number of seconds")
        self.callback = callback
        self.interval = interval
        self.clock = clock
        self._stop = stop_event if stop_event is not None else threading.Event()
        self.ticks = 0
        self.coalesced = 0

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Block until ``stop()`` or ``max_ticks``; return the number of ticks run."""
        next_at = self.clock() + self.interval
        while not self._stop.is_set():
            if max_ticks is not None and self.ticks >= max_ticks:
                break
            delay = next_at - self.clock()
            if delay > 0 and self._stop.wait(delay):
                break
            self.ticks += 1
            try:
                self.callback(self.ticks)
            except Exception:
                log.exception("tick #%d raised unexpectedly; continuing", self.ticks)
            if max_ticks is not None and self.ticks >= max_ticks:
                break
            next_at += self.interval
            now = self.clock()
            if now >= next_at:
                dropped = int((now - next_at) // self.interval)
                self.coalesced += dropped
                log.debug(
                    "tick #%d overran its %.3fs period by %.3fs; %d firing(s) dropped",
                    self.ticks, self.interval, now - next_at + self.interval, dropped,
                )
                next_at = now
        return self.ticks
