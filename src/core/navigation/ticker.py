"""Fixed-period tick driver for the navigation loop."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

log = logging.getLogger(__name__)


class IntervalTicker:
    """
    Call ``tick`` every ``period_s`` seconds on one background thread.

    Ticks never overlap: the next one is scheduled from the start of the
    previous one, and a tick that overruns the period delays the next.
    """

    def __init__(self, tick: Callable[[], object], period_s: float, name: str = "NavigationTicker") -> None:
        if period_s <= 0:
            raise ValueError("Tick period must be positive")
        self.tick = tick
        self.period_s = float(period_s)
        self.name = name
        self.ticks = 0

        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._stop_event.set()
        if (
            self._thread
            and self._thread.is_alive()
            and self._thread is not threading.current_thread()
        ):
            self._thread.join(timeout=1.0)

    def _run(self) -> None:
        next_tick = time.monotonic()
        while self._running:
            try:
                self.tick()
            except Exception:
                log.exception("Navigation tick failed")
            self.ticks += 1

            next_tick += self.period_s
            delay = next_tick - time.monotonic()
            if delay < 0:
                next_tick = time.monotonic()
                delay = 0.0
            if self._stop_event.wait(delay):
                break


__all__ = ["IntervalTicker"]
