"""
Serialized speech/haptic dispatch for navigation instructions and alerts.

This module provides a FIFO queue that hands one entry at a time to the
speech actuator and fires the matching haptic pulse alongside it. The next
entry only starts after the current utterance completes (successfully or not)
and a fixed settle delay has elapsed.

State machine:
    IDLE --enqueue--> SPEAKING --complete--> SETTLING --delay--> SPEAKING | IDLE

Features:
- At most one entry in flight
- Completion-driven advancement via concurrent.futures.Future callbacks
- Speech failures treated exactly like normal completion
- Urgent entries get the long haptic pulse; alerts may override the duration
- Telemetry integration for dispatch events
- Thread-safe metrics collection

Usage:
    dispatch = SpeechDispatchQueue(audio_system, telemetry=telemetry)
    dispatch.enqueue("Path is clear.")
    dispatch.enqueue("Obstacle detected 80 centimeters on your left.", urgent=True)
    dispatch.wait_idle(timeout=10.0)
"""

from __future__ import annotations

import threading
import time
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

from utils.config_sections import DispatchConfig, load_dispatch_config
from core.telemetry.loggers.navigation_logger import get_navigation_logger
from core.telemetry.loggers.telemetry_logger import TelemetryLogger

Scheduler = Callable[[float, Callable[[], None]], Any]


class DispatchState(Enum):
    IDLE = "idle"
    SPEAKING = "speaking"
    SETTLING = "settling"


@dataclass
class DispatchQueueEntry:
    message: str
    urgent: bool = False
    haptic_ms: Optional[int] = None
    enqueued_at: float = field(default_factory=time.time)


def timer_schedule(delay_s: float, callback: Callable[[], None]) -> threading.Timer:
    """Run ``callback`` once after ``delay_s`` seconds on a daemon timer thread."""
    timer = threading.Timer(delay_s, callback)
    timer.daemon = True
    timer.start()
    return timer


class SpeechDispatchQueue:
    """FIFO of (message, urgent) entries actuated strictly one at a time."""

    def __init__(
        self,
        audio_system,
        config: Optional[DispatchConfig] = None,
        *,
        telemetry: Optional[TelemetryLogger] = None,
        schedule: Optional[Scheduler] = None,
    ) -> None:
        self.audio = audio_system
        self.config = config or load_dispatch_config()
        if self.config.settle_delay_ms < 0:
            raise ValueError("settle_delay_ms must be >= 0")
        self.telemetry = telemetry
        self._schedule = schedule or timer_schedule

        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._pending: Deque[DispatchQueueEntry] = deque()
        self._state = DispatchState.IDLE
        self._in_flight: Optional[DispatchQueueEntry] = None
        self._closed = False

        self._metrics_lock = threading.Lock()
        self.metrics: Dict[str, Any] = {
            "enqueued": 0,
            "dispatched": 0,
            "completed": 0,
            "failed": 0,
            "flushed": 0,
            "dropped": 0,
            "max_pending": 0,
            "last_dispatch_ts": 0.0,
        }

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------

    @property
    def state(self) -> DispatchState:
        with self._lock:
            return self._state

    @property
    def in_flight(self) -> Optional[DispatchQueueEntry]:
        with self._lock:
            return self._in_flight

    def pending(self) -> List[DispatchQueueEntry]:
        with self._lock:
            return list(self._pending)

    @property
    def is_idle(self) -> bool:
        with self._lock:
            return self._state is DispatchState.IDLE and not self._pending

    def get_metrics(self) -> Dict[str, Any]:
        with self._metrics_lock:
            return dict(self.metrics)

    # ------------------------------------------------------------------
    # queue interface
    # ------------------------------------------------------------------

    def enqueue(self, message: str, urgent: bool = False, haptic_ms: Optional[int] = None) -> Optional[DispatchQueueEntry]:
        """Append an entry; dispatch it immediately when nothing is speaking."""
        entry = DispatchQueueEntry(message=message, urgent=bool(urgent), haptic_ms=haptic_ms)
        with self._lock:
            if self._closed:
                self._record(entry, "dropped", reason="closed")
                return None
            self._pending.append(entry)
            self._record(entry, "enqueued")
            with self._metrics_lock:
                self.metrics["max_pending"] = max(self.metrics["max_pending"], len(self._pending))
            if self._state is DispatchState.IDLE:
                self._dispatch_next_locked()
        return entry

    def flush_pending(self, keep_urgent: bool = True) -> int:
        """Drop queued (not in-flight) entries. Returns how many were removed."""
        with self._lock:
            kept: Deque[DispatchQueueEntry] = deque()
            removed = 0
            for entry in self._pending:
                if keep_urgent and entry.urgent:
                    kept.append(entry)
                else:
                    removed += 1
                    self._record(entry, "flushed")
            self._pending = kept
            if self._state is DispatchState.IDLE and not self._pending:
                self._idle.notify_all()
        return removed

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until nothing is queued or in flight."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._idle:
            while not (self._state is DispatchState.IDLE and not self._pending):
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._idle.wait(remaining)
            return True

    def close(self) -> None:
        """Refuse further entries and drop whatever has not started."""
        with self._lock:
            self._closed = True
            self.flush_pending(keep_urgent=False)

    # ------------------------------------------------------------------
    # dispatch loop
    # ------------------------------------------------------------------

    def _dispatch_next_locked(self) -> None:
        logger = get_navigation_logger().routing
        if not self._pending:
            self._state = DispatchState.IDLE
            self._in_flight = None
            self._idle.notify_all()
            return

        entry = self._pending.popleft()
        self._state = DispatchState.SPEAKING
        self._in_flight = entry
        self._record(entry, "dispatched")
        with self._metrics_lock:
            self.metrics["last_dispatch_ts"] = time.time()
        logger.info(f"Speaking: '{entry.message}' (urgent={entry.urgent}, pending={len(self._pending)})")

        self._fire_haptic(entry)

        try:
            future = self.audio.speak(entry.message)
        except Exception as exc:
            logger.warning(f"Speech actuator rejected '{entry.message}': {exc}")
            failed: "Future[None]" = Future()
            failed.set_exception(exc)
            future = failed

        future.add_done_callback(lambda done, current=entry: self._on_complete(current, done))

    def _fire_haptic(self, entry: DispatchQueueEntry) -> None:
        if entry.haptic_ms is not None:
            duration = entry.haptic_ms
        elif entry.urgent:
            duration = self.config.haptic_urgent_ms
        else:
            duration = self.config.haptic_normal_ms
        try:
            self.audio.pulse(duration)
        except Exception as exc:
            get_navigation_logger().routing.warning(f"Haptic pulse failed: {exc}")

    def _on_complete(self, entry: DispatchQueueEntry, future: "Future[None]") -> None:
        logger = get_navigation_logger().routing
        error = None if future.cancelled() else future.exception()
        with self._lock:
            if self._in_flight is not entry:
                return
            self._in_flight = None
            self._state = DispatchState.SETTLING
            if error is None:
                self._record(entry, "completed")
            else:
                logger.warning(f"Speech failed for '{entry.message}': {error}")
                self._record(entry, "failed", reason=type(error).__name__)
                if self.telemetry:
                    self.telemetry.log_error("speech_failed", str(error), utterance=entry.message)

        self._schedule(self.config.settle_delay_ms / 1000.0, self._advance)

    def _advance(self) -> None:
        with self._lock:
            if self._state is not DispatchState.SETTLING:
                return
            self._dispatch_next_locked()

    # ------------------------------------------------------------------
    # metrics
    # ------------------------------------------------------------------

    def _record(self, entry: DispatchQueueEntry, action: str, reason: Optional[str] = None) -> None:
        with self._metrics_lock:
            self.metrics[action] = self.metrics.get(action, 0) + 1
        if self.telemetry:
            self.telemetry.log_audio_event(
                action=action,
                message=entry.message,
                urgent=entry.urgent,
                reason=reason,
            )


__all__ = ["SpeechDispatchQueue", "DispatchQueueEntry", "DispatchState", "timer_schedule"]
