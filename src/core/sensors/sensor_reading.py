"""Latest proximity-sensor sample held in a single-slot synchronized mailbox."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from core.vision.detected_object import DIRECTIONS


@dataclass(frozen=True)
class SensorReading:
    """
    One parsed ultrasonic sample.

    Attributes:
        direction: "left", "front" or "right" (user perspective)
        distance_cm: Positive distance in centimetres
        timestamp: Monotonic time the reading was stored
    """
    direction: str
    distance_cm: int
    timestamp: float = 0.0


class SensorReadingStore:
    """
    Hold the most recent SensorReading for the fusion tick.

    One writer (the transport reader) overwrites the slot; readers get an
    immutable snapshot. Readings older than ``stale_after`` seconds are
    reported as absent; ``stale_after`` <= 0 keeps them forever.
    """

    def __init__(
        self,
        stale_after: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stale_after = float(stale_after)
        self._clock = clock
        self._lock = threading.Lock()
        self._reading: Optional[SensorReading] = None
        self.updates = 0

    def update(self, direction: str, distance_cm: int) -> SensorReading:
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown sensor direction '{direction}'")
        if distance_cm <= 0:
            raise ValueError(f"Sensor distance must be positive, got {distance_cm}")
        reading = SensorReading(direction=direction, distance_cm=int(distance_cm), timestamp=self._clock())
        with self._lock:
            self._reading = reading
            self.updates += 1
        return reading

    def latest(self) -> Optional[SensorReading]:
        with self._lock:
            reading = self._reading
        if reading is None:
            return None
        if self.stale_after > 0 and self._clock() - reading.timestamp > self.stale_after:
            return None
        return reading

    def clear(self) -> None:
        with self._lock:
            self._reading = None


__all__ = ["SensorReading", "SensorReadingStore"]
