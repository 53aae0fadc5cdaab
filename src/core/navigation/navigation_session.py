"""
Navigation session: owns the tick loop, sensor mailbox and instruction flow.

One session replaces a process-wide navigator. It is handed the dispatch queue
it speaks through and is passed by reference to the detection worker, the
sensor link and the voice command handler.

Data flow per tick:
    latest SensorReading + latest detections -> InstructionGenerator
        -> InstructionDebouncer -> SpeechDispatchQueue
"""

from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional, Sequence

from utils.config_sections import (
    DispatchConfig,
    NavigationConfig,
    load_dispatch_config,
    load_navigation_config,
    load_sensor_config,
)
from core.audio.dispatch_queue import SpeechDispatchQueue
from core.sensors.sensor_reading import SensorReadingStore
from core.telemetry.loggers.navigation_logger import get_navigation_logger
from core.vision.detected_object import DetectedObject
from .instruction_generator import Instruction, InstructionDebouncer, InstructionGenerator
from .ticker import IntervalTicker

TickerFactory = Callable[[Callable[[], object], float], IntervalTicker]


class NavigationSession:
    """Start/stop handle around the periodic instruction loop."""

    def __init__(
        self,
        dispatch: SpeechDispatchQueue,
        *,
        store: Optional[SensorReadingStore] = None,
        generator: Optional[InstructionGenerator] = None,
        debouncer: Optional[InstructionDebouncer] = None,
        config: Optional[NavigationConfig] = None,
        dispatch_config: Optional[DispatchConfig] = None,
        ticker_factory: Optional[TickerFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or load_navigation_config()
        if self.config.tick_ms <= 0:
            raise ValueError("tick_ms must be positive")
        self.dispatch_config = dispatch_config or load_dispatch_config()

        self.dispatch = dispatch
        self.store = store or SensorReadingStore(stale_after=load_sensor_config().stale_after, clock=clock)
        self.generator = generator or InstructionGenerator(self.config)
        self.debouncer = debouncer or InstructionDebouncer(self.config)
        self._clock = clock
        self._ticker_factory = ticker_factory or IntervalTicker

        self._lock = threading.Lock()
        self._running = False
        self._ticker: Optional[IntervalTicker] = None
        self._camera_objects: List[DetectedObject] = []
        self._sensor_link = None
        self._subscribed = False

        self.ticks = 0
        self.instructions_forwarded = 0
        self.last_instruction: Optional[Instruction] = None

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def start(self) -> bool:
        """Begin ticking. Returns False if the session was already running."""
        logger = get_navigation_logger().decision
        with self._lock:
            if self._running:
                return False
            self._running = True
            self.debouncer.reset()
            self._subscribe_sensor_locked()
            self._ticker = self._ticker_factory(self.tick, self.config.tick_ms / 1000.0)
        self._ticker.start()
        logger.info(f"Navigation started (tick={self.config.tick_ms}ms)")
        return True

    def stop(self) -> bool:
        """
        Stop ticking, drop queued camera instructions and announce the stop.

        Returns False if the session was not running.
        """
        logger = get_navigation_logger().decision
        with self._lock:
            if not self._running:
                return False
            self._running = False
            ticker, self._ticker = self._ticker, None
            self._unsubscribe_sensor_locked()

        if ticker is not None:
            ticker.stop()
        flushed = self.dispatch.flush_pending(keep_urgent=True)
        self.dispatch.enqueue(self.dispatch_config.stop_announcement, urgent=False)
        logger.info(f"Navigation stopped (flushed {flushed} pending entries)")
        return True

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Stop if needed, wait for the stop announcement, then close the queue.

        Returns True when the queue drained within ``timeout``.
        """
        self.stop()
        wait = self.dispatch_config.shutdown_timeout if timeout is None else timeout
        drained = self.dispatch.wait_idle(timeout=wait)
        if not drained:
            get_navigation_logger().decision.warning(
                f"Dispatch queue did not drain within {wait:.1f}s, closing anyway"
            )
        self.dispatch.close()
        return drained

    # ------------------------------------------------------------------
    # inputs
    # ------------------------------------------------------------------

    def update_camera_objects(self, objects: Sequence[DetectedObject]) -> None:
        snapshot = list(objects)
        with self._lock:
            self._camera_objects = snapshot

    def update_sensor_data(self, direction: str, distance_cm: int) -> None:
        reading = self.store.update(direction, distance_cm)
        get_navigation_logger().decision.debug(
            f"Sensor reading {reading.direction} {reading.distance_cm}cm"
        )

    def on_sensor_lost(self) -> None:
        self.store.clear()
        get_navigation_logger().decision.info("Sensor link lost, reading cleared")

    def attach_sensor_link(self, link) -> None:
        with self._lock:
            if self._sensor_link is not None and self._sensor_link is not link:
                self._unsubscribe_sensor_locked()
                self._sensor_link.remove_disconnect_listener(self.on_sensor_lost)
            self._sensor_link = link
            link.add_disconnect_listener(self.on_sensor_lost)
            if self._running:
                self._subscribe_sensor_locked()

    def _subscribe_sensor_locked(self) -> None:
        if self._sensor_link is not None and not self._subscribed:
            self._sensor_link.subscribe(self.update_sensor_data)
            self._subscribed = True

    def _unsubscribe_sensor_locked(self) -> None:
        if self._sensor_link is not None and self._subscribed:
            self._sensor_link.unsubscribe(self.update_sensor_data)
            self._subscribed = False

    # ------------------------------------------------------------------
    # tick
    # ------------------------------------------------------------------

    def tick(self) -> Optional[Instruction]:
        """Generate one instruction; return it if it was forwarded to dispatch."""
        logger = get_navigation_logger().decision
        with self._lock:
            if not self._running:
                return None
            self.ticks += 1
            reading = self.store.latest()
            instruction = self.generator.generate(reading, self._camera_objects)
            now = self._clock()
            if not self.debouncer.offer(instruction.text, now):
                logger.debug(f"Debounced: '{instruction.text}'")
                return None

            self.instructions_forwarded += 1
            self.last_instruction = instruction
            logger.info(f"Instruction (urgent={instruction.urgent}): '{instruction.text}'")
            self.dispatch.enqueue(instruction.text, urgent=instruction.urgent)
            return instruction


__all__ = ["NavigationSession"]
