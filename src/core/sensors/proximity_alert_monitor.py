"""Standalone proximity alerts spoken directly from sensor readings."""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Callable, Optional

from utils.config_sections import SensorAlertConfig, load_sensor_alert_config
from core.telemetry.loggers.navigation_logger import get_navigation_logger


class ProximityState(Enum):
    CLEAR_PATH = "clear_path"
    CAUTION = "caution"
    WARNING = "warning"
    DANGER = "danger"


DEFAULT_HAPTIC_MS = {
    ProximityState.CLEAR_PATH.value: 0,
    ProximityState.CAUTION.value: 200,
    ProximityState.WARNING.value: 400,
    ProximityState.DANGER.value: 800,
}


class ProximityAlertMonitor:
    """
    Classify each reading into a proximity state and announce it.

    An alert is spoken when the state changes, or when the same state persists
    longer than ``repeat_after`` seconds.
    """

    def __init__(
        self,
        dispatch,
        config: Optional[SensorAlertConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.dispatch = dispatch
        self.config = config or load_sensor_alert_config()
        if not (self.config.warning_distance < self.config.caution_distance < self.config.clear_distance):
            raise ValueError("Alert thresholds must satisfy warning < caution < clear")
        self._clock = clock
        self._lock = threading.Lock()
        self.current_state: Optional[ProximityState] = None
        self._last_alert_time: Optional[float] = None
        self.alerts_sent = 0

    def classify(self, distance_cm: int) -> ProximityState:
        if distance_cm > self.config.clear_distance:
            return ProximityState.CLEAR_PATH
        if distance_cm > self.config.caution_distance:
            return ProximityState.CAUTION
        if distance_cm > self.config.warning_distance:
            return ProximityState.WARNING
        return ProximityState.DANGER

    @staticmethod
    def message_for(state: ProximityState, direction: str, distance_cm: int) -> str:
        if state is ProximityState.CLEAR_PATH:
            return "No obstacle nearby."
        if state is ProximityState.CAUTION:
            return f"Obstacle on your {direction} around {distance_cm} centimeters."
        if state is ProximityState.WARNING:
            return f"Warning! Object {distance_cm} centimeters on your {direction}."
        return f"Danger! Very close obstacle on your {direction}!"

    def haptic_ms(self, state: ProximityState) -> int:
        return int(self.config.haptic_ms.get(state.value, DEFAULT_HAPTIC_MS[state.value]))

    def on_reading(self, direction: str, distance_cm: int) -> Optional[str]:
        """Sensor subscriber callback. Returns the alert text when one is enqueued."""
        state = self.classify(distance_cm)
        now = self._clock()
        with self._lock:
            repeat_due = (
                self._last_alert_time is None
                or now - self._last_alert_time > self.config.repeat_after
            )
            if state is self.current_state and not repeat_due:
                return None
            self.current_state = state
            self._last_alert_time = now
            self.alerts_sent += 1

        message = self.message_for(state, direction, distance_cm)
        get_navigation_logger().sensor.info(f"Alert {state.value}: '{message}'")
        self.dispatch.enqueue(
            message,
            urgent=state in (ProximityState.WARNING, ProximityState.DANGER),
            haptic_ms=self.haptic_ms(state),
        )
        return message


__all__ = ["ProximityAlertMonitor", "ProximityState"]
