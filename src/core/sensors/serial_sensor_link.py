"""
Serial transport for the ultrasonic obstacle sensor.

The sensor board (HC-05 Bluetooth SPP or USB serial) streams short ASCII
messages such as ``OBSTACLE_Left_37cm``. This module owns the port, reads and
parses messages on a background thread and publishes each accepted reading to
its subscribers.

Connection handling:
- A read failure is a disconnection: the port is closed and cleared, the
  disconnect listeners run (the session clears its reading store) and a
  reconnect is attempted every ``reconnect_interval`` seconds until stopped.
- Unparsable messages are logged and dropped.

Usage:
    link = SerialSensorLink()
    link.subscribe(lambda direction, distance: print(direction, distance))
    link.start()
    ...
    link.stop()
"""

from __future__ import annotations

import threading
from typing import Any, Callable, List, Optional

import serial

from utils.config_sections import SensorConfig, load_sensor_config
from core.telemetry.loggers.navigation_logger import get_navigation_logger
from .message_parser import parse_sensor_message, split_messages

ReadingCallback = Callable[[str, int], None]
DisconnectCallback = Callable[[], None]
PortFactory = Callable[[], Any]


class SerialSensorLink:
    """Background reader that turns a serial byte stream into sensor readings."""

    def __init__(
        self,
        config: Optional[SensorConfig] = None,
        *,
        port_factory: Optional[PortFactory] = None,
        telemetry=None,
    ) -> None:
        self.config = config or load_sensor_config()
        if self.config.reconnect_interval <= 0:
            raise ValueError("reconnect_interval must be positive")
        self.telemetry = telemetry
        self._port_factory = port_factory or self._open_serial_port

        self._port: Optional[Any] = None
        self._pending = ""
        self._subscribers: List[ReadingCallback] = []
        self._disconnect_listeners: List[DisconnectCallback] = []
        self._subscribers_lock = threading.Lock()

        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.messages_received = 0
        self.messages_accepted = 0
        self.connection_attempts = 0
        self.disconnects = 0

    # ------------------------------------------------------------------
    # subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: ReadingCallback) -> ReadingCallback:
        with self._subscribers_lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: ReadingCallback) -> None:
        with self._subscribers_lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def add_disconnect_listener(self, callback: DisconnectCallback) -> None:
        with self._subscribers_lock:
            if callback not in self._disconnect_listeners:
                self._disconnect_listeners.append(callback)

    def remove_disconnect_listener(self, callback: DisconnectCallback) -> None:
        with self._subscribers_lock:
            if callback in self._disconnect_listeners:
                self._disconnect_listeners.remove(callback)

    @property
    def subscriber_count(self) -> int:
        with self._subscribers_lock:
            return len(self._subscribers)

    @property
    def is_connected(self) -> bool:
        return self._port is not None

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="SerialSensorLink", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=max(1.0, self.config.read_timeout + 0.5))
        self._close_port()

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    def _open_serial_port(self):
        if not self.config.port:
            raise serial.SerialException("No sensor serial port configured")
        return serial.Serial(
            self.config.port,
            self.config.baud_rate,
            timeout=self.config.read_timeout,
        )

    def connect(self) -> bool:
        """Try to open the port once. Returns True on success."""
        logger = get_navigation_logger().sensor
        self.connection_attempts += 1
        try:
            self._port = self._port_factory()
        except (serial.SerialException, OSError, ValueError) as exc:
            logger.warning(f"Sensor link unavailable ({exc}), retrying in {self.config.reconnect_interval:.0f}s")
            self._port = None
            return False
        self._pending = ""
        logger.info(f"Sensor link connected (attempt {self.connection_attempts})")
        return True

    def read_once(self) -> int:
        """
        Read whatever the port has buffered and dispatch complete messages.

        Returns the number of accepted readings. Raises on transport failure.
        """
        port = self._port
        if port is None:
            raise serial.SerialException("Sensor link is not connected")

        waiting = getattr(port, "in_waiting", 0) or 1
        data = port.read(min(self.config.read_chunk, waiting))
        if not data:
            return 0

        self._pending += data.decode("ascii", errors="ignore")
        messages, self._pending = split_messages(self._pending)
        if len(self._pending) > self.config.read_chunk:
            # Unterminated garbage; keep the buffer bounded
            self._pending = self._pending[-self.config.read_chunk:]
        return sum(1 for message in messages if self.handle_message(message))

    def handle_message(self, message: str) -> bool:
        logger = get_navigation_logger().sensor
        self.messages_received += 1
        parsed = parse_sensor_message(message, swap_sides=self.config.swap_sides)

        if self.telemetry is not None:
            self.telemetry.log_sensor_message(
                raw=message,
                accepted=parsed is not None,
                direction=parsed[0] if parsed else None,
                distance_cm=parsed[1] if parsed else None,
            )

        if parsed is None:
            logger.debug(f"Discarded '{message}'")
            return False

        direction, distance = parsed
        self.messages_accepted += 1
        logger.debug(f"Reading: {direction} {distance}cm")

        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(direction, distance)
        return True

    def _handle_disconnect(self, exc: BaseException) -> None:
        logger = get_navigation_logger().sensor
        self.disconnects += 1
        logger.warning(f"Sensor link lost: {exc}")
        if self.telemetry is not None:
            self.telemetry.log_error("sensor_disconnect", str(exc), disconnects=self.disconnects)
        self._close_port()
        with self._subscribers_lock:
            listeners = list(self._disconnect_listeners)
        for callback in listeners:
            callback()

    def _close_port(self) -> None:
        port, self._port = self._port, None
        self._pending = ""
        if port is None:
            return
        try:
            port.close()
        except (serial.SerialException, OSError) as exc:
            get_navigation_logger().sensor.debug(f"Error closing sensor port: {exc}")

    def _run(self) -> None:
        while self._running:
            if self._port is None and not self.connect():
                self._stop_event.wait(self.config.reconnect_interval)
                continue

            try:
                self.read_once()
            except (serial.SerialException, OSError) as exc:
                self._handle_disconnect(exc)
                self._stop_event.wait(self.config.reconnect_interval)


__all__ = ["SerialSensorLink"]
