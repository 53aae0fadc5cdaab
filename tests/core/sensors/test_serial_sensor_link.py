"""Tests for SerialSensorLink using an in-memory port."""

from __future__ import annotations

import time

import pytest
import serial

from core.sensors.serial_sensor_link import SerialSensorLink
from utils.config_sections import SensorConfig


class FakePort:
    def __init__(self, chunks=()):
        self.chunks = [c.encode("ascii") if isinstance(c, str) else c for c in chunks]
        self.closed = False
        self.fail = False

    @property
    def in_waiting(self) -> int:
        return len(self.chunks[0]) if self.chunks else 0

    def read(self, size: int) -> bytes:
        if self.fail:
            raise serial.SerialException("device reports readiness to read but returned no data")
        if not self.chunks:
            time.sleep(0.01)
            return b""
        chunk = self.chunks[0]
        data, rest = chunk[:size], chunk[size:]
        if rest:
            self.chunks[0] = rest
        else:
            self.chunks.pop(0)
        return data

    def close(self) -> None:
        self.closed = True


class RecordingTelemetry:
    def __init__(self) -> None:
        self.messages = []
        self.errors = []

    def log_sensor_message(self, raw, accepted, direction=None, distance_cm=None):
        self.messages.append((raw, accepted, direction, distance_cm))

    def log_error(self, error_type, message, **kwargs):
        self.errors.append((error_type, kwargs))


def make_link(port=None, telemetry=None, **overrides) -> SerialSensorLink:
    params = dict(port="/dev/fake", reconnect_interval=0.05, read_timeout=0.05)
    params.update(overrides)

    def factory():
        if port is None:
            raise serial.SerialException("could not open port")
        return port

    return SerialSensorLink(SensorConfig(**params), port_factory=factory, telemetry=telemetry)


def test_read_once_publishes_parsed_readings():
    port = FakePort(["OBSTACLE_Left_37cm\nOBSTACLE_Front_8", "0cm\n"])
    link = make_link(port)
    received = []
    link.subscribe(lambda direction, distance: received.append((direction, distance)))

    assert link.connect()
    assert link.read_once() == 1
    assert link.read_once() == 1

    assert received == [("right", 37), ("front", 80)]
    assert link.messages_accepted == 2


def test_invalid_messages_are_logged_and_dropped():
    telemetry = RecordingTelemetry()
    link = make_link(FakePort(["NOISE\nOBSTACLE_Left_0cm\n"]), telemetry)
    received = []
    link.subscribe(lambda d, cm: received.append((d, cm)))
    link.connect()

    assert link.read_once() == 0

    assert received == []
    assert telemetry.messages == [
        ("NOISE", False, None, None),
        ("OBSTACLE_Left_0cm", False, None, None),
    ]
    assert link.messages_received == 2


def test_unsubscribe_stops_delivery():
    link = make_link(FakePort(["OBSTACLE_Left_37cm\n"]))
    received = []
    callback = link.subscribe(lambda d, cm: received.append(cm))
    link.unsubscribe(callback)
    link.connect()

    link.read_once()

    assert received == []
    assert link.subscriber_count == 0


def test_connect_failure_is_reported():
    link = make_link(None)

    assert link.connect() is False
    assert not link.is_connected
    assert link.connection_attempts == 1


def test_read_without_connection_raises():
    with pytest.raises(serial.SerialException):
        make_link(FakePort()).read_once()


def test_transport_failure_closes_port_and_notifies_listeners():
    port = FakePort(["OBSTACLE_Left_37cm\n"])
    telemetry = RecordingTelemetry()
    link = make_link(port, telemetry)
    lost = []
    link.add_disconnect_listener(lambda: lost.append(True))
    link.connect()
    port.fail = True

    link.start()
    try:
        deadline = time.time() + 2.0
        while not lost and time.time() < deadline:
            time.sleep(0.01)
    finally:
        link.stop()

    assert lost
    assert port.closed
    assert link.disconnects >= 1
    assert telemetry.errors[0] == ("sensor_disconnect", {"disconnects": 1})


def test_background_reader_delivers_and_stops():
    link = make_link(FakePort(["OBSTACLE_Right_55cm\n"]))
    received = []
    link.subscribe(lambda d, cm: received.append((d, cm)))

    link.start()
    try:
        deadline = time.time() + 2.0
        while not received and time.time() < deadline:
            time.sleep(0.01)
    finally:
        link.stop()

    assert received == [("left", 55)]
    assert not link.is_connected
