"""Tests for the Builder convenience helpers."""

from __future__ import annotations

import types

import pytest

from core.navigation import builder as builder_module
from utils.config import Config


class StubAudioSystem:
    def __init__(self):
        self.closed = False

    def speak(self, message):
        from concurrent.futures import Future

        future = Future()
        future.set_result(None)
        return future

    def pulse(self, duration_ms):
        pass

    def close(self):
        self.closed = True


class StubSensorLink:
    def __init__(self, telemetry=None):
        self.telemetry = telemetry
        self.subscribers = []
        self.listeners = []
        self.started = False
        self.stopped = False

    def subscribe(self, callback):
        self.subscribers.append(callback)
        return callback

    def unsubscribe(self, callback):
        self.subscribers.remove(callback)

    def add_disconnect_listener(self, callback):
        self.listeners.append(callback)

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True


class StubProcessor:
    detector_id = 0

    def process_frame(self, frame):
        return []


class StubTelemetry:
    def __init__(self):
        self.finalized = False

    def log_audio_event(self, **kwargs):
        pass

    def log_error(self, error_type, message, **kwargs):
        pass

    def finalize_session(self):
        self.finalized = True


@pytest.fixture()
def builder(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(builder_module, "SerialSensorLink", StubSensorLink)
    monkeypatch.setattr(Config, "SENSOR_SERIAL_PORT", None)
    monkeypatch.setattr(Config, "SENSOR_ALERTS_ENABLED", False)
    monkeypatch.setattr(Config, "DISPATCH_SETTLE_DELAY_MS", 10, raising=False)
    return builder_module.Builder()


def test_build_full_system_without_sensor(builder):
    system = builder.build_full_system(
        processors=[StubProcessor()],
        audio_system=StubAudioSystem(),
    )

    assert system.sensor_link is None
    assert system.alert_monitor is None
    assert system.detection_worker.on_objects == system.session.update_camera_objects
    assert system.voice_commands.session is system.session


def test_sensor_link_is_attached_when_port_configured(builder, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(Config, "SENSOR_SERIAL_PORT", "/dev/rfcomm0")

    system = builder.build_full_system(audio_system=StubAudioSystem(), enable_camera=False)

    assert isinstance(system.sensor_link, StubSensorLink)
    assert system.sensor_link.listeners == [system.session.on_sensor_lost]
    assert system.detection_worker is None


def test_alerts_subscribe_to_sensor(builder):
    link = StubSensorLink()

    system = builder.build_full_system(
        audio_system=StubAudioSystem(),
        sensor_link=link,
        enable_camera=False,
        enable_alerts=True,
    )

    assert system.alert_monitor is not None
    assert link.subscribers == [system.alert_monitor.on_reading]


def test_extra_detector_gets_second_id(builder, monkeypatch: pytest.MonkeyPatch):
    calls = []

    def fake_from_model(model_path, **kwargs):
        calls.append((model_path, kwargs["detector_id"]))
        return types.SimpleNamespace(detector_id=kwargs["detector_id"])

    monkeypatch.setattr(builder_module.YoloProcessor, "from_model", staticmethod(fake_from_model))

    processors = builder.build_processors(model_path="coco.pt", extra_model_path="custom.pt")

    assert calls == [("coco.pt", 0), ("custom.pt", 1)]
    assert [p.detector_id for p in processors] == [0, 1]


def test_start_and_shutdown_manage_every_component(builder):
    link = StubSensorLink()
    audio = StubAudioSystem()
    telemetry = StubTelemetry()
    system = builder.build_full_system(
        telemetry=telemetry,
        processors=[StubProcessor()],
        audio_system=audio,
        sensor_link=link,
    )

    system.start()
    assert link.started
    assert system.session.is_running
    assert link.subscribers == [system.session.update_sensor_data]

    assert system.shutdown(timeout=2.0) is True

    assert link.stopped
    assert audio.closed
    assert telemetry.finalized
    assert not system.session.is_running
