"""Tests for standalone proximity alerts."""

from __future__ import annotations

import pytest

from core.sensors.proximity_alert_monitor import ProximityAlertMonitor, ProximityState
from utils.config_sections import SensorAlertConfig


class RecordingDispatch:
    def __init__(self) -> None:
        self.entries = []

    def enqueue(self, message, urgent=False, haptic_ms=None):
        self.entries.append((message, urgent, haptic_ms))


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def dispatch() -> RecordingDispatch:
    return RecordingDispatch()


@pytest.fixture()
def monitor(dispatch, clock) -> ProximityAlertMonitor:
    return ProximityAlertMonitor(dispatch, SensorAlertConfig(enabled=True), clock=clock)


@pytest.mark.parametrize(
    "distance, state",
    [
        (151, ProximityState.CLEAR_PATH),
        (150, ProximityState.CAUTION),
        (101, ProximityState.CAUTION),
        (100, ProximityState.WARNING),
        (51, ProximityState.WARNING),
        (50, ProximityState.DANGER),
        (5, ProximityState.DANGER),
    ],
)
def test_classification_boundaries(monitor, distance, state):
    assert monitor.classify(distance) is state


def test_messages_and_haptics_per_state(monitor, dispatch):
    monitor.on_reading("left", 200)
    monitor.on_reading("left", 120)
    monitor.on_reading("left", 70)
    monitor.on_reading("left", 20)

    assert dispatch.entries == [
        ("No obstacle nearby.", False, 0),
        ("Obstacle on your left around 120 centimeters.", False, 200),
        ("Warning! Object 70 centimeters on your left.", True, 400),
        ("Danger! Very close obstacle on your left!", True, 800),
    ]


def test_same_state_is_not_repeated_within_window(monitor, dispatch, clock):
    monitor.on_reading("front", 120)
    clock.now += 2.0
    assert monitor.on_reading("front", 110) is None

    clock.now += 3.5
    assert monitor.on_reading("front", 110) is not None
    assert len(dispatch.entries) == 2


def test_haptic_durations_can_be_overridden(dispatch, clock):
    config = SensorAlertConfig(haptic_ms={"danger": 1000})
    monitor = ProximityAlertMonitor(dispatch, config, clock=clock)

    monitor.on_reading("right", 10)

    assert dispatch.entries[0][2] == 1000


def test_thresholds_must_be_ordered(dispatch):
    with pytest.raises(ValueError):
        ProximityAlertMonitor(dispatch, SensorAlertConfig(warning_distance=120, caution_distance=100))
