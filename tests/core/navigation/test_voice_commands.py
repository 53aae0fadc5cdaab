"""Tests for spoken command handling."""

from __future__ import annotations

import types

import pytest

from core.navigation.voice_commands import TUTORIAL_TEXT, VoiceCommandHandler


class FakeSession:
    def __init__(self, dispatch) -> None:
        self.dispatch = dispatch
        self.is_running = False
        self.dispatch_config = types.SimpleNamespace(stop_announcement="Navigation stopped.")

    def start(self):
        self.is_running = True
        return True

    def stop(self):
        self.is_running = False
        self.dispatch.enqueue(self.dispatch_config.stop_announcement)
        return True


class RecordingDispatch:
    def __init__(self) -> None:
        self.messages = []

    def enqueue(self, message, urgent=False, haptic_ms=None):
        self.messages.append(message)


@pytest.fixture()
def dispatch() -> RecordingDispatch:
    return RecordingDispatch()


@pytest.fixture()
def handler(dispatch) -> VoiceCommandHandler:
    return VoiceCommandHandler(FakeSession(dispatch))


def test_start_command_starts_session(handler, dispatch):
    assert handler.handle("Start Navigation") == "Starting navigation"

    assert handler.session.is_running
    assert dispatch.messages == ["Starting navigation"]


def test_start_when_running_is_reported(handler, dispatch):
    handler.handle("start navigation")

    assert handler.handle("please start navigation now") == "Navigation is already running."


def test_stop_command_announces_once(handler, dispatch):
    handler.handle("start navigation")

    assert handler.handle("stop navigation") == "Navigation stopped."
    assert dispatch.messages.count("Navigation stopped.") == 1
    assert not handler.session.is_running


def test_stop_when_idle_is_reported(handler):
    assert handler.handle("stop navigation") == "Navigation is not running."


def test_tutorial_and_unknown_commands(handler, dispatch):
    assert handler.handle("App tutorial") == TUTORIAL_TEXT
    assert handler.handle("make me a sandwich") == "Sorry, I didn't understand that command."
    assert handler.commands_handled == 2
