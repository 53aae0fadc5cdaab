"""Tests for the Ctrl+C shutdown handler."""

from __future__ import annotations

import signal

import pytest

from core.ctrl_handler import CtrlCHandler


@pytest.fixture()
def handler():
    original = signal.getsignal(signal.SIGINT)
    ctrl = CtrlCHandler()
    yield ctrl
    ctrl.restore()
    signal.signal(signal.SIGINT, original)


def test_first_interrupt_requests_stop(handler):
    handler._signal_handler(signal.SIGINT, None)

    assert handler.should_stop
    assert handler.interrupts == 1


def test_second_interrupt_aborts(handler):
    handler._signal_handler(signal.SIGINT, None)

    with pytest.raises(KeyboardInterrupt):
        handler._signal_handler(signal.SIGINT, None)


def test_restore_reinstalls_previous_handler():
    original = signal.getsignal(signal.SIGINT)
    ctrl = CtrlCHandler()
    assert signal.getsignal(signal.SIGINT) == ctrl._signal_handler

    ctrl.restore()

    assert signal.getsignal(signal.SIGINT) == original
