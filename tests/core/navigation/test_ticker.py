"""Tests for the fixed-period navigation ticker."""

from __future__ import annotations

import threading

import pytest

from core.navigation.ticker import IntervalTicker


def test_ticker_calls_tick_repeatedly():
    calls = []
    done = threading.Event()

    def tick():
        calls.append(1)
        if len(calls) >= 3:
            done.set()

    ticker = IntervalTicker(tick, 0.01)
    ticker.start()
    try:
        assert done.wait(2.0)
    finally:
        ticker.stop()

    assert not ticker.is_running
    assert ticker.ticks >= 3


def test_failing_tick_does_not_stop_ticker():
    done = threading.Event()
    calls = []

    def tick():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        done.set()

    ticker = IntervalTicker(tick, 0.01)
    ticker.start()
    try:
        assert done.wait(2.0)
    finally:
        ticker.stop()


def test_stop_from_inside_tick_does_not_deadlock():
    holder = {}
    stopped = threading.Event()

    def tick():
        holder["ticker"].stop()
        stopped.set()

    holder["ticker"] = IntervalTicker(tick, 0.01)
    holder["ticker"].start()

    assert stopped.wait(2.0)
    assert not holder["ticker"].is_running


def test_period_must_be_positive():
    with pytest.raises(ValueError):
        IntervalTicker(lambda: None, 0)
