"""Tests for the instruction debounce gate."""

from __future__ import annotations

import pytest

from core.navigation.instruction_generator import InstructionDebouncer
from utils.config_sections import NavigationConfig


@pytest.fixture()
def debouncer() -> InstructionDebouncer:
    return InstructionDebouncer(NavigationConfig())


def test_identical_instructions_500ms_apart_forward_once(debouncer):
    forwarded = [debouncer.offer("Path is clear.", t) for t in (10.0, 10.5)]

    assert forwarded == [True, False]


def test_identical_instructions_3000ms_apart_forward_twice(debouncer):
    forwarded = [debouncer.offer("Path is clear.", t) for t in (10.0, 13.0)]

    assert forwarded == [True, True]


def test_changed_text_still_waits_for_interval(debouncer):
    debouncer.offer("Path is clear.", 0.0)

    assert not debouncer.should_forward("Please move slightly to your left.", 1.0)
    assert debouncer.should_forward("Please move slightly to your left.", 2.5)


def test_repeat_interval_can_be_longer(debouncer):
    debouncer = InstructionDebouncer(NavigationConfig(repeat_interval_ms=10000))
    debouncer.offer("Path is clear.", 0.0)

    assert not debouncer.should_forward("Path is clear.", 3.0)
    assert debouncer.should_forward("Something else.", 3.0)
    assert debouncer.should_forward("Path is clear.", 10.0)


def test_dropped_instruction_is_not_recorded(debouncer):
    debouncer.offer("first", 0.0)
    debouncer.offer("second", 1.0)

    assert debouncer.last_text == "first"
    assert debouncer.last_forward_time == 0.0


def test_reset_allows_immediate_forward(debouncer):
    debouncer.offer("Path is clear.", 0.0)
    debouncer.reset()

    assert debouncer.offer("Path is clear.", 0.1)


def test_negative_intervals_are_rejected():
    with pytest.raises(ValueError):
        InstructionDebouncer(NavigationConfig(debounce_interval_ms=-1))
