"""Tests for sensor/camera fusion into spoken instructions."""

from __future__ import annotations

import pytest

from core.navigation.instruction_generator import (
    PATH_CLEAR,
    InstructionGenerator,
    round_cm,
)
from core.sensors.sensor_reading import SensorReading
from core.vision.detected_object import DetectedObject
from utils.config_sections import NavigationConfig

CENTERS = {"left": 0.2, "front": 0.5, "right": 0.8}


def make_object(name: str, direction: str, distance: float) -> DetectedObject:
    cx = CENTERS[direction]
    return DetectedObject(
        x1=cx - 0.05, y1=0.4, x2=cx + 0.05, y2=0.6, cx=cx, cy=0.5, w=0.1, h=0.2,
        confidence=0.8, class_index=0, class_name=name, direction=direction,
        distance_cm=distance,
    )


@pytest.fixture()
def generator() -> InstructionGenerator:
    return InstructionGenerator(NavigationConfig())


def test_close_sensor_reading_without_camera_is_urgent(generator):
    instruction = generator.generate(SensorReading("front", 100), [])

    assert instruction.urgent
    assert "100 centimeters" in instruction.text
    assert instruction.text == (
        "Obstacle detected 100 centimeters on your front. Please move slightly to your left."
    )


def test_far_sensor_reading_is_ignored(generator):
    instruction = generator.generate(SensorReading("left", 151), [])

    assert instruction.text == PATH_CLEAR
    assert not instruction.urgent


def test_sensor_branch_narrates_nearby_objects(generator):
    objects = [
        make_object("chair", "left", 120.4),
        make_object("person", "front", 80.5),
        make_object("car", "right", 450.0),
    ]

    instruction = generator.generate(SensorReading("left", 60), objects)

    assert instruction.text == (
        "Obstacle detected 60 centimeters on your left. "
        "Also, a person at 81 cm at your front and a chair at 120 cm at your left. "
        "Please move slightly to your right."
    )


@pytest.mark.parametrize(
    "sensor_direction, directions, expected",
    [
        ("left", [], "Please move slightly to your right."),
        ("left", ["right"], "Please move forward carefully."),
        ("left", ["left", "front", "right"], "Please move slightly to your right."),
        ("right", [], "Please move slightly to your left."),
        ("right", ["left"], "Please move forward carefully."),
        ("front", ["right"], "Please move slightly to your left."),
        ("front", ["left"], "Please move slightly to your right."),
        ("front", ["left", "right"], "Please move slightly to your left."),
    ],
)
def test_sensor_branch_suggestion_table(generator, sensor_direction, directions, expected):
    objects = [make_object("box", d, 200.0) for d in directions]

    text = generator.generate(SensorReading(sensor_direction, 90), objects).text

    assert text.endswith(expected)


def test_front_object_suggests_sidestep(generator):
    instruction = generator.generate(None, [make_object("chair", "front", 200.0)])

    assert not instruction.urgent
    assert instruction.text == (
        "a chair is present at 200 cm in front. "
        "Please move slightly to your left or right to avoid the object in front."
    )


@pytest.mark.parametrize(
    "directions, expected",
    [
        (["left", "front"], "Please move towards your right."),
        (["right", "front"], "Please move towards your left."),
        (["left", "right"], "Objects on both sides. Move forward carefully."),
        (["left", "front", "right"], "Obstacles all around. Please stop and turn around."),
        (["left"], "Please move slightly to your right."),
        (["right"], "Please move slightly to your left."),
    ],
)
def test_camera_suggestion_table(generator, directions, expected):
    objects = [make_object("bench", d, 150.0) for d in directions]

    assert generator.generate(None, objects).text.endswith(expected)


def test_camera_narration_is_capped_and_sorted(generator):
    objects = [
        make_object("a", "left", 290.0),
        make_object("b", "left", 100.0),
        make_object("c", "left", 200.0),
        make_object("d", "left", 50.0),
    ]

    text = generator.generate(None, objects).text

    assert text.startswith("a d is present at 50 cm at your left and a b is present")
    assert "290" not in text


def test_objects_beyond_range_or_unmeasured_are_ignored(generator):
    objects = [make_object("car", "front", 301.0), make_object("dog", "left", 0.0)]

    assert generator.generate(None, objects).text == PATH_CLEAR


def test_blank_class_name_is_spoken_as_object(generator):
    text = generator.generate(None, [make_object("  ", "right", 100.0)]).text

    assert text.startswith("a object is present at 100 cm at your right")


def test_round_cm_rounds_half_up():
    assert round_cm(80.5) == 81
    assert round_cm(80.49) == 80
