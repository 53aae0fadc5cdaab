"""
Fusion of camera detections and the proximity sensor into spoken instructions.

Each navigation tick calls ``InstructionGenerator.generate`` with the latest
sensor reading and the current annotated detections. The result is a single
instruction:

- Sensor-priority branch: a close sensor reading (<= sensor_priority_distance)
  is announced first, optionally followed by nearby camera objects and a
  movement suggestion. Tagged urgent.
- Camera-only branch: up to ``max_narrated_objects`` nearby objects are
  narrated, followed by a suggestion chosen from the set of occupied
  directions. Not urgent.
- Otherwise "Path is clear."

``InstructionDebouncer`` decides whether a generated instruction is forwarded
to the dispatch queue.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from utils.config_sections import NavigationConfig, load_navigation_config
from core.sensors.sensor_reading import SensorReading
from core.vision.detected_object import FRONT, LEFT, RIGHT, DetectedObject

PATH_CLEAR = "Path is clear."

DIRECTION_PHRASES = {
    FRONT: "in front",
    LEFT: "at your left",
    RIGHT: "at your right",
}

CAMERA_SUGGESTIONS: Dict[FrozenSet[str], str] = {
    frozenset({LEFT, FRONT}): "Please move towards your right.",
    frozenset({RIGHT, FRONT}): "Please move towards your left.",
    frozenset({LEFT, RIGHT}): "Objects on both sides. Move forward carefully.",
    frozenset({LEFT, FRONT, RIGHT}): "Obstacles all around. Please stop and turn around.",
    frozenset({FRONT}): "Please move slightly to your left or right to avoid the object in front.",
    frozenset({LEFT}): "Please move slightly to your right.",
    frozenset({RIGHT}): "Please move slightly to your left.",
}

MOVE_RIGHT = "Please move slightly to your right."
MOVE_LEFT = "Please move slightly to your left."
MOVE_FORWARD = "Please move forward carefully."
MOVE_ADJUST = "Please adjust your direction to avoid the obstacle."


@dataclass(frozen=True)
class Instruction:
    text: str
    urgent: bool = False


def round_cm(distance: float) -> int:
    """Round half up to whole centimetres."""
    return int(math.floor(distance + 0.5))


def display_name(obj: DetectedObject) -> str:
    return obj.class_name if obj.class_name.strip() else "object"


class InstructionGenerator:
    """Pure function of (sensor reading, detections) -> Instruction."""

    def __init__(self, config: Optional[NavigationConfig] = None) -> None:
        self.config = config or load_navigation_config()

    def nearby_objects(self, objects: Iterable[DetectedObject]) -> List[DetectedObject]:
        limit = self.config.camera_consider_distance
        nearby = [obj for obj in objects if 0 < obj.distance_cm <= limit]
        return sorted(nearby, key=lambda obj: obj.distance_cm)

    def generate(
        self,
        reading: Optional[SensorReading],
        objects: Sequence[DetectedObject],
    ) -> Instruction:
        nearby = self.nearby_objects(objects)

        if reading is not None and reading.distance_cm <= self.config.sensor_priority_distance:
            return Instruction(self._sensor_message(reading, nearby), urgent=True)

        if nearby:
            return Instruction(self._camera_message(nearby), urgent=False)

        return Instruction(PATH_CLEAR, urgent=False)

    # ------------------------------------------------------------------
    # branches
    # ------------------------------------------------------------------

    def _sensor_message(self, reading: SensorReading, nearby: List[DetectedObject]) -> str:
        parts = [f"Obstacle detected {reading.distance_cm} centimeters on your {reading.direction}."]

        narrated = nearby[: self.config.max_narrated_objects]
        if narrated:
            summary = " and ".join(
                f"a {display_name(obj)} at {round_cm(obj.distance_cm)} cm at your {obj.direction}"
                for obj in narrated
            )
            parts.append(f"Also, {summary}.")

        parts.append(self._sensor_move(reading.direction, self._direction_counts(nearby)))
        return " ".join(parts)

    @staticmethod
    def _sensor_move(sensor_direction: str, counts: Dict[str, int]) -> str:
        left, front, right = counts[LEFT], counts[FRONT], counts[RIGHT]
        if sensor_direction == LEFT:
            return MOVE_RIGHT if right <= left and right <= front else MOVE_FORWARD
        if sensor_direction == RIGHT:
            return MOVE_LEFT if left <= right and left <= front else MOVE_FORWARD
        if sensor_direction == FRONT:
            return MOVE_LEFT if left <= right else MOVE_RIGHT
        return MOVE_ADJUST

    def _camera_message(self, nearby: List[DetectedObject]) -> str:
        narrated = nearby[: self.config.max_narrated_objects]
        description = " and ".join(
            f"a {display_name(obj)} is present at {round_cm(obj.distance_cm)} cm "
            f"{DIRECTION_PHRASES.get(obj.direction, 'nearby')}"
            for obj in narrated
        )
        occupied = frozenset(obj.direction for obj in nearby)
        suggestion = CAMERA_SUGGESTIONS.get(occupied, PATH_CLEAR)
        return f"{description}. {suggestion}"

    @staticmethod
    def _direction_counts(objects: Iterable[DetectedObject]) -> Dict[str, int]:
        counts = {LEFT: 0, FRONT: 0, RIGHT: 0}
        for obj in objects:
            if obj.direction in counts:
                counts[obj.direction] += 1
        return counts


class InstructionDebouncer:
    """
    Gate between generation and dispatch.

    An instruction is forwarded when at least ``debounce_interval_ms`` have
    passed since the previous forward, and either its text changed or
    ``repeat_interval_ms`` have passed as well.
    """

    def __init__(self, config: Optional[NavigationConfig] = None) -> None:
        self.config = config or load_navigation_config()
        if self.config.debounce_interval_ms < 0 or self.config.repeat_interval_ms < 0:
            raise ValueError("Debounce intervals must be >= 0")
        self.last_text: Optional[str] = None
        self.last_forward_time: Optional[float] = None

    def should_forward(self, text: str, now: float) -> bool:
        """``now`` is in seconds on a monotonic clock."""
        if self.last_forward_time is None:
            return True
        elapsed_ms = (now - self.last_forward_time) * 1000.0
        if elapsed_ms < self.config.debounce_interval_ms:
            return False
        return text != self.last_text or elapsed_ms >= self.config.repeat_interval_ms

    def record(self, text: str, now: float) -> None:
        self.last_text = text
        self.last_forward_time = now

    def offer(self, text: str, now: float) -> bool:
        """Check and, when forwarded, record in one step."""
        if not self.should_forward(text, now):
            return False
        self.record(text, now)
        return True

    def reset(self) -> None:
        self.last_text = None
        self.last_forward_time = None


__all__ = [
    "Instruction",
    "InstructionGenerator",
    "InstructionDebouncer",
    "PATH_CLEAR",
    "round_cm",
]
