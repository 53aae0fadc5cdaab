"""
Detected object data structure for decoded detector output.

This module defines the DetectedObject dataclass which stores all information
about one decoded box: normalized geometry, class, confidence, the coarse
direction bucket used for narration and the smoothed distance estimate.

Objects are rebuilt every detection cycle and never mutated; the distance
estimator returns annotated copies via ``with_distance``.

Usage:
    obj = DetectedObject(
        x1=0.2, y1=0.3, x2=0.8, y2=0.9,
        cx=0.5, cy=0.6, w=0.6, h=0.6,
        confidence=0.91,
        class_index=0,
        class_name="person",
        direction="front",
    )
"""

from dataclasses import dataclass, replace

LEFT = "left"
FRONT = "front"
RIGHT = "right"
DIRECTIONS = (LEFT, FRONT, RIGHT)


def direction_for(cx: float, left_boundary: float = 0.33, right_boundary: float = 0.66) -> str:
    """Bucket a normalized horizontal center into left / front / right."""
    if cx < left_boundary:
        return LEFT
    if cx < right_boundary:
        return FRONT
    return RIGHT


@dataclass(frozen=True)
class DetectedObject:
    """
    A decoded detection with normalized geometry and distance annotation.

    Attributes:
        x1, y1, x2, y2: Normalized corner coordinates (0-1)
        cx, cy: Normalized box center
        w, h: Normalized box width / height
        confidence: Maximum class score (0-1)
        class_index: Index into the detector's label list
        class_name: Label for class_index
        direction: "left", "front" or "right"
        distance_cm: Smoothed distance estimate, 0.0 until annotated
    """
    x1: float
    y1: float
    x2: float
    y2: float
    cx: float
    cy: float
    w: float
    h: float
    confidence: float
    class_index: int
    class_name: str
    direction: str
    distance_cm: float = 0.0

    @property
    def area(self) -> float:
        return self.w * self.h

    def with_distance(self, distance_cm: float) -> "DetectedObject":
        return replace(self, distance_cm=float(distance_cm))
