"""Parse ASCII obstacle messages from the ultrasonic sensor board."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from core.vision.detected_object import FRONT, LEFT, RIGHT

log = logging.getLogger(__name__)

OBSTACLE_MARKER = "OBSTACLE"
_INTEGER = re.compile(r"[+-]?[0-9]+")

# The board is mounted facing the user, so its left is the user's right
_SWAPPED = {LEFT: RIGHT, RIGHT: LEFT, FRONT: FRONT}


def parse_sensor_message(text: str, swap_sides: bool = True) -> Optional[Tuple[str, int]]:
    """
    Extract (direction, distance_cm) from one message such as ``OBSTACLE_Left_37cm``.

    Returns None for messages without the obstacle marker or without a
    positive integer after the last underscore.
    """
    if OBSTACLE_MARKER not in text:
        return None

    if "Left" in text:
        direction = LEFT
    elif "Right" in text:
        direction = RIGHT
    else:
        direction = FRONT
    if swap_sides:
        direction = _SWAPPED[direction]

    suffix = text.rsplit("_", 1)[-1].replace("cm", "").strip()
    if not _INTEGER.fullmatch(suffix):
        log.debug("Discarded sensor message %r: no numeric distance", text)
        return None
    distance = int(suffix)
    if distance <= 0:
        log.debug("Discarded sensor message %r: non-positive distance", text)
        return None
    return direction, distance


def split_messages(pending: str) -> Tuple[List[str], str]:
    """
    Split buffered transport text into complete messages.

    Newline-terminated lines are complete. A trailing fragment already ending
    in the ``cm`` unit is also treated as complete, since the board does not
    always terminate its writes. Returns (messages, remainder).
    """
    *lines, remainder = pending.replace("\r", "\n").split("\n")
    messages = [line.strip() for line in lines if line.strip()]
    if remainder.strip().endswith("cm"):
        messages.append(remainder.strip())
        remainder = ""
    return messages, remainder


__all__ = ["parse_sensor_message", "split_messages", "OBSTACLE_MARKER"]
