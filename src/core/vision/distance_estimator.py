"""
Monocular distance estimation with per-class temporal smoothing.

The raw estimate follows the pinhole model:

    distance_cm = real_width_cm * focal_px / (w_normalized * tensor_width) * calibration

Each raw value is pushed onto the history of its class name (bounded FIFO)
and the reported distance is the mean of the retained samples. Two boxes of
the same class in one frame share a single history.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional

from utils.config_sections import DistanceConfig, load_distance_config
from .detected_object import DetectedObject

log = logging.getLogger(__name__)


class DistanceEstimator:
    """Convert normalized box widths to smoothed centimetre distances."""

    def __init__(
        self,
        focal_length_px: Optional[float] = None,
        tensor_width: int = 640,
        config: Optional[DistanceConfig] = None,
    ) -> None:
        self.config = config or load_distance_config()
        if self.config.smoothing_window < 1:
            raise ValueError("smoothing_window must be >= 1")
        if tensor_width <= 0:
            raise ValueError("tensor_width must be positive")

        self.focal_length_px = float(
            focal_length_px if focal_length_px is not None else self.config.default_focal_length_px
        )
        self.tensor_width = int(tensor_width)
        self._history: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

        log.info(
            "DistanceEstimator ready | focal=%.1fpx | tensor_width=%d | window=%d",
            self.focal_length_px,
            self.tensor_width,
            self.config.smoothing_window,
        )

    def real_width_cm(self, class_name: str) -> float:
        return self.config.real_widths_cm.get(
            class_name.lower(), self.config.default_object_width_cm
        )

    def estimate_raw(self, class_name: str, width_normalized: float) -> float:
        box_width_px = width_normalized * self.tensor_width
        if box_width_px <= 0:
            return 0.0
        return (
            self.real_width_cm(class_name) * self.focal_length_px / box_width_px
        ) * self.config.calibration_factor

    def smooth(self, class_name: str, raw_distance: float) -> float:
        """Push a raw sample onto the class history and return the running mean."""
        with self._lock:
            history = self._history.get(class_name)
            if history is None:
                history = deque(maxlen=self.config.smoothing_window)
                self._history[class_name] = history
            history.append(float(raw_distance))
            return sum(history) / len(history)

    def annotate(self, objects: Iterable[DetectedObject]) -> List[DetectedObject]:
        annotated = []
        for obj in objects:
            raw = self.estimate_raw(obj.class_name, obj.w)
            annotated.append(obj.with_distance(self.smooth(obj.class_name, raw)))
        return annotated

    def history(self, class_name: str) -> List[float]:
        with self._lock:
            return list(self._history.get(class_name, ()))


__all__ = ["DistanceEstimator"]
