"""Greedy non-maximum suppression over decoded candidate boxes."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from utils.config_sections import DetectionConfig, load_detection_config
from .detected_object import DetectedObject

log = logging.getLogger(__name__)


def compute_iou(box1: DetectedObject, box2: DetectedObject) -> float:
    """
    Intersection-over-Union of two axis-aligned corner rectangles.

    Returns 0.0 when the union has no area.
    """
    x1 = max(box1.x1, box2.x1)
    y1 = max(box1.y1, box2.y1)
    x2 = min(box1.x2, box2.x2)
    y2 = min(box1.y2, box2.y2)
    intersection = max(0.0, x2 - x1) * max(0.0, y2 - y1)

    area1 = (box1.x2 - box1.x1) * (box1.y2 - box1.y1)
    area2 = (box2.x2 - box2.x1) * (box2.y2 - box2.y1)
    union = area1 + area2 - intersection
    if union <= 0.0:
        return 0.0
    return min(1.0, max(0.0, intersection / union))


class BoxSuppressor:
    """Keep the highest-confidence box among overlapping duplicates."""

    def __init__(self, config: Optional[DetectionConfig] = None) -> None:
        self.config = config or load_detection_config()

    def suppress(self, candidates: Sequence[DetectedObject]) -> List[DetectedObject]:
        # sorted() is stable, so equal confidences keep their input order
        remaining = sorted(candidates, key=lambda box: box.confidence, reverse=True)
        survivors: List[DetectedObject] = []
        threshold = self.config.iou_threshold

        while remaining:
            best = remaining.pop(0)
            survivors.append(best)
            remaining = [box for box in remaining if compute_iou(best, box) < threshold]

        if len(survivors) < len(candidates):
            log.debug("NMS kept %d of %d candidates", len(survivors), len(candidates))
        return survivors


__all__ = ["BoxSuppressor", "compute_iou"]
