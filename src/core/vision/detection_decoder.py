"""Decode raw detector output tensors into classified candidate boxes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from utils.config_sections import DetectionConfig, load_detection_config
from .detected_object import DetectedObject, direction_for

log = logging.getLogger(__name__)


class DetectorConfigurationError(RuntimeError):
    """Raised when the label list does not match the detector output."""


def load_labels(path: Union[str, Path]) -> List[str]:
    """Read a line-delimited label file; reading stops at the first empty line."""
    labels: List[str] = []
    with open(path, "r", encoding="utf-8") as handle:
        for line in handle:
            label = line.strip()
            if not label:
                break
            labels.append(label)
    if not labels:
        raise DetectorConfigurationError(f"Label file '{path}' is empty")
    log.info("Loaded %d labels from %s", len(labels), path)
    return labels


def resolve_input_size(input_shape: Sequence[int]) -> Tuple[int, int]:
    """Return (width, height) of a model input shaped NHWC or NCHW."""
    if len(input_shape) != 4:
        raise ValueError(f"Unsupported input shape {tuple(input_shape)}")
    if input_shape[1] == 3:
        return int(input_shape[3]), int(input_shape[2])
    return int(input_shape[2]), int(input_shape[1])


class DetectionDecoder:
    """
    Convert one channel-major output tensor into candidate boxes.

    The tensor is logically ``[channels][elements]``: channels 0-3 hold the
    normalized cx, cy, w, h of every element and the remaining channels hold
    one confidence score per class. Value ``(channel, element)`` lives at
    ``element + num_elements * channel`` in the flat buffer.
    """

    def __init__(
        self,
        labels: Sequence[str],
        config: Optional[DetectionConfig] = None,
    ) -> None:
        if not labels:
            raise DetectorConfigurationError("Detector requires a non-empty label list")
        self.labels = list(labels)
        self.config = config or load_detection_config()

    def decode(
        self,
        output: Union[np.ndarray, Sequence[float]],
        num_channels: Optional[int] = None,
        num_elements: Optional[int] = None,
    ) -> Optional[List[DetectedObject]]:
        """
        Decode a raw buffer.

        Args:
            output: Flat buffer, or an array shaped [C, N] / [1, C, N]
            num_channels: Channel count (inferred from a 2D/3D array if omitted)
            num_elements: Element count (inferred from a 2D/3D array if omitted)

        Returns:
            Unordered candidate list, or None when nothing passes the threshold
        """
        table = self._as_table(output, num_channels, num_elements)
        box_channels = self.config.box_channels
        if table.shape[0] <= box_channels or table.shape[1] == 0:
            return None

        scores = table[box_channels:]
        best_offsets = np.argmax(scores, axis=0)
        best_scores = scores[best_offsets, np.arange(scores.shape[1])]
        keep = np.flatnonzero(best_scores > self.config.confidence_threshold)
        if keep.size == 0:
            return None

        candidates: List[DetectedObject] = []
        for element in keep:
            class_index = int(best_offsets[element])
            if class_index >= len(self.labels):
                raise DetectorConfigurationError(
                    f"Class index {class_index} out of range for {len(self.labels)} labels"
                )

            cx, cy, w, h = (float(v) for v in table[:4, element])
            box = self._build_box(cx, cy, w, h, float(best_scores[element]), class_index)
            if box is None:
                log.debug("Rejected element %d: invalid geometry cx=%.3f cy=%.3f w=%.3f h=%.3f",
                          element, cx, cy, w, h)
                continue
            candidates.append(box)

        return candidates or None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _as_table(
        output: Union[np.ndarray, Sequence[float]],
        num_channels: Optional[int],
        num_elements: Optional[int],
    ) -> np.ndarray:
        array = np.asarray(output, dtype=np.float32)
        if num_channels is None or num_elements is None:
            if array.ndim == 3 and array.shape[0] == 1:
                array = array[0]
            if array.ndim != 2:
                raise ValueError("num_channels and num_elements are required for flat buffers")
            return array
        expected = int(num_channels) * int(num_elements)
        if array.size != expected:
            raise ValueError(
                f"Buffer holds {array.size} values, expected {num_channels}x{num_elements}={expected}"
            )
        return array.reshape(int(num_channels), int(num_elements))

    def _build_box(
        self,
        cx: float,
        cy: float,
        w: float,
        h: float,
        confidence: float,
        class_index: int,
    ) -> Optional[DetectedObject]:
        if not np.all(np.isfinite([cx, cy, w, h])) or w <= 0.0 or h <= 0.0:
            return None

        x1 = cx - w / 2.0
        y1 = cy - h / 2.0
        x2 = cx + w / 2.0
        y2 = cy + h / 2.0
        if x1 < 0.0 or x2 > 1.0 or y1 < 0.0 or y2 > 1.0:
            return None

        return DetectedObject(
            x1=x1, y1=y1, x2=x2, y2=y2,
            cx=cx, cy=cy, w=w, h=h,
            confidence=confidence,
            class_index=class_index,
            class_name=self.labels[class_index],
            direction=direction_for(cx, self.config.left_boundary, self.config.right_boundary),
        )


__all__ = [
    "DetectionDecoder",
    "DetectorConfigurationError",
    "load_labels",
    "resolve_input_size",
]
