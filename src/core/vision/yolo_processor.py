"""Per-frame detection pipeline: inference, decoding, suppression and distance."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import numpy as np

from utils.config import Config
from utils.config_sections import DetectionConfig, DistanceConfig
from .box_suppressor import BoxSuppressor
from .camera_geometry import load_focal_length
from .detected_object import DetectedObject
from .detection_decoder import (
    DetectionDecoder,
    DetectorConfigurationError,
    load_labels,
    resolve_input_size,
)
from .distance_estimator import DistanceEstimator

log = logging.getLogger("YoloProcessor")

RunInference = Callable[[np.ndarray], Union[np.ndarray, Sequence[float]]]


class YoloProcessor:
    """Turn camera frames into distance-annotated, de-duplicated detections."""

    def __init__(
        self,
        run_inference: RunInference,
        decoder: DetectionDecoder,
        estimator: DistanceEstimator,
        *,
        suppressor: Optional[BoxSuppressor] = None,
        num_channels: Optional[int] = None,
        num_elements: Optional[int] = None,
        detector_id: int = 0,
        telemetry=None,
    ) -> None:
        self.run_inference = run_inference
        self.decoder = decoder
        self.suppressor = suppressor or BoxSuppressor(decoder.config)
        self.estimator = estimator
        self.num_channels = num_channels
        self.num_elements = num_elements
        self.detector_id = detector_id
        self.telemetry = telemetry

        self.latest_detections: List[DetectedObject] = []
        self.detection_count = 0
        self.frames_processed = 0
        self.last_inference_ms = 0.0

    @classmethod
    def from_model(
        cls,
        model_path: str,
        *,
        labels_path: Optional[Union[str, Path]] = None,
        intrinsics_path: Optional[Union[str, Path]] = None,
        image_size: Optional[int] = None,
        device: Optional[str] = None,
        detector_id: int = 0,
        detection_config: Optional[DetectionConfig] = None,
        distance_config: Optional[DistanceConfig] = None,
        telemetry=None,
    ) -> "YoloProcessor":
        """Load a YOLO checkpoint and wire a complete processor around it."""
        from .inference_engine import UltralyticsInference

        engine = UltralyticsInference(
            model_path,
            image_size=image_size or getattr(Config, "INFERENCE_IMAGE_SIZE", 640),
            device=device or getattr(Config, "INFERENCE_DEVICE", "auto"),
        )
        labels = load_labels(labels_path) if labels_path else engine.labels
        tensor_width, _tensor_height = resolve_input_size(engine.input_shape)
        focal_length = load_focal_length(intrinsics_path, tensor_width, distance_config)

        decoder = DetectionDecoder(labels, detection_config)
        estimator = DistanceEstimator(focal_length, tensor_width, distance_config)
        return cls(
            engine,
            decoder,
            estimator,
            suppressor=BoxSuppressor(decoder.config),
            detector_id=detector_id,
            telemetry=telemetry,
        )

    def process_frame(self, frame: np.ndarray) -> List[DetectedObject]:
        """
        Run one detection cycle.

        Returns an empty list when nothing passes the confidence threshold or
        inference fails. A label/output mismatch is a configuration error and
        propagates.
        """
        self.frames_processed += 1
        start = time.perf_counter()
        try:
            raw = self.run_inference(frame)
            num_channels = self.num_channels or getattr(self.run_inference, "num_channels", None)
            num_elements = self.num_elements or getattr(self.run_inference, "num_elements", None)
            candidates = self.decoder.decode(raw, num_channels, num_elements)
        except DetectorConfigurationError:
            raise
        except Exception as exc:
            log.warning("Detector %d processing failed: %s", self.detector_id, exc)
            return []
        finally:
            self.last_inference_ms = (time.perf_counter() - start) * 1000.0

        if candidates is None:
            self.latest_detections = []
            return []

        survivors = self.suppressor.suppress(candidates)
        annotated = self.estimator.annotate(survivors)

        self.detection_count += len(annotated)
        self.latest_detections = annotated
        if self.telemetry is not None:
            self.telemetry.log_detections_batch(self.detector_id, annotated)

        log.debug(
            "Detector %d: %d candidates -> %d survivors in %.1fms",
            self.detector_id,
            len(candidates),
            len(annotated),
            self.last_inference_ms,
        )
        return annotated


__all__ = ["YoloProcessor"]
