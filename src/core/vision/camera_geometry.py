"""Pinhole camera intrinsics and focal-length scaling for distance estimation."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from utils.config_sections import DistanceConfig, load_distance_config

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CameraIntrinsics:
    """
    Physical camera parameters needed to express the focal length in pixels.

    Attributes:
        focal_length_mm: Lens focal length (mm)
        sensor_width_mm: Physical sensor width (mm)
        sensor_width_px: Sensor width in pixels (full-resolution)
    """

    focal_length_mm: float
    sensor_width_mm: float
    sensor_width_px: int

    @classmethod
    def from_mapping(
        cls,
        data: Dict[str, Any],
        config: Optional[DistanceConfig] = None,
    ) -> "CameraIntrinsics":
        """Build intrinsics from a dict; missing or null fields use the configured defaults."""
        config = config or load_distance_config()

        def field_or_default(name: str, default: Any) -> Any:
            value = data.get(name)
            return default if value is None else value

        return cls(
            focal_length_mm=float(field_or_default("focal_length_mm", config.default_focal_length_mm)),
            sensor_width_mm=float(field_or_default("sensor_width_mm", config.default_sensor_width_mm)),
            sensor_width_px=int(field_or_default("sensor_width_px", config.default_sensor_width_px)),
        )

    @classmethod
    def from_json(
        cls,
        path: Union[str, Path],
        config: Optional[DistanceConfig] = None,
    ) -> "CameraIntrinsics":
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"Intrinsics file '{path}' must contain a JSON object")
        return cls.from_mapping(data, config)

    def is_valid(self) -> bool:
        values = (self.focal_length_mm, self.sensor_width_mm, float(self.sensor_width_px))
        return all(math.isfinite(v) and v > 0 for v in values)


def scaled_focal_length(
    intrinsics: Optional[CameraIntrinsics],
    tensor_width: int,
    config: Optional[DistanceConfig] = None,
) -> float:
    """
    Focal length in pixels at the detector's input resolution.

    focal_px = (focal_mm / sensor_width_mm) * sensor_width_px, then rescaled
    from the sensor's pixel width to ``tensor_width``. Missing or invalid
    intrinsics fall back to ``config.default_focal_length_px``.
    """
    config = config or load_distance_config()
    fallback = float(config.default_focal_length_px)

    if intrinsics is None:
        log.info("No camera intrinsics available, using focal length %.1f px", fallback)
        return fallback
    if tensor_width <= 0 or not intrinsics.is_valid():
        log.warning("Invalid intrinsics %s (tensor width %s), using focal length %.1f px",
                    intrinsics, tensor_width, fallback)
        return fallback

    focal_px = (intrinsics.focal_length_mm / intrinsics.sensor_width_mm) * intrinsics.sensor_width_px
    scaled = focal_px * (tensor_width / intrinsics.sensor_width_px)
    log.info("Focal length %.1f px at sensor width, %.1f px at tensor width %d",
             focal_px, scaled, tensor_width)
    return scaled


def load_focal_length(
    intrinsics_path: Optional[Union[str, Path]],
    tensor_width: int,
    config: Optional[DistanceConfig] = None,
) -> float:
    """Resolve the scaled focal length from an optional intrinsics JSON file."""
    intrinsics: Optional[CameraIntrinsics] = None
    if intrinsics_path:
        try:
            intrinsics = CameraIntrinsics.from_json(intrinsics_path, config)
        except (OSError, TypeError, ValueError) as exc:
            log.warning("Failed to load camera intrinsics from %s: %s", intrinsics_path, exc)
    return scaled_focal_length(intrinsics, tensor_width, config)


__all__ = ["CameraIntrinsics", "scaled_focal_length", "load_focal_length"]
