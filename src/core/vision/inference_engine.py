"""
PyTorch/Ultralytics inference adapter producing raw detector tensors.

The navigation core treats the detector as an opaque ``run_inference(frame)``
callable returning a channel-major ``[channels, elements]`` float32 array:
channels 0-3 hold cx, cy, w, h normalized to the input size and the remaining
channels hold one score per class. This module wraps a YOLO checkpoint so it
behaves exactly like that, bypassing the library's own post-processing (the
core does its own decoding and suppression).

Usage:
    engine = UltralyticsInference("yolo11n.pt", image_size=640)
    raw = engine(frame_bgr)            # np.ndarray [4 + num_classes, N]
    labels = engine.labels
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Tuple, Union

import cv2
import numpy as np
import torch
from ultralytics import YOLO

log = logging.getLogger(__name__)


def configure_mps_environment() -> None:
    """Tune environment variables for the PyTorch MPS backend."""
    os.environ.setdefault("PYTORCH_MPS_HIGH_WATERMARK_RATIO", "0.0")


def get_preferred_device(preferred: Union[str, torch.device] = "auto") -> torch.device:
    """Return the preferred torch device when available, else the best one found."""
    if isinstance(preferred, torch.device):
        preferred_lower = preferred.type
    else:
        preferred_lower = str(preferred).lower()

    if preferred_lower == "cpu":
        return torch.device("cpu")
    # Priority: CUDA > MPS > CPU
    if preferred_lower == "cuda" and torch.cuda.is_available():
        return torch.device("cuda")
    if preferred_lower == "mps" and torch.backends.mps.is_available():
        return torch.device("mps")
    if torch.cuda.is_available():
        return torch.device("cuda")
    if torch.backends.mps.is_available():
        return torch.device("mps")
    return torch.device("cpu")


class UltralyticsInference:
    """Callable YOLO wrapper returning the network's raw prediction head."""

    def __init__(
        self,
        model_path: str,
        image_size: int = 640,
        device: str = "auto",
    ) -> None:
        if image_size <= 0 or image_size % 32:
            raise ValueError(f"image_size must be a positive multiple of 32, got {image_size}")

        configure_mps_environment()
        try:
            torch.set_num_threads(2)
        except RuntimeError:
            pass

        print(f"[INFO] Loading detector weights from {model_path}...")
        self.model = YOLO(model_path)
        self.device = get_preferred_device(device)
        self.network = self.model.model.to(self.device).float().eval()
        self.image_size = int(image_size)

        names = self.model.names
        if isinstance(names, dict):
            self.labels: List[str] = [str(names[i]) for i in sorted(names)]
        else:
            self.labels = [str(name) for name in names]

        self.num_channels = 4 + len(self.labels)
        self.num_elements: Optional[int] = None

        log.info(
            "Inference ready on %s | imgsz=%d | classes=%d",
            self.device.type,
            self.image_size,
            len(self.labels),
        )

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        """Model input shape in NCHW order."""
        return (1, 3, self.image_size, self.image_size)

    def preprocess(self, frame: np.ndarray) -> torch.Tensor:
        if frame.ndim == 2 or (frame.ndim == 3 and frame.shape[2] == 1):
            frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        resized = cv2.resize(frame, (self.image_size, self.image_size), interpolation=cv2.INTER_LINEAR)
        rgb = cv2.cvtColor(resized, cv2.COLOR_BGR2RGB)
        tensor = torch.from_numpy(np.ascontiguousarray(rgb)).permute(2, 0, 1).unsqueeze(0)
        return tensor.to(self.device).float().div_(255.0)

    def __call__(self, frame: np.ndarray) -> np.ndarray:
        tensor = self.preprocess(frame)
        with torch.inference_mode():
            output = self.network(tensor)
        if isinstance(output, (list, tuple)):
            output = output[0]

        raw = output[0].detach().float().cpu().numpy()
        # Geometry comes back in input pixels
        raw[:4] /= float(self.image_size)

        self.num_elements = int(raw.shape[1])
        if self.device.type == "mps":
            torch.mps.empty_cache()
        return raw.astype(np.float32, copy=False)


__all__ = ["UltralyticsInference", "get_preferred_device"]
