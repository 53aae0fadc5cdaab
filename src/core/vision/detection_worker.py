"""Background detection worker with keep-only-latest frame semantics."""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence

import cv2
import numpy as np

from .detected_object import DetectedObject
from .yolo_processor import YoloProcessor

log = logging.getLogger(__name__)

ObjectsCallback = Callable[[List[DetectedObject]], None]


class DetectionWorker:
    """
    Run one or more detectors on the most recent camera frame.

    Frames are submitted without blocking; when the worker lags, the pending
    frame is replaced so stale frames are never processed. Each detector keeps
    its own latest result and the published list is their concatenation.
    """

    def __init__(
        self,
        processors: Sequence[YoloProcessor],
        *,
        on_objects: Optional[ObjectsCallback] = None,
        queue_size: int = 1,
    ) -> None:
        if not processors:
            raise ValueError("DetectionWorker requires at least one processor")
        self.processors = list(processors)
        self.on_objects = on_objects

        self.input_queue: "queue.Queue[Optional[dict]]" = queue.Queue(maxsize=max(1, queue_size))
        self.worker_thread: Optional[threading.Thread] = None
        self._running = False

        self._lock = threading.Lock()
        self._per_detector: Dict[int, List[DetectedObject]] = {}
        self._latest_objects: List[DetectedObject] = []
        self._latest_frame_index = -1
        self.frames_submitted = 0
        self.frames_dropped = 0
        self.frames_processed = 0

        print(f"[VISION] Detection worker ready | detectors={len(self.processors)}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self.worker_thread = threading.Thread(
            target=self._worker_loop,
            name="DetectionWorker",
            daemon=True,
        )
        self.worker_thread.start()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        try:
            self.input_queue.put_nowait(None)
        except queue.Full:
            pass
        if self.worker_thread and self.worker_thread.is_alive():
            self.worker_thread.join(timeout=1.0)

    def submit(self, frame: np.ndarray, frame_index: int) -> None:
        """Push a frame to the worker without blocking."""
        item = {"frame": frame, "timestamp": time.time(), "frame_index": frame_index}
        self.frames_submitted += 1
        try:
            self.input_queue.put_nowait(item)
        except queue.Full:
            # Drop the pending frame when the worker lags behind
            try:
                _ = self.input_queue.get_nowait()
                self.frames_dropped += 1
            except queue.Empty:
                pass
            try:
                self.input_queue.put_nowait(item)
            except queue.Full:
                self.frames_dropped += 1

    def latest_objects(self) -> List[DetectedObject]:
        with self._lock:
            return list(self._latest_objects)

    @property
    def latest_frame_index(self) -> int:
        with self._lock:
            return self._latest_frame_index

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def process(self, frame: np.ndarray, frame_index: int = 0) -> List[DetectedObject]:
        """Run every detector on ``frame`` and publish the merged result."""
        if frame.ndim == 2 or (frame.ndim == 3 and frame.shape[2] == 1):
            frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)

        results: Dict[int, List[DetectedObject]] = {}
        for processor in self.processors:
            results[processor.detector_id] = processor.process_frame(frame)

        with self._lock:
            self._per_detector.update(results)
            merged: List[DetectedObject] = []
            for objects in self._per_detector.values():
                merged.extend(objects)
            self._latest_objects = merged
            self._latest_frame_index = frame_index
            self.frames_processed += 1

        if self.on_objects is not None:
            self.on_objects(list(merged))
        return merged

    def _worker_loop(self) -> None:
        while self._running:
            try:
                item = self.input_queue.get(timeout=0.5)
            except queue.Empty:
                continue

            if item is None:
                break

            try:
                self.process(item["frame"], item["frame_index"])
            except Exception:
                log.exception("Detection cycle failed for frame %s, stopping worker", item["frame_index"])
                self._running = False
                break


__all__ = ["DetectionWorker"]
