"""
Centralized telemetry for assisted navigation sessions.

This module provides thread-safe JSONL telemetry for the three asynchronous
streams of the navigation assistant: camera detections, proximity sensor
readings and speech/haptic dispatch events.

Features:
- Thread-safe metric collection with locks
- JSONL format for efficient streaming analytics
- Session-based organization with unique timestamps
- Summary statistics written on finalize

Metric Types:
- DetectionMetric: Annotated boxes with confidence, direction and distance
- SensorMetric: Parsed proximity readings (accepted or discarded)
- AudioMetric: Dispatch queue events with urgency

Usage:
    from core.telemetry.loggers.telemetry_logger import TelemetryLogger

    telemetry = TelemetryLogger()
    telemetry.log_detection(detector_id=1, object_class="person", confidence=0.91,
                            direction="front", distance_cm=182.0)
    telemetry.log_audio_event(action="dispatched", message="Path is clear.", urgent=False)
    summary = telemetry.finalize_session()
"""

import json
import time
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, asdict
from datetime import datetime


@dataclass
class DetectionMetric:
    """Annotated detection metric."""
    timestamp: float
    detector_id: int
    object_class: str
    confidence: float
    direction: str  # "left", "front", "right"
    distance_cm: float


@dataclass
class SensorMetric:
    """Proximity sensor metric."""
    timestamp: float
    raw: str
    accepted: bool
    direction: Optional[str] = None
    distance_cm: Optional[int] = None


@dataclass
class AudioMetric:
    """Dispatch queue event metric."""
    timestamp: float
    action: str  # "enqueued", "dispatched", "completed", "failed", "dropped", "flushed"
    message: str
    urgent: bool
    reason: Optional[str] = None


class TelemetryLogger:
    """
    Centralized thread-safe metrics logger.
    - Detections: class, confidence, direction, distance
    - Sensor: raw message, parse outcome
    - Audio: dispatch events
    """

    def __init__(self, output_dir: Optional[Path] = None):
        """
        Initialize new telemetry session.

        Args:
            output_dir: Base directory for logs (default: logs/)
        """
        self._write_lock = threading.Lock()
        self._buffer_lock = threading.Lock()

        if output_dir is None:
            from utils.config import Config
            output_dir = Path(getattr(Config, "LOG_DIR", "logs"))

        base_dir = Path(output_dir)
        base_dir.mkdir(parents=True, exist_ok=True)

        # Unique session with readable timestamp
        self.session_timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        self.session_start = time.time()
        self.session_dir = base_dir / f"session_{self.session_timestamp}"
        self.session_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir = self.session_dir

        self.detections_log = self.output_dir / "detections.jsonl"
        self.sensor_log = self.output_dir / "sensor.jsonl"
        self.audio_log = self.output_dir / "audio_events.jsonl"
        self.system_log = self.output_dir / "system.jsonl"

        # In-memory buffers (protected by _buffer_lock)
        self.detection_buffer: List[DetectionMetric] = []
        self.sensor_buffer: List[SensorMetric] = []
        self.audio_buffer: List[AudioMetric] = []

        self._log_system_event("session_start", {
            "session": self.session_timestamp,
            "timestamp": self.session_start
        })

        print(f"[TELEMETRY] New session: {self.session_timestamp}")
        print(f"[TELEMETRY] Folder: {self.output_dir}")

    def get_session_dir(self) -> Path:
        """Return the session directory path for use by other loggers."""
        return self.session_dir

    # ------------------------------------------------------------------
    # Detection Metrics
    # ------------------------------------------------------------------

    def log_detection(
        self,
        detector_id: int,
        object_class: str,
        confidence: float,
        direction: str,
        distance_cm: float,
    ) -> None:
        """
        Record an individual annotated detection.

        Thread-safe: Can be called from any thread.
        """
        metric = DetectionMetric(
            timestamp=time.time(),
            detector_id=detector_id,
            object_class=object_class,
            confidence=float(confidence),
            direction=direction,
            distance_cm=float(distance_cm),
        )

        with self._buffer_lock:
            self.detection_buffer.append(metric)

        self._write_jsonl(self.detections_log, asdict(metric))

    def log_detections_batch(self, detector_id: int, objects: List[Any]) -> None:
        """Record every DetectedObject from one detection cycle."""
        for obj in objects:
            self.log_detection(
                detector_id=detector_id,
                object_class=obj.class_name,
                confidence=obj.confidence,
                direction=obj.direction,
                distance_cm=obj.distance_cm,
            )

    # ------------------------------------------------------------------
    # Sensor Metrics
    # ------------------------------------------------------------------

    def log_sensor_message(
        self,
        raw: str,
        accepted: bool,
        direction: Optional[str] = None,
        distance_cm: Optional[int] = None,
    ) -> None:
        """
        Record a sensor transport message and whether it was accepted.

        Thread-safe: Can be called from any thread.
        """
        metric = SensorMetric(
            timestamp=time.time(),
            raw=raw,
            accepted=accepted,
            direction=direction,
            distance_cm=distance_cm,
        )

        with self._buffer_lock:
            self.sensor_buffer.append(metric)

        self._write_jsonl(self.sensor_log, asdict(metric))

    # ------------------------------------------------------------------
    # Audio Metrics
    # ------------------------------------------------------------------

    def log_audio_event(
        self,
        action: str,
        message: str,
        urgent: bool,
        reason: Optional[str] = None,
    ) -> None:
        """
        Record a dispatch queue event.

        Args:
            action: "enqueued", "dispatched", "completed", "failed", "dropped", "flushed"
            message: Instruction text
            urgent: Whether the entry came from the sensor-priority branch
            reason: Optional detail (e.g. "debounced", "speech_error")

        Thread-safe: Can be called from any thread.
        """
        metric = AudioMetric(
            timestamp=time.time(),
            action=action,
            message=message,
            urgent=bool(urgent),
            reason=reason,
        )

        with self._buffer_lock:
            self.audio_buffer.append(metric)

        self._write_jsonl(self.audio_log, asdict(metric))

    # ------------------------------------------------------------------
    # System Events
    # ------------------------------------------------------------------

    def _log_system_event(self, event_type: str, data: Dict[str, Any]) -> None:
        """Record system events."""
        payload = {
            "timestamp": time.time(),
            "session": self.session_timestamp,
            "event_type": event_type,
            **data
        }
        self._write_jsonl(self.system_log, payload)

    def log_error(self, error_type: str, message: str, **kwargs: Any) -> None:
        """Record a system error."""
        self._log_system_event("error", {
            "error_type": error_type,
            "message": message,
            **kwargs
        })

    # ------------------------------------------------------------------
    # Session Management
    # ------------------------------------------------------------------

    def finalize_session(self) -> Dict[str, Any]:
        """
        Finalize session and generate summary.

        Returns:
            Dict with session statistics

        Thread-safe: Can be called from any thread.
        """
        session_duration = time.time() - self.session_start

        with self._buffer_lock:
            det_copy = list(self.detection_buffer)
            sensor_copy = list(self.sensor_buffer)
            audio_copy = list(self.audio_buffer)

        detections_by_class: Dict[str, int] = {}
        detections_by_direction: Dict[str, int] = {}
        for det in det_copy:
            detections_by_class[det.object_class] = detections_by_class.get(det.object_class, 0) + 1
            detections_by_direction[det.direction] = detections_by_direction.get(det.direction, 0) + 1

        audio_by_action: Dict[str, int] = {}
        for audio in audio_copy:
            audio_by_action[audio.action] = audio_by_action.get(audio.action, 0) + 1

        summary = {
            "session": self.session_timestamp,
            "duration_seconds": session_duration,
            "total_detections": len(det_copy),
            "detections_by_class": detections_by_class,
            "detections_by_direction": detections_by_direction,
            "sensor_messages": len(sensor_copy),
            "sensor_accepted": sum(1 for s in sensor_copy if s.accepted),
            "total_audio_events": len(audio_copy),
            "audio_by_action": audio_by_action,
        }

        self._log_system_event("session_end", summary)

        summary_path = self.output_dir / "summary.json"
        with open(summary_path, 'w') as f:
            json.dump(summary, f, indent=2)

        print(f"[TELEMETRY] Session finalized: {self.session_timestamp}")
        return summary

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------

    def _write_jsonl(self, path: Path, data: Dict[str, Any]) -> None:
        """Append one JSON line (serialized across threads)."""
        with self._write_lock:
            with open(path, 'a') as f:
                f.write(json.dumps(data) + "\n")


__all__ = ["TelemetryLogger", "DetectionMetric", "SensorMetric", "AudioMetric"]
