"""
Centralized configuration for the assistive navigation system.

This module provides all configuration constants and runtime settings for:
- Detection decoding (confidence threshold, NMS, direction buckets)
- Monocular distance estimation (focal length, calibration, class widths)
- Proximity sensor link (staleness, reconnect, alert states)
- Instruction generation (priority distances, debounce, tick cadence)
- Speech/haptic dispatch (settle delay, pulse durations, TTS)
- Telemetry (session log directory)

The Config class contains all constants as class attributes, making them
accessible throughout the application without instantiation.

Usage:
    from utils.config import Config

    threshold = Config.DETECTION_CONFIDENCE_THRESHOLD
    if Config.SENSOR_ALERTS_ENABLED:
        # Announce proximity state changes
"""

import logging

log = logging.getLogger(__name__)


class Config:
    """System configuration constants for the navigation assistant."""

    # ==========================================================================
    # DETECTION: Decoding & Suppression
    # ==========================================================================

    DETECTION_CONFIDENCE_THRESHOLD = 0.3    # Max class score must exceed this
    NMS_IOU_THRESHOLD = 0.5                 # Drop candidates overlapping a survivor >= this
    DETECTION_BOX_CHANNELS = 4              # cx, cy, w, h precede the class scores

    # Direction buckets on the normalized horizontal center
    DIRECTION_LEFT_BOUNDARY = 0.33          # cx < 0.33 -> left
    DIRECTION_RIGHT_BOUNDARY = 0.66         # cx < 0.66 -> front, else right

    # ==========================================================================
    # INFERENCE: Model & Labels
    # ==========================================================================

    MODEL_PATH = "checkpoints/yolov8n.pt"
    LABELS_PATH = None                      # None -> class names embedded in the checkpoint
    EXTRA_MODEL_PATH = None                 # Optional second detector (custom obstacles)
    EXTRA_LABELS_PATH = None
    INFERENCE_IMAGE_SIZE = 640
    INFERENCE_DEVICE = "auto"               # auto -> cuda / mps / cpu
    DETECTION_QUEUE_SIZE = 1                # Keep only the latest frame

    # ==========================================================================
    # DISTANCE ESTIMATION: Pinhole model
    # ==========================================================================

    DEFAULT_FOCAL_LENGTH_PX = 800.0         # Used when intrinsics are unavailable
    DISTANCE_CALIBRATION_FACTOR = 1.05      # Empirical correction
    DISTANCE_SMOOTHING_WINDOW = 5           # Samples kept per class name
    DEFAULT_OBJECT_WIDTH_CM = 50.0          # Unknown classes
    CAMERA_INTRINSICS_PATH = None           # Optional JSON with focal/sensor data

    # Fallbacks for individually missing intrinsics fields
    DEFAULT_FOCAL_LENGTH_MM = 4.0
    DEFAULT_SENSOR_WIDTH_MM = 3.68
    DEFAULT_SENSOR_WIDTH_PX = 4000

    # Known real-world widths (cm), keyed by lower-cased class name
    OBJECT_REAL_WIDTHS_CM = {
        "person": 45.0,
        "bicycle": 60.0,
        "car": 170.0,
        "motorbike": 70.0,
        "motorcycle": 70.0,
        "bus": 250.0,
        "truck": 250.0,
        "train": 300.0,
        "boat": 200.0,
        "bottle": 7.0,
        "cup": 8.0,
        "dog": 30.0,
        "cat": 25.0,
        "chair": 45.0,
        "laptop": 33.0,
        "tv": 90.0,
        "book": 20.0,
        "door": 80.0,
        "staircase": 120.0,
        "pothole": 50.0,
    }

    # ==========================================================================
    # SENSOR LINK: Ultrasonic proximity sensor
    # ==========================================================================

    SENSOR_SERIAL_PORT = None               # e.g. /dev/rfcomm0 or COM5
    SENSOR_BAUD_RATE = 9600                 # HC-05 default
    SENSOR_READ_TIMEOUT_S = 1.0
    SENSOR_READ_CHUNK = 256                 # Bytes per read
    SENSOR_RECONNECT_INTERVAL_S = 5.0
    SENSOR_STALE_AFTER_S = 3.0              # Readings older than this are ignored
    SENSOR_SWAP_SIDES = True                # Sensor is mounted reversed

    # Proximity alerts (standalone sensor announcements)
    SENSOR_ALERTS_ENABLED = False
    SENSOR_CLEAR_DISTANCE_CM = 150
    SENSOR_CAUTION_DISTANCE_CM = 100
    SENSOR_WARNING_DISTANCE_CM = 50
    SENSOR_ALERT_REPEAT_S = 5.0
    SENSOR_ALERT_HAPTIC_MS = {
        "clear_path": 0,
        "caution": 200,
        "warning": 400,
        "danger": 800,
    }

    # ==========================================================================
    # NAVIGATION: Instruction generation
    # ==========================================================================

    SENSOR_PRIORITY_DISTANCE_CM = 150       # Sensor reading takes over below this
    CAMERA_CONSIDER_DISTANCE_CM = 300       # Objects further away are ignored
    MAX_NARRATED_OBJECTS = 3
    NAVIGATION_TICK_MS = 1200
    DEBOUNCE_INTERVAL_MS = 2500             # Minimum spacing between forwarded instructions
    REPEAT_INTERVAL_MS = 2500               # Identical text is repeated only after this

    # ==========================================================================
    # DISPATCH: Speech & haptics
    # ==========================================================================

    DISPATCH_SETTLE_DELAY_MS = 700          # Pause after an utterance completes
    HAPTIC_URGENT_MS = 700
    HAPTIC_NORMAL_MS = 300
    HAPTIC_ENABLED = True
    HAPTIC_FREQUENCY = 150                  # Hz, low rumble through the audio device
    HAPTIC_VOLUME = 0.8
    STOP_ANNOUNCEMENT = "Navigation stopped."
    SHUTDOWN_TIMEOUT_S = 10.0

    TTS_RATE_MACOS = 190
    TTS_RATE_LINUX = 130                    # espeak-ng is fast by default
    TTS_VOLUME = 1.0
    TTS_VOICE = None                        # macOS voice name, None -> system default

    # ==========================================================================
    # TELEMETRY
    # ==========================================================================

    TELEMETRY_ENABLED = True
    LOG_DIR = "logs"
