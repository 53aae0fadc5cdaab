#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
🚀 Assistive Navigation System - camera + ultrasonic sensor fusion

Turns webcam detections and a serial obstacle sensor into short spoken and
haptic navigation instructions.

Components:
- DetectionWorker: YOLO decoding, NMS and distance estimation per frame
- SerialSensorLink: ultrasonic readings over Bluetooth SPP / USB serial
- NavigationSession: periodic instruction generation with debounce
- SpeechDispatchQueue: one utterance at a time with haptic pulses

Voice commands can be typed on stdin ("start navigation", "stop navigation",
"app tutorial") when --voice-stdin is given.
"""

import argparse
import logging
import sys
import threading
import time

import cv2

from core.ctrl_handler import CtrlCHandler
from utils.config import Config
from core.navigation.builder import Builder
from core.telemetry.loggers.navigation_logger import get_navigation_logger
from core.telemetry.loggers.telemetry_logger import TelemetryLogger


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Assistive navigation: camera + ultrasonic sensor fusion")
    ap.add_argument("--model", default=Config.MODEL_PATH, help="YOLO checkpoint")
    ap.add_argument("--labels", default=Config.LABELS_PATH, help="Line-delimited label file (default: checkpoint names)")
    ap.add_argument("--extra-model", default=Config.EXTRA_MODEL_PATH, help="Optional second detector")
    ap.add_argument("--extra-labels", default=Config.EXTRA_LABELS_PATH, help="Labels for the second detector")
    ap.add_argument("--camera", type=int, default=0, help="OpenCV camera index")
    ap.add_argument("--no-camera", action="store_true", help="Run with the sensor only")
    ap.add_argument("--serial-port", default=Config.SENSOR_SERIAL_PORT, help="Sensor serial port (e.g. /dev/rfcomm0)")
    ap.add_argument("--baud", type=int, default=Config.SENSOR_BAUD_RATE, help="Sensor baud rate")
    ap.add_argument("--intrinsics", default=Config.CAMERA_INTRINSICS_PATH, help="Camera intrinsics JSON")
    ap.add_argument("--sensor-alerts", action="store_true", help="Speak proximity state alerts")
    ap.add_argument("--log-dir", default=Config.LOG_DIR, help="Session log directory")
    ap.add_argument("--no-telemetry", action="store_true", help="Disable JSONL telemetry")
    ap.add_argument("--display", action="store_true", help="Show the camera feed with detections")
    ap.add_argument("--voice-stdin", action="store_true", help="Read voice commands from stdin")
    return ap.parse_args(argv)


def apply_args(args) -> None:
    """Copy CLI overrides onto Config before any component is built."""
    Config.MODEL_PATH = args.model
    Config.LABELS_PATH = args.labels
    Config.EXTRA_MODEL_PATH = args.extra_model
    Config.EXTRA_LABELS_PATH = args.extra_labels
    Config.SENSOR_SERIAL_PORT = args.serial_port
    Config.SENSOR_BAUD_RATE = args.baud
    Config.CAMERA_INTRINSICS_PATH = args.intrinsics
    Config.LOG_DIR = args.log_dir
    if args.sensor_alerts:
        Config.SENSOR_ALERTS_ENABLED = True
    if args.no_telemetry:
        Config.TELEMETRY_ENABLED = False


def draw_detections(frame, objects):
    height, width = frame.shape[:2]
    for obj in objects:
        p1 = (int(obj.x1 * width), int(obj.y1 * height))
        p2 = (int(obj.x2 * width), int(obj.y2 * height))
        cv2.rectangle(frame, p1, p2, (0, 255, 0), 2)
        label = f"{obj.class_name} {obj.distance_cm:.0f}cm {obj.direction}"
        cv2.putText(frame, label, (p1[0], max(12, p1[1] - 4)), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 255, 0), 1)
    return frame


def start_voice_reader(system, ctrl_handler):
    def _read_commands():
        for line in sys.stdin:
            if ctrl_handler.should_stop:
                break
            command = line.strip()
            if command:
                print(f"[VOICE] 🎙️ {system.voice_commands.handle(command)}")

    thread = threading.Thread(target=_read_commands, name="VoiceStdin", daemon=True)
    thread.start()
    return thread


def main(argv=None):
    args = parse_args(argv)
    apply_args(args)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    print("=" * 60)
    print("🚀 Assistive Navigation System")
    print("=" * 60)

    ctrl_handler = CtrlCHandler()
    telemetry = None
    system = None
    cap = None

    try:
        print("\n🔧 Initializing components...")
        if Config.TELEMETRY_ENABLED:
            print("  📊 Initializing TelemetryLogger...")
            telemetry = TelemetryLogger(output_dir=args.log_dir)
            get_navigation_logger(session_dir=telemetry.get_session_dir())
        else:
            get_navigation_logger()

        builder = Builder()
        system = builder.build_full_system(
            telemetry=telemetry,
            enable_camera=not args.no_camera,
        )

        if not args.no_camera:
            cap = cv2.VideoCapture(args.camera)
            if not cap.isOpened():
                raise RuntimeError(f"Cannot open camera index {args.camera}")

        system.start()
        if args.voice_stdin:
            start_voice_reader(system, ctrl_handler)

        print("\n🎮 Controls:")
        print("  - 'q': Quit (with --display)")
        print("  - Ctrl+C: Clean exit")
        print("\n🔄 Navigation active...")

        frames_processed = 0
        last_stats_print = time.time()

        while not ctrl_handler.should_stop:
            if cap is None:
                time.sleep(0.1)
                continue

            ok, frame = cap.read()
            if not ok:
                print("[WARN] Camera frame not available")
                time.sleep(0.1)
                continue

            frames_processed += 1
            system.detection_worker.submit(frame, frames_processed)

            if args.display:
                view = draw_detections(frame.copy(), system.detection_worker.latest_objects())
                cv2.imshow("navigation", view)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    print("\n[INFO] 'q' detected, closing application...")
                    break

            current_time = time.time()
            if current_time - last_stats_print > 10.0:
                worker = system.detection_worker
                print(f"[STATUS] Frames: {frames_processed}, processed: {worker.frames_processed}, "
                      f"dropped: {worker.frames_dropped}, navigating: {system.session.is_running}")
                last_stats_print = current_time

        print(f"\n📊 Session complete: {frames_processed} frames read")

    except KeyboardInterrupt:
        print("\n[INFO] ⌨️ Keyboard interrupt detected")

    finally:
        print("\n🧹 Releasing resources...")
        if system is not None:
            drained = system.shutdown()
            print(f"  ✅ Navigation shut down (speech drained={drained})")
        elif telemetry is not None:
            telemetry.finalize_session()
        if cap is not None:
            cap.release()
        if args.display:
            cv2.destroyAllWindows()
        ctrl_handler.restore()


if __name__ == "__main__":
    main()
