"""
🏗️ Simple Builder Pattern - assistive navigation system
"""

from typing import List, Optional

from core.audio.audio_system import AudioSystem
from core.audio.dispatch_queue import SpeechDispatchQueue
from core.navigation.navigation_session import NavigationSession
from core.navigation.voice_commands import VoiceCommandHandler
from core.sensors.proximity_alert_monitor import ProximityAlertMonitor
from core.sensors.serial_sensor_link import SerialSensorLink
from core.telemetry.loggers.telemetry_logger import TelemetryLogger
from core.vision.detection_worker import DetectionWorker
from core.vision.yolo_processor import YoloProcessor
from utils.config import Config
from utils.config_sections import load_sensor_alert_config


class NavigationSystem:
    """Handles to every component built by ``Builder.build_full_system``."""

    def __init__(
        self,
        session: NavigationSession,
        dispatch: SpeechDispatchQueue,
        audio_system: AudioSystem,
        detection_worker: Optional[DetectionWorker] = None,
        sensor_link: Optional[SerialSensorLink] = None,
        alert_monitor: Optional[ProximityAlertMonitor] = None,
        voice_commands: Optional[VoiceCommandHandler] = None,
        telemetry: Optional[TelemetryLogger] = None,
    ):
        self.session = session
        self.dispatch = dispatch
        self.audio_system = audio_system
        self.detection_worker = detection_worker
        self.sensor_link = sensor_link
        self.alert_monitor = alert_monitor
        self.voice_commands = voice_commands
        self.telemetry = telemetry

    def start(self) -> None:
        if self.detection_worker is not None:
            self.detection_worker.start()
        if self.sensor_link is not None:
            self.sensor_link.start()
        self.session.start()

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """Announce the stop, drain speech, then release every resource."""
        drained = self.session.shutdown(timeout)
        if self.sensor_link is not None:
            self.sensor_link.stop()
        if self.detection_worker is not None:
            self.detection_worker.stop()
        self.audio_system.close()
        if self.telemetry is not None:
            self.telemetry.finalize_session()
        return drained


class Builder:
    """Builder that creates every dependency of the system from Config."""

    def __init__(self):
        pass  # Components read Config internally

    def build_audio_system(self) -> AudioSystem:
        print("  📦 Creating Audio System...")
        return AudioSystem()

    def build_dispatch_queue(
        self,
        audio_system: AudioSystem,
        telemetry: Optional[TelemetryLogger] = None,
    ) -> SpeechDispatchQueue:
        print("  📦 Creating SpeechDispatchQueue...")
        return SpeechDispatchQueue(audio_system, telemetry=telemetry)

    def build_processors(
        self,
        model_path: Optional[str] = None,
        labels_path: Optional[str] = None,
        intrinsics_path: Optional[str] = None,
        extra_model_path: Optional[str] = None,
        extra_labels_path: Optional[str] = None,
        telemetry: Optional[TelemetryLogger] = None,
    ) -> List[YoloProcessor]:
        print("  📦 Creating YOLO Processors...")
        intrinsics_path = intrinsics_path or getattr(Config, "CAMERA_INTRINSICS_PATH", None)
        processors = [
            YoloProcessor.from_model(
                model_path or Config.MODEL_PATH,
                labels_path=labels_path or getattr(Config, "LABELS_PATH", None),
                intrinsics_path=intrinsics_path,
                detector_id=0,
                telemetry=telemetry,
            )
        ]
        extra_model = extra_model_path or getattr(Config, "EXTRA_MODEL_PATH", None)
        if extra_model:
            processors.append(
                YoloProcessor.from_model(
                    extra_model,
                    labels_path=extra_labels_path or getattr(Config, "EXTRA_LABELS_PATH", None),
                    intrinsics_path=intrinsics_path,
                    detector_id=1,
                    telemetry=telemetry,
                )
            )
        return processors

    def build_detection_worker(self, processors: List[YoloProcessor], session: NavigationSession) -> DetectionWorker:
        print("  📦 Creating DetectionWorker...")
        return DetectionWorker(
            processors,
            on_objects=session.update_camera_objects,
            queue_size=getattr(Config, "DETECTION_QUEUE_SIZE", 1),
        )

    def build_session(self, dispatch: SpeechDispatchQueue) -> NavigationSession:
        print("  📦 Creating NavigationSession...")
        return NavigationSession(dispatch)

    def build_sensor_link(self, telemetry: Optional[TelemetryLogger] = None) -> SerialSensorLink:
        print("  📦 Creating SerialSensorLink...")
        return SerialSensorLink(telemetry=telemetry)

    def build_full_system(
        self,
        telemetry: Optional[TelemetryLogger] = None,
        *,
        processors: Optional[List[YoloProcessor]] = None,
        audio_system: Optional[AudioSystem] = None,
        sensor_link: Optional[SerialSensorLink] = None,
        enable_camera: bool = True,
        enable_sensor: Optional[bool] = None,
        enable_alerts: Optional[bool] = None,
    ) -> NavigationSystem:
        print("🏗️ Building navigation system...")

        audio_system = audio_system or self.build_audio_system()
        dispatch = self.build_dispatch_queue(audio_system, telemetry=telemetry)
        session = self.build_session(dispatch)

        detection_worker = None
        if enable_camera:
            if processors is None:
                processors = self.build_processors(telemetry=telemetry)
            detection_worker = self.build_detection_worker(processors, session)

        if enable_sensor is None:
            enable_sensor = sensor_link is not None or bool(getattr(Config, "SENSOR_SERIAL_PORT", None))
        alert_monitor = None
        if enable_sensor:
            sensor_link = sensor_link or self.build_sensor_link(telemetry)
            session.attach_sensor_link(sensor_link)

            alerts_enabled = load_sensor_alert_config().enabled if enable_alerts is None else enable_alerts
            if alerts_enabled:
                print("  🔁 Enabling proximity alerts...")
                alert_monitor = ProximityAlertMonitor(dispatch)
                sensor_link.subscribe(alert_monitor.on_reading)
        else:
            sensor_link = None

        voice_commands = VoiceCommandHandler(session, dispatch)

        print("✅ Navigation system built!")
        return NavigationSystem(
            session=session,
            dispatch=dispatch,
            audio_system=audio_system,
            detection_worker=detection_worker,
            sensor_link=sensor_link,
            alert_monitor=alert_monitor,
            voice_commands=voice_commands,
            telemetry=telemetry,
        )


__all__ = ["Builder", "NavigationSystem"]
