import platform
import shutil
import subprocess
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

# Try to import dependencies and handle missing ones
try:
    import numpy as np
except ImportError:
    np = None
    print("[WARN] Numpy not found. Haptic pulses will be disabled.")

try:
    import sounddevice as sd
except (ImportError, OSError):
    sd = None
    print("[WARN] Sounddevice not available. Haptic pulses will be disabled.")

try:
    import pyttsx3
except ImportError:
    pyttsx3 = None
    print("[WARN] pyttsx3 not found. TTS will be disabled on non-macOS systems.")

from utils.config import Config
from utils.config_sections import HapticConfig, load_haptic_config
from core.telemetry.loggers.navigation_logger import get_navigation_logger


class SpeechError(RuntimeError):
    """Raised inside a speech future when the backend fails."""


class SpeechEngine:
    """
    Text-to-speech actuator with one utterance at a time.

    ``speak`` returns a Future that resolves when the utterance has finished
    (or fails with SpeechError). The dispatch queue treats both outcomes as
    completion.
    """

    def __init__(self, backend: Optional[str] = None):
        self.tts_engine = None
        self.tts_backend: Optional[str] = None
        self.tts_rate = getattr(Config, "TTS_RATE_LINUX", 130)
        self.selected_voice: Optional[str] = getattr(Config, "TTS_VOICE", None)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="SpeechEngine")
        self._speaking = threading.Event()
        self.utterances = 0
        self.failures = 0

        self._setup_tts(backend)
        print("[INFO] ✓ Speech engine initialized")

    @property
    def is_speaking(self) -> bool:
        return self._speaking.is_set()

    @property
    def available(self) -> bool:
        return self.tts_backend is not None

    def _setup_tts(self, backend: Optional[str] = None):
        """Configure TTS based on the operating system."""
        system = platform.system()

        if backend == "say" or (backend is None and system == "Darwin" and shutil.which('say')):
            self.tts_backend = "say"
            self.tts_rate = getattr(Config, "TTS_RATE_MACOS", 190)
            print("[INFO] ✓ SpeechEngine: Using 'say' for TTS on macOS.")

        elif backend in (None, "pyttsx3") and pyttsx3:
            try:
                self.tts_engine = pyttsx3.init()
                # espeak-ng is fast by default
                self.tts_rate = getattr(Config, "TTS_RATE_LINUX", 130)
                self.tts_engine.setProperty('rate', self.tts_rate)
                self.tts_engine.setProperty('volume', getattr(Config, "TTS_VOLUME", 1.0))
                self.tts_backend = "pyttsx3"
                print(f"[INFO] ✓ SpeechEngine: Using pyttsx3 for TTS on {system} (rate={self.tts_rate}).")
            except (RuntimeError, OSError, ImportError) as e:
                print(f"[ERROR] Failed to initialize pyttsx3 on {system}: {e}")
                self.tts_backend = None
        else:
            print(f"[WARN] No supported TTS backend found for {system}.")
            self.tts_backend = None

    def speak(self, message: str) -> "Future[None]":
        """Start speaking ``message`` on the speech thread."""
        logger = get_navigation_logger().audio
        logger.debug(f"speak('{message}') backend={self.tts_backend}")
        return self._executor.submit(self._speak_blocking, message)

    def _speak_blocking(self, message: str) -> None:
        self._speaking.set()
        try:
            print(f"[AUDIO] 🔊 {message}")
            if self.tts_backend == "say":
                run_cmd = ["say", "-r", str(self.tts_rate)]
                if self.selected_voice:
                    run_cmd.extend(["-v", self.selected_voice])
                run_cmd.append(message)
                result = subprocess.run(run_cmd, check=False)
                if result.returncode != 0:
                    raise SpeechError(f"'say' exited with {result.returncode}")

            elif self.tts_backend == "pyttsx3" and self.tts_engine:
                self.tts_engine.say(message)
                self.tts_engine.runAndWait()  # Blocking, we are on the speech thread

            else:
                raise SpeechError("No TTS backend available")

            self.utterances += 1
        except SpeechError:
            self.failures += 1
            raise
        except (RuntimeError, OSError) as e:
            self.failures += 1
            raise SpeechError(str(e)) from e
        finally:
            self._speaking.clear()

    def close(self):
        if self.tts_backend == "pyttsx3" and self.tts_engine:
            try:
                self.tts_engine.stop()
            except RuntimeError:
                pass
        self._executor.shutdown(wait=False)
        print("[INFO] SpeechEngine closed.")


class HapticFeedback:
    """
    Vibration actuator.

    Without a vibration motor the pulse is rendered as a low-frequency tone
    through sounddevice, lasting exactly the pulse duration.
    """

    def __init__(self, config: Optional[HapticConfig] = None):
        self.config = config or load_haptic_config()
        self.sample_rate = 44100
        self.pulse_stats = {
            'pulses': 0,
            'total_ms': 0,
            'last_duration_ms': 0,
        }
        self._last_warn_ts = 0.0

    @property
    def available(self) -> bool:
        return bool(self.config.enabled and np is not None and sd is not None)

    def pulse(self, duration_ms: int) -> None:
        """Fire one non-blocking pulse. Zero or negative durations are ignored."""
        if duration_ms <= 0 or not self.config.enabled:
            return

        self.pulse_stats['pulses'] += 1
        self.pulse_stats['total_ms'] += int(duration_ms)
        self.pulse_stats['last_duration_ms'] = int(duration_ms)
        get_navigation_logger().audio.debug(f"pulse({duration_ms}ms)")

        if np is None or sd is None:
            if time.time() - self._last_warn_ts > 5.0:
                print("[WARN] Cannot render haptic pulse. Numpy or Sounddevice not available.")
                self._last_warn_ts = time.time()
            return

        self._play_tone(self.config.frequency, duration_ms / 1000.0)

    def _play_tone(self, frequency: float, duration: float) -> None:
        t = np.linspace(0, duration, int(self.sample_rate * duration), False)
        tone = np.sin(2 * np.pi * frequency * t)

        fade_samples = int(self.sample_rate * 0.01)
        if len(tone) > fade_samples * 2:
            tone[:fade_samples] *= np.linspace(0, 1, fade_samples)
            tone[-fade_samples:] *= np.linspace(1, 0, fade_samples)
        tone *= self.config.volume

        audio_data = np.column_stack((tone, tone)).astype(np.float32)
        try:
            sd.play(audio_data, samplerate=self.sample_rate, blocking=False)
        except (sd.PortAudioError, ValueError) as e:
            print(f"[WARN] Failed to play haptic pulse with sounddevice: {e}")

    def get_pulse_stats(self) -> dict:
        return dict(self.pulse_stats)


class AudioSystem:
    """Speech plus haptic actuators used by the dispatch queue."""

    def __init__(self, speech: Optional[SpeechEngine] = None, haptics: Optional[HapticFeedback] = None):
        self.speech = speech or SpeechEngine()
        self.haptics = haptics or HapticFeedback()
        print("[INFO] ✓ Audio navigation system initialized")

    def speak(self, message: str) -> "Future[None]":
        return self.speech.speak(message)

    def pulse(self, duration_ms: int) -> None:
        self.haptics.pulse(duration_ms)

    def close(self):
        self.speech.close()
        print("[INFO] AudioSystem closed.")
