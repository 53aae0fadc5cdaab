"""
Per-channel debug logs for one navigation session.

Channels and their files inside the session directory:
- decision: instruction generation, debounce outcomes, session lifecycle
- audio: speech and haptic actuation
- routing: dispatch queue transitions
- sensor: serial link messages, parse results and reconnects

Every channel writes DEBUG to its file; warnings are echoed to the console.

Usage:
    nav_logger = get_navigation_logger(session_dir=telemetry.get_session_dir())
    nav_logger.sensor.info("Reading: left 42cm")
"""

import logging
from datetime import datetime
from pathlib import Path

CHANNELS = {
    "decision": "decision_engine.log",
    "audio": "audio_system.log",
    "routing": "audio_routing.log",
    "sensor": "sensor_link.log",
}

_FORMAT = logging.Formatter(
    '%(asctime)s.%(msecs)03d [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)


def _attach_channel(name: str, path: Path) -> logging.Logger:
    logger = logging.getLogger(f"nav.{name}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.handlers.clear()

    file_handler = logging.FileHandler(path, mode='w')
    file_handler.setLevel(logging.DEBUG)
    console = logging.StreamHandler()
    console.setLevel(logging.WARNING)
    for handler in (file_handler, console):
        handler.setFormatter(_FORMAT)
        logger.addHandler(handler)
    return logger


class NavigationLogger:
    """One instance per process; channels are exposed as attributes."""

    _instance = None
    _initialized = False

    def __new__(cls, session_dir: Path = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, session_dir: Path = None):
        if self._initialized:
            return

        if session_dir is None:
            from utils.config import Config
            stamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            session_dir = Path(getattr(Config, "LOG_DIR", "logs")) / f"session_{stamp}"
        self.log_dir = Path(session_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        for name, filename in CHANNELS.items():
            setattr(self, name, _attach_channel(name, self.log_dir / filename))
        self._initialized = True

    def close(self):
        for name in CHANNELS:
            logger = getattr(self, name, None)
            if logger is None:
                continue
            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)


_nav_logger = None


def get_navigation_logger(session_dir: Path = None):
    """Return the session logger, creating it on first use."""
    global _nav_logger
    if _nav_logger is None:
        _nav_logger = NavigationLogger(session_dir=session_dir)
    return _nav_logger


def reset_navigation_logger() -> None:
    """Close the current instance so the next call starts a new session."""
    global _nav_logger
    if _nav_logger is not None:
        _nav_logger.close()
    NavigationLogger._instance = None
    NavigationLogger._initialized = False
    _nav_logger = None
