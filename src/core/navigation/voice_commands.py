"""Spoken command handling for hands-free session control."""

from __future__ import annotations

from core.telemetry.loggers.navigation_logger import get_navigation_logger

TUTORIAL_TEXT = (
    "You can control the app with your voice. "
    "Say 'Start navigation' to begin. "
    "Say 'Stop navigation' to stop. "
    "Say 'App tutorial' to hear this guide again."
)

REPLY_STARTING = "Starting navigation"
REPLY_ALREADY_RUNNING = "Navigation is already running."
REPLY_NOT_RUNNING = "Navigation is not running."
REPLY_UNKNOWN = "Sorry, I didn't understand that command."


class VoiceCommandHandler:
    """Map recognized phrases to session actions and spoken replies."""

    def __init__(self, session, dispatch=None) -> None:
        self.session = session
        self.dispatch = dispatch if dispatch is not None else session.dispatch
        self.commands_handled = 0

    def handle(self, command: str) -> str:
        """Execute ``command`` (free-form recognizer text) and return what was spoken."""
        text = command.lower().strip()
        self.commands_handled += 1

        if "start navigation" in text:
            if self.session.is_running:
                reply = self._say(REPLY_ALREADY_RUNNING)
            else:
                reply = self._say(REPLY_STARTING)
                self.session.start()
        elif "stop navigation" in text:
            if self.session.is_running:
                # stop() enqueues the stop announcement itself
                self.session.stop()
                reply = self.session.dispatch_config.stop_announcement
            else:
                reply = self._say(REPLY_NOT_RUNNING)
        elif "app tutorial" in text:
            reply = self._say(TUTORIAL_TEXT)
        else:
            reply = self._say(REPLY_UNKNOWN)

        get_navigation_logger().decision.info(f"Voice command '{text}' -> '{reply}'")
        return reply

    def _say(self, message: str) -> str:
        self.dispatch.enqueue(message)
        return message


__all__ = ["VoiceCommandHandler", "TUTORIAL_TEXT"]
