import signal


class CtrlCHandler:
    """
    Handle Ctrl+C for clean shutdown so the stop announcement is spoken
    and the sensor port is released.

    The first Ctrl+C only requests a stop; a second one while shutdown is
    still draining speech raises KeyboardInterrupt.
    """
    def __init__(self):
        self.should_stop = False
        self.interrupts = 0
        self._previous = signal.signal(signal.SIGINT, self._signal_handler)

    def _signal_handler(self, sig, frame):
        """Callback executed when Ctrl+C is detected"""
        self.interrupts += 1
        if self.should_stop:
            print("\n[INFO] Second interrupt, aborting shutdown...")
            raise KeyboardInterrupt
        print("\n[INFO] Interrupt signal detected, stopping navigation...")
        self.should_stop = True

    def restore(self):
        """Reinstall the SIGINT handler that was active before this one."""
        if self._previous is not None:
            signal.signal(signal.SIGINT, self._previous)
            self._previous = None
