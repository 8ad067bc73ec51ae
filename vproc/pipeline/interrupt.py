import signal
import logging
from typing import Any, Dict, Optional, Tuple

INTERRUPT_SIGNALS: Tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class InterruptGuard:
    """One-shot SIGINT/SIGTERM handler that turns the first signal into KeyboardInterrupt.

    The handler disarms itself on first use: both signals are ignored until the
    guard exits, so a second Ctrl+C cannot re-enter cleanup. Previous handlers
    are restored on exit.
    """

    def __init__(self, signals: Tuple[signal.Signals, ...] = INTERRUPT_SIGNALS):
        self.signals = signals
        self.fired = False
        self.received: Optional[int] = None
        self._previous: Dict[int, Any] = {}
        self.logger = logging.getLogger(__name__)

    def _handle(self, signum, frame):
        if self.fired:
            return
        self.fired = True
        self.received = signum
        for sig in self.signals:
            signal.signal(sig, signal.SIG_IGN)
        self.logger.debug(f"Signal {signum} received, interrupting batch")
        raise KeyboardInterrupt

    def __enter__(self):
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self._handle)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for sig, handler in self._previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        self._previous.clear()
        return False
