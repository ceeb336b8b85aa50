"""
utils/shutdown.py
-----------------
Cooperative stop flag for batch jobs.

SIGINT/SIGTERM do not kill a job mid-subscription: the handler only
raises a flag, and each job checks it between subscriptions.
"""

import signal

from utils.logger import get_logger

logger = get_logger(__name__)


class ShutdownFlag:
    """Set once a stop signal arrives; never cleared during a run."""

    def __init__(self):
        self._requested = False

    @property
    def requested(self) -> bool:
        return self._requested

    def request(self, reason: str = "manual") -> None:
        if not self._requested:
            logger.warning(f"Stop requested ({reason}); finishing current subscription first.")
        self._requested = True

    def install(self) -> None:
        """Route SIGINT and SIGTERM to this flag."""
        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, self._handle)

    def _handle(self, signum, frame) -> None:
        self.request(signal.Signals(signum).name)
