"""
Liveness monitor: a resettable deadline that detects stalled page extraction.
The extraction script sends a heartbeat after every scroll round; each heartbeat
pushes the deadline back. If a full window passes without one, the stall callback fires.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

IDLE = "idle"
ARMED = "armed"


class LivenessMonitor:
    """
    Single owned deadline with arm / ping / cancel as its only mutators.

    At most one deadline is active at any time. Arming again replaces the previous
    one. Expiry calls the callback exactly once and returns the monitor to idle.
    Must be used from inside a running event loop.
    """

    def __init__(self):
        self._handle: Optional[asyncio.TimerHandle] = None
        self._timeout: float = 0.0
        self._on_expire: Optional[Callable[[], None]] = None
        self.expirations = 0
        self.pings = 0

    @property
    def state(self) -> str:
        return ARMED if self._handle is not None else IDLE

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, timeout: float, on_expire: Callable[[], None]) -> None:
        """
        Start a deadline, replacing any deadline already running.

        Args:
            timeout: Seconds without a ping before the stall callback fires
            on_expire: Called once, on the event loop, when the deadline passes
        """
        self.cancel()
        self._timeout = timeout
        self._on_expire = on_expire
        self._schedule()
        logger.debug(f"Liveness deadline armed ({timeout}s)")

    def ping(self) -> None:
        """Restart the running deadline. Ignored while idle."""
        if self._handle is None:
            return
        self._handle.cancel()
        self.pings += 1
        self._schedule()
        logger.debug(f"Heartbeat received, deadline reset to {self._timeout}s")

    def cancel(self) -> None:
        """Stop the running deadline, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._on_expire = None

    def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._timeout, self._expire)

    def _expire(self) -> None:
        callback = self._on_expire
        self._handle = None
        self._on_expire = None
        self.expirations += 1
        logger.warning(f"No heartbeat for {self._timeout}s, liveness deadline expired")
        if callback is not None:
            callback()
