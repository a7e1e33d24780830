"""Cooperative watchdog timers for slow requests"""

import asyncio
import logging
from typing import Callable, Optional

from .errors import TimeoutWarning

logger = logging.getLogger(__name__)


class Watchdog:
    """Deferred callback that signals a slow operation

    Firing only hands a TimeoutWarning to ``on_timeout``; the operation it
    watches keeps running. ``cancel`` after the operation settles is always
    safe, whether or not the watchdog already fired.
    """

    def __init__(self, timeout: float, on_timeout: Callable[[TimeoutWarning], None], operation: str = "request"):
        self.timeout = timeout
        self.on_timeout = on_timeout
        self.operation = operation
        self.fired = False
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self.fired

    def start(self) -> "Watchdog":
        if self._handle is not None:
            raise RuntimeError(f"watchdog for {self.operation} already started")
        self._handle = asyncio.get_running_loop().call_later(self.timeout, self._fire)
        return self

    def cancel(self) -> bool:
        """Stop the timer; returns True if it had not fired yet"""
        if self._handle is None or self.fired:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self):
        self.fired = True
        warning = TimeoutWarning(self.operation, self.timeout)
        logger.warning(str(warning))
        self.on_timeout(warning)
