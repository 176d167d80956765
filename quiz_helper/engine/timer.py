"""Cancellable countdown scheduled on the asyncio event loop."""
import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Countdown:
    """
    Ticks once per interval until it reaches zero, then signals expiry once.

    The countdown never runs on its own thread: each tick is a `call_later`
    callback, so `stop()` takes effect immediately and no tick or expiry is
    delivered after it returns.

    Args:
        seconds: starting value, in whole seconds
        on_tick: called with the remaining seconds after every tick
        on_expire: called at zero; if it raises, it is called again on the next tick
        interval: wall-clock seconds between ticks
    """

    def __init__(
        self,
        seconds: int,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
        interval: float = 1.0,
    ):
        if seconds < 0:
            raise ValueError("Countdown cannot start below zero")
        self.remaining = seconds
        self.interval = interval
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._handle: Optional[asyncio.TimerHandle] = None
        self._running = False
        self._expired = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def expired(self) -> bool:
        return self._expired

    def start(self) -> None:
        """Begin ticking. Must be called from inside a running event loop."""
        if self._running or self._expired:
            return
        loop = asyncio.get_running_loop()
        self._running = True
        self._handle = loop.call_later(self.interval, self._scheduled_tick)
        logger.debug("Countdown started at %d seconds", self.remaining)

    def stop(self) -> None:
        """Halt the countdown. Safe to call at any time, any number of times."""
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def tick(self) -> None:
        """Advance by one second. No-op once stopped or expired."""
        if not self._running:
            return

        self.remaining = max(0, self.remaining - 1)
        self._on_tick(self.remaining)

        # on_tick may have stopped us (e.g. a listener submitted the quiz)
        if not self._running:
            return

        if self.remaining == 0:
            # If on_expire raises, the countdown keeps running and retries on the next tick
            self._on_expire()
            self.stop()
            self._expired = True
            logger.debug("Countdown expired")

    def _scheduled_tick(self) -> None:
        self._handle = None
        try:
            self.tick()
        finally:
            if self._running:
                loop = asyncio.get_running_loop()
                self._handle = loop.call_later(self.interval, self._scheduled_tick)
