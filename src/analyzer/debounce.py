"""Cancellable deferred refresh used to coalesce rapid override changes."""
import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DeferredRefresh:
    """Run a callback once, delay seconds after the last schedule() call.

    Each schedule() cancels the pending call and starts a new one, so a burst
    of toggles produces a single refresh. Outside a running event loop the
    callback runs immediately.
    """

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self):
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.callback()
            return
        if self.delay <= 0:
            self._handle = loop.call_soon(self._fire)
        else:
            self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self):
        """Run a pending refresh now instead of waiting for the delay."""
        if self._handle is not None:
            self.cancel()
            self.callback()

    def _fire(self):
        self._handle = None
        logger.debug("Settle delay elapsed, refreshing")
        self.callback()
