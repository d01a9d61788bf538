"""Polling observer that reports deleted files.

Checks a set of paths at a fixed interval and calls on_delete for each one
that has disappeared. The watched set is re-read every poll, so it follows
the orchestrator's current result.
"""
import asyncio
import logging
import os
from typing import Callable, Iterable, List, Optional

logger = logging.getLogger(__name__)


class DeletionWatcher:
    """Deliver on_delete(path) events for watched paths that vanish."""

    def __init__(self, watched: Callable[[], Iterable[str]], on_delete: Callable[[str], object],
                 interval: float = 1.0, exists: Callable[[str], bool] = os.path.exists):
        self.watched = watched
        self.on_delete = on_delete
        self.interval = interval
        self.exists = exists

    def poll(self) -> List[str]:
        """Check every watched path once.

        Returns:
            Paths reported as deleted during this poll
        """
        deleted = [p for p in list(self.watched()) if not self.exists(p)]
        for path in deleted:
            logger.debug("Detected deletion of %s", path)
            self.on_delete(path)
        return deleted

    async def run(self, stop_event: asyncio.Event, on_poll: Optional[Callable[[List[str]], None]] = None):
        """Poll until stop_event is set."""
        while not stop_event.is_set():
            deleted = self.poll()
            if deleted and on_poll is not None:
                on_poll(deleted)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
