"""Per-scan cache of decoded file contents.

Each tracked file is read and decoded at most once per scan, no matter how
many candidates are checked against it. Reads run in worker threads so the
event loop stays responsive.
"""
import asyncio
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

from .cancellation import CancellationToken

logger = logging.getLogger(__name__)


def read_text_best_effort(file_path: str | Path) -> str:
    """Read a file as UTF-8, replacing undecodable bytes.

    Returns:
        File content, or an empty string if the file cannot be read
    """
    try:
        with open(file_path, 'rb') as f:
            data = f.read()
    except OSError as e:
        logger.debug("Treating unreadable file %s as empty: %s", file_path, e)
        return ""
    return data.decode('utf-8', errors='replace')


class ContentIndex:
    """Lazily populated map of file path to decoded content."""

    def __init__(self, max_concurrent_reads: int = 16):
        self._contents: Dict[str, str] = {}
        self._pending: Dict[str, asyncio.Task] = {}
        self.max_concurrent_reads = max(1, max_concurrent_reads)

    def __contains__(self, file_path: str) -> bool:
        return file_path in self._contents

    async def get(self, file_path: str) -> str:
        """Return the decoded content of a file, reading it on first use."""
        cached = self._contents.get(file_path)
        if cached is not None:
            return cached

        task = self._pending.get(file_path)
        if task is None:
            task = asyncio.ensure_future(asyncio.to_thread(read_text_best_effort, file_path))
            self._pending[file_path] = task
        try:
            content = await task
        finally:
            self._pending.pop(file_path, None)
        self._contents[file_path] = content
        return content

    async def warm(self, file_paths: Iterable[str],
                   cancel_token: Optional[CancellationToken] = None) -> bool:
        """Read many files into the cache, at most max_concurrent_reads at a time.

        No new reads are started once cancellation is requested.

        Returns:
            False if cancellation stopped the warm-up before every file was read
        """
        missing = [p for p in file_paths if p not in self._contents]
        step = self.max_concurrent_reads
        for start in range(0, len(missing), step):
            if cancel_token is not None and cancel_token.is_cancellation_requested:
                logger.debug("Stopped warming after %d of %d reads", start, len(missing))
                return False
            await asyncio.gather(*(self.get(p) for p in missing[start:start + step]))
        return True
