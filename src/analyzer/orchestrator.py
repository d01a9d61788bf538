"""Scan orchestration: configuration, walking, batching and result upkeep.

One scan runs at a time; callers serialize scan() calls. The override store is
the only state shared with toggle/reset, and those never touch a result that
is still being computed.
"""
import asyncio
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from src.config import DEFAULT_BATCH_SIZE, DEFAULT_READ_CONCURRENCY, DEFAULT_SETTLE_DELAY
from src.errors import ProjectRootError
from .cancellation import CancellationToken
from .content_index import ContentIndex
from .debounce import DeferredRefresh
from .overrides import OverrideStatus, OverrideStore
from .project_config import ScanConfiguration, resolve_configuration
from .reference_engine import ReferenceGraph, base_name, find_unused, stem
from .walker import tracked_files, walk

logger = logging.getLogger(__name__)


class ScanState(str, Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    WALKING = "walking"
    BATCHING = "batching"
    AGGREGATING = "aggregating"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class ScanProgress:
    processed: int
    total: int
    message: str


@dataclass
class ScanResult:
    unused_files: List[str] = field(default_factory=list)
    cancelled: bool = False
    tracked_count: int = 0


ProgressCallback = Callable[[ScanProgress], None]


class ScanOrchestrator:
    """Drive the walker and the reference engine over a project."""

    def __init__(self, overrides: OverrideStore, batch_size: int = DEFAULT_BATCH_SIZE,
                 settle_delay: float = DEFAULT_SETTLE_DELAY,
                 read_concurrency: int = DEFAULT_READ_CONCURRENCY,
                 resolve_config: Callable[[Path], ScanConfiguration] = resolve_configuration,
                 on_refresh: Optional[Callable[[List[str]], None]] = None):
        """Initialize orchestrator.

        Args:
            overrides: Session override store (shared with toggle/reset)
            batch_size: Candidate files per batch
            settle_delay: Seconds to wait after a toggle before refreshing
            read_concurrency: Max concurrent content reads
            resolve_config: Configuration resolver (project root -> configuration)
            on_refresh: Receives the visible unused list whenever it changes
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.overrides = overrides
        self.batch_size = batch_size
        self.read_concurrency = read_concurrency
        self.resolve_config = resolve_config
        self.on_refresh = on_refresh

        self.state = ScanState.IDLE
        self.project_root: Optional[Path] = None
        self.configuration: Optional[ScanConfiguration] = None
        self.tracked: List[str] = []
        self.reference_graph = ReferenceGraph()
        self.result = ScanResult()
        self._refresh = DeferredRefresh(settle_delay, self.refresh)

    @property
    def unused_files(self) -> List[str]:
        return self.result.unused_files

    async def scan(self, project_root: str | Path,
                   progress: Optional[ProgressCallback] = None,
                   cancel_token: Optional[CancellationToken] = None) -> ScanResult:
        """Scan a project for unused files.

        Args:
            project_root: Root directory of the project
            progress: Called after each batch with files processed so far
            cancel_token: Cooperative cancellation; checked around the walk, before each batch,
                          between content reads and before each candidate

        Returns:
            ScanResult; on cancellation only fully completed batches are
            included and ``cancelled`` is True

        Raises:
            ProjectRootError: If project_root is not an existing directory
        """
        if cancel_token is None:
            cancel_token = CancellationToken()

        root = Path(project_root)
        if not root.is_dir():
            self.state = ScanState.FAILED
            raise ProjectRootError(project_root)
        root = root.resolve()

        self.project_root = root
        self.state = ScanState.CONFIGURING
        self.configuration = self.resolve_config(root)

        self.state = ScanState.WALKING
        if cancel_token.is_cancellation_requested:
            return self._finish_cancelled([])
        all_files = await asyncio.to_thread(
            walk, root, self.configuration.ignore_folders, self.configuration.ignore_root_files)
        if cancel_token.is_cancellation_requested:
            return self._finish_cancelled([])
        tracked = tracked_files(all_files, self.configuration)
        logger.debug("Walked %d files, %d tracked", len(all_files), len(tracked))

        self.state = ScanState.BATCHING
        index = ContentIndex(self.read_concurrency)
        graph = ReferenceGraph()
        total = len(tracked)
        processed = 0
        unused: List[str] = []

        for start in range(0, total, self.batch_size):
            if cancel_token.is_cancellation_requested:
                return self._finish_cancelled(unused, tracked, graph)

            batch = tracked[start:start + self.batch_size]
            outcome = await find_unused(batch, tracked, self.overrides, cancel_token, index, graph)
            if not outcome.completed:
                # Partially checked batches contribute nothing
                return self._finish_cancelled(unused, tracked, graph)
            unused.extend(outcome.unused)

            processed += len(batch)
            if progress is not None:
                progress(ScanProgress(processed, total, f"Processed {processed} of {total} files..."))

        self.state = ScanState.AGGREGATING
        self.tracked = tracked
        self.reference_graph = graph
        self.result = ScanResult(unused_files=unused, cancelled=False, tracked_count=total)
        self.state = ScanState.DONE
        logger.debug("Scan complete: %d unused of %d tracked", len(unused), total)
        self._emit_refresh()
        return self.result

    def _finish_cancelled(self, unused: List[str], tracked: Optional[List[str]] = None,
                          graph: Optional[ReferenceGraph] = None) -> ScanResult:
        self.state = ScanState.CANCELLED
        self.tracked = tracked or []
        if graph is not None:
            self.reference_graph = graph
        self.result = ScanResult(unused_files=list(unused), cancelled=True,
                                 tracked_count=len(self.tracked))
        logger.debug("Scan cancelled with %d unused files from completed batches", len(unused))
        self._emit_refresh()
        return self.result

    # -- result upkeep ---------------------------------------------------

    def on_delete(self, file_path: str | Path) -> bool:
        """Drop a deleted file from the current result (no rescan).

        Returns:
            True if the path was in the result
        """
        path = str(file_path)
        self.reference_graph.remove_file(path)
        if path in self.tracked:
            self.tracked.remove(path)
        if path not in self.result.unused_files:
            return False
        self.result.unused_files[:] = [f for f in self.result.unused_files if f != path]
        self._emit_refresh()
        return True

    def on_restore(self, file_path: str | Path) -> bool:
        """Put a file restored from the trash back into the current result.

        The file rejoins as unused, which was its verdict when it was trashed;
        the next scan decides it afresh.

        Returns:
            True if the file belongs to the scanned project and was added
        """
        path = str(file_path)
        if self.project_root is None or self.configuration is None:
            return False
        try:
            Path(path).relative_to(self.project_root)
        except ValueError:
            return False
        if not self.configuration.tracks(path) or path in self.result.unused_files:
            return False

        if path not in self.tracked:
            self.tracked.append(path)
        self.reference_graph.add_file(path)
        self.result.unused_files.append(path)
        self._emit_refresh()
        return True

    def evidence(self, file_path: str | Path) -> dict:
        """Describe why the last scan flagged a file, for the trash manifest."""
        path = str(file_path)
        searched_for = [base_name(path)]
        if stem(path):
            searched_for.append(stem(path))
        evidence = {
            "searched_for": searched_for,
            "tracked_files": max(self.result.tracked_count - 1, 0),
            "override": self.overrides.status(path).value,
            "cancelled_scan": self.result.cancelled,
        }
        if self.project_root is not None:
            evidence["project_root"] = str(self.project_root)
        return evidence

    def visible_unused_files(self) -> List[str]:
        """Current result minus files the user has marked as used."""
        return [f for f in self.result.unused_files if not self.overrides.get(f)]

    def is_marked_used(self, file_path: str | Path) -> bool:
        return self.overrides.get(file_path)

    def override_status(self, file_path: str | Path) -> OverrideStatus:
        return self.overrides.status(file_path)

    # -- override mutation -------------------------------------------------

    def toggle(self, file_path: str | Path) -> bool:
        """Flip a file's used/unused override and schedule a settled refresh.

        Returns:
            The new override value (True = marked used)
        """
        value = self.overrides.toggle(file_path)
        self._refresh.schedule()
        return value

    def reset(self, file_path: str | Path):
        """Clear a file's override and publish the visible list right away."""
        self.overrides.clear(file_path)
        self.refresh()

    def refresh(self):
        """Publish the visible unused list now."""
        self._refresh.cancel()
        self._emit_refresh()

    @property
    def refresh_pending(self) -> bool:
        return self._refresh.pending

    def _emit_refresh(self):
        if self.on_refresh is not None:
            self.on_refresh(self.visible_unused_files())

    def prune_missing(self) -> List[str]:
        """Remove result entries whose files no longer exist on disk."""
        missing = [f for f in self.result.unused_files if not os.path.exists(f)]
        for path in missing:
            self.on_delete(path)
        return missing
