"""Textual reference heuristic for unused file detection.

A file counts as used when its basename (``logo.png``) or its stem (``logo``)
appears anywhere in the content of another tracked file. This is deliberately
conservative: any textual co-occurrence is taken as evidence of use, because
flagging a used file for deletion is worse than missing an unused one.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

import networkx as nx

from .cancellation import CancellationToken
from .content_index import ContentIndex
from .overrides import OverrideStore

logger = logging.getLogger(__name__)


def base_name(file_path: str | Path) -> str:
    return os.path.basename(str(file_path))


def stem(file_path: str | Path) -> str:
    """Basename with its final extension segment removed.

    ``app.test.ts`` -> ``app.test``; a name without a dot has an empty stem.
    """
    name = base_name(file_path)
    if '.' not in name:
        return ''
    return name.rsplit('.', 1)[0]


class ReferenceGraph:
    """Directed graph of discovered references.

    Edge (A, B) means "the content of A mentions B". Only the first match
    found for each file is recorded, which is enough to explain a verdict.
    """

    def __init__(self):
        self.graph = nx.DiGraph()

    def add_file(self, file_path: str):
        self.graph.add_node(file_path)

    def add_reference(self, referrer: str, referenced: str, match: str):
        self.graph.add_edge(referrer, referenced, match=match)

    def referrers(self, file_path: str) -> List[str]:
        if file_path not in self.graph:
            return []
        return list(self.graph.predecessors(file_path))

    def match_kind(self, referrer: str, referenced: str) -> Optional[str]:
        data = self.graph.get_edge_data(referrer, referenced)
        return data['match'] if data else None

    def remove_file(self, file_path: str):
        if file_path in self.graph:
            self.graph.remove_node(file_path)

    def get_stats(self) -> dict:
        """Get statistics about the recorded references.

        Returns:
            Dictionary with file and reference counts
        """
        referenced = [n for n in self.graph.nodes() if self.graph.in_degree(n) > 0]
        return {
            'total_files': self.graph.number_of_nodes(),
            'references': self.graph.number_of_edges(),
            'referenced_files': len(referenced),
        }


@dataclass
class BatchOutcome:
    """Result of checking one batch of candidates.

    ``completed`` is False when cancellation stopped the batch early; files
    that were never checked are simply absent from ``unused``.
    """
    unused: List[str] = field(default_factory=list)
    checked: int = 0
    completed: bool = True


def find_match(candidate: str, content: str) -> Optional[str]:
    """Return 'basename' or 'stem' if content mentions the candidate, else None."""
    name = base_name(candidate)
    if name and name in content:
        return 'basename'
    file_stem = stem(candidate)
    if file_stem and file_stem in content:
        return 'stem'
    return None


async def find_unused(batch: Sequence[str], tracked: Sequence[str], overrides: OverrideStore,
                      cancel_token: Optional[CancellationToken] = None,
                      index: Optional[ContentIndex] = None,
                      graph: Optional[ReferenceGraph] = None) -> BatchOutcome:
    """Determine which files of a batch are not referenced by any other tracked file.

    Content matching runs against the full tracked set so files in other
    batches can still provide (or receive) references.

    Args:
        batch: Candidate files to classify
        tracked: Every tracked file of the scan
        overrides: User overrides; files marked used are skipped
        cancel_token: Polled before each candidate
        index: Shared content cache (one per scan)
        graph: Optional graph receiving the first reference found per file

    Returns:
        BatchOutcome with the unused subset in batch order
    """
    if index is None:
        index = ContentIndex()
    outcome = BatchOutcome()

    if not await index.warm(tracked, cancel_token):
        outcome.completed = False
        return outcome

    for candidate in batch:
        if cancel_token is not None and cancel_token.is_cancellation_requested:
            outcome.completed = False
            logger.debug("Cancelled after %d of %d files in batch", outcome.checked, len(batch))
            break

        outcome.checked += 1
        if graph is not None:
            graph.add_file(candidate)

        if overrides.get(candidate):
            continue

        is_used = False
        for other in tracked:
            if other == candidate:
                continue
            match = find_match(candidate, await index.get(other))
            if match:
                is_used = True
                if graph is not None:
                    graph.add_reference(other, candidate, match)
                break

        if not is_used:
            outcome.unused.append(candidate)

    return outcome
