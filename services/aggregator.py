# services/aggregator.py
"""
Result aggregator: the single place hits and counters are merged.

Workers never touch it; they return ItemOutcome objects and the dispatch
loop hands them to merge(). One lock guards every update so hit counts and
file counts can never drift apart.

Mini mode keeps a set of display paths already credited: the first hit of a
path is reported as "Found matches", later hits only bump total_hits.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

from core.models import Diagnostic, Hit, ScanStats, WorkItem

MINI_EXCERPT = "Found matches"


@dataclass
class ItemOutcome:
    """
    What one worker produced for one WorkItem: its hits (in unit order)
    or the diagnostic explaining why it was skipped.
    """
    item: WorkItem
    hits: List[Hit] = field(default_factory=list)
    diagnostic: Optional[Diagnostic] = None


class ResultAggregator:
    def __init__(self, mini: bool = False, jobs: int = 1) -> None:
        self._mini = mini
        self._lock = threading.Lock()
        self._hits: List[Hit] = []
        self._diagnostics: List[Diagnostic] = []
        self._credited: Set[str] = set()
        self._stats = ScanStats(jobs=jobs)

    def merge(self, outcome: ItemOutcome) -> None:
        with self._lock:
            self._stats.credit(outcome.item.category)
            if outcome.diagnostic is not None:
                self._diagnostics.append(outcome.diagnostic)
                self._stats.skipped += 1
                return
            self._stats.total_files += 1
            for hit in outcome.hits:
                self._add_hit(hit)

    def add_archives(self, names: Iterable[str]) -> None:
        with self._lock:
            for name in names:
                self._stats.credit_archive(name)

    def add_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> None:
        with self._lock:
            for d in diagnostics:
                self._diagnostics.append(d)
                self._stats.skipped += 1

    def finish(self, elapsed_seconds: float) -> Tuple[List[Hit], ScanStats, List[Diagnostic]]:
        """
        Freeze the run: hits sorted by display path (stable, so each file's
        hits keep their line order), stats with timing filled in.
        """
        with self._lock:
            self._stats.elapsed_seconds = elapsed_seconds
            self._stats.unique_files = len(self._credited)
            hits = sorted(self._hits, key=lambda h: h.display_path)
            diagnostics = sorted(self._diagnostics, key=lambda d: (d.location, d.error))
            return hits, self._stats, diagnostics

    # ---------- helpers ----------

    def _add_hit(self, hit: Hit) -> None:
        self._stats.total_hits += 1
        first = hit.display_path not in self._credited
        self._credited.add(hit.display_path)
        if not self._mini:
            self._hits.append(hit)
        elif first:
            self._hits.append(
                Hit(display_path=hit.display_path, line_number=None, excerpt=MINI_EXCERPT, kind_tag=hit.kind_tag)
            )
