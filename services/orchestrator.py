# services/orchestrator.py
"""
High-level coordinator: walks the tree, fans work items out over a fixed
thread pool, runs extractor + matcher per item, and folds the outcomes into
one ScanReport.

This module deliberately depends only on:
- core.interfaces + core.models (abstractions)
- core.registry (to find the extractor/matcher for a category/mode)
- services.traversal / services.containers / services.aggregator

It does NOT import concrete extractors or matchers directly.

Protocol:
- Traversal runs in the calling thread and yields WorkItems. It reads
  archive directories only, never member bytes.
- Consecutive items of the same container are grouped into batches, so a
  worker opens at most one archive handle per batch, and only when an item
  actually needs bytes.
- A nested archive is expanded by the worker that holds its parent: it is
  decompressed once, and its member batches carry those bytes back out to
  the dispatcher, which schedules them like any other batch.
- The calling thread is the single consumer of finished batches; it merges
  them into the ResultAggregator. Nothing is visible before run_scan returns.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Deque, Dict, Iterable, Iterator, List, Optional, Set

from core import registry
from core.errors import PathAccessError, ScanError
from core.interfaces import Extractor, Matcher
from core.models import Category, Diagnostic, RunHeader, ScanReport, SearchSpec, WorkItem
from services.aggregator import ItemOutcome, ResultAggregator
from services.containers import ArchiveContainer, check_root_dir
from services.traversal import NestedListing, Traversal, expand_nested

_logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0-hits"
DEFAULT_BATCH_SIZE = 256

# A tiny type alias for a UI-friendly progress callback:
# on_progress(items_done, current_display_path)
ProgressFn = Callable[[int, str], None]


@dataclass
class _Batch:
    items: List[WorkItem]
    # Bytes of the innermost nested archive; None for plain files and
    # members of a top-level archive.
    data: Optional[bytes] = None


@dataclass
class _BatchResult:
    outcomes: List[ItemOutcome] = field(default_factory=list)
    listings: List[NestedListing] = field(default_factory=list)


class Orchestrator:
    """
    Coordinates one scan. Stateless across runs aside from the cancel flag
    and an optional progress callback.

    Usage:
        spec = build_search_spec("master", "password", job_count=8)
        report = Orchestrator(spec).run_scan("/opt/app")
    """

    def __init__(
        self,
        spec: SearchSpec,
        on_progress: Optional[ProgressFn] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        registry.load_builtins()
        matcher = registry.matcher_for(spec.mode)
        if matcher is None:
            raise ValueError(f"No matcher registered for mode {spec.mode.value!r}")
        self._spec = spec
        self._matcher: Matcher = matcher
        self._extractors: Dict[Category, Extractor] = registry.extractor_index()
        self._on_progress = on_progress
        self._batch_size = max(1, int(batch_size))
        self._cancel = threading.Event()

    def cancel(self) -> None:
        """
        Soft cancel: stop dispatching new batches. Batches already handed
        to workers still complete and are merged.
        """
        self._cancel.set()

    def run_scan(self, root: str | Path) -> ScanReport:
        """
        Scan `root` and block until every dispatched item is merged.

        Raises PathAccessError if the root is missing, not a directory or
        unreadable. Every other per-path problem ends up in report.diagnostics.
        """
        root_path = check_root_dir(root)

        spec = self._spec
        started = datetime.now(timezone.utc)
        t0 = time.perf_counter()
        _logger.info(
            "Starting %s search for %r in %s (%d jobs)", spec.mode.value, spec.pattern, root_path, spec.job_count
        )

        traversal = Traversal(root_path, spec)
        aggregator = ResultAggregator(mini=spec.mini, jobs=spec.job_count)
        max_pending = spec.job_count * 4
        done_items = 0

        with ThreadPoolExecutor(max_workers=spec.job_count, thread_name_prefix="jarscope") as pool:
            pending: Set[Future] = set()
            # Member batches of nested archives, fed back by workers.
            backlog: Deque[_Batch] = deque()
            batches = _batched(traversal.iter_items(), self._batch_size)
            try:
                while not self._cancel.is_set():
                    if backlog:
                        batch = backlog.popleft()
                    else:
                        items = next(batches, None)
                        if items is None:
                            if not pending:
                                break
                            done, pending = wait(pending, return_when=FIRST_COMPLETED)
                            done_items = self._drain(done, aggregator, backlog, done_items)
                            continue
                        batch = _Batch(items)
                    pending.add(pool.submit(self._run_batch, batch))
                    if len(pending) >= max_pending:
                        done, pending = wait(pending, return_when=FIRST_COMPLETED)
                        done_items = self._drain(done, aggregator, backlog, done_items)
            finally:
                # Closes any archive the walk still holds open
                batches.close()
            if self._cancel.is_set():
                _logger.info("Scan cancelled; waiting for %d in-flight batch(es)", len(pending))
            done, _ = wait(pending)
            done_items = self._drain(done, aggregator, backlog, done_items)

        aggregator.add_archives(traversal.archives)
        aggregator.add_diagnostics(traversal.diagnostics)
        hits, stats, diagnostics = aggregator.finish(time.perf_counter() - t0)

        header = RunHeader(
            schema_version=SCHEMA_VERSION,
            run_id=str(uuid.uuid4()),
            root=root_path,
            mode=spec.mode,
            pattern=spec.pattern,
            started_at_utc=started,
            finished_at_utc=datetime.now(timezone.utc),
            config_snapshot=spec.snapshot(),
        )
        _logger.info(
            "Scan of %s finished: %d hit(s) in %d file(s), %d skipped, %.2fs",
            root_path, stats.total_hits, stats.total_files, stats.skipped, stats.elapsed_seconds,
        )
        return ScanReport(header=header, hits=hits, stats=stats, diagnostics=diagnostics)

    # ---------- worker side ----------

    def _run_batch(self, batch: _Batch) -> _BatchResult:
        """Runs in a pool thread. Owns its archive handle for the batch."""
        reader = _BatchReader(batch)
        result = _BatchResult()
        try:
            for item in batch.items:
                if item.category is Category.ARCHIVE:
                    result.listings.append(self._expand_item(item, reader))
                else:
                    result.outcomes.append(self._run_item(item, reader))
        finally:
            reader.close()
        return result

    def _run_item(self, item: WorkItem, reader: "_BatchReader") -> ItemOutcome:
        matcher = self._matcher
        spec = self._spec
        if not matcher.applies_to(item):
            return ItemOutcome(item)
        try:
            hits = list(matcher.match_name(item, spec))
            if not matcher.resolves_by_name(item):
                extractor = self._extractors.get(item.category)
                if extractor is not None:
                    data = reader.read(item)
                    units = extractor.extract(data, item, spec)
                    hits.extend(matcher.match_units(item, units, spec))
            return ItemOutcome(item, hits=hits)
        except ScanError as exc:
            _logger.warning("Skipping %s: %s", item.display_path, exc)
            return ItemOutcome(item, diagnostic=_diagnostic(item, exc))
        except Exception as exc:
            # One bad file must not abort a scan of thousands.
            _logger.exception("Unexpected error while scanning %s", item.display_path)
            return ItemOutcome(item, diagnostic=_diagnostic(item, exc))

    def _expand_item(self, item: WorkItem, reader: "_BatchReader") -> NestedListing:
        try:
            return expand_nested(item, reader.read(item), self._spec.max_depth)
        except ScanError as exc:
            _logger.warning("Skipping %s: %s", item.display_path, exc)
            return NestedListing(item, diagnostics=[_diagnostic(item, exc)])
        except Exception as exc:
            _logger.exception("Unexpected error while opening %s", item.display_path)
            return NestedListing(item, diagnostics=[_diagnostic(item, exc)])

    # ---------- consumer side ----------

    def _drain(
        self,
        done: Iterable[Future],
        aggregator: ResultAggregator,
        backlog: Deque[_Batch],
        done_items: int,
    ) -> int:
        for fut in done:
            result = fut.result()
            for outcome in result.outcomes:
                aggregator.merge(outcome)
                done_items += 1
                if self._on_progress:
                    self._on_progress(done_items, outcome.item.display_path)
            for listing in result.listings:
                aggregator.add_diagnostics(listing.diagnostics)
                if listing.data is None:
                    continue
                aggregator.add_archives([listing.source.entry_name])
                for items in _batched(iter(listing.items), self._batch_size):
                    backlog.append(_Batch(items, listing.data))
        return done_items


class _BatchReader:
    """
    Reads item bytes for one batch. All archive members of a batch share a
    container, which is opened lazily on the first read: from disk for a
    top-level archive, from the batch's bytes for a nested one.
    """

    def __init__(self, batch: _Batch) -> None:
        self._first = batch.items[0]
        self._data = batch.data
        self._archive: Optional[ArchiveContainer] = None
        self._open_error: Optional[ScanError] = None

    def read(self, item: WorkItem) -> bytes:
        if not item.archive_member:
            try:
                return item.origin_path.read_bytes()
            except OSError as exc:
                raise PathAccessError(f"Cannot read file: {exc.strerror or exc}", str(item.origin_path)) from exc
        return self._container().read(item.entry_name)

    def _container(self) -> ArchiveContainer:
        if self._open_error is not None:
            raise self._open_error
        if self._archive is None:
            first = self._first
            try:
                if self._data is None:
                    self._archive = ArchiveContainer.open_path(first.origin_path)
                else:
                    label = "!".join([str(first.origin_path), *first.container_chain])
                    self._archive = ArchiveContainer.open_bytes(self._data, label)
            except ScanError as exc:
                self._open_error = exc
                raise
        return self._archive

    def close(self) -> None:
        if self._archive is not None:
            self._archive.close()
            self._archive = None


# ---------- helpers ----------

def _batched(items: Iterator[WorkItem], size: int) -> Iterator[List[WorkItem]]:
    """Group consecutive items sharing a container into lists of <= size."""
    batch: List[WorkItem] = []
    key = None
    for item in items:
        if batch and (item.container_key != key or len(batch) >= size):
            yield batch
            batch = []
        key = item.container_key
        batch.append(item)
    if batch:
        yield batch


def _diagnostic(item: WorkItem, exc: BaseException) -> Diagnostic:
    return Diagnostic(
        location=item.display_path,
        error=type(exc).__name__,
        detail=str(exc) or exc.__class__.__name__,
    )
