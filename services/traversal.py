# services/traversal.py
"""
Traversal engine: turns a root directory into a stream of WorkItems.

Flow:
1) Walk the directory container (exclusions, symlinks, min size).
2) Classify each file. Plain files become one WorkItem each.
3) Top-level archives are enumerated from their central directory. Members
   become WorkItems; a member that is itself an archive becomes a WorkItem
   of category ARCHIVE, which the scheduler hands to a worker.
4) expand_nested() runs in that worker: it decompresses the nested archive
   once and lists its members the same way, up to max_depth.

Traversal is sequential and never reads member bytes. Problems with one path
or archive are recorded in `diagnostics` and the walk continues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from core.errors import CorruptArchive, PathAccessError, RecursionLimitExceeded, ScanError
from core.models import Category, Diagnostic, SearchSpec, WorkItem
from services.containers import ArchiveContainer, DirectoryContainer
from utils.path_utils import classify

_logger = logging.getLogger(__name__)


@dataclass
class NestedListing:
    """
    Members of one nested archive, listed by a worker.

    `data` holds the decompressed archive bytes so member batches can open
    it again without going back through the parent chain. It stays None
    when the archive could not be opened.
    """
    source: WorkItem
    data: Optional[bytes] = None
    items: List[WorkItem] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


class Traversal:
    """
    One pass over `root` for `spec`. Not reusable across threads; the
    scheduler consumes iter_items() from a single thread.
    """

    def __init__(self, root: Path, spec: SearchSpec) -> None:
        self.root = Path(root)
        self.spec = spec
        self.diagnostics: List[Diagnostic] = []
        # Names of top-level archives opened successfully.
        self.archives: List[str] = []

    def iter_items(self) -> Iterator[WorkItem]:
        directory = DirectoryContainer(
            self.root,
            exclusions=self.spec.exclusions,
            min_size=self.spec.min_size,
            diagnostics=self.diagnostics,
        )
        for meta in directory.entries():
            path = Path(meta.name)
            category = classify(path)
            if category is Category.ARCHIVE:
                yield from self._expand_archive(path)
                continue
            yield WorkItem(
                origin_path=path,
                container_chain=(),
                entry_name=str(path),
                category=category,
                size_bytes=meta.size_bytes,
            )

    def _expand_archive(self, path: Path) -> Iterator[WorkItem]:
        _logger.debug("Processing archive: %s", path)
        try:
            archive = ArchiveContainer.open_path(path)
        except (CorruptArchive, PathAccessError) as exc:
            _record(self.diagnostics, exc)
            return
        with archive:
            self.archives.append(path.name)
            yield from list_members(path, archive, (), self.spec.max_depth, self.diagnostics)


def list_members(
    origin: Path,
    archive: ArchiveContainer,
    chain: Tuple[str, ...],
    max_depth: int,
    diagnostics: List[Diagnostic],
) -> Iterator[WorkItem]:
    """
    Yield a WorkItem per file member of `archive`. Nested archives come out
    as ARCHIVE items, unless opening them would exceed max_depth.
    """
    for meta in archive.entries():
        if meta.is_dir:
            continue
        category = classify(meta.name)
        if category is Category.ARCHIVE and len(chain) >= max_depth:
            _record(diagnostics, RecursionLimitExceeded(
                f"Nested archive deeper than max depth {max_depth}",
                "!".join([str(origin), *chain, meta.name]),
            ))
            continue
        yield WorkItem(
            origin_path=origin,
            container_chain=chain,
            entry_name=meta.name,
            category=category,
            size_bytes=meta.size_bytes,
            archive_member=True,
        )


def expand_nested(item: WorkItem, data: bytes, max_depth: int) -> NestedListing:
    """Open the bytes of the nested archive `item` and list its members."""
    listing = NestedListing(item)
    try:
        nested = ArchiveContainer.open_bytes(data, item.display_path)
    except CorruptArchive as exc:
        _record(listing.diagnostics, exc)
        return listing
    chain = item.container_chain + (item.entry_name,)
    with nested:
        listing.items = list(list_members(item.origin_path, nested, chain, max_depth, listing.diagnostics))
    listing.data = data
    _logger.debug("Listed %d member(s) of %s", len(listing.items), item.display_path)
    return listing


def _record(diagnostics: List[Diagnostic], exc: ScanError) -> None:
    _logger.warning("Skipping %s: %s", exc.location, exc)
    diagnostics.append(Diagnostic(location=exc.location, error=type(exc).__name__, detail=str(exc)))
