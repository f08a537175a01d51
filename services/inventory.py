# services/inventory.py
"""
Archive inventory: a quick overview of every top-level archive under a root,
without searching anything.

Counts come from the central directory only; no member bytes are read.
Corrupt archives are reported with `error` set instead of being skipped.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Union

from core.errors import CorruptArchive, PathAccessError
from core.models import ArchiveSummary
from services.containers import ArchiveContainer, DirectoryContainer, check_root_dir
from utils.path_utils import is_archive_name, normalize_exclusions, suffix_lower

_logger = logging.getLogger(__name__)


def list_archives(
    root: Union[str, Path],
    exclusions: Iterable[str] = (),
    min_size: int = 0,
) -> List[ArchiveSummary]:
    """
    Return one ArchiveSummary per archive file, in walk order.

    Raises PathAccessError if the root is missing or unreadable.
    """
    root = check_root_dir(root)
    directory = DirectoryContainer(root, exclusions=normalize_exclusions(exclusions), min_size=min_size)
    summaries: List[ArchiveSummary] = []
    for meta in directory.entries():
        if not is_archive_name(meta.name):
            continue
        summaries.append(_summarize(Path(meta.name), meta.size_bytes))
    _logger.info("Listed %d archive(s) under %s", len(summaries), root)
    return summaries


def _summarize(path: Path, size_bytes: int) -> ArchiveSummary:
    try:
        archive = ArchiveContainer.open_path(path)
    except (CorruptArchive, PathAccessError) as exc:
        _logger.warning("Cannot list %s: %s", path, exc)
        return ArchiveSummary(path, 0, 0, 0, size_bytes, error=str(exc))

    classes = java = files = 0
    with archive:
        for entry in archive.entries():
            if entry.is_dir:
                continue
            files += 1
            ext = suffix_lower(entry.name)
            if ext == ".class":
                classes += 1
            elif ext == ".java":
                java += 1
    return ArchiveSummary(path, classes, java, files, size_bytes)
