# core/models.py
"""
Plain data shapes for the search engine (no parsing, no I/O).
These are the contracts that traversal, extractors, matchers and the
aggregator speak.

Design goals:
- Minimal and framework-agnostic (easy to test and reason about).
- Immutable where it matters: specs, work items and hits are shared across
  worker threads and must never change after creation.
- ScanStats is the one mutable shape, owned by the aggregator for a run.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Pattern, Tuple


class Category(Enum):
    """
    What kind of file a path is. Drives which extractor runs and which
    matchers apply.
    """
    ARCHIVE = "archive"
    CLASS = "class"
    JAVA = "java"
    CONFIG = "config"
    SCRIPT = "script"
    MARKUP = "markup"
    TEXT = "text"
    OTHER = "other"
    DIRECTORY = "directory"


class SearchMode(Enum):
    EXACT = "exact"
    SUBSTRING = "substring"
    PACKAGE = "package"
    CONTENT = "content"
    MASTER = "master"


@dataclass(frozen=True)
class EntryMeta:
    """
    One member of a container as enumerated, before any bytes are read.

    For archives `name` is the member path ("com/example/Util.class");
    for directories it is the absolute filesystem path.
    """
    name: str
    size_bytes: int
    compressed_size: int = 0
    compressed: bool = False
    is_dir: bool = False


@dataclass(frozen=True)
class WorkItem:
    """
    One matchable unit: a filesystem file or a (possibly nested) archive member.

    Fields:
    - origin_path: filesystem path of the top-level file.
    - container_chain: nested archive names walked below the origin archive,
      e.g. ("lib/inner.jar",). Empty for plain files and for direct members
      of a top-level archive.
    - entry_name: member path in the innermost archive, or str(origin_path).
    - category: classifier output.
    - size_bytes: uncompressed size as reported by the filesystem/archive.
    - archive_member: True when the unit lives inside an archive.
    """
    origin_path: Path
    container_chain: Tuple[str, ...]
    entry_name: str
    category: Category
    size_bytes: int
    archive_member: bool = False

    @property
    def display_path(self) -> str:
        if not self.archive_member:
            return str(self.origin_path)
        return "!".join([str(self.origin_path), *self.container_chain, self.entry_name])

    @property
    def container_key(self) -> Tuple[str, Tuple[str, ...]]:
        """Items with the same key can be read through one archive handle."""
        if not self.archive_member:
            return ("", ())
        return (str(self.origin_path), self.container_chain)

    @property
    def base_name(self) -> str:
        return self.entry_name.replace("\\", "/").rsplit("/", 1)[-1]


@dataclass(frozen=True)
class ExtractedUnit:
    """
    One searchable piece of a file: a text line (with its 1-based number)
    or a carved printable string (no line number).
    """
    line_number: Optional[int]
    text: str
    kind_tag: str


@dataclass(frozen=True)
class SearchSpec:
    """
    Immutable configuration for one run. Built once (see
    matchers.patterns.build_search_spec) and shared read-only by every worker.

    - regex: compiled once per run; None for modes that compare literally.
    - exclusions: normalized substrings matched against absolute POSIX paths.
    """
    mode: SearchMode
    pattern: str
    regex: Optional[Pattern[str]] = None
    exclusions: FrozenSet[str] = frozenset()
    min_size: int = 0
    mini: bool = False
    job_count: int = 1
    max_depth: int = 8
    min_string_length: int = 4
    carve_include_tab: bool = True

    def snapshot(self) -> Dict[str, Any]:
        """JSON-friendly view for report headers."""
        return {
            "mode": self.mode.value,
            "pattern": self.pattern,
            "regex": self.regex.pattern if isinstance(self.regex, re.Pattern) else None,
            "exclusions": sorted(self.exclusions),
            "min_size": self.min_size,
            "mini": self.mini,
            "job_count": self.job_count,
            "max_depth": self.max_depth,
            "min_string_length": self.min_string_length,
            "carve_include_tab": self.carve_include_tab,
        }


@dataclass(frozen=True)
class Hit:
    """
    One reported match.

    - display_path: origin path plus container chain, e.g. "app.jar!inner.jar!Foo.class".
    - line_number: present for line-oriented text only.
    - excerpt: the matched line (stripped), carved string or class name.
    - kind_tag: presentation label such as "config", "class_bytecode", "package".
    """
    display_path: str
    line_number: Optional[int]
    excerpt: str
    kind_tag: str


@dataclass(frozen=True)
class Diagnostic:
    """A skipped path or entry with the error that caused the skip."""
    location: str
    error: str
    detail: str


# Category -> ScanStats counter field. Archives are split by extension.
_COUNTER_FIELDS: Dict[Category, str] = {
    Category.CLASS: "class_files",
    Category.JAVA: "java_files",
    Category.CONFIG: "config_files",
    Category.SCRIPT: "script_files",
    Category.MARKUP: "markup_files",
    Category.TEXT: "text_files",
    Category.OTHER: "other_files",
}


@dataclass
class ScanStats:
    """
    Run counters. Created empty at run start, updated only by the
    aggregator, read-only once the run completes.
    """
    jar_files: int = 0
    zip_files: int = 0
    class_files: int = 0
    java_files: int = 0
    config_files: int = 0
    script_files: int = 0
    markup_files: int = 0
    text_files: int = 0
    other_files: int = 0
    total_files: int = 0
    total_hits: int = 0
    unique_files: int = 0
    skipped: int = 0
    elapsed_seconds: float = 0.0
    jobs: int = 0

    def credit(self, category: Category) -> None:
        name = _COUNTER_FIELDS.get(category)
        if name is not None:
            setattr(self, name, getattr(self, name) + 1)

    def credit_archive(self, name: str) -> None:
        if name.lower().endswith(".jar"):
            self.jar_files += 1
        else:
            self.zip_files += 1

    def counters(self) -> Dict[str, int]:
        """Every counter except timing and pool size (stable across runs)."""
        data = asdict(self)
        data.pop("elapsed_seconds")
        data.pop("jobs")
        return data

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RunHeader:
    """
    Metadata about a scan run to make exports self-describing.
    """
    schema_version: str                 # e.g., "1.0-hits"
    run_id: str                         # uuid4 string
    root: Path                          # scanned folder
    mode: SearchMode
    pattern: str
    started_at_utc: datetime            # timezone-aware
    finished_at_utc: datetime           # timezone-aware
    config_snapshot: Dict[str, Any]


@dataclass(frozen=True)
class ScanReport:
    """
    The finished result handed to presentation: header + hits + counters.
    """
    header: RunHeader
    hits: List[Hit] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass(frozen=True)
class ArchiveSummary:
    """Inventory row for one top-level archive (see services.inventory)."""
    path: Path
    class_count: int
    java_count: int
    file_count: int
    size_bytes: int
    error: Optional[str] = None
