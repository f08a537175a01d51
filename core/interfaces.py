# core/interfaces.py
"""
Stable abstractions the rest of the engine depends on.
The orchestrator and front ends import only these interfaces, never the
concrete extractors or matchers.

Design notes:
- Container: anything with entries() and read(name): a directory tree or a
  ZIP-family archive. Nested archives are just another container.
- Extractor: turns raw bytes of one category into searchable units.
- Matcher: one search mode; decides hits from an entry name and/or units.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Iterator, List, Protocol

from .models import Category, ExtractedUnit, Hit, ScanReport, SearchMode, SearchSpec, WorkItem, EntryMeta

__all__ = ["Container", "Extractor", "Matcher", "ScanReportWriter"]


class Container(ABC):
    """
    A source of named members. Implementations must not be shared across
    threads; each worker opens its own.
    """

    @abstractmethod
    def entries(self) -> Iterator[EntryMeta]:
        """Lazily enumerate members. Restartable by calling again."""
        raise NotImplementedError

    @abstractmethod
    def read(self, name: str) -> bytes:
        """Return the full uncompressed bytes of one member."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any handle. Default: nothing to release."""

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class Extractor(ABC):
    """
    Produces the searchable units for one family of categories.
    Must be stateless: one instance serves every worker thread.
    """

    @abstractmethod
    def supports(self) -> Iterable[Category]:
        """
        Categories this extractor handles. The registry builds a
        category -> extractor lookup from this.
        """
        raise NotImplementedError

    @abstractmethod
    def extract(self, data: bytes, item: WorkItem, spec: SearchSpec) -> Iterator[ExtractedUnit]:
        """
        Yield units in file order. Never raise for undecodable content;
        replace bad sequences instead.
        """
        raise NotImplementedError


class Matcher(ABC):
    """
    A single search mode. Stateless; everything run-specific comes in
    through the SearchSpec.
    """

    @abstractmethod
    def mode(self) -> SearchMode:
        raise NotImplementedError

    @abstractmethod
    def applies_to(self, item: WorkItem) -> bool:
        """True if this item can produce hits in this mode at all."""
        raise NotImplementedError

    def resolves_by_name(self, item: WorkItem) -> bool:
        """
        True if match_name() is the whole decision, so the scheduler
        never reads the item's bytes.
        """
        return False

    def match_name(self, item: WorkItem, spec: SearchSpec) -> List[Hit]:
        """Hits derived from the entry/file name alone."""
        return []

    def match_units(self, item: WorkItem, units: Iterable[ExtractedUnit], spec: SearchSpec) -> Iterator[Hit]:
        """Hits derived from extracted content, in unit order."""
        return iter(())


class ScanReportWriter(Protocol):
    def write(self, report: ScanReport) -> None: ...
