# matchers/content_matchers.py
"""
Content matchers: regex over class-file strings, and master search.

- BytecodeContentMatcher ("content" mode): the compiled regex is tested
  against every string carved from a class file.
- MasterMatcher ("master" mode): every non-archive item; the regex is
  tested against the file/entry name and then against every unit the
  category's extractor yields (lines, or carved strings for bytecode and
  binary blobs).

Hits keep unit order, so hits of one file come out in line order.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List

from core.interfaces import Matcher
from core.models import Category, ExtractedUnit, Hit, SearchMode, SearchSpec, WorkItem
from core.registry import register_matcher


def _unit_hits(item: WorkItem, units: Iterable[ExtractedUnit], spec: SearchSpec) -> Iterator[Hit]:
    regex = spec.regex
    if regex is None:
        return
    display = item.display_path
    for unit in units:
        if regex.search(unit.text):
            excerpt = unit.text.strip() if unit.line_number is not None else unit.text
            yield Hit(
                display_path=display,
                line_number=unit.line_number,
                excerpt=excerpt,
                kind_tag=unit.kind_tag,
            )


class BytecodeContentMatcher(Matcher):
    def mode(self) -> SearchMode:
        return SearchMode.CONTENT

    def applies_to(self, item: WorkItem) -> bool:
        return item.category is Category.CLASS

    def match_units(self, item: WorkItem, units: Iterable[ExtractedUnit], spec: SearchSpec) -> Iterator[Hit]:
        return _unit_hits(item, units, spec)


class MasterMatcher(Matcher):
    def mode(self) -> SearchMode:
        return SearchMode.MASTER

    def applies_to(self, item: WorkItem) -> bool:
        return item.category not in (Category.ARCHIVE, Category.DIRECTORY)

    def match_name(self, item: WorkItem, spec: SearchSpec) -> List[Hit]:
        name = item.entry_name if item.archive_member else item.base_name
        if spec.regex is not None and spec.regex.search(name):
            return [Hit(display_path=item.display_path, line_number=None, excerpt=name, kind_tag="filename")]
        return []

    def match_units(self, item: WorkItem, units: Iterable[ExtractedUnit], spec: SearchSpec) -> Iterator[Hit]:
        return _unit_hits(item, units, spec)


# Register on import
register_matcher(BytecodeContentMatcher())
register_matcher(MasterMatcher())
