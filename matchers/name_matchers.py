# matchers/name_matchers.py
"""
Name-based matchers: exact class, class-contains and package.

All three look only at the entry name ("com/example/Util.class" ->
"com.example.Util") and never need the entry's bytes, so the scheduler
skips reading them entirely (resolves_by_name() is True).

Each matcher:
- Applies to class items only.
- Returns at most one Hit per item, with the fully-qualified name as excerpt.
- Registers itself at import time.
"""

from __future__ import annotations

from typing import List

from core.interfaces import Matcher
from core.models import Category, Hit, SearchMode, SearchSpec, WorkItem
from core.registry import register_matcher
from utils.path_utils import class_name_from_entry, package_from_entry


def _qualified_name(item: WorkItem) -> str:
    # Loose .class files have no package root, only their stem.
    if item.archive_member:
        return class_name_from_entry(item.entry_name)
    return class_name_from_entry(item.base_name)


def _hit(item: WorkItem, excerpt: str, kind: str) -> Hit:
    return Hit(display_path=item.display_path, line_number=None, excerpt=excerpt, kind_tag=kind)


class _ClassNameMatcher(Matcher):
    def applies_to(self, item: WorkItem) -> bool:
        return item.category is Category.CLASS

    def resolves_by_name(self, item: WorkItem) -> bool:
        return True


#Exact class name, case-sensitive
class ExactClassMatcher(_ClassNameMatcher):
    """
    Matches when the simple class name equals the pattern, or the whole
    fully-qualified name does. "Map" therefore never matches "HashMap".
    """

    def mode(self) -> SearchMode:
        return SearchMode.EXACT

    def match_name(self, item: WorkItem, spec: SearchSpec) -> List[Hit]:
        fqn = _qualified_name(item)
        simple = fqn.rsplit(".", 1)[-1]
        if simple == spec.pattern or fqn == spec.pattern:
            return [_hit(item, fqn, "class")]
        return []


#Class name contains
class ClassContainsMatcher(_ClassNameMatcher):
    """
    Matches when the pattern is a literal substring of the fully-qualified
    name, or (for regex-looking patterns) when the regex finds it.
    """

    def mode(self) -> SearchMode:
        return SearchMode.SUBSTRING

    def match_name(self, item: WorkItem, spec: SearchSpec) -> List[Hit]:
        fqn = _qualified_name(item)
        if spec.pattern in fqn or (spec.regex is not None and spec.regex.search(fqn)):
            return [_hit(item, fqn, "class")]
        return []


#Package prefix
class PackageMatcher(_ClassNameMatcher):
    """
    Matches archive members whose package (directory path, dotted)
    starts with the pattern.
    """

    def mode(self) -> SearchMode:
        return SearchMode.PACKAGE

    def applies_to(self, item: WorkItem) -> bool:
        return item.category is Category.CLASS and item.archive_member

    def match_name(self, item: WorkItem, spec: SearchSpec) -> List[Hit]:
        package = package_from_entry(item.entry_name)
        if package and package.startswith(spec.pattern):
            return [_hit(item, class_name_from_entry(item.entry_name), "package")]
        return []


# Register on import
register_matcher(ExactClassMatcher())
register_matcher(ClassContainsMatcher())
register_matcher(PackageMatcher())
