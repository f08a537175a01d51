# core/registry.py
"""
Lightweight plugin registry for extractors and matchers.

Usage pattern:
- Each concrete extractor/matcher module creates an instance and calls
  register_extractor(...) / register_matcher(...) at import time.
- The orchestrator asks this registry for the extractor of a Category and
  the matcher of a SearchMode; it never imports concretes directly.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .interfaces import Extractor, Matcher
from .models import Category, SearchMode

# Internal stores (module-private): stateless singleton-like instances.
_EXTRACTORS: List[Extractor] = []
_MATCHERS: List[Matcher] = []


def register_extractor(e: Extractor) -> None:
    """
    Register an extractor instance if one of the same class is not already
    present (modules may be imported more than once in some environments).
    """
    if not any(isinstance(existing, type(e)) for existing in _EXTRACTORS):
        _EXTRACTORS.append(e)


def register_matcher(m: Matcher) -> None:
    """Register a matcher instance; one instance per matcher class."""
    if not any(isinstance(existing, type(m)) for existing in _MATCHERS):
        _MATCHERS.append(m)


def extractors() -> List[Extractor]:
    """Shallow copy so callers cannot mutate the internal list."""
    return list(_EXTRACTORS)


def matchers() -> List[Matcher]:
    return list(_MATCHERS)


def extractor_index() -> Dict[Category, Extractor]:
    """
    Category -> extractor for O(1) routing.
    If several extractors claim a category, the last registered wins.
    """
    index: Dict[Category, Extractor] = {}
    for e in _EXTRACTORS:
        for category in e.supports():
            index[category] = e
    return index


def matcher_for(mode: SearchMode) -> Optional[Matcher]:
    for m in _MATCHERS:
        if m.mode() is mode:
            return m
    return None


def load_builtins() -> None:
    """
    Import the bundled extractors and matchers so they self-register.
    Safe to call repeatedly.
    """
    import extractors.text_extractor      # noqa: F401
    import extractors.bytecode_extractor  # noqa: F401
    import extractors.binary_extractor    # noqa: F401
    import matchers.name_matchers         # noqa: F401
    import matchers.content_matchers      # noqa: F401

