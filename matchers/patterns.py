# matchers/patterns.py
"""
Pattern handling shared by every search mode, and the SearchSpec factory.

One rule decides literal vs regex for the whole tool:
- exact, package       -> always literal, no regex compiled
- substring            -> literal; additionally a regex when the pattern
                          contains regex metacharacters
- content              -> strict regex; a pattern that does not compile is
                          rejected with InvalidPattern
- master               -> regex, falling back to the escaped literal when
                          the pattern does not compile

API:
- looks_like_regex(pattern) -> bool
- compile_pattern(pattern, strict) -> re.Pattern
- build_search_spec(mode, pattern, ...) -> SearchSpec
"""

from __future__ import annotations

import logging
import os
import re
from typing import Iterable, Optional, Pattern, Union

from core.errors import InvalidPattern
from core.models import SearchMode, SearchSpec
from utils.path_utils import normalize_exclusions

_logger = logging.getLogger(__name__)

_REGEX_METACHARACTERS = frozenset(".^$*+?{}[]\\|()")


def looks_like_regex(pattern: str) -> bool:
    """True if the pattern contains any regex metacharacter."""
    return any(ch in _REGEX_METACHARACTERS for ch in pattern)


def compile_pattern(pattern: str, strict: bool) -> Pattern[str]:
    """
    Compile `pattern` as a regex.

    strict=True raises InvalidPattern on a compile error; strict=False
    logs a warning and matches the pattern literally instead.
    """
    try:
        return re.compile(pattern)
    except re.error as exc:
        if strict:
            raise InvalidPattern(f"Invalid regex {pattern!r}: {exc}") from exc
        _logger.warning("Pattern %r is not a valid regex (%s); matching it literally", pattern, exc)
        return re.compile(re.escape(pattern))


def _regex_for_mode(mode: SearchMode, pattern: str) -> Optional[Pattern[str]]:
    if mode is SearchMode.CONTENT:
        return compile_pattern(pattern, strict=True)
    if mode is SearchMode.MASTER:
        return compile_pattern(pattern, strict=False)
    if mode is SearchMode.SUBSTRING and looks_like_regex(pattern):
        return compile_pattern(pattern, strict=False)
    return None


def build_search_spec(
    mode: Union[SearchMode, str],
    pattern: str,
    *,
    exclusions: Iterable[str] = (),
    min_size: int = 0,
    mini: bool = False,
    job_count: Optional[int] = None,
    max_depth: int = 8,
    min_string_length: int = 4,
    carve_include_tab: bool = True,
) -> SearchSpec:
    """
    Validate inputs and compile the pattern once for the whole run.

    Raises:
        InvalidPattern: empty pattern, or a content-mode regex that does not compile.
        ValueError: negative sizes/depths or a job count below 1.
    """
    mode = SearchMode(mode)
    if pattern is None or pattern == "":
        raise InvalidPattern("Search pattern must not be empty")
    if min_size < 0:
        raise ValueError("min_size must be >= 0")
    if max_depth < 0:
        raise ValueError("max_depth must be >= 0")
    if min_string_length < 1:
        raise ValueError("min_string_length must be >= 1")

    jobs = job_count if job_count else (os.cpu_count() or 1)
    if jobs < 1:
        raise ValueError("job_count must be >= 1")

    # Package patterns may be written with slashes ("com/example").
    if mode is SearchMode.PACKAGE:
        pattern = pattern.replace("/", ".").strip(".")
        if not pattern:
            raise InvalidPattern("Package pattern must name at least one segment")

    return SearchSpec(
        mode=mode,
        pattern=pattern,
        regex=_regex_for_mode(mode, pattern),
        exclusions=normalize_exclusions(exclusions),
        min_size=int(min_size),
        mini=bool(mini),
        job_count=int(jobs),
        max_depth=int(max_depth),
        min_string_length=int(min_string_length),
        carve_include_tab=bool(carve_include_tab),
    )
