# utils/path_utils.py
"""
Path utilities: classification and exclusion filters.

Goals:
- Single responsibility: decide what a path *is* (no reading, no matching).
- Windows-friendly, but cross-platform safe: exclusions compare against
  forward-slash absolute paths.
- Allocation-light helpers, since they run once per file and archive member.

Extension groups (case-insensitive):
    archive  jar zip war ear
    class    class
    java     java
    config   properties conf config cfg ini
    script   bat cmd sh py rb ps1
    markup   xml xsd xsl xslt json yaml yml
    text     txt md log
Anything else is "other"; it is never rejected.
"""

from __future__ import annotations

import os
from pathlib import PurePath
from typing import Dict, Iterable, FrozenSet, Union

from core.models import Category

PathLike = Union[str, PurePath]

_EXTENSION_GROUPS: Dict[Category, FrozenSet[str]] = {
    Category.ARCHIVE: frozenset({".jar", ".zip", ".war", ".ear"}),
    Category.CLASS: frozenset({".class"}),
    Category.JAVA: frozenset({".java"}),
    Category.CONFIG: frozenset({".properties", ".conf", ".config", ".cfg", ".ini"}),
    Category.SCRIPT: frozenset({".bat", ".cmd", ".sh", ".py", ".rb", ".ps1"}),
    Category.MARKUP: frozenset({".xml", ".xsd", ".xsl", ".xslt", ".json", ".yaml", ".yml"}),
    Category.TEXT: frozenset({".txt", ".md", ".log"}),
}

# Flattened for O(1) lookups in the walk loop.
_BY_EXTENSION: Dict[str, Category] = {
    ext: category for category, exts in _EXTENSION_GROUPS.items() for ext in exts
}

ARCHIVE_EXTENSIONS: FrozenSet[str] = _EXTENSION_GROUPS[Category.ARCHIVE]


def classify(path: PathLike, is_dir: bool = False) -> Category:
    """
    Map a filesystem path or archive member name to a Category.

    Pure function of the extension and the directory flag. Archive member
    names ending in "/" are directories too.
    """
    name = str(path)
    if is_dir or name.endswith("/"):
        return Category.DIRECTORY
    return _BY_EXTENSION.get(suffix_lower(name), Category.OTHER)


def is_archive_name(name: str) -> bool:
    return suffix_lower(name) in ARCHIVE_EXTENSIONS


def suffix_lower(filename: str) -> str:
    """
    Fast, allocation-light way to get a lowercase suffix from a file or
    member name. Only the last path component counts, so "a.b/c" has none.
    """
    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    idx = base.rfind(".")
    if idx <= 0:
        return ""
    return base[idx:].lower()


def normalize_path(path: PathLike) -> str:
    """
    Absolute, forward-slash form used for exclusion matching.
    Does not resolve symlinks (the walk never follows them).
    """
    return os.path.abspath(os.fspath(path)).replace("\\", "/")


def normalize_exclusions(exclusions: Iterable[str]) -> FrozenSet[str]:
    """Strip blanks and use forward slashes so patterns match normalize_path()."""
    norm = set()
    for e in exclusions:
        s = str(e).strip().replace("\\", "/")
        if s:
            norm.add(s)
    return frozenset(norm)


def is_excluded(path: PathLike, exclusions: Iterable[str]) -> bool:
    """True if any exclusion is a substring of the normalized path."""
    if not exclusions:
        return False
    normalized = normalize_path(path)
    return any(e in normalized for e in exclusions)


def class_name_from_entry(entry_name: str) -> str:
    """
    "com/example/Util.class" -> "com.example.Util".
    Works for loose files too, where it yields the bare file stem.
    """
    name = entry_name.replace("\\", "/")
    if name.lower().endswith(".class"):
        name = name[: -len(".class")]
    return name.strip("/").replace("/", ".")


def package_from_entry(entry_name: str) -> str:
    """
    Dotted package derived from the member's directory:
    "com/example/Util.class" -> "com.example"; "Util.class" -> "".
    """
    parent = entry_name.replace("\\", "/").strip("/").rpartition("/")[0]
    return parent.replace("/", ".")

