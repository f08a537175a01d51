# core/errors.py
"""
Error taxonomy for a scan run.

Only InvalidPattern (and a PathAccessError on the scan root itself) stops a
run before it starts. Everything else is raised for a single path or archive
entry, caught at the item boundary and turned into a Diagnostic.
"""

from __future__ import annotations

__all__ = [
    "ScanError",
    "InvalidPattern",
    "PathAccessError",
    "CorruptArchive",
    "EntryReadError",
    "RecursionLimitExceeded",
]


class ScanError(Exception):
    """Base class; `location` names the path or archive entry involved."""

    def __init__(self, message: str, location: str = "") -> None:
        super().__init__(message)
        self.location = location


class InvalidPattern(ScanError):
    """The search pattern is empty or does not compile as a regex."""


class PathAccessError(ScanError):
    """A filesystem path could not be listed, stat'ed or read."""


class CorruptArchive(ScanError):
    """A ZIP-family container could not be opened."""


class EntryReadError(ScanError):
    """A single archive member could not be read (bad CRC, unsupported method...)."""


class RecursionLimitExceeded(ScanError):
    """A nested archive sits deeper than the configured maximum depth."""
