# services/containers.py
"""
Containers: one polymorphic "entries() + read(name)" capability, implemented
for filesystem directories and for ZIP-family archives (JAR/ZIP/WAR/EAR).

ArchiveContainer
- open_path(path) / open_bytes(data, label) -> handle, or CorruptArchive
  (PathAccessError when the file itself cannot be opened)
- entries() -> lazy EntryMeta sequence (restartable)
- read(name) -> uncompressed bytes, or EntryReadError for that entry only
- open_nested(name) -> ArchiveContainer over a member's bytes

Implementation notes:
- zipfile handles the local-header/central-directory format and
  store/deflate (plus bzip2/lzma). Unsupported methods, bad CRCs and
  encrypted members fail the single read, never the archive.
- A handle is never shared between threads; every worker opens its own.

DirectoryContainer
- Depth-first, sorted walk with os.walk(followlinks=False); symlinked files
  are skipped as well.
- Exclusions and the minimum-size filter are applied on path/lstat data
  before anything is read.
- Per-path OS errors are collected as PathAccessError diagnostics.
"""

from __future__ import annotations

import io
import logging
import os
import stat
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO, FrozenSet, Iterator, List, Optional, Union

from core.errors import CorruptArchive, EntryReadError, PathAccessError
from core.interfaces import Container
from core.models import Diagnostic, EntryMeta
from utils.path_utils import is_excluded

_logger = logging.getLogger(__name__)

# Exceptions zipfile raises while reading one member.
_ENTRY_ERRORS = (
    KeyError,
    zipfile.BadZipFile,
    NotImplementedError,
    RuntimeError,
    zlib.error,
    EOFError,
    OSError,
    ValueError,
)


class ArchiveContainer(Container):
    """A ZIP-family archive opened from disk or from an in-memory buffer."""

    def __init__(self, zf: zipfile.ZipFile, label: str) -> None:
        self._zf = zf
        self.label = label

    @classmethod
    def open_path(cls, path: Union[str, Path]) -> "ArchiveContainer":
        return cls._open(str(path), str(path))

    @classmethod
    def open_bytes(cls, data: bytes, label: str) -> "ArchiveContainer":
        return cls._open(io.BytesIO(data), label)

    @classmethod
    def _open(cls, source: Union[str, BinaryIO], label: str) -> "ArchiveContainer":
        try:
            return cls(zipfile.ZipFile(source), label)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, ValueError) as exc:
            raise CorruptArchive(f"Cannot open archive: {exc or exc.__class__.__name__}", label) from exc
        except OSError as exc:
            if isinstance(source, str):
                raise PathAccessError(f"Cannot open archive: {exc.strerror or exc}", label) from exc
            raise CorruptArchive(f"Cannot open archive: {exc or exc.__class__.__name__}", label) from exc

    def entries(self) -> Iterator[EntryMeta]:
        for info in self._zf.infolist():
            yield EntryMeta(
                name=info.filename,
                size_bytes=info.file_size,
                compressed_size=info.compress_size,
                compressed=info.compress_type != zipfile.ZIP_STORED,
                is_dir=info.is_dir(),
            )

    def read(self, name: str) -> bytes:
        try:
            return self._zf.read(name)
        except _ENTRY_ERRORS as exc:
            raise EntryReadError(
                f"Cannot read entry: {exc or exc.__class__.__name__}", f"{self.label}!{name}"
            ) from exc

    def open_nested(self, name: str) -> "ArchiveContainer":
        """Open a member as an archive of its own (nested JAR in a WAR, ...)."""
        return ArchiveContainer.open_bytes(self.read(name), f"{self.label}!{name}")

    def close(self) -> None:
        self._zf.close()


class DirectoryContainer(Container):
    """
    A directory tree. Member names are absolute filesystem paths.

    `diagnostics` collects paths that could not be listed or stat'ed;
    callers may pass their own list to share it.
    """

    def __init__(
        self,
        root: Union[str, Path],
        exclusions: FrozenSet[str] = frozenset(),
        min_size: int = 0,
        diagnostics: Optional[List[Diagnostic]] = None,
    ) -> None:
        self.root = Path(os.path.abspath(os.fspath(root)))
        self.exclusions = exclusions
        self.min_size = min_size
        self.diagnostics = diagnostics if diagnostics is not None else []

    def entries(self) -> Iterator[EntryMeta]:
        for dirpath, dirnames, filenames in os.walk(self.root, topdown=True, onerror=self._on_walk_error, followlinks=False):
            # In-place pruning keeps the walk sorted and skips excluded trees.
            dirnames[:] = sorted(d for d in dirnames if not self._excluded(os.path.join(dirpath, d)))

            for fname in sorted(filenames):
                full = os.path.join(dirpath, fname)
                if self._excluded(full):
                    continue
                try:
                    st = os.lstat(full)
                except OSError as exc:
                    self._record(full, exc)
                    continue
                if stat.S_ISLNK(st.st_mode):
                    _logger.debug("Skipping symlink: %s", full)
                    continue
                if not stat.S_ISREG(st.st_mode):
                    continue
                if self.min_size and st.st_size < self.min_size:
                    _logger.debug("Skipping small file: %s (%d bytes)", full, st.st_size)
                    continue
                yield EntryMeta(name=full, size_bytes=st.st_size)

    def read(self, name: str) -> bytes:
        try:
            return Path(name).read_bytes()
        except OSError as exc:
            raise PathAccessError(f"Cannot read file: {exc.strerror or exc}", name) from exc

    # ---------- helpers ----------

    def _excluded(self, path: str) -> bool:
        if is_excluded(path, self.exclusions):
            _logger.debug("Excluding path: %s", path)
            return True
        return False

    def _on_walk_error(self, exc: OSError) -> None:
        self._record(exc.filename or str(self.root), exc)

    def _record(self, location: str, exc: OSError) -> None:
        _logger.warning("Cannot access %s: %s", location, exc)
        self.diagnostics.append(
            Diagnostic(location=str(location), error=PathAccessError.__name__, detail=str(exc))
        )


def check_root_dir(root: Union[str, Path]) -> Path:
    """
    Validate a search root before anything is walked. Returns the absolute
    path; raises PathAccessError if it is missing, not a directory or not
    readable.
    """
    path = Path(os.path.abspath(os.fspath(root)))
    if not path.exists():
        raise PathAccessError(f"Search root does not exist: {path}", str(path))
    if not path.is_dir():
        raise PathAccessError(f"Search root is not a directory: {path}", str(path))
    if not os.access(path, os.R_OK | os.X_OK):
        raise PathAccessError(f"Search root is not readable: {path}", str(path))
    return path
