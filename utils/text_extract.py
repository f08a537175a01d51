# utils/text_extract.py
"""
Read-only byte/text helpers shared by the extractors.

Public API:
- decode_text(data) -> str
- iter_lines(text) -> iterator of (line_number, line)
- carve_strings(data, min_len, include_tab) -> iterator of str
- looks_binary(data) -> bool

Nothing here raises for bad input: undecodable bytes are replaced, and
empty buffers simply yield nothing.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterator, Pattern, Tuple

# How much of a buffer the binary sniffer looks at, and the NUL ratio
# above which the buffer is treated as binary.
SNIFF_BYTES = 1024
BINARY_NUL_RATIO = 0.1


def decode_text(data: bytes) -> str:
    """UTF-8 with replacement characters for invalid sequences."""
    return data.decode("utf-8", errors="replace")


def iter_lines(text: str) -> Iterator[Tuple[int, str]]:
    """
    Yield (1-based line number, line) pairs.

    Lines split on "\\n" only, so numbers match physical lines; a trailing
    "\\r" is dropped. A final terminator does not produce an empty last line.
    """
    if not text:
        return
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    for number, line in enumerate(lines, start=1):
        if line.endswith("\r"):
            line = line[:-1]
        yield number, line


@lru_cache(maxsize=16)
def _printable_run(min_len: int, include_tab: bool) -> Pattern[bytes]:
    chars = rb"\t\x20-\x7e" if include_tab else rb"\x20-\x7e"
    return re.compile(b"[" + chars + b"]{" + str(max(1, min_len)).encode("ascii") + b",}")


def carve_strings(data: bytes, min_len: int = 4, include_tab: bool = True) -> Iterator[str]:
    """
    Yield maximal runs of printable ASCII at least `min_len` long, in
    buffer order (like the Unix `strings` tool). Used for class files and
    binary blobs instead of real parsing.
    """
    for m in _printable_run(min_len, include_tab).finditer(data):
        yield m.group(0).decode("ascii")


def looks_binary(data: bytes) -> bool:
    """
    Sniff the head of a buffer: at least 10% NUL bytes means binary.
    Empty buffers are not binary.
    """
    head = data[:SNIFF_BYTES]
    if not head:
        return False
    return head.count(0) / len(head) >= BINARY_NUL_RATIO
