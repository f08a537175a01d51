# extractors/binary_extractor.py
"""
Extractor for files of no recognized type ("other").

Sniffs the head of the buffer:
- mostly text  -> line-oriented units, kind_tag "other"
- binary (>= 10% NUL bytes) -> carved printable strings, kind_tag "other_binary"
"""

from __future__ import annotations

from typing import Iterator

from core.interfaces import Extractor
from core.models import Category, ExtractedUnit, SearchSpec, WorkItem
from core.registry import register_extractor
from utils.text_extract import carve_strings, decode_text, iter_lines, looks_binary


class BinaryAwareExtractor(Extractor):
    def supports(self):
        return [Category.OTHER]

    def extract(self, data: bytes, item: WorkItem, spec: SearchSpec) -> Iterator[ExtractedUnit]:
        if looks_binary(data):
            for s in carve_strings(data, spec.min_string_length, spec.carve_include_tab):
                yield ExtractedUnit(line_number=None, text=s, kind_tag="other_binary")
            return
        for number, line in iter_lines(decode_text(data)):
            yield ExtractedUnit(line_number=number, text=line, kind_tag="other")


# Register on import
register_extractor(BinaryAwareExtractor())
