# extractors/text_extractor.py
"""
Line-oriented extractor for source, configuration, script, markup and
plain-text files.

Produces one ExtractedUnit per physical line:
- line_number: 1-based
- text: the line without its terminator
- kind_tag: the category value ("java", "config", "script", ...)

Decoding replaces invalid sequences, so a stray Latin-1 byte never hides the
rest of a file. Output is lazy and identical for identical bytes.
"""

from __future__ import annotations

from typing import Iterator

from core.interfaces import Extractor
from core.models import Category, ExtractedUnit, SearchSpec, WorkItem
from core.registry import register_extractor
from utils.text_extract import decode_text, iter_lines


class LineExtractor(Extractor):
    def supports(self):
        return [Category.JAVA, Category.CONFIG, Category.SCRIPT, Category.MARKUP, Category.TEXT]

    def extract(self, data: bytes, item: WorkItem, spec: SearchSpec) -> Iterator[ExtractedUnit]:
        kind = item.category.value
        for number, line in iter_lines(decode_text(data)):
            yield ExtractedUnit(line_number=number, text=line, kind_tag=kind)


# Register on import
register_extractor(LineExtractor())
