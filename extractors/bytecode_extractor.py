# extractors/bytecode_extractor.py
"""
Bytecode-string extractor for .class files.

The class file is not parsed. Constant-pool UTF-8 entries (class names,
method names, string literals) show up as printable runs, so carving them
like `strings` does finds the same literals and survives malformed or
obfuscated bytecode.

Units carry no line number and kind_tag "class_bytecode".
"""

from __future__ import annotations

from typing import Iterator

from core.interfaces import Extractor
from core.models import Category, ExtractedUnit, SearchSpec, WorkItem
from core.registry import register_extractor
from utils.text_extract import carve_strings

KIND_TAG = "class_bytecode"


class BytecodeExtractor(Extractor):
    def supports(self):
        return [Category.CLASS]

    def extract(self, data: bytes, item: WorkItem, spec: SearchSpec) -> Iterator[ExtractedUnit]:
        for s in carve_strings(data, spec.min_string_length, spec.carve_include_tab):
            yield ExtractedUnit(line_number=None, text=s, kind_tag=KIND_TAG)


# Register on import
register_extractor(BytecodeExtractor())
