"""SearchSpec construction and pattern compilation."""

import os

import pytest

from core.errors import InvalidPattern
from core.models import SearchMode
from matchers.patterns import build_search_spec, compile_pattern, looks_like_regex


class TestLooksLikeRegex:

    def test_metacharacters(self):
        assert looks_like_regex("Foo.*Bar")
        assert looks_like_regex("a|b")
        assert not looks_like_regex("Exception")


class TestCompilePattern:

    def test_strict_rejects_bad_regex(self):
        with pytest.raises(InvalidPattern):
            compile_pattern("(unclosed", strict=True)

    def test_lenient_falls_back_to_literal(self):
        regex = compile_pattern("(unclosed", strict=False)
        assert regex.search("call(unclosed")
        assert not regex.search("unclosed")


class TestBuildSearchSpec:

    def test_empty_pattern(self):
        with pytest.raises(InvalidPattern):
            build_search_spec("master", "")

    def test_content_requires_valid_regex(self):
        with pytest.raises(InvalidPattern):
            build_search_spec(SearchMode.CONTENT, "[a-")

    def test_master_accepts_invalid_regex_literally(self):
        spec = build_search_spec("master", "a[b")
        assert spec.regex.search("xa[by")

    def test_exact_and_package_compile_nothing(self):
        assert build_search_spec("exact", "Util").regex is None
        assert build_search_spec("package", "com.example").regex is None

    def test_substring_regex_only_when_it_looks_like_one(self):
        assert build_search_spec("substring", "Exception").regex is None
        assert build_search_spec("substring", "IO.*Exception").regex is not None

    def test_package_slashes_become_dots(self):
        assert build_search_spec("package", "com/example/").pattern == "com.example"

    def test_job_count_defaults_to_cpu_count(self):
        assert build_search_spec("master", "x").job_count == (os.cpu_count() or 1)
        assert build_search_spec("master", "x", job_count=3).job_count == 3

    def test_exclusions_are_normalized(self):
        spec = build_search_spec("master", "x", exclusions=["\\build\\", " "])
        assert spec.exclusions == frozenset({"/build/"})

    @pytest.mark.parametrize("kwargs", [
        {"min_size": -1},
        {"max_depth": -1},
        {"min_string_length": 0},
        {"job_count": -2},
    ])
    def test_rejects_negative_values(self, kwargs):
        with pytest.raises(ValueError):
            build_search_spec("master", "x", **kwargs)

    def test_snapshot_is_plain_data(self):
        snap = build_search_spec("content", "jdbc:.*", mini=True).snapshot()
        assert snap["mode"] == "content"
        assert snap["regex"] == "jdbc:.*"
        assert snap["mini"] is True
