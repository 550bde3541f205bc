"""
tests/test_geocoding/test_sanitize.py — Free-text field cleanup for the cache table.
"""

from __future__ import annotations

import pytest

from lmia_pipeline.geocoding.sanitize import (
    collapse_exact_duplicate,
    sanitize_coordinate,
    sanitize_field,
)


class TestSanitizeField:
    def test_delimiter_becomes_comma(self):
        assert sanitize_field("Cilantro; The Cooks Shop Inc") == "Cilantro, The Cooks Shop Inc"

    def test_quotes_are_dropped(self):
        assert sanitize_field('"Acme "Foods" Ltd"') == "Acme Foods Ltd"

    def test_whitespace_collapses(self):
        assert sanitize_field("  12 Main\n  St\tUnit 4  ") == "12 Main St Unit 4"

    @pytest.mark.parametrize("value", [None, "", "   ", '""'])
    def test_empty_becomes_unknown(self, value):
        assert sanitize_field(value) == "Unknown"

    def test_length_is_capped(self):
        assert len(sanitize_field("x" * 500 + "y")) <= 200

    def test_custom_cap(self):
        assert sanitize_field("abcdefgh", max_length=4) == "abcd"

    def test_exact_duplicate_collapsed(self):
        assert sanitize_field("Acme Ltd Acme Ltd") == "Acme Ltd"

    def test_partial_repeat_kept(self):
        assert sanitize_field("Tim Hortons Tim") == "Tim Hortons Tim"

    def test_never_grows(self):
        value = 'A;B "C"  D'
        assert len(sanitize_field(value)) <= len(value)

    def test_result_has_no_delimiter_or_quote(self):
        cleaned = sanitize_field('a;"b";c')
        assert ";" not in cleaned
        assert '"' not in cleaned


class TestCollapseExactDuplicate:
    def test_concatenated(self):
        assert collapse_exact_duplicate("abcabc") == "abc"

    def test_space_separated(self):
        assert collapse_exact_duplicate("ab ab") == "ab"

    def test_repeated_collapse(self):
        assert collapse_exact_duplicate("x x x x") == "x"

    def test_non_duplicate_unchanged(self):
        assert collapse_exact_duplicate("abcab") == "abcab"

    def test_empty(self):
        assert collapse_exact_duplicate("") == ""

    def test_repeated_word_names_also_collapse(self):
        assert collapse_exact_duplicate("Walla Walla") == "Walla"
        assert sanitize_field("Mahi Mahi") == "Mahi"


class TestSanitizeCoordinate:
    def test_float(self):
        assert sanitize_coordinate(47.5) == "47.5"

    def test_strips(self):
        assert sanitize_coordinate(" -52.7 ") == "-52.7"

    def test_none(self):
        assert sanitize_coordinate(None) == ""
