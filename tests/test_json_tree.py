"""Tests for JSON parsing helpers."""

from __future__ import annotations

import pytest

from ort_analyzer.exceptions import ParseError
from ort_analyzer.parsers.json_tree import list_or_empty, parse_json, text_or_empty, texts_or_empty


class TestParseJson:
    def test_valid(self):
        assert parse_json('[{"reference": "zlib/1.2.11"}]') == [{"reference": "zlib/1.2.11"}]

    def test_invalid_reports_line_and_fragment(self):
        with pytest.raises(ParseError) as exc_info:
            parse_json('[\n  {"a": }\n]')
        assert exc_info.value.line == 2
        assert exc_info.value.fragment == '{"a": }'


class TestFieldAccess:
    NODE = {
        "name": "zlib",
        "revision": 0,
        "shared": True,
        "homepage": None,
        "options": {"fPIC": True},
        "license": ["Zlib", None, ""],
        "single": "MIT",
    }

    def test_text_or_empty(self):
        assert text_or_empty(self.NODE, "name") == "zlib"
        assert text_or_empty(self.NODE, "revision") == "0"
        assert text_or_empty(self.NODE, "shared") == "true"

    def test_text_or_empty_missing_or_structured(self):
        assert text_or_empty(self.NODE, "missing") == ""
        assert text_or_empty(self.NODE, "homepage") == ""
        assert text_or_empty(self.NODE, "options") == ""
        assert text_or_empty(["not", "a", "dict"], "name") == ""

    def test_list_or_empty(self):
        assert list_or_empty(self.NODE, "license") == ["Zlib", None, ""]
        assert list_or_empty(self.NODE, "single") == ["MIT"]
        assert list_or_empty(self.NODE, "homepage") == []
        assert list_or_empty(None, "license") == []

    def test_texts_or_empty_drops_empty_entries(self):
        assert texts_or_empty(self.NODE, "license") == ["Zlib"]
