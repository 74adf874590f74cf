"""Tests for the analyzer exception hierarchy."""

from __future__ import annotations

from ort_analyzer.exceptions import (
    AnalyzerError,
    CommandExecutionError,
    GraphBuildError,
    MetadataEnrichmentError,
    ParseError,
    ProcessError,
    ProcessSpawnError,
)


class TestExceptionHierarchy:
    def test_process_errors(self):
        assert issubclass(ProcessSpawnError, ProcessError)
        assert issubclass(CommandExecutionError, ProcessError)
        assert issubclass(ProcessError, AnalyzerError)

    def test_other_errors_are_analyzer_errors(self):
        for cls in (ParseError, GraphBuildError, MetadataEnrichmentError):
            assert issubclass(cls, AnalyzerError)


class TestParseErrorMessage:
    def test_reason_only(self):
        assert str(ParseError("bad input")) == "bad input"

    def test_with_line_and_fragment(self):
        e = ParseError("unexpected token", line=3, fragment="->")
        assert str(e) == "line 3: unexpected token ('->')"
        assert e.line == 3
        assert e.fragment == "->"
