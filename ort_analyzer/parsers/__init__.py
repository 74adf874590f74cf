"""Parsers for the output formats of package manager tools."""

from ort_analyzer.parsers.dot_graph import DotGraph, DotNode, parse_dot
from ort_analyzer.parsers.json_tree import list_or_empty, parse_json, text_or_empty, texts_or_empty
from ort_analyzer.parsers.key_value import parse_key_value
from ort_analyzer.parsers.tree_text import TreeLine, TreeLineCursor

__all__ = [
    "DotGraph",
    "DotNode",
    "TreeLine",
    "TreeLineCursor",
    "list_or_empty",
    "parse_dot",
    "parse_json",
    "parse_key_value",
    "text_or_empty",
    "texts_or_empty",
]
