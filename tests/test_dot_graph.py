"""Tests for the DOT graph parser."""

from __future__ import annotations

import pytest

from ort_analyzer.exceptions import ParseError
from ort_analyzer.parsers.dot_graph import parse_dot

BITBAKE_DOT = r'''digraph depends {
node [shape=box];
"core-image-minimal" [label="core-image-minimal :1.0-r0\n/poky/meta/recipes-core/images/core-image-minimal.bb"]
"busybox" [label="busybox :1.31.0-r0\n/poky/meta/recipes-core/busybox/busybox_1.31.0.bb"]
"glibc" [label="glibc :2.30-r0\n/poky/meta/recipes-core/glibc/glibc_2.30.bb"]
"core-image-minimal" -> "busybox"
"core-image-minimal" -> "glibc"
"busybox" -> "glibc" [style=dashed]
}
'''


class TestParseDot:
    def test_three_nodes_two_edges(self):
        graph = parse_dot('digraph G {\nnodeA; nodeB; nodeC;\nnodeA -> nodeB; nodeB -> nodeC;\n}')
        assert set(graph.nodes) == {"nodeA", "nodeB", "nodeC"}
        assert graph.edges == [("nodeA", "nodeB"), ("nodeB", "nodeC")]

    def test_bitbake_graph(self):
        graph = parse_dot(BITBAKE_DOT)
        assert list(graph.nodes) == ["core-image-minimal", "busybox", "glibc"]
        assert len(graph.edges) == 3
        assert graph.nodes["busybox"].label.startswith("busybox :1.31.0-r0\\n")

    def test_edges_before_nodes(self):
        graph = parse_dot('digraph { "a" -> "b"\n"a"\n"b" }')
        assert graph.edges == [("a", "b")]

    def test_edge_chain(self):
        graph = parse_dot("digraph { a; b; c; a -> b -> c }")
        assert graph.edges == [("a", "b"), ("b", "c")]

    def test_duplicate_edges_collapsed(self):
        graph = parse_dot("digraph { a; b; a -> b; a -> b [color=red] }")
        assert graph.edges == [("a", "b")]

    def test_attributes_merged_and_label_defaults_to_id(self):
        graph = parse_dot('digraph {\nx [license="MIT"]\nx [homepage="https://x.org", description="X lib"]\ny\n}')
        assert graph.nodes["x"].attributes == {
            "license": "MIT",
            "homepage": "https://x.org",
            "description": "X lib",
        }
        assert graph.nodes["x"].label == "x"
        assert graph.nodes["y"].label == "y"

    def test_comments_and_graph_attributes_ignored(self):
        content = """
        // generated
        digraph G {
          rankdir=LR  # left to right
          /* multi
             line */
          edge [style=dotted];
          a; b
          a -> b
        }
        """
        graph = parse_dot(content)
        assert set(graph.nodes) == {"a", "b"}
        assert graph.edges == [("a", "b")]

    def test_escaped_quote_in_id(self):
        graph = parse_dot('digraph { "say \\"hi\\"" }')
        assert list(graph.nodes) == ['say "hi"']

    def test_undeclared_endpoint(self):
        with pytest.raises(ParseError) as exc_info:
            parse_dot("digraph {\na\na -> missing\n}")
        assert exc_info.value.fragment == "missing"
        assert exc_info.value.line == 3

    def test_unterminated_string(self):
        with pytest.raises(ParseError, match="unterminated quoted string"):
            parse_dot('digraph { "abc }')

    def test_unterminated_attribute_list(self):
        with pytest.raises(ParseError):
            parse_dot("digraph { a [label=x }")


class TestGraphQueries:
    def test_adjacency_and_roots(self):
        graph = parse_dot(BITBAKE_DOT)
        assert graph.adjacency() == {
            "core-image-minimal": ["busybox", "glibc"],
            "busybox": ["glibc"],
            "glibc": [],
        }
        assert graph.roots() == ["core-image-minimal"]

    def test_self_loop_does_not_hide_root(self):
        graph = parse_dot("digraph { a; b; a -> a; a -> b }")
        assert graph.roots() == ["a"]

    def test_cycle_has_no_roots(self):
        graph = parse_dot("digraph { a; b; a -> b; b -> a }")
        assert graph.roots() == []
