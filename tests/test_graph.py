"""Tests for the dependency graph builder."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ort_analyzer.exceptions import GraphBuildError
from ort_analyzer.graph import GraphContext, build_tree_from_lines, render_tree
from ort_analyzer.models import Identifier, Package, PackageReference, Project, Scope
from ort_analyzer.parsers.tree_text import TreeLine, TreeLineCursor


def _id(name: str) -> Identifier:
    return Identifier("Test", "", name, "1.0")


def _pkg(name: str) -> Package:
    return Package.empty(_id(name))


def _shape(ref: PackageReference) -> tuple:
    return (ref.id.name, tuple(_shape(d) for d in ref.dependencies))


# ── interning ────────────────────────────────────────────────────────────


class TestIntern:
    def test_first_seen_wins(self):
        context = GraphContext("Test")
        first = Package(id=_id("a"), description="first")
        second = MagicMock(return_value=Package(id=_id("a"), description="second"))

        assert context.intern(_id("a"), lambda: first) is first
        assert context.intern(_id("a"), second) is first
        second.assert_not_called()

    def test_builder_must_return_requested_id(self):
        context = GraphContext("Test")
        with pytest.raises(GraphBuildError):
            context.intern(_id("a"), lambda: _pkg("b"))

    def test_replace_enriches_known_package(self):
        context = GraphContext("Test")
        context.intern(_id("a"), lambda: _pkg("a"))
        context.replace(Package(id=_id("a"), homepage_url="https://a.org"))
        assert context.get(_id("a")).homepage_url == "https://a.org"

    def test_replace_unknown_package(self):
        with pytest.raises(GraphBuildError):
            GraphContext("Test").replace(_pkg("a"))


# ── adjacency walk ───────────────────────────────────────────────────────


class TestBuildFromAdjacency:
    def test_cycle_is_truncated(self):
        context = GraphContext("Test")
        adjacency = {"A": ["B"], "B": ["C"], "C": ["A"]}
        refs = context.build_from_adjacency(["A"], adjacency, _pkg)
        assert [_shape(r) for r in refs] == [("A", (("B", (("C", ()),)),))]

    def test_diamond_is_revisited(self):
        context = GraphContext("Test")
        adjacency = {"A": ["B", "C"], "B": ["D"], "C": ["D"], "D": ["E"]}
        refs = context.build_from_adjacency(["A"], adjacency, _pkg)
        assert _shape(refs[0]) == ("A", (("B", (("D", (("E", ()),)),)), ("C", (("D", (("E", ()),)),))))
        assert set(context.packages) == {_id(n) for n in "ABCDE"}

    def test_each_node_converted_once(self):
        context = GraphContext("Test")
        to_package = MagicMock(side_effect=_pkg)
        adjacency = {"A": ["B", "C"], "B": ["D"], "C": ["D"]}
        context.build_from_adjacency(["A"], adjacency, to_package)
        assert sorted(c.args[0] for c in to_package.call_args_list) == ["A", "B", "C", "D"]

    def test_self_loop(self):
        context = GraphContext("Test")
        refs = context.build_from_adjacency(["A"], {"A": ["A", "B"]}, _pkg)
        assert _shape(refs[0]) == ("A", (("B", ()),))

    def test_several_roots(self):
        context = GraphContext("Test")
        refs = context.build_from_adjacency(["A", "B"], {"A": ["C"], "B": ["C"]}, _pkg)
        assert [_shape(r) for r in refs] == [("A", (("C", ()),)), ("B", (("C", ()),))]


# ── tree lines ───────────────────────────────────────────────────────────


MY_PROJECT_TREE = """\
Packages
my-project 1.0.0
  dep-a 2.0.0
    dep-b 0.5.0
  dep-c 1.1.0"""


def _line_id(line: TreeLine) -> Identifier:
    return Identifier("Test", "", line.name, line.version)


class TestBuildFromTreeLines:
    def test_my_project_scenario(self):
        cursor = TreeLineCursor(MY_PROJECT_TREE.splitlines())
        assert cursor.next_raw() == "Packages"
        root = cursor.next()
        assert root.name == "my-project"

        context = GraphContext("Test")
        refs = context.build_from_tree_lines(cursor, root.level + 1, _line_id, Package.empty)

        assert [_shape(r) for r in refs] == [("dep-a", (("dep-b", ()),)), ("dep-c", ())]
        assert not cursor.has_next()

    def test_builder_runs_once_per_package(self):
        tree = ["a 1", "  shared 1", "b 1", "  shared 1"]
        build = MagicMock(side_effect=Package.empty)
        refs = GraphContext("Test").build_from_tree_lines(TreeLineCursor(tree), 0, _line_id, build)
        assert len(refs) == 2
        assert build.call_count == 3

    def test_skipped_level_is_one_level_deeper(self):
        tree = ["a 1", "      deep 1", "b 1"]
        refs = GraphContext("Test").build_from_tree_lines(TreeLineCursor(tree), 0, _line_id, Package.empty)
        assert [_shape(r) for r in refs] == [("a", (("deep", ()),)), ("b", ())]

    def test_shallower_line_returns_to_ancestor(self):
        tree = ["a 1", "  b 1", "    c 1", "d 1"]
        refs = GraphContext("Test").build_from_tree_lines(TreeLineCursor(tree), 0, _line_id, Package.empty)
        assert [_shape(r) for r in refs] == [("a", (("b", (("c", ()),)),)), ("d", ())]

    def test_stops_below_min_level(self):
        cursor = TreeLineCursor(["  a 1", "b 1"])
        refs = build_tree_from_lines(cursor, 2, _line_id)
        assert [r.id.name for r in refs] == ["a"]
        assert cursor.next() == TreeLine(0, "b", "1")

    def test_repeated_ancestor_is_not_expanded(self):
        tree = ["a 1", "  b 1", "    a 1", "      b 1"]
        refs = build_tree_from_lines(TreeLineCursor(tree), 0, _line_id)
        assert [_shape(r) for r in refs] == [("a", (("b", (("a", ()),)),))]

    def test_level_sequence_round_trip(self):
        lines = ["a 1", "  b 1", "    c 1", "  d 1", "e 1", "  f 1"]
        refs = build_tree_from_lines(TreeLineCursor(lines), 0, _line_id)
        levels = [level for level, _ in render_tree(refs)]
        assert levels == [TreeLine.parse(line).level for line in lines]


# ── assembly ─────────────────────────────────────────────────────────────


class TestAssemble:
    def _project(self, refs: list[PackageReference]) -> Project:
        return Project(id=Identifier("Test", "", "p", ""), scopes=(Scope.of("default", refs),))

    def test_referentially_complete(self):
        context = GraphContext("Test")
        refs = context.build_from_adjacency(["A"], {"A": ["B"], "B": ["C"], "C": ["A"]}, _pkg)
        result = context.assemble(self._project(refs))
        assert result.check_completeness() == set()
        assert {p.id for p in result.packages} == {_id("A"), _id("B"), _id("C")}

    def test_unreferenced_packages_dropped(self):
        context = GraphContext("Test")
        context.intern(_id("unused"), lambda: _pkg("unused"))
        context.intern(_id("a"), lambda: _pkg("a"))
        result = context.assemble(self._project([PackageReference(_id("a"))]))
        assert {p.id for p in result.packages} == {_id("a")}

    def test_missing_package_gets_placeholder(self):
        context = GraphContext("Test")
        result = context.assemble(self._project([PackageReference(_id("ghost"))]), errors=["warn"])
        assert result.package(_id("ghost")) == Package.empty(_id("ghost"))
        assert result.errors == ("warn",)

    def test_closed_after_assembly(self):
        context = GraphContext("Test")
        context.assemble(self._project([]))
        with pytest.raises(GraphBuildError):
            context.intern(_id("a"), lambda: _pkg("a"))
        with pytest.raises(GraphBuildError):
            context.assemble(self._project([]))
        with pytest.raises(GraphBuildError):
            context.replace(_pkg("a"))

    def test_dense_graph_assembles_without_expanding_paths(self):
        layers = [[f"n{i}a", f"n{i}b"] for i in range(40)]
        adjacency = {node: layers[i + 1] for i in range(39) for node in layers[i]}
        context = GraphContext("Test")
        refs = context.build_from_adjacency(layers[0], adjacency, _pkg)

        result = context.assemble(self._project(refs))
        assert len(result.packages) == 80
        assert result.check_completeness() == set()


class TestRenderTree:
    def test_depth_first_levels(self):
        tree = PackageReference.of(_id("a"), [PackageReference.of(_id("b"), [PackageReference(_id("c"))])])
        assert render_tree([tree], level=4, indent=2) == [(4, _id("a")), (6, _id("b")), (8, _id("c"))]
