"""Dependency graph construction shared by all package managers.

A :class:`GraphContext` is created for exactly one ``resolve_dependencies``
call. It interns packages by identifier, turns parsed edges or indented tree
lines into :class:`PackageReference` trees, and finally assembles the
:class:`ProjectAnalyzerResult`. It is discarded afterwards and never shared
between package managers or definition files.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from typing import TypeVar

import structlog

from ort_analyzer.exceptions import GraphBuildError
from ort_analyzer.models import Identifier, Package, PackageReference, Project, ProjectAnalyzerResult
from ort_analyzer.parsers.tree_text import TreeLine, TreeLineCursor

log = structlog.get_logger("ort_analyzer.graph")

K = TypeVar("K", bound=Hashable)


class GraphContext:
    """Per-call package intern table and tree builder."""

    def __init__(self, manager: str) -> None:
        self.manager = manager
        self._packages: dict[Identifier, Package] = {}
        self._assembled = False

    # ── interning ─────────────────────────────────────────────────────────

    @property
    def packages(self) -> dict[Identifier, Package]:
        return dict(self._packages)

    def get(self, id: Identifier) -> Package | None:
        return self._packages.get(id)

    def intern(self, id: Identifier, builder: Callable[[], Package]) -> Package:
        """Return the package known for *id*, building and storing it on first sight.

        The first package stored for an id wins; later calls never overwrite it.
        """
        pkg = self._packages.get(id)
        if pkg is not None:
            return pkg
        self._check_open()
        pkg = builder()
        if pkg.id != id:
            raise GraphBuildError(
                f"Package builder for '{id.to_coordinates()}' returned '{pkg.id.to_coordinates()}'."
            )
        self._packages[id] = pkg
        return pkg

    def replace(self, package: Package) -> None:
        """Swap in an enriched record for an already interned package."""
        self._check_open()
        if package.id not in self._packages:
            raise GraphBuildError(f"Cannot replace unknown package '{package.id.to_coordinates()}'.")
        self._packages[package.id] = package

    def _check_open(self) -> None:
        if self._assembled:
            raise GraphBuildError("The dependency graph has already been assembled.")

    # ── graph walk ────────────────────────────────────────────────────────

    def build_from_adjacency(
        self,
        roots: Iterable[K],
        adjacency: Mapping[K, Sequence[K]],
        to_package: Callable[[K], Package],
    ) -> list[PackageReference]:
        """Build reference trees for *roots* by walking *adjacency* depth-first.

        Nodes reachable along several paths appear under each parent. An edge
        back to a node on the current path is dropped so cycles terminate.
        """
        ids: dict[K, Identifier] = {}
        # Subtrees that did not hit a cycle are independent of the path and reusable.
        complete: dict[K, PackageReference] = {}

        def identify(node: K) -> Identifier:
            if node not in ids:
                pkg = to_package(node)
                ids[node] = self.intern(pkg.id, lambda: pkg).id
            return ids[node]

        def walk(node: K, path: set[K]) -> tuple[PackageReference, bool]:
            if node in complete:
                return complete[node], False
            path.add(node)
            children: list[PackageReference] = []
            truncated = False
            for child in adjacency.get(node, ()):
                if child in path:
                    log.debug(
                        "graph.cycle_truncated",
                        manager=self.manager,
                        node=str(node),
                        back_to=str(child),
                    )
                    truncated = True
                    continue
                ref, child_truncated = walk(child, path)
                truncated = truncated or child_truncated
                children.append(ref)
            path.discard(node)
            ref = PackageReference.of(identify(node), children)
            if not truncated:
                complete[node] = ref
            return ref, truncated

        return [walk(root, set())[0] for root in roots]

    def build_from_tree_lines(
        self,
        cursor: TreeLineCursor,
        min_level: int,
        to_id: Callable[[TreeLine], Identifier],
        build_package: Callable[[Identifier], Package],
    ) -> list[PackageReference]:
        """Rebuild reference trees from indented tree lines.

        *build_package* runs only for ids not interned yet.
        """

        def resolve(line: TreeLine) -> Identifier:
            id = to_id(line)
            self.intern(id, lambda: build_package(id))
            return id

        return build_tree_from_lines(cursor, min_level, resolve)

    # ── assembly ──────────────────────────────────────────────────────────

    def assemble(self, project: Project, errors: Iterable[str] = ()) -> ProjectAnalyzerResult:
        """Freeze the graph into a result holding exactly the referenced packages.

        Referenced ids that were never interned get a placeholder package so
        every reference in the scopes resolves to one package entry.
        """
        self._check_open()
        referenced = project.collect_ids()
        packages: list[Package] = []
        for id in sorted(referenced):
            pkg = self._packages.get(id)
            if pkg is None:
                log.warning("graph.missing_package", manager=self.manager, id=id.to_coordinates())
                pkg = Package.empty(id)
            packages.append(pkg)
        self._assembled = True
        return ProjectAnalyzerResult(
            project=project,
            packages=frozenset(packages),
            errors=tuple(errors),
        )


def build_tree_from_lines(
    cursor: TreeLineCursor,
    min_level: int,
    resolve: Callable[[TreeLine], Identifier],
    _path: tuple[Identifier, ...] = (),
) -> list[PackageReference]:
    """Level based reconstruction of one subtree.

    The first line read fixes the level of this subtree. A line at that level
    is a sibling, a deeper line starts the children of the preceding sibling
    (however many levels deeper it is), and a shallower line is pushed back
    for an ancestor to handle.
    """
    entries: list[tuple[Identifier, list[PackageReference]]] = []
    level: int | None = None

    while cursor.has_next():
        line = cursor.next()
        if line.level < min_level or (level is not None and line.level < level):
            cursor.push_back(line)
            break

        if level is None or line.level == level:
            level = line.level
            entries.append((resolve(line), []))
            continue

        # Deeper than the current level: children of the previous sibling.
        cursor.push_back(line)
        parent_id, parent_children = entries[-1]
        children = build_tree_from_lines(cursor, level + 1, resolve, _path + (parent_id,))
        if parent_id in _path:
            # Re-descending into an ancestor would repeat the cycle.
            continue
        parent_children.extend(children)

    return [PackageReference.of(id, children) for id, children in entries]


def render_tree(
    references: Iterable[PackageReference],
    level: int = 0,
    indent: int = 2,
) -> list[tuple[int, Identifier]]:
    """Flatten reference trees into ``(level, id)`` pairs in depth-first order."""
    result: list[tuple[int, Identifier]] = []
    for ref in references:
        result.append((level, ref.id))
        result.extend(render_tree(ref.dependencies, level + indent, indent))
    return result
