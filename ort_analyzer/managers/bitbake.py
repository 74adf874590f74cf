"""BitBake (OpenEmbedded / Yocto) recipes, read from a DOT dependency graph."""

from __future__ import annotations

import shlex
from pathlib import Path

import structlog

from ort_analyzer.exceptions import GraphBuildError
from ort_analyzer.graph import GraphContext
from ort_analyzer.managers.base import PackageManager
from ort_analyzer.managers.registry import register_manager
from ort_analyzer.models import Identifier, Package, Project, ProjectAnalyzerResult, Scope
from ort_analyzer.parsers.dot_graph import DotNode, parse_dot
from ort_analyzer.process import run_process
from ort_analyzer.vcs import process_project_vcs

log = structlog.get_logger("ort_analyzer.managers.bitbake")

DOT_FILE_NAMES = ("package-depends-minimal.dot", "package-depends.dot")
SCOPE_NAME = "default"


def parse_node_label(node: DotNode) -> tuple[str, str]:
    """Split a BitBake node label ``"name :version\\n/path/to/recipe.bb"`` into (name, version)."""
    first_line = node.label.split("\\n", 1)[0].strip()
    name, sep, version = first_line.partition(" :")
    if not sep or not name.strip():
        return node.id, ""
    return name.strip(), version.strip()


@register_manager
class BitBake(PackageManager):
    """The BitBake build tool of the Yocto project."""

    name = "BitBake"
    globs_for_definition_files = ["oe-init-build-env"]

    def command(self, working_dir: Path | None = None) -> str:
        return "bitbake"

    def find_dot_file(self, working_dir: Path) -> Path | None:
        for directory in (working_dir, working_dir / "build"):
            for file_name in DOT_FILE_NAMES:
                candidate = directory / file_name
                if candidate.is_file():
                    return candidate
        return None

    def generate_dot_file(self, definition_file: Path) -> None:
        """Source the build environment and let ``bitbake -g`` write the graph files."""
        working_dir = definition_file.parent
        recipes = " ".join(shlex.quote(r) for r in self.config.bitbake_recipes)
        script = (
            f". ./{shlex.quote(definition_file.name)} build > /dev/null "
            f"&& {self.command(working_dir)} -g {recipes}"
        )
        log.info("bitbake.generate_graph", working_dir=str(working_dir), recipes=self.config.bitbake_recipes)
        run_process(
            "/bin/bash", "-c", script, cwd=working_dir, timeout=self.command_timeout
        ).require_success()

    def resolve_dependencies(self, definition_file: Path) -> ProjectAnalyzerResult:
        working_dir = definition_file.parent

        dot_file = self.find_dot_file(working_dir)
        if dot_file is None and self.config.bitbake_recipes:
            self.generate_dot_file(definition_file)
            dot_file = self.find_dot_file(working_dir)
        if dot_file is None:
            raise GraphBuildError(
                f"No dependency graph ({', '.join(DOT_FILE_NAMES)}) found in '{working_dir}'. "
                "Run 'bitbake -g <recipe>' first or configure the recipes to analyze."
            )

        graph = parse_dot(dot_file.read_text(encoding="utf-8", errors="replace"))

        for node in graph.nodes.values():
            log.debug("bitbake.node", id=node.id, label=node.label)
        for src, dst in graph.edges:
            log.debug("bitbake.edge", source=src, target=dst)
        log.info(
            "bitbake.graph_parsed",
            dot_file=str(dot_file),
            nodes=len(graph.nodes),
            edges=len(graph.edges),
        )

        context = GraphContext(self.name)

        def to_package(node_id: str) -> Package:
            node = graph.nodes[node_id]
            name, version = parse_node_label(node)
            license_expr = node.attributes.get("license", "").strip()
            return Package(
                id=Identifier(self.name, "", name, version),
                declared_licenses=frozenset({license_expr}) if license_expr else frozenset(),
                description=node.attributes.get("description", ""),
                homepage_url=node.attributes.get("homepage", ""),
            )

        roots = graph.roots()
        if graph.nodes and not roots:
            # Every node is part of a cycle; start from all of them.
            roots = list(graph.nodes)
        references = context.build_from_adjacency(roots, graph.adjacency(), to_package)

        project = Project(
            id=Identifier(self.name, "", working_dir.name, ""),
            definition_file_path=self.definition_file_path(definition_file),
            vcs_processed=process_project_vcs(working_dir),
            scopes=(Scope.of(SCOPE_NAME, references),),
        )
        return context.assemble(project)
