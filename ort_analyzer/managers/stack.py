"""Stack (Haskell) projects, resolved through ``stack ls dependencies --tree``."""

from __future__ import annotations

import dataclasses
import shutil
from pathlib import Path

import structlog

from ort_analyzer.config import AnalyzerConfig
from ort_analyzer.exceptions import GraphBuildError, MetadataEnrichmentError, ParseError
from ort_analyzer.graph import GraphContext
from ort_analyzer.managers.base import PackageManager
from ort_analyzer.managers.registry import register_manager
from ort_analyzer.metadata import MetadataFetcher
from ort_analyzer.models import (
    Identifier,
    Package,
    PackageReference,
    Project,
    ProjectAnalyzerResult,
    RemoteArtifact,
    Scope,
    VcsInfo,
    process_package_vcs,
)
from ort_analyzer.parsers.key_value import parse_key_value
from ort_analyzer.parsers.tree_text import TreeLine, TreeLineCursor
from ort_analyzer.process import ProcessResult
from ort_analyzer.vcs import process_project_vcs

log = structlog.get_logger("ort_analyzer.managers.stack")

SCOPES = ("external", "test", "bench")
TREE_HEADER = "Packages"
PACKAGE_TYPE = "Hackage"


@register_manager
class Stack(PackageManager):
    """The Stack build tool for Haskell."""

    name = "Stack"
    globs_for_definition_files = ["stack.yaml"]
    minimum_version = (2, 1, 1)

    def __init__(
        self,
        analysis_root: Path,
        config: AnalyzerConfig | None = None,
        fetcher: MetadataFetcher | None = None,
    ) -> None:
        super().__init__(analysis_root, config)
        self._fetcher = fetcher

    def command(self, working_dir: Path | None = None) -> str:
        return "stack"

    # ── Hackage ────────────────────────────────────────────────────────────

    def package_url(self, name: str, version: str) -> str:
        return f"{self.config.hackage_url}/package/{name}-{version}"

    def cabal_url(self, id: Identifier) -> str:
        return f"{self.package_url(id.name, id.version)}/src/{id.name}.cabal"

    def parse_cabal_file(self, content: str) -> Package:
        """Build a package from the key-value fields of a ``.cabal`` file."""
        fields = parse_key_value(content)

        id = Identifier(
            type=PACKAGE_TYPE,
            namespace=fields.get("category", ""),
            name=fields.get("name", ""),
            version=fields.get("version", ""),
        )

        vcs = VcsInfo(
            type=fields.get("source-repository-this-type") or fields.get("source-repository-head-type", ""),
            url=fields.get("source-repository-this-location")
            or fields.get("source-repository-head-location", ""),
            revision=fields.get("source-repository-this-tag", ""),
        )
        homepage_url = fields.get("homepage", "")
        license_expr = fields.get("license", "")

        return Package(
            id=id,
            declared_licenses=frozenset({license_expr}) if license_expr else frozenset(),
            description=fields.get("description", ""),
            homepage_url=homepage_url,
            source_artifact=RemoteArtifact(
                url=f"{self.package_url(id.name, id.version)}/{id.name}-{id.version}.tar.gz"
            ),
            vcs=vcs,
            vcs_processed=process_package_vcs(vcs, homepage_url),
        )

    def enrich_package(self, id: Identifier, fetcher: MetadataFetcher) -> Package:
        """Package meta-data from Hackage, or a bare placeholder if unavailable
        or unreadable."""
        try:
            package = self.parse_cabal_file(fetcher.fetch(self.cabal_url(id)))
        except (MetadataEnrichmentError, ParseError, ValueError) as e:
            log.warning("stack.enrichment_failed", package=id.to_coordinates(), error=str(e))
            return Package.empty(id)
        # The tree's identifier is authoritative, the .cabal file only adds meta-data.
        return dataclasses.replace(package, id=id)

    # ── stack invocation ───────────────────────────────────────────────────

    def run_stack(self, working_dir: Path, *args: str) -> ProcessResult:
        # Left-overs of interrupted runs make stack fail.
        stack_work = working_dir / ".stack-work"
        if stack_work.exists():
            shutil.rmtree(stack_work, ignore_errors=True)
        return self.run(working_dir, *args)

    def build_scope(
        self,
        scope: str,
        working_dir: Path,
        project_name: str,
        context: GraphContext,
    ) -> list[PackageReference]:
        tree = self.run_stack(
            working_dir, "ls", "dependencies", "--tree", "--global-hints", f"--{scope}"
        ).stdout.strip()
        cursor = TreeLineCursor(tree.splitlines())

        header = cursor.next_raw().strip() if cursor.has_next() else ""
        if header != TREE_HEADER or not cursor.has_next():
            raise GraphBuildError(f"Unexpected dependency tree header '{header}'.")

        root = cursor.next()
        if root.name != project_name:
            raise GraphBuildError(f"Unexpected dependency tree root '{root.name} {root.version}'.")

        def to_id(line: TreeLine) -> Identifier:
            return Identifier(PACKAGE_TYPE, "", line.name, line.version)

        references = context.build_from_tree_lines(cursor, root.level + 1, to_id, Package.empty)
        if cursor.has_next():
            extra = cursor.next()
            raise GraphBuildError(f"Unexpected dependency tree line '{extra.render().strip()}'.")

        log.debug("stack.scope", scope=scope, dependencies=len(references))
        return references

    # ── resolution ─────────────────────────────────────────────────────────

    def find_cabal_file(self, working_dir: Path) -> Path:
        cabal_files = sorted(working_dir.glob("*.cabal"))
        if not cabal_files:
            raise GraphBuildError(f"No *.cabal file found in '{working_dir}'.")
        if len(cabal_files) > 1:
            names = ", ".join(f.name for f in cabal_files)
            raise GraphBuildError(f"Multiple *.cabal files found in '{working_dir}': {names}.")
        return cabal_files[0]

    def resolve_dependencies(self, definition_file: Path) -> ProjectAnalyzerResult:
        working_dir = definition_file.parent

        cabal_file = self.find_cabal_file(working_dir)
        project_package = self.parse_cabal_file(cabal_file.read_text(encoding="utf-8", errors="replace"))
        project_id = dataclasses.replace(project_package.id, type=self.name)

        context = GraphContext(self.name)
        scopes = tuple(
            Scope.of(scope, self.build_scope(scope, working_dir, project_id.name, context))
            for scope in SCOPES
        )

        # Placeholders from the trees are swapped for Hackage meta-data, once per package.
        fetcher = self._fetcher or MetadataFetcher(timeout=self.config.http_timeout)
        try:
            for id in sorted(context.packages):
                context.replace(self.enrich_package(id, fetcher))
        finally:
            if self._fetcher is None:
                fetcher.close()

        project = Project(
            id=project_id,
            definition_file_path=self.definition_file_path(definition_file),
            declared_licenses=project_package.declared_licenses,
            vcs=project_package.vcs,
            vcs_processed=process_project_vcs(
                working_dir, project_package.vcs, project_package.homepage_url
            ),
            homepage_url=project_package.homepage_url,
            scopes=scopes,
        )
        return context.assemble(project)
