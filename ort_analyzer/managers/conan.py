"""Conan (C/C++) projects, resolved through ``conan info . -j``."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import structlog

from ort_analyzer.exceptions import GraphBuildError, ParseError, ProcessError
from ort_analyzer.graph import GraphContext
from ort_analyzer.managers.base import PackageManager
from ort_analyzer.managers.registry import register_manager
from ort_analyzer.models import (
    Identifier,
    Package,
    Project,
    ProjectAnalyzerResult,
    Scope,
    VcsInfo,
    process_package_vcs,
)
from ort_analyzer.parsers.json_tree import parse_json, text_or_empty, texts_or_empty
from ort_analyzer.vcs import process_project_vcs

log = structlog.get_logger("ort_analyzer.managers.conan")

SCOPE_NAME_DEPENDENCIES = "requires"
SCOPE_NAME_DEV_DEPENDENCIES = "build-requires"

# Scope name -> keys of the node lists in "conan info" JSON output.
_SCOPE_KEYS: dict[str, tuple[str, ...]] = {
    SCOPE_NAME_DEPENDENCIES: ("requires",),
    SCOPE_NAME_DEV_DEPENDENCIES: ("build_requires", "build-requires"),
}

# Display names that denote a local conanfile rather than a package reference.
_CONANFILE_NAMES = ("conanfile.txt", "conanfile.py")

# name/version[@user/channel][#revision]
_REFERENCE_RE = re.compile(r"^([^/@#\s]+)/([^/@#\s]+)(?:@[^#\s]*)?(?:#\S+)?$")

# "conanfile.py (name/version)"
_CONANFILE_PY_RE = re.compile(r"\(([^/)\s]+)/([^)@\s]+)[^)]*\)")


def parse_reference(reference: str) -> tuple[str, str] | None:
    """Split ``name/version@user/channel`` into (name, version)."""
    m = _REFERENCE_RE.match(reference.strip())
    if not m:
        return None
    return m.group(1), m.group(2)


@register_manager
class Conan(PackageManager):
    """The Conan package manager for C / C++."""

    name = "Conan"
    globs_for_definition_files = ["conanfile.txt", "conanfile.py"]
    minimum_version = (1, 3)

    def command(self, working_dir: Path | None = None) -> str:
        return "conan"

    def resolve_dependencies(self, definition_file: Path) -> ProjectAnalyzerResult:
        working_dir = definition_file.parent
        log.info("conan.resolve", definition_file=str(definition_file))

        nodes = parse_json(self.run(working_dir, "info", ".", "-j").stdout)
        if not isinstance(nodes, list):
            raise ParseError("expected a JSON array from 'conan info'")

        resolver = _ConanResolver(self, working_dir)

        project_node = self._find_project_node(nodes, definition_file.name)
        package_nodes = [n for n in nodes if n is not project_node and isinstance(n, dict)]
        by_reference = {text_or_empty(n, "reference"): n for n in package_nodes}

        adjacency: dict[str, list[str]] = {}
        for reference, node in by_reference.items():
            adjacency[reference] = self._known_references(
                node, _SCOPE_KEYS[SCOPE_NAME_DEPENDENCIES], by_reference
            )

        context = GraphContext(self.name)
        scopes = []
        for scope_name in (SCOPE_NAME_DEPENDENCIES, SCOPE_NAME_DEV_DEPENDENCIES):
            roots = self._known_references(project_node, _SCOPE_KEYS[scope_name], by_reference)
            references = context.build_from_adjacency(
                roots, adjacency, lambda ref: resolver.package(by_reference[ref])
            )
            log.debug("conan.scope", scope=scope_name, dependencies=len(references))
            scopes.append(Scope.of(scope_name, references))

        project_package = resolver.project_package(project_node, definition_file.name)
        project = Project(
            id=project_package.id,
            definition_file_path=self.definition_file_path(definition_file),
            declared_licenses=project_package.declared_licenses,
            vcs=project_package.vcs,
            vcs_processed=process_project_vcs(
                working_dir, project_package.vcs, project_package.homepage_url
            ),
            homepage_url=project_package.homepage_url,
            scopes=tuple(scopes),
        )
        return context.assemble(project)

    @staticmethod
    def _find_project_node(nodes: list[Any], definition_file_name: str) -> dict[str, Any]:
        """The node describing the local conanfile itself."""
        for node in nodes:
            if not isinstance(node, dict):
                continue
            if definition_file_name in text_or_empty(node, "display_name") or (
                definition_file_name in text_or_empty(node, "reference")
            ):
                return node
        raise GraphBuildError(f"No node for '{definition_file_name}' in the 'conan info' output.")

    @staticmethod
    def _known_references(
        node: dict[str, Any],
        keys: tuple[str, ...],
        by_reference: dict[str, dict[str, Any]],
    ) -> list[str]:
        result = []
        for key in keys:
            for reference in texts_or_empty(node, key):
                if reference in by_reference:
                    result.append(reference)
                else:
                    log.warning("conan.unknown_reference", reference=reference, required_by=text_or_empty(node, "reference"))
        return result


class _ConanResolver:
    """Builds packages from 'conan info' nodes, running 'conan inspect' where needed.

    Inspect results are cached for the lifetime of one resolve call.
    """

    def __init__(self, conan: Conan, working_dir: Path) -> None:
        self._conan = conan
        self._working_dir = working_dir
        self._inspect_cache: dict[tuple[str, str], str] = {}

    def inspect(self, target: str, field: str) -> str:
        """Run ``conan inspect <target> --raw <field>``; empty string if it fails."""
        key = (target, field)
        if key not in self._inspect_cache:
            try:
                value = self._conan.run(self._working_dir, "inspect", target, "--raw", field).stdout.strip()
            except ProcessError as e:
                log.warning("conan.inspect_failed", target=target, field=field, error=str(e))
                value = ""
            if value == "None":
                value = ""
            self._inspect_cache[key] = value
        return self._inspect_cache[key]

    def field(self, node: dict[str, Any], field: str) -> str:
        value = text_or_empty(node, field)
        if value:
            return value
        display_name = text_or_empty(node, "display_name").strip()
        if not display_name or display_name in _CONANFILE_NAMES:
            return ""
        return self.inspect(display_name, field)

    def package_id(self, node: dict[str, Any]) -> Identifier:
        reference = text_or_empty(node, "reference") or text_or_empty(node, "display_name")
        parsed = parse_reference(reference)
        if parsed is not None:
            name, version = parsed
        else:
            name, version = self.field(node, "name"), self.field(node, "version")
        return Identifier(self._conan.name, "", name, version)

    def package(self, node: dict[str, Any]) -> Package:
        vcs = VcsInfo(
            type="git",
            url=text_or_empty(node, "url"),
            revision=text_or_empty(node, "revision"),
        )
        homepage_url = text_or_empty(node, "homepage")
        return Package(
            id=self.package_id(node),
            declared_licenses=frozenset(texts_or_empty(node, "license")),
            description=self.field(node, "description"),
            homepage_url=homepage_url,
            vcs=vcs,
            vcs_processed=process_package_vcs(vcs, homepage_url),
        )

    def project_package(self, node: dict[str, Any], definition_file_name: str) -> Package:
        """Package describing the project; a conanfile.py is inspected in place."""
        name = version = description = ""
        display_name = text_or_empty(node, "display_name")
        m = _CONANFILE_PY_RE.search(display_name)
        if m:
            name, version = m.group(1), m.group(2)
        if definition_file_name.endswith(".py"):
            name = name or self.inspect(".", "name")
            version = version or self.inspect(".", "version")
            description = self.inspect(".", "description")
        vcs = VcsInfo(type="git", url=text_or_empty(node, "url"), revision="")
        homepage_url = text_or_empty(node, "homepage")
        return Package(
            id=Identifier(self._conan.name, "", name or self._working_dir.name, version),
            declared_licenses=frozenset(texts_or_empty(node, "license")),
            description=description or text_or_empty(node, "description"),
            homepage_url=homepage_url,
            vcs=vcs if vcs.url else VcsInfo.EMPTY,
            vcs_processed=process_package_vcs(vcs, homepage_url),
        )
