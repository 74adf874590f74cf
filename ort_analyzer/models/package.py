"""Package, dependency tree and analyzer result records.

All records are immutable. Enriching a package means building a new record
with :func:`dataclasses.replace` and swapping it into the graph context.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, ClassVar

from ort_analyzer.models.identifier import Identifier
from ort_analyzer.models.vcs import VcsInfo


@dataclass(frozen=True)
class Hash:
    value: str = ""
    algorithm: str = ""

    NONE: ClassVar[Hash]

    def to_dict(self) -> dict[str, str]:
        return {"value": self.value, "algorithm": self.algorithm}


Hash.NONE = Hash()


@dataclass(frozen=True)
class RemoteArtifact:
    """A downloadable source or binary artifact."""

    url: str = ""
    hash: Hash = Hash.NONE

    EMPTY: ClassVar[RemoteArtifact]

    @property
    def hash_algorithm(self) -> str:
        return self.hash.algorithm

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "hash": self.hash.to_dict()}


RemoteArtifact.EMPTY = RemoteArtifact()


@dataclass(frozen=True)
class Package:
    """Meta-data of one package, keyed by its identifier."""

    id: Identifier
    declared_licenses: frozenset[str] = frozenset()
    description: str = ""
    homepage_url: str = ""
    binary_artifact: RemoteArtifact = RemoteArtifact.EMPTY
    source_artifact: RemoteArtifact = RemoteArtifact.EMPTY
    vcs: VcsInfo = VcsInfo.EMPTY
    vcs_processed: VcsInfo = VcsInfo.EMPTY

    @classmethod
    def empty(cls, id: Identifier) -> Package:
        """Minimal placeholder used when no meta-data is available."""
        return cls(id=id)

    def to_reference(self, dependencies: Iterable[PackageReference] = ()) -> PackageReference:
        return PackageReference.of(self.id, dependencies)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id.to_coordinates(),
            "declared_licenses": sorted(self.declared_licenses),
            "description": self.description,
            "homepage_url": self.homepage_url,
            "binary_artifact": self.binary_artifact.to_dict(),
            "source_artifact": self.source_artifact.to_dict(),
            "vcs": self.vcs.to_dict(),
            "vcs_processed": self.vcs_processed.to_dict(),
        }


def _unique_by_id(references: Iterable[PackageReference]) -> tuple[PackageReference, ...]:
    seen: set[Identifier] = set()
    unique: list[PackageReference] = []
    for ref in references:
        if ref.id in seen:
            continue
        seen.add(ref.id)
        unique.append(ref)
    return tuple(unique)


def _walk_ids(roots: Iterable[PackageReference]) -> Iterator[Identifier]:
    seen: set[int] = set()
    stack = list(reversed(tuple(roots)))
    while stack:
        ref = stack.pop()
        if id(ref) in seen:
            continue
        seen.add(id(ref))
        yield ref.id
        stack.extend(reversed(ref.dependencies))


@dataclass(frozen=True)
class PackageReference:
    """A node of a dependency tree: a package id plus its direct dependencies.

    Children keep the order they were discovered in; a second child with an
    already present id is dropped. Serialization sorts children by id.
    """

    id: Identifier
    dependencies: tuple[PackageReference, ...] = ()

    @classmethod
    def of(cls, id: Identifier, dependencies: Iterable[PackageReference] = ()) -> PackageReference:
        return cls(id=id, dependencies=_unique_by_id(dependencies))

    def collect_ids(self) -> Iterator[Identifier]:
        """Yield the ids of this node and all of its descendants.

        Subtree objects shared by several parents are walked once.
        """
        return _walk_ids([self])

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id.to_coordinates()}
        if self.dependencies:
            data["dependencies"] = [
                d.to_dict() for d in sorted(self.dependencies, key=lambda r: r.id)
            ]
        return data


@dataclass(frozen=True)
class Scope:
    """A named partition of a project's dependencies, e.g. "requires" or "test"."""

    name: str
    dependencies: tuple[PackageReference, ...] = ()

    @classmethod
    def of(cls, name: str, dependencies: Iterable[PackageReference] = ()) -> Scope:
        return cls(name=name, dependencies=_unique_by_id(dependencies))

    def collect_ids(self) -> Iterator[Identifier]:
        return _walk_ids(self.dependencies)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "dependencies": [
                d.to_dict() for d in sorted(self.dependencies, key=lambda r: r.id)
            ],
        }


@dataclass(frozen=True)
class Project:
    """Root of the dependency graph of one definition file."""

    id: Identifier
    definition_file_path: str = ""
    declared_licenses: frozenset[str] = frozenset()
    vcs: VcsInfo = VcsInfo.EMPTY
    vcs_processed: VcsInfo = VcsInfo.EMPTY
    homepage_url: str = ""
    scopes: tuple[Scope, ...] = ()

    def scope(self, name: str) -> Scope | None:
        for s in self.scopes:
            if s.name == name:
                return s
        return None

    def collect_ids(self) -> set[Identifier]:
        return set(_walk_ids(ref for s in self.scopes for ref in s.dependencies))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id.to_coordinates(),
            "definition_file_path": self.definition_file_path,
            "declared_licenses": sorted(self.declared_licenses),
            "vcs": self.vcs.to_dict(),
            "vcs_processed": self.vcs_processed.to_dict(),
            "homepage_url": self.homepage_url,
            "scopes": [s.to_dict() for s in sorted(self.scopes, key=lambda s: s.name)],
        }


@dataclass(frozen=True)
class ProjectAnalyzerResult:
    """Output of one package manager for one definition file."""

    project: Project
    packages: frozenset[Package] = frozenset()
    errors: tuple[str, ...] = field(default=())

    def package(self, id: Identifier) -> Package | None:
        for pkg in self.packages:
            if pkg.id == id:
                return pkg
        return None

    def check_completeness(self) -> set[Identifier]:
        """Return referenced ids without a package entry (empty when complete)."""
        known = {p.id for p in self.packages}
        return self.project.collect_ids() - known

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": self.project.to_dict(),
            "packages": [p.to_dict() for p in sorted(self.packages, key=lambda p: p.id)],
            "errors": list(self.errors),
        }
