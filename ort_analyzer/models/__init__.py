"""Normalized dependency graph model shared by all package managers."""

from ort_analyzer.models.identifier import Identifier
from ort_analyzer.models.package import (
    Hash,
    Package,
    PackageReference,
    Project,
    ProjectAnalyzerResult,
    RemoteArtifact,
    Scope,
)
from ort_analyzer.models.vcs import VcsInfo, normalize_vcs_url, process_package_vcs

__all__ = [
    "Hash",
    "Identifier",
    "Package",
    "PackageReference",
    "Project",
    "ProjectAnalyzerResult",
    "RemoteArtifact",
    "Scope",
    "VcsInfo",
    "normalize_vcs_url",
    "process_package_vcs",
]
