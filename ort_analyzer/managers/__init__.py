"""Package manager drivers.

Importing this package registers every driver in ``MANAGER_REGISTRY``.
"""

from ort_analyzer.managers import bitbake, conan, stack  # noqa: F401
from ort_analyzer.managers.base import PackageManager
from ort_analyzer.managers.registry import (
    MANAGER_REGISTRY,
    create_managers,
    find_definition_files,
    register_manager,
)

__all__ = [
    "MANAGER_REGISTRY",
    "PackageManager",
    "create_managers",
    "find_definition_files",
    "register_manager",
]
