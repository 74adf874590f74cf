"""Tests for the package manager registry and definition file discovery."""

from __future__ import annotations

from pathlib import Path

from conftest import write
from ort_analyzer.config import AnalyzerConfig
from ort_analyzer.managers import MANAGER_REGISTRY, create_managers, find_definition_files
from ort_analyzer.managers.bitbake import BitBake
from ort_analyzer.managers.conan import Conan
from ort_analyzer.managers.stack import Stack


class TestRegistry:
    def test_all_drivers_registered(self):
        assert MANAGER_REGISTRY["BitBake"] is BitBake
        assert MANAGER_REGISTRY["Conan"] is Conan
        assert MANAGER_REGISTRY["Stack"] is Stack

    def test_create_all(self, tmp_path: Path):
        managers = create_managers(tmp_path)
        assert [m.name for m in managers] == ["BitBake", "Conan", "Stack"]
        assert all(m.analysis_root == tmp_path.resolve() for m in managers)

    def test_create_selected_case_insensitive(self, tmp_path: Path):
        managers = create_managers(tmp_path, names=["conan", "STACK"])
        assert [m.name for m in managers] == ["Conan", "Stack"]

    def test_enabled_managers_from_config(self, tmp_path: Path):
        config = AnalyzerConfig(enabled_managers=["BitBake"], command_timeout=5.0)
        (manager,) = create_managers(tmp_path, config)
        assert isinstance(manager, BitBake)
        assert manager.command_timeout == 5.0


class TestDefinitionFiles:
    def test_globs(self, tmp_path: Path):
        conan = Conan(tmp_path)
        assert conan.matches(Path("x/conanfile.py"))
        assert conan.matches(Path("conanfile.txt"))
        assert not conan.matches(Path("conanfile.txt.bak"))

    def test_find_definition_files(self, tmp_path: Path):
        write(tmp_path / "poky" / "oe-init-build-env")
        write(tmp_path / "b" / "conanfile.txt")
        write(tmp_path / "a" / "conanfile.py")
        write(tmp_path / "haskell" / "stack.yaml")
        write(tmp_path / "haskell" / ".stack-work" / "stack.yaml")
        write(tmp_path / "node_modules" / "x" / "conanfile.txt")
        write(tmp_path / "README.md")

        found = find_definition_files(tmp_path, create_managers(tmp_path))
        by_name = {m.name: [p.relative_to(tmp_path).as_posix() for p in files] for m, files in found.items()}

        assert by_name == {
            "BitBake": ["poky/oe-init-build-env"],
            "Conan": ["a/conanfile.py", "b/conanfile.txt"],
            "Stack": ["haskell/stack.yaml"],
        }

    def test_nothing_found(self, tmp_path: Path):
        write(tmp_path / "setup.py")
        assert find_definition_files(tmp_path, create_managers(tmp_path)) == {}
