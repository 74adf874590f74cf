"""ORT analyzer: dependency graph extraction for BitBake, Conan and Stack projects."""

__version__ = "0.1.0"
