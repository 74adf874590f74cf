"""Custom exceptions for the ORT analyzer."""

from __future__ import annotations


class AnalyzerError(Exception):
    """Base exception for all analyzer errors."""


class ProcessError(AnalyzerError):
    """Base exception for failures of external commands."""


class ProcessSpawnError(ProcessError):
    """Raised when an executable cannot be located or started."""

    def __init__(self, command: list[str], reason: str):
        self.command = command
        self.reason = reason
        super().__init__(f"Unable to run '{' '.join(command)}': {reason}")


class CommandExecutionError(ProcessError):
    """Raised when a command exits non-zero and success was required."""

    def __init__(self, command: list[str], exit_code: int, stderr: str):
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            f"Running '{' '.join(command)}' failed with exit code {exit_code}: "
            f"{stderr.strip()[-1000:]}"
        )


class ParseError(AnalyzerError):
    """Raised when tool output does not match the expected grammar."""

    def __init__(self, reason: str, line: int | None = None, fragment: str | None = None):
        self.reason = reason
        self.line = line
        self.fragment = fragment
        message = reason
        if line is not None:
            message = f"line {line}: {message}"
        if fragment is not None:
            message = f"{message} ('{fragment}')"
        super().__init__(message)


class GraphBuildError(AnalyzerError):
    """Raised when a dependency tree is structurally invalid."""


class MetadataEnrichmentError(AnalyzerError):
    """Raised when remote package meta-data cannot be retrieved.

    Never escapes a package manager: callers fall back to a placeholder package.
    """
