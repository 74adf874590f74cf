"""Synchronous invocation of external package manager commands."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

import structlog

from ort_analyzer.exceptions import CommandExecutionError, ProcessSpawnError

log = structlog.get_logger("ort_analyzer.process")

_VERSION_RE = re.compile(r"(\d+(?:\.\d+)*)")


@dataclass(frozen=True)
class ProcessResult:
    """Captured outcome of one finished child process."""

    command: list[str]
    stdout: str
    stderr: str
    exit_code: int

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0

    def require_success(self) -> ProcessResult:
        """Return self, or raise CommandExecutionError on a non-zero exit."""
        if not self.is_success:
            raise CommandExecutionError(self.command, self.exit_code, self.stderr)
        return self


def run_process(
    *command: str,
    cwd: Path | str | None = None,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
) -> ProcessResult:
    """Run *command* in *cwd* and wait for it to exit.

    Both streams are read to the end before returning. A non-zero exit code is
    not an error here; use :meth:`ProcessResult.require_success` for that.

    Raises ProcessSpawnError if the executable cannot be started and
    CommandExecutionError if *timeout* expires (the child is killed).
    """
    cmd = list(command)
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)

    log.debug("process.run", command=cmd, cwd=str(cwd) if cwd else None)
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            env=full_env,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ProcessSpawnError(cmd, f"executable not found ({e.strerror or e})") from e
    except subprocess.TimeoutExpired as e:
        stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
        raise CommandExecutionError(cmd, -1, f"timed out after {timeout}s. {stderr}") from e
    except OSError as e:
        raise ProcessSpawnError(cmd, str(e)) from e

    if result.returncode != 0:
        log.debug("process.nonzero_exit", command=cmd, exit_code=result.returncode)

    return ProcessResult(
        command=cmd,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        exit_code=result.returncode,
    )


def parse_version(text: str) -> tuple[int, ...]:
    """Extract the first dotted number from *text*, e.g. ``"Version 2.1.3, Git"`` -> (2, 1, 3)."""
    m = _VERSION_RE.search(text)
    if not m:
        return ()
    return tuple(int(part) for part in m.group(1).split("."))


class CommandLineTool:
    """Mixin for package managers that drive a command line tool."""

    # Minimum tool version, e.g. (2, 1, 1). Empty means any version.
    minimum_version: tuple[int, ...] = ()
    version_args: tuple[str, ...] = ("--version",)
    command_timeout: float | None = None

    def command(self, working_dir: Path | None = None) -> str:
        raise NotImplementedError

    def run(self, working_dir: Path, *args: str, env: dict[str, str] | None = None) -> ProcessResult:
        """Run the tool with *args* in *working_dir* and require success."""
        return run_process(
            self.command(working_dir),
            *args,
            cwd=working_dir,
            env=env,
            timeout=self.command_timeout,
        ).require_success()

    def get_version(self, working_dir: Path | None = None) -> tuple[int, ...]:
        result = run_process(
            self.command(working_dir),
            *self.version_args,
            cwd=working_dir,
            timeout=self.command_timeout,
        ).require_success()
        return parse_version(result.stdout or result.stderr)

    def check_version(self, working_dir: Path | None = None) -> None:
        """Raise CommandExecutionError if the installed tool is too old."""
        if not self.minimum_version:
            return
        actual = self.get_version(working_dir)
        if actual < self.minimum_version:
            required = ".".join(str(p) for p in self.minimum_version)
            found = ".".join(str(p) for p in actual) or "unknown"
            raise CommandExecutionError(
                [self.command(working_dir), *self.version_args],
                0,
                f"version {found} does not satisfy the requirement >= {required}",
            )
