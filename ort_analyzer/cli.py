"""CLI entry point: ort-analyze.

Subcommands:
    ort-analyze analyze /path/to/project            # Print a summary per project
    ort-analyze analyze /path -o result.json        # Write the full result as JSON
    ort-analyze analyze /path --manager Conan --tree
    ort-analyze managers                            # List drivers and their globs
"""

from __future__ import annotations

import dataclasses
import json
import sys
from pathlib import Path

import click

from ort_analyzer.analyzer import Analyzer
from ort_analyzer.config import AnalyzerConfig
from ort_analyzer.graph import render_tree
from ort_analyzer.logging import setup_logging
from ort_analyzer.managers import MANAGER_REGISTRY


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """ORT analyzer: extract dependency graphs from package manager projects."""
    setup_logging(level="DEBUG" if verbose else None)


@main.command("analyze")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write the result as JSON to this file")
@click.option("-m", "--manager", "managers", multiple=True,
              help="Only run this package manager (repeatable)")
@click.option("--ignore-tool-versions", is_flag=True, default=False,
              help="Do not check the versions of the package manager tools")
@click.option("--tree", "show_tree", is_flag=True, default=False,
              help="Print the dependency tree of every scope")
def analyze(
    path: Path,
    output: Path | None,
    managers: tuple[str, ...],
    ignore_tool_versions: bool,
    show_tree: bool,
) -> None:
    """Resolve the dependencies of all definition files below PATH."""
    config = AnalyzerConfig.from_env()
    if ignore_tool_versions:
        config = dataclasses.replace(config, ignore_tool_versions=True)

    unknown = [m for m in managers if m.lower() not in {n.lower() for n in MANAGER_REGISTRY}]
    if unknown:
        click.echo(f"Error: Unknown package manager(s): {', '.join(unknown)}", err=True)
        sys.exit(2)

    run = Analyzer(config).analyze(path, list(managers) or None)

    if output is not None:
        output.write_text(json.dumps(run.to_dict(), indent=2) + "\n")
        click.echo(f"Result written to {output}")

    if not run.results:
        click.echo("No definition files found.")
        return

    for result in run.results:
        project = result.project
        status = "FAILED" if result.errors else "OK"
        click.echo(f"\n[{status}] {project.id} ({project.definition_file_path})")
        for scope in sorted(project.scopes, key=lambda s: s.name):
            click.echo(f"  {scope.name}: {len(scope.dependencies)} direct dependencies")
            if show_tree:
                for level, id in render_tree(sorted(scope.dependencies, key=lambda r: r.id), level=4):
                    click.echo(f"{' ' * level}{id}")
        click.echo(f"  Packages: {len(result.packages)}")
        for error in result.errors:
            click.echo(f"  Error: {error}")

    if run.has_errors:
        sys.exit(1)


@main.command("managers")
def list_managers() -> None:
    """List the available package managers and their definition file globs."""
    for name, manager_cls in sorted(MANAGER_REGISTRY.items()):
        click.echo(f"{name}: {', '.join(manager_cls.globs_for_definition_files)}")


if __name__ == "__main__":
    main()
