"""Plan command - show the task matrix of a package without building."""

import asyncio
import json
import os
from pathlib import Path

import typer
from dumble_common import DumbleError
from dumble_sdk import plan as plan_project
from rich.table import Table

from .utils import console, error, info


def plan(
    path: Path = typer.Argument(Path("."), help="Package directory"),
    as_json: bool = typer.Option(False, "--json", help="Print tasks and registry as JSON"),
    include_private: bool = typer.Option(
        False, "--include-private", help="Plan packages marked private"
    ),
):
    """
    Show the build tasks and the export registry of a package.
    """
    try:
        matrix = asyncio.run(plan_project(path, include_private=include_private))
    except DumbleError as e:
        error(e.message)
        raise typer.Exit(1)

    if as_json:
        data = {
            "tasks": [task.to_dict() for task in matrix.tasks],
            "registry": matrix.registry.to_dict(),
        }
        typer.echo(json.dumps(data, indent=2))
        return

    if matrix.is_empty:
        info("Nothing to build")
        return

    base = path.resolve()
    table = Table(title="Build tasks")
    table.add_column("Source", style="cyan")
    table.add_column("Output", style="green")
    table.add_column("Format")
    table.add_column("Platform")
    for task in matrix.tasks:
        table.add_row(
            os.path.relpath(task.source_file, base),
            os.path.relpath(task.output_file, base),
            task.format,
            task.platform + (" (bin)" if task.is_binary else ""),
        )
    console.print(table)
