"""Shared console helpers for CLI commands."""

from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

console = Console(highlight=False)


def error(message: str) -> None:
    console.print(f"[bold red]✗[/bold red] {escape(message)}")


def success(message: str) -> None:
    console.print(f"[bold green]✓[/bold green] {escape(message)}")


def warning(message: str) -> None:
    console.print(f"[bold yellow]![/bold yellow] {escape(message)}")


def info(message: str) -> None:
    console.print(f"[cyan]•[/cyan] {escape(message)}")


def parse_env(values: Optional[List[str]]) -> Dict[str, str]:
    """
    Parse repeated ``--env KEY=VALUE`` options.

    Raises:
        typer.BadParameter: If an item has no ``=`` or an empty key
    """
    env: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{item}'", param_hint="--env")
        env[key.strip()] = value
    return env
