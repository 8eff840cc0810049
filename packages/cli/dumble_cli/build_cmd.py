"""Build and check commands - run the task matrix of a package."""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from dumble_common import DumbleError
from dumble_schema import BuildOptions
from dumble_sdk import build as build_project
from dumble_sdk.build import DiagnosticsReporter
from dumble_sdk.engines import DEFAULT_ENGINE, AnalyzeEngine, load_engine

from .utils import console, error, parse_env, success


def _run(
    path: Path,
    options: BuildOptions,
    engine_entrypoint: Optional[str],
    include_private: bool,
) -> int:
    try:
        engine = load_engine(engine_entrypoint) if engine_entrypoint else AnalyzeEngine()
        report = asyncio.run(
            build_project(
                path,
                options=options,
                engine=engine,
                reporter=DiagnosticsReporter(console=console, base=path.resolve()),
                include_private=include_private,
            )
        )
    except DumbleError as e:
        error(e.message)
        raise typer.Exit(1)

    if report.succeeded:
        success(f"{len(report.outcomes)} task(s) built")
    else:
        error(f"{report.error_count} error(s) in {len(report.outcomes)} task(s)")
    return report.exit_code


def build(
    path: Path = typer.Argument(Path("."), help="Package directory"),
    minify: bool = typer.Option(False, "--minify", "-m", help="Minify output"),
    env: Optional[List[str]] = typer.Option(
        None,
        "--env",
        "-e",
        help="Compile-time environment variable (KEY=VALUE, repeatable)",
    ),
    engine: str = typer.Option(
        DEFAULT_ENGINE,
        "--engine",
        help="Bundle engine entrypoint (module:Attribute)",
    ),
    include_private: bool = typer.Option(
        False, "--include-private", help="Build packages marked private"
    ),
):
    """
    Build every entry point of a package.

    \b
    Examples:
        dumble build packages/core --minify
        dumble build --env NODE_ENV=production --engine my_engines:Esbuild
    """
    options = BuildOptions(minify=minify, env=parse_env(env))
    code = _run(path, options, engine, include_private)
    raise typer.Exit(code)


def check(
    path: Path = typer.Argument(Path("."), help="Package directory"),
    env: Optional[List[str]] = typer.Option(
        None,
        "--env",
        "-e",
        help="Compile-time environment variable (KEY=VALUE, repeatable)",
    ),
):
    """
    Walk every task's imports without emitting code.

    Reports undeclared dependencies and unresolvable imports; exits with the
    number of errors found (at most 255).
    """
    options = BuildOptions(env=parse_env(env))
    code = _run(path, options, None, include_private=False)
    raise typer.Exit(code)
