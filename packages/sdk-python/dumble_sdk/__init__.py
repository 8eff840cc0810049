"""dumble SDK - derive and run the build tasks of a TypeScript package.

This package provides tools for:
- Loading package.json and tsconfig.json
- Resolving conditional exports into a deduplicated task matrix
- Linking imports across tasks and classifying package dependencies
- Running tasks on a pluggable bundle engine and aggregating diagnostics

Example:
    >>> import asyncio
    >>> from dumble_sdk import build
    >>> report = asyncio.run(build("packages/core"))
    >>> report.exit_code
    0
"""

from pathlib import Path
from typing import Optional, Union

from dumble_schema import BuildOptions

from .build import (
    BuildMatrix,
    BuildReport,
    BuildTask,
    DiagnosticsReporter,
    ExportRegistry,
    build_matrix,
    build_package,
    dispatch,
)
from .client import load_manifest, load_project, load_tsconfig, parse_jsonc
from .engines import AnalyzeEngine, BundleEngine, load_engine

__version__ = "0.1.0"


async def plan(
    cwd: Union[str, Path],
    options: Optional[BuildOptions] = None,
    include_private: bool = False,
) -> BuildMatrix:
    """Load a package and compute its task matrix without building."""
    manifest, tsconfig = load_project(cwd)
    return await build_matrix(Path(cwd), manifest, tsconfig, options, include_private)


async def build(
    cwd: Union[str, Path],
    options: Optional[BuildOptions] = None,
    engine: Optional[BundleEngine] = None,
    reporter: Optional[DiagnosticsReporter] = None,
    include_private: bool = False,
) -> BuildReport:
    """Load a package, compute its task matrix and build every task."""
    manifest, tsconfig = load_project(cwd)
    return await build_package(
        Path(cwd),
        manifest,
        tsconfig,
        engine or AnalyzeEngine(),
        options=options,
        reporter=reporter,
        include_private=include_private,
    )


__all__ = [
    # Core functions
    "plan",
    "build",
    "build_matrix",
    "build_package",
    "dispatch",
    # Loading
    "load_manifest",
    "load_tsconfig",
    "load_project",
    "parse_jsonc",
    # Engines
    "AnalyzeEngine",
    "BundleEngine",
    "load_engine",
    # Types
    "BuildMatrix",
    "BuildReport",
    "BuildTask",
    "DiagnosticsReporter",
    "ExportRegistry",
]
