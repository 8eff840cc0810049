"""
dumble Build System
===================

Derives the build tasks of a package and runs them:

- Export map resolution (manifest entry fields -> entries)
- Dependency classification (bundle or externalise a package import)
- Task matrix construction with a frozen export registry
- Cross-task import linking (build plugins)
- Concurrent dispatch and diagnostics reporting

Usage:
    from dumble_sdk.build import build_matrix, dispatch
    from dumble_sdk.engines import AnalyzeEngine

    matrix = await build_matrix(cwd, manifest, tsconfig)
    report = await dispatch(matrix, AnalyzeEngine())

    print(report.exit_code)
"""

from .dependencies import DependencyClassifier, is_builtin, looks_like_package, package_name
from .diagnostics import DiagnosticsReporter, format_diagnostic, is_ignored
from .dispatch import BuildReport, TaskOutcome, build_package, dispatch, run_task
from .exports import Declaration, ExportMapResolver, ExportResolution, Preset, ResolvedEntry
from .matrix import BuildMatrix, BuildMatrixBuilder, BuildTask, build_matrix
from .pattern_resolver import glob_files, matches_pattern
from .plugins import ExternalLibraryPlugin, HashbangPlugin, YamlPlugin, relative_specifier
from .registry import ExportRegistry, RegistryBuilder

__all__ = [
    # Export resolution
    "ExportMapResolver",
    "ExportResolution",
    "Declaration",
    "Preset",
    "ResolvedEntry",
    # Dependencies
    "DependencyClassifier",
    "package_name",
    "is_builtin",
    "looks_like_package",
    # Matrix
    "BuildTask",
    "BuildMatrix",
    "BuildMatrixBuilder",
    "build_matrix",
    "ExportRegistry",
    "RegistryBuilder",
    # Plugins
    "ExternalLibraryPlugin",
    "YamlPlugin",
    "HashbangPlugin",
    "relative_specifier",
    # Patterns
    "glob_files",
    "matches_pattern",
    # Dispatch
    "DiagnosticsReporter",
    "format_diagnostic",
    "is_ignored",
    "TaskOutcome",
    "BuildReport",
    "run_task",
    "dispatch",
    "build_package",
]
