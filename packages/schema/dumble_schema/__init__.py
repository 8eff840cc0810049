"""
dumble Schema Package

Pydantic models for the package manifest, the compiler configuration, the
invocation options and engine diagnostics, plus the typed form of
conditional exports.

Usage:
    from dumble_schema import PackageManifest, TsConfig

    manifest = PackageManifest.model_validate(data)
    tsconfig = TsConfig.model_validate({"compilerOptions": {"outDir": "lib"}})
"""

from .diagnostics import Diagnostic, Location, Severity
from .exports import (
    ConditionMap,
    ExportDeclaration,
    ExportVisitor,
    LiteralExport,
    NullExport,
    parse_exports,
)
from .manifest import PackageManifest, PeerDependencyMeta
from .tsconfig import BuildOptions, CompilerOptions, TsConfig

__all__ = [
    # Manifest
    "PackageManifest",
    "PeerDependencyMeta",
    # Exports
    "ExportDeclaration",
    "LiteralExport",
    "ConditionMap",
    "NullExport",
    "ExportVisitor",
    "parse_exports",
    # Compiler configuration
    "CompilerOptions",
    "TsConfig",
    "BuildOptions",
    # Diagnostics
    "Diagnostic",
    "Location",
    "Severity",
]
