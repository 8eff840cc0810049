"""
Export Map Resolution
=====================

Turns the manifest's entry fields into concrete entries to build.

Declarations are collected in manifest order:

1. ``main``
2. ``module`` (always ESM)
3. ``exports``, depth-first in declaration order
4. ``package.json`` itself, only when there is no ``exports`` field
5. ``bin``

Each declaration carries a preset (format + platform) and a subpath prefix.
Its target pattern is mapped back from the output directory to the source
root (``lib/*.mjs`` -> ``**.{ts,tsx}`` under ``rootDir``) and expanded
against the filesystem. Two declarations that would write the same output
file keep the first one; later ones are dropped silently.

Targets outside the output directory (``./package.json``) are not compiled:
matching files outside ``rootDir`` are registered as-is so tasks can link
to them.
"""

import os
import posixpath
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from dumble_common import Conditions, ModuleFormat, Platform, SOURCE_EXTENSIONS
from dumble_common.constants import CJS_EXTENSION, ESM_EXTENSION, MANIFEST_FILENAME
from dumble_common.logger import get_logger
from dumble_schema import (
    ConditionMap,
    ExportVisitor,
    LiteralExport,
    PackageManifest,
    TsConfig,
)

from .pattern_resolver import glob_files_async
from .registry import RegistryBuilder

logger = get_logger(__name__)


@dataclass(frozen=True)
class Preset:
    """Running format and platform; ``platform=None`` marks declaration output."""

    format: str
    platform: Optional[str] = Platform.NODE

    @property
    def declaration_only(self) -> bool:
        return self.platform is None


@dataclass(frozen=True)
class Declaration:
    """One target pattern reached while walking the manifest."""

    pattern: str
    preset: Preset
    subpath: Optional[str] = ""
    is_binary: bool = False


@dataclass(frozen=True)
class ResolvedEntry:
    """A declaration expanded against one matching source file."""

    source_file: str
    output_file: str
    entry: str
    """Output path relative to the output directory, without extension"""

    out_extension: str
    format: str
    platform: Optional[str]
    subpath: str = ""
    """Public specifier advertised for a declaration-only entry"""

    is_binary: bool = False

    @property
    def declaration_only(self) -> bool:
        return self.platform is None

    @property
    def registry_slot(self) -> str:
        return Platform.TYPES if self.platform is None else self.platform


@dataclass(frozen=True)
class PatternMatch:
    """Result of expanding one code pattern."""

    out_extension: str
    targets: Tuple[str, ...]
    before: str = ""
    after: str = ""
    """Fixed text around the wildcard, used to recover what it captured"""

    wildcard: bool = False

    def capture(self, entry: str) -> str:
        if not self.wildcard:
            return ""
        end = len(entry) - len(self.after) if self.after else len(entry)
        return entry[len(self.before) : end]


@dataclass
class ExportResolution:
    """Everything export resolution produced."""

    entries: List[ResolvedEntry] = field(default_factory=list)
    binaries: Set[str] = field(default_factory=set)
    registry: RegistryBuilder = field(default_factory=RegistryBuilder)


class DeclarationCollector(ExportVisitor[None]):
    """Walks an ``exports`` declaration, collecting targets in order."""

    def __init__(self) -> None:
        self.declarations: List[Declaration] = []

    def visit_literal(self, node: LiteralExport, preset: Preset, prefix: str) -> None:
        self.declarations.append(Declaration(node.pattern, preset, prefix))

    def visit_conditions(self, node: ConditionMap, preset: Preset, prefix: str) -> None:
        for key, child in node.branches:
            if key == Conditions.REQUIRE:
                self.visit(child, replace(preset, format=ModuleFormat.CJS), prefix)
            elif key == Conditions.IMPORT:
                self.visit(child, replace(preset, format=ModuleFormat.ESM), prefix)
            elif key in Conditions.PLATFORMS:
                self.visit(child, replace(preset, platform=key), prefix)
            elif key in Conditions.DECLARATIONS:
                self.visit(child, replace(preset, platform=None), prefix)
            elif key.startswith(Conditions.SUBPATH_PREFIX):
                self.visit(child, preset, posixpath.normpath(posixpath.join(prefix, key)))
            else:
                self.visit(child, preset, prefix)


def _strip_dot_slash(pattern: str) -> str:
    return pattern[2:] if pattern.startswith("./") else pattern


class ExportMapResolver:
    """
    Resolves a manifest's entry declarations into ResolvedEntry values.

    Example:
        >>> resolver = ExportMapResolver(Path("/pkg"), manifest, tsconfig)
        >>> resolution = await resolver.resolve()
        >>> [entry.output_file for entry in resolution.entries]
        ['/pkg/lib/index.cjs', '/pkg/lib/index.mjs']
    """

    def __init__(
        self,
        cwd: Path,
        manifest: PackageManifest,
        tsconfig: TsConfig,
        source_extensions: Tuple[str, ...] = SOURCE_EXTENSIONS,
    ):
        self.cwd = Path(cwd)
        self.manifest = manifest
        options = tsconfig.compiler_options
        self.root_dir = options.root_dir
        self.out_dir = options.resolved_out_dir
        self.outdir = os.path.normpath(os.path.join(self.cwd, self.out_dir))
        self.outbase = os.path.normpath(os.path.join(self.cwd, self.root_dir))
        self.source_extensions = source_extensions
        self._cache: Dict[str, Optional[PatternMatch]] = {}
        self._outputs: Set[str] = set()

    def declarations(self) -> List[Declaration]:
        """All declarations of the manifest, in processing order."""
        manifest = self.manifest
        preset = Preset(format=manifest.default_format, platform=Platform.NODE)
        declarations: List[Declaration] = []

        if manifest.main:
            declarations.append(Declaration(manifest.main, preset))
        if manifest.module:
            declarations.append(Declaration(manifest.module, replace(preset, format=ModuleFormat.ESM)))

        export_map = manifest.export_map
        if export_map is not None:
            collector = DeclarationCollector()
            collector.visit(export_map, preset, "")
            declarations.extend(collector.declarations)
        else:
            declarations.append(Declaration(MANIFEST_FILENAME, preset, None))

        for path in manifest.bin_paths():
            declarations.append(Declaration(path, preset, None, is_binary=True))
        return declarations

    async def resolve(self) -> ExportResolution:
        """
        Expand every declaration, in order.

        Returns:
            ExportResolution with the entries, the binary sources and the
            (still open) registry
        """
        resolution = ExportResolution()
        for declaration in self.declarations():
            await self._add_declaration(declaration, resolution)
        logger.info(
            "Resolved exports",
            package=self.manifest.name,
            entries=len(resolution.entries),
            files=len(resolution.registry),
        )
        return resolution

    def public_name(self, subpath: Optional[str], capture: str = "") -> str:
        """
        Public specifier for a subpath: ``pkg`` for the root, ``pkg/utils`` otherwise.
        """
        name = self.manifest.name
        if not subpath or subpath == ".":
            return name
        if capture:
            subpath = subpath.replace("*", capture, 1)
        return f"{name}/{subpath}"

    async def _expand(self, pattern: str, resolution: ExportResolution) -> Optional[PatternMatch]:
        prefix = self.out_dir + "/" if self.out_dir else ""
        if not pattern.startswith(prefix):
            await self._register_passthrough(pattern, resolution)
            return None

        out_extension = posixpath.splitext(pattern)[1]
        stem = pattern[len(prefix) : len(pattern) - len(out_extension)]
        before, wildcard, after = stem.partition("*")
        extensions = ",".join(ext.lstrip(".") for ext in self.source_extensions)
        source_pattern = stem.replace("*", "**", 1) + ".{" + extensions + "}"
        targets = await glob_files_async(source_pattern, Path(self.outbase))
        return PatternMatch(
            out_extension=out_extension,
            targets=tuple(targets),
            before=before,
            after=after,
            wildcard=bool(wildcard),
        )

    async def _register_passthrough(self, pattern: str, resolution: ExportResolution) -> None:
        targets = await glob_files_async(pattern.replace("*", "**", 1), self.cwd)
        for target in targets:
            # files inside rootDir are sources, not passthrough exports
            if not posixpath.relpath(target, self.root_dir or ".").startswith("../"):
                continue
            filename = os.path.normpath(os.path.join(self.cwd, target))
            resolution.registry.register_passthrough(filename)
            logger.debug("Registered passthrough export", file=filename)

    async def _add_declaration(self, declaration: Declaration, resolution: ExportResolution) -> None:
        pattern = _strip_dot_slash(declaration.pattern)
        if pattern not in self._cache:
            self._cache[pattern] = await self._expand(pattern, resolution)
        match = self._cache[pattern]
        if match is None:
            return

        preset = declaration.preset
        if match.out_extension == CJS_EXTENSION:
            preset = replace(preset, format=ModuleFormat.CJS)
        elif match.out_extension == ESM_EXTENSION:
            preset = replace(preset, format=ModuleFormat.ESM)

        for target in match.targets:
            source_file = os.path.normpath(os.path.join(self.outbase, target))
            if declaration.is_binary:
                resolution.binaries.add(source_file)
            entry = target[: len(target) - len(posixpath.splitext(target)[1])]
            output_file = os.path.normpath(os.path.join(self.outdir, entry + match.out_extension))
            if output_file in self._outputs:
                logger.debug("Skipped duplicate output", output=output_file, source=source_file)
                continue
            self._outputs.add(output_file)

            subpath = ""
            if preset.declaration_only:
                subpath = self.public_name(declaration.subpath, match.capture(entry))
                resolution.registry.register(source_file, Platform.TYPES, subpath)
            else:
                resolution.registry.register(source_file, preset.platform, output_file)

            resolution.entries.append(
                ResolvedEntry(
                    source_file=source_file,
                    output_file=output_file,
                    entry=entry,
                    out_extension=match.out_extension,
                    format=preset.format,
                    platform=preset.platform,
                    subpath=subpath,
                    is_binary=declaration.is_binary,
                )
            )
