"""
Build Task Matrix
=================

Combines export resolution, the frozen export registry and the invocation
options into the final list of BuildTasks.

Every task of a package shares the same compiler target, source-map flag,
minify flag and ``process.env`` substitutions; they differ in entry,
output extension, format and platform.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from dumble_common import RESOLVE_EXTENSIONS
from dumble_common.constants import TSCONFIG_FILENAME
from dumble_common.logger import get_logger
from dumble_schema import BuildOptions, PackageManifest, TsConfig

from ..engines.base import BuildPlugin
from .exports import ExportMapResolver, ResolvedEntry
from .plugins import ExternalLibraryPlugin, HashbangPlugin, YamlPlugin
from .registry import ExportRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class BuildTask:
    """
    One bundler invocation: one entry, one format, one platform.

    Immutable once constructed; the plugin chain holds a reference to the
    frozen ExportRegistry.
    """

    entry: str
    source_file: str
    output_file: str
    outdir: str
    outbase: str
    out_extension: str
    format: str
    platform: str
    cwd: str
    tsconfig: str
    target: Optional[str] = None
    minify: bool = False
    sourcemap: bool = False
    define: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}), compare=False)
    resolve_extensions: Tuple[str, ...] = tuple(RESOLVE_EXTENSIONS)
    is_binary: bool = False
    plugins: Tuple[BuildPlugin, ...] = field(default=(), compare=False, repr=False)

    # fixed engine settings
    bundle = True
    keep_names = True
    sources_content = False
    charset = "utf8"

    @property
    def task_id(self) -> str:
        """Output path relative to the package root; unique within a build."""
        return os.path.relpath(self.output_file, self.cwd).replace("\\", "/")

    @property
    def source_dir(self) -> str:
        return os.path.dirname(self.source_file)

    def to_dict(self) -> Dict[str, Any]:
        """Plain description of the task, e.g. for ``dumble plan --json``."""
        return {
            "entry": self.entry,
            "source": self.source_file,
            "output": self.output_file,
            "outdir": self.outdir,
            "outbase": self.outbase,
            "out_extension": self.out_extension,
            "format": self.format,
            "platform": self.platform,
            "target": self.target,
            "minify": self.minify,
            "sourcemap": self.sourcemap,
            "define": dict(self.define),
            "binary": self.is_binary,
            "plugins": [plugin.name for plugin in self.plugins],
        }


@dataclass
class BuildMatrix:
    """The tasks of one package and the registry they share."""

    tasks: List[BuildTask] = field(default_factory=list)
    registry: ExportRegistry = field(default_factory=ExportRegistry)
    entries: List[ResolvedEntry] = field(default_factory=list)
    """Every resolved entry, including declaration-only ones"""

    @property
    def is_empty(self) -> bool:
        return not self.tasks


class BuildMatrixBuilder:
    """
    Builds the task matrix of a package.

    Example:
        >>> builder = BuildMatrixBuilder(Path("/pkg"), manifest, tsconfig, BuildOptions(minify=True))
        >>> matrix = await builder.build()
        >>> [task.task_id for task in matrix.tasks]
        ['lib/index.cjs', 'lib/index.mjs']
    """

    def __init__(
        self,
        cwd: Path,
        manifest: PackageManifest,
        tsconfig: TsConfig,
        options: Optional[BuildOptions] = None,
        include_private: bool = False,
    ):
        self.cwd = Path(cwd).resolve()
        self.manifest = manifest
        self.tsconfig = tsconfig
        self.options = options or BuildOptions()
        self.include_private = include_private

    async def build(self) -> BuildMatrix:
        """
        Resolve exports, freeze the registry and create the tasks.

        Returns:
            BuildMatrix; empty for private packages and for projects whose
            compiler emits JavaScript itself
        """
        if self.manifest.private and not self.include_private:
            logger.info("Skipping private package", package=self.manifest.name)
            return BuildMatrix()
        if not self.tsconfig.should_bundle:
            logger.info(
                "Compiler emits JavaScript, nothing to bundle",
                package=self.manifest.name,
            )
            return BuildMatrix()

        resolver = ExportMapResolver(self.cwd, self.manifest, self.tsconfig)
        resolution = await resolver.resolve()
        registry = resolution.registry.freeze()

        define = MappingProxyType(self.options.define())
        tasks = [
            self._make_task(resolver, entry, registry, resolution.binaries, define)
            for entry in resolution.entries
            if not entry.declaration_only
        ]
        logger.info("Built task matrix", package=self.manifest.name, tasks=len(tasks))
        return BuildMatrix(tasks=tasks, registry=registry, entries=list(resolution.entries))

    def _make_task(
        self,
        resolver: ExportMapResolver,
        entry: ResolvedEntry,
        registry: ExportRegistry,
        binaries: Set[str],
        define: Mapping[str, str],
    ) -> BuildTask:
        options = self.tsconfig.compiler_options
        return BuildTask(
            entry=entry.entry,
            source_file=entry.source_file,
            output_file=entry.output_file,
            outdir=resolver.outdir,
            outbase=resolver.outbase,
            out_extension=entry.out_extension,
            format=entry.format,
            platform=entry.platform,
            cwd=str(self.cwd),
            tsconfig=str(self.cwd / TSCONFIG_FILENAME),
            target=options.engine_target,
            minify=self.options.minify,
            sourcemap=options.source_map,
            define=define,
            is_binary=entry.is_binary,
            plugins=(
                YamlPlugin(),
                ExternalLibraryPlugin(registry, self.manifest),
                HashbangPlugin(binaries),
            ),
        )


async def build_matrix(
    cwd: Path,
    manifest: PackageManifest,
    tsconfig: TsConfig,
    options: Optional[BuildOptions] = None,
    include_private: bool = False,
) -> BuildMatrix:
    """Convenience wrapper around BuildMatrixBuilder."""
    return await BuildMatrixBuilder(cwd, manifest, tsconfig, options, include_private).build()
