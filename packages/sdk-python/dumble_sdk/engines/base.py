"""
Bundle Engine Protocol

Defines the boundary between dumble and whatever actually compiles and
bundles a build task.

An engine receives one BuildTask and a BuildContext. The context carries the
task's plugin chain: every import the engine meets goes through
``context.resolve()`` and every file it reads goes through
``context.load()``, so the externalisation and path-rewriting policy is
applied the same way whichever engine is installed.

Engines report compile errors by raising ``BuildFailure``; anything else they
raise is treated by the dispatcher as an unexpected failure of that task.

Available Implementations:
    - AnalyzeEngine: walks the import graph without emitting code

Usage:
    from dumble_sdk.engines import BundleEngine, BuildContext

    class MyEngine:
        async def build(self, task, context):
            result = await context.resolve("./util", task.source_file, task.source_dir)
            ...
"""

import asyncio
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    TYPE_CHECKING,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
    runtime_checkable,
)

from dumble_schema import Diagnostic

if TYPE_CHECKING:
    from ..build.matrix import BuildTask


@dataclass(frozen=True)
class ResolveArgs:
    """An import the engine wants resolved."""

    path: str
    """Specifier as written in source (``./util``, ``react``, ``node:fs``)"""

    importer: str
    """Absolute path of the importing file"""

    resolve_dir: str
    """Directory relative specifiers are resolved from"""

    kind: str = "import-statement"
    """import-statement, require-call, dynamic-import, ..."""

    namespace: str = "file"


@dataclass(frozen=True)
class ResolveResult:
    """
    Outcome of resolving an import.

    ``external=True`` leaves the import in the output; ``path`` is then the
    specifier to emit (None keeps the original one). Otherwise ``path`` is
    the file to bundle, or None for a package left to the engine's own
    package lookup.
    """

    path: Optional[str] = None
    external: bool = False


@dataclass(frozen=True)
class LoadResult:
    """Contents of a file and the loader the engine should parse it with."""

    contents: Union[str, bytes]
    loader: str


@dataclass
class BuildResult:
    """What an engine reports for a successful task."""

    output_file: str
    warnings: List[Diagnostic] = field(default_factory=list)
    inputs: List[str] = field(default_factory=list)
    """Files bundled into the output"""

    externals: Dict[str, str] = field(default_factory=dict)
    """Specifier as written -> specifier emitted, for every externalised import"""

    bundled_packages: List[str] = field(default_factory=list)


class BuildPlugin:
    """
    Base class for resolution and load hooks.

    Hooks return None to pass to the next plugin, then to ordinary lookup.
    """

    name = "plugin"
    resolve_extensions: Tuple[str, ...] = ()
    """Extra extensions this plugin teaches ordinary lookup"""

    async def on_resolve(self, args: ResolveArgs, context: "BuildContext") -> Optional[ResolveResult]:
        return None

    async def on_load(self, path: str, context: "BuildContext") -> Optional[LoadResult]:
        return None


LOADERS: Dict[str, str] = {
    ".ts": "ts",
    ".mts": "ts",
    ".cts": "ts",
    ".tsx": "tsx",
    ".js": "js",
    ".mjs": "js",
    ".cjs": "js",
    ".jsx": "jsx",
    ".json": "json",
    ".css": "css",
}

# Extension substitutions tried when a JavaScript path doesn't exist, the way
# TypeScript sources import their siblings by output name.
_SOURCE_ALTERNATIVES: Dict[str, Tuple[str, ...]] = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}


def loader_for(path: str) -> str:
    """Loader name for a file, ``file`` when the extension is unknown."""
    return LOADERS.get(os.path.splitext(path)[1], "file")


class BuildContext:
    """
    Per-task access to the plugin chain and ordinary file lookup.

    Attributes:
        task: The BuildTask being built
        plugins: Plugins consulted in order
        resolve_extensions: Extensions tried by ordinary lookup
    """

    def __init__(self, task: "BuildTask", plugins: Optional[Sequence[BuildPlugin]] = None):
        self.task = task
        self.plugins: Tuple[BuildPlugin, ...] = tuple(task.plugins if plugins is None else plugins)
        extensions = list(task.resolve_extensions)
        for plugin in self.plugins:
            extensions.extend(ext for ext in plugin.resolve_extensions if ext not in extensions)
        self.resolve_extensions: Tuple[str, ...] = tuple(extensions)

    def lookup(self, specifier: str, resolve_dir: str) -> Optional[str]:
        """
        Ordinary file lookup for relative and absolute specifiers.

        Tries the exact path, TypeScript siblings of a JavaScript path, the
        path plus each resolve extension, then ``index`` files inside it.

        Returns:
            Absolute path of the resolved file, or None
        """
        if not (specifier.startswith(".") or os.path.isabs(specifier)):
            return None

        base = os.path.normpath(os.path.join(resolve_dir, specifier))
        candidates: List[str] = [base]
        stem, ext = os.path.splitext(base)
        candidates.extend(stem + alt for alt in _SOURCE_ALTERNATIVES.get(ext, ()))
        candidates.extend(base + ext for ext in self.resolve_extensions)
        candidates.extend(os.path.join(base, "index" + ext) for ext in self.resolve_extensions)

        for candidate in candidates:
            if os.path.isfile(candidate):
                return candidate
        return None

    async def resolve(
        self,
        specifier: str,
        importer: str,
        resolve_dir: str,
        kind: str = "import-statement",
    ) -> ResolveResult:
        """Run the on_resolve hooks, then fall back to ordinary lookup."""
        args = ResolveArgs(path=specifier, importer=importer, resolve_dir=resolve_dir, kind=kind)
        for plugin in self.plugins:
            result = await plugin.on_resolve(args, self)
            if result is not None:
                return result
        return ResolveResult(path=self.lookup(specifier, resolve_dir))

    async def load(self, path: str) -> LoadResult:
        """Run the on_load hooks, then read the file as-is (bytes for unknown extensions)."""
        for plugin in self.plugins:
            result = await plugin.on_load(path, self)
            if result is not None:
                return result
        loader = loader_for(path)
        if loader == "file":
            return LoadResult(contents=await read_bytes(path), loader=loader)
        return LoadResult(contents=await read_text(path), loader=loader)


async def read_text(path: str) -> str:
    """Read a UTF-8 file without blocking the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: Path(path).read_text(encoding="utf-8"))


async def read_bytes(path: str) -> bytes:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, Path(path).read_bytes)


@runtime_checkable
class BundleEngine(Protocol):
    """
    Protocol for bundling engines.

    Implementations compile ``task.source_file`` into ``task.output_file``
    (or, for analysis engines, only walk it), consulting ``context`` for
    every import and every file read.
    """

    async def build(self, task: "BuildTask", context: BuildContext) -> BuildResult:
        """
        Build one task.

        Raises:
            BuildFailure: If the task finished with errors
        """
        ...
