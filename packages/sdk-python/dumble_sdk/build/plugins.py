"""
Build Plugins
=============

Resolution and load hooks installed on every build task:

- ExternalLibraryPlugin: classifies package imports and links relative
  imports that land in another task's output instead of bundling them
- YamlPlugin: lets sources import ``.yml``/``.yaml`` files as JSON
- HashbangPlugin: makes executable entries start with a ``#!`` line
"""

import json
import os
from typing import FrozenSet, Iterable, Optional

import yaml
from dumble_common import ModuleFormat
from dumble_common.constants import DECLARATION_SUFFIX, HASHBANG, SOURCE_EXTENSIONS, YAML_EXTENSIONS
from dumble_common.logger import get_logger
from dumble_schema import PackageManifest

from ..engines.base import (
    BuildContext,
    BuildPlugin,
    LoadResult,
    ResolveArgs,
    ResolveResult,
    read_bytes,
    read_text,
)
from .dependencies import DependencyClassifier, looks_like_package
from .registry import ExportRegistry

logger = get_logger(__name__)


def relative_specifier(from_dir: str, target: str) -> str:
    """
    Specifier that reaches ``target`` from a module in ``from_dir``.

    Always uses forward slashes and starts with ``./`` or ``../``.

    Examples:
        >>> relative_specifier("/pkg/lib", "/pkg/lib/util.mjs")
        './util.mjs'
        >>> relative_specifier("/pkg/lib/cli", "/pkg/package.json")
        '../../package.json'
    """
    relpath = os.path.relpath(target, from_dir).replace("\\", "/")
    if not relpath.startswith("."):
        relpath = "./" + relpath
    return relpath


def declaration_path(resolve_dir: str, specifier: str) -> Optional[str]:
    """
    Declaration file standing behind a JavaScript specifier.

    ``./types.js`` -> ``<resolve_dir>/types.d.ts``, ``./x.mjs`` -> ``x.d.mts``.
    Returns None for specifiers without a JavaScript extension.
    """
    ext = os.path.splitext(specifier)[1]
    if not ext.endswith("js"):
        return None
    base = os.path.normpath(os.path.join(resolve_dir, specifier[: -len(ext)]))
    return base + ".d" + ext[:-2] + "ts"


class ExternalLibraryPlugin(BuildPlugin):
    """
    Resolution policy of one task.

    Package imports go through the DependencyClassifier. A relative import
    whose file is another task's entry is externalised: ESM tasks get a
    specifier pointing at that task's output for the same platform, CJS
    tasks keep the original specifier and leave resolution to the runtime.
    """

    name = "external library"

    def __init__(self, registry: ExportRegistry, manifest: PackageManifest):
        self.registry = registry
        self.classifier = DependencyClassifier(manifest)

    async def on_resolve(self, args: ResolveArgs, context: BuildContext) -> Optional[ResolveResult]:
        if looks_like_package(args.path):
            return self.classify_external(args.path, args.importer)
        if args.path.startswith(".") and args.namespace == "file":
            return self.rewrite_relative(
                context.task, args, context.lookup(args.path, args.resolve_dir)
            )
        return None

    def classify_external(self, specifier: str, importer: Optional[str] = None) -> Optional[ResolveResult]:
        """Delegate a package specifier to the dependency classifier."""
        return self.classifier.classify(specifier, importer)

    def rewrite_relative(
        self, task, args: ResolveArgs, resolved: Optional[str]
    ) -> Optional[ResolveResult]:
        """
        Decide how a relative import is linked.

        Args:
            task: The BuildTask being built
            args: The import being resolved
            resolved: File ordinary lookup found for it, if any

        Returns:
            An external ResolveResult, or None to bundle the import normally
        """
        if resolved is None:
            declaration = declaration_path(args.resolve_dir, args.path)
            public = self.registry.declaration_for(declaration) if declaration else None
            if public:
                return ResolveResult(path=public, external=True)

        if resolved is None or resolved == task.source_file or resolved not in self.registry:
            return None

        if task.format == ModuleFormat.CJS:
            return ResolveResult(external=True)

        # native ESM import should preserve extensions
        output = self.registry.output_for(resolved, task.platform)
        if not output:
            return None
        specifier = relative_specifier(os.path.dirname(task.output_file), output)
        logger.debug("Linked cross-task import", specifier=args.path, target=specifier)
        return ResolveResult(path=specifier, external=True)

    async def on_load(self, path: str, context: BuildContext) -> Optional[LoadResult]:
        if not path.endswith(DECLARATION_SUFFIX):
            return None
        return LoadResult(contents=await read_bytes(path), loader="copy")


class YamlPlugin(BuildPlugin):
    """Load YAML files as JSON modules."""

    name = "yaml"
    resolve_extensions = tuple(YAML_EXTENSIONS)

    async def on_load(self, path: str, context: BuildContext) -> Optional[LoadResult]:
        if os.path.splitext(path)[1] not in YAML_EXTENSIONS:
            return None
        data = yaml.safe_load(await read_text(path))
        return LoadResult(contents=json.dumps(data), loader="json")


class HashbangPlugin(BuildPlugin):
    """Prefix executable entries with ``#!/usr/bin/env node`` when missing."""

    name = "hashbang"

    def __init__(self, binaries: Iterable[str]):
        self.binaries: FrozenSet[str] = frozenset(binaries)

    async def on_load(self, path: str, context: BuildContext) -> Optional[LoadResult]:
        if path not in self.binaries or not path.endswith(SOURCE_EXTENSIONS):
            return None
        contents = await read_text(path)
        if not contents.startswith("#!"):
            contents = HASHBANG + contents
        return LoadResult(contents=contents, loader=os.path.splitext(path)[1].lstrip("."))
