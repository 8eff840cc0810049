"""
Analyze Engine
==============

A bundle engine that emits nothing. It walks the static import graph of a
task the way a bundler would: every specifier goes through the task's
plugin chain, internal files are followed, externals are recorded with the
specifier that would be emitted.

It answers "what would this build bundle, and what would it leave
external?" without a JavaScript toolchain, which makes it the engine
behind ``dumble check`` and ``dumble plan``.
"""

import os
import re
from typing import Iterator, List, NamedTuple, Set

from dumble_common import BuildFailure, DumbleError
from dumble_common.logger import get_logger
from dumble_schema import Diagnostic, Location

from .base import BuildContext, BuildResult

logger = get_logger(__name__)

# Loaders whose contents are JavaScript or TypeScript source
SCRIPT_LOADERS = frozenset({"ts", "tsx", "js", "jsx"})

_COMMENT_OR_STRING = re.compile(
    r"""(?P<string>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)"""
    r"""|(?P<comment>//[^\n]*|/\*.*?\*/)""",
    re.DOTALL,
)

_IMPORT_PATTERNS = (
    (
        "import-statement",
        re.compile(
            r"""(?<![\w$.])(?:import|export)\s*(?:type\s+)?(?:[\w$*{}\s,]+?\s*from\s*)?(['"])(?P<spec>[^'"\n]+)\1"""
        ),
    ),
    ("require-call", re.compile(r"""(?<![\w$.])require\s*\(\s*(['"])(?P<spec>[^'"\n]+)\1\s*\)""")),
    ("dynamic-import", re.compile(r"""(?<![\w$.])import\s*\(\s*(['"])(?P<spec>[^'"\n]+)\1\s*\)""")),
)

_DYNAMIC_REQUIRE = re.compile(r"""(?<![\w$.])require\s*\(\s*(?!['"\s)])""")

DYNAMIC_REQUIRE_WARNING = (
    'This call to "require" will not be bundled because the argument is not a string literal'
)


class ImportSite(NamedTuple):
    specifier: str
    kind: str
    line: int
    column: int


def mask_source(source: str) -> str:
    """
    Blank out comments and the bodies of string literals.

    Quote characters, newlines and offsets are kept, so a match against the
    masked copy can be read back from the original source.

    Examples:
        >>> mask_source("a // note\\nb = 'x'")
        "a        \\nb = ' '"
    """

    def blank(match: "re.Match[str]") -> str:
        text = match.group(0)
        if match.group("string") is not None:
            return text[0] + re.sub(r"[^\n]", " ", text[1:-1]) + text[-1]
        return re.sub(r"[^\n]", " ", text)

    return _COMMENT_OR_STRING.sub(blank, source)


def _position(source: str, offset: int) -> tuple:
    line = source.count("\n", 0, offset) + 1
    column = offset - (source.rfind("\n", 0, offset) + 1)
    return line, column


def scan_imports(source: str) -> List[ImportSite]:
    """
    Find the static import specifiers of a module, in source order.

    Covers ``import``/``export ... from``, side-effect imports,
    ``require("x")`` and ``import("x")`` with literal arguments. Text inside
    comments and other string literals is never taken for an import.
    """
    code = mask_source(source)
    sites = {}
    for kind, pattern in _IMPORT_PATTERNS:
        for match in pattern.finditer(code):
            offset = match.start("spec") - 1
            if offset in sites:
                continue
            line, column = _position(code, offset)
            specifier = source[match.start("spec") : match.end("spec")]
            sites[offset] = ImportSite(specifier, kind, line, column)
    return [sites[offset] for offset in sorted(sites)]


def _dynamic_requires(source: str) -> Iterator[tuple]:
    code = mask_source(source)
    for match in _DYNAMIC_REQUIRE.finditer(code):
        yield _position(code, match.start())


class AnalyzeEngine:
    """
    Walks a task's import graph through its plugin chain.

    Unresolvable relative imports and plugin errors (an undeclared
    dependency, for instance) become error diagnostics located at the
    importing line; the task then fails with BuildFailure.
    """

    async def build(self, task, context: BuildContext) -> BuildResult:
        result = BuildResult(output_file=task.output_file)
        errors: List[Diagnostic] = []
        visited: Set[str] = set()
        queue: List[str] = [task.source_file]
        bundled_packages: Set[str] = set()

        while queue:
            path = queue.pop(0)
            if path in visited:
                continue
            visited.add(path)
            result.inputs.append(path)

            loaded = await context.load(path)
            if loaded.loader not in SCRIPT_LOADERS or not isinstance(loaded.contents, str):
                continue

            relpath = os.path.relpath(path, task.cwd).replace("\\", "/")
            for line, column in _dynamic_requires(loaded.contents):
                result.warnings.append(
                    Diagnostic.warning(DYNAMIC_REQUIRE_WARNING, Location(file=relpath, line=line, column=column))
                )

            for site in scan_imports(loaded.contents):
                location = Location(file=relpath, line=site.line, column=site.column)
                try:
                    resolved = await context.resolve(
                        site.specifier, importer=path, resolve_dir=os.path.dirname(path), kind=site.kind
                    )
                except DumbleError as e:
                    errors.append(Diagnostic.error(e.message, location))
                    continue

                if resolved.external:
                    result.externals[site.specifier] = resolved.path or site.specifier
                elif resolved.path is not None:
                    queue.append(resolved.path)
                elif site.specifier.startswith("."):
                    errors.append(Diagnostic.error(f'Could not resolve "{site.specifier}"', location))
                else:
                    bundled_packages.add(site.specifier)

        result.bundled_packages = sorted(bundled_packages)
        logger.debug(
            "Analyzed task",
            inputs=len(result.inputs),
            externals=len(result.externals),
            errors=len(errors),
        )
        if errors:
            raise BuildFailure(
                f"Build failed with {len(errors)} error{'s' if len(errors) != 1 else ''}",
                errors=errors,
                warnings=result.warnings,
            )
        return result
