"""
dumble Constants

Single source of truth for names and defaults shared by the schema, the
SDK and the CLI.
"""

from typing import FrozenSet, List, Tuple

# =============================================================================
# MANIFEST
# =============================================================================

DEPENDENCY_TYPES: Tuple[str, ...] = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)
"""Manifest fields that declare dependencies, in manifest order."""

DEV_DEPENDENCY_TYPE = "devDependencies"

MANIFEST_FILENAME = "package.json"
TSCONFIG_FILENAME = "tsconfig.json"


class ModuleFormat:
    """Output module formats."""

    CJS = "cjs"
    """Synchronous, require-style modules"""

    ESM = "esm"
    """Asynchronous, import-style modules"""


class Platform:
    """Target platforms and the extra registry slots."""

    NODE = "node"
    BROWSER = "browser"

    TYPES = "types"
    """Registry slot holding the public specifier of a declaration-only output"""

    DEFAULT = "default"
    """Registry slot of files exported as-is (package.json and friends)"""


class Conditions:
    """Condition keys understood inside the manifest ``exports`` field."""

    REQUIRE = "require"
    IMPORT = "import"
    PLATFORMS: Tuple[str, ...] = (Platform.NODE, Platform.BROWSER)
    DECLARATIONS: Tuple[str, ...] = ("types", "typings")
    SUBPATH_PREFIX = "."


# =============================================================================
# BUILD DEFAULTS
# =============================================================================

SOURCE_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx")
"""Source extensions tried for every exported output path."""

RESOLVE_EXTENSIONS: List[str] = [".tsx", ".ts", ".jsx", ".js", ".css", ".json"]
"""Extensions tried by ordinary file lookup, in order."""

YAML_EXTENSIONS: List[str] = [".yml", ".yaml"]

DECLARATION_SUFFIX = ".d.ts"

HASHBANG = "#!/usr/bin/env node\n"

CJS_EXTENSION = ".cjs"
ESM_EXTENSION = ".mjs"

PACKAGE_SPECIFIER_PATTERN = r"^[@\w].+$"
"""Specifiers that look like package names rather than paths."""

IGNORED_MESSAGES: Tuple[str, ...] = (
    'This call to "require" will not be bundled because the argument is not a string literal',
    'Indirect calls to "require" will not be bundled',
    'should be marked as external for use with "require.resolve"',
)
"""Engine messages that are expected and never shown."""

ENGINE_LOG_PREFIX = "dumble:"

MAX_EXIT_STATUS = 255
"""Largest exit status a process can report; error counts above it are clamped."""


# =============================================================================
# HOST BUILT-INS
# =============================================================================

NODE_BUILTIN_PREFIX = "node:"

NODE_BUILTINS: FrozenSet[str] = frozenset(
    {
        "assert",
        "assert/strict",
        "async_hooks",
        "buffer",
        "child_process",
        "cluster",
        "console",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "dns/promises",
        "domain",
        "events",
        "fs",
        "fs/promises",
        "http",
        "http2",
        "https",
        "inspector",
        "inspector/promises",
        "module",
        "net",
        "os",
        "path",
        "path/posix",
        "path/win32",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "readline/promises",
        "repl",
        "stream",
        "stream/consumers",
        "stream/promises",
        "stream/web",
        "string_decoder",
        "sys",
        "timers",
        "timers/promises",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "util/types",
        "v8",
        "vm",
        "wasi",
        "worker_threads",
        "zlib",
    }
)
