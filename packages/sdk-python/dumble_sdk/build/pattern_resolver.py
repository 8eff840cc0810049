"""
Pattern Resolution for Build System
====================================

Expands export path patterns against the filesystem.

Patterns follow the package-exports conventions rather than shell globbing:
- ``**`` matches any run of characters, across directories
- ``*`` matches within a single path segment
- ``{a,b}`` expands to alternatives
- ``**/`` as a whole segment also matches zero directories

Results are relative POSIX paths, sorted, so expanding the same pattern on
an unchanged tree always yields the same list.
"""

import asyncio
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import List, Pattern

from dumble_common.logger import get_logger

logger = get_logger(__name__)

SKIPPED_DIRECTORIES = frozenset({"node_modules"})
_GLOB_CHARS = frozenset("*?{")


def is_glob(pattern: str) -> bool:
    """Check whether a pattern contains any glob syntax."""
    return any(char in _GLOB_CHARS for char in pattern)


def _find_closing_brace(pattern: str, start: int) -> int:
    depth = 0
    for index in range(start, len(pattern)):
        if pattern[index] == "{":
            depth += 1
        elif pattern[index] == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1


def _split_alternatives(body: str) -> List[str]:
    """Split ``a,b,{c,d}`` on top-level commas only."""
    parts: List[str] = []
    depth = 0
    current = ""
    for char in body:
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current += char
    parts.append(current)
    return parts


def _translate(pattern: str) -> str:
    out = ""
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out += "(?:.*/)?"
            i += 3
        elif pattern.startswith("**", i):
            out += ".*"
            i += 2
        elif pattern[i] == "*":
            out += "[^/]*"
            i += 1
        elif pattern[i] == "?":
            out += "[^/]"
            i += 1
        elif pattern[i] == "{":
            end = _find_closing_brace(pattern, i)
            if end < 0:
                out += re.escape(pattern[i:])
                break
            alternatives = _split_alternatives(pattern[i + 1 : end])
            out += "(?:" + "|".join(_translate(alt) for alt in alternatives) + ")"
            i = end + 1
        else:
            out += re.escape(pattern[i])
            i += 1
    return out


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Pattern[str]:
    """
    Compile a glob pattern into an anchored regular expression.

    Examples:
        >>> bool(compile_pattern("components/**.{ts,tsx}").match("components/ui/button.tsx"))
        True
        >>> bool(compile_pattern("*.json").match("data/config.json"))
        False
    """
    return re.compile(_translate(pattern.replace("\\", "/")) + r"\Z")


def matches_pattern(path: str, pattern: str) -> bool:
    """Check whether a relative path matches a glob pattern."""
    return compile_pattern(pattern).match(path.replace("\\", "/")) is not None


def glob_files(pattern: str, root: Path) -> List[str]:
    """
    Find files under ``root`` matching ``pattern``.

    Hidden directories and ``node_modules`` are not searched. A pattern
    without glob syntax is a plain existence check and may name any file.

    Args:
        pattern: Glob pattern relative to ``root``
        root: Directory to search from

    Returns:
        Sorted relative POSIX paths of matching files

    Examples:
        >>> glob_files("components/**.{ts,tsx}", Path("/pkg/src"))
        ['components/bar.ts', 'components/foo.tsx']
    """
    pattern = pattern.replace("\\", "/")
    if not root.is_dir():
        return []

    if not is_glob(pattern):
        return [pattern] if (root / pattern).is_file() else []

    regex = compile_pattern(pattern)
    matches: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            name for name in dirnames if not name.startswith(".") and name not in SKIPPED_DIRECTORIES
        )
        rel_dir = os.path.relpath(dirpath, root).replace("\\", "/")
        for filename in filenames:
            rel_path = filename if rel_dir == "." else f"{rel_dir}/{filename}"
            if regex.match(rel_path):
                matches.append(rel_path)

    logger.debug("Expanded pattern", pattern=pattern, root=str(root), matches=len(matches))
    return sorted(matches)


async def glob_files_async(pattern: str, root: Path) -> List[str]:
    """Run ``glob_files`` in the default executor so the event loop stays free."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, glob_files, pattern, root)
