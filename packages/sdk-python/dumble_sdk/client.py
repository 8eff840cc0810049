"""
Project Loading
===============

Reads ``package.json`` and ``tsconfig.json`` from a package directory and
validates them through the schema models.

``tsconfig.json`` may contain comments and trailing commas. ``extends`` is
not followed; only the file's own ``compilerOptions`` are read.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from dumble_common import ConfigError
from dumble_common.constants import MANIFEST_FILENAME, TSCONFIG_FILENAME
from dumble_common.logger import get_logger
from dumble_schema import PackageManifest, TsConfig
from pydantic import ValidationError as PydanticValidationError

logger = get_logger(__name__)

_JSONC_NOISE = re.compile(
    r"""(?P<string>"(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/""",
    re.DOTALL,
)
_TRAILING_COMMA = re.compile(r""",(\s*[}\]])""")


def parse_jsonc(text: str) -> Any:
    """
    Parse JSON that may contain comments and trailing commas.

    Examples:
        >>> parse_jsonc('{"a": 1, // one\\n}')
        {'a': 1}
    """
    without_comments = _JSONC_NOISE.sub(
        lambda m: m.group("string") if m.group("string") is not None else "", text
    )
    parts = re.split(r'("(?:\\.|[^"\\])*")', without_comments)
    cleaned = "".join(
        part if index % 2 else _TRAILING_COMMA.sub(r"\1", part) for index, part in enumerate(parts)
    )
    return json.loads(cleaned)


def _read_json(path: Path, allow_comments: bool = False) -> Dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"{path.name} not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        data = parse_jsonc(text) if allow_comments else json.loads(text)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return data


def load_manifest(cwd: Union[str, Path]) -> PackageManifest:
    """
    Load and validate ``package.json``.

    Raises:
        ConfigError: If the file is missing or isn't a valid manifest
        ValidationError: If its ``exports`` field can't be interpreted
    """
    path = Path(cwd) / MANIFEST_FILENAME
    data = _read_json(path)
    try:
        manifest = PackageManifest.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid {MANIFEST_FILENAME} at {path}: {e}") from e
    logger.debug("Loaded manifest", package=manifest.name, version=manifest.version)
    return manifest


def load_tsconfig(cwd: Union[str, Path]) -> TsConfig:
    """
    Load and validate ``tsconfig.json``.

    Raises:
        ConfigError: If the file is missing or malformed
    """
    path = Path(cwd) / TSCONFIG_FILENAME
    data = _read_json(path, allow_comments=True)
    if "extends" in data:
        logger.warning("tsconfig 'extends' is not followed", extends=data["extends"])
    try:
        return TsConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid {TSCONFIG_FILENAME} at {path}: {e}") from e


def load_project(cwd: Union[str, Path]) -> Tuple[PackageManifest, TsConfig]:
    """Load both configuration files of a package."""
    return load_manifest(cwd), load_tsconfig(cwd)
