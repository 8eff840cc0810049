"""
Bundle Engines

Engines turn a BuildTask into output. dumble ships the AnalyzeEngine;
other engines are plugged in by entrypoint (``package.module:Attribute``).

Usage:
    from dumble_sdk.engines import load_engine

    engine = load_engine("my_build.engines:EsbuildEngine")
"""

import importlib
import re
from typing import Any

from dumble_common import EngineLoadError, ValidationError

from .analyze import AnalyzeEngine
from .base import (
    BuildContext,
    BuildPlugin,
    BuildResult,
    BundleEngine,
    LoadResult,
    ResolveArgs,
    ResolveResult,
)

DEFAULT_ENGINE = "dumble_sdk.engines:AnalyzeEngine"

_ENTRYPOINT = re.compile(r"^[A-Za-z_][\w.]*:[A-Za-z_]\w*$")


def validate_engine_entrypoint(entrypoint: str) -> str:
    """
    Check that an engine entrypoint has the ``module:attribute`` form.

    Raises:
        ValidationError: If the entrypoint is malformed
    """
    if not _ENTRYPOINT.match(entrypoint or ""):
        raise ValidationError(
            f"Invalid engine entrypoint '{entrypoint}'. Expected format 'module.path:Attribute'"
        )
    return entrypoint


def load_engine(entrypoint: str = DEFAULT_ENGINE) -> BundleEngine:
    """
    Import and instantiate a bundle engine.

    Classes and other callables are called without arguments; any other
    object is used as the engine directly.

    Raises:
        ValidationError: If the entrypoint is malformed
        EngineLoadError: If the module or attribute can't be found, or the
            object doesn't implement BundleEngine
    """
    module_name, attribute = validate_engine_entrypoint(entrypoint).split(":", 1)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise EngineLoadError(f"Cannot import engine module '{module_name}': {e}") from e

    target: Any = getattr(module, attribute, None)
    if target is None:
        raise EngineLoadError(f"Module '{module_name}' has no attribute '{attribute}'")

    if isinstance(target, type):
        engine = target()
    elif isinstance(target, BundleEngine):
        engine = target
    elif callable(target):
        engine = target()
    else:
        engine = target
    if not isinstance(engine, BundleEngine):
        raise EngineLoadError(f"'{entrypoint}' does not provide an async build(task, context) method")
    return engine


__all__ = [
    "AnalyzeEngine",
    "BuildContext",
    "BuildPlugin",
    "BuildResult",
    "BundleEngine",
    "LoadResult",
    "ResolveArgs",
    "ResolveResult",
    "DEFAULT_ENGINE",
    "load_engine",
    "validate_engine_entrypoint",
]
