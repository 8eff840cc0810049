"""
dumble Common Package

Shared errors, logging and constants for all dumble packages.

Usage:
    from dumble_common import get_logger, ValidationError, ModuleFormat
"""

from .constants import (
    DEPENDENCY_TYPES,
    DEV_DEPENDENCY_TYPE,
    IGNORED_MESSAGES,
    NODE_BUILTINS,
    RESOLVE_EXTENSIONS,
    SOURCE_EXTENSIONS,
    Conditions,
    ModuleFormat,
    Platform,
)
from .errors import (
    BuildFailure,
    ConfigError,
    DumbleError,
    EngineLoadError,
    UndeclaredDependencyError,
    ValidationError,
)
from .logger import (
    clear_task_id,
    configure_logging,
    get_logger,
    get_task_id,
    set_task_id,
)

__all__ = [
    # Constants
    "DEPENDENCY_TYPES",
    "DEV_DEPENDENCY_TYPE",
    "IGNORED_MESSAGES",
    "NODE_BUILTINS",
    "RESOLVE_EXTENSIONS",
    "SOURCE_EXTENSIONS",
    "Conditions",
    "ModuleFormat",
    "Platform",
    # Errors
    "DumbleError",
    "ValidationError",
    "ConfigError",
    "UndeclaredDependencyError",
    "BuildFailure",
    "EngineLoadError",
    # Logging
    "get_logger",
    "configure_logging",
    "set_task_id",
    "get_task_id",
    "clear_task_id",
]
