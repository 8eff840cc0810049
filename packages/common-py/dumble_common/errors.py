"""
dumble Exception Classes

This module defines the exception hierarchy for all dumble packages.
All custom exceptions inherit from DumbleError to enable consistent error handling.

Usage:
    from dumble_common.errors import ValidationError, UndeclaredDependencyError

    if not manifest.name:
        raise ValidationError("Manifest is missing 'name'")
"""

from typing import Any, Dict, List, Optional


class DumbleError(Exception):
    """
    Base exception for all dumble errors.

    All custom dumble exceptions should inherit from this class to enable
    consistent error handling across packages.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
    """

    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """
        Serialize error to dictionary for reports.

        Returns:
            dict with error details including class name, code, and message
        """
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code='{self.code}', message='{self.message}')"


class ValidationError(DumbleError):
    """
    Raised when input validation fails.

    Use this for:
    - Malformed package manifests
    - Export declarations of an unsupported shape
    - Invalid engine entrypoints

    Example:
        if not isinstance(value, (str, dict)):
            raise ValidationError("Export targets must be strings or objects")
    """

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class ConfigError(DumbleError):
    """
    Raised when the package manifest or compiler configuration can't be read.

    Example:
        if not path.is_file():
            raise ConfigError(f"package.json not found in {cwd}")
    """

    def __init__(self, message: str):
        super().__init__(message, code="CONFIG_ERROR")


class UndeclaredDependencyError(DumbleError):
    """
    Raised when source code imports a package the manifest never declares.

    The package is missing from dependencies, devDependencies,
    peerDependencies and optionalDependencies alike, so there is no way to
    decide whether it should be bundled or left external.

    Attributes:
        name: Package name portion of the specifier
        importer: File containing the import, if known
    """

    def __init__(self, name: str, importer: Optional[str] = None):
        self.name = name
        self.importer = importer
        message = f"Missing dependency: {name}"
        if importer:
            message += f" from {importer}"
        super().__init__(message, code="UNDECLARED_DEPENDENCY")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["name"] = self.name
        data["importer"] = self.importer
        return data


class BuildFailure(DumbleError):
    """
    Raised by a bundle engine when a task finishes with errors.

    The failure is per-task: the dispatcher reports the attached messages
    and keeps the other tasks running.

    Attributes:
        errors: Error diagnostics reported by the engine
        warnings: Warning diagnostics reported alongside the errors
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[Any]] = None,
        warnings: Optional[List[Any]] = None,
    ):
        super().__init__(message, code="BUILD_FAILURE")
        self.errors: List[Any] = list(errors or [])
        self.warnings: List[Any] = list(warnings or [])

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["error_count"] = len(self.errors)
        data["warning_count"] = len(self.warnings)
        return data


class EngineLoadError(DumbleError):
    """
    Raised when a bundle engine entrypoint cannot be imported.

    Example:
        raise EngineLoadError("Module 'my_engines' has no attribute 'Esbuild'")
    """

    def __init__(self, message: str):
        super().__init__(message, code="ENGINE_LOAD_ERROR")
