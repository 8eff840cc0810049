"""
Diagnostic Models
=================

Messages reported by a bundle engine for one build task.

Usage:
    from dumble_schema.diagnostics import Diagnostic, Location

    Diagnostic(severity="error", text="Could not resolve \\"./x\\"",
               location=Location(file="src/index.ts", line=3, column=7))
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["error", "warning"]


class Location(BaseModel):
    """Position of a message in a source file (1-based line, 0-based column)."""

    file: str
    line: int = Field(1, ge=1)
    column: int = Field(0, ge=0)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


class Diagnostic(BaseModel):
    """A single error or warning."""

    severity: Severity
    text: str
    location: Optional[Location] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def error(cls, text: str, location: Optional[Location] = None) -> "Diagnostic":
        return cls(severity="error", text=text, location=location)

    @classmethod
    def warning(cls, text: str, location: Optional[Location] = None) -> "Diagnostic":
        return cls(severity="warning", text=text, location=location)

    @property
    def is_error(self) -> bool:
        return self.severity == "error"
