"""
Diagnostics Reporting
=====================

Prints the entry line of each task and the messages its engine reported.

Messages the engines emit for perfectly normal code (dynamic ``require``
calls and the like) are dropped. Located messages are prefixed with
``file:line:column:``.
"""

import os
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from dumble_common import IGNORED_MESSAGES
from dumble_common.constants import ENGINE_LOG_PREFIX
from dumble_schema import Diagnostic
from rich.console import Console
from rich.markup import escape

SEVERITY_STYLES = {
    "error": "red",
    "warning": "yellow",
}


def is_ignored(diagnostic: Diagnostic) -> bool:
    """Check whether a message is one of the known-benign ones."""
    return any(message in diagnostic.text for message in IGNORED_MESSAGES)


def diagnostic_parts(diagnostic: Diagnostic) -> Tuple[Optional[str], str, str]:
    """Location prefix (None when unlocated), severity label and text of a diagnostic."""
    location = f"{diagnostic.location}:" if diagnostic.location is not None else None
    return location, f"{diagnostic.severity}:", diagnostic.text


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """
    Plain-text rendering of a diagnostic.

    Examples:
        >>> format_diagnostic(Diagnostic.error("boom", Location(file="a.ts", line=2, column=4)))
        'a.ts:2:4: error: boom'
        >>> format_diagnostic(Diagnostic.warning("careful"))
        'warning: careful'
    """
    location, severity, text = diagnostic_parts(diagnostic)
    return " ".join(part for part in (location, severity, text) if part is not None)


class DiagnosticsReporter:
    """
    Writes build output to a rich Console.

    Attributes:
        console: Where output goes (stdout by default)
        base: Directory entry paths are shown relative to
    """

    def __init__(self, console: Optional[Console] = None, base: Optional[Union[str, Path]] = None):
        self.console = console or Console(highlight=False)
        self.base = str(base) if base is not None else os.getcwd()

    def _relative(self, path: str) -> str:
        return os.path.relpath(path, self.base).replace("\\", "/")

    def show_entry(self, source_file: str, output_file: str) -> None:
        """Print ``dumble: src/index.ts -> lib/index.mjs``."""
        self.console.print(
            ENGINE_LOG_PREFIX,
            escape(self._relative(source_file)),
            "->",
            escape(self._relative(output_file)),
        )

    def show(self, diagnostic: Diagnostic) -> bool:
        """
        Print one diagnostic unless it is ignored.

        Returns:
            True if the diagnostic was printed
        """
        if is_ignored(diagnostic):
            return False
        location, severity, text = diagnostic_parts(diagnostic)
        style = SEVERITY_STYLES[diagnostic.severity]
        parts = [f"[{style}]{escape(severity)}[/{style}]", escape(text)]
        if location is not None:
            parts.insert(0, f"[cyan]{escape(location)}[/cyan]")
        self.console.print(*parts)
        return True

    def show_all(self, diagnostics: Iterable[Diagnostic]) -> int:
        """Print several diagnostics; returns how many were shown."""
        return sum(1 for diagnostic in diagnostics if self.show(diagnostic))

    def show_exception(self, task_id: str, error: BaseException) -> None:
        self.console.print(
            "[red]error:[/red]",
            escape(f"{task_id}: unexpected {type(error).__name__}: {error}"),
        )
