"""
Export Declarations
===================

Typed view of the manifest ``exports`` field.

The raw JSON value is polymorphic: a string target, an object whose keys
are conditions (``import``, ``node``, ``types``, ...) or subpaths
(``./utils``), or ``null`` to block a branch. ``parse_exports`` turns it
into a tagged variant, and ``ExportVisitor`` walks that variant without
any ``isinstance`` checks at the call site.

Usage:
    from dumble_schema.exports import parse_exports, ExportVisitor

    declaration = parse_exports({"import": "./lib/index.mjs"})

    class Printer(ExportVisitor[None]):
        def visit_literal(self, node, depth):
            print("  " * depth + node.pattern)

        def visit_conditions(self, node, depth):
            for key, child in node.branches:
                print("  " * depth + key)
                self.visit(child, depth + 1)

    Printer().visit(declaration, 0)
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, Tuple, TypeVar, Union

from dumble_common import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class LiteralExport:
    """A target path pattern, e.g. ``./lib/*.mjs``."""

    pattern: str

    @property
    def has_wildcard(self) -> bool:
        return "*" in self.pattern


@dataclass(frozen=True)
class ConditionMap:
    """An object of condition or subpath keys, in declaration order."""

    branches: Tuple[Tuple[str, "ExportDeclaration"], ...]

    def keys(self) -> Tuple[str, ...]:
        return tuple(key for key, _ in self.branches)


@dataclass(frozen=True)
class NullExport:
    """A ``null`` target: the branch is blocked and resolves to nothing."""


ExportDeclaration = Union[LiteralExport, ConditionMap, NullExport]


def parse_exports(raw: Any, path: str = "exports") -> Optional[ExportDeclaration]:
    """
    Convert a raw ``exports`` value into an ExportDeclaration.

    Args:
        raw: Value as parsed from JSON
        path: Location of the value, used in error messages

    Returns:
        The declaration, or None when the field is absent

    Raises:
        ValidationError: If a value is neither a string, an object nor null

    Examples:
        >>> parse_exports("./lib/index.js")
        LiteralExport(pattern='./lib/index.js')
        >>> parse_exports({"require": None}).branches[0][1]
        NullExport()
    """
    if raw is None:
        return None
    return _parse_value(raw, path)


def _parse_value(raw: Any, path: str) -> ExportDeclaration:
    if raw is None:
        return NullExport()
    if isinstance(raw, str):
        if raw.count("*") > 1:
            raise ValidationError(
                f"'{path}' may contain at most one '*' wildcard, got '{raw}'"
            )
        return LiteralExport(raw)
    if isinstance(raw, dict):
        branches = []
        for key, value in raw.items():
            if not isinstance(key, str) or not key:
                raise ValidationError(f"'{path}' has an empty condition key")
            branches.append((key, _parse_value(value, f"{path}.{key}")))
        return ConditionMap(tuple(branches))
    raise ValidationError(
        f"'{path}' must be a string, an object or null, got {type(raw).__name__}"
    )


class ExportVisitor(Generic[T]):
    """
    Base class for walks over an ExportDeclaration.

    Subclasses implement ``visit_literal`` and ``visit_conditions``;
    ``visit_null`` defaults to doing nothing. Extra positional arguments
    given to ``visit`` are forwarded, which is how a walk threads its
    running state (format, platform, subpath prefix) down the tree.
    """

    def visit(self, node: ExportDeclaration, *args: Any) -> Optional[T]:
        if isinstance(node, LiteralExport):
            return self.visit_literal(node, *args)
        if isinstance(node, ConditionMap):
            return self.visit_conditions(node, *args)
        return self.visit_null(node, *args)

    def visit_literal(self, node: LiteralExport, *args: Any) -> Optional[T]:
        raise NotImplementedError

    def visit_conditions(self, node: ConditionMap, *args: Any) -> Optional[T]:
        raise NotImplementedError

    def visit_null(self, node: NullExport, *args: Any) -> Optional[T]:
        return None
