"""Tests for export declaration parsing and visiting."""

from typing import List

import pytest

from dumble_common.errors import ValidationError
from dumble_schema.exports import (
    ConditionMap,
    ExportVisitor,
    LiteralExport,
    NullExport,
    parse_exports,
)


class TestParseExports:
    """Tests for parse_exports."""

    def test_absent(self):
        assert parse_exports(None) is None

    def test_string(self):
        node = parse_exports("./lib/index.js")
        assert node == LiteralExport("./lib/index.js")
        assert node.has_wildcard is False

    def test_wildcard(self):
        assert parse_exports("./lib/*.mjs").has_wildcard is True

    def test_nested_keeps_order(self):
        """Test that object keys keep declaration order."""
        node = parse_exports(
            {
                ".": {"require": "./lib/index.cjs", "import": "./lib/index.mjs"},
                "./utils": "./lib/utils.js",
            }
        )

        assert isinstance(node, ConditionMap)
        assert node.keys() == (".", "./utils")
        root = node.branches[0][1]
        assert root.keys() == ("require", "import")

    def test_nested_null(self):
        """Test that a null branch is kept as a blocked target."""
        node = parse_exports({"./internal": None})
        assert node.branches[0][1] == NullExport()

    def test_multiple_wildcards_fail(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_exports({"./*": "./lib/*/*.js"})

        assert "exports../*" in str(exc_info.value)

    def test_invalid_value_fails(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_exports(["./lib/index.js"])

        assert "list" in str(exc_info.value)


class PatternCollector(ExportVisitor[None]):
    """Collects (path, pattern) pairs for assertions."""

    def __init__(self) -> None:
        self.found: List[tuple] = []

    def visit_literal(self, node, path):
        self.found.append((path, node.pattern))

    def visit_conditions(self, node, path):
        for key, child in node.branches:
            self.visit(child, path + (key,))


class TestExportVisitor:
    """Tests for ExportVisitor dispatch."""

    def test_visit_walks_depth_first(self):
        node = parse_exports(
            {
                "node": {"import": "./lib/a.mjs"},
                "browser": "./lib/b.js",
                "./blocked": None,
            }
        )

        collector = PatternCollector()
        collector.visit(node, ())

        assert collector.found == [
            (("node", "import"), "./lib/a.mjs"),
            (("browser",), "./lib/b.js"),
        ]

    def test_visit_null_returns_none(self):
        assert PatternCollector().visit(NullExport(), ()) is None

    def test_unimplemented_literal(self):
        with pytest.raises(NotImplementedError):
            ExportVisitor().visit(LiteralExport("./x.js"))
