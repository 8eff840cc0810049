"""Tests for the analyze engine - Import scanning and graph walking."""

import pytest

from dumble_common import BuildFailure
from dumble_common.constants import IGNORED_MESSAGES
from dumble_sdk.build.matrix import build_matrix
from dumble_sdk.engines import AnalyzeEngine, BuildContext
from dumble_sdk.engines.analyze import mask_source, scan_imports

SOURCE = """import a from "./a"
import type { T } from './types'
export * from "./b"
import "./side-effect"
const c = require("./c")
const d = await import("./d")
// import x from "./commented"
/* require("./block") */
"""


class TestScanImports:
    """Tests for scan_imports function."""

    def test_finds_every_kind(self):
        sites = scan_imports(SOURCE)

        assert [(s.specifier, s.kind, s.line) for s in sites] == [
            ("./a", "import-statement", 1),
            ("./types", "import-statement", 2),
            ("./b", "import-statement", 3),
            ("./side-effect", "import-statement", 4),
            ("./c", "require-call", 5),
            ("./d", "dynamic-import", 6),
        ]

    def test_column_points_at_specifier(self):
        site = scan_imports('import a from "./a"\n')[0]
        assert (site.line, site.column) == (1, 14)

    def test_member_calls_ignored(self):
        assert scan_imports('module.require("./x")\nobj.import("./y")\n') == []

    def test_mask_source_keeps_offsets(self):
        source = 'a // "./x"\n/* b\n c */ "// kept"\n'
        masked = mask_source(source)

        assert len(masked) == len(source)
        assert masked.count("\n") == 3
        assert '"./x"' not in masked
        assert masked.rstrip().endswith('"       "')

    def test_string_contents_are_not_imports(self):
        source = (
            "export const help = \"usage: import './plugin' in your config\"\n"
            "const hint = `call require(\"./setup\") first`\n"
            'import { run } from "./run"\n'
        )

        assert [(s.specifier, s.line, s.column) for s in scan_imports(source)] == [("./run", 3, 20)]


async def analyze(root, read_manifest, tsconfig, task_id):
    matrix = await build_matrix(root, read_manifest(root), tsconfig)
    task = next(task for task in matrix.tasks if task.task_id == task_id)
    return await AnalyzeEngine().build(task, BuildContext(task))


class TestAnalyzeEngine:
    """Tests for AnalyzeEngine.build."""

    @pytest.mark.asyncio
    async def test_bundles_dev_dependency(self, dual_package, read_manifest, tsconfig):
        result = await analyze(dual_package, read_manifest, tsconfig, "lib/index.cjs")

        assert result.output_file == str(dual_package / "lib" / "index.cjs")
        assert result.inputs == [str(dual_package / "src" / "index.ts")]
        assert result.bundled_packages == ["foo"]
        assert result.externals == {}

    @pytest.mark.asyncio
    async def test_walks_graph(self, make_package, read_manifest, tsconfig):
        """Test that internal files are followed and cross-task imports stay external."""
        root = make_package(
            {
                "name": "pkg",
                "type": "module",
                "exports": {".": "./lib/index.js", "./utils": "./lib/utils.js"},
                "dependencies": {"react": "*"},
            },
            {
                "src/index.ts": 'import { h } from "./helper"\nimport fs from "node:fs"\n',
                "src/helper.ts": 'import React from "react"\nimport { u } from "./utils"\n',
                "src/utils.ts": "export const u = 1\n",
            },
        )

        result = await analyze(root, read_manifest, tsconfig, "lib/index.js")

        assert result.inputs == [str(root / "src" / "index.ts"), str(root / "src" / "helper.ts")]
        assert result.externals == {"node:fs": "node:fs", "react": "react", "./utils": "./utils.js"}
        assert result.bundled_packages == []

    @pytest.mark.asyncio
    async def test_errors_raise_build_failure(self, make_package, read_manifest, tsconfig):
        root = make_package(
            {"name": "pkg", "main": "./lib/index.js"},
            {"src/index.ts": 'import bar from "bar"\nimport m from "./missing"\n'},
        )

        with pytest.raises(BuildFailure) as exc_info:
            await analyze(root, read_manifest, tsconfig, "lib/index.js")

        errors = exc_info.value.errors
        assert exc_info.value.message == "Build failed with 2 errors"
        assert [e.text for e in errors] == [
            f"Missing dependency: bar from {root / 'src' / 'index.ts'}",
            'Could not resolve "./missing"',
        ]
        assert [str(e.location) for e in errors] == ["src/index.ts:1:16", "src/index.ts:2:14"]

    @pytest.mark.asyncio
    async def test_dynamic_require_warning(self, make_package, read_manifest, tsconfig):
        root = make_package(
            {"name": "pkg", "main": "./lib/index.js"},
            {"src/index.ts": "const name = 'x'\nconst mod = require(name)\n"},
        )

        result = await analyze(root, read_manifest, tsconfig, "lib/index.js")

        assert len(result.warnings) == 1
        assert result.warnings[0].text in IGNORED_MESSAGES
        assert result.warnings[0].location.line == 2

    @pytest.mark.asyncio
    async def test_yaml_is_not_scanned(self, make_package, read_manifest, tsconfig):
        root = make_package(
            {"name": "pkg", "main": "./lib/index.js"},
            {
                "src/index.ts": 'import config from "./config.yml"\n',
                "src/config.yml": 'note: import x from "./nope"\n',
            },
        )

        result = await analyze(root, read_manifest, tsconfig, "lib/index.js")

        assert result.inputs[-1] == str(root / "src" / "config.yml")

    @pytest.mark.asyncio
    async def test_binary_asset_is_opaque(self, make_package, read_manifest, tsconfig):
        root = make_package(
            {"name": "pkg", "main": "./lib/index.js"},
            {"src/index.ts": 'import logo from "./logo.png"\nexport default logo\n'},
        )
        (root / "src" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\xff")

        result = await analyze(root, read_manifest, tsconfig, "lib/index.js")

        assert result.inputs == [str(root / "src" / "index.ts"), str(root / "src" / "logo.png")]
        assert result.externals == {}

    @pytest.mark.asyncio
    async def test_import_text_in_strings_is_not_resolved(self, make_package, read_manifest, tsconfig):
        root = make_package(
            {"name": "pkg", "main": "./lib/index.js"},
            {"src/index.ts": "export const help = \"usage: import './plugin' in your config\"\n"},
        )

        result = await analyze(root, read_manifest, tsconfig, "lib/index.js")

        assert result.inputs == [str(root / "src" / "index.ts")]
        assert result.warnings == []


class TestBuildContextLoad:
    """Tests for BuildContext.load without plugin hooks."""

    @pytest.mark.asyncio
    async def test_unknown_extension_reads_bytes(self, make_package, read_manifest, tsconfig):
        root = make_package({"name": "pkg", "main": "./lib/index.js"}, {"src/index.ts": "export {}\n"})
        (root / "src" / "font.woff2").write_bytes(b"wOF2\x00\x01\xff\xfe")
        matrix = await build_matrix(root, read_manifest(root), tsconfig)
        context = BuildContext(matrix.tasks[0], plugins=[])

        asset = await context.load(str(root / "src" / "font.woff2"))
        script = await context.load(str(root / "src" / "index.ts"))

        assert (asset.contents, asset.loader) == (b"wOF2\x00\x01\xff\xfe", "file")
        assert (script.contents, script.loader) == ("export {}\n", "ts")
