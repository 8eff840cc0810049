"""Tests for client.py and the top-level plan/build helpers."""

import json
import logging

import pytest

from dumble_common.errors import ConfigError, ValidationError
from dumble_sdk import build, load_manifest, load_project, load_tsconfig, parse_jsonc, plan
from dumble_sdk.build import DiagnosticsReporter


class TestParseJsonc:
    """Tests for parse_jsonc function."""

    def test_comments_and_trailing_commas(self):
        text = """{
            // output
            "compilerOptions": {
                "outDir": "lib", /* block */
                "lib": ["es2020", "dom",],
            },
        }"""

        assert parse_jsonc(text) == {"compilerOptions": {"outDir": "lib", "lib": ["es2020", "dom"]}}

    def test_strings_untouched(self):
        text = '{"url": "https://example.com/a,}", "glob": "src/**/*.ts"}'

        assert parse_jsonc(text) == {"url": "https://example.com/a,}", "glob": "src/**/*.ts"}

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_jsonc("{")


class TestLoadManifest:
    """Tests for load_manifest function."""

    def test_loads(self, make_package):
        root = make_package({"name": "pkg", "devDependencies": {"foo": "*"}})

        manifest = load_manifest(root)

        assert manifest.name == "pkg"
        assert manifest.dev_dependencies == {"foo": "*"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            load_manifest(tmp_path)

        assert "package.json not found" in str(exc_info.value)

    def test_invalid_json(self, tmp_path):
        (tmp_path / "package.json").write_text("{,}")

        with pytest.raises(ConfigError) as exc_info:
            load_manifest(tmp_path)

        assert "Cannot read" in str(exc_info.value)

    def test_not_an_object(self, tmp_path):
        (tmp_path / "package.json").write_text("[]")

        with pytest.raises(ConfigError):
            load_manifest(tmp_path)

    def test_missing_name(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"version": "1.0.0"}))

        with pytest.raises(ConfigError) as exc_info:
            load_manifest(tmp_path)

        assert "Invalid package.json" in str(exc_info.value)

    def test_bad_exports(self, make_package):
        root = make_package({"name": "pkg", "exports": {"import": 1}})

        with pytest.raises(ValidationError):
            load_manifest(root)


class TestLoadTsconfig:
    """Tests for load_tsconfig function."""

    def test_jsonc(self, tmp_path):
        (tmp_path / "tsconfig.json").write_text(
            '{\n  // build\n  "compilerOptions": {"outDir": "./lib", "noEmit": true,},\n}\n'
        )

        config = load_tsconfig(tmp_path)

        assert config.compiler_options.out_dir == "lib"
        assert config.should_bundle

    def test_extends_not_followed(self, tmp_path, caplog):
        (tmp_path / "tsconfig.json").write_text(
            json.dumps({"extends": "../tsconfig.base.json", "compilerOptions": {"outDir": "lib"}})
        )

        with caplog.at_level(logging.WARNING, logger="dumble_sdk.client"):
            config = load_tsconfig(tmp_path)

        assert config.compiler_options.out_dir == "lib"
        assert any("extends" in record.getMessage() for record in caplog.records)

    def test_missing(self, tmp_path):
        with pytest.raises(ConfigError):
            load_tsconfig(tmp_path)

    def test_load_project(self, make_package):
        root = make_package({"name": "pkg"})

        manifest, config = load_project(root)

        assert manifest.name == "pkg"
        assert config.compiler_options.root_dir == "src"


class TestTopLevel:
    """Tests for dumble_sdk.plan and dumble_sdk.build."""

    @pytest.mark.asyncio
    async def test_plan(self, dual_package):
        matrix = await plan(dual_package)

        assert [task.task_id for task in matrix.tasks] == ["lib/index.cjs", "lib/index.mjs"]

    @pytest.mark.asyncio
    async def test_build_defaults_to_analyze(self, dual_package):
        reporter = DiagnosticsReporter(base=dual_package)

        report = await build(dual_package, reporter=reporter)

        assert report.exit_code == 0
        assert report.outcomes[0].result.bundled_packages == ["foo"]
