"""Tests for matrix.py - BuildTask construction and the frozen registry."""

from dataclasses import FrozenInstanceError

import pytest

from dumble_common import DumbleError, ModuleFormat, Platform
from dumble_schema import BuildOptions, TsConfig
from dumble_sdk.build.matrix import BuildMatrixBuilder, build_matrix
from dumble_sdk.build.plugins import ExternalLibraryPlugin, HashbangPlugin, YamlPlugin
from dumble_sdk.build.registry import RegistryBuilder


class TestBuildMatrix:
    """Tests for BuildMatrixBuilder.build."""

    @pytest.mark.asyncio
    async def test_dual_package_tasks(self, dual_package, read_manifest, tsconfig):
        """Test the require/import package builds one CJS and one ESM task."""
        matrix = await build_matrix(dual_package, read_manifest(dual_package), tsconfig)

        assert [task.task_id for task in matrix.tasks] == ["lib/index.cjs", "lib/index.mjs"]
        cjs, esm = matrix.tasks
        assert (cjs.entry, cjs.format, cjs.platform) == ("index", ModuleFormat.CJS, Platform.NODE)
        assert (esm.entry, esm.format, esm.platform) == ("index", ModuleFormat.ESM, Platform.NODE)
        assert cjs.outdir == str(dual_package / "lib")
        assert cjs.outbase == str(dual_package / "src")
        assert cjs.tsconfig == str(dual_package / "tsconfig.json")

    @pytest.mark.asyncio
    async def test_shared_options(self, make_package, read_manifest):
        """Test that every task gets the same target, sourcemap, minify and define."""
        root = make_package(
            {"name": "pkg", "exports": {"require": "./lib/index.cjs", "import": "./lib/index.mjs"}},
            {"src/index.ts": ""},
            {
                "rootDir": "src",
                "outDir": "lib",
                "noEmit": True,
                "target": "ES2020",
                "sourceMap": True,
            },
        )
        tsconfig = TsConfig.model_validate_json((root / "tsconfig.json").read_text())
        options = BuildOptions(minify=True, env={"MODE": "production"})

        matrix = await build_matrix(root, read_manifest(root), tsconfig, options)

        for task in matrix.tasks:
            assert task.target == "es2020"
            assert task.sourcemap is True
            assert task.minify is True
            assert dict(task.define) == {"process.env.MODE": '"production"'}
            assert task.bundle and task.keep_names
            assert task.sources_content is False
            assert task.charset == "utf8"
            assert task.resolve_extensions == (".tsx", ".ts", ".jsx", ".js", ".css", ".json")

    @pytest.mark.asyncio
    async def test_plugin_chain(self, dual_package, read_manifest, tsconfig):
        matrix = await build_matrix(dual_package, read_manifest(dual_package), tsconfig)

        plugins = matrix.tasks[0].plugins
        assert [type(plugin) for plugin in plugins] == [YamlPlugin, ExternalLibraryPlugin, HashbangPlugin]
        assert plugins[1].registry is matrix.registry

    @pytest.mark.asyncio
    async def test_declaration_only_has_no_task(self, make_package, read_manifest, tsconfig):
        root = make_package(
            {"name": "pkg", "exports": {"types": "./lib/index.d.ts", "import": "./lib/index.mjs"}},
            {"src/index.ts": "", "src/index.d.ts": ""},
        )

        matrix = await build_matrix(root, read_manifest(root), tsconfig)

        assert [task.task_id for task in matrix.tasks] == ["lib/index.mjs"]
        assert len(matrix.entries) == 2
        assert matrix.registry.declaration_for(str(root / "src" / "index.d.ts")) == "pkg"

    @pytest.mark.asyncio
    async def test_private_package_skipped(self, make_package, read_manifest, tsconfig):
        root = make_package({"name": "pkg", "private": True, "main": "./lib/index.js"}, {"src/index.ts": ""})
        manifest = read_manifest(root)

        assert (await build_matrix(root, manifest, tsconfig)).is_empty
        included = await build_matrix(root, manifest, tsconfig, include_private=True)
        assert [task.task_id for task in included.tasks] == ["lib/index.js"]

    @pytest.mark.asyncio
    async def test_compiler_emitting_js_skipped(self, make_package, read_manifest):
        """Test that nothing is bundled when tsc emits JavaScript itself."""
        root = make_package(
            {"name": "pkg", "main": "./lib/index.js"},
            {"src/index.ts": ""},
            {"rootDir": "src", "outDir": "lib"},
        )
        tsconfig = TsConfig.model_validate_json((root / "tsconfig.json").read_text())

        matrix = await build_matrix(root, read_manifest(root), tsconfig)

        assert matrix.is_empty
        assert len(matrix.registry) == 0

    @pytest.mark.asyncio
    async def test_binary_task(self, make_package, read_manifest, tsconfig):
        root = make_package({"name": "pkg", "bin": {"tool": "./lib/cli.js"}}, {"src/cli.ts": ""})

        matrix = await build_matrix(root, read_manifest(root), tsconfig)

        task = matrix.tasks[0]
        assert task.is_binary
        assert task.plugins[2].binaries == frozenset({str(root / "src" / "cli.ts")})

    @pytest.mark.asyncio
    async def test_registry_frozen(self, dual_package, read_manifest, tsconfig):
        """Test that tasks share a registry nobody can change."""
        matrix = await build_matrix(dual_package, read_manifest(dual_package), tsconfig)
        source = str(dual_package / "src" / "index.ts")

        with pytest.raises(TypeError):
            matrix.registry[source]["browser"] = "/elsewhere.js"
        with pytest.raises(FrozenInstanceError):
            matrix.tasks[0].format = ModuleFormat.ESM

    @pytest.mark.asyncio
    async def test_idempotent(self, dual_package, read_manifest, tsconfig):
        """Test that two plans of an unchanged package are equal."""
        manifest = read_manifest(dual_package)

        first = await BuildMatrixBuilder(dual_package, manifest, tsconfig).build()
        second = await BuildMatrixBuilder(dual_package, manifest, tsconfig).build()

        assert first.tasks == second.tasks
        assert first.registry.to_dict() == second.registry.to_dict()

    @pytest.mark.asyncio
    async def test_to_dict(self, dual_package, read_manifest, tsconfig):
        matrix = await build_matrix(dual_package, read_manifest(dual_package), tsconfig)

        data = matrix.tasks[1].to_dict()

        assert data["entry"] == "index"
        assert data["format"] == "esm"
        assert data["output"] == str(dual_package / "lib" / "index.mjs")
        assert data["plugins"] == ["yaml", "external library", "hashbang"]


class TestRegistryBuilder:
    """Tests for the registry freeze contract."""

    def test_freeze_once(self):
        builder = RegistryBuilder()
        builder.register("/pkg/src/a.ts", "node", "/pkg/lib/a.mjs")
        registry = builder.freeze()

        with pytest.raises(DumbleError) as exc_info:
            builder.register("/pkg/src/b.ts", "node", "/pkg/lib/b.mjs")
        assert exc_info.value.code == "REGISTRY_FROZEN"
        assert list(registry) == ["/pkg/src/a.ts"]

    def test_output_for_falls_back_to_default(self):
        builder = RegistryBuilder()
        builder.register_passthrough("/pkg/package.json")
        builder.register("/pkg/src/a.ts", "node", "/pkg/lib/a.mjs")
        registry = builder.freeze()

        assert registry.output_for("/pkg/package.json", "browser") == "/pkg/package.json"
        assert registry.output_for("/pkg/src/a.ts", "browser") is None
        assert registry.output_for("/pkg/src/missing.ts", "node") is None
