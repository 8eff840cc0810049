"""Shared fixtures for SDK tests: small TypeScript packages on disk."""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest

from dumble_schema import PackageManifest, TsConfig

DEFAULT_COMPILER_OPTIONS = {
    "rootDir": "src",
    "outDir": "lib",
    "emitDeclarationOnly": True,
    "declaration": True,
}


@pytest.fixture
def make_package(tmp_path) -> Callable[..., Path]:
    """
    Factory writing package.json, tsconfig.json and source files.

    Returns the resolved package directory.
    """

    def _make(
        manifest: Dict[str, Any],
        files: Optional[Dict[str, str]] = None,
        compiler_options: Optional[Dict[str, Any]] = None,
    ) -> Path:
        root = tmp_path.resolve()
        manifest = {"version": "1.0.0", **manifest}
        (root / "package.json").write_text(json.dumps(manifest, indent=2))
        tsconfig = {"compilerOptions": compiler_options or DEFAULT_COMPILER_OPTIONS}
        (root / "tsconfig.json").write_text(json.dumps(tsconfig, indent=2))
        for relpath, content in (files or {}).items():
            path = root / relpath
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _make


@pytest.fixture
def tsconfig() -> TsConfig:
    return TsConfig.model_validate({"compilerOptions": DEFAULT_COMPILER_OPTIONS})


@pytest.fixture
def dual_package(make_package) -> Path:
    """A package with CJS and ESM builds of one entry."""
    return make_package(
        {
            "name": "pkg",
            "exports": {"require": "./lib/index.cjs", "import": "./lib/index.mjs"},
            "devDependencies": {"foo": "^1.0.0"},
            "dependencies": {"react": "^18.0.0"},
        },
        {"src/index.ts": 'import foo from "foo";\nexport const x = foo;\n'},
    )


def manifest_of(root: Path) -> PackageManifest:
    return PackageManifest.model_validate(json.loads((root / "package.json").read_text()))


@pytest.fixture
def read_manifest() -> Callable[[Path], PackageManifest]:
    return manifest_of
