"""
Compiler Configuration Schema
=============================

Pydantic models for the ``compilerOptions`` that affect bundling, plus the
invocation options a build is run with.

Loading ``tsconfig.json`` (and following ``extends``) happens elsewhere;
these models only validate an already-parsed dict.
"""

import json
import posixpath
from typing import Dict, Optional

from dumble_common import ConfigError
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_dir(value: str) -> str:
    """``./lib/`` -> ``lib``; empty and ``.`` mean the package root."""
    value = value.replace("\\", "/").strip()
    if not value:
        return ""
    value = posixpath.normpath(value)
    return "" if value == "." else value


class CompilerOptions(BaseModel):
    """Subset of TypeScript ``compilerOptions`` read by the build."""

    root_dir: str = Field("", alias="rootDir")
    out_dir: Optional[str] = Field(None, alias="outDir")
    out_file: Optional[str] = Field(None, alias="outFile")
    no_emit: bool = Field(False, alias="noEmit")
    emit_declaration_only: bool = Field(False, alias="emitDeclarationOnly")
    declaration: bool = False
    source_map: bool = Field(False, alias="sourceMap")
    target: Optional[str] = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("root_dir")
    @classmethod
    def normalize_root_dir(cls, v: str) -> str:
        return _normalize_dir(v)

    @field_validator("out_dir")
    @classmethod
    def normalize_out_dir(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _normalize_dir(v)

    @property
    def resolved_out_dir(self) -> str:
        """
        Output directory, falling back to the directory of ``outFile``.

        Raises:
            ConfigError: If neither ``outDir`` nor ``outFile`` is set
        """
        if self.out_dir is not None:
            return self.out_dir
        if self.out_file:
            return _normalize_dir(posixpath.dirname(self.out_file.replace("\\", "/")))
        raise ConfigError("compilerOptions must set 'outDir' or 'outFile'")

    @property
    def engine_target(self) -> Optional[str]:
        """Compiler target in the lowercase form bundlers expect (``es2020``)."""
        return self.target.lower() if self.target else None


class TsConfig(BaseModel):
    """Parsed ``tsconfig.json``."""

    compiler_options: CompilerOptions = Field(
        default_factory=CompilerOptions, alias="compilerOptions"
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @property
    def should_bundle(self) -> bool:
        """
        Whether the bundler should emit code for this project.

        When the compiler emits JavaScript itself there is nothing to do;
        bundling only happens alongside ``noEmit`` or
        ``emitDeclarationOnly``.
        """
        options = self.compiler_options
        return options.no_emit or options.emit_declaration_only


class BuildOptions(BaseModel):
    """Invocation options shared by every task of a build."""

    minify: bool = False
    env: Dict[str, str] = Field(default_factory=dict)

    def define(self) -> Dict[str, str]:
        """
        Compile-time substitutions for ``env``.

        Examples:
            >>> BuildOptions(env={"MODE": "prod"}).define()
            {'process.env.MODE': '"prod"'}
        """
        return {f"process.env.{key}": json.dumps(value) for key, value in self.env.items()}
