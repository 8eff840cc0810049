"""
Package Manifest Schema
=======================

Pydantic model for the subset of ``package.json`` that drives a build.

Design Principles:
- Pure validation: Receives dicts, validates structure, returns typed objects
- No file I/O: Reading package.json is the SDK's responsibility
- Extensible: Unknown fields (scripts, repository, ...) are kept as-is

Usage:
    from dumble_schema import PackageManifest

    manifest = PackageManifest.model_validate(json.loads(text))
    manifest.dependency_kinds("react")  # {"peerDependencies"}
"""

from typing import Any, Dict, List, Literal, Optional, Set, Union

from dumble_common import DEPENDENCY_TYPES, ModuleFormat, ValidationError
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exports import ExportDeclaration, parse_exports


class PeerDependencyMeta(BaseModel):
    """Entry of ``peerDependenciesMeta``."""

    optional: bool = False

    model_config = ConfigDict(extra="allow")


class PackageManifest(BaseModel):
    """
    Build-relevant view of a package manifest.

    ``name`` and ``version`` are required. The four dependency mappings
    are kept separately; nothing enforces that their keys are disjoint,
    lookups union across them.
    """

    name: str
    version: str
    type: Optional[Literal["module", "commonjs"]] = None
    description: Optional[str] = None
    private: bool = False

    main: Optional[str] = None
    module: Optional[str] = None
    bin: Optional[Union[str, Dict[str, str]]] = None
    exports: Optional[Any] = None
    """Raw exports value; see ``export_map`` for the typed form"""

    workspaces: Optional[List[str]] = None

    dependencies: Dict[str, str] = Field(default_factory=dict)
    dev_dependencies: Dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    peer_dependencies: Dict[str, str] = Field(default_factory=dict, alias="peerDependencies")
    optional_dependencies: Dict[str, str] = Field(
        default_factory=dict, alias="optionalDependencies"
    )
    peer_dependencies_meta: Dict[str, PeerDependencyMeta] = Field(
        default_factory=dict, alias="peerDependenciesMeta"
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("name", "version")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        if not v or not v.strip():
            raise ValidationError(f"Manifest field '{info.field_name}' cannot be empty")
        return v

    @field_validator("exports")
    @classmethod
    def validate_exports(cls, v: Any) -> Any:
        """Reject export values that can't be interpreted (parsing raises)."""
        parse_exports(v)
        return v

    @property
    def export_map(self) -> Optional[ExportDeclaration]:
        """The ``exports`` field as a tagged ExportDeclaration."""
        return parse_exports(self.exports)

    @property
    def default_format(self) -> str:
        """Module format implied by the manifest ``type`` field."""
        return ModuleFormat.ESM if self.type == "module" else ModuleFormat.CJS

    def bin_paths(self) -> List[str]:
        """Executable paths in declaration order."""
        if self.bin is None:
            return []
        if isinstance(self.bin, str):
            return [self.bin]
        return list(self.bin.values())

    def dependency_map(self, kind: str) -> Dict[str, str]:
        """
        Get one dependency mapping by its manifest field name.

        Args:
            kind: One of ``dependencies``, ``devDependencies``,
                ``peerDependencies`` or ``optionalDependencies``
        """
        if kind not in DEPENDENCY_TYPES:
            raise ValidationError(
                f"Unknown dependency type '{kind}'. Expected one of: {', '.join(DEPENDENCY_TYPES)}"
            )
        return {
            "dependencies": self.dependencies,
            "devDependencies": self.dev_dependencies,
            "peerDependencies": self.peer_dependencies,
            "optionalDependencies": self.optional_dependencies,
        }[kind]

    def dependency_kinds(self, name: str) -> Set[str]:
        """Every dependency field that declares ``name``."""
        return {kind for kind in DEPENDENCY_TYPES if name in self.dependency_map(kind)}
