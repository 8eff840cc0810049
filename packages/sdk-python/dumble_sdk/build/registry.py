"""
Export Registry
===============

Maps every exported source file to where each task writes it:

    /pkg/src/index.ts -> {"node": "/pkg/lib/index.mjs",
                          "browser": "/pkg/lib/index.browser.mjs",
                          "types": "pkg"}
    /pkg/package.json -> {"default": "/pkg/package.json"}

The registry is filled while exports are resolved, then frozen into an
ExportRegistry snapshot before any task is dispatched. Every task's resolver
holds a reference to the same snapshot; nothing can change it afterwards.
"""

from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from dumble_common import DumbleError, Platform


class ExportRegistry(Mapping[str, Mapping[str, str]]):
    """Read-only snapshot of source file -> slot -> output."""

    def __init__(self, entries: Optional[Mapping[str, Mapping[str, str]]] = None):
        self._entries: Mapping[str, Mapping[str, str]] = MappingProxyType(
            {path: MappingProxyType(dict(slots)) for path, slots in (entries or {}).items()}
        )

    def __getitem__(self, path: str) -> Mapping[str, str]:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ExportRegistry({len(self)} files)"

    def output_for(self, path: str, platform: str) -> Optional[str]:
        """
        Output a task on ``platform`` should link to for ``path``.

        Falls back to the ``default`` slot of files exported as-is.
        """
        slots = self._entries.get(path)
        if slots is None:
            return None
        return slots.get(platform) or slots.get(Platform.DEFAULT)

    def declaration_for(self, path: str) -> Optional[str]:
        """Public specifier of the declaration output registered for ``path``."""
        slots = self._entries.get(path)
        return None if slots is None else slots.get(Platform.TYPES)

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {path: dict(slots) for path, slots in self._entries.items()}


class RegistryBuilder:
    """Mutable registry used during export resolution, frozen exactly once."""

    def __init__(self) -> None:
        self._entries: Dict[str, Dict[str, str]] = {}
        self._frozen = False

    def __len__(self) -> int:
        return len(self._entries)

    def _check_open(self) -> None:
        if self._frozen:
            raise DumbleError("Export registry is frozen", code="REGISTRY_FROZEN")

    def register(self, path: str, slot: str, output: str) -> None:
        """Record ``output`` for ``path`` under ``slot`` (a platform or ``types``)."""
        self._check_open()
        self._entries.setdefault(path, {})[slot] = output

    def register_passthrough(self, path: str) -> None:
        """Register a file exported as-is; replaces anything known about it."""
        self._check_open()
        self._entries[path] = {Platform.DEFAULT: path}

    def freeze(self) -> ExportRegistry:
        self._check_open()
        self._frozen = True
        return ExportRegistry(self._entries)
