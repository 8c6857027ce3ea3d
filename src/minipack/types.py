"""Core immutable data structures used throughout minipack."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_EXTENSIONS: tuple[str, ...] = (".js",)


@dataclass(frozen=True)
class Asset:
    """Raw extraction result for one source file."""

    path: Path
    specifiers: tuple[str, ...]
    code: str


@dataclass(frozen=True)
class ModuleRecord:
    """One discovered module with its resolved specifier mapping.

    ``specifiers`` keeps every import in syntactic order, duplicates included.
    ``mapping`` holds one entry per distinct specifier, pointing at the
    canonical identity it resolved to.
    """

    id: str
    specifiers: tuple[str, ...]
    code: str
    mapping: Mapping[str, str]


@dataclass(frozen=True)
class DependencyGraph:
    """Closed, deduplicated set of modules reachable from the entry.

    Modules iterate in discovery order.
    """

    entry_id: str
    modules: Mapping[str, ModuleRecord]

    def __contains__(self, module_id: object) -> bool:
        return module_id in self.modules

    def __getitem__(self, module_id: str) -> ModuleRecord:
        return self.modules[module_id]

    def __iter__(self) -> Iterator[ModuleRecord]:
        return iter(self.modules.values())

    def __len__(self) -> int:
        return len(self.modules)

    @property
    def entry(self) -> ModuleRecord:
        return self.modules[self.entry_id]


__all__ = [
    "Asset",
    "DEFAULT_EXTENSIONS",
    "DependencyGraph",
    "ModuleRecord",
]
