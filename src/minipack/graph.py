"""Dependency graph construction starting from an entry module."""

from __future__ import annotations

import logging
import os
from collections import deque
from collections.abc import Callable, Sequence
from pathlib import Path
from types import MappingProxyType

from .assets import extract
from .esm import ParseError, SourceTransformer
from .types import DEFAULT_EXTENSIONS, Asset, DependencyGraph, ModuleRecord

LOGGER = logging.getLogger(__name__)

Extractor = Callable[[Path, "SourceTransformer | None"], Asset]


class ResolutionError(LookupError):
    """Raised when a specifier does not lead to an existing source file."""

    def __init__(
        self,
        importer: str | None,
        specifier: str,
        candidate: Path | None = None,
    ) -> None:
        self.importer = importer
        self.specifier = specifier
        self.candidate = candidate
        if importer is None:
            message = f"Entry module not found: {specifier}"
        else:
            message = f"Cannot resolve '{specifier}' imported from {importer}"
        if candidate is not None:
            message += f" (looked for {candidate})"
        super().__init__(message)


def canonical_id(path: Path) -> str:
    """Return the canonical module identity for an existing file."""

    return path.resolve().as_posix()


def resolve_specifier(
    base_dir: Path,
    specifier: str,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> Path | None:
    """Resolve ``specifier`` against ``base_dir``.

    The joined path is normalised (``.`` and ``..`` collapsed); when no file
    exists there, each extension is appended in turn. Returns ``None`` when
    nothing matches, including for specifiers that name a directory
    (``./``, ``..``, ``lib/``).
    """

    if specifier.rpartition("/")[2] in ("", ".", ".."):
        return None
    candidate = Path(os.path.normpath(base_dir / specifier))
    if not candidate.name:
        return None
    for path in (candidate, *(candidate.with_name(candidate.name + ext) for ext in extensions)):
        if path.is_file():
            return path.resolve()
    return None


class GraphBuilder:
    """Grow a deduplicated module graph with an explicit worklist."""

    def __init__(
        self,
        transformer: SourceTransformer | None = None,
        *,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        extractor: Extractor = extract,
    ) -> None:
        self._transformer = transformer
        self._extensions = tuple(extensions)
        self._extractor = extractor

    def build(self, entry: Path | str) -> DependencyGraph:
        """Discover every module reachable from ``entry``."""

        entry_path = Path(entry).expanduser().absolute()
        resolved = resolve_specifier(entry_path.parent, entry_path.name, self._extensions)
        if resolved is None:
            raise ResolutionError(None, str(entry), entry_path)

        entry_id = canonical_id(resolved)
        assets: dict[str, Asset] = {entry_id: self._extract(resolved, None, str(entry))}
        mappings: dict[str, MappingProxyType[str, str]] = {}
        worklist: deque[str] = deque([entry_id])

        while worklist:
            module_id = worklist.popleft()
            asset = assets[module_id]
            base_dir = asset.path.parent
            mapping: dict[str, str] = {}
            for specifier in asset.specifiers:
                if specifier in mapping:
                    continue
                target = resolve_specifier(base_dir, specifier, self._extensions)
                if target is None:
                    raise ResolutionError(
                        module_id, specifier, Path(os.path.normpath(base_dir / specifier))
                    )
                target_id = canonical_id(target)
                mapping[specifier] = target_id
                if target_id in assets:
                    continue
                assets[target_id] = self._extract(target, module_id, specifier)
                worklist.append(target_id)
                LOGGER.debug("Discovered %s via '%s' from %s", target_id, specifier, module_id)
            mappings[module_id] = MappingProxyType(mapping)

        modules = {
            module_id: ModuleRecord(
                id=module_id,
                specifiers=asset.specifiers,
                code=asset.code,
                mapping=mappings[module_id],
            )
            for module_id, asset in assets.items()
        }
        LOGGER.info("Dependency graph for %s has %s module(s)", entry_id, len(modules))
        return DependencyGraph(entry_id=entry_id, modules=MappingProxyType(modules))

    def _extract(self, path: Path, importer: str | None, specifier: str) -> Asset:
        try:
            return self._extractor(path, self._transformer)
        except FileNotFoundError as exc:
            raise ResolutionError(importer, specifier, path) from exc
        except (ParseError, OSError) as exc:
            if importer is not None:
                exc.add_note(f"imported as '{specifier}' from {importer}")
            raise


def build_graph(
    entry: Path | str,
    transformer: SourceTransformer | None = None,
    *,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> DependencyGraph:
    """Convenience wrapper around :class:`GraphBuilder`."""

    return GraphBuilder(transformer, extensions=extensions).build(entry)


__all__ = [
    "GraphBuilder",
    "ResolutionError",
    "build_graph",
    "canonical_id",
    "resolve_specifier",
]
