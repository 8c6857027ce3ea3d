"""Build pipeline tying together graph construction, emission and output."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import Config
from .emitter import emit
from .esm import SourceTransformer
from .graph import GraphBuilder
from .types import DependencyGraph
from .writer import write_bundle

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of a successful build."""

    graph: DependencyGraph
    bundle: str
    destination: Path

    @property
    def module_count(self) -> int:
        return len(self.graph)


class Bundler:
    """Runs one build for a configuration, failing fast on the first error."""

    def __init__(
        self,
        config: Config,
        *,
        transformer: SourceTransformer | None = None,
        builder: GraphBuilder | None = None,
    ) -> None:
        self._config = config
        self._builder = builder or GraphBuilder(
            transformer,
            extensions=config.resolve.extensions,
        )

    def graph(self) -> DependencyGraph:
        """Construct the dependency graph for the configured entry."""

        return self._builder.build(self._config.entry)

    def bundle(self) -> tuple[DependencyGraph, str]:
        """Construct the graph and emit bundle text without writing it."""

        graph = self.graph()
        return graph, emit(graph, cache=self._config.runtime.cache)

    def build(self) -> BuildResult:
        """Build the bundle and write it to the configured destination."""

        graph, text = self.bundle()
        output = self._config.output
        destination = write_bundle(text, output.path, output.filename)
        LOGGER.info("Bundled %s module(s) into %s", len(graph), destination)
        return BuildResult(graph=graph, bundle=text, destination=destination)


def build(config: Config, *, transformer: SourceTransformer | None = None) -> BuildResult:
    """Run a complete build for ``config``."""

    return Bundler(config, transformer=transformer).build()


__all__ = ["BuildResult", "Bundler", "build"]
