"""minipack command-line interface."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from . import __version__
from .config import (
    Config,
    ConfigError,
    OutputConfig,
    RuntimeConfig,
    check_output_filename,
    load_config,
)
from .esm import ParseError
from .graph import ResolutionError
from .logging import configure_logging
from .pipeline import Bundler

app = typer.Typer(help="Bundle ES modules into a single self-executing script.")
LOGGER = logging.getLogger(__name__)


@dataclass
class CLIState:
    """Stores shared CLI options."""

    config_path: Path | None


@app.callback()
def _minipack(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "-c",
            "--config",
            help="Path to minipack config (env MINIPACK_CONFIG or ./minipack.yaml).",
        ),
    ] = None,
) -> None:
    """Capture global CLI options."""

    resolved = config.expanduser() if config else None
    ctx.obj = CLIState(config_path=resolved)


@app.command()
def build(
    ctx: typer.Context,
    entry: Annotated[
        Path | None,
        typer.Option("--entry", help="Override the configured entry module."),
    ] = None,
    output_path: Annotated[
        Path | None,
        typer.Option("--output-path", help="Override the output directory."),
    ] = None,
    output_filename: Annotated[
        str | None,
        typer.Option("--output-filename", help="Override the output file name."),
    ] = None,
    no_cache: Annotated[
        bool,
        typer.Option(
            "--no-cache",
            help="Re-run module factories on every require instead of caching exports.",
        ),
    ] = False,
) -> None:
    """Build the bundle and write it to the output path."""

    config = _load_environment(_state(ctx))
    config = _apply_overrides(
        config,
        entry=entry,
        output_path=output_path,
        output_filename=output_filename,
        no_cache=no_cache,
    )
    try:
        result = Bundler(config).build()
    except (ParseError, ResolutionError, OSError) as exc:
        _build_failure(exc)
    typer.echo(f"Bundle written to {result.destination} ({result.module_count} module(s))")


@app.command()
def graph(ctx: typer.Context) -> None:
    """Print the dependency graph without writing a bundle."""

    config = _load_environment(_state(ctx))
    try:
        dependency_graph = Bundler(config).graph()
    except (ParseError, ResolutionError, OSError) as exc:
        _build_failure(exc)

    typer.echo(f"Entry: {dependency_graph.entry_id}")
    typer.echo(f"Modules: {len(dependency_graph)}")
    for record in dependency_graph:
        typer.echo(f"  - {record.id}")
        for specifier, target in record.mapping.items():
            typer.echo(f"      {specifier} -> {target}")


@app.command()
def version() -> None:
    """Print the installed minipack version."""

    typer.echo(__version__)


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise RuntimeError("CLI state missing from context.")
    return state


def _load_environment(state: CLIState) -> Config:
    try:
        config = load_config(state.config_path)
        configure_logging(config.logging)
    except ConfigError as exc:
        _config_failure(exc)
    return config


def _apply_overrides(
    config: Config,
    *,
    entry: Path | None,
    output_path: Path | None,
    output_filename: str | None,
    no_cache: bool,
) -> Config:
    changes: dict[str, object] = {}
    if entry is not None:
        changes["entry"] = entry.expanduser().absolute()
    if output_filename is not None:
        try:
            check_output_filename(output_filename, "--output-filename")
        except ConfigError as exc:
            _config_failure(exc)
    if output_path is not None or output_filename is not None:
        changes["output"] = OutputConfig(
            path=output_path.expanduser().absolute() if output_path else config.output.path,
            filename=config.output.filename if output_filename is None else output_filename,
        )
    if no_cache:
        changes["runtime"] = RuntimeConfig(cache=False)
    return dataclasses.replace(config, **changes) if changes else config


def _config_failure(exc: ConfigError) -> NoReturn:
    typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(2) from exc


def _build_failure(exc: Exception) -> NoReturn:
    LOGGER.debug("Build failed", exc_info=exc)
    details = "\n".join([str(exc), *getattr(exc, "__notes__", ())])
    typer.secho(f"Build failed: {details}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1) from exc


def main() -> None:  # pragma: no cover - delegated to Typer
    app()


__all__ = ["app", "main"]
