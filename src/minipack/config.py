"""Configuration loading and validation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .types import DEFAULT_EXTENSIONS

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("minipack.yaml")
DEFAULT_LOG_LEVEL = "info"
CONFIG_ENV_VAR = "MINIPACK_CONFIG"


class ConfigError(ValueError):
    """Raised when configuration is invalid or missing."""


@dataclass(frozen=True)
class OutputConfig:
    """Where the bundle is written."""

    path: Path
    filename: str

    @property
    def destination(self) -> Path:
        return self.path / self.filename


@dataclass(frozen=True)
class ResolveConfig:
    """Specifier resolution settings."""

    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS


@dataclass(frozen=True)
class RuntimeConfig:
    """Behaviour of the loader embedded in the bundle."""

    cache: bool = True


@dataclass(frozen=True)
class LoggingConfig:
    """Logging-related configuration."""

    level: str = DEFAULT_LOG_LEVEL
    file: Path | None = None


@dataclass(frozen=True)
class Config:
    """Fully parsed configuration."""

    root_dir: Path
    entry: Path
    output: OutputConfig
    resolve: ResolveConfig = field(default_factory=ResolveConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path | str | None = None) -> Config:
    """Load and validate configuration from YAML."""

    config_path = resolve_config_path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return parse_config(raw, config_path.absolute().parent)


def resolve_config_path(explicit: Path | str | None) -> Path:
    if explicit:
        return Path(explicit).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def parse_config(raw: dict[str, Any], base_dir: Path) -> Config:
    """Build a :class:`Config` from a raw mapping.

    ``base_dir`` is the project root unless ``root`` overrides it; relative
    paths are interpreted against the resulting root.
    """

    root_dir = _parse_root(raw.get("root"), base_dir)
    return Config(
        root_dir=root_dir,
        entry=_parse_entry(raw.get("entry"), root_dir),
        output=_parse_output(raw.get("output"), root_dir),
        resolve=_parse_resolve(raw.get("resolve")),
        runtime=_parse_runtime(raw.get("runtime")),
        logging=_parse_logging(raw.get("logging"), root_dir),
    )


def _parse_root(value: Any, base_dir: Path) -> Path:
    if value is None:
        return base_dir
    if not isinstance(value, str) or not value.strip():
        raise ConfigError("root must be a non-empty string path.")
    return _anchor(Path(value).expanduser(), base_dir)


def _parse_entry(value: Any, root_dir: Path) -> Path:
    if value is None:
        raise ConfigError("entry is required.")
    if not isinstance(value, str) or not value.strip():
        raise ConfigError("entry must be a non-empty string path.")
    return _anchor(Path(value).expanduser(), root_dir)


def _parse_output(value: Any, root_dir: Path) -> OutputConfig:
    if value is None:
        raise ConfigError("output is required.")
    if not isinstance(value, dict):
        raise ConfigError("output must be a mapping.")

    path = value.get("path")
    filename = value.get("filename")
    if path is None or filename is None:
        raise ConfigError("output requires 'path' and 'filename'.")
    if not isinstance(path, str) or not path.strip():
        raise ConfigError("output.path must be a non-empty string path.")
    return OutputConfig(
        path=_anchor(Path(path).expanduser(), root_dir),
        filename=check_output_filename(filename),
    )


def check_output_filename(value: Any, field: str = "output.filename") -> str:
    """Return ``value`` if it is a bare file name, else raise ``ConfigError``."""

    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{field} must be a non-empty string.")
    if Path(value).name != value or value in (".", ".."):
        raise ConfigError(f"{field} must be a file name without directories.")
    return value


def _parse_resolve(value: Any) -> ResolveConfig:
    if value is None:
        return ResolveConfig()
    if not isinstance(value, dict):
        raise ConfigError("resolve must be a mapping.")
    extensions = value.get("extensions")
    if extensions is None:
        return ResolveConfig()
    if not isinstance(extensions, list):
        raise ConfigError("resolve.extensions must be a list.")

    parsed: list[str] = []
    for idx, entry in enumerate(extensions, start=1):
        if not isinstance(entry, str) or not entry.startswith(".") or len(entry) < 2:
            raise ConfigError(f"resolve.extensions[{idx}] must be a suffix such as '.js'.")
        if entry in parsed:
            LOGGER.warning("Duplicate extension '%s' in resolve.extensions ignored.", entry)
            continue
        parsed.append(entry)
    return ResolveConfig(extensions=tuple(parsed))


def _parse_runtime(value: Any) -> RuntimeConfig:
    if value is None:
        return RuntimeConfig()
    if not isinstance(value, dict):
        raise ConfigError("runtime must be a mapping.")
    cache = value.get("cache", True)
    if not isinstance(cache, bool):
        raise ConfigError("runtime.cache must be a boolean.")
    if not cache:
        LOGGER.warning("runtime.cache is disabled; modules will re-run on every require.")
    return RuntimeConfig(cache=cache)


def _parse_logging(value: Any, root_dir: Path) -> LoggingConfig:
    if value is None:
        return LoggingConfig()
    if not isinstance(value, dict):
        raise ConfigError("logging must be a mapping.")
    level = str(value.get("level", DEFAULT_LOG_LEVEL)).lower()
    raw_file = value.get("file")
    if raw_file is None:
        return LoggingConfig(level=level)
    if not isinstance(raw_file, str) or not raw_file.strip():
        raise ConfigError("logging.file must be a non-empty string path.")
    return LoggingConfig(level=level, file=_anchor(Path(raw_file).expanduser(), root_dir))


def _anchor(path: Path, root_dir: Path) -> Path:
    if path.is_absolute():
        return path
    return root_dir / path


__all__ = [
    "Config",
    "ConfigError",
    "LoggingConfig",
    "OutputConfig",
    "ResolveConfig",
    "RuntimeConfig",
    "check_output_filename",
    "load_config",
    "parse_config",
    "resolve_config_path",
]
