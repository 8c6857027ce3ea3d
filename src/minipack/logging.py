"""Console and file logging for minipack builds."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import ConfigError, LoggingConfig

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class ConsoleFormatter(logging.Formatter):
    """Prefix each message with a level symbol, coloured on terminals.

    Debug records also name the stage that emitted them (``graph``,
    ``emitter``...), which keeps verbose build traces readable.
    """

    SYMBOLS: dict[int, tuple[str, str]] = {
        logging.DEBUG: ("D", "\x1b[36m"),
        logging.INFO: ("I", "\x1b[32m"),
        logging.WARNING: ("!", "\x1b[33m"),
        logging.ERROR: ("X", "\x1b[31m"),
        logging.CRITICAL: ("X", "\x1b[35m"),
    }

    RESET = "\x1b[0m"

    def __init__(self, use_color: bool) -> None:
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        symbol, color = self.SYMBOLS.get(record.levelno, ("?", "\x1b[37m"))
        message = super().format(record)
        if record.levelno <= logging.DEBUG:
            message = f"[{record.name.rpartition('.')[2]}] {message}"
        if self.use_color:
            symbol = f"{color}{symbol}{self.RESET}"
        return f"{symbol} {message}"


def configure_logging(logging_config: LoggingConfig) -> None:
    """Install the console handler and, if configured, a rotating log file.

    The file always records DEBUG detail; ``logging_config.level`` gates what
    reaches the console.
    """

    level = _level_from_string(logging_config.level)
    console = _build_console_handler(level)
    handlers: list[logging.Handler] = [console]

    if logging_config.file is not None:
        log_path = logging_config.file.expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_build_file_handler(log_path))

    root_level = logging.DEBUG if logging_config.file is not None else level
    logging.basicConfig(level=root_level, handlers=handlers, force=True)


def _build_file_handler(path: Path) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _build_console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ConsoleFormatter(_use_color(handler.stream)))
    return handler


def _use_color(stream: object) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return bool(getattr(stream, "isatty", lambda: False)())


def _level_from_string(level: str) -> int:
    try:
        return LEVELS[level.strip().upper()]
    except KeyError as exc:
        raise ConfigError(f"Unknown log level: {level}") from exc


__all__ = ["ConsoleFormatter", "configure_logging"]
