"""Persist bundle text to the configured destination."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

LOGGER = logging.getLogger(__name__)


class OutputError(OSError):
    """Raised when the bundle cannot be written."""


def write_bundle(text: str, directory: Path, filename: str) -> Path:
    """Write ``text`` to ``directory / filename`` and return the path.

    The directory (and its parents) is created when missing. The file is
    replaced atomically so readers never observe a partial bundle.
    """

    directory = directory.expanduser()
    target = directory / filename
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except FileExistsError as exc:
        raise OutputError(f"Output path is not a directory: {directory}") from exc
    except OSError as exc:
        raise OutputError(f"Cannot create output directory {directory}: {exc}") from exc

    tmp_path = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
    try:
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(target)
    except OSError as exc:
        raise OutputError(f"Failed to write bundle {target}: {exc}") from exc
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)

    LOGGER.debug("Wrote %s character(s) to %s", len(text), target)
    return target


__all__ = ["OutputError", "write_bundle"]
