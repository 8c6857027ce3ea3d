"""Asset extraction: read one source file and run it through the transformer."""

from __future__ import annotations

import logging
from pathlib import Path

from .esm import EsmTransformer, ParseError, SourceTransformer
from .types import Asset

LOGGER = logging.getLogger(__name__)


def extract(path: Path, transformer: SourceTransformer | None = None) -> Asset:
    """Return the import specifiers and transformed code of ``path``.

    Raises ``OSError`` when the file cannot be read and ``ParseError`` (carrying
    the file path) when the transformer rejects its contents.
    """

    active = transformer or EsmTransformer()
    raw = path.read_bytes()
    try:
        source = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Source is not valid UTF-8: {exc.reason}", path=path) from exc

    try:
        specifiers = active.parse_specifiers(source)
        code = active.transform(source)
    except ParseError as exc:
        raise exc.for_path(path) from exc

    LOGGER.debug("Extracted %s with %s import(s)", path, len(specifiers))
    return Asset(path=path, specifiers=tuple(specifiers), code=code)


__all__ = ["extract"]
