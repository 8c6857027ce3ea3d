from __future__ import annotations

from pathlib import Path

import pytest

from minipack.assets import extract
from minipack.esm import ParseError


class RecordingTransformer:
    def __init__(self) -> None:
        self.sources: list[str] = []

    def parse_specifiers(self, source: str) -> list[str]:
        self.sources.append(source)
        return ["./one.js", "./one.js"]

    def transform(self, source: str) -> str:
        return source.upper()


def test_extract_returns_specifiers_and_code(tmp_path: Path):
    path = tmp_path / "index.js"
    path.write_text("import { x } from './message.js';\nconsole.log(x);\n", encoding="utf-8")

    asset = extract(path)

    assert asset.path == path
    assert asset.specifiers == ("./message.js",)
    assert 'require("./message.js")' in asset.code


def test_extract_delegates_to_custom_transformer(tmp_path: Path):
    path = tmp_path / "index.js"
    path.write_text("\ufeffhello", encoding="utf-8")
    transformer = RecordingTransformer()

    asset = extract(path, transformer)

    assert transformer.sources == ["hello"]
    assert asset.specifiers == ("./one.js", "./one.js")
    assert asset.code == "HELLO"


def test_extract_missing_file_raises_os_error(tmp_path: Path):
    with pytest.raises(OSError):
        extract(tmp_path / "missing.js")


def test_extract_parse_error_carries_path(tmp_path: Path):
    path = tmp_path / "broken.js"
    path.write_text("const ok = 1;\nimport { from './x.js';\n", encoding="utf-8")

    with pytest.raises(ParseError) as excinfo:
        extract(path)

    assert excinfo.value.path == path
    assert excinfo.value.line == 2
    assert str(excinfo.value).startswith(f"{path}:2:")


def test_extract_rejects_invalid_utf8(tmp_path: Path):
    path = tmp_path / "binary.js"
    path.write_bytes(b"\xff\xfe\x00bad")

    with pytest.raises(ParseError, match="not valid UTF-8"):
        extract(path)
