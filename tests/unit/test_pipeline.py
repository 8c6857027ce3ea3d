from __future__ import annotations

from pathlib import Path

import pytest

from minipack.config import Config, OutputConfig, RuntimeConfig
from minipack.graph import ResolutionError
from minipack.pipeline import Bundler, build


def _project(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    (src / "index.js").write_text(
        "import { x } from './message.js';\nconsole.log(x);\n", encoding="utf-8"
    )
    (src / "message.js").write_text("export const x = 1;\n", encoding="utf-8")
    return src / "index.js"


def _config(tmp_path: Path, entry: Path, *, cache: bool = True) -> Config:
    return Config(
        root_dir=tmp_path,
        entry=entry,
        output=OutputConfig(path=tmp_path / "dist", filename="main.js"),
        runtime=RuntimeConfig(cache=cache),
    )


def test_build_writes_bundle(tmp_path: Path):
    entry = _project(tmp_path)

    result = build(_config(tmp_path, entry))

    assert result.destination == tmp_path / "dist" / "main.js"
    assert result.module_count == 2
    assert result.destination.read_text(encoding="utf-8") == result.bundle
    assert f'require("{entry.resolve().as_posix()}");' in result.bundle


def test_bundle_does_not_touch_output(tmp_path: Path):
    entry = _project(tmp_path)

    graph, text = Bundler(_config(tmp_path, entry, cache=False)).bundle()

    assert len(graph) == 2
    assert "var cache" not in text
    assert not (tmp_path / "dist").exists()


def test_rebuilding_is_byte_identical(tmp_path: Path):
    entry = _project(tmp_path)
    config = _config(tmp_path, entry)

    first = build(config).bundle
    second = build(config).bundle

    assert first == second


def test_failed_build_writes_nothing(tmp_path: Path):
    entry = _project(tmp_path)
    (tmp_path / "src" / "message.js").write_text(
        "export { y } from './missing.js';\n", encoding="utf-8"
    )

    with pytest.raises(ResolutionError):
        build(_config(tmp_path, entry))

    assert not (tmp_path / "dist").exists()
