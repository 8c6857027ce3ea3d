"""Serialise a dependency graph into a self-executing bundle."""

from __future__ import annotations

import json
import logging

from .types import DependencyGraph, ModuleRecord

LOGGER = logging.getLogger(__name__)

_HAS = "Object.prototype.hasOwnProperty.call"


def emit(graph: DependencyGraph, entry_id: str | None = None, *, cache: bool = True) -> str:
    """Return bundle text that requires ``entry_id`` (the graph entry by default).

    The output depends only on the graph, the entry and ``cache``: modules are
    written in graph order and mappings in specifier order.
    """

    target = graph.entry_id if entry_id is None else entry_id
    if target not in graph:
        raise ValueError(f"Entry module {target!r} is not part of the graph")

    table = ",\n".join(_module_entry(record) for record in graph)
    bundle = "\n".join(
        [
            "(function (modules) {",
            *_runtime(cache),
            f"  require({json.dumps(target)});",
            "})({",
            table,
            "});",
            "",
        ]
    )
    LOGGER.debug("Emitted bundle with %s module(s), %s character(s)", len(graph), len(bundle))
    return bundle


def _module_entry(record: ModuleRecord) -> str:
    mapping = json.dumps(dict(record.mapping))
    return "\n".join(
        [
            f"  {json.dumps(record.id)}: [",
            "    function (require, module, exports) {",
            record.code.rstrip("\n"),
            "    },",
            f"    {mapping}",
            "  ]",
        ]
    )


def _runtime(cache: bool) -> list[str]:
    lines: list[str] = []
    if cache:
        lines.append("  var cache = {};")
    lines.append("  function require(id) {")
    if cache:
        lines.extend(
            [
                f"    if ({_HAS}(cache, id)) {{",
                "      return cache[id].exports;",
                "    }",
            ]
        )
    lines.extend(
        [
            f"    if (!{_HAS}(modules, id)) {{",
            "      throw new Error(\"Cannot find module '\" + id + \"'\");",
            "    }",
            "    var fn = modules[id][0];",
            "    var mapping = modules[id][1];",
            "    function localRequire(name) {",
            f"      if (!{_HAS}(mapping, name)) {{",
            "        throw new Error(\"Cannot resolve '\" + name + \"' from '\" + id + \"'\");",
            "      }",
            "      return require(mapping[name]);",
            "    }",
            "    var module = { exports: {} };",
        ]
    )
    if cache:
        lines.extend(
            [
                "    cache[id] = module;",
                "    try {",
                "      fn(localRequire, module, module.exports);",
                "    } catch (error) {",
                "      delete cache[id];",
                "      throw error;",
                "    }",
            ]
        )
    else:
        lines.append("    fn(localRequire, module, module.exports);")
    lines.extend(["    return module.exports;", "  }"])
    return lines


__all__ = ["emit"]
