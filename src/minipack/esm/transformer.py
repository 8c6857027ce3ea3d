"""Rewrite ES module declarations into the require/module/exports idiom."""

from __future__ import annotations

import json
from typing import Protocol

from .lexer import ParseError
from .syntax import Binding, ImportDeclaration, ModuleSyntax, ReExport, is_identifier, parse_module

DEFAULT_HELPER = "__minipackDefault"
IMPORT_PREFIX = "__minipackImport"
REEXPORT_PREFIX = "__minipackReexport"


class SourceTransformer(Protocol):
    """Parser/transformer collaborator used by the asset extractor."""

    def parse_specifiers(self, source: str) -> list[str]:
        """Return raw static import specifiers in syntactic order."""

    def transform(self, source: str) -> str:
        """Return ``source`` rewritten against require/module/exports."""


class EsmTransformer:
    """Default transformer for ES module sources.

    Imports and re-exports are hoisted to the top of the module body in
    source order, one ``require`` call per declaration. Named exports become
    enumerable getters on ``exports`` so importers observe live bindings.
    Sources without module syntax are returned unchanged.
    """

    def parse_specifiers(self, source: str) -> list[str]:
        return parse_module(source).specifiers

    def transform(self, source: str) -> str:
        syntax = parse_module(source)
        if not syntax.is_module:
            return source
        return _Rewriter(source, syntax).render()


class _Rewriter:
    def __init__(self, source: str, syntax: ModuleSyntax) -> None:
        self._source = source
        self._syntax = syntax
        self._edits: list[tuple[int, int, str]] = []

    def render(self) -> str:
        header = self._header()
        body = self._body()
        return "\n".join(header) + "\n" + body

    def _header(self) -> list[str]:
        lines = ['"use strict";', 'Object.defineProperty(exports, "__esModule", { value: true });']
        if any(isinstance(item, ImportDeclaration) and item.default for item in self._syntax.imports):
            lines.append(
                f"function {DEFAULT_HELPER}(m) {{ return m && m.__esModule ? m.default : m; }}"
            )

        exported: set[str] = set()
        for binding in self._syntax.exported_bindings():
            lines.append(_getter(binding.alias, binding.name, exported))
        for index, statement in enumerate(self._syntax.imports):
            if not isinstance(statement, ReExport) or statement.star:
                continue
            temp = self._temp(index, REEXPORT_PREFIX)
            if statement.namespace is not None:
                lines.append(_getter(statement.namespace, temp, exported))
            for binding in statement.named:
                lines.append(_getter(binding.alias, _member(temp, binding.name), exported))
        if any(keyword.default_expression for keyword in self._syntax.keywords):
            _claim("default", exported)

        for index, statement in enumerate(self._syntax.imports):
            if isinstance(statement, ImportDeclaration):
                lines.extend(self._import_lines(index, statement))
            else:
                lines.extend(self._reexport_lines(index, statement))
        return lines

    def _import_lines(self, index: int, statement: ImportDeclaration) -> list[str]:
        request = f"require({json.dumps(statement.source)})"
        if statement.is_bare:
            return [f"{request};"]

        clauses = sum(1 for part in (statement.default, statement.namespace, statement.named) if part)
        lines: list[str] = []
        if clauses > 1:
            temp = self._temp(index, IMPORT_PREFIX)
            lines.append(f"const {temp} = {request};")
            request = temp
        if statement.namespace is not None:
            lines.append(f"const {statement.namespace} = {request};")
        if statement.default is not None:
            lines.append(f"const {statement.default} = {DEFAULT_HELPER}({request});")
        if statement.named:
            lines.append(f"const {_pattern(statement.named)} = {request};")
        return lines

    def _reexport_lines(self, index: int, statement: ReExport) -> list[str]:
        temp = self._temp(index, REEXPORT_PREFIX)
        lines = [f"var {temp} = require({json.dumps(statement.source)});"]
        if statement.star:
            lines.append(
                f"Object.keys({temp}).forEach(function (key) {{ "
                'if (key === "default" || key === "__esModule" || '
                "Object.prototype.hasOwnProperty.call(exports, key)) return; "
                "Object.defineProperty(exports, key, { enumerable: true, "
                f"get: function () {{ return {temp}[key]; }} }}); }});"
            )
        return lines

    def _body(self) -> str:
        syntax = self._syntax
        if syntax.hashbang_end is not None:
            self._edits.append((0, syntax.hashbang_end, ""))
        for statement in [*syntax.imports, *syntax.local_exports]:
            self._remove(statement.start, statement.end)
        for keyword in syntax.keywords:
            replacement = "exports.default =" if keyword.default_expression else ""
            self._edits.append((keyword.start, keyword.end, replacement))

        text = self._source
        for start, end, replacement in sorted(self._edits, reverse=True):
            text = text[:start] + replacement + text[end:]
        return text

    def _remove(self, start: int, end: int) -> None:
        removed = self._source[start:end]
        self._edits.append((start, end, "\n" * removed.count("\n")))

    def _temp(self, index: int, prefix: str) -> str:
        return f"{prefix}{index + 1}"


def _getter(name: str, expression: str, exported: set[str]) -> str:
    _claim(name, exported)
    return (
        f"Object.defineProperty(exports, {json.dumps(name)}, "
        f"{{ enumerable: true, get: function () {{ return {expression}; }} }});"
    )


def _claim(name: str, exported: set[str]) -> None:
    if name in exported:
        raise ParseError(f"Duplicate export '{name}'")
    exported.add(name)


def _member(target: str, name: str) -> str:
    if is_identifier(name):
        return f"{target}.{name}"
    return f"{target}[{json.dumps(name)}]"


def _pattern(bindings: tuple[Binding, ...]) -> str:
    parts = []
    for binding in bindings:
        key = binding.name if is_identifier(binding.name) else json.dumps(binding.name)
        parts.append(key if key == binding.alias else f"{key}: {binding.alias}")
    return "{ " + ", ".join(parts) + " }"


__all__ = ["EsmTransformer", "SourceTransformer"]
