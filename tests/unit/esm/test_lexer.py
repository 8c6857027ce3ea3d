from __future__ import annotations

import pytest

from minipack.esm import ParseError, parse_module, tokenize
from minipack.esm.lexer import string_value


def _kinds(source: str) -> list[tuple[str, str]]:
    return [(token.kind, token.value) for token in tokenize(source)]


def test_strings_hide_module_keywords():
    tokens = _kinds("const s = \"import x from 'y'\";")

    assert ("string", "\"import x from 'y'\"") in tokens
    assert ("name", "import") not in tokens


def test_comments_are_skipped_and_newlines_recorded():
    tokens = tokenize("a // import b from 'c'\n/* export\n */ b")

    assert [token.value for token in tokens] == ["a", "b"]
    assert tokens[1].newline_before is True
    assert tokens[1].line == 3


def test_template_literal_with_nested_expression_is_single_token():
    source = "const t = `a ${ {x: `inner ${1}`}.x } b`; next"
    tokens = tokenize(source)

    templates = [token for token in tokens if token.kind == "template"]
    assert len(templates) == 1
    assert templates[0].value.startswith("`a ${")
    assert templates[0].value.endswith("b`")
    assert tokens[-1].value == "next"


def test_regex_and_division_are_distinguished():
    regex_tokens = _kinds("const r = /[/]import/g;")
    division_tokens = _kinds("const d = a / b / c;")

    assert ("regex", "/[/]import/g") in regex_tokens
    assert [value for kind, value in division_tokens if kind == "punct"].count("/") == 2


def test_regex_after_return_keyword():
    tokens = _kinds("function f() { return /x/.test(y); }")

    assert ("regex", "/x/") in tokens


def test_hashbang_line_is_ignored():
    tokens = tokenize("#!/usr/bin/env node\nconsole.log(1)")

    assert tokens[0].value == "console"
    assert tokens[0].line == 2


def test_compound_punctuators_are_greedy():
    tokens = _kinds("a >>>= b ?? c?.d")

    assert ("punct", ">>>=") in tokens
    assert ("punct", "??") in tokens
    assert ("punct", "?.") in tokens


@pytest.mark.parametrize(
    "source, message, line",
    [
        ("const a = 'oops\n", "Unterminated string literal", 1),
        ("let x = 1;\n/* never closed", "Unterminated comment", 2),
        ("let t = `abc", "Unterminated template literal", 1),
        ("let t = `a ${ b", "Unterminated template literal", 1),
        ("x = 1;\nlet r = /abc\n", "Unterminated regular expression", 2),
    ],
)
def test_unterminated_constructs_raise_parse_error(source: str, message: str, line: int):
    with pytest.raises(ParseError) as excinfo:
        tokenize(source)

    assert excinfo.value.diagnostic == message
    assert excinfo.value.line == line
    assert f"line {line}" in str(excinfo.value)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("'./a.js'", "./a.js"),
        ('"./b\\u0031.js"', "./b1.js"),
        ("'./c\\x2ejs'", "./c.js"),
        ("'./\\u{64}.js'", "./d.js"),
        ("'tab\\tsep'", "tab\tsep"),
        ("'quote\\''", "quote'"),
    ],
)
def test_string_value_decodes_escapes(raw: str, expected: str):
    assert string_value(raw) == expected


def test_parse_error_for_path_includes_location():
    error = ParseError("Unexpected token", line=3, column=7)

    located = error.for_path("/src/app.js")

    assert str(located) == "/src/app.js:3:7: Unexpected token"
    assert located.diagnostic == "Unexpected token"


@pytest.mark.parametrize(
    "raw",
    ["'./a\\u{zz}.js'", "'./a\\xZZ.js'", "'./a\\u{12'", "'./a\\u{110000}.js'", "'./a\\u12.js'"],
)
def test_string_value_rejects_malformed_escapes(raw: str):
    with pytest.raises(ParseError, match="Invalid escape sequence"):
        string_value(raw)


def test_malformed_specifier_escape_reports_location():
    with pytest.raises(ParseError) as excinfo:
        parse_module("const a = 1;\nimport x from './a\\u{zz}.js';\n")

    assert excinfo.value.line == 2
    assert excinfo.value.column == 15
    assert "Invalid escape sequence" in excinfo.value.diagnostic


@pytest.mark.parametrize("header", ["if (ok)", "while (ok)", "for (;;)", "if (f(a, (b)))"])
def test_regex_after_statement_header(header: str):
    tokens = _kinds(f"{header} /[(]/.test(s);")

    assert ("regex", "/[(]/") in tokens


def test_division_after_parenthesized_expression():
    tokens = _kinds("const d = (a + b) / c / (d);")

    assert [value for kind, value in tokens if kind == "punct"].count("/") == 2
