from __future__ import annotations

from textwrap import dedent

import pytest

from minipack.esm import EsmTransformer, ParseError


@pytest.fixture()
def transformer() -> EsmTransformer:
    return EsmTransformer()


def test_plain_scripts_pass_through_unchanged(transformer: EsmTransformer):
    source = "const fs = require('fs');\nmodule.exports = 1;\n"

    assert transformer.transform(source) == source
    assert transformer.parse_specifiers(source) == []


def test_imports_are_hoisted_in_source_order(transformer: EsmTransformer):
    source = dedent(
        """\
        console.log('body');
        import { x } from './message.js';
        import './setup.js';
        """
    )

    code = transformer.transform(source)
    lines = code.splitlines()

    assert lines[0] == '"use strict";'
    assert lines[1] == 'Object.defineProperty(exports, "__esModule", { value: true });'
    assert lines[2] == 'const { x } = require("./message.js");'
    assert lines[3] == 'require("./setup.js");'
    assert "import" not in code
    assert "console.log('body');" in code


def test_repeated_specifiers_keep_one_require_each(transformer: EsmTransformer):
    source = "import a from './dep.js';\nimport { b } from './dep.js';\n"

    code = transformer.transform(source)

    assert code.count('require("./dep.js")') == 2
    assert transformer.parse_specifiers(source) == ["./dep.js", "./dep.js"]


def test_default_and_namespace_imports(transformer: EsmTransformer):
    source = "import main, * as all from './lib.js';\nimport other from './other.js';\n"

    code = transformer.transform(source)

    assert "function __minipackDefault(m)" in code
    assert 'const __minipackImport1 = require("./lib.js");' in code
    assert "const all = __minipackImport1;" in code
    assert "const main = __minipackDefault(__minipackImport1);" in code
    assert 'const other = __minipackDefault(require("./other.js"));' in code


def test_named_import_aliases_and_string_names(transformer: EsmTransformer):
    source = "import { a as b, \"kebab-name\" as kebab } from './n.js';"

    code = transformer.transform(source)

    assert 'const { a: b, "kebab-name": kebab } = require("./n.js");' in code


def test_export_declarations_become_getters(transformer: EsmTransformer):
    source = dedent(
        """\
        export const x = 1;
        export function greet() { return 'hi'; }
        export class Widget {}
        """
    )

    code = transformer.transform(source)

    assert (
        'Object.defineProperty(exports, "x", { enumerable: true, get: function () { return x; } });'
        in code
    )
    assert 'Object.defineProperty(exports, "greet"' in code
    assert 'Object.defineProperty(exports, "Widget"' in code
    assert "const x = 1;" in code
    assert "function greet() { return 'hi'; }" in code
    assert "export" not in code.replace("exports", "")


def test_export_list_and_default_forms(transformer: EsmTransformer):
    source = dedent(
        """\
        const a = 1;
        function helper() {}
        export { a as answer };
        export default helper;
        """
    )

    code = transformer.transform(source)

    assert "return a; } });" in code
    assert 'Object.defineProperty(exports, "answer"' in code
    assert "exports.default = helper;" in code


def test_named_default_declaration_keeps_binding(transformer: EsmTransformer):
    code = transformer.transform("export default function main() { return 1; }\n")

    assert "function main() { return 1; }" in code
    assert 'Object.defineProperty(exports, "default"' in code
    assert "return main; } });" in code


def test_re_exports(transformer: EsmTransformer):
    source = dedent(
        """\
        export * from './all.js';
        export * as tools from './tools.js';
        export { a as b } from './named.js';
        """
    )

    code = transformer.transform(source)

    assert 'var __minipackReexport1 = require("./all.js");' in code
    assert "Object.keys(__minipackReexport1).forEach" in code
    assert 'var __minipackReexport2 = require("./tools.js");' in code
    assert "return __minipackReexport2; } });" in code
    assert 'var __minipackReexport3 = require("./named.js");' in code
    assert "return __minipackReexport3.a; } });" in code


def test_getters_precede_requests(transformer: EsmTransformer):
    source = "import { dep } from './dep.js';\nexport function early() { return dep; }\n"

    code = transformer.transform(source)

    assert code.index('"early"') < code.index('require("./dep.js")')


def test_removed_statements_keep_line_numbers(transformer: EsmTransformer):
    source = "import {\n  a,\n  b,\n} from './x.js';\nthrow new Error(a + b);\n"

    code = transformer.transform(source)
    header_lines = 3

    assert code.splitlines()[header_lines + 4] == "throw new Error(a + b);"


def test_hashbang_is_removed(transformer: EsmTransformer):
    code = transformer.transform("#!/usr/bin/env node\nexport const a = 1;\n")

    assert "#!" not in code


def test_duplicate_exports_are_rejected(transformer: EsmTransformer):
    source = "export const a = 1;\nconst b = 2;\nexport { b as a };\n"

    with pytest.raises(ParseError, match="Duplicate export 'a'"):
        transformer.transform(source)


def test_default_expression_conflicts_with_named_default(transformer: EsmTransformer):
    source = "const a = 1;\nexport { a as default };\nexport default 2;\n"

    with pytest.raises(ParseError, match="Duplicate export 'default'"):
        transformer.transform(source)
