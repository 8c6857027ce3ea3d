"""Recognise top-level ES module declarations in a token stream."""

from __future__ import annotations

from dataclasses import dataclass, field

from .lexer import Lexer, ParseError, Token, string_value

DECLARATION_KEYWORDS = ("const", "let", "var")
OPENERS = {"(": ")", "[": "]", "{": "}"}


@dataclass(frozen=True, slots=True)
class Binding:
    """One ``name as alias`` pair from an import or export clause."""

    name: str
    alias: str


@dataclass(frozen=True, slots=True)
class ImportDeclaration:
    start: int
    end: int
    source: str
    default: str | None = None
    namespace: str | None = None
    named: tuple[Binding, ...] = ()

    @property
    def is_bare(self) -> bool:
        return self.default is None and self.namespace is None and not self.named


@dataclass(frozen=True, slots=True)
class ReExport:
    """``export {a as b} from``, ``export * from`` or ``export * as ns from``."""

    start: int
    end: int
    source: str
    named: tuple[Binding, ...] = ()
    star: bool = False
    namespace: str | None = None


@dataclass(frozen=True, slots=True)
class LocalExport:
    """``export {a as b}`` without a source; removed from the body."""

    start: int
    end: int
    named: tuple[Binding, ...]


@dataclass(frozen=True, slots=True)
class ExportKeyword:
    """``export`` (or ``export default``) prefixing a declaration.

    Only the keyword span is rewritten; the declaration itself stays in place.
    ``names`` lists the bindings it introduces. ``default_expression`` marks an
    ``export default <expression>`` form that becomes an assignment.
    """

    start: int
    end: int
    names: tuple[str, ...] = ()
    default_name: str | None = None
    default_expression: bool = False


@dataclass
class ModuleSyntax:
    """All module declarations found in a source file, in source order."""

    imports: list[ImportDeclaration | ReExport] = field(default_factory=list)
    local_exports: list[LocalExport] = field(default_factory=list)
    keywords: list[ExportKeyword] = field(default_factory=list)
    hashbang_end: int | None = None

    @property
    def specifiers(self) -> list[str]:
        return [statement.source for statement in self.imports]

    @property
    def is_module(self) -> bool:
        return bool(self.imports or self.local_exports or self.keywords)

    def exported_bindings(self) -> list[Binding]:
        """Return ``Binding(local, exported)`` pairs for exports with local bindings."""

        bindings: list[Binding] = []
        statements = sorted([*self.local_exports, *self.keywords], key=lambda item: item.start)
        for statement in statements:
            if isinstance(statement, LocalExport):
                bindings.extend(statement.named)
                continue
            bindings.extend(Binding(name, name) for name in statement.names)
            if statement.default_name is not None:
                bindings.append(Binding(statement.default_name, "default"))
        return bindings


class _Parser:
    def __init__(self, source: str) -> None:
        self._lexer = Lexer(source)
        self._tokens = self._lexer.tokenize()
        self._index = 0
        self._source = source

    def parse(self) -> ModuleSyntax:
        syntax = ModuleSyntax()
        if self._source.startswith("#!"):
            end = 0
            while end < len(self._source) and self._source[end] not in "\r\n":
                end += 1
            syntax.hashbang_end = end

        stack: list[Token] = []
        previous: Token | None = None
        while self._index < len(self._tokens):
            token = self._tokens[self._index]
            if not stack and self._at_statement_start(token, previous):
                if token.is_name("import") and not self._is_import_expression():
                    syntax.imports.append(self._parse_import())
                    previous = self._tokens[self._index - 1]
                    continue
                if token.is_name("export"):
                    self._parse_export(syntax)
                    previous = self._tokens[self._index - 1]
                    continue

            if token.kind == "punct" and token.value in OPENERS:
                stack.append(token)
            elif token.kind == "punct" and token.value in (")", "]", "}"):
                if not stack or OPENERS[stack[-1].value] != token.value:
                    raise self._error(f"Unexpected '{token.value}'", token)
                stack.pop()
            previous = token
            self._index += 1

        if stack:
            raise self._error(f"Unclosed '{stack[-1].value}'", stack[-1])
        return syntax

    def _at_statement_start(self, token: Token, previous: Token | None) -> bool:
        if token.kind != "name" or token.value not in ("import", "export"):
            return False
        if previous is None:
            return True
        if previous.kind == "punct" and previous.value in (".", "?."):
            return False
        if previous.kind == "punct" and previous.value in (";", "}"):
            return True
        return token.newline_before

    def _is_import_expression(self) -> bool:
        following = self._peek(1)
        return following is not None and following.kind == "punct" and following.value in ("(", ".")

    # -- import -------------------------------------------------------------

    def _parse_import(self) -> ImportDeclaration:
        start = self._advance().start
        token = self._expect_token("module specifier")

        if token.kind == "string":
            self._index += 1
            return ImportDeclaration(start=start, end=self._finish_statement(), source=self._string(token))

        default: str | None = None
        namespace: str | None = None
        named: tuple[Binding, ...] = ()

        if token.kind == "name":
            default = self._binding_name()
            if self._accept_punct(","):
                token = self._expect_token("import clause")
            else:
                token = None
        if token is not None:
            if token.is_punct("*"):
                self._index += 1
                self._expect_name("as")
                namespace = self._binding_name()
            elif token.is_punct("{"):
                named = self._parse_clause(imports=True)
            else:
                raise self._error(f"Unexpected '{token.value}' in import declaration", token)

        self._expect_name("from")
        source = self._module_specifier()
        self._reject_attributes()
        return ImportDeclaration(
            start=start,
            end=self._finish_statement(),
            source=source,
            default=default,
            namespace=namespace,
            named=named,
        )

    # -- export -------------------------------------------------------------

    def _parse_export(self, syntax: ModuleSyntax) -> None:
        export = self._advance()
        token = self._expect_token("export declaration")

        if token.is_punct("*"):
            self._index += 1
            namespace = None
            if self._peek_name("as"):
                self._index += 1
                namespace = self._export_name()
            self._expect_name("from")
            source = self._module_specifier()
            self._reject_attributes()
            syntax.imports.append(
                ReExport(
                    start=export.start,
                    end=self._finish_statement(),
                    source=source,
                    star=namespace is None,
                    namespace=namespace,
                )
            )
            return

        if token.is_punct("{"):
            named = self._parse_clause(imports=False)
            if self._peek_name("from"):
                self._index += 1
                source = self._module_specifier()
                self._reject_attributes()
                syntax.imports.append(
                    ReExport(start=export.start, end=self._finish_statement(), source=source, named=named)
                )
            else:
                for binding in named:
                    if not is_identifier(binding.name):
                        raise self._error(f"Cannot export unknown local binding '{binding.name}'", token)
                syntax.local_exports.append(
                    LocalExport(start=export.start, end=self._finish_statement(), named=named)
                )
            return

        if token.is_name("default"):
            self._index += 1
            syntax.keywords.append(self._parse_default(export, token))
            return

        if token.kind == "name" and token.value in DECLARATION_KEYWORDS:
            names = self._declarator_names()
        elif token.is_name("function") or token.is_name("class") or self._is_async_function(self._index):
            name = self._declaration_name(self._index)
            if name is None:
                raise self._error("Exported declaration requires a name", token)
            names = (name,)
        else:
            raise self._error(f"Unexpected '{token.value}' after export", token)
        syntax.keywords.append(ExportKeyword(start=export.start, end=token.start, names=names))

    def _parse_default(self, export: Token, default: Token) -> ExportKeyword:
        token = self._expect_token("default export")
        if token.is_name("function") or token.is_name("class") or self._is_async_function(self._index):
            name = self._declaration_name(self._index)
            if name is not None:
                return ExportKeyword(start=export.start, end=token.start, default_name=name)
        return ExportKeyword(start=export.start, end=default.end, default_expression=True)

    def _declaration_name(self, index: int) -> str | None:
        """Return the name of the function or class declared at ``index``, if any."""

        if self._is_async_function(index):
            index += 1
        keyword = self._tokens[index]
        index += 1
        following = self._token_at(index)
        if keyword.is_name("function") and following is not None and following.is_punct("*"):
            index += 1
        name = self._token_at(index)
        if name is None or name.kind != "name" or name.value == "extends":
            return None
        return name.value

    def _is_async_function(self, index: int) -> bool:
        token = self._token_at(index)
        following = self._token_at(index + 1)
        return (
            token is not None
            and token.is_name("async")
            and following is not None
            and following.is_name("function")
            and not following.newline_before
        )

    def _declarator_names(self) -> tuple[str, ...]:
        keyword = self._tokens[self._index]
        index = self._index + 1
        names = [self._declarator_name(index, keyword)]
        depth = 0
        previous = self._tokens[index]
        index += 1
        while index < len(self._tokens):
            token = self._tokens[index]
            if token.kind == "punct" and token.value in OPENERS:
                depth += 1
            elif token.kind == "punct" and token.value in (")", "]", "}"):
                if depth == 0:
                    break
                depth -= 1
            elif depth == 0:
                if token.is_punct(";"):
                    break
                if (
                    token.newline_before
                    and not token.is_punct(",")
                    and not (previous.kind == "punct" and previous.value in (",", "="))
                ):
                    break
                if token.is_punct(","):
                    names.append(self._declarator_name(index + 1, keyword))
            previous = token
            index += 1
        return tuple(names)

    def _declarator_name(self, index: int, keyword: Token) -> str:
        token = self._token_at(index)
        if token is None:
            raise self._error(f"Expected a binding after '{keyword.value}'", keyword)
        if token.kind == "punct" and token.value in ("{", "["):
            raise self._error("Destructuring export declarations are not supported", token)
        if token.kind != "name":
            raise self._error(f"Unexpected '{token.value}' in export declaration", token)
        return token.value

    # -- clauses ------------------------------------------------------------

    def _parse_clause(self, *, imports: bool) -> tuple[Binding, ...]:
        self._index += 1
        bindings: list[Binding] = []
        while True:
            token = self._expect_token("'}'")
            if token.is_punct("}"):
                self._index += 1
                return tuple(bindings)
            name = self._export_name()
            alias = name
            if self._peek_name("as"):
                self._index += 1
                alias = self._binding_name() if imports else self._export_name()
            elif imports and (name == "default" or not is_identifier(name)):
                raise self._error(f"Import of '{name}' requires an alias", token)
            bindings.append(Binding(name, alias))
            if not self._accept_punct(","):
                closing = self._expect_token("'}'")
                if not closing.is_punct("}"):
                    raise self._error(f"Unexpected '{closing.value}' in module clause", closing)

    # -- token helpers ------------------------------------------------------

    def _module_specifier(self) -> str:
        token = self._expect_token("module specifier")
        if token.kind != "string":
            raise self._error("Module specifier must be a string literal", token)
        self._index += 1
        return self._string(token)

    def _reject_attributes(self) -> None:
        token = self._token_at(self._index)
        if token is not None and not token.newline_before and (token.is_name("with") or token.is_name("assert")):
            raise self._error("Import attributes are not supported", token)

    def _finish_statement(self) -> int:
        end = self._tokens[self._index - 1].end
        token = self._token_at(self._index)
        if token is not None and token.is_punct(";"):
            self._index += 1
            return token.end
        if token is not None and not token.newline_before and not token.is_punct("}"):
            raise self._error(f"Unexpected '{token.value}' after module declaration", token)
        return end

    def _binding_name(self) -> str:
        token = self._expect_token("binding name")
        if token.kind != "name":
            raise self._error(f"Expected a binding name, found '{token.value}'", token)
        self._index += 1
        return token.value

    def _export_name(self) -> str:
        token = self._expect_token("export name")
        if token.kind == "string":
            self._index += 1
            return self._string(token)
        if token.kind != "name":
            raise self._error(f"Expected a name, found '{token.value}'", token)
        self._index += 1
        return token.value

    def _expect_name(self, value: str) -> None:
        token = self._expect_token(f"'{value}'")
        if not token.is_name(value):
            raise self._error(f"Expected '{value}', found '{token.value}'", token)
        self._index += 1

    def _expect_token(self, expected: str) -> Token:
        token = self._token_at(self._index)
        if token is None:
            last = self._tokens[-1]
            raise self._error(f"Unexpected end of input, expected {expected}", last)
        return token

    def _accept_punct(self, value: str) -> bool:
        token = self._token_at(self._index)
        if token is not None and token.is_punct(value):
            self._index += 1
            return True
        return False

    def _peek_name(self, value: str) -> bool:
        token = self._token_at(self._index)
        return token is not None and token.is_name(value)

    def _peek(self, ahead: int) -> Token | None:
        return self._token_at(self._index + ahead)

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _token_at(self, index: int) -> Token | None:
        if 0 <= index < len(self._tokens):
            return self._tokens[index]
        return None

    def _string(self, token: Token) -> str:
        try:
            return string_value(token.value)
        except ParseError as exc:
            raise self._error(exc.diagnostic, token) from exc

    def _error(self, message: str, token: Token) -> ParseError:
        return ParseError(message, line=token.line, column=token.column)


def parse_module(source: str) -> ModuleSyntax:
    """Scan ``source`` and return its top-level module declarations."""

    return _Parser(source).parse()


def is_identifier(name: str) -> bool:
    return bool(name) and (name[0].isalpha() or name[0] in "_$") and all(
        char.isalnum() or char in "_$" for char in name
    )


__all__ = [
    "Binding",
    "ExportKeyword",
    "ImportDeclaration",
    "LocalExport",
    "ModuleSyntax",
    "ReExport",
    "is_identifier",
    "parse_module",
]
