"""ES module parsing and transformation to the require/module/exports idiom."""

from __future__ import annotations

from .lexer import ParseError, Token, tokenize
from .syntax import ModuleSyntax, parse_module
from .transformer import EsmTransformer, SourceTransformer

__all__ = [
    "EsmTransformer",
    "ModuleSyntax",
    "ParseError",
    "SourceTransformer",
    "Token",
    "parse_module",
    "tokenize",
]
