"""QBasic / QB64 to JavaScript transpiler."""

from __future__ import annotations

from .backend.javascript import TARGET_NODE, TARGET_WEB, TARGETS
from .cache import CompilationCache, LRUCache
from .compiler import (
    CompilationResult,
    Compiler,
    CompilerOptions,
    compile,
    lint,
)
from .diagnostics import Diagnostic, DiagnosticCollector
from .frontend.parse import ParseError, ParseResult, parse
from .frontend.tokens import Token, TokenArena, tokenize

__version__ = "1.0.3"


def transpile(source: str, target: str = TARGET_NODE) -> str:
    """Generated JavaScript for source, ignoring diagnostics."""
    return compile(source, target).code


__all__ = [
    "TARGET_NODE",
    "TARGET_WEB",
    "TARGETS",
    "CompilationCache",
    "CompilationResult",
    "Compiler",
    "CompilerOptions",
    "Diagnostic",
    "DiagnosticCollector",
    "LRUCache",
    "ParseError",
    "ParseResult",
    "Token",
    "TokenArena",
    "compile",
    "lint",
    "parse",
    "tokenize",
    "transpile",
]
