"""QBasic tokenizer: lexes source into a flat, newline-aware token list."""

from __future__ import annotations

from .keywords import KEYWORDS
from ..diagnostics import CAT_SYNTAX, DiagnosticCollector

# Token kind constants
TK_KEYWORD = "KEYWORD"
TK_IDENT = "IDENTIFIER"
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_OP = "OPERATOR"
TK_PUNCT = "PUNCTUATION"
TK_NEWLINE = "NEWLINE"
TK_EOF = "EOF"

PUNCTUATION: str = "(),;:#."
OPERATORS: str = "+-*/^=<>\\"
NUMBER_SUFFIXES: str = "#!&%"
IDENT_SUFFIXES: str = "$%&!#"

# Look-alike characters pasted from word processors
NORMALIZE: dict[str, str] = {
    "\uFF04": "$",
    "\uFE69": "$",
    "\u201C": '"',
    "\u201D": '"',
    "\u201E": '"',
    "\u201F": '"',
    "\u2018": "'",
    "\u2019": "'",
    "\u201A": "'",
    "\u201B": "'",
}

_NORMALIZE_TABLE = str.maketrans(NORMALIZE)


class Token:
    """A token with kind, text, and 1-based position."""

    __slots__ = ("kind", "text", "line", "column")

    def __init__(self, kind: str, text: str, line: int, column: int):
        self.kind: str = kind
        self.text: str = text
        self.line: int = line
        self.column: int = column

    def __repr__(self) -> str:
        return (
            "Token("
            + self.kind
            + ", "
            + repr(self.text)
            + ", "
            + str(self.line)
            + ", "
            + str(self.column)
            + ")"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return (
            self.kind == other.kind
            and self.text == other.text
            and self.line == other.line
            and self.column == other.column
        )

    __hash__ = None  # type: ignore[assignment]


class TokenArena:
    """Slab of Token objects reused across compilations.

    Tokens handed out by alloc() stay valid until the next reset(); the
    slab keeps the objects and overwrites them on the following run.
    """

    def __init__(self) -> None:
        self.slab: list[Token] = []
        self.used: int = 0

    def alloc(self, kind: str, text: str, line: int, column: int) -> Token:
        if self.used < len(self.slab):
            tok = self.slab[self.used]
            tok.kind = kind
            tok.text = text
            tok.line = line
            tok.column = column
        else:
            tok = Token(kind, text, line, column)
            self.slab.append(tok)
        self.used += 1
        return tok

    def get(self, index: int) -> Token:
        if index >= self.used:
            raise IndexError("token index out of range: " + str(index))
        return self.slab[index]

    def tokens(self) -> list[Token]:
        return self.slab[: self.used]

    def reset(self) -> None:
        self.used = 0

    def capacity(self) -> int:
        return len(self.slab)

    def __len__(self) -> int:
        return self.used


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_hex(c: str) -> bool:
    return (c >= "0" and c <= "9") or (c >= "a" and c <= "f") or (c >= "A" and c <= "F")


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


class Lexer:
    """Single-pass scanner; never raises on malformed input."""

    def __init__(
        self,
        source: str,
        collector: DiagnosticCollector | None = None,
        arena: TokenArena | None = None,
    ):
        self.src: str = source.translate(_NORMALIZE_TABLE)
        self.pos: int = 0
        self.line: int = 1
        self.col: int = 1
        self.collector: DiagnosticCollector | None = collector
        self.arena: TokenArena | None = arena
        self.tokens: list[Token] = []

    def emit(self, kind: str, text: str, line: int, col: int) -> None:
        if self.arena is not None:
            self.tokens.append(self.arena.alloc(kind, text, line, col))
        else:
            self.tokens.append(Token(kind, text, line, col))

    def peek(self, offset: int) -> str:
        p = self.pos + offset
        if p < len(self.src):
            return self.src[p]
        return ""

    def tokenize(self) -> list[Token]:
        src = self.src
        n = len(src)
        while self.pos < n:
            c = src[self.pos]
            if c == "\n":
                self.emit(TK_NEWLINE, "\n", self.line, self.col)
                self.pos += 1
                self.line += 1
                self.col = 1
            elif c == " " or c == "\t" or c == "\r":
                self.pos += 1
                self.col += 1
            elif c == "'" or ((c == "R" or c == "r") and self._at_rem()):
                self._skip_comment()
            elif _is_digit(c) or (c == "." and _is_digit(self.peek(1))):
                self._scan_number()
            elif c == "&" and (self.peek(1) == "H" or self.peek(1) == "h"):
                self._scan_hex()
            elif c == '"':
                self._scan_string()
            elif _is_alpha(c):
                self._scan_word()
            elif c == "?":
                self.emit(TK_KEYWORD, "PRINT", self.line, self.col)
                self.pos += 1
                self.col += 1
            elif c in PUNCTUATION:
                self.emit(TK_PUNCT, c, self.line, self.col)
                self.pos += 1
                self.col += 1
            elif c in OPERATORS:
                self._scan_operator()
            else:
                self.pos += 1
                self.col += 1
        self.emit(TK_EOF, "", self.line, self.col)
        return self.tokens

    def _at_rem(self) -> bool:
        if self.src[self.pos : self.pos + 3].upper() != "REM":
            return False
        after = self.peek(3)
        return after == "" or after == " " or after == "\t" or after == "\n" or after == "\r"

    def _skip_comment(self) -> None:
        end = self.src.find("\n", self.pos)
        if end < 0:
            end = len(self.src)
        self.col += end - self.pos
        self.pos = end

    def _scan_number(self) -> None:
        start = self.pos
        seen_dot = False
        while self.pos < len(self.src):
            c = self.src[self.pos]
            if _is_digit(c):
                self.pos += 1
            elif c == "." and not seen_dot:
                seen_dot = True
                self.pos += 1
            else:
                break
        if self.peek(0) != "" and self.peek(0) in NUMBER_SUFFIXES:
            self.pos += 1
        self.emit(TK_NUMBER, self.src[start : self.pos], self.line, self.col)
        self.col += self.pos - start

    def _scan_hex(self) -> None:
        start = self.pos
        self.pos += 2
        digits_start = self.pos
        while self.pos < len(self.src) and _is_hex(self.src[self.pos]):
            self.pos += 1
        digits = self.src[digits_start : self.pos]
        value = int(digits, 16) if digits else 0
        self.emit(TK_NUMBER, str(value), self.line, self.col)
        self.col += self.pos - start

    def _scan_string(self) -> None:
        start = self.pos
        self.pos += 1
        end = self.pos
        while end < len(self.src) and self.src[end] != '"' and self.src[end] != "\n":
            end += 1
        value = self.src[self.pos : end]
        if end < len(self.src) and self.src[end] == '"':
            self.pos = end + 1
        else:
            self.pos = end
            if self.collector is not None:
                self.collector.warning(
                    CAT_SYNTAX,
                    "Unterminated string literal",
                    self.line,
                    self.col,
                    end - start,
                )
        self.emit(TK_STRING, value, self.line, self.col)
        self.col += self.pos - start

    def _scan_word(self) -> None:
        start = self.pos
        while self.pos < len(self.src) and _is_alnum(self.src[self.pos]):
            self.pos += 1
        if self.peek(0) != "" and self.peek(0) in IDENT_SUFFIXES:
            self.pos += 1
        word = self.src[start : self.pos]
        upper = word.upper()
        if upper in KEYWORDS:
            self.emit(TK_KEYWORD, upper, self.line, self.col)
        else:
            self.emit(TK_IDENT, word, self.line, self.col)
        self.col += self.pos - start

    def _scan_operator(self) -> None:
        c = self.src[self.pos]
        nxt = self.peek(1)
        if (c == "<" or c == ">") and nxt == "=":
            op = c + "="
        elif c == "<" and nxt == ">":
            op = "<>"
        else:
            op = c
        self.emit(TK_OP, op, self.line, self.col)
        self.pos += len(op)
        self.col += len(op)


def tokenize(
    source: str,
    collector: DiagnosticCollector | None = None,
    arena: TokenArena | None = None,
) -> list[Token]:
    """Tokenize QBasic source; the list always ends with an EOF token."""
    return Lexer(source, collector, arena).tokenize()
