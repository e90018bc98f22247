"""QBasic parser: recursive descent that emits JavaScript as it goes.

There is no syntax tree. Each statement method validates its tokens and
appends lines to a CodeBuffer; expression methods return JavaScript
source text. A pre-pass over the whole token list collects DATA values
and procedure names first, because QBasic allows READ before DATA and
calls before the called procedure is defined.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..backend.javascript import TARGET_NODE, JsTarget
from ..backend.util import CodeBuffer, is_string_name, mangle, string_literal
from ..diagnostics import (
    CAT_REFERENCE,
    CAT_SEMANTIC,
    CAT_SYNTAX,
    CAT_TYPE,
    Diagnostic,
    DiagnosticCollector,
    skip_to_statement_end,
    suggest,
)
from .keywords import VOCABULARY, Builtin, lookup_builtin
from .scope import SCOPE_FUNCTION, SCOPE_SUB, ScopeStack, Variable
from .tokens import (
    NUMBER_SUFFIXES,
    TK_EOF,
    TK_IDENT,
    TK_KEYWORD,
    TK_NEWLINE,
    TK_NUMBER,
    TK_OP,
    TK_PUNCT,
    TK_STRING,
    Token,
)

RELATIONAL: dict[str, str] = {
    "=": "===",
    "<>": "!==",
    "<": "<",
    ">": ">",
    "<=": "<=",
    ">=": ">=",
}

# Block kinds
BK_IF = "IF"
BK_FOR = "FOR"
BK_DO = "DO"
BK_WHILE = "WHILE"
BK_SELECT = "SELECT"
BK_SUB = "SUB"
BK_FUNCTION = "FUNCTION"

UNCLOSED: dict[str, str] = {
    BK_IF: "Block IF without END IF",
    BK_FOR: "FOR without NEXT",
    BK_DO: "DO without LOOP",
    BK_WHILE: "WHILE without WEND",
    BK_SELECT: "SELECT CASE without END SELECT",
    BK_SUB: "SUB without END SUB",
    BK_FUNCTION: "FUNCTION without END FUNCTION",
}

STRAY: dict[str, str] = {
    BK_IF: "END IF without block IF",
    BK_FOR: "NEXT without FOR",
    BK_DO: "LOOP without DO",
    BK_WHILE: "WEND without WHILE",
    BK_SELECT: "END SELECT without SELECT CASE",
    BK_SUB: "END SUB without SUB",
    BK_FUNCTION: "END FUNCTION without FUNCTION",
}

# Statements accepted and dropped without output
IGNORED_STATEMENTS: frozenset[str] = frozenset(
    {
        "DECLARE",
        "DEFINT",
        "DEFLNG",
        "DEFSNG",
        "DEFDBL",
        "DEFSTR",
        "OPTION",
        "_EXPLICIT",
    }
)

# Real QBasic statements with no JavaScript rendition
UNSUPPORTED_STATEMENTS: frozenset[str] = frozenset(
    {
        "LPRINT",
        "VIEW",
        "WAIT",
        "OUT",
        "POKE",
        "PAINT",
        "DRAW",
        "PALETTE",
        "PCOPY",
        "BLOAD",
        "BSAVE",
        "WINDOW",
        "LOCK",
        "UNLOCK",
        "NAME",
        "KILL",
        "MKDIR",
        "RMDIR",
        "CHDIR",
        "FILES",
        "FIELD",
        "RESET",
        "SEEK",
        "CHAIN",
        "RUN",
        "LSET",
        "RSET",
        "MID$",
        "_FULLSCREEN",
        "_DEST",
        "_SOURCE",
        "_AUTODISPLAY",
        "_SCREENMOVE",
        "_FONT",
        "_CLEARCOLOR",
        "_SETALPHA",
        "_MOUSEMOVE",
        "_SNDSTOP",
        "_SNDVOL",
        "_SNDPAUSE",
        "_SNDSETPOS",
        "_CONSOLE",
        "_CONSOLETITLE",
        "_SHELL",
        "_RESIZE",
    }
)

FILE_MODES: frozenset[str] = frozenset({"INPUT", "OUTPUT", "APPEND", "BINARY", "RANDOM"})

ON_EVENTS: frozenset[str] = frozenset({"TIMER", "KEY", "STRIG", "PEN", "PLAY", "COM"})


class ParseError(Exception):
    """Parse error with location info."""

    def __init__(
        self,
        msg: str,
        line: int,
        col: int,
        category: str = CAT_SYNTAX,
        suggestions: list[str] | None = None,
    ):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        self.category: str = category
        self.suggestions: list[str] = suggestions or []
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


@dataclass
class ParseResult:
    code: str
    diagnostics: list[Diagnostic]


@dataclass
class Procedure:
    name: str
    js_name: str
    kind: str
    param_count: int


@dataclass
class Param:
    name: str
    js_name: str
    is_array: bool
    is_string: bool
    type_name: str | None


@dataclass
class LValue:
    """Assignable target; `fresh` is set for a plain name not yet declared."""

    code: str
    is_string: bool
    fresh: Token | None = None


@dataclass
class TypeSpec:
    is_string: bool = False
    type_name: str | None = None


class Block:
    """An open control-flow block awaiting its closing statement."""

    def __init__(self, kind: str, tok: Token):
        self.kind: str = kind
        self.line: int = tok.line
        self.col: int = tok.column
        self.var: str = ""
        self.post_test: bool = False
        self.temp: str = ""
        self.cases: int = 0
        self.has_else: bool = False
        self.result: str = ""


def js_number(text: str) -> str:
    """Numeric literal text without its type suffix, valid in strict-mode JavaScript."""
    if text and text[-1] in NUMBER_SUFFIXES:
        text = text[:-1]
    if "." in text:
        value = float(text)
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(int(text))


def js_ident(name: str) -> str:
    """JavaScript identifier for a QBasic name, including legacy dotted names."""
    return mangle(name.replace(".", "_"))


def _describe(tok: Token) -> str:
    if tok.kind == TK_EOF:
        return "end of input"
    if tok.kind == TK_NEWLINE:
        return "end of line"
    if tok.kind == TK_STRING:
        return '"' + tok.text + '"'
    return "'" + tok.text + "'"


def _data_literal(items: list[Token]) -> str:
    if not items:
        return '""'
    if len(items) == 1 and items[0].kind == TK_STRING:
        return string_literal(items[0].text)
    if len(items) == 1 and items[0].kind == TK_NUMBER:
        return js_number(items[0].text)
    if (
        len(items) == 2
        and items[0].kind == TK_OP
        and items[0].text in ("-", "+")
        and items[1].kind == TK_NUMBER
    ):
        sign = "-" if items[0].text == "-" else ""
        return sign + js_number(items[1].text)
    return string_literal(" ".join(t.text for t in items))


class Parser:
    """Recursive descent parser and JavaScript emitter for QBasic."""

    def __init__(
        self,
        tokens: list[Token],
        target: str = TARGET_NODE,
        collector: DiagnosticCollector | None = None,
    ):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.runtime: JsTarget = JsTarget(target)
        self.collector: DiagnosticCollector = (
            collector if collector is not None else DiagnosticCollector()
        )
        self.buf: CodeBuffer = CodeBuffer()
        self.scopes: ScopeStack = ScopeStack()
        self.blocks: list[Block] = []
        self.inline_floors: list[int] = []
        self.data_values: list[str] = []
        self.procedures: dict[str, Procedure] = {}
        self.def_fns: dict[str, str] = {}
        self.types: dict[str, str] = {}
        self.type_fields: dict[str, dict[str, TypeSpec]] = {}
        self.temp_counter: int = 0
        self.last_error_line: int = 0
        self.handlers = {
            # I/O
            "PRINT": self.parse_print,
            "WRITE": self.parse_write,
            "INPUT": self.parse_input,
            "LINE": self.parse_line,
            "CLS": self.parse_cls,
            "LOCATE": self.parse_locate,
            "COLOR": self.parse_color,
            "SCREEN": self.parse_screen,
            "WIDTH": self.parse_width,
            "BEEP": self.parse_beep,
            "SOUND": self.parse_sound,
            "PLAY": self.parse_play,
            "SLEEP": self.parse_sleep,
            "_DELAY": self.parse_delay,
            "_LIMIT": self.parse_limit,
            "_DISPLAY": self.parse_display,
            "_TITLE": self.parse_title,
            # Control flow
            "IF": self.parse_if,
            "ELSEIF": self.parse_elseif,
            "ELSE": self.parse_else,
            "END": self.parse_end,
            "FOR": self.parse_for,
            "NEXT": self.parse_next,
            "DO": self.parse_do,
            "LOOP": self.parse_loop,
            "WHILE": self.parse_while,
            "WEND": self.parse_wend,
            "SELECT": self.parse_select,
            "CASE": self.parse_case,
            "EXIT": self.parse_exit,
            "CONTINUE": self.parse_continue,
            "_CONTINUE": self.parse_continue,
            "STOP": self.parse_stop,
            "SYSTEM": self.parse_system,
            # Declarations and data
            "DIM": self.parse_dim,
            "REDIM": self.parse_redim,
            "STATIC": self.parse_dim,
            "COMMON": self.parse_common,
            "CONST": self.parse_const,
            "TYPE": self.parse_type,
            "DATA": self.parse_data,
            "READ": self.parse_read,
            "RESTORE": self.parse_restore,
            "SWAP": self.parse_swap,
            "ERASE": self.parse_erase,
            "LET": self.parse_let,
            "DEF": self.parse_def_fn,
            "RANDOMIZE": self.parse_randomize,
            # Procedures and branching
            "SUB": self.parse_sub,
            "FUNCTION": self.parse_function,
            "CALL": self.parse_call,
            "GOTO": self.parse_goto,
            "GOSUB": self.parse_gosub,
            "RETURN": self.parse_return,
            "ON": self.parse_on,
            "RESUME": self.parse_resume,
            "ERROR": self.parse_error_stmt,
            # Graphics, sound and devices
            "PSET": self.parse_pset,
            "PRESET": self.parse_preset,
            "CIRCLE": self.parse_circle,
            "GET": self.parse_get,
            "PUT": self.parse_put,
            "_PUTIMAGE": self.parse_putimage,
            "_PRINTSTRING": self.parse_printstring,
            "_FREEIMAGE": self.parse_freeimage,
            "_MOUSEHIDE": self.parse_mousehide,
            "_MOUSESHOW": self.parse_mouseshow,
            "_KEYCLEAR": self.parse_keyclear,
            "_SNDPLAY": self.parse_sndplay,
            "_SNDLOOP": self.parse_sndloop,
            "_SNDCLOSE": self.parse_sndclose,
            # Files
            "OPEN": self.parse_open,
            "CLOSE": self.parse_close,
        }

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[len(self.tokens) - 1]
        return self.tokens[idx]

    def previous(self) -> Token | None:
        if self.pos == 0:
            return None
        return self.tokens[self.pos - 1]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.kind != TK_EOF:
            self.pos += 1
        return tok

    def at_end(self) -> bool:
        return self.current().kind == TK_EOF

    def at_type(self, kind: str) -> bool:
        return self.current().kind == kind

    def at_kw(self, kw: str) -> bool:
        tok = self.current()
        return tok.kind == TK_KEYWORD and tok.text == kw

    def at_op(self, op: str) -> bool:
        tok = self.current()
        return tok.kind == TK_OP and tok.text == op

    def at_punct(self, p: str) -> bool:
        tok = self.current()
        return tok.kind == TK_PUNCT and tok.text == p

    def at_word(self, word: str) -> bool:
        tok = self.current()
        return (tok.kind == TK_IDENT or tok.kind == TK_KEYWORD) and tok.text.upper() == word

    def match_kw(self, kw: str) -> bool:
        if self.at_kw(kw):
            self.advance()
            return True
        return False

    def match_op(self, op: str) -> bool:
        if self.at_op(op):
            self.advance()
            return True
        return False

    def match_punct(self, p: str) -> bool:
        if self.at_punct(p):
            self.advance()
            return True
        return False

    def at_line_end(self) -> bool:
        kind = self.current().kind
        return kind == TK_NEWLINE or kind == TK_EOF

    def at_line_start(self) -> bool:
        prev = self.previous()
        return prev is None or prev.kind == TK_NEWLINE

    def at_stmt_end(self) -> bool:
        return self.at_line_end() or self.at_punct(":") or self.at_kw("ELSE")

    def expect_kw(self, kw: str) -> Token:
        if not self.at_kw(kw):
            raise self.error("Expected " + kw + ", found " + _describe(self.current()))
        return self.advance()

    def expect_op(self, op: str) -> Token:
        if not self.at_op(op):
            raise self.error("Expected '" + op + "', found " + _describe(self.current()))
        return self.advance()

    def expect_punct(self, p: str) -> Token:
        if not self.at_punct(p):
            raise self.error("Expected '" + p + "', found " + _describe(self.current()))
        return self.advance()

    def expect_ident(self, what: str) -> Token:
        tok = self.current()
        if tok.kind != TK_IDENT:
            if tok.kind == TK_KEYWORD:
                raise ParseError(
                    "Reserved word '" + tok.text + "' cannot be used as " + what,
                    tok.line,
                    tok.column,
                    CAT_SEMANTIC,
                )
            raise self.error("Expected " + what + ", found " + _describe(tok))
        return self.advance()

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.line, tok.column)

    def report(
        self,
        category: str,
        msg: str,
        line: int,
        col: int,
        suggestions: list[str] | None = None,
    ) -> None:
        diag = self.collector.error(category, msg, line, col)
        for s in suggestions or []:
            diag.add_suggestion(s)

    def report_at(self, category: str, msg: str, tok: Token) -> None:
        self.report(category, msg, tok.line, tok.column)

    def warn(self, category: str, msg: str, tok: Token) -> None:
        self.collector.warning(category, msg, tok.line, tok.column)

    def record(self, err: ParseError) -> None:
        # one syntax error per line; the rest are usually fallout
        if err.line == self.last_error_line:
            return
        self.last_error_line = err.line
        self.report(err.category, err.msg, err.line, err.col, err.suggestions)

    def sync(self) -> None:
        """Resume at the next line or the next keyword."""
        self.advance()
        while not self.at_end():
            prev = self.previous()
            if prev is not None and prev.kind == TK_NEWLINE:
                return
            if self.current().kind == TK_KEYWORD:
                return
            self.advance()

    def skip_to_statement_end(self) -> None:
        skip_to_statement_end(self)

    def next_temp(self, prefix: str) -> str:
        self.temp_counter += 1
        return prefix + str(self.temp_counter)

    # ── Pre-pass ─────────────────────────────────────────────

    def collect_forward_refs(self) -> None:
        """Collect DATA values and SUB/FUNCTION signatures from the whole file."""
        toks = self.tokens
        i = 0
        while i < len(toks):
            tok = toks[i]
            if tok.kind == TK_KEYWORD and tok.text == "DATA":
                i = self._collect_data(i + 1)
                continue
            if tok.kind == TK_KEYWORD and (tok.text == "SUB" or tok.text == "FUNCTION"):
                prev = toks[i - 1] if i > 0 else None
                if prev is None or not (
                    prev.kind == TK_KEYWORD and prev.text in ("END", "EXIT", "DECLARE")
                ):
                    self._collect_procedure(tok, i + 1)
            i += 1

    def _collect_data(self, i: int) -> int:
        toks = self.tokens
        item: list[Token] = []
        while i < len(toks):
            tok = toks[i]
            if tok.kind == TK_NEWLINE or tok.kind == TK_EOF:
                break
            if tok.kind == TK_PUNCT and tok.text == ":":
                break
            if tok.kind == TK_PUNCT and tok.text == ",":
                self.data_values.append(_data_literal(item))
                item = []
            else:
                item.append(tok)
            i += 1
        self.data_values.append(_data_literal(item))
        return i

    def _collect_procedure(self, kw: Token, i: int) -> None:
        toks = self.tokens
        if i >= len(toks) or toks[i].kind != TK_IDENT:
            return
        name_tok = toks[i]
        count = 0
        j = i + 1
        if j < len(toks) and toks[j].kind == TK_PUNCT and toks[j].text == "(":
            depth = 0
            seen_param = False
            while j < len(toks) and toks[j].kind != TK_NEWLINE and toks[j].kind != TK_EOF:
                t = toks[j]
                if t.kind == TK_PUNCT and t.text == "(":
                    depth += 1
                elif t.kind == TK_PUNCT and t.text == ")":
                    depth -= 1
                    if depth == 0:
                        break
                elif depth == 1 and t.kind == TK_PUNCT and t.text == ",":
                    count += 1
                elif depth == 1:
                    seen_param = True
                j += 1
            if seen_param:
                count += 1
        key = name_tok.text.upper()
        if key in self.procedures:
            self.report(
                CAT_SEMANTIC,
                "Duplicate definition '" + name_tok.text + "'",
                name_tok.line,
                name_tok.column,
            )
            return
        self.procedures[key] = Procedure(name_tok.text, mangle(name_tok.text), kw.text, count)

    # ── Top Level ────────────────────────────────────────────

    def parse(self) -> str:
        self.collect_forward_refs()
        self.runtime.emit_preamble(self.buf, self.data_values)
        self.buf.indent = 1
        self.scopes = ScopeStack(self.buf.mark(), self.buf.indent)
        while not self.at_end():
            if self.at_type(TK_NEWLINE) or self.at_punct(":"):
                self.advance()
                continue
            try:
                if self.parse_statement():
                    self.end_statement()
            except ParseError as e:
                self.record(e)
                self.sync()
        self.close_all_blocks()
        root = self.scopes.root
        if root.hoisted:
            self.buf.insert(root.mark, root.hoisted, root.indent)
        self.buf.indent = 0
        self.runtime.emit_postamble(self.buf)
        return self.buf.output()

    def parse_statement(self) -> bool:
        """Parse one statement. Returns False when no terminator is required."""
        tok = self.current()
        if tok.kind == TK_KEYWORD:
            handler = self.handlers.get(tok.text)
            if handler is not None:
                self.advance()
                return handler(tok) is not False
            return self.parse_other_keyword(tok)
        if tok.kind == TK_IDENT:
            return self.parse_identifier_statement(tok)
        if tok.kind == TK_NUMBER and self.at_line_start():
            self.advance()
            self.buf.line("// Line " + tok.text)
            return False
        raise self.error("Unexpected " + _describe(tok))

    def end_statement(self) -> None:
        tok = self.current()
        if tok.kind == TK_NEWLINE or tok.kind == TK_EOF:
            return
        if tok.kind == TK_PUNCT and tok.text == ":":
            return
        if self.inline_floors and tok.kind == TK_KEYWORD and tok.text == "ELSE":
            return
        raise self.error("Expected end of statement, found " + _describe(tok))

    def parse_other_keyword(self, tok: Token) -> bool:
        if tok.text in IGNORED_STATEMENTS:
            self.advance()
            self.skip_to_statement_end()
            return True
        if tok.text in UNSUPPORTED_STATEMENTS:
            self.advance()
            self.skip_to_statement_end()
            self.warn(
                CAT_SEMANTIC,
                tok.text + " is not supported by the JavaScript transpiler; statement ignored",
                tok,
            )
            self.buf.line("// " + tok.text + " (unsupported)")
            return True
        nxt = self.peek(1)
        if nxt.kind == TK_OP and nxt.text == "=":
            raise ParseError(
                "Reserved word '" + tok.text + "' cannot be used as a variable",
                tok.line,
                tok.column,
                CAT_SEMANTIC,
            )
        raise self.error("Unexpected keyword '" + tok.text + "'")

    def parse_identifier_statement(self, tok: Token) -> bool:
        nxt = self.peek(1)
        if nxt.kind == TK_PUNCT and nxt.text == ":" and self.at_line_start():
            self.advance()
            self.advance()
            self.buf.line("// Label: " + tok.text)
            return False
        proc = self.procedures.get(tok.text.upper())
        if proc is not None and proc.kind == BK_SUB:
            self.advance()
            args = self.parse_bare_args()
            self.emit_call(proc, args, tok)
            return True
        if (nxt.kind == TK_OP and nxt.text == "=") or (
            nxt.kind == TK_PUNCT and (nxt.text == "(" or nxt.text == ".")
        ):
            self.parse_assignment()
            return True
        vocab = VOCABULARY + [p.name for p in self.procedures.values()]
        raise ParseError(
            "Unknown statement '" + tok.text + "'",
            tok.line,
            tok.column,
            CAT_REFERENCE,
            suggest(tok.text, vocab),
        )

    # ── Blocks ───────────────────────────────────────────────

    def block_floor(self) -> int:
        floor = self.scopes.current.base_depth
        if self.inline_floors and self.inline_floors[-1] > floor:
            floor = self.inline_floors[-1]
        return floor

    def top_block(self) -> Block | None:
        if len(self.blocks) > self.block_floor():
            return self.blocks[-1]
        return None

    def open_block(self, kind: str, tok: Token) -> Block:
        block = Block(kind, tok)
        self.blocks.append(block)
        return block

    def at_scope_base(self) -> bool:
        return not self.inline_floors and len(self.blocks) == self.scopes.current.base_depth

    def close_block(self, kind: str, closer: Token) -> Block | None:
        """Pop the innermost open `kind` block, reporting blocks left open inside it."""
        floor = self.block_floor()
        if kind == BK_SUB or kind == BK_FUNCTION:
            floor = max(0, self.scopes.current.base_depth - 1)
        idx = len(self.blocks) - 1
        while idx >= floor and self.blocks[idx].kind != kind:
            idx -= 1
        if idx < floor:
            self.report_at(CAT_SYNTAX, STRAY[kind], closer)
            return None
        while len(self.blocks) - 1 > idx:
            inner = self.blocks[-1]
            self.report(CAT_SYNTAX, UNCLOSED[inner.kind], inner.line, inner.col)
            self.emit_close(inner)
        return self.blocks.pop()

    def emit_close(self, block: Block) -> None:
        """Close an open block implicitly (no closing statement was seen)."""
        self.blocks.pop()
        if block.kind == BK_SUB or block.kind == BK_FUNCTION:
            self.finish_procedure(block)
            return
        if block.kind == BK_SELECT and block.cases > 0:
            self.buf.dedent()
            self.buf.line("}")
        self.buf.dedent()
        if block.kind == BK_DO and block.post_test:
            self.buf.line("} while (true);")
        else:
            self.buf.line("}")

    def close_all_blocks(self) -> None:
        while self.blocks:
            block = self.blocks[-1]
            self.report(CAT_SYNTAX, UNCLOSED[block.kind], block.line, block.col)
            self.emit_close(block)

    # ── I/O Statements ───────────────────────────────────────

    def parse_print_items(self) -> tuple[list[str], bool]:
        """Items = ( Expr | ';' | ',' )* ; returns (parts, newline)."""
        parts: list[str] = []
        newline = True
        while not self.at_stmt_end():
            if self.match_punct(";"):
                newline = False
                continue
            if self.match_punct(","):
                parts.append(string_literal("\t"))
                newline = False
                continue
            parts.append(self.parse_expr())
            newline = True
        return parts, newline

    def join_parts(self, parts: list[str]) -> str:
        if not parts:
            return '""'
        if len(parts) == 1:
            return parts[0]
        return "[" + ", ".join(parts) + '].join("")'

    def parse_file_number(self) -> str:
        """FileNum = '#' Expr ','"""
        num = self.parse_expr()
        self.match_punct(",")
        return num

    def parse_print(self, kw: Token) -> None:
        """Print = PRINT [ '#' Expr ',' ] [ USING Expr ';' ] Items"""
        file_num = None
        if self.match_punct("#"):
            file_num = self.parse_file_number()
        if self.match_kw("USING"):
            self.parse_expr()
            self.expect_punct(";")
            self.warn(
                CAT_SEMANTIC,
                "PRINT USING formatting is not supported; values are printed unformatted",
                kw,
            )
        parts, newline = self.parse_print_items()
        content = self.join_parts(parts)
        if file_num is not None:
            text = "String(" + content + ")"
            if newline:
                text += ' + "\\n"'
            self.buf.line("await _printFileFunc(" + file_num + ", " + text + ");")
            return
        self.buf.line("_print(" + content + ", " + ("true" if newline else "false") + ");")

    def parse_write(self, kw: Token) -> None:
        file_num = None
        if self.match_punct("#"):
            file_num = self.parse_file_number()
        values: list[str] = []
        while not self.at_stmt_end():
            values.append("_writeValue(" + self.parse_expr() + ")")
            if not (self.match_punct(",") or self.match_punct(";")):
                break
        content = '""'
        if values:
            content = "[" + ", ".join(values) + '].join(",")'
        if file_num is not None:
            self.buf.line("await _printFileFunc(" + file_num + ", " + content + ' + "\\n");')
            return
        self.buf.line("_print(" + content + ", true);")

    def coerce(self, expr: str, lv: LValue) -> str:
        if lv.is_string:
            return "String(" + expr + ")"
        return "(Number(" + expr + ") || 0)"

    def parse_lvalue_list(self) -> list[LValue]:
        targets = [self.parse_lvalue()]
        while self.match_punct(","):
            targets.append(self.parse_lvalue())
        return targets

    def parse_input(self, kw: Token) -> None:
        """Input = INPUT [';'] [ String (';' | ',') ] LValue ( ',' LValue )*"""
        if self.match_punct("#"):
            file_num = self.parse_file_number()
            for lv in self.parse_lvalue_list():
                self.store(lv, self.coerce("await _inputFileFunc(" + file_num + ")", lv))
            return
        self.match_punct(";")
        prompt = ""
        question = True
        if self.at_type(TK_STRING):
            prompt = self.advance().text
            if self.match_punct(","):
                question = False
            elif not self.match_punct(";"):
                raise self.error("Expected ';' or ',' after INPUT prompt")
        if question:
            prompt += "? "
        call = "await _input(" + string_literal(prompt) + ")"
        targets = self.parse_lvalue_list()
        if len(targets) == 1:
            self.store(targets[0], self.coerce(call, targets[0]))
            return
        fields = self.next_temp("_fields_")
        self.buf.line("const " + fields + " = String(" + call + ').split(",");')
        i = 0
        while i < len(targets):
            item = "(" + fields + "[" + str(i) + '] ?? "").trim()'
            self.store(targets[i], self.coerce(item, targets[i]))
            i += 1

    def parse_line(self, kw: Token) -> None:
        if self.match_kw("INPUT"):
            self.parse_line_input()
            return
        self.parse_line_graphics()

    def parse_line_input(self) -> None:
        """LineInput = LINE INPUT [';'] [ String (';' | ',') ] LValue"""
        if self.match_punct("#"):
            file_num = self.parse_file_number()
            lv = self.parse_lvalue()
            self.store(lv, "String(await _inputFileFunc(" + file_num + "))")
            return
        self.match_punct(";")
        prompt = ""
        if self.at_type(TK_STRING):
            prompt = self.advance().text
            if not (self.match_punct(";") or self.match_punct(",")):
                raise self.error("Expected ';' or ',' after LINE INPUT prompt")
        lv = self.parse_lvalue()
        self.store(lv, "String(await _input(" + string_literal(prompt) + "))")

    def parse_optional_args(self) -> list[str]:
        """Comma-separated arguments where any position may be left empty."""
        args: list[str] = []
        if self.at_stmt_end():
            return args
        while True:
            if self.at_punct(",") or self.at_stmt_end():
                args.append("undefined")
            else:
                args.append(self.parse_expr())
            if not self.match_punct(","):
                break
        return args

    def parse_cls(self, kw: Token) -> None:
        if not self.at_stmt_end():
            self.parse_expr()
        self.buf.line("_cls();")

    def parse_locate(self, kw: Token) -> None:
        args = self.parse_optional_args()
        while len(args) < 2:
            args.append("undefined")
        self.buf.line("_locate(" + args[0] + ", " + args[1] + ");")

    def parse_color(self, kw: Token) -> None:
        args = self.parse_optional_args()
        while len(args) < 2:
            args.append("undefined")
        self.buf.line("_color(" + args[0] + ", " + args[1] + ");")

    def parse_screen(self, kw: Token) -> None:
        args = self.parse_optional_args()
        mode = args[0] if args else "0"
        self.buf.line("_screen(" + mode + ");")

    def parse_width(self, kw: Token) -> None:
        args = self.parse_optional_args()
        while len(args) < 2:
            args.append("undefined")
        self.buf.line("_width(" + args[0] + ", " + args[1] + ");")

    def parse_beep(self, kw: Token) -> None:
        self.buf.line("await _beep();")

    def parse_sound(self, kw: Token) -> None:
        freq = self.parse_expr()
        self.expect_punct(",")
        duration = self.parse_expr()
        self.buf.line("await _sound(" + freq + ", " + duration + ");")

    def parse_play(self, kw: Token) -> None:
        self.buf.line("await _play(" + self.parse_expr() + ");")

    def parse_sleep(self, kw: Token) -> None:
        seconds = "1"
        if not self.at_stmt_end():
            seconds = self.parse_expr()
        self.buf.line("await _sleep(" + seconds + " * 1000);")

    def parse_delay(self, kw: Token) -> None:
        self.buf.line("await _sleep(" + self.parse_expr() + " * 1000);")

    def parse_limit(self, kw: Token) -> None:
        self.buf.line("await _limit(" + self.parse_expr() + ");")

    def parse_display(self, kw: Token) -> None:
        self.buf.line("_display();")

    def parse_title(self, kw: Token) -> None:
        self.buf.line("_title(" + self.parse_expr() + ");")

    # ── Control Flow ─────────────────────────────────────────

    def parse_if(self, kw: Token) -> None:
        """If = IF Expr THEN ( NEWLINE | Inline [ ELSE Inline ] | LineNumber )"""
        cond = self.parse_expr()
        if not self.match_kw("THEN") and not self.at_kw("GOTO"):
            self.report_at(CAT_SYNTAX, "Expected THEN", self.current())
        if self.at_line_end():
            self.buf.line("if (" + cond + ") {")
            self.buf.indent += 1
            self.open_block(BK_IF, kw)
            return
        self.buf.line("if (" + cond + ") {")
        self.buf.indent += 1
        floor = len(self.blocks)
        self.inline_floors.append(floor)
        try:
            self.parse_inline_body()
            if self.match_kw("ELSE"):
                self.close_inline_blocks(floor)
                self.buf.dedent()
                self.buf.line("} else {")
                self.buf.indent += 1
                self.parse_inline_body()
        finally:
            self.close_inline_blocks(floor)
            self.inline_floors.pop()
            self.buf.dedent()
            self.buf.line("}")

    def parse_inline_body(self) -> None:
        """Inline = Statement ( ':' Statement )*"""
        if self.at_type(TK_NUMBER):
            self.emit_goto(self.advance())
            return
        while True:
            if self.at_line_end() or self.at_kw("ELSE"):
                return
            if self.match_punct(":"):
                continue
            if self.parse_statement():
                self.end_statement()

    def close_inline_blocks(self, floor: int) -> None:
        while len(self.blocks) > floor:
            block = self.blocks[-1]
            self.report(CAT_SYNTAX, UNCLOSED[block.kind], block.line, block.col)
            self.emit_close(block)

    def parse_elseif(self, kw: Token) -> None:
        block = self.top_block()
        if block is None or block.kind != BK_IF:
            raise ParseError("ELSEIF without block IF", kw.line, kw.column)
        if block.has_else:
            self.report_at(CAT_SYNTAX, "ELSEIF after ELSE", kw)
        cond = self.parse_expr()
        if not self.match_kw("THEN"):
            self.report_at(CAT_SYNTAX, "Expected THEN", self.current())
        self.buf.dedent()
        self.buf.line("} else if (" + cond + ") {")
        self.buf.indent += 1

    def parse_else(self, kw: Token) -> bool:
        block = self.top_block()
        if block is None or block.kind != BK_IF:
            raise ParseError("ELSE without IF", kw.line, kw.column)
        if block.has_else:
            self.report_at(CAT_SYNTAX, "Duplicate ELSE", kw)
        block.has_else = True
        self.buf.dedent()
        self.buf.line("} else {")
        self.buf.indent += 1
        # statements may follow ELSE on the same line
        return False

    def parse_end(self, kw: Token) -> None:
        if self.match_kw("IF"):
            if self.close_block(BK_IF, kw) is not None:
                self.buf.dedent()
                self.buf.line("}")
        elif self.match_kw("SELECT"):
            block = self.close_block(BK_SELECT, kw)
            if block is not None:
                if block.cases > 0:
                    self.buf.dedent()
                    self.buf.line("}")
                self.buf.dedent()
                self.buf.line("}")
        elif self.match_kw("SUB"):
            block = self.close_block(BK_SUB, kw)
            if block is not None:
                self.finish_procedure(block)
        elif self.match_kw("FUNCTION"):
            block = self.close_block(BK_FUNCTION, kw)
            if block is not None:
                self.finish_procedure(block)
        elif self.match_kw("TYPE"):
            raise ParseError("END TYPE without TYPE", kw.line, kw.column)
        elif self.match_kw("DEF"):
            raise ParseError("END DEF without DEF", kw.line, kw.column)
        else:
            if not self.at_stmt_end():
                self.parse_expr()
            self.emit_end_program()

    def emit_end_program(self) -> None:
        if self.scopes.is_global():
            self.buf.line("return;")
        else:
            self.buf.line('throw "END";')

    def parse_stop(self, kw: Token) -> None:
        self.buf.line('throw "STOP";')

    def parse_system(self, kw: Token) -> None:
        if not self.at_stmt_end():
            self.parse_expr()
        self.emit_end_program()

    def parse_for(self, kw: Token) -> None:
        """For = FOR Ident '=' Expr TO Expr [ STEP Expr ]"""
        var_tok = self.expect_ident("loop variable")
        var = self.variable(var_tok)
        self.expect_op("=")
        start = self.parse_expr()
        self.expect_kw("TO")
        end = self.parse_expr()
        step = "1"
        if self.match_kw("STEP"):
            step = self.parse_expr()
        v = var.js_name
        self.buf.line(
            "for ("
            + v
            + " = "
            + start
            + "; ("
            + step
            + " >= 0) ? "
            + v
            + " <= "
            + end
            + " : "
            + v
            + " >= "
            + end
            + "; "
            + v
            + " += "
            + step
            + ") {"
        )
        self.buf.indent += 1
        block = self.open_block(BK_FOR, kw)
        block.var = v

    def parse_next(self, kw: Token) -> None:
        names: list[Token] = []
        if self.at_type(TK_IDENT):
            names.append(self.advance())
            while self.match_punct(","):
                names.append(self.expect_ident("loop variable"))
        count = max(1, len(names))
        i = 0
        while i < count:
            block = self.close_block(BK_FOR, kw)
            if block is None:
                return
            if i < len(names):
                var = self.scopes.lookup(names[i].text)
                if var is None or var.js_name != block.var:
                    self.report_at(CAT_SYNTAX, "NEXT variable does not match FOR", names[i])
            self.buf.dedent()
            self.buf.line("}")
            i += 1

    def parse_do(self, kw: Token) -> None:
        """Do = DO [ ( WHILE | UNTIL ) Expr ]"""
        if self.match_kw("WHILE"):
            line = "while (" + self.parse_expr() + ") {"
            post = False
        elif self.match_kw("UNTIL"):
            line = "while (!(" + self.parse_expr() + ")) {"
            post = False
        else:
            line = "do {"
            post = True
        self.buf.line(line)
        self.buf.indent += 1
        block = self.open_block(BK_DO, kw)
        block.post_test = post

    def parse_loop(self, kw: Token) -> None:
        """Loop = LOOP [ ( WHILE | UNTIL ) Expr ]"""
        cond = None
        if self.match_kw("WHILE"):
            cond = "(" + self.parse_expr() + ")"
        elif self.match_kw("UNTIL"):
            cond = "(!(" + self.parse_expr() + "))"
        block = self.close_block(BK_DO, kw)
        if block is None:
            return
        self.buf.dedent()
        if not block.post_test:
            if cond is not None:
                self.report_at(CAT_SYNTAX, "LOOP condition after DO WHILE/UNTIL", kw)
            self.buf.line("}")
        elif cond is not None:
            self.buf.line("} while " + cond + ";")
        else:
            self.buf.line("} while (true);")

    def parse_while(self, kw: Token) -> None:
        self.buf.line("while (" + self.parse_expr() + ") {")
        self.buf.indent += 1
        self.open_block(BK_WHILE, kw)

    def parse_wend(self, kw: Token) -> None:
        if self.close_block(BK_WHILE, kw) is not None:
            self.buf.dedent()
            self.buf.line("}")

    def parse_select(self, kw: Token) -> None:
        """Select = SELECT CASE Expr"""
        self.expect_kw("CASE")
        selector = self.parse_expr()
        temp = self.next_temp("_select_")
        self.buf.line("{")
        self.buf.indent += 1
        self.buf.line("const " + temp + " = " + selector + ";")
        block = self.open_block(BK_SELECT, kw)
        block.temp = temp

    def parse_case(self, kw: Token) -> None:
        """Case = CASE ( ELSE | Test ( ',' Test )* )"""
        block = self.top_block()
        if block is None or block.kind != BK_SELECT:
            raise ParseError("CASE without SELECT CASE", kw.line, kw.column)
        if block.has_else:
            self.report_at(CAT_SYNTAX, "CASE after CASE ELSE", kw)
        if self.match_kw("ELSE"):
            block.has_else = True
            if block.cases == 0:
                line = "if (true) {"
            else:
                line = "} else {"
        else:
            tests = self.parse_case_tests(block.temp)
            if block.cases == 0:
                line = "if (" + tests + ") {"
            else:
                line = "} else if (" + tests + ") {"
        if block.cases > 0:
            self.buf.dedent()
        self.buf.line(line)
        self.buf.indent += 1
        block.cases += 1

    def parse_case_tests(self, temp: str) -> str:
        """Test = IS RelOp Expr | RelOp Expr | Expr [ TO Expr ]"""
        tests: list[str] = []
        while True:
            is_form = self.match_kw("IS")
            tok = self.current()
            if tok.kind == TK_OP and tok.text in RELATIONAL:
                self.advance()
                value = self.parse_expr()
                tests.append(temp + " " + RELATIONAL[tok.text] + " " + value)
            elif is_form:
                raise self.error("Expected relational operator after IS")
            else:
                low = self.parse_expr()
                if self.match_kw("TO"):
                    high = self.parse_expr()
                    tests.append("(" + temp + " >= " + low + " && " + temp + " <= " + high + ")")
                else:
                    tests.append(temp + " === " + low)
            if not self.match_punct(","):
                break
        return " || ".join(tests)

    def inside(self, kind: str) -> bool:
        i = len(self.blocks) - 1
        while i >= self.scopes.current.base_depth:
            if self.blocks[i].kind == kind:
                return True
            i -= 1
        return False

    def parse_exit(self, kw: Token) -> None:
        """Exit = EXIT ( FOR | DO | WHILE | SUB | FUNCTION )"""
        tok = self.current()
        if self.match_kw("FOR"):
            if not self.inside(BK_FOR):
                self.report_at(CAT_SYNTAX, "EXIT FOR not within FOR...NEXT", tok)
            self.buf.line("break;")
        elif self.match_kw("DO"):
            if not self.inside(BK_DO):
                self.report_at(CAT_SYNTAX, "EXIT DO not within DO...LOOP", tok)
            self.buf.line("break;")
        elif self.match_kw("WHILE"):
            if not self.inside(BK_WHILE):
                self.report_at(CAT_SYNTAX, "EXIT WHILE not within WHILE...WEND", tok)
            self.buf.line("break;")
        elif self.match_kw("SUB"):
            if self.scopes.current.kind != SCOPE_SUB:
                self.report_at(CAT_SYNTAX, "EXIT SUB not within SUB", tok)
            self.buf.line("return;")
        elif self.match_kw("FUNCTION"):
            if self.scopes.current.kind != SCOPE_FUNCTION:
                self.report_at(CAT_SYNTAX, "EXIT FUNCTION not within FUNCTION", tok)
                self.buf.line("return;")
            else:
                self.buf.line("return " + self.current_result() + ";")
        else:
            raise self.error("Expected FOR, DO, WHILE, SUB or FUNCTION after EXIT")

    def parse_continue(self, kw: Token) -> None:
        self.buf.line("continue;")

    # ── Declarations ─────────────────────────────────────────

    def parse_type_spec(self) -> TypeSpec:
        """TypeSpec = [ _UNSIGNED ] TypeName [ '*' Expr ] | Ident"""
        tok = self.current()
        if tok.kind == TK_IDENT:
            self.advance()
            key = tok.text.upper()
            if key not in self.types:
                self.report_at(CAT_TYPE, "Unknown type '" + tok.text + "'", tok)
                return TypeSpec()
            return TypeSpec(type_name=key)
        if tok.kind != TK_KEYWORD:
            raise self.error("Expected type name, found " + _describe(tok))
        self.advance()
        if tok.text == "_UNSIGNED" and self.at_type(TK_KEYWORD):
            self.advance()
        if tok.text == "STRING":
            if self.match_op("*"):
                self.parse_expr()
            return TypeSpec(is_string=True)
        return TypeSpec()

    def initial_value(self, spec: TypeSpec) -> str:
        if spec.type_name is not None:
            return self.types[spec.type_name] + "()"
        if spec.is_string:
            return '""'
        return "0"

    def element_init(self, spec: TypeSpec) -> str:
        if spec.type_name is not None:
            return self.types[spec.type_name]
        if spec.is_string:
            return '""'
        return "0"

    def parse_bounds(self) -> list[str]:
        """Bounds = [ Bound ( ',' Bound )* ] ; Bound = Expr [ TO Expr ]"""
        bounds: list[str] = []
        if self.at_punct(")"):
            return bounds
        while True:
            upper = self.parse_expr()
            if self.match_kw("TO"):
                upper = self.parse_expr()
            bounds.append(upper)
            if not self.match_punct(","):
                break
        return bounds

    def parse_dim(self, kw: Token) -> None:
        """Dim = DIM [ SHARED ] [ AS Type ] DimItem ( ',' DimItem )*"""
        self.parse_dim_items(kw, redim=False, preserve=False)

    def parse_redim(self, kw: Token) -> None:
        preserve = self.match_kw("PRESERVE")
        self.parse_dim_items(kw, redim=True, preserve=preserve)

    def parse_common(self, kw: Token) -> None:
        self.parse_dim_items(kw, redim=False, preserve=False)

    def parse_dim_items(self, kw: Token, redim: bool, preserve: bool) -> None:
        shared = self.match_kw("SHARED")
        if kw.text == "COMMON" and not self.scopes.is_global():
            self.report_at(CAT_SEMANTIC, "COMMON is only allowed at module level", kw)
        if kw.text == "COMMON":
            shared = True
        common_spec = None
        if self.match_kw("AS"):
            common_spec = self.parse_type_spec()
        while True:
            name_tok = self.expect_ident("variable name")
            bounds = None
            if self.match_punct("("):
                bounds = self.parse_bounds()
                self.expect_punct(")")
            spec = common_spec
            if self.match_kw("AS"):
                spec = self.parse_type_spec()
            if spec is None:
                spec = TypeSpec(is_string=is_string_name(name_tok.text))
            elif is_string_name(name_tok.text):
                spec = TypeSpec(True, spec.type_name)
            self.declare_dim(name_tok, bounds, spec, shared, redim, preserve)
            if not self.match_punct(","):
                break

    def declare_dim(
        self,
        name_tok: Token,
        bounds: list[str] | None,
        spec: TypeSpec,
        shared: bool,
        redim: bool,
        preserve: bool,
    ) -> None:
        if redim:
            existing = self.scopes.lookup(name_tok.text)
        else:
            existing = self.scopes.current.vars.get(name_tok.text.upper())
        if bounds is not None:
            init = self.element_init(spec)
            if bounds:
                value = "_makeArray(" + init + ", " + ", ".join(bounds) + ")"
                if preserve and existing is not None:
                    value = (
                        "_redimPreserve("
                        + existing.js_name
                        + ", "
                        + init
                        + ", "
                        + ", ".join(bounds)
                        + ")"
                    )
            else:
                value = "[]"
        else:
            value = self.initial_value(spec)
        if existing is not None:
            if not redim and bounds is None and existing.is_array:
                self.report_at(
                    CAT_SEMANTIC, "Duplicate definition '" + name_tok.text + "'", name_tok
                )
            if bounds is not None:
                existing.is_array = True
            if spec.type_name is not None:
                existing.type_name = spec.type_name
            self.buf.line(existing.js_name + " = " + value + ";")
            if shared:
                self.scopes.share(name_tok.text, existing)
            return
        var = Variable(
            mangle(name_tok.text),
            is_array=bounds is not None,
            is_string=spec.is_string,
            type_name=spec.type_name,
        )
        self.scopes.declare(name_tok.text, var)
        if shared:
            self.scopes.share(name_tok.text, var)
        self.emit_declaration(var, value)

    def default_of(self, var: Variable) -> str:
        if var.is_array:
            return "[]"
        if var.type_name is not None:
            return "{}"
        if var.is_string:
            return '""'
        return "0"

    def emit_declaration(self, var: Variable, value: str) -> None:
        """Declare var here if this is the scope's top level, else hoist it."""
        if self.at_scope_base():
            self.buf.line("let " + var.js_name + " = " + value + ";")
            return
        self.scopes.hoist("let " + var.js_name + " = " + self.default_of(var) + ";")
        self.buf.line(var.js_name + " = " + value + ";")

    def parse_const(self, kw: Token) -> None:
        """Const = CONST Ident '=' Expr ( ',' Ident '=' Expr )*"""
        while True:
            name_tok = self.expect_ident("constant name")
            self.expect_op("=")
            value = self.parse_expr()
            if self.scopes.current.vars.get(name_tok.text.upper()) is not None:
                self.report_at(
                    CAT_SEMANTIC, "Duplicate definition '" + name_tok.text + "'", name_tok
                )
            else:
                is_string = is_string_name(name_tok.text) or (
                    value.startswith('"') and value.endswith('"')
                )
                var = Variable(mangle(name_tok.text), is_string=is_string)
                self.scopes.declare(name_tok.text, var)
                if self.scopes.is_global():
                    self.scopes.share(name_tok.text, var)
                if self.at_scope_base():
                    self.buf.line("const " + var.js_name + " = " + value + ";")
                else:
                    self.emit_declaration(var, value)
            if not self.match_punct(","):
                break

    def parse_type(self, kw: Token) -> None:
        """Type = TYPE Ident NEWLINE ( Field NEWLINE )* END TYPE"""
        try:
            name_tok = self.expect_ident("type name")
        except ParseError as err:
            self.record(err)
            self.skip_type_body()
            return
        fields: dict[str, TypeSpec] = {}
        order: list[str] = []
        closed = False
        while not self.at_end():
            if self.at_type(TK_NEWLINE) or self.at_punct(":"):
                self.advance()
                continue
            if self.at_kw("END"):
                self.advance()
                self.expect_kw("TYPE")
                closed = True
                break
            field_tok = self.current()
            if field_tok.kind != TK_IDENT and field_tok.kind != TK_KEYWORD:
                raise self.error("Expected field name, found " + _describe(field_tok))
            self.advance()
            self.expect_kw("AS")
            spec = self.parse_type_spec()
            if is_string_name(field_tok.text):
                spec.is_string = True
            field = self.member_name(field_tok)
            if field not in fields:
                order.append(field)
            fields[field] = spec
            self.end_statement()
        if not closed:
            self.report_at(CAT_SYNTAX, "TYPE without END TYPE", kw)
        key = name_tok.text.upper()
        js = mangle(name_tok.text)
        self.types[key] = js
        self.type_fields[key] = fields
        inits = ", ".join(f + ": " + self.initial_value(fields[f]) for f in order)
        self.buf.line("function " + js + "() { return { " + inits + " }; }")

    def skip_type_body(self) -> None:
        """Skip the fields of a rejected TYPE through its END TYPE."""
        while not self.at_end():
            if self.at_line_start() and self.at_kw("END") and self.peek(1).text == "TYPE":
                self.advance()
                self.advance()
                return
            self.advance()

    def parse_data(self, kw: Token) -> None:
        # values were gathered by the pre-pass
        self.skip_to_statement_end()

    def parse_read(self, kw: Token) -> None:
        """Read = READ LValue ( ',' LValue )*"""
        for lv in self.parse_lvalue_list():
            if lv.is_string:
                self.store(lv, "String(_read())")
            else:
                self.store(lv, "Number(_read())")

    def parse_restore(self, kw: Token) -> None:
        if self.at_type(TK_IDENT) or self.at_type(TK_NUMBER):
            label = self.advance()
            self.warn(
                CAT_SEMANTIC,
                "RESTORE " + label.text + " restarts from the first DATA item",
                label,
            )
        self.buf.line("_restore();")

    def parse_swap(self, kw: Token) -> None:
        first = self.parse_lvalue()
        self.expect_punct(",")
        second = self.parse_lvalue()
        a = self.declared(first)
        b = self.declared(second)
        self.buf.line("[" + a + ", " + b + "] = [" + b + ", " + a + "];")

    def parse_erase(self, kw: Token) -> None:
        while True:
            name_tok = self.expect_ident("array name")
            var = self.scopes.lookup(name_tok.text)
            if var is None:
                self.report_at(
                    CAT_REFERENCE, "Array '" + name_tok.text + "' not defined", name_tok
                )
            else:
                self.buf.line(var.js_name + " = [];")
            if not self.match_punct(","):
                break

    def parse_let(self, kw: Token) -> None:
        self.parse_assignment()

    def parse_randomize(self, kw: Token) -> None:
        if self.at_stmt_end():
            self.buf.line("_randomize();")
            return
        self.match_kw("USING")
        self.buf.line("_randomize(" + self.parse_expr() + ");")

    def parse_def_fn(self, kw: Token) -> None:
        """DefFn = DEF [ FN ] Ident [ '(' Params ')' ] '=' Expr"""
        has_fn = self.match_kw("FN")
        name_tok = self.expect_ident("function name")
        name = ("FN" + name_tok.text) if has_fn else name_tok.text
        if not name.upper().startswith("FN"):
            raise ParseError(
                "DEF function names must begin with FN", name_tok.line, name_tok.column
            )
        params = self.parse_params()
        if not self.at_op("="):
            raise self.error("Multi-line DEF FN is not supported")
        self.advance()
        saved: list[tuple[str, Variable | None]] = []
        for p in params:
            key = p.name.upper()
            saved.append((key, self.scopes.current.vars.get(key)))
            self.scopes.current.vars[key] = Variable(
                p.js_name, is_array=p.is_array, is_string=p.is_string, type_name=p.type_name
            )
        js = mangle(name)
        self.def_fns[name.upper()] = js
        try:
            body = self.parse_expr()
        finally:
            for key, old in saved:
                if old is None:
                    self.scopes.current.vars.pop(key, None)
                else:
                    self.scopes.current.vars[key] = old
        args = ", ".join(p.js_name for p in params)
        self.buf.line("const " + js + " = async (" + args + ") => " + body + ";")

    # ── Procedures ───────────────────────────────────────────

    def parse_params(self) -> list[Param]:
        """Params = '(' [ Param ( ',' Param )* ] ')'"""
        params: list[Param] = []
        if not self.match_punct("("):
            return params
        if self.match_punct(")"):
            return params
        while True:
            if not self.match_kw("BYVAL"):
                self.match_kw("BYREF")
            name_tok = self.expect_ident("parameter name")
            is_array = False
            if self.match_punct("("):
                self.expect_punct(")")
                is_array = True
            spec = TypeSpec(is_string=is_string_name(name_tok.text))
            if self.match_kw("AS"):
                spec = self.parse_type_spec()
                if is_string_name(name_tok.text):
                    spec.is_string = True
            params.append(
                Param(name_tok.text, mangle(name_tok.text), is_array, spec.is_string, spec.type_name)
            )
            if not self.match_punct(","):
                break
        self.expect_punct(")")
        return params

    def parse_sub(self, kw: Token) -> None:
        self.parse_procedure(kw, BK_SUB)

    def parse_function(self, kw: Token) -> None:
        self.parse_procedure(kw, BK_FUNCTION)

    def parse_procedure(self, kw: Token, kind: str) -> None:
        """Procedure = ( SUB | FUNCTION ) Ident [ Params ] [ AS Type ] [ STATIC ]"""
        if self.inline_floors:
            raise ParseError(kind + " not allowed in a single-line IF", kw.line, kw.column)
        name_tok = self.expect_ident("procedure name")
        params = self.parse_params()
        result_string = is_string_name(name_tok.text)
        if self.match_kw("AS"):
            if self.parse_type_spec().is_string:
                result_string = True
        self.match_kw("STATIC")
        self.close_all_blocks()
        proc = self.procedures.get(name_tok.text.upper())
        if proc is None:
            proc = Procedure(name_tok.text, mangle(name_tok.text), kind, len(params))
            self.procedures[name_tok.text.upper()] = proc
        self.buf.line("async function " + proc.js_name + "(" + ", ".join(p.js_name for p in params) + ") {")
        self.buf.indent += 1
        scope_kind = SCOPE_SUB if kind == BK_SUB else SCOPE_FUNCTION
        scope = self.scopes.push(scope_kind, name_tok.text, self.buf.mark(), self.buf.indent)
        block = self.open_block(kind, kw)
        scope.base_depth = len(self.blocks)
        for p in params:
            self.scopes.declare(
                p.name,
                Variable(p.js_name, is_array=p.is_array, is_string=p.is_string, type_name=p.type_name),
            )
        if kind == BK_FUNCTION:
            block.result = proc.js_name + "_result"
            self.scopes.declare(name_tok.text, Variable(block.result, is_string=result_string))
            self.buf.line(
                "let " + block.result + " = " + ('""' if result_string else "0") + ";"
            )

    def current_result(self) -> str:
        i = len(self.blocks) - 1
        while i >= 0:
            if self.blocks[i].kind == BK_FUNCTION:
                return self.blocks[i].result
            i -= 1
        return "undefined"

    def finish_procedure(self, block: Block) -> None:
        scope = self.scopes.current
        if block.kind == BK_FUNCTION:
            self.buf.line("return " + block.result + ";")
        if scope.hoisted:
            self.buf.insert(scope.mark, scope.hoisted, scope.indent)
        self.scopes.pop()
        self.buf.dedent()
        self.buf.line("}")

    def paren_spans_statement(self) -> bool:
        """True when the '(' at the cursor closes right before the statement end."""
        depth = 0
        i = self.pos
        while i < len(self.tokens):
            t = self.tokens[i]
            if t.kind == TK_NEWLINE or t.kind == TK_EOF:
                return False
            if t.kind == TK_PUNCT and t.text == "(":
                depth += 1
            elif t.kind == TK_PUNCT and t.text == ")":
                depth -= 1
                if depth == 0:
                    nxt = self.tokens[i + 1] if i + 1 < len(self.tokens) else t
                    return (
                        nxt.kind == TK_NEWLINE
                        or nxt.kind == TK_EOF
                        or (nxt.kind == TK_PUNCT and nxt.text == ":")
                        or (nxt.kind == TK_KEYWORD and nxt.text == "ELSE")
                    )
            i += 1
        return False

    def parse_expr_list(self) -> list[str]:
        args = [self.parse_expr()]
        while self.match_punct(","):
            args.append(self.parse_expr())
        return args

    def parse_bare_args(self) -> list[str]:
        if self.at_stmt_end():
            return []
        if self.at_punct("(") and self.paren_spans_statement():
            return self.parse_args()
        return self.parse_expr_list()

    def check_arity(self, proc: Procedure, count: int, tok: Token) -> None:
        if count != proc.param_count:
            self.report_at(
                CAT_TYPE,
                "Wrong number of arguments for '"
                + proc.name
                + "': expected "
                + str(proc.param_count)
                + ", got "
                + str(count),
                tok,
            )

    def emit_call(self, proc: Procedure, args: list[str], tok: Token) -> None:
        self.check_arity(proc, len(args), tok)
        self.buf.line("await " + proc.js_name + "(" + ", ".join(args) + ");")

    def parse_call(self, kw: Token) -> None:
        """Call = CALL Ident [ '(' Args ')' | Args ]"""
        name_tok = self.expect_ident("procedure name")
        args = self.parse_bare_args()
        proc = self.procedures.get(name_tok.text.upper())
        if proc is None:
            self.report(
                CAT_REFERENCE,
                "Unknown procedure '" + name_tok.text + "'",
                name_tok.line,
                name_tok.column,
                suggest(name_tok.text, [p.name for p in self.procedures.values()]),
            )
            self.buf.line("await " + mangle(name_tok.text) + "(" + ", ".join(args) + ");")
            return
        self.emit_call(proc, args, name_tok)

    def label_target(self, after: str) -> Token:
        tok = self.current()
        if tok.kind != TK_IDENT and tok.kind != TK_NUMBER:
            raise self.error("Expected label after " + after)
        return self.advance()

    def emit_goto(self, target: Token) -> None:
        self.buf.line("// GOTO " + target.text + " (not supported)")
        self.warn(
            CAT_SEMANTIC,
            "GOTO " + target.text + ": labels and GOTO are not supported when transpiling to JavaScript",
            target,
        )

    def parse_goto(self, kw: Token) -> None:
        self.emit_goto(self.label_target("GOTO"))

    def parse_gosub(self, kw: Token) -> None:
        target = self.label_target("GOSUB")
        self.warn(
            CAT_SEMANTIC,
            "GOSUB " + target.text + ": subroutine labels are called as functions",
            target,
        )
        if target.kind == TK_NUMBER:
            self.buf.line("// GOSUB " + target.text + " (not supported)")
            return
        self.buf.line("await " + mangle(target.text) + "(); // GOSUB " + target.text)

    def parse_return(self, kw: Token) -> None:
        if self.at_type(TK_IDENT) or self.at_type(TK_NUMBER):
            self.advance()
        self.buf.line("return;")

    def parse_label_list(self, after: str) -> list[Token]:
        labels = [self.label_target(after)]
        while self.match_punct(","):
            labels.append(self.label_target(after))
        return labels

    def parse_on(self, kw: Token) -> None:
        """On = ON ERROR ( GOTO Label | RESUME NEXT ) | ON Expr ( GOTO | GOSUB ) Labels"""
        if self.match_kw("ERROR"):
            if self.match_kw("GOTO"):
                target = self.label_target("ON ERROR GOTO")
                if target.text == "0":
                    self.buf.line("// ON ERROR GOTO 0")
                else:
                    self.buf.line("// ON ERROR GOTO " + target.text + " (error trapping ignored)")
            elif self.match_kw("RESUME"):
                self.expect_kw("NEXT")
                self.buf.line("// ON ERROR RESUME NEXT")
            else:
                raise self.error("Expected GOTO or RESUME after ON ERROR")
            return
        event = self.current()
        if event.text.upper() in ON_EVENTS:
            self.skip_to_statement_end()
            self.warn(CAT_SEMANTIC, "ON " + event.text.upper() + " event trapping is not supported", event)
            self.buf.line("// ON " + event.text.upper() + " (unsupported)")
            return
        selector = self.parse_expr()
        if self.match_kw("GOTO"):
            labels = self.parse_label_list("GOTO")
            names = ", ".join(t.text for t in labels)
            self.buf.line("// ON " + selector + " GOTO " + names + " (not supported)")
            self.warn(CAT_SEMANTIC, "ON...GOTO is not supported when transpiling to JavaScript", kw)
            return
        if self.match_kw("GOSUB"):
            labels = self.parse_label_list("GOSUB")
            self.warn(CAT_SEMANTIC, "ON...GOSUB labels are called as functions", kw)
            targets = ", ".join(mangle(t.text) for t in labels if t.kind == TK_IDENT)
            idx = self.next_temp("_on_")
            self.buf.line(
                "{ const "
                + idx
                + " = "
                + selector
                + "; if ("
                + idx
                + " >= 1 && "
                + idx
                + " <= "
                + str(len(labels))
                + ") { await ["
                + targets
                + "]["
                + idx
                + " - 1](); } }"
            )
            return
        raise self.error("Expected GOTO or GOSUB after ON expression")

    def parse_resume(self, kw: Token) -> None:
        if self.match_kw("NEXT"):
            self.buf.line("// RESUME NEXT")
        elif self.at_type(TK_IDENT) or self.at_type(TK_NUMBER):
            self.buf.line("// RESUME " + self.advance().text)
        else:
            self.buf.line("// RESUME")

    def parse_error_stmt(self, kw: Token) -> None:
        code = self.parse_expr()
        self.buf.line('throw new Error("Error " + ' + code + ");")

    # ── Graphics and Devices ─────────────────────────────────

    def parse_point(self) -> tuple[str, str]:
        """Point = [ STEP ] '(' Expr ',' Expr ')'"""
        self.match_kw("STEP")
        self.expect_punct("(")
        x = self.parse_expr()
        self.expect_punct(",")
        y = self.parse_expr()
        self.expect_punct(")")
        return x, y

    def parse_pset(self, kw: Token) -> None:
        x, y = self.parse_point()
        color = "undefined"
        if self.match_punct(","):
            color = self.parse_expr()
        self.buf.line("await _pset(" + x + ", " + y + ", " + color + ");")

    def parse_preset(self, kw: Token) -> None:
        x, y = self.parse_point()
        color = "undefined"
        if self.match_punct(","):
            color = self.parse_expr()
        self.buf.line("await _preset(" + x + ", " + y + ", " + color + ");")

    def parse_line_graphics(self) -> None:
        """Line = LINE [ Point ] '-' Point [ ',' [ Expr ] [ ',' ( B | BF ) ] ]"""
        x1 = "null"
        y1 = "null"
        if self.at_punct("(") or self.at_kw("STEP"):
            x1, y1 = self.parse_point()
        self.expect_op("-")
        x2, y2 = self.parse_point()
        color = "undefined"
        box = "false"
        fill = "false"
        if self.match_punct(","):
            if not self.at_punct(",") and not self.at_stmt_end():
                color = self.parse_expr()
            if self.match_punct(","):
                if self.at_word("BF"):
                    self.advance()
                    box = "true"
                    fill = "true"
                elif self.at_word("B"):
                    self.advance()
                    box = "true"
                elif not self.at_punct(","):
                    raise self.error("Expected B or BF")
                if self.match_punct(","):
                    self.parse_expr()
        self.buf.line(
            "await _line("
            + ", ".join([x1, y1, x2, y2, color, box, fill])
            + ");"
        )

    def parse_circle(self, kw: Token) -> None:
        """Circle = CIRCLE Point ',' Expr [ ',' [Expr] ... ]"""
        x, y = self.parse_point()
        self.expect_punct(",")
        radius = self.parse_expr()
        color = "undefined"
        if self.match_punct(","):
            rest = self.parse_optional_args()
            if rest:
                color = rest[0]
        self.buf.line("await _circle(" + x + ", " + y + ", " + radius + ", " + color + ");")

    def unsupported_file_record(self, kw: Token) -> None:
        self.skip_to_statement_end()
        self.warn(CAT_SEMANTIC, kw.text + " # record I/O is not supported", kw)
        self.buf.line("// " + kw.text + " # (unsupported)")

    def parse_get(self, kw: Token) -> None:
        if self.at_punct("#"):
            self.unsupported_file_record(kw)
            return
        x1, y1 = self.parse_point()
        self.expect_op("-")
        x2, y2 = self.parse_point()
        self.expect_punct(",")
        buffer = self.expect_ident("array name")
        self.buf.line(
            "await _get("
            + ", ".join([x1, y1, x2, y2, string_literal(buffer.text)])
            + ");"
        )

    def parse_put(self, kw: Token) -> None:
        if self.at_punct("#"):
            self.unsupported_file_record(kw)
            return
        x, y = self.parse_point()
        self.expect_punct(",")
        buffer = self.expect_ident("array name")
        action = "undefined"
        if self.match_punct(","):
            tok = self.current()
            if tok.kind != TK_IDENT and tok.kind != TK_KEYWORD:
                raise self.error("Expected PUT action")
            self.advance()
            action = string_literal(tok.text.upper())
        self.buf.line(
            "await _put(" + ", ".join([x, y, string_literal(buffer.text), action]) + ");"
        )

    def parse_putimage(self, kw: Token) -> None:
        """PutImage = _PUTIMAGE [ Point [ '-' Point ] ] [ ',' Src [ ',' Dst [ ',' Point [ '-' Point ] ] ] ]"""
        dx1 = dy1 = dx2 = dy2 = "undefined"
        src = dst = "undefined"
        sx1 = sy1 = sx2 = sy2 = "undefined"
        if self.at_punct("(") or self.at_kw("STEP"):
            dx1, dy1 = self.parse_point()
            if self.match_op("-"):
                dx2, dy2 = self.parse_point()
        if self.match_punct(","):
            if not self.at_punct(",") and not self.at_stmt_end():
                src = self.parse_expr()
            if self.match_punct(","):
                if not self.at_punct(",") and not self.at_stmt_end():
                    dst = self.parse_expr()
                if self.match_punct(","):
                    sx1, sy1 = self.parse_point()
                    if self.match_op("-"):
                        sx2, sy2 = self.parse_point()
        args = [dx1, dy1, dx2, dy2, src, dst, sx1, sy1, sx2, sy2]
        self.buf.line("_putimage(" + ", ".join(args) + ");")

    def parse_printstring(self, kw: Token) -> None:
        x, y = self.parse_point()
        self.expect_punct(",")
        text = self.parse_expr()
        if self.match_punct(","):
            self.parse_expr()
        self.buf.line("_printstring(" + x + ", " + y + ", " + text + ");")

    def parse_freeimage(self, kw: Token) -> None:
        handle = "undefined"
        if not self.at_stmt_end():
            handle = self.parse_expr()
        self.buf.line("_freeimage(" + handle + ");")

    def parse_mousehide(self, kw: Token) -> None:
        self.buf.line("_mousehide();")

    def parse_mouseshow(self, kw: Token) -> None:
        style = '"default"'
        if not self.at_stmt_end():
            style = self.parse_expr()
        self.buf.line("_mouseshow(" + style + ");")

    def parse_keyclear(self, kw: Token) -> None:
        if not self.at_stmt_end():
            self.parse_expr()
        self.buf.line("_keyclear();")

    def parse_sndplay(self, kw: Token) -> None:
        self.buf.line("_sndplay(" + self.parse_expr() + ");")

    def parse_sndloop(self, kw: Token) -> None:
        self.buf.line("_sndloop(" + self.parse_expr() + ");")

    def parse_sndclose(self, kw: Token) -> None:
        self.buf.line("_sndclose(" + self.parse_expr() + ");")

    # ── Files ────────────────────────────────────────────────

    def parse_open(self, kw: Token) -> None:
        """Open = OPEN Expr FOR Mode [ ACCESS ... ] AS [ '#' ] Expr [ LEN '=' Expr ]
        | OPEN Expr ',' [ '#' ] Expr ',' Expr"""
        first = self.parse_expr()
        if self.match_punct(","):
            self.match_punct("#")
            num = self.parse_expr()
            self.expect_punct(",")
            filename = self.parse_expr()
            mode = (
                '({ I: "INPUT", O: "OUTPUT", A: "APPEND", R: "RANDOM", B: "BINARY" })'
                + "[String("
                + first
                + ").toUpperCase().charAt(0)]"
            )
            self.buf.line("await _open(" + filename + ", " + mode + ", " + num + ");")
            return
        mode = "RANDOM"
        if self.match_kw("FOR"):
            tok = self.current()
            if tok.kind != TK_KEYWORD or tok.text not in FILE_MODES:
                raise self.error("Expected file mode after FOR, found " + _describe(tok))
            self.advance()
            mode = tok.text
        while not self.at_kw("AS") and not self.at_stmt_end():
            self.advance()
        self.expect_kw("AS")
        self.match_punct("#")
        num = self.parse_expr()
        if self.match_kw("LEN"):
            self.expect_op("=")
            self.parse_expr()
        self.buf.line("await _open(" + first + ", " + string_literal(mode) + ", " + num + ");")

    def parse_close(self, kw: Token) -> None:
        if self.at_stmt_end():
            self.buf.line("await _closeAll();")
            return
        while True:
            self.match_punct("#")
            self.buf.line("await _close(" + self.parse_expr() + ");")
            if not self.match_punct(","):
                break

    # ── Assignment ───────────────────────────────────────────

    def member_name(self, tok: Token) -> str:
        return mangle(tok.text.lower())

    def dotted_name(self, first: Token) -> str:
        """Join `a.b.c` into one legacy dotted variable name."""
        name = first.text
        while self.at_punct(".") and self.peek(1).kind in (TK_IDENT, TK_KEYWORD):
            self.advance()
            name += "." + self.advance().text
        return name

    def parse_members(self, type_name: str | None, is_string: bool) -> tuple[str, bool]:
        """Members = ( '.' Ident [ '(' Args ')' ] )*"""
        code = ""
        while self.at_punct("."):
            self.advance()
            tok = self.current()
            if tok.kind != TK_IDENT and tok.kind != TK_KEYWORD:
                raise self.error("Expected field name after '.'")
            self.advance()
            field = self.member_name(tok)
            code += "." + field
            spec = None
            if type_name is not None:
                spec = self.type_fields.get(type_name, {}).get(field)
                if spec is None:
                    self.report_at(CAT_REFERENCE, "Unknown field '" + tok.text + "'", tok)
            if spec is not None:
                type_name = spec.type_name
                is_string = spec.is_string
            else:
                type_name = None
                is_string = is_string_name(tok.text)
            if self.at_punct("("):
                for idx in self.parse_args():
                    code += "[" + idx + "]"
        return code, is_string

    def parse_lvalue(self) -> LValue:
        """LValue = Ident [ '(' Args ')' ] Members"""
        tok = self.expect_ident("variable")
        name = tok.text
        var = self.scopes.lookup(name)
        if self.at_punct(".") and (var is None or var.type_name is None):
            name = self.dotted_name(tok)
            var = self.scopes.lookup(name)
            tok = Token(TK_IDENT, name, tok.line, tok.column)
        proc = self.procedures.get(name.upper())
        if proc is not None and var is None:
            raise ParseError(
                "Cannot assign to " + proc.kind + " '" + proc.name + "'",
                tok.line,
                tok.column,
                CAT_SEMANTIC,
            )
        if self.at_punct("("):
            indices = self.parse_args()
            if var is None:
                var = self.implicit_array(tok, len(indices))
            code = var.js_name + "".join("[" + i + "]" for i in indices)
            members, is_string = self.parse_members(var.type_name, var.is_string)
            return LValue(code + members, is_string)
        if var is None:
            return LValue(js_ident(name), is_string_name(name), tok)
        members, is_string = self.parse_members(var.type_name, var.is_string)
        return LValue(var.js_name + members, is_string)

    def store(self, lv: LValue, value: str) -> None:
        """Emit `lv = value`, declaring a fresh name on first assignment."""
        if lv.fresh is not None and self.scopes.lookup(lv.fresh.text) is None:
            var = Variable(lv.code, is_string=lv.is_string)
            self.scopes.declare(lv.fresh.text, var)
            self.emit_declaration(var, value)
            return
        self.buf.line(lv.code + " = " + value + ";")

    def declared(self, lv: LValue) -> str:
        """Code for lv, implicitly declaring a fresh plain name."""
        if lv.fresh is not None and self.scopes.lookup(lv.fresh.text) is None:
            return self.implicit_variable(lv.fresh).js_name
        return lv.code

    def parse_assignment(self) -> None:
        """Assign = LValue '=' Expr"""
        lv = self.parse_lvalue()
        self.expect_op("=")
        value = self.parse_expr()
        self.store(lv, value)

    def variable(self, tok: Token) -> Variable:
        var = self.scopes.lookup(tok.text)
        if var is None:
            var = self.implicit_variable(tok)
        return var

    def implicit_variable(self, tok: Token) -> Variable:
        var = Variable(js_ident(tok.text), is_string=is_string_name(tok.text))
        self.scopes.declare(tok.text, var)
        self.scopes.hoist("let " + var.js_name + " = " + self.default_of(var) + ";")
        return var

    def implicit_array(self, tok: Token, dims: int) -> Variable:
        var = Variable(js_ident(tok.text), is_array=True, is_string=is_string_name(tok.text))
        self.scopes.declare(tok.text, var)
        init = '""' if var.is_string else "0"
        bounds = ", ".join(["10"] * max(1, dims))
        self.scopes.hoist("let " + var.js_name + " = _makeArray(" + init + ", " + bounds + ");")
        return var

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> str:
        if self.at_stmt_end() or self.at_punct(",") or self.at_punct(")"):
            raise self.error("Expected expression, found " + _describe(self.current()))
        return self.parse_or()

    def parse_or(self) -> str:
        """Or = And ( ( OR | XOR ) And )*"""
        left = self.parse_and()
        while True:
            if self.match_kw("OR"):
                left = "(" + left + " || " + self.parse_and() + ")"
            elif self.match_kw("XOR"):
                right = self.parse_and()
                left = "(Boolean(" + left + ") !== Boolean(" + right + "))"
            else:
                return left

    def parse_and(self) -> str:
        """And = Compare ( AND Compare )*"""
        left = self.parse_compare()
        while self.match_kw("AND"):
            left = "(" + left + " && " + self.parse_compare() + ")"
        return left

    def parse_compare(self) -> str:
        """Compare = Sum ( RelOp Sum )*"""
        left = self.parse_sum()
        while True:
            tok = self.current()
            if tok.kind == TK_OP and tok.text in RELATIONAL:
                self.advance()
                left = "(" + left + " " + RELATIONAL[tok.text] + " " + self.parse_sum() + ")"
            else:
                return left

    def parse_sum(self) -> str:
        """Sum = Product ( ( '+' | '-' ) Product )*"""
        left = self.parse_product()
        while True:
            if self.match_op("+"):
                left = "(" + left + " + " + self.parse_product() + ")"
            elif self.match_op("-"):
                left = "(" + left + " - " + self.parse_product() + ")"
            else:
                return left

    def parse_product(self) -> str:
        """Product = Unary ( ( '*' | '/' | '\\' | MOD ) Unary )*"""
        left = self.parse_unary()
        while True:
            if self.match_op("*"):
                left = "(" + left + " * " + self.parse_unary() + ")"
            elif self.match_op("/"):
                left = "(" + left + " / " + self.parse_unary() + ")"
            elif self.match_op("\\"):
                left = "Math.trunc(" + left + " / " + self.parse_unary() + ")"
            elif self.match_kw("MOD"):
                left = "(" + left + " % " + self.parse_unary() + ")"
            else:
                return left

    def parse_unary(self) -> str:
        """Unary = ( '-' | '+' | NOT ) Unary | Power"""
        if self.match_op("-"):
            return "(-" + self.parse_unary() + ")"
        if self.match_op("+"):
            return self.parse_unary()
        if self.match_kw("NOT"):
            return "(!" + self.parse_unary() + ")"
        return self.parse_power()

    def parse_power(self) -> str:
        """Power = Primary ( '^' Exponent )*"""
        left = self.parse_primary()
        while self.match_op("^"):
            left = "Math.pow(" + left + ", " + self.parse_exponent() + ")"
        return left

    def parse_exponent(self) -> str:
        if self.match_op("-"):
            return "(-" + self.parse_exponent() + ")"
        if self.match_op("+"):
            return self.parse_exponent()
        return self.parse_primary()

    def parse_args(self) -> list[str]:
        """Args = '(' [ Expr ( ',' Expr )* ] ')'"""
        self.expect_punct("(")
        args: list[str] = []
        if self.match_punct(")"):
            return args
        while True:
            args.append(self.parse_expr())
            if not self.match_punct(","):
                break
        self.expect_punct(")")
        return args

    def builtin_call(self, builtin: Builtin, tok: Token) -> str:
        args: list[str] = []
        if self.at_punct("("):
            args = self.parse_args()
        if not builtin.accepts(len(args)):
            if builtin.min_args == builtin.max_args:
                expected = str(builtin.min_args)
            else:
                expected = str(builtin.min_args) + " to " + str(builtin.max_args)
            self.report_at(
                CAT_TYPE,
                "'"
                + builtin.name
                + "' expects "
                + expected
                + " argument(s), got "
                + str(len(args)),
                tok,
            )
        return builtin.call(args)

    def user_call(self, js_name: str, proc: Procedure | None, tok: Token) -> str:
        args: list[str] = []
        if self.at_punct("("):
            args = self.parse_args()
        if proc is not None:
            self.check_arity(proc, len(args), tok)
        return "(await " + js_name + "(" + ", ".join(args) + "))"

    def parse_primary(self) -> str:
        """Primary = Number | String | '(' Expr ')' | Call | Variable Members"""
        tok = self.current()
        if tok.kind == TK_NUMBER:
            self.advance()
            return js_number(tok.text)
        if tok.kind == TK_STRING:
            self.advance()
            return string_literal(tok.text)
        if tok.kind == TK_PUNCT and tok.text == "(":
            self.advance()
            inner = self.parse_or()
            self.expect_punct(")")
            return "(" + inner + ")"
        if tok.kind == TK_KEYWORD:
            builtin = lookup_builtin(tok.text)
            if builtin is None:
                raise self.error("Unexpected keyword '" + tok.text + "' in expression")
            self.advance()
            return self.builtin_call(builtin, tok)
        if tok.kind != TK_IDENT:
            raise self.error("Expected expression, found " + _describe(tok))
        key = tok.text.upper()
        proc = self.procedures.get(key)
        if proc is not None:
            self.advance()
            if proc.kind == BK_SUB:
                raise ParseError(
                    "SUB '" + proc.name + "' cannot be used in an expression",
                    tok.line,
                    tok.column,
                    CAT_SEMANTIC,
                )
            return self.user_call(proc.js_name, proc, tok)
        fn = self.def_fns.get(key)
        if fn is not None:
            self.advance()
            return self.user_call(fn, None, tok)
        var = self.scopes.lookup(tok.text)
        if var is None:
            builtin = lookup_builtin(tok.text)
            if builtin is not None:
                self.advance()
                return self.builtin_call(builtin, tok)
        self.advance()
        if self.at_punct("("):
            indices = self.parse_args()
            if var is None:
                var = self.implicit_array(tok, len(indices))
            code = var.js_name + "".join("[" + i + "]" for i in indices)
            members, _ = self.parse_members(var.type_name, var.is_string)
            return code + members
        if self.at_punct(".") and (var is None or var.type_name is None):
            dotted = Token(TK_IDENT, self.dotted_name(tok), tok.line, tok.column)
            var = self.scopes.lookup(dotted.text)
            if var is None:
                var = self.implicit_variable(dotted)
            return var.js_name
        if var is None:
            var = self.implicit_variable(tok)
        members, _ = self.parse_members(var.type_name, var.is_string)
        return var.js_name + members


def parse(
    tokens: list[Token],
    target: str = TARGET_NODE,
    collector: DiagnosticCollector | None = None,
) -> ParseResult:
    """Parse a token list and return the generated code with its diagnostics."""
    if collector is None:
        collector = DiagnosticCollector()
    code = Parser(tokens, target, collector).parse()
    return ParseResult(code, collector.all())
