"""QBasic/QB64 vocabulary: reserved words and the builtin function table."""

from __future__ import annotations

from dataclasses import dataclass

KEYWORDS: frozenset[str] = frozenset(
    {
        # I/O
        "PRINT",
        "INPUT",
        "CLS",
        "LOCATE",
        "COLOR",
        "SCREEN",
        "WIDTH",
        "WRITE",
        "INKEY$",
        "CSRLIN",
        "POS",
        "SPC",
        "TAB",
        "USING",
        "LPRINT",
        "VIEW",
        # Control flow
        "IF",
        "THEN",
        "ELSE",
        "ELSEIF",
        "END",
        "SELECT",
        "CASE",
        "IS",
        "FOR",
        "TO",
        "STEP",
        "NEXT",
        "DO",
        "LOOP",
        "WHILE",
        "WEND",
        "UNTIL",
        "EXIT",
        "GOTO",
        "GOSUB",
        "RETURN",
        "ON",
        "STOP",
        "SYSTEM",
        "RUN",
        "CHAIN",
        "COMMON",
        "SLEEP",
        "CONTINUE",
        # Procedures
        "SUB",
        "FUNCTION",
        "CALL",
        "DECLARE",
        "SHARED",
        "STATIC",
        "BYVAL",
        "BYREF",
        # Variables and data
        "DIM",
        "REDIM",
        "CONST",
        "LET",
        "AS",
        "DATA",
        "READ",
        "RESTORE",
        "TYPE",
        "SWAP",
        "ERASE",
        "OPTION",
        "BASE",
        "PRESERVE",
        "LSET",
        "RSET",
        "MID$",
        "DEF",
        "FN",
        # Data types
        "INTEGER",
        "LONG",
        "SINGLE",
        "DOUBLE",
        "STRING",
        "ANY",
        "_BIT",
        "_BYTE",
        "_INTEGER64",
        "_FLOAT",
        "_UNSIGNED",
        "_OFFSET",
        "_MEM",
        # Logical
        "AND",
        "OR",
        "NOT",
        "XOR",
        "MOD",
        # Misc
        "REM",
        "BEEP",
        "SOUND",
        "PLAY",
        "WAIT",
        "OUT",
        "RANDOMIZE",
        # File I/O
        "OPEN",
        "CLOSE",
        "GET",
        "PUT",
        "SEEK",
        "LOF",
        "LOC",
        "EOF",
        "FREEFILE",
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
        "BINARY",
        "RANDOM",
        "APPEND",
        "OUTPUT",
        "ACCESS",
        "LEN",
        "LINE",
        # Graphics
        "PSET",
        "PRESET",
        "CIRCLE",
        "PAINT",
        "DRAW",
        "WINDOW",
        "PALETTE",
        "PCOPY",
        "BLOAD",
        "BSAVE",
        # Error handling
        "ERROR",
        "RESUME",
        "ERR",
        "ERL",
        # Memory
        "PEEK",
        "POKE",
        "VARPTR",
        "VARSEG",
        "SADD",
        # DEFtype
        "DEFINT",
        "DEFLNG",
        "DEFSNG",
        "DEFDBL",
        "DEFSTR",
        # QB64 screen and window
        "_TITLE",
        "_FULLSCREEN",
        "_NEWIMAGE",
        "_LOADIMAGE",
        "_FREEIMAGE",
        "_COPYIMAGE",
        "_PUTIMAGE",
        "_DEST",
        "_SOURCE",
        "_DISPLAY",
        "_AUTODISPLAY",
        "_LIMIT",
        "_DELAY",
        "_WIDTH",
        "_HEIGHT",
        "_RESIZE",
        "_SCREENMOVE",
        "_PRINTSTRING",
        "_FONT",
        "_FONTWIDTH",
        "_FONTHEIGHT",
        # QB64 color
        "_RGB",
        "_RGBA",
        "_RGB32",
        "_RGBA32",
        "_RED",
        "_GREEN",
        "_BLUE",
        "_ALPHA",
        "_RED32",
        "_GREEN32",
        "_BLUE32",
        "_ALPHA32",
        "_CLEARCOLOR",
        "_SETALPHA",
        # QB64 input
        "_KEYHIT",
        "_KEYDOWN",
        "_KEYCLEAR",
        "_MOUSEINPUT",
        "_MOUSEX",
        "_MOUSEY",
        "_MOUSEBUTTON",
        "_MOUSEWHEEL",
        "_MOUSEMOVE",
        "_MOUSESHOW",
        "_MOUSEHIDE",
        # QB64 sound
        "_SNDOPEN",
        "_SNDPLAY",
        "_SNDSTOP",
        "_SNDCLOSE",
        "_SNDVOL",
        "_SNDPAUSE",
        "_SNDPLAYING",
        "_SNDLOOP",
        "_SNDLEN",
        "_SNDGETPOS",
        "_SNDSETPOS",
        # QB64 system
        "_CLIPBOARD$",
        "_CONSOLE",
        "_CONSOLETITLE",
        "_EXIT",
        "_FILEEXISTS",
        "_DIREXISTS",
        "_CWD$",
        "_OS$",
        "_SHELL",
        "_BIN$",
        "_INSTRREV",
        "_TRIM$",
        "_EXPLICIT",
        "_CONTINUE",
        # QB64 math
        "_PI",
        "_ROUND",
        "_D2R",
        "_D2G",
        "_R2D",
        "_R2G",
        "_G2D",
        "_G2R",
        "_ATAN2",
        "_ASIN",
        "_ACOS",
        "_COSH",
        "_SINH",
        "_TANH",
        "_SECH",
        "_CSCH",
        "_COTH",
        "_ARCSEC",
        "_ARCCSC",
        "_ARCCOT",
        "_SEC",
        "_CSC",
        "_COT",
        "_HYPOT",
        "_CEIL",
        # QB64 data conversion
        "_CV",
        "_MK$",
        # QB64 date and time
        "_TIMER",
        "_YEAR",
        "_MONTH",
        "_DAY",
        "_HOUR",
        "_MINUTE",
        "_SECOND",
        "_WEEKDAY",
    }
)

# Type names accepted after AS
TYPE_NAMES: frozenset[str] = frozenset(
    {
        "INTEGER",
        "LONG",
        "SINGLE",
        "DOUBLE",
        "STRING",
        "ANY",
        "_BIT",
        "_BYTE",
        "_INTEGER64",
        "_FLOAT",
        "_UNSIGNED",
        "_OFFSET",
        "_MEM",
    }
)


@dataclass(frozen=True)
class Builtin:
    """A builtin function: a JavaScript callable expression plus its arity."""

    name: str
    template: str
    min_args: int
    max_args: int

    def call(self, args: list[str]) -> str:
        """Emit a call of this builtin with already-generated argument code."""
        callee = self.template
        if not _is_plain_callee(callee):
            callee = "(" + callee + ")"
        return callee + "(" + ", ".join(args) + ")"

    def accepts(self, count: int) -> bool:
        return self.min_args <= count <= self.max_args


def _is_plain_callee(text: str) -> bool:
    i = 0
    while i < len(text):
        c = text[i]
        if not (c.isalnum() or c == "_" or c == "." or c == "$"):
            return False
        i += 1
    return len(text) > 0


_BANKERS_ROUND = (
    "v => { const s = v < 0 ? -1 : 1; const x = Math.abs(v); const r = Math.round(x);"
    " return (x % 1 === 0.5 ? r - (r % 2) : r) * s; }"
)
_CLOCK_SECONDS = (
    "() => { const d = new Date(); return d.getHours() * 3600 + d.getMinutes() * 60"
    " + d.getSeconds() + d.getMilliseconds() / 1000; }"
)

# (name, template, min_args, max_args)
_BUILTIN_ROWS: list[tuple[str, str, int, int]] = [
    # Math
    ("ABS", "Math.abs", 1, 1),
    ("ATN", "Math.atan", 1, 1),
    ("COS", "Math.cos", 1, 1),
    ("EXP", "Math.exp", 1, 1),
    ("INT", "Math.floor", 1, 1),
    ("FIX", "Math.trunc", 1, 1),
    ("LOG", "Math.log", 1, 1),
    ("RND", "Math.random", 0, 1),
    ("SGN", "Math.sign", 1, 1),
    ("SIN", "Math.sin", 1, 1),
    ("SQR", "Math.sqrt", 1, 1),
    ("TAN", "Math.tan", 1, 1),
    # Conversion
    ("CINT", _BANKERS_ROUND, 1, 1),
    ("CLNG", _BANKERS_ROUND, 1, 1),
    ("CSNG", "Number", 1, 1),
    ("CDBL", "Number", 1, 1),
    ("CBOOL", "v => v ? -1 : 0", 1, 1),
    # Strings
    ("LEN", "s => String(s).length", 1, 1),
    ("ASC", "s => String(s).charCodeAt(0) || 0", 1, 1),
    ("CHR$", "String.fromCharCode", 1, 1),
    ("VAL", "s => { const n = parseFloat(String(s).trim()); return isNaN(n) ? 0 : n; }", 1, 1),
    ("STR$", 'n => n >= 0 ? " " + String(n) : String(n)', 1, 1),
    ("HEX$", "n => Math.abs(Math.floor(n)).toString(16).toUpperCase()", 1, 1),
    ("OCT$", "n => Math.abs(Math.floor(n)).toString(8)", 1, 1),
    ("BIN$", "n => Math.abs(Math.floor(n)).toString(2)", 1, 1),
    ("_BIN$", "n => Math.abs(Math.floor(n)).toString(2)", 1, 1),
    ("LEFT$", "(s, n) => String(s).slice(0, Math.max(0, n))", 2, 2),
    ("RIGHT$", "(s, n) => { s = String(s); return n >= s.length ? s : n <= 0 ? \"\" : s.slice(-n); }", 2, 2),
    (
        "MID$",
        "(s, start, len) => { s = String(s); return len !== undefined"
        " ? s.slice(start - 1, start - 1 + len) : s.slice(start - 1); }",
        2,
        3,
    ),
    ("UCASE$", "s => String(s).toUpperCase()", 1, 1),
    ("LCASE$", "s => String(s).toLowerCase()", 1, 1),
    ("LTRIM$", "s => String(s).trimStart()", 1, 1),
    ("RTRIM$", "s => String(s).trimEnd()", 1, 1),
    ("_TRIM$", "s => String(s).trim()", 1, 1),
    ("INSTR", "INSTR", 2, 3),
    (
        "_INSTRREV",
        "(s, find, start) => { s = String(s); return start === undefined"
        " ? s.lastIndexOf(find) + 1 : s.lastIndexOf(find, start - 1) + 1; }",
        2,
        3,
    ),
    ("SPACE$", 'n => " ".repeat(Math.max(0, Math.floor(n)))', 1, 1),
    (
        "STRING$",
        '(n, c) => { const ch = typeof c === "string" ? c.charAt(0) : String.fromCharCode(c);'
        " return ch.repeat(Math.max(0, Math.floor(n))); }",
        2,
        2,
    ),
    ("SPC", 'n => " ".repeat(Math.max(0, Math.floor(n)))', 1, 1),
    ("TAB", 'n => " ".repeat(Math.max(0, Math.floor(n) - 1))', 1, 1),
    ("LSET", "(str, len) => String(str).padEnd(len).slice(0, len)", 2, 2),
    ("RSET", "(str, len) => String(str).padStart(len).slice(-len)", 2, 2),
    ("INPUT$", '(n, filenum) => { throw new Error("INPUT$ requires file I/O"); }', 1, 2),
    # Date and time
    ("TIMER", _CLOCK_SECONDS, 0, 0),
    ("_TIMER", _CLOCK_SECONDS, 0, 1),
    (
        "DATE$",
        '() => { const d = new Date(); return String(d.getMonth() + 1).padStart(2, "0")'
        ' + "-" + String(d.getDate()).padStart(2, "0") + "-" + d.getFullYear(); }',
        0,
        0,
    ),
    (
        "TIME$",
        '() => { const d = new Date(); return String(d.getHours()).padStart(2, "0")'
        ' + ":" + String(d.getMinutes()).padStart(2, "0") + ":"'
        ' + String(d.getSeconds()).padStart(2, "0"); }',
        0,
        0,
    ),
    ("_YEAR", "ts => ts !== undefined ? new Date(ts * 86400000).getFullYear() : new Date().getFullYear()", 0, 1),
    ("_MONTH", "ts => ts !== undefined ? new Date(ts * 86400000).getMonth() + 1 : new Date().getMonth() + 1", 0, 1),
    ("_DAY", "ts => ts !== undefined ? new Date(ts * 86400000).getDate() : new Date().getDate()", 0, 1),
    ("_HOUR", "ts => ts !== undefined ? Math.floor((ts % 86400) / 3600) : new Date().getHours()", 0, 1),
    ("_MINUTE", "ts => ts !== undefined ? Math.floor((ts % 3600) / 60) : new Date().getMinutes()", 0, 1),
    ("_SECOND", "ts => ts !== undefined ? Math.floor(ts % 60) : new Date().getSeconds()", 0, 1),
    ("_WEEKDAY", "ts => ts !== undefined ? new Date(ts * 86400000).getDay() + 1 : new Date().getDay() + 1", 0, 1),
    # QB64 math
    ("_PI", "m => m !== undefined ? Math.PI * m : Math.PI", 0, 1),
    ("_D2R", "d => d * Math.PI / 180", 1, 1),
    ("_R2D", "r => r * 180 / Math.PI", 1, 1),
    ("_D2G", "d => d * 10 / 9", 1, 1),
    ("_G2D", "g => g * 9 / 10", 1, 1),
    ("_R2G", "r => r * 200 / Math.PI", 1, 1),
    ("_G2R", "g => g * Math.PI / 200", 1, 1),
    (
        "_ROUND",
        "(n, places) => { if (places === undefined) return Math.round(n);"
        " const f = Math.pow(10, places); return Math.round(n * f) / f; }",
        1,
        2,
    ),
    ("_CEIL", "Math.ceil", 1, 1),
    ("_ATAN2", "Math.atan2", 2, 2),
    ("_ASIN", "Math.asin", 1, 1),
    ("_ACOS", "Math.acos", 1, 1),
    ("_COSH", "Math.cosh", 1, 1),
    ("_SINH", "Math.sinh", 1, 1),
    ("_TANH", "Math.tanh", 1, 1),
    ("_HYPOT", "Math.hypot", 2, 2),
    ("_SEC", "x => 1 / Math.cos(x)", 1, 1),
    ("_CSC", "x => 1 / Math.sin(x)", 1, 1),
    ("_COT", "x => 1 / Math.tan(x)", 1, 1),
    ("_SECH", "x => 1 / Math.cosh(x)", 1, 1),
    ("_CSCH", "x => 1 / Math.sinh(x)", 1, 1),
    ("_COTH", "x => 1 / Math.tanh(x)", 1, 1),
    ("_ARCSEC", "x => Math.acos(1 / x)", 1, 1),
    ("_ARCCSC", "x => Math.asin(1 / x)", 1, 1),
    ("_ARCCOT", "x => Math.PI / 2 - Math.atan(x)", 1, 1),
    # Arrays
    ("LBOUND", "(arr, dim) => 0", 1, 2),
    ("UBOUND", "(arr, dim) => { let a = arr; for (let i = 1; i < (dim || 1); i++) a = a[0]; return a.length - 1; }", 1, 2),
    # System
    ("ENVIRON$", 'key => typeof process !== "undefined" && process.env ? process.env[key] || "" : ""', 1, 1),
    ("COMMAND$", '() => typeof process !== "undefined" && process.argv ? process.argv.slice(2).join(" ") : ""', 0, 0),
    ("_FILEEXISTS", "f => 0", 1, 1),
    ("_DIREXISTS", "d => 0", 1, 1),
    ("_CWD$", '() => typeof process !== "undefined" ? process.cwd() : "/"', 0, 0),
    ("_OS$", '() => typeof process !== "undefined" ? process.platform : "web"', 0, 0),
    ("_CLIPBOARD$", '() => ""', 0, 0),
    # Files
    ("FREEFILE", "() => _nextFileNum++", 0, 0),
    ("EOF", "n => _files[n]?.eof ?? true", 1, 1),
    ("LOF", "n => _files[n]?.data?.length ?? 0", 1, 1),
    ("LOC", "n => _files[n]?.pos ?? 0", 1, 1),
    # Booleans
    ("TRUE", "() => -1", 0, 0),
    ("FALSE", "() => 0", 0, 0),
    # Keyboard, mouse and cursor
    ("INKEY$", "INKEY", 0, 0),
    ("_KEYHIT", "_keyhit", 0, 0),
    ("_KEYDOWN", "_keydown", 1, 1),
    ("_MOUSEINPUT", "_mouseinput", 0, 0),
    ("_MOUSEX", "_mousex", 0, 0),
    ("_MOUSEY", "_mousey", 0, 0),
    ("_MOUSEBUTTON", "_mousebutton", 1, 1),
    ("_MOUSEWHEEL", "_mousewheel", 0, 0),
    ("CSRLIN", "() => _cursorRow", 0, 0),
    ("POS", "n => _cursorCol", 0, 1),
    # Colors
    ("_RGB", "(r, g, b) => ((255 << 24) | (r << 16) | (g << 8) | b) >>> 0", 3, 4),
    ("_RGBA", "(r, g, b, a) => ((a << 24) | (r << 16) | (g << 8) | b) >>> 0", 4, 5),
    ("_RGB32", "(r, g, b) => ((255 << 24) | (r << 16) | (g << 8) | b) >>> 0", 3, 3),
    ("_RGBA32", "(r, g, b, a) => ((a << 24) | (r << 16) | (g << 8) | b) >>> 0", 4, 4),
    ("_RED", "c => (c >> 16) & 0xFF", 1, 2),
    ("_GREEN", "c => (c >> 8) & 0xFF", 1, 2),
    ("_BLUE", "c => c & 0xFF", 1, 2),
    ("_ALPHA", "c => (c >> 24) & 0xFF", 1, 2),
    ("_RED32", "c => (c >> 16) & 0xFF", 1, 1),
    ("_GREEN32", "c => (c >> 8) & 0xFF", 1, 1),
    ("_BLUE32", "c => c & 0xFF", 1, 1),
    ("_ALPHA32", "c => (c >> 24) & 0xFF", 1, 1),
    # Screen and images
    ("_WIDTH", "img => _screenWidth", 0, 1),
    ("_HEIGHT", "img => _screenHeight", 0, 1),
    ("_FONTWIDTH", "f => 8", 0, 1),
    ("_FONTHEIGHT", "f => 16", 0, 1),
    ("_NEWIMAGE", "_newimage", 2, 3),
    ("_LOADIMAGE", "_loadimage", 1, 2),
    ("_COPYIMAGE", "_copyimage", 0, 1),
    # Memory stubs
    ("PEEK", "addr => 0", 1, 1),
    ("VARPTR", "v => 0", 1, 1),
    ("VARSEG", "v => 0", 1, 1),
    ("SADD", "s => 0", 1, 1),
    # Sound
    ("_SNDOPEN", "_sndopen", 1, 2),
    ("_SNDLEN", "handle => 0", 1, 1),
    ("_SNDGETPOS", "handle => 0", 1, 1),
    ("_SNDPLAYING", "handle => 0", 1, 1),
    # Error trapping stubs
    ("ERR", "() => 0", 0, 0),
    ("ERL", "() => 0", 0, 0),
    ("_EXIT", "() => 0", 0, 0),
    # Binary conversion stubs
    ("_CV", "(type, str) => 0", 2, 2),
    ("_MK$", '(type, value) => ""', 2, 2),
]

_SUFFIXES = "$%&!#"


def _build_table(rows: list[tuple[str, str, int, int]]) -> dict[str, Builtin]:
    """Build and validate the builtin table; raise ValueError on a bad row."""
    table: dict[str, Builtin] = {}
    for name, template, lo, hi in rows:
        if name != name.upper():
            raise ValueError("builtin name must be upper case: " + name)
        if name in table:
            raise ValueError("duplicate builtin: " + name)
        if not template:
            raise ValueError("empty template for builtin " + name)
        if lo < 0 or hi < lo:
            raise ValueError("bad arity for builtin " + name)
        body = name[:-1] if name[-1] in _SUFFIXES else name
        if not body.replace("_", "A").isalnum():
            raise ValueError("bad builtin name: " + name)
        table[name] = Builtin(name, template, lo, hi)
    return table


BUILTINS: dict[str, Builtin] = _build_table(_BUILTIN_ROWS)


def lookup_builtin(name: str) -> Builtin | None:
    return BUILTINS.get(name.upper())


def is_keyword(word: str) -> bool:
    return word.upper() in KEYWORDS


# Names offered as typo suggestions, in a stable order
VOCABULARY: list[str] = sorted(KEYWORDS | set(BUILTINS))
