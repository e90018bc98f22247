"""Shared utilities for JavaScript code emission."""

from __future__ import annotations

# JavaScript words and runtime globals a QBasic name must not shadow
JS_RESERVED = frozenset(
    {
        "arguments",
        "async",
        "await",
        "break",
        "catch",
        "class",
        "const",
        "debugger",
        "default",
        "delete",
        "enum",
        "eval",
        "export",
        "extends",
        "false",
        "finally",
        "function",
        "implements",
        "import",
        "in",
        "instanceof",
        "interface",
        "let",
        "new",
        "null",
        "of",
        "package",
        "private",
        "protected",
        "public",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "undefined",
        "var",
        "void",
        "with",
        "yield",
        "NaN",
        "Infinity",
        "Array",
        "Math",
        "Number",
        "Object",
        "Promise",
        "String",
        "console",
        "process",
        "require",
        "window",
        "rl",
        "readline",
        "INSTR",
        "INKEY",
        "TRUE",
        "FALSE",
    }
)

# Type suffix -> identifier tail
SUFFIX_NAMES: dict[str, str] = {
    "%": "_int",
    "&": "_lng",
    "!": "_sng",
    "#": "_dbl",
}


def escape_string(value: str) -> str:
    """Escape a string for use in a string literal (without quotes)."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
        .replace("\x00", "\\x00")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def string_literal(value: str) -> str:
    return '"' + escape_string(value) + '"'


def safe_name(name: str) -> str:
    """Rename JavaScript reserved words to safe alternatives."""
    if name in JS_RESERVED:
        return name + "_"
    return name


def mangle(name: str) -> str:
    """Map a QBasic identifier (with optional type suffix) to a JavaScript one.

    The string suffix '$' is already legal JavaScript and is kept; the
    numeric suffixes become a readable tail so that a%, a& and a# stay
    distinct variables.
    """
    if name and name[-1] in SUFFIX_NAMES:
        return name[:-1] + SUFFIX_NAMES[name[-1]]
    return safe_name(name)


def is_string_name(name: str) -> bool:
    return name.endswith("$")


def default_value(name: str) -> str:
    """Initial value of an undeclared QBasic variable."""
    if is_string_name(name):
        return '""'
    return "0"


class CodeBuffer:
    """Line buffer with indentation tracking and back-patching."""

    def __init__(self, indent_str: str = "  ") -> None:
        self.indent: int = 0
        self.lines: list[str] = []
        self._indent_str = indent_str

    def line(self, text: str = "") -> None:
        """Emit a line with current indentation."""
        if text:
            self.lines.append(self._indent_str * self.indent + text)
        else:
            self.lines.append("")

    def raw(self, block: str) -> None:
        """Emit a pre-formatted block verbatim."""
        self.lines.extend(block.split("\n"))

    def dedent(self) -> None:
        if self.indent > 0:
            self.indent -= 1

    def mark(self) -> int:
        return len(self.lines)

    def insert(self, at: int, texts: list[str], indent: int) -> None:
        """Insert lines at a previously taken mark."""
        pad = self._indent_str * indent
        self.lines[at:at] = [pad + t for t in texts]

    def output(self) -> str:
        """Return the accumulated output as a string."""
        return "\n".join(self.lines)

    def __len__(self) -> int:
        return len(self.lines)
