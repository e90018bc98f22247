"""Diagnostics: severity-tagged records, a collector, and recovery helpers."""

from __future__ import annotations

# Severity levels
SEV_ERROR = "error"
SEV_WARNING = "warning"
SEV_INFO = "info"
SEV_HINT = "hint"

# Categories
CAT_SYNTAX = "syntax"
CAT_SEMANTIC = "semantic"
CAT_TYPE = "type"
CAT_REFERENCE = "reference"
CAT_RUNTIME = "runtime"

SEVERITIES: list[str] = [SEV_ERROR, SEV_WARNING, SEV_INFO, SEV_HINT]
CATEGORIES: list[str] = [CAT_SYNTAX, CAT_SEMANTIC, CAT_TYPE, CAT_REFERENCE, CAT_RUNTIME]

_MARKERS: dict[str, str] = {
    SEV_ERROR: "E",
    SEV_WARNING: "W",
    SEV_INFO: "I",
    SEV_HINT: "H",
}


class Diagnostic:
    """A single message attached to a source position (1-based line and column)."""

    def __init__(
        self,
        severity: str,
        category: str,
        message: str,
        line: int,
        column: int,
        length: int = 1,
        suggestions: list[str] | None = None,
    ):
        self.severity: str = severity
        self.category: str = category
        self.message: str = message
        self.line: int = line
        self.column: int = column
        self.length: int = length
        self.suggestions: list[str] = list(suggestions) if suggestions else []

    def add_suggestion(self, suggestion: str) -> Diagnostic:
        self.suggestions.append(suggestion)
        return self

    def format(self) -> str:
        marker = _MARKERS.get(self.severity, "*")
        out = (
            "["
            + marker
            + "] ["
            + self.category
            + "] Line "
            + str(self.line)
            + ":"
            + str(self.column)
            + " - "
            + self.message
        )
        if self.suggestions:
            out += "\n  Suggestions:"
            for s in self.suggestions:
                out += "\n    - " + s
        return out

    def to_dict(self) -> dict[str, object]:
        return {
            "severity": self.severity,
            "category": self.category,
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "length": self.length,
            "suggestions": list(self.suggestions),
        }

    def __repr__(self) -> str:
        return (
            "Diagnostic("
            + self.severity
            + ", "
            + self.category
            + ", "
            + repr(self.message)
            + ", "
            + str(self.line)
            + ", "
            + str(self.column)
            + ")"
        )


class DiagnosticCollector:
    """Accumulates diagnostics for one compilation, with running counts."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []
        self.error_count: int = 0
        self.warning_count: int = 0

    def add(self, diag: Diagnostic) -> Diagnostic:
        self.diagnostics.append(diag)
        if diag.severity == SEV_ERROR:
            self.error_count += 1
        elif diag.severity == SEV_WARNING:
            self.warning_count += 1
        return diag

    def error(
        self, category: str, message: str, line: int, column: int, length: int = 1
    ) -> Diagnostic:
        return self.add(Diagnostic(SEV_ERROR, category, message, line, column, length))

    def warning(
        self, category: str, message: str, line: int, column: int, length: int = 1
    ) -> Diagnostic:
        return self.add(
            Diagnostic(SEV_WARNING, category, message, line, column, length)
        )

    def info(
        self, category: str, message: str, line: int, column: int, length: int = 1
    ) -> Diagnostic:
        return self.add(Diagnostic(SEV_INFO, category, message, line, column, length))

    def hint(
        self, category: str, message: str, line: int, column: int, length: int = 1
    ) -> Diagnostic:
        return self.add(Diagnostic(SEV_HINT, category, message, line, column, length))

    def has_errors(self) -> bool:
        return self.error_count > 0

    def all(self) -> list[Diagnostic]:
        return list(self.diagnostics)

    def by_severity(self, severity: str) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == severity]

    def format(self) -> str:
        """Human-readable report of everything collected."""
        if not self.diagnostics:
            return "No issues found"
        out = (
            "Found "
            + str(self.error_count)
            + " error(s) and "
            + str(self.warning_count)
            + " warning(s):\n\n"
        )
        for d in self.diagnostics:
            out += d.format() + "\n\n"
        return out

    def clear(self) -> None:
        self.diagnostics = []
        self.error_count = 0
        self.warning_count = 0

    def __len__(self) -> int:
        return len(self.diagnostics)

    def __iter__(self):
        return iter(self.diagnostics)


# --- Typo suggestions ---


def levenshtein(a: str, b: str) -> int:
    """Edit distance between a and b (insert, delete, substitute)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    i = 1
    while i <= len(a):
        cur = [i] + [0] * len(b)
        j = 1
        while j <= len(b):
            if a[i - 1] == b[j - 1]:
                cur[j] = prev[j - 1]
            else:
                cur[j] = min(prev[j - 1], cur[j - 1], prev[j]) + 1
            j += 1
        prev = cur
        i += 1
    return prev[len(b)]


def suggest(
    word: str, vocabulary, max_distance: int = 2, limit: int = 3
) -> list[str]:
    """Closest vocabulary entries to word, case-insensitive, nearest first."""
    upper = word.upper()
    scored: list[tuple[int, int, str]] = []
    order = 0
    for candidate in vocabulary:
        d = levenshtein(upper, candidate.upper())
        if d <= max_distance:
            scored.append((d, order, candidate))
        order += 1
    scored.sort()
    return [c for _, _, c in scored[:limit]]


# --- Recovery strategies ---
#
# These work on any cursor exposing at_end(), at_stmt_end(), current()
# and advance().


def skip_to_statement_end(cursor) -> None:
    while not cursor.at_end() and not cursor.at_stmt_end():
        cursor.advance()


def skip_to_closing_paren(cursor) -> None:
    """Advance past the ')' matching an already-consumed '('."""
    depth = 1
    while not cursor.at_end() and depth > 0:
        tok = cursor.current()
        if tok.kind == "PUNCTUATION" and tok.text == "(":
            depth += 1
        elif tok.kind == "PUNCTUATION" and tok.text == ")":
            depth -= 1
        cursor.advance()


def skip_to_operator(cursor) -> None:
    while not cursor.at_end() and not cursor.at_stmt_end():
        kind = cursor.current().kind
        if kind == "OPERATOR" or kind == "PUNCTUATION":
            return
        cursor.advance()
