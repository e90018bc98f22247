"""Compiler facade: source text in, JavaScript and diagnostics out."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field

from .backend.javascript import TARGET_NODE, TARGETS
from .cache import DEFAULT_CAPACITY, CompilationCache
from .diagnostics import (
    CAT_RUNTIME,
    SEV_ERROR,
    SEV_INFO,
    SEV_WARNING,
    Diagnostic,
    DiagnosticCollector,
)
from .frontend.parse import Parser
from .frontend.tokens import TokenArena, tokenize

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    target: str = TARGET_NODE
    cache: bool = True
    cache_size: int = DEFAULT_CAPACITY
    max_errors: int = 100


@dataclass
class CompilationResult:
    """Output of one compile() call."""

    code: str
    diagnostics: list[Diagnostic] = field(default_factory=list)
    success: bool = True
    cached: bool = False
    metadata: dict[str, object] = field(default_factory=dict)

    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == SEV_ERROR]

    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == SEV_WARNING]

    def format_diagnostics(self) -> str:
        collector = DiagnosticCollector()
        for d in self.diagnostics:
            collector.add(d)
        return collector.format()

    def to_dict(self) -> dict[str, object]:
        return {
            "code": self.code,
            "diagnostics": [
                {
                    "severity": d.severity,
                    "category": d.category,
                    "message": d.message,
                    "line": d.line,
                    "column": d.column,
                }
                for d in self.diagnostics
            ],
            "success": self.success,
        }


def _check_target(target: str) -> None:
    if target not in TARGETS:
        raise ValueError("unknown target '" + target + "'")


class Compiler:
    """Owns a compilation cache and a token arena; compiles QBasic to JavaScript."""

    def __init__(
        self,
        options: CompilerOptions | None = None,
        cache: CompilationCache | None = None,
    ):
        self.options: CompilerOptions = options if options is not None else CompilerOptions()
        _check_target(self.options.target)
        if cache is None:
            cache = CompilationCache(self.options.cache_size, self.options.cache)
        self.cache: CompilationCache = cache
        self.arena: TokenArena = TokenArena()
        self._lock = threading.Lock()
        self.compilations: int = 0
        self.failures: int = 0
        self.total_ms: float = 0.0

    def compile(self, source: str, target: str | None = None) -> CompilationResult:
        """Transpile source; never raises for bad input."""
        if target is None:
            target = self.options.target
        _check_target(target)
        entry = self.cache.get(source, target)
        if entry is not None:
            return CompilationResult(
                entry.code,
                list(entry.diagnostics),
                success=True,
                cached=True,
                metadata={"target": target, "source_size": len(source)},
            )
        started = time.perf_counter()
        collector = DiagnosticCollector()
        code = ""
        token_count = 0
        with self._lock:
            self.arena.reset()
            try:
                tokens = tokenize(source, collector, self.arena)
                token_count = len(tokens)
                code = Parser(tokens, target, collector).parse()
            except Exception as e:
                logger.exception("internal compiler error")
                collector.error(CAT_RUNTIME, "Internal compiler error: " + str(e), 1, 1)
                code = ""
        elapsed = (time.perf_counter() - started) * 1000.0
        diagnostics = self._limit(collector.all())
        success = not any(d.severity == SEV_ERROR for d in diagnostics)
        self.compilations += 1
        self.total_ms += elapsed
        if not success:
            self.failures += 1
        logger.debug(
            "compiled %d bytes for %s in %.2f ms (%d diagnostics)",
            len(source),
            target,
            elapsed,
            len(diagnostics),
        )
        if success:
            self.cache.set(source, target, code, diagnostics)
        return CompilationResult(
            code,
            diagnostics,
            success=success,
            cached=False,
            metadata={
                "target": target,
                "time_ms": elapsed,
                "token_count": token_count,
                "line_count": source.count("\n") + 1,
                "source_size": len(source),
            },
        )

    def _limit(self, diagnostics: list[Diagnostic]) -> list[Diagnostic]:
        limit = self.options.max_errors
        if len(diagnostics) <= limit:
            return diagnostics
        kept = diagnostics[:limit]
        last = kept[-1]
        kept.append(
            Diagnostic(
                SEV_INFO,
                CAT_RUNTIME,
                "Too many diagnostics; "
                + str(len(diagnostics) - limit)
                + " more not shown",
                last.line,
                last.column,
            )
        )
        return kept

    def lint(self, source: str) -> list[dict[str, object]]:
        """Errors and warnings of source as plain dicts."""
        result = self.compile(source)
        out: list[dict[str, object]] = []
        for d in result.diagnostics:
            if d.severity != SEV_ERROR and d.severity != SEV_WARNING:
                continue
            out.append(
                {
                    "line": d.line,
                    "column": d.column,
                    "message": d.message,
                    "severity": d.severity,
                }
            )
        return out

    def stats(self) -> dict[str, object]:
        average = self.total_ms / self.compilations if self.compilations else 0.0
        return {
            "compilations": self.compilations,
            "failures": self.failures,
            "total_ms": self.total_ms,
            "average_ms": average,
            "cache": self.cache.stats(),
        }

    def clear_cache(self) -> None:
        self.cache.clear()

    def reset_stats(self) -> None:
        self.compilations = 0
        self.failures = 0
        self.total_ms = 0.0
        self.cache.reset_stats()

    def format_stats(self) -> str:
        s = self.stats()
        c = s["cache"]
        return (
            "Compilations: "
            + str(s["compilations"])
            + " ("
            + str(s["failures"])
            + " failed)\n"
            + "Average time: "
            + format(s["average_ms"], ".2f")
            + " ms\n"
            + "Cache: "
            + str(c["hits"])
            + " hits, "
            + str(c["misses"])
            + " misses, "
            + str(c["size"])
            + "/"
            + str(c["capacity"])
            + " entries, hit rate "
            + format(c["hit_rate"] * 100.0, ".1f")
            + "%"
        )


_default: Compiler | None = None


def default_compiler() -> Compiler:
    global _default
    if _default is None:
        _default = Compiler()
    return _default


def compile(source: str, target: str = TARGET_NODE) -> CompilationResult:
    return default_compiler().compile(source, target)


def lint(source: str) -> list[dict[str, object]]:
    return default_compiler().lint(source)
