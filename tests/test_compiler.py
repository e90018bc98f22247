"""Compiler facade tests."""

from concurrent.futures import ThreadPoolExecutor

import pytest

import qbnexus
from qbnexus import compiler as compiler_module
from qbnexus.compiler import Compiler, CompilerOptions
from qbnexus.diagnostics import SEV_ERROR, SEV_INFO


def test_compile_success(compiler: Compiler):
    result = compiler.compile('PRINT "Hi"\n')
    assert result.success
    assert not result.cached
    assert result.errors() == []
    assert '  _print("Hi", true);' in result.code.split("\n")
    assert result.metadata["target"] == "node"
    assert result.metadata["token_count"] == 4
    assert result.metadata["line_count"] == 2
    assert result.metadata["source_size"] == 11


def test_identical_source_is_served_from_cache(compiler: Compiler):
    first = compiler.compile("PRINT 1")
    second = compiler.compile("PRINT 1")
    assert second.cached
    assert second.code == first.code
    assert compiler.stats()["cache"]["hits"] == 1


def test_target_is_part_of_the_cache_key(compiler: Compiler):
    compiler.compile("PRINT 1", "node")
    web = compiler.compile("PRINT 1", "web")
    assert not web.cached
    assert "window.runtime" in web.code


def test_cached_result_keeps_warnings(compiler: Compiler):
    compiler.compile("GOTO 10")
    again = compiler.compile("GOTO 10")
    assert again.cached
    assert [d.message for d in again.warnings()] == [
        "GOTO 10: labels and GOTO are not supported when transpiling to JavaScript"
    ]


def test_failed_compilations_are_not_cached(compiler: Compiler):
    first = compiler.compile("NEXT")
    second = compiler.compile("NEXT")
    assert not first.success
    assert not second.cached
    assert len(compiler.cache) == 0
    assert compiler.stats()["failures"] == 2


def test_cache_disabled():
    c = Compiler(CompilerOptions(cache=False))
    c.compile("PRINT 1")
    assert not c.compile("PRINT 1").cached


def test_unknown_target_raises(compiler: Compiler):
    with pytest.raises(ValueError, match="unknown target 'cobol'"):
        compiler.compile("PRINT 1", "cobol")
    with pytest.raises(ValueError):
        Compiler(CompilerOptions(target="cobol"))


def test_default_target_comes_from_options():
    c = Compiler(CompilerOptions(target="web"))
    assert c.compile("PRINT 1").metadata["target"] == "web"


def test_diagnostics_are_capped():
    c = Compiler(CompilerOptions(max_errors=2))
    result = c.compile("NEXT\nNEXT\nNEXT\nNEXT\n")
    assert len(result.diagnostics) == 3
    note = result.diagnostics[-1]
    assert note.severity == SEV_INFO
    assert note.message == "Too many diagnostics; 2 more not shown"
    assert note.line == 2
    assert not result.success


def test_internal_error_becomes_a_diagnostic(compiler: Compiler, monkeypatch):
    class Exploding:
        def __init__(self, *args):
            pass

        def parse(self):
            raise RuntimeError("boom")

    monkeypatch.setattr(compiler_module, "Parser", Exploding)
    result = compiler.compile("PRINT 1")
    assert not result.success
    assert result.code == ""
    assert [d.message for d in result.diagnostics] == ["Internal compiler error: boom"]
    assert result.diagnostics[0].severity == SEV_ERROR


def test_arena_is_reused(compiler: Compiler):
    compiler.compile("a = 1 + 2 + 3")
    capacity = compiler.arena.capacity()
    compiler.compile("b = 4")
    assert compiler.arena.capacity() == capacity


def test_to_dict(compiler: Compiler):
    d = compiler.compile("GOTO 10").to_dict()
    assert d["success"] is True
    assert d["diagnostics"] == [
        {
            "severity": "warning",
            "category": "semantic",
            "message": "GOTO 10: labels and GOTO are not supported when transpiling to JavaScript",
            "line": 1,
            "column": 6,
        }
    ]


def test_format_diagnostics(compiler: Compiler):
    assert compiler.compile("PRINT 1").format_diagnostics() == "No issues found"
    text = compiler.compile("NEXT").format_diagnostics()
    assert text.startswith("Found 1 error(s) and 0 warning(s):")
    assert "[E] [syntax] Line 1:1 - NEXT without FOR" in text


def test_lint(compiler: Compiler):
    assert compiler.lint("PRINT 1") == []
    assert compiler.lint("GOTO 10\nNEXT") == [
        {
            "line": 1,
            "column": 6,
            "message": "GOTO 10: labels and GOTO are not supported when transpiling to JavaScript",
            "severity": "warning",
        },
        {"line": 2, "column": 1, "message": "NEXT without FOR", "severity": "error"},
    ]


def test_stats_and_format(compiler: Compiler):
    compiler.compile("PRINT 1")
    compiler.compile("PRINT 1")
    compiler.compile("NEXT")
    stats = compiler.stats()
    assert stats["compilations"] == 2
    assert stats["failures"] == 1
    assert stats["average_ms"] >= 0.0
    text = compiler.format_stats()
    assert text.startswith("Compilations: 2 (1 failed)\n")
    assert "Cache: 1 hits, 2 misses, 1/100 entries, hit rate 33.3%" in text


def test_reset_and_clear(compiler: Compiler):
    compiler.compile("PRINT 1")
    compiler.compile("PRINT 1")
    compiler.reset_stats()
    compiler.clear_cache()
    stats = compiler.stats()
    assert stats["compilations"] == 0
    assert stats["cache"]["hits"] == 0
    assert stats["cache"]["size"] == 0


def test_concurrent_compiles(compiler: Compiler):
    sources = ["PRINT " + str(i) + "\n" for i in range(20)]
    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(compiler.compile, sources))
    for i, result in enumerate(results):
        assert result.success
        assert "  _print(" + str(i) + ", true);" in result.code.split("\n")


def test_module_level_helpers():
    assert "_print(1, true);" in qbnexus.transpile("PRINT 1")
    assert qbnexus.compile("PRINT 1", "web").metadata["target"] == "web"
    assert qbnexus.lint("PRINT 1") == []
    assert qbnexus.compiler.default_compiler() is qbnexus.compiler.default_compiler()
