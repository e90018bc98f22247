"""Code emission utility tests."""

import pytest

from qbnexus.backend.javascript import TARGET_WEB, JsTarget
from qbnexus.backend.util import (
    CodeBuffer,
    default_value,
    escape_string,
    is_string_name,
    mangle,
    safe_name,
    string_literal,
)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("x", "x"),
        ("Name$", "Name$"),
        ("count%", "count_int"),
        ("big&", "big_lng"),
        ("ratio!", "ratio_sng"),
        ("total#", "total_dbl"),
        ("class", "class_"),
        ("console", "console_"),
        ("rl", "rl_"),
    ],
)
def test_mangle(name: str, expected: str):
    assert mangle(name) == expected


def test_suffixes_keep_names_distinct():
    assert len({mangle("a"), mangle("a%"), mangle("a&"), mangle("a#"), mangle("a$")}) == 5


def test_safe_name_leaves_ordinary_names():
    assert safe_name("total") == "total"


def test_escape_string():
    assert escape_string('say "hi"\\n') == 'say \\"hi\\"\\\\n'
    assert escape_string("a\nb\tc\r") == "a\\nb\\tc\\r"
    assert escape_string("\u2028") == "\\u2028"


def test_string_literal():
    assert string_literal("it's") == '"it\'s"'


def test_default_value():
    assert default_value("a$") == '""'
    assert default_value("a%") == "0"
    assert is_string_name("a$")
    assert not is_string_name("a")


def test_code_buffer_indents():
    buf = CodeBuffer()
    buf.line("if (x) {")
    buf.indent += 1
    buf.line("y();")
    buf.dedent()
    buf.line("}")
    buf.line()
    assert buf.output() == "if (x) {\n  y();\n}\n"


def test_code_buffer_dedent_stops_at_zero():
    buf = CodeBuffer()
    buf.dedent()
    assert buf.indent == 0


def test_code_buffer_insert_at_mark():
    buf = CodeBuffer()
    buf.line("first();")
    mark = buf.mark()
    buf.line("last();")
    buf.insert(mark, ["let a = 0;", "let b = 0;"], 1)
    assert buf.output() == "first();\n  let a = 0;\n  let b = 0;\nlast();"
    assert len(buf) == 4


def test_code_buffer_raw_is_not_indented():
    buf = CodeBuffer()
    buf.indent = 2
    buf.raw("a\nb")
    assert buf.lines == ["a", "b"]


def test_js_target_rejects_unknown():
    with pytest.raises(ValueError):
        JsTarget("cobol")


def test_web_postamble_has_no_readline():
    buf = CodeBuffer()
    JsTarget(TARGET_WEB).emit_postamble(buf)
    out = buf.output()
    assert "rl.close()" not in out
    assert "process.exitCode" not in out
    assert out.endswith("})();")
