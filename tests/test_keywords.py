"""Keyword and builtin table tests."""

import pytest

from qbnexus.frontend.keywords import (
    BUILTINS,
    KEYWORDS,
    VOCABULARY,
    Builtin,
    _build_table,
    is_keyword,
    lookup_builtin,
)


def test_lookup_is_case_insensitive():
    builtin = lookup_builtin("left$")
    assert builtin is not None
    assert builtin.name == "LEFT$"


def test_lookup_unknown():
    assert lookup_builtin("NOPE") is None


def test_plain_template_is_called_directly():
    assert BUILTINS["ABS"].call(["x"]) == "Math.abs(x)"


def test_arrow_template_is_parenthesized():
    assert BUILTINS["LEN"].call(['"abc"']) == '(s => String(s).length)("abc")'


def test_arity():
    mid = BUILTINS["MID$"]
    assert not mid.accepts(1)
    assert mid.accepts(2)
    assert mid.accepts(3)
    assert not mid.accepts(4)
    assert BUILTINS["TIMER"].accepts(0)


def test_every_builtin_is_upper_case():
    for name, builtin in BUILTINS.items():
        assert name == builtin.name == name.upper()
        assert builtin.min_args <= builtin.max_args


def test_is_keyword():
    assert is_keyword("print")
    assert is_keyword("END")
    assert not is_keyword("Hello")


def test_unimplemented_words_stay_usable_as_names():
    for word in ("POINT", "EQV", "IMP", "USR", "LPOS", "_TITLE$", "_LOADFONT"):
        assert not is_keyword(word)


def test_vocabulary_is_sorted_and_complete():
    assert VOCABULARY == sorted(VOCABULARY)
    assert "PRINT" in VOCABULARY
    assert "LEFT$" in VOCABULARY
    assert len(VOCABULARY) == len(KEYWORDS | set(BUILTINS))


@pytest.mark.parametrize(
    "rows,message",
    [
        ([("abs", "Math.abs", 1, 1)], "upper case"),
        ([("ABS", "Math.abs", 1, 1), ("ABS", "Math.abs", 1, 1)], "duplicate"),
        ([("ABS", "", 1, 1)], "empty template"),
        ([("ABS", "Math.abs", 2, 1)], "bad arity"),
        ([("A-B", "f", 0, 0)], "bad builtin name"),
    ],
)
def test_build_table_rejects_bad_rows(rows, message):
    with pytest.raises(ValueError, match=message):
        _build_table(rows)


def test_build_table_accepts_suffixed_names():
    table = _build_table([("_TRIM$", "s => s", 1, 1)])
    assert table["_TRIM$"] == Builtin("_TRIM$", "s => s", 1, 1)
