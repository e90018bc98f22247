"""Scope stack tests."""

import pytest

from qbnexus.frontend.scope import SCOPE_GLOBAL, SCOPE_SUB, ScopeStack, Variable


def test_global_lookup_is_case_insensitive():
    scopes = ScopeStack()
    scopes.declare("Total", Variable("Total"))
    assert scopes.lookup("TOTAL").js_name == "Total"
    assert scopes.visible("total")
    assert scopes.current.kind == SCOPE_GLOBAL


def test_procedure_cannot_see_module_variables():
    scopes = ScopeStack()
    scopes.declare("x", Variable("x"))
    scopes.push(SCOPE_SUB, "Show", 0, 1)
    assert scopes.lookup("x") is None


def test_procedure_sees_shared_variables():
    scopes = ScopeStack()
    var = scopes.declare("counter", Variable("counter"))
    scopes.share("counter", var)
    scopes.push(SCOPE_SUB, "AddOne", 0, 1)
    assert scopes.lookup("COUNTER") is var


def test_local_shadows_shared():
    scopes = ScopeStack()
    scopes.share("n", scopes.declare("n", Variable("n")))
    scopes.push(SCOPE_SUB, "S", 0, 1)
    local = scopes.declare("n", Variable("n"))
    assert scopes.lookup("n") is local
    scopes.pop()
    assert scopes.lookup("n") is not local


def test_first_declaration_wins():
    scopes = ScopeStack()
    first = scopes.declare("a", Variable("a", is_string=False))
    again = scopes.declare("A", Variable("A", is_array=True))
    assert again is first
    assert first.js_name == "a"
    assert first.is_array


def test_share_keeps_first():
    scopes = ScopeStack()
    one = Variable("one")
    scopes.share("v", one)
    scopes.share("V", Variable("two"))
    assert scopes.shared["V"] is one


def test_forget():
    scopes = ScopeStack()
    scopes.declare("a", Variable("a"))
    scopes.forget("A")
    assert scopes.lookup("a") is None


def test_pop_global_raises():
    with pytest.raises(IndexError):
        ScopeStack().pop()


def test_push_and_hoist():
    scopes = ScopeStack(mark=3, indent=1)
    assert scopes.root.mark == 3
    scope = scopes.push(SCOPE_SUB, "S", 10, 2)
    scopes.hoist("let x = 0;")
    assert scope.hoisted == ["let x = 0;"]
    assert scopes.root.hoisted == []
    assert scopes.depth() == 2
    assert not scopes.is_global()
