"""Lexical scopes for QBasic variables.

QBasic has two levels of visibility: the module level and one level per
SUB/FUNCTION. A procedure cannot see module-level variables unless they
were declared with DIM SHARED, REDIM SHARED or COMMON SHARED. Names are
case-insensitive; each scope maps the upper-cased QBasic name to the
variable it was first declared as.
"""

from __future__ import annotations

from dataclasses import dataclass

SCOPE_GLOBAL = "global"
SCOPE_SUB = "sub"
SCOPE_FUNCTION = "function"


@dataclass
class Variable:
    """A declared QBasic variable and the JavaScript name it is emitted as."""

    js_name: str
    is_array: bool = False
    is_string: bool = False
    type_name: str | None = None


class Scope:
    """Declared names of one procedure (or the module level)."""

    def __init__(self, kind: str, name: str | None, mark: int, indent: int):
        self.kind: str = kind
        self.name: str | None = name
        self.vars: dict[str, Variable] = {}
        # declarations spliced in at `mark` when the scope closes
        self.hoisted: list[str] = []
        self.mark: int = mark
        self.indent: int = indent
        # block-stack depth at which statements sit directly in this scope
        self.base_depth: int = 0


class ScopeStack:
    """Stack of scopes plus the module-wide set of SHARED names."""

    def __init__(self, mark: int = 0, indent: int = 0) -> None:
        self.scopes: list[Scope] = [Scope(SCOPE_GLOBAL, None, mark, indent)]
        self.shared: dict[str, Variable] = {}

    @property
    def current(self) -> Scope:
        return self.scopes[-1]

    @property
    def root(self) -> Scope:
        return self.scopes[0]

    def is_global(self) -> bool:
        return len(self.scopes) == 1

    def depth(self) -> int:
        return len(self.scopes)

    def push(self, kind: str, name: str, mark: int, indent: int) -> Scope:
        scope = Scope(kind, name, mark, indent)
        self.scopes.append(scope)
        return scope

    def pop(self) -> Scope:
        if self.is_global():
            raise IndexError("cannot pop the global scope")
        return self.scopes.pop()

    def lookup(self, name: str) -> Variable | None:
        """The variable `name` refers to from the current scope, or None."""
        key = name.upper()
        found = self.current.vars.get(key)
        if found is not None:
            return found
        if self.is_global():
            return None
        return self.shared.get(key)

    def visible(self, name: str) -> bool:
        return self.lookup(name) is not None

    def declare(self, name: str, var: Variable) -> Variable:
        """Record name in the current scope; the first declaration wins."""
        key = name.upper()
        existing = self.current.vars.get(key)
        if existing is not None:
            if var.is_array:
                existing.is_array = True
            return existing
        self.current.vars[key] = var
        return var

    def forget(self, name: str) -> None:
        self.current.vars.pop(name.upper(), None)

    def share(self, name: str, var: Variable) -> None:
        key = name.upper()
        if key not in self.shared:
            self.shared[key] = var

    def hoist(self, declaration: str) -> None:
        """Queue a declaration for the top of the current scope."""
        self.current.hoisted.append(declaration)
