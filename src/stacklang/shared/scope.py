"""
Scope resolution: compile-time variable namespaces.

Stack of scopes, each scope is name → declared Type. A scope is pushed for the
program and for every block. A name may be bound in at most one of the open
scopes: declaring it again in a nested block is a redefinition, not a shadow.
Sibling blocks may reuse a name because the earlier scope is already closed.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generator, List, Optional

from .types import Type


class ScopeRedefinitionError(ValueError):
    """Raised when a name is already bound in one of the open scopes."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"redefinition of '{name}' in an enclosing or the same scope")


class ScopeKind(Enum):
    PROGRAM = "program"
    BLOCK = "block"


@dataclass
class Scope:
    """One scope level: name → declared type."""
    kind: ScopeKind
    _bindings: Dict[str, Type] = field(default_factory=dict)

    def defines(self, name: str) -> bool:
        return name in self._bindings

    def get(self, name: str) -> Optional[Type]:
        return self._bindings.get(name)

    def define(self, name: str, declared_type: Type) -> None:
        self._bindings[name] = declared_type


class ScopeStack:
    """
    Scope stack. enter_scope = push, exit_scope = pop.
    define() binds in the innermost scope; lookup() searches every open scope.
    """

    def __init__(self) -> None:
        self._stack: List[Scope] = []

    def enter_scope(self, kind: ScopeKind) -> Scope:
        scope = Scope(kind=kind)
        self._stack.append(scope)
        return scope

    def exit_scope(self) -> None:
        if not self._stack:
            raise RuntimeError("Cannot exit scope: no active scope")
        self._stack.pop()

    @contextmanager
    def scope(self, kind: ScopeKind) -> Generator[Scope, None, None]:
        """Context manager: enter on __enter__, exit on __exit__ (with stack.scope(...))."""
        s = self.enter_scope(kind)
        try:
            yield s
        finally:
            self.exit_scope()

    @property
    def depth(self) -> int:
        return len(self._stack)

    def is_declared(self, name: str) -> bool:
        return any(s.defines(name) for s in self._stack)

    def define(self, name: str, declared_type: Type) -> None:
        """Bind name in the innermost scope; raises if any open scope already has it."""
        if not self._stack:
            raise RuntimeError("Cannot define variable: no active scope")
        if self.is_declared(name):
            raise ScopeRedefinitionError(name)
        self._stack[-1].define(name, declared_type)

    def lookup(self, name: str) -> Optional[Type]:
        """Declared type of name, or None when it is not visible."""
        for s in reversed(self._stack):
            if s.defines(name):
                return s.get(name)
        return None
