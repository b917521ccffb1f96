"""
Tests for compile-time scopes.
"""

import pytest

from stacklang.shared.scope import ScopeKind, ScopeRedefinitionError, ScopeStack
from stacklang.shared.types import Type


class TestScopeStack:
    def test_define_and_lookup(self):
        scopes = ScopeStack()
        with scopes.scope(ScopeKind.PROGRAM):
            scopes.define("a", Type.INT)
            assert scopes.lookup("a") is Type.INT
            assert scopes.is_declared("a")
        assert scopes.depth == 0

    def test_lookup_sees_enclosing_scopes(self):
        scopes = ScopeStack()
        with scopes.scope(ScopeKind.PROGRAM):
            scopes.define("a", Type.FLOAT)
            with scopes.scope(ScopeKind.BLOCK):
                assert scopes.depth == 2
                assert scopes.lookup("a") is Type.FLOAT

    def test_no_shadowing(self):
        scopes = ScopeStack()
        with scopes.scope(ScopeKind.PROGRAM):
            scopes.define("a", Type.INT)
            with scopes.scope(ScopeKind.BLOCK):
                with pytest.raises(ScopeRedefinitionError) as exc_info:
                    scopes.define("a", Type.STRING)
                assert exc_info.value.name == "a"

    def test_closed_scope_releases_names(self):
        scopes = ScopeStack()
        with scopes.scope(ScopeKind.PROGRAM):
            with scopes.scope(ScopeKind.BLOCK):
                scopes.define("t", Type.INT)
            assert scopes.lookup("t") is None
            with scopes.scope(ScopeKind.BLOCK):
                scopes.define("t", Type.BOOL)
                assert scopes.lookup("t") is Type.BOOL

    def test_scope_is_popped_on_exception(self):
        scopes = ScopeStack()
        with pytest.raises(ValueError):
            with scopes.scope(ScopeKind.PROGRAM):
                raise ValueError("boom")
        assert scopes.depth == 0

    def test_define_without_scope(self):
        with pytest.raises(RuntimeError):
            ScopeStack().define("a", Type.INT)

    def test_exit_without_scope(self):
        with pytest.raises(RuntimeError):
            ScopeStack().exit_scope()
