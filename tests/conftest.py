"""
Pytest configuration and shared fixtures for all stacklang tests.

The compiler and runtime are stateless between calls (fresh context per
compilation, fresh VM per execution), so one instance is shared per session.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from stacklang.compiler.driver import CompilerDriver
from stacklang.runtime.runtime import StackLangRuntime


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_compiler():
    """
    Session-scoped compiler shared across ALL tests.

    The parser is built once with Lark native caching; every compile() gets
    its own CompilationContext, so nothing leaks between tests.
    """
    return CompilerDriver()


@pytest.fixture(scope="session")
def session_runtime():
    """Session-scoped runtime; each execute() runs a fresh VM."""
    return StackLangRuntime(max_steps=100_000, read_attempts=3)


@pytest.fixture(scope="class")
def compiler(session_compiler):
    """Class-scoped compiler - shared across all tests in a class."""
    return session_compiler


@pytest.fixture
def runtime(session_runtime):
    return session_runtime


# =============================================================================
# Helper fixtures
# =============================================================================

@pytest.fixture
def compile_and_execute(session_compiler, session_runtime):
    """compile_and_execute(source, stdin="") bound to the session instances."""
    from tests.test_utils import compile_and_execute as _run

    def _compile_and_execute(source: str, stdin: str = "", source_file: str = "<test>"):
        return _run(source, session_compiler, session_runtime, stdin=stdin, source_file=source_file)

    return _compile_and_execute


def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
