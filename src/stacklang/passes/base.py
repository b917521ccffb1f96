"""
Base Pass System

Passes run over the syntax tree in dependency order and leave their results
in the per-compilation CompilationContext.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Type

from ..shared.errors import ErrorReporter
from ..shared.nodes import Program


class CompilationContext:
    """
    Compilation context - single source of truth for one compilation.

    - Analysis results are stored here, keyed by pass class (not in passes)
    - Diagnostics go to the shared ErrorReporter
    - Options are read-only flags set by the driver
    """

    def __init__(self, trace_rules: bool = False):
        self._analysis_results: Dict[Type['BasePass'], Any] = {}

        # Source information
        self.source_files: Dict[str, str] = {}

        # Error reporter
        self.reporter: ErrorReporter = ErrorReporter(self.source_files)

        self.trace_rules = trace_rules

    def get_analysis(self, pass_class: Type['BasePass']) -> Any:
        """Get analysis results from a pass"""
        if pass_class not in self._analysis_results:
            raise RuntimeError(f"Analysis {pass_class.__name__} not available")
        return self._analysis_results[pass_class]

    def has_analysis(self, pass_class: Type['BasePass']) -> bool:
        return pass_class in self._analysis_results

    def set_analysis(self, pass_class: Type['BasePass'], results: Any) -> None:
        """Store analysis results"""
        self._analysis_results[pass_class] = results


class BasePass(ABC):
    """
    Base class for all passes.

    - Explicit dependencies via `requires`
    - Pass results stored in CompilationContext (not in pass)
    - The tree is read-only; passes return it unchanged
    """
    requires: List[Type['BasePass']] = []  # Dependencies (empty by default)

    @abstractmethod
    def run(self, tree: Program, ctx: CompilationContext) -> Program:
        raise NotImplementedError


class PassManager:
    """
    Pass manager with dependency resolution.

    - Automatic dependency resolution (topological sort)
    - Passes run in dependency order
    - Single CompilationContext shared across all passes
    - A pass whose dependency reported errors is skipped
    """

    def __init__(self):
        self.passes: List[Type[BasePass]] = []
        self._dependency_graph: Dict[Type[BasePass], set] = {}

    def register_pass(self, pass_class: Type[BasePass]) -> None:
        """Register a pass"""
        self.passes.append(pass_class)
        self._dependency_graph[pass_class] = set(pass_class.requires)

    def run_all(self, tree: Program, ctx: CompilationContext) -> Program:
        """Run all passes in dependency order, stopping at the first pass that reports errors."""
        for pass_class in self._topological_sort():
            if ctx.reporter.has_errors():
                break
            tree = pass_class().run(tree, ctx)
        return tree

    def _topological_sort(self) -> List[Type[BasePass]]:
        """Topological sort of passes by dependencies"""
        for pass_class, deps in self._dependency_graph.items():
            missing = [d.__name__ for d in deps if d not in self._dependency_graph]
            if missing:
                raise RuntimeError(f"{pass_class.__name__} requires unregistered pass(es): {', '.join(missing)}")

        in_degree = {p: len(self._dependency_graph[p]) for p in self.passes}
        queue = [p for p, degree in in_degree.items() if degree == 0]
        result = []

        while queue:
            pass_class = queue.pop(0)
            result.append(pass_class)

            for other_pass in self.passes:
                if pass_class in self._dependency_graph[other_pass]:
                    in_degree[other_pass] -= 1
                    if in_degree[other_pass] == 0:
                        queue.append(other_pass)

        if len(result) != len(self.passes):
            raise RuntimeError("Circular dependency detected in passes")

        return result
