"""
Compiler Driver

Orchestrates parse -> type check -> code generation for one source file and
packages the outcome as a CompilationResult.
"""

import logging
from typing import FrozenSet, List, Optional

from ..bytecode.instructions import Instruction
from ..frontend.parser import Parser, ParseError
from ..passes.base import CompilationContext, PassManager
from ..passes.codegen import CodeGenPass
from ..passes.type_check import TypeAnnotations, TypeCheckPass
from ..shared.errors import Error
from ..shared.nodes import Program

logger = logging.getLogger("stacklang.compiler.driver")


class CompilationResult:
    """Compilation result"""
    def __init__(
        self,
        ctx: CompilationContext,
        tree: Optional[Program] = None,
        instructions: Optional[List[Instruction]] = None,
        success: bool = False,
    ):
        self.ctx = ctx
        self.tree = tree
        self.instructions = instructions if instructions is not None else []
        self.success = success

    @property
    def annotations(self) -> Optional[TypeAnnotations]:
        if self.ctx.has_analysis(TypeCheckPass):
            return self.ctx.get_analysis(TypeCheckPass).annotations
        return None

    @property
    def errors(self) -> FrozenSet[str]:
        """De-duplicated error messages."""
        return self.ctx.reporter.messages

    @property
    def diagnostics(self) -> List[Error]:
        return list(self.ctx.reporter.errors)

    def has_errors(self) -> bool:
        return self.ctx.reporter.has_errors()

    def format_errors(self, color: Optional[bool] = False) -> str:
        """Rendered diagnostics, or an empty string when there are none."""
        if not self.has_errors():
            return ""
        return self.ctx.reporter.format_all_errors(color=color)


class CompilerDriver:
    """
    Compiler driver.

    - Orchestrates all compiler phases
    - Manages pass execution
    - Handles errors (parse errors become diagnostics, not exceptions)
    - Returns compilation result
    """

    def __init__(self, trace_rules: bool = False, parser: Optional[Parser] = None):
        self.trace_rules = trace_rules
        self.parser = parser if parser is not None else Parser()
        self.pass_manager = PassManager()
        self._register_passes()

    def _register_passes(self) -> None:
        """
        Register all passes. Order is resolved from `requires`:
        1. TypeCheckPass (annotations + semantic errors)
        2. CodeGenPass (instructions; skipped when type checking failed)
        """
        self.pass_manager.register_pass(TypeCheckPass)
        self.pass_manager.register_pass(CodeGenPass)

    def compile(self, source: str, source_file: str = "main.sl") -> CompilationResult:
        ctx = CompilationContext(trace_rules=self.trace_rules)
        ctx.source_files[source_file] = source

        try:
            tree = self.parser.parse(source, source_file)
        except ParseError as e:
            ctx.reporter.report_error(e.message, e.location, code=e.error_code)
            logger.debug(f"Parse failed for {source_file}: {e.message}")
            return CompilationResult(ctx)

        tree = self.pass_manager.run_all(tree, ctx)
        if ctx.reporter.has_errors():
            logger.debug(f"{source_file}: {len(ctx.reporter.messages)} compile error(s)")
            return CompilationResult(ctx, tree=tree)

        instructions = ctx.get_analysis(CodeGenPass)
        logger.debug(f"Compiled {source_file} to {len(instructions)} instructions")
        return CompilationResult(ctx, tree=tree, instructions=instructions, success=True)
