"""CLI entry point: run `stacklang file.sl` or `python -m stacklang file.sl`."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger("stacklang.cli")


def _run_one(path: Path, args, compiler, runtime) -> bool:
    """Compile (or load) and run one program; True on success."""
    from .bytecode.serialization import load_bytecode, save_bytecode
    from .shared.errors import ExecutionError
    from .utils.io_utils import bytecode_path_for, read_source_file

    if not path.exists():
        sys.stderr.write(f"stacklang: error: file not found: {path}\n")
        return False
    if not path.is_file():
        sys.stderr.write(f"stacklang: error: not a file: {path}\n")
        return False

    if args.bytecode:
        try:
            instructions = load_bytecode(path)
        except (OSError, UnicodeDecodeError) as e:
            sys.stderr.write(f"stacklang: error: could not read file: {e}\n")
            return False
        except ExecutionError as e:
            sys.stderr.write(f"stacklang: {path}: {e}\n")
            return False
    else:
        try:
            source = read_source_file(path)
        except (OSError, UnicodeDecodeError) as e:
            sys.stderr.write(f"stacklang: error: could not read file: {e}\n")
            return False
        result = compiler.compile(source, str(path))
        if not result.success:
            sys.stderr.write(result.format_errors(color=None) + "\n")
            return False
        instructions = result.instructions
        if args.compile_only:
            target = bytecode_path_for(path, args.out_dir)
            save_bytecode(target, instructions)
            logger.info(f"Wrote {target}")
            return True

    exec_result = runtime.execute(instructions, stdin=sys.stdin, stdout=sys.stdout)
    sys.stdout.flush()
    if exec_result.error is not None:
        sys.stderr.write(f"stacklang: runtime error in {path}: {exec_result.error}\n")
        return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    from .compiler.driver import CompilerDriver
    from .runtime.runtime import StackLangRuntime

    parser = argparse.ArgumentParser(prog="stacklang", description="Compile and run stacklang (.sl) programs.")
    parser.add_argument("files", type=Path, nargs="+", help="Source files (or .slc artifacts with --bytecode)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--compile-only", action="store_true", help="Write .slc bytecode next to each source instead of running")
    mode.add_argument("--bytecode", action="store_true", help="Treat inputs as .slc bytecode artifacts and run them")
    parser.add_argument("--out-dir", type=Path, default=None, help="Directory for --compile-only artifacts")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="Abort a program after this many instructions (0 disables; default from STACKLANG_MAX_STEPS)")
    parser.add_argument("--trace-rules", action="store_true", help="Log every syntax node visited by the type checker")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.trace_rules:
        logging.getLogger("stacklang.rules").setLevel(logging.INFO)

    try:
        runtime = StackLangRuntime(max_steps=args.max_steps)
        compiler = CompilerDriver(trace_rules=args.trace_rules)
    except ValueError as e:
        sys.stderr.write(f"stacklang: error: {e}\n")
        return 1

    failed = 0
    for path in args.files:
        if not _run_one(path.resolve(), args, compiler, runtime):
            failed += 1
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
