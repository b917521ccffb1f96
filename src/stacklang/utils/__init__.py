"""
stacklang utilities package
"""

from .io_utils import read_source_file, write_text_file, bytecode_path_for

__all__ = ["read_source_file", "write_text_file", "bytecode_path_for"]
