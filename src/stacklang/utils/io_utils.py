"""
Centralized file I/O utilities.

- Single place for encoding and artifact naming
- Use Path.read_text() consistently (no raw open/read)
"""

from pathlib import Path
from typing import Optional, Union

from .config import DEFAULT_FILE_ENCODING, BYTECODE_FILE_EXTENSION


def read_source_file(path: Union[Path, str]) -> str:
    """Read source file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    return p.read_text(encoding=DEFAULT_FILE_ENCODING)


def write_text_file(path: Union[Path, str], text: str) -> Path:
    """Write text with standard encoding; returns the written path."""
    p = Path(path) if not isinstance(path, Path) else path
    p.write_text(text, encoding=DEFAULT_FILE_ENCODING)
    return p


def bytecode_path_for(source: Union[Path, str], out_dir: Optional[Union[Path, str]] = None) -> Path:
    """Artifact path for a source file: same stem, bytecode extension."""
    p = Path(source)
    target_dir = Path(out_dir) if out_dir is not None else p.parent
    return target_dir / (p.stem + BYTECODE_FILE_EXTENSION)
