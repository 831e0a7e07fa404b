"""Content hashing and stable identity derivation.

Digests are truncated for readability. They detect drift; they are not an
integrity guarantee.
"""

from __future__ import annotations

import hashlib
from pathlib import Path


def compute_checksum(content: str) -> str:
    """12 hex chars of sha256 over the UTF-8 encoded content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:12]


def compute_ref_id(file: str, start_line: int, start_col: int, end_line: int, end_col: int) -> str:
    """8 hex chars derived from the location tuple alone."""
    key = f"{file}:{start_line}:{start_col}:{end_line}:{end_col}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:8]


def file_checksum(path: Path) -> str:
    """16 hex chars of sha256 over the raw file bytes."""
    return hashlib.sha256(path.read_bytes()).hexdigest()[:16]


def file_op_id(old_path: str, new_path: str) -> str:
    return "file-" + hashlib.sha256(f"{old_path}:{new_path}".encode()).hexdigest()[:8]


def line_col_to_offset(content: str, line: int, column: int) -> int:
    """Convert a 1-indexed line/column to a character offset."""
    lines = content.split("\n")
    return sum(len(lines[i]) + 1 for i in range(line - 1)) + column - 1


def offset_to_line_col(content: str, offset: int) -> tuple[int, int]:
    """Inverse of :func:`line_col_to_offset`."""
    line = content.count("\n", 0, offset) + 1
    line_start = content.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


def line_at(content: str, line: int) -> str:
    lines = content.split("\n")
    return lines[line - 1] if 0 < line <= len(lines) else ""


def byte_to_char_offset(data: bytes, byte_offset: int) -> int:
    return len(data[:byte_offset].decode("utf-8", errors="replace"))


def read_source(path: Path) -> str:
    # No newline translation: offsets and checksums must match on-disk bytes.
    return path.read_bytes().decode("utf-8")


def write_source(path: Path, text: str) -> None:
    path.write_bytes(text.encode("utf-8"))
