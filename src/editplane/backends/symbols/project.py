"""Project handle: source discovery and tree-sitter parsing.

A ``Project`` owns every parse tree and the binding index built from them.
Nothing is cached at module level; call ``reset()`` after files change on
disk, or load a fresh handle.
"""

from __future__ import annotations

import os
from bisect import bisect_right
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tree_sitter
import tree_sitter_typescript

from editplane.core.excludes import PRUNABLE_DIRS
from editplane.core.globs import walk_files
from editplane.core.logging import get_logger
from editplane.editset.checksum import compute_checksum

if TYPE_CHECKING:
    from editplane.backends.symbols.scopes import ProjectIndex

log = get_logger(__name__)

# .js/.jsx and friends parse with the TSX grammar, a superset of JavaScript
GRAMMAR_BY_EXTENSION: dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "tsx",
    ".jsx": "tsx",
    ".mjs": "tsx",
    ".cjs": "tsx",
}

SOURCE_GLOB = "**/*.{ts,tsx,mts,cts,js,jsx,mjs,cjs}"


@dataclass
class SourceFile:
    """One parsed file. Positions are 1-indexed characters."""

    path: str
    data: bytes
    text: str
    tree: Any
    checksum: str
    _line_starts: list[int] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        starts = [0]
        for i, ch in enumerate(self.text):
            if ch == "\n":
                starts.append(i + 1)
        self._line_starts = starts

    @property
    def root(self) -> Any:
        return self.tree.root_node

    @property
    def is_ascii(self) -> bool:
        return len(self.data) == len(self.text)

    def char_offset(self, byte_offset: int) -> int:
        if self.is_ascii:
            return byte_offset
        return len(self.data[:byte_offset].decode("utf-8", errors="replace"))

    def byte_offset(self, char_offset: int) -> int:
        if self.is_ascii:
            return char_offset
        return len(self.text[:char_offset].encode("utf-8"))

    def line_col(self, char_offset: int) -> tuple[int, int]:
        index = bisect_right(self._line_starts, char_offset) - 1
        return index + 1, char_offset - self._line_starts[index] + 1

    def offset_of(self, line: int, column: int) -> int | None:
        if line < 1 or line > len(self._line_starts):
            return None
        return self._line_starts[line - 1] + column - 1

    def line_text(self, line: int) -> str:
        start = self._line_starts[line - 1]
        end = self.text.find("\n", start)
        return self.text[start:] if end == -1 else self.text[start:end]

    def node_range(self, node: Any) -> tuple[int, int, int, int]:
        start_line, start_col = self.line_col(self.char_offset(node.start_byte))
        end_line, end_col = self.line_col(self.char_offset(node.end_byte))
        return start_line, start_col, end_line, end_col

    def node_text(self, node: Any) -> str:
        return self.data[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def node_at(self, line: int, column: int, types: frozenset[str]) -> Any | None:
        """Innermost node of one of ``types`` spanning the position."""
        offset = self.offset_of(line, column)
        if offset is None or offset > len(self.text):
            return None
        target = self.byte_offset(offset)
        node = self.root
        found = None
        while True:
            if node.type in types:
                found = node
            child = next(
                (c for c in node.children if c.start_byte <= target < c.end_byte),
                None,
            )
            if child is None:
                return found
            node = child


class Project:
    """Parsed TypeScript/JavaScript sources under a working root."""

    def __init__(self, root: Path, source_root: Path, exclude_dirs: frozenset[str]) -> None:
        self.root = root
        self.source_root = source_root
        self.exclude_dirs = exclude_dirs
        self._languages: dict[str, Any] = {}
        self._files: list[str] | None = None
        self._file_set: frozenset[str] = frozenset()
        self._sources: dict[str, SourceFile] = {}
        self._index: ProjectIndex | None = None

    @classmethod
    def load(
        cls,
        root: Path,
        tsconfig: str = "tsconfig.json",
        exclude_dirs: frozenset[str] = PRUNABLE_DIRS,
    ) -> Project:
        """Create a handle rooted at the tsconfig's directory when it exists."""
        root = root.resolve()
        config_path = root / tsconfig
        source_root = config_path.parent if config_path.is_file() else root
        log.debug("project_load", root=str(root), source_root=str(source_root))
        return cls(root, source_root, exclude_dirs)

    def reset(self) -> None:
        """Drop parse trees, the file list and the binding index."""
        self._files = None
        self._file_set = frozenset()
        self._sources.clear()
        self._index = None

    def _rel(self, source_rel: str) -> str:
        return Path(os.path.relpath(self.source_root / source_rel, self.root)).as_posix()

    def _discover(self) -> list[str]:
        if self._files is None:
            self._files = [
                self._rel(p)
                for p in walk_files(self.source_root, SOURCE_GLOB, exclude=self.exclude_dirs)
            ]
            self._file_set = frozenset(self._files)
            log.debug("project_files", count=len(self._files))
        return self._files

    @property
    def files(self) -> list[str]:
        """Root-relative POSIX paths of every source file."""
        return self._discover()

    def contains(self, file: str) -> bool:
        self._discover()
        return file in self._file_set

    def _language(self, grammar: str) -> Any:
        if grammar not in self._languages:
            if grammar == "tsx":
                capsule = tree_sitter_typescript.language_tsx()
            else:
                capsule = tree_sitter_typescript.language_typescript()
            self._languages[grammar] = tree_sitter.Language(capsule)
        return self._languages[grammar]

    def source(self, file: str) -> SourceFile | None:
        """Parsed file, or None when it is not part of the project."""
        file = file.replace("\\", "/").removeprefix("./")
        if file in self._sources:
            return self._sources[file]
        if not self.contains(file):
            return None

        path = self.root / file
        grammar = GRAMMAR_BY_EXTENSION[path.suffix.lower()]
        data = path.read_bytes()
        text = data.decode("utf-8", errors="replace")
        parser = tree_sitter.Parser(self._language(grammar))
        tree = parser.parse(data)
        source = SourceFile(
            path=file, data=data, text=text, tree=tree, checksum=compute_checksum(text)
        )
        self._sources[file] = source
        return source

    def sources(self) -> list[SourceFile]:
        return [s for f in self.files if (s := self.source(f)) is not None]

    @property
    def index(self) -> ProjectIndex:
        if self._index is None:
            from editplane.backends.symbols.scopes import ProjectIndex

            self._index = ProjectIndex.build(self)
        return self._index
