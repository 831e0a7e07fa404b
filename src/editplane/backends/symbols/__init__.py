"""Tree-sitter symbol backend for TypeScript and JavaScript."""

from editplane.backends.symbols.backend import TreeSitterBackend
from editplane.backends.symbols.project import Project, SourceFile

__all__ = ["Project", "SourceFile", "TreeSitterBackend"]
