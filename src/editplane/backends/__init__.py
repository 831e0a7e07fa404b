"""Discovery and proposal backends."""

from editplane.backends.base import (
    Backend,
    Capability,
    FileRenameBackend,
    PatternBackend,
    SymbolBackend,
)
from editplane.backends.registry import BackendRegistry, default_registry, select_pattern_backend

__all__ = [
    "Backend",
    "BackendRegistry",
    "Capability",
    "FileRenameBackend",
    "PatternBackend",
    "SymbolBackend",
    "default_registry",
    "select_pattern_backend",
]
