"""Backend capability contract.

A backend implements a subset of three small interfaces. Its capabilities
are derived from the interfaces in its class hierarchy, so callers never
check for optional methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from editplane.editset.models import (
        ConflictReport,
        Editset,
        Reference,
        SymbolInfo,
        SymbolMatch,
    )
    from editplane.files.models import FileEditset, FileOp


class Capability(StrEnum):
    FIND_PATTERNS = "find_patterns"
    CREATE_PATTERN_REPLACE_PROPOSAL = "create_pattern_replace_proposal"
    GET_SYMBOL_AT = "get_symbol_at"
    GET_REFERENCES = "get_references"
    FIND_SYMBOLS = "find_symbols"
    CREATE_RENAME_PROPOSAL = "create_rename_proposal"
    CREATE_BATCH_RENAME_PROPOSAL = "create_batch_rename_proposal"
    CHECK_CONFLICTS = "check_conflicts"
    FIND_FILES = "find_files"
    CREATE_FILE_RENAME_PROPOSAL = "create_file_rename_proposal"


WILDCARD = "*"


class Backend(ABC):
    """Common backend identity: name, handled extensions, priority."""

    name: ClassVar[str]
    extensions: ClassVar[tuple[str, ...]]
    priority: ClassVar[int] = 0

    # Filled in by each interface class
    provides: ClassVar[frozenset[Capability]] = frozenset()

    def capabilities(self) -> frozenset[Capability]:
        caps: set[Capability] = set()
        for klass in type(self).__mro__:
            caps.update(klass.__dict__.get("provides", ()))
        return frozenset(caps)

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities()

    def handles(self, extension: str) -> bool:
        return WILDCARD in self.extensions or extension.lstrip(".") in self.extensions

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "extensions": list(self.extensions),
            "priority": self.priority,
            "capabilities": sorted(c.value for c in self.capabilities()),
        }


class PatternBackend(Backend):
    """Pattern discovery and replacement over the working tree."""

    provides = frozenset(
        {Capability.FIND_PATTERNS, Capability.CREATE_PATTERN_REPLACE_PROPOSAL}
    )

    @abstractmethod
    def find_patterns(self, pattern: str, glob: str | None = None) -> list[Reference]: ...

    @abstractmethod
    def create_pattern_replace_proposal(
        self, pattern: str, replacement: str, glob: str | None = None
    ) -> Editset: ...


class SymbolBackend(Backend):
    """Scope-aware symbol discovery and rename proposals."""

    provides = frozenset(
        {
            Capability.GET_SYMBOL_AT,
            Capability.GET_REFERENCES,
            Capability.FIND_SYMBOLS,
            Capability.CREATE_RENAME_PROPOSAL,
            Capability.CREATE_BATCH_RENAME_PROPOSAL,
            Capability.CHECK_CONFLICTS,
        }
    )

    @abstractmethod
    def get_symbol_at(self, file: str, line: int, column: int) -> SymbolInfo | None: ...

    @abstractmethod
    def get_references(self, symbol_key: str) -> list[Reference]: ...

    @abstractmethod
    def find_symbols(self, pattern: str) -> list[SymbolMatch]: ...

    @abstractmethod
    def create_rename_proposal(self, symbol_key: str, new_name: str) -> Editset: ...

    @abstractmethod
    def create_batch_rename_proposal(
        self, pattern: str, replacement: str, skip: Iterable[str] = ()
    ) -> Editset: ...

    @abstractmethod
    def check_conflicts(self, pattern: str, replacement: str) -> ConflictReport: ...


class FileRenameBackend(Backend):
    """Filename-level rename proposals."""

    provides = frozenset({Capability.FIND_FILES, Capability.CREATE_FILE_RENAME_PROPOSAL})

    @abstractmethod
    def find_files(
        self, pattern: str, replacement: str, glob: str | None = None
    ) -> list[FileOp]: ...

    @abstractmethod
    def create_file_rename_proposal(
        self, pattern: str, replacement: str, glob: str | None = None
    ) -> FileEditset: ...
