"""Editset data model.

Records serialize to the camelCase JSON interchange format with ``to_dict``
and parse back with ``from_dict``. Optional keys that are unset are omitted
so a saved editset loads back deep-equal to the original.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

SymbolKind = Literal[
    "variable",
    "function",
    "type",
    "interface",
    "property",
    "class",
    "method",
    "parameter",
]

Range = tuple[int, int, int, int]


def make_symbol_key(file: str, line: int, column: int, name: str) -> str:
    return f"{file}:{line}:{column}:{name}"


def parse_symbol_key(symbol_key: str) -> tuple[str, int, int, str]:
    """Split ``file:line:column:name`` from the right.

    File paths may themselves contain ``:``.

    Raises:
        ValueError: If the key does not have the expected shape.
    """
    parts = symbol_key.rsplit(":", 3)
    if len(parts) != 4:
        raise ValueError(f"Malformed symbol key: {symbol_key}")
    file, line, column, name = parts
    return file, int(line), int(column), name


@dataclass(frozen=True, slots=True)
class SymbolInfo:
    """A declaration site."""

    name: str
    kind: SymbolKind
    file: str
    line: int
    column: int

    @property
    def symbol_key(self) -> str:
        return make_symbol_key(self.file, self.line, self.column, self.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbolKey": self.symbol_key,
            "name": self.name,
            "kind": self.kind,
            "file": self.file,
            "line": self.line,
            "column": self.column,
        }


@dataclass(frozen=True, slots=True)
class SymbolMatch:
    """A discovered symbol with its resolved reference count."""

    symbol: SymbolInfo
    ref_count: int

    def to_dict(self) -> dict[str, Any]:
        return {**self.symbol.to_dict(), "refCount": self.ref_count}


@dataclass
class Reference:
    """One occurrence of a symbol or pattern match.

    ``ref_id`` derives from ``(file, range)`` only, so repeated discovery over
    an unchanged file yields identical ids.
    """

    ref_id: str
    file: str
    range: Range
    preview: str
    checksum: str
    selected: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "refId": self.ref_id,
            "file": self.file,
            "range": list(self.range),
            "preview": self.preview,
            "checksum": self.checksum,
            "selected": self.selected,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Reference:
        start_line, start_col, end_line, end_col = (int(v) for v in data["range"])
        return cls(
            ref_id=data["refId"],
            file=data["file"],
            range=(start_line, start_col, end_line, end_col),
            preview=data["preview"],
            checksum=data["checksum"],
            selected=bool(data.get("selected", True)),
        )


@dataclass(frozen=True, slots=True)
class Edit:
    """A splice: remove ``length`` characters at ``offset``, insert ``replacement``."""

    file: str
    offset: int
    length: int
    replacement: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "offset": self.offset,
            "length": self.length,
            "replacement": self.replacement,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Edit:
        return cls(
            file=data["file"],
            offset=int(data["offset"]),
            length=int(data["length"]),
            replacement=data["replacement"],
        )


def sort_edits(edits: list[Edit]) -> list[Edit]:
    """Order by file ascending, then offset descending within each file."""
    return sorted(edits, key=lambda e: (e.file, -e.offset))


@dataclass
class Editset:
    """A reviewable, durable change proposal."""

    id: str
    operation: str
    from_: str
    to: str
    refs: list[Reference] = field(default_factory=list)
    edits: list[Edit] = field(default_factory=list)
    created_at: str = ""
    symbol_key: str | None = None
    pattern: str | None = None

    @property
    def files(self) -> list[str]:
        """Distinct ref files in first-seen order."""
        return list(dict.fromkeys(r.file for r in self.refs))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "operation": self.operation}
        if self.symbol_key is not None:
            data["symbolKey"] = self.symbol_key
        if self.pattern is not None:
            data["pattern"] = self.pattern
        data["from"] = self.from_
        data["to"] = self.to
        data["refs"] = [r.to_dict() for r in self.refs]
        data["edits"] = [e.to_dict() for e in self.edits]
        data["createdAt"] = self.created_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Editset:
        return cls(
            id=data["id"],
            operation=data["operation"],
            from_=data["from"],
            to=data["to"],
            refs=[Reference.from_dict(r) for r in data.get("refs", [])],
            edits=[Edit.from_dict(e) for e in data.get("edits", [])],
            created_at=data.get("createdAt", ""),
            symbol_key=data.get("symbolKey"),
            pattern=data.get("pattern"),
        )


@dataclass(frozen=True, slots=True)
class Conflict:
    """A rename whose target name already exists next to the renamed symbol."""

    old_name: str
    new_name: str
    reason: str
    location: SymbolInfo
    existing_symbol: SymbolInfo

    def to_dict(self) -> dict[str, Any]:
        return {
            "oldName": self.old_name,
            "newName": self.new_name,
            "reason": self.reason,
            "location": self.location.to_dict(),
            "existingSymbol": self.existing_symbol.to_dict(),
        }


@dataclass
class ConflictReport:
    conflicts: list[Conflict] = field(default_factory=list)
    safe: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "conflicts": [c.to_dict() for c in self.conflicts],
            "safe": list(self.safe),
        }


@dataclass
class VerifyResult:
    valid: bool
    issues: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "issues": list(self.issues)}


@dataclass
class ApplyResult:
    """Outcome of applying an editset.

    ``applied`` counts edits computed (also under dry run), ``skipped`` counts
    edits in drifted files, ``errors`` counts edits in files that failed to
    read or write.
    """

    applied: int = 0
    skipped: int = 0
    errors: int = 0
    drift_detected: list[str] = field(default_factory=list)
    error_details: list[str] = field(default_factory=list)
    written: list[str] = field(default_factory=list)
    dry_run: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "applied": self.applied,
            "skipped": self.skipped,
            "errors": self.errors,
            "driftDetected": list(self.drift_detected),
            "errorDetails": list(self.error_details),
            "written": list(self.written),
            "dryRun": self.dry_run,
        }
