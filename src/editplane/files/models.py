"""File-rename data model.

A file editset is the filename-level counterpart of an editset: it records
renames instead of text edits. Each op carries the checksum of the source
file at discovery time so a rename is refused once the file has changed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from editplane.editset.models import Edit

FileConflictReason = Literal["target_exists", "same_path", "duplicate_target"]


@dataclass(frozen=True, slots=True)
class FileOp:
    """One planned rename, paths relative to the working root."""

    op_id: str
    old_path: str
    new_path: str
    checksum: str
    type: Literal["rename"] = "rename"

    def to_dict(self) -> dict[str, Any]:
        return {
            "opId": self.op_id,
            "type": self.type,
            "oldPath": self.old_path,
            "newPath": self.new_path,
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileOp:
        return cls(
            op_id=data["opId"],
            old_path=data["oldPath"],
            new_path=data["newPath"],
            checksum=data["checksum"],
        )


@dataclass
class FileEditset:
    id: str
    pattern: str
    replacement: str
    file_ops: list[FileOp] = field(default_factory=list)
    import_edits: list[Edit] = field(default_factory=list)
    created_at: str = ""
    operation: str = "file-rename"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "operation": self.operation,
            "pattern": self.pattern,
            "replacement": self.replacement,
            "fileOps": [op.to_dict() for op in self.file_ops],
            "importEdits": [e.to_dict() for e in self.import_edits],
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileEditset:
        return cls(
            id=data["id"],
            operation=data.get("operation", "file-rename"),
            pattern=data["pattern"],
            replacement=data["replacement"],
            file_ops=[FileOp.from_dict(op) for op in data.get("fileOps", [])],
            import_edits=[Edit.from_dict(e) for e in data.get("importEdits", [])],
            created_at=data.get("createdAt", ""),
        )


@dataclass(frozen=True, slots=True)
class FileConflict:
    old_path: str
    new_path: str
    reason: FileConflictReason
    existing_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "oldPath": self.old_path,
            "newPath": self.new_path,
            "reason": self.reason,
        }
        if self.existing_path is not None:
            data["existingPath"] = self.existing_path
        return data


@dataclass
class FileRenameReport:
    conflicts: list[FileConflict] = field(default_factory=list)
    safe: list[FileOp] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "conflicts": [c.to_dict() for c in self.conflicts],
            "safe": [op.to_dict() for op in self.safe],
            "conflictCount": len(self.conflicts),
            "safeCount": len(self.safe),
        }


@dataclass
class FileApplyResult:
    applied: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    dry_run: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "applied": self.applied,
            "skipped": self.skipped,
            "errors": list(self.errors),
            "dryRun": self.dry_run,
        }
