"""File-rename operations.

Pure filesystem I/O over the working root. Matching is on the basename
only: a case-insensitive literal substring, replaced case-preservingly, so
``widget-path.ts`` with pattern ``widget`` and replacement ``gadget``
becomes ``gadget-path.ts`` and ``WidgetPath.ts`` becomes ``GadgetPath.ts``.
"""

from __future__ import annotations

import json
import posixpath
import time
from datetime import UTC, datetime
from pathlib import Path

from editplane.backends.base import FileRenameBackend
from editplane.core.errors import EditsetError
from editplane.core.excludes import PRUNABLE_DIRS
from editplane.core.globs import walk_files
from editplane.core.logging import get_logger
from editplane.editset.checksum import file_checksum, file_op_id
from editplane.editset.models import Edit
from editplane.editset.naming import apply_filename_replacement
from editplane.files.models import (
    FileApplyResult,
    FileConflict,
    FileEditset,
    FileOp,
    FileRenameReport,
)

log = get_logger(__name__)

DEFAULT_GLOB = "**/*"


def find_files_to_rename(
    pattern: str,
    replacement: str,
    glob: str = DEFAULT_GLOB,
    root: Path | None = None,
    *,
    exclude_dirs: frozenset[str] = PRUNABLE_DIRS,
) -> list[FileOp]:
    """Plan a rename for every file whose basename contains ``pattern``."""
    root = root or Path.cwd()
    needle = pattern.lower()
    ops: list[FileOp] = []
    for rel_path in walk_files(root, glob, exclude=exclude_dirs):
        directory, basename = posixpath.split(rel_path)
        if needle not in basename.lower():
            continue
        new_basename = apply_filename_replacement(basename, pattern, replacement)
        new_path = posixpath.join(directory, new_basename) if directory else new_basename
        ops.append(
            FileOp(
                op_id=file_op_id(rel_path, new_path),
                old_path=rel_path,
                new_path=new_path,
                checksum=file_checksum(root / rel_path),
            )
        )
    log.debug("files_found", pattern=pattern, glob=glob, count=len(ops))
    return ops


def check_file_conflicts(ops: list[FileOp], root: Path) -> FileRenameReport:
    """Split ops into conflicting and safe renames.

    A target that differs from its source only by case is not a conflict,
    so case-only renames work on case-insensitive filesystems.
    """
    report = FileRenameReport()
    targets: dict[str, str] = {}
    for op in ops:
        targets.setdefault(op.new_path, op.old_path)

    for op in ops:
        if op.new_path == op.old_path:
            report.conflicts.append(FileConflict(op.old_path, op.new_path, "same_path"))
            continue
        first_source = targets[op.new_path]
        if first_source != op.old_path:
            report.conflicts.append(
                FileConflict(op.old_path, op.new_path, "duplicate_target", first_source)
            )
            continue
        case_only = op.new_path.lower() == op.old_path.lower()
        if not case_only and (root / op.new_path).exists():
            report.conflicts.append(
                FileConflict(op.old_path, op.new_path, "target_exists", op.new_path)
            )
            continue
        report.safe.append(op)
    return report


def find_import_edits(ops: list[FileOp], root: Path) -> list[Edit]:
    """Import specifier rewrites for renamed modules.

    Not implemented: always returns ``[]``. The specifiers that would need
    rewriting are logged so the gap is visible with ``-v``.
    """
    for op in ops:
        old_spec = posixpath.splitext(op.old_path)[0]
        new_spec = posixpath.splitext(op.new_path)[0]
        log.debug(
            "import_rewrite_skipped",
            root=str(root),
            old_specifier=old_spec,
            new_specifier=new_spec,
        )
    return []


def create_file_rename_proposal(
    pattern: str,
    replacement: str,
    glob: str = DEFAULT_GLOB,
    root: Path | None = None,
    *,
    exclude_dirs: frozenset[str] = PRUNABLE_DIRS,
) -> FileEditset:
    """Build a file editset. Conflicting ops are logged and left out."""
    root = root or Path.cwd()
    ops = find_files_to_rename(pattern, replacement, glob, root, exclude_dirs=exclude_dirs)
    report = check_file_conflicts(ops, root)
    for conflict in report.conflicts:
        log.warning(
            "file_rename_conflict",
            old_path=conflict.old_path,
            new_path=conflict.new_path,
            reason=conflict.reason,
        )
    now = datetime.now(UTC)
    return FileEditset(
        id=f"file-rename-{int(time.time() * 1000)}",
        pattern=pattern,
        replacement=replacement,
        file_ops=report.safe,
        import_edits=find_import_edits(report.safe, root),
        created_at=now.isoformat().replace("+00:00", "Z"),
    )


def _drift(op: FileOp, root: Path) -> str | None:
    source = root / op.old_path
    if not source.is_file():
        return f"{op.old_path}: file no longer exists"
    if file_checksum(source) != op.checksum:
        return f"{op.old_path}: checksum mismatch"
    return None


def verify_file_editset(editset: FileEditset, root: Path) -> dict[str, object]:
    drifted = [msg for op in editset.file_ops if (msg := _drift(op, root)) is not None]
    return {"valid": not drifted, "drifted": drifted}


def apply_file_renames(
    editset: FileEditset, root: Path, *, dry_run: bool = False
) -> FileApplyResult:
    """Rename files, re-checking each checksum just before the move.

    Drifted or missing sources are skipped. Filesystem failures are
    recorded per op and do not stop the remaining renames.
    """
    result = FileApplyResult(dry_run=dry_run)
    for op in editset.file_ops:
        drift = _drift(op, root)
        if drift is not None:
            log.warning("file_rename_skipped", reason=drift)
            result.skipped += 1
            continue
        source = root / op.old_path
        target = root / op.new_path
        case_only = op.new_path.lower() == op.old_path.lower()
        if target.exists() and not case_only:
            result.errors.append(f"{op.new_path}: target already exists")
            continue
        if dry_run:
            result.applied += 1
            continue
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            source.rename(target)
        except OSError as e:
            result.errors.append(f"{op.old_path}: {e}")
            log.error("file_rename_failed", old_path=op.old_path, error=str(e))
            continue
        result.applied += 1
        log.info("file_renamed", old_path=op.old_path, new_path=op.new_path)
    return result


def save_file_editset(editset: FileEditset, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(editset.to_dict(), indent=2, ensure_ascii=False)
    path.write_text(text + "\n", encoding="utf-8")


def load_file_editset(path: Path) -> FileEditset:
    """Load a file editset from JSON.

    Raises:
        EditsetError: If the file is missing or does not hold a file editset.
    """
    if not path.exists():
        raise EditsetError.not_found(str(path))
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise EditsetError.malformed(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise EditsetError.malformed(str(path), "top-level value must be an object")
    try:
        return FileEditset.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise EditsetError.malformed(str(path), f"missing or invalid field: {e}") from e


class FileRenameOps(FileRenameBackend):
    """File-rename backend bound to a working root."""

    name = "file-rename"
    extensions = ("*",)
    priority = 0

    def __init__(
        self,
        root: Path,
        default_glob: str = DEFAULT_GLOB,
        exclude_dirs: frozenset[str] = PRUNABLE_DIRS,
    ) -> None:
        self.root = root.resolve()
        self.default_glob = default_glob
        self.exclude_dirs = exclude_dirs

    def find_files(self, pattern: str, replacement: str, glob: str | None = None) -> list[FileOp]:
        return find_files_to_rename(
            pattern,
            replacement,
            glob or self.default_glob,
            self.root,
            exclude_dirs=self.exclude_dirs,
        )

    def create_file_rename_proposal(
        self, pattern: str, replacement: str, glob: str | None = None
    ) -> FileEditset:
        return create_file_rename_proposal(
            pattern,
            replacement,
            glob or self.default_glob,
            self.root,
            exclude_dirs=self.exclude_dirs,
        )
