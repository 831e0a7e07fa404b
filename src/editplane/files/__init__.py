"""Filename-level renames with drift-checked apply."""

from editplane.files.models import (
    FileApplyResult,
    FileConflict,
    FileEditset,
    FileOp,
    FileRenameReport,
)
from editplane.files.ops import (
    FileRenameOps,
    apply_file_renames,
    check_file_conflicts,
    create_file_rename_proposal,
    find_files_to_rename,
    find_import_edits,
    load_file_editset,
    save_file_editset,
    verify_file_editset,
)

__all__ = [
    "FileApplyResult",
    "FileConflict",
    "FileEditset",
    "FileOp",
    "FileRenameOps",
    "FileRenameReport",
    "apply_file_renames",
    "check_file_conflicts",
    "create_file_rename_proposal",
    "find_files_to_rename",
    "find_import_edits",
    "load_file_editset",
    "save_file_editset",
    "verify_file_editset",
]
