"""Editset model and lifecycle operations."""

from editplane.editset.checksum import compute_checksum, compute_ref_id, file_checksum
from editplane.editset.models import (
    ApplyResult,
    Conflict,
    ConflictReport,
    Edit,
    Editset,
    Reference,
    SymbolInfo,
    SymbolMatch,
    VerifyResult,
)
from editplane.editset.naming import apply_filename_replacement, compute_new_name, preserve_case
from editplane.editset.ops import (
    apply_editset,
    filter_editset,
    load_editset,
    new_editset,
    save_editset,
    verify_editset,
)

__all__ = [
    "ApplyResult",
    "Conflict",
    "ConflictReport",
    "Edit",
    "Editset",
    "Reference",
    "SymbolInfo",
    "SymbolMatch",
    "VerifyResult",
    "apply_editset",
    "apply_filename_replacement",
    "compute_checksum",
    "compute_new_name",
    "compute_ref_id",
    "file_checksum",
    "filter_editset",
    "load_editset",
    "new_editset",
    "preserve_case",
    "save_editset",
    "verify_editset",
]
