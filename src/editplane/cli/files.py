"""epl file commands - filename renames through a file editset."""

from pathlib import Path

import click

from editplane.backends.base import Capability, FileRenameBackend
from editplane.cli.utils import emit, get_session, json_command
from editplane.core.progress import pluralize, status
from editplane.files.ops import (
    apply_file_renames,
    check_file_conflicts,
    load_file_editset,
    save_file_editset,
    verify_file_editset,
)

FILE_BACKEND = "file-rename"


def _file_backend(ctx: click.Context, capability: Capability) -> FileRenameBackend:
    return get_session(ctx).registry.require(FILE_BACKEND, FileRenameBackend, capability)


@click.command()
@click.option("--pattern", "-p", required=True, help="Literal text to find in filenames")
@click.option("--replace", "-r", "replacement", required=True, help="Replacement text")
@click.option("--glob", "-g", default=None, help="Files to consider")
@click.pass_context
@json_command
def file_find_command(ctx: click.Context, pattern: str, replacement: str, glob: str | None) -> None:
    """Preview file renames without writing an editset."""
    backend = _file_backend(ctx, Capability.FIND_FILES)
    ops = backend.find_files(pattern, replacement, glob)
    effective_glob = glob or get_session(ctx).config.discovery.file_glob
    emit(
        {
            "pattern": pattern,
            "replacement": replacement,
            "glob": effective_glob,
            "files": [{"oldPath": op.old_path, "newPath": op.new_path} for op in ops],
            "count": len(ops),
        }
    )


@click.command()
@click.option("--pattern", "-p", required=True, help="Literal text to find in filenames")
@click.option("--replace", "-r", "replacement", required=True, help="Replacement text")
@click.option("--glob", "-g", default=None, help="Files to consider")
@click.option("--output", "-o", default=None, help="Path (default: file-editset.json)")
@click.option("--check-conflicts", is_flag=True, help="Report conflicts instead of proposing")
@click.pass_context
@json_command
def file_rename_command(
    ctx: click.Context,
    pattern: str,
    replacement: str,
    glob: str | None,
    output: str | None,
    check_conflicts: bool,
) -> None:
    """Write a file editset renaming files whose name contains --pattern."""
    session = get_session(ctx)
    backend = _file_backend(ctx, Capability.CREATE_FILE_RENAME_PROPOSAL)
    effective_glob = glob or session.config.discovery.file_glob

    ops = backend.find_files(pattern, replacement, glob)
    if not ops:
        emit(
            {
                "message": "No files found matching pattern",
                "pattern": pattern,
                "glob": effective_glob,
            }
        )
        return

    if check_conflicts:
        emit(check_file_conflicts(ops, session.root).to_dict())
        return

    editset = backend.create_file_rename_proposal(pattern, replacement, glob)
    path = session.output_path(output, session.config.editset.file_output)
    save_file_editset(editset, path)
    status(f"Wrote {pluralize(len(editset.file_ops), 'file rename')} to {path}", style="success")
    emit(
        {
            "editsetPath": str(path),
            "fileCount": len(editset.file_ops),
            "importEditCount": len(editset.import_edits),
            "files": [
                {"oldPath": op.old_path, "newPath": op.new_path} for op in editset.file_ops
            ],
        }
    )


@click.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.pass_context
@json_command
def file_verify_command(ctx: click.Context, file: Path) -> None:
    """Check that every file in a file editset is unchanged."""
    session = get_session(ctx)
    editset = load_file_editset(file)
    result = verify_file_editset(editset, session.root)
    emit({**result, "fileCount": len(editset.file_ops)})


@click.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.option("--dry-run", is_flag=True, help="Check renames without moving files")
@click.pass_context
@json_command
def file_apply_command(ctx: click.Context, file: Path, dry_run: bool) -> None:
    """Apply the renames of a file editset."""
    session = get_session(ctx)
    result = apply_file_renames(load_file_editset(file), session.root, dry_run=dry_run)
    if dry_run:
        status("[DRY RUN - no files renamed]", style="none")
    emit(result.to_dict())
