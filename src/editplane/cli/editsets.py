"""epl editset commands - select, verify and apply saved editsets."""

from pathlib import Path

import click

from editplane.cli.utils import emit, get_session, json_command, split_list
from editplane.core.progress import pluralize, status
from editplane.editset.ops import (
    apply_editset,
    filter_editset,
    load_editset,
    save_editset,
    verify_editset,
)


@click.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.option("--include", default=None, help="Comma-separated refIds to select")
@click.option("--exclude", default=None, help="Comma-separated refIds to deselect")
@click.option("--output", "-o", default=None, help="Output path (default: overwrite FILE)")
@click.pass_context
@json_command
def editset_select_command(
    ctx: click.Context,
    file: Path,
    include: str | None,
    exclude: str | None,
    output: str | None,
) -> None:
    """Adjust which refs of an editset are selected.

    --include replaces the current selection, then --exclude removes refs
    from it. Edits are kept for every file that still has a selected ref.
    """
    get_session(ctx)
    editset = load_editset(file)
    filtered = filter_editset(editset, split_list(include), split_list(exclude))
    path = Path(output) if output else file
    save_editset(filtered, path)
    selected = sum(1 for r in filtered.refs if r.selected)
    emit({"editsetPath": str(path), "selectedRefs": selected, "totalRefs": len(filtered.refs)})


@click.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.pass_context
@json_command
def editset_verify_command(ctx: click.Context, file: Path) -> None:
    """Check that every file in an editset is unchanged since discovery."""
    session = get_session(ctx)
    result = verify_editset(load_editset(file), session.root)
    if not result.valid:
        status(f"{pluralize(len(result.issues), 'file')} drifted", style="warning")
    emit(result.to_dict())


@click.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.option("--dry-run", is_flag=True, help="Compute edits without writing files")
@click.pass_context
@json_command
def editset_apply_command(ctx: click.Context, file: Path, dry_run: bool) -> None:
    """Apply an editset. Drifted files are skipped, the rest are written."""
    session = get_session(ctx)
    result = apply_editset(load_editset(file), session.root, dry_run=dry_run)
    if dry_run:
        status("[DRY RUN - no changes applied]", style="none")
    for issue in result.drift_detected:
        status(issue, style="warning")
    emit(result.to_dict())
