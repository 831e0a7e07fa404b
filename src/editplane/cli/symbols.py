"""epl symbol commands - lookup, references, discovery and rename proposals."""

import click

from editplane.backends.base import Capability
from editplane.cli.utils import emit, get_session, json_command, split_list
from editplane.core.errors import DiscoveryError
from editplane.core.progress import pluralize, status
from editplane.editset.ops import save_editset


@click.command()
@click.argument("file")
@click.argument("line", type=int)
@click.argument("col", type=int, default=1, required=False)
@click.pass_context
@json_command
def symbol_at_command(ctx: click.Context, file: str, line: int, col: int) -> None:
    """Show the symbol at FILE:LINE[:COL] (1-indexed)."""
    session = get_session(ctx)
    if not (session.root / file).is_file():
        raise DiscoveryError.file_not_found(file)
    backend = session.symbol_backend(Capability.GET_SYMBOL_AT, file)
    symbol = backend.get_symbol_at(file, line, col)
    if symbol is None:
        raise DiscoveryError.symbol_not_found(f"{file}:{line}:{col}")
    emit(symbol.to_dict())


@click.command()
@click.argument("symbol_key")
@click.pass_context
@json_command
def refs_list_command(ctx: click.Context, symbol_key: str) -> None:
    """List every reference of SYMBOL_KEY (file:line:col:name)."""
    session = get_session(ctx)
    backend = session.symbol_backend_for_key(Capability.GET_REFERENCES, symbol_key)
    refs = backend.get_references(symbol_key)
    status(f"Found {pluralize(len(refs), 'reference')}")
    emit([r.to_dict() for r in refs])


@click.command()
@click.option("--pattern", "-p", required=True, help="Regular expression (case-insensitive)")
@click.pass_context
@json_command
def symbols_find_command(ctx: click.Context, pattern: str) -> None:
    """Find declared symbols whose name matches --pattern."""
    session = get_session(ctx)
    backend = session.symbol_backend(Capability.FIND_SYMBOLS)
    matches = backend.find_symbols(pattern)
    status(f"Found {pluralize(len(matches), 'symbol')} matching /{pattern}/i")
    emit([m.to_dict() for m in matches])


@click.command()
@click.argument("symbol_key")
@click.argument("new_name")
@click.option("--output", "-o", default=None, help="Editset path (default: editset.json)")
@click.pass_context
@json_command
def rename_propose_command(
    ctx: click.Context, symbol_key: str, new_name: str, output: str | None
) -> None:
    """Write an editset renaming SYMBOL_KEY to NEW_NAME."""
    session = get_session(ctx)
    backend = session.symbol_backend_for_key(Capability.CREATE_RENAME_PROPOSAL, symbol_key)
    editset = backend.create_rename_proposal(symbol_key, new_name)
    path = session.output_path(output, session.config.editset.output)
    save_editset(editset, path)
    status(f"Wrote {pluralize(len(editset.refs), 'reference')} to {path}", style="success")
    emit(
        {
            "editsetPath": str(path),
            "refCount": len(editset.refs),
            "fileCount": len(editset.files),
            "symbolCount": 1,
        }
    )


@click.command()
@click.option("--pattern", "-p", required=True, help="Regular expression (case-insensitive)")
@click.option("--replace", "-r", "replacement", required=True, help="Replacement text")
@click.option("--output", "-o", default=None, help="Editset path (default: editset.json)")
@click.option(
    "--check-conflicts", is_flag=True, help="Report naming conflicts instead of proposing"
)
@click.option("--skip", default=None, help="Comma-separated symbol names to leave alone")
@click.pass_context
@json_command
def rename_batch_command(
    ctx: click.Context,
    pattern: str,
    replacement: str,
    output: str | None,
    check_conflicts: bool,
    skip: str | None,
) -> None:
    """Rename every symbol matching --pattern, preserving case."""
    session = get_session(ctx)
    skipped = split_list(skip)

    if check_conflicts:
        backend = session.symbol_backend(Capability.CHECK_CONFLICTS)
        report = backend.check_conflicts(pattern, replacement)
        if report.conflicts:
            status(f"{pluralize(len(report.conflicts), 'conflict')} found", style="warning")
        emit(report.to_dict())
        return

    backend = session.symbol_backend(Capability.CREATE_BATCH_RENAME_PROPOSAL)
    editset = backend.create_batch_rename_proposal(pattern, replacement, skip=skipped)
    path = session.output_path(output, session.config.editset.output)
    save_editset(editset, path)
    renamed = {r.preview.rsplit(" // ", 1)[-1] for r in editset.refs}
    status(f"Wrote {pluralize(len(editset.refs), 'reference')} to {path}", style="success")
    result = {
        "editsetPath": str(path),
        "refCount": len(editset.refs),
        "fileCount": len(editset.files),
        "symbolCount": len(renamed),
    }
    if skipped:
        result["skippedSymbols"] = skipped
    emit(result)
