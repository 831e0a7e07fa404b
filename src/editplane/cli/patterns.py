"""epl pattern commands - text and structural search and replace."""

import click

from editplane.backends.registry import select_pattern_backend
from editplane.cli.utils import emit, get_session, json_command
from editplane.core.progress import pluralize, status
from editplane.editset.ops import save_editset


@click.command()
@click.option("--pattern", "-p", required=True, help="Regex, or ast-grep pattern with $VARS")
@click.option("--glob", "-g", default=None, help="Restrict to files matching this glob")
@click.option("--backend", "-b", "backend_name", default=None, help="Force a pattern backend")
@click.pass_context
@json_command
def pattern_find_command(
    ctx: click.Context, pattern: str, glob: str | None, backend_name: str | None
) -> None:
    """List matches of --pattern across the working root.

    Patterns containing $ metavariables go to ast-grep, everything else to
    ripgrep, unless --backend is given.
    """
    session = get_session(ctx)
    backend = select_pattern_backend(session.registry, pattern, backend_name)
    refs = backend.find_patterns(pattern, glob)
    status(f"Found {pluralize(len(refs), 'match', 'matches')} with {backend.name}")
    emit([r.to_dict() for r in refs])


@click.command()
@click.option("--pattern", "-p", required=True, help="Regex, or ast-grep pattern with $VARS")
@click.option("--replace", "-r", "replacement", required=True, help="Replacement template")
@click.option("--glob", "-g", default=None, help="Restrict to files matching this glob")
@click.option("--backend", "-b", "backend_name", default=None, help="Force a pattern backend")
@click.option("--output", "-o", default=None, help="Editset path (default: editset.json)")
@click.pass_context
@json_command
def pattern_replace_command(
    ctx: click.Context,
    pattern: str,
    replacement: str,
    glob: str | None,
    backend_name: str | None,
    output: str | None,
) -> None:
    """Write an editset replacing every match of --pattern."""
    session = get_session(ctx)
    backend = select_pattern_backend(session.registry, pattern, backend_name)
    editset = backend.create_pattern_replace_proposal(pattern, replacement, glob)
    path = session.output_path(output, session.config.editset.output)
    save_editset(editset, path)
    status(f"Wrote {pluralize(len(editset.edits), 'edit')} to {path}", style="success")
    emit(
        {
            "editsetPath": str(path),
            "refCount": len(editset.refs),
            "fileCount": len(editset.files),
            "backend": backend.name,
        }
    )
