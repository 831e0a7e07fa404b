"""epl backends.list command - show registered backends."""

import click

from editplane.cli.utils import emit, get_session, json_command


@click.command()
@click.pass_context
@json_command
def backends_list_command(ctx: click.Context) -> None:
    """List backends in priority order with their capabilities."""
    registry = get_session(ctx).registry
    emit([backend.describe() for backend in registry.all()])
