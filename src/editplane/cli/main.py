"""Editplane CLI - epl command."""

from pathlib import Path

import click

from editplane.cli.backends import backends_list_command
from editplane.cli.editsets import (
    editset_apply_command,
    editset_select_command,
    editset_verify_command,
)
from editplane.cli.files import (
    file_apply_command,
    file_find_command,
    file_rename_command,
    file_verify_command,
)
from editplane.cli.patterns import pattern_find_command, pattern_replace_command
from editplane.cli.symbols import (
    refs_list_command,
    rename_batch_command,
    rename_propose_command,
    symbol_at_command,
    symbols_find_command,
)
from editplane.cli.utils import Session, fail
from editplane.config import load_config
from editplane.core.errors import ConfigError
from editplane.core.logging import configure_logging, set_run_id


@click.group()
@click.version_option(version="0.1.0", prog_name="epl")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Working root (default: current directory)",
)
@click.option("--tsconfig", default=None, help="Project config file, relative to the root")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, root: Path | None, tsconfig: str | None, verbose: bool) -> None:
    """Editplane - reviewable batch edits for TypeScript and JavaScript codebases.

    Discovery commands write an editset: a JSON file listing every reference
    found and the edits that would be made. Review it, narrow it with
    editset.select, then editset.apply.
    """
    root = (root or Path.cwd()).resolve()
    set_run_id()
    configure_logging(level="DEBUG" if verbose else "WARNING")
    try:
        config = load_config(repo_root=root)
    except ConfigError as e:
        fail(e)

    if tsconfig is not None and not (root / tsconfig).is_file():
        fail(ConfigError.file_not_found(str(root / tsconfig)))

    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)

    ctx.obj = Session(root=root, config=config, tsconfig=tsconfig, verbose=verbose)


cli.add_command(symbol_at_command, name="symbol.at")
cli.add_command(refs_list_command, name="refs.list")
cli.add_command(symbols_find_command, name="symbols.find")
cli.add_command(rename_propose_command, name="rename.propose")
cli.add_command(rename_batch_command, name="rename.batch")
cli.add_command(pattern_find_command, name="pattern.find")
cli.add_command(pattern_replace_command, name="pattern.replace")
cli.add_command(editset_select_command, name="editset.select")
cli.add_command(editset_verify_command, name="editset.verify")
cli.add_command(editset_apply_command, name="editset.apply")
cli.add_command(file_find_command, name="file.find")
cli.add_command(file_rename_command, name="file.rename")
cli.add_command(file_verify_command, name="file.verify")
cli.add_command(file_apply_command, name="file.apply")
cli.add_command(backends_list_command, name="backends.list")


if __name__ == "__main__":
    cli()
