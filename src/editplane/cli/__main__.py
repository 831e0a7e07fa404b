from editplane.cli.main import cli

cli()
