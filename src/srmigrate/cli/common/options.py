"""Common CLI options for the CLI."""

import typer

ConfigOpt = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to the migration config (INI). Defaults to $SRMIGRATE_CONFIG",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log debug details (matching, shard merges, planning)",
)

SelectOpt = typer.Option(
    False,
    "--select",
    "-s",
    help="Pick the rules to process interactively",
)

YesOpt = typer.Option(
    False,
    "--yes",
    "-y",
    help="Don't ask before replacing the output directory",
)

OutputDirOpt = typer.Option(
    None,
    "--output-dir",
    "-o",
    help="Write DDL here instead of the configured output_dir",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Render the DDL and list what would be written, but don't touch the disk",
)
