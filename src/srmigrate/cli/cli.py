"""CLI application for source schema to StarRocks migration tooling."""

import typer

from srmigrate.cli.commands import migrate
from srmigrate.cli.common.context import build_migrate_context
from srmigrate.cli.common.options import ConfigOpt, VerboseOpt
from srmigrate.cli.common.output import setup_logging

app = typer.Typer(
    help="srmigrate - generate StarRocks, external table and Flink DDL from a source schema",
    no_args_is_help=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    config: str | None = ConfigOpt,
    verbose: bool = VerboseOpt,
):
    """Load the migration config once per invocation."""
    setup_logging(verbose)
    ctx.obj = build_migrate_context(config, verbose=verbose)
    ctx.call_on_close(ctx.obj.close)


app.command("rules")(migrate.rules)
app.command("plan")(migrate.plan)
app.command("generate")(migrate.generate)


if __name__ == "__main__":
    app()
