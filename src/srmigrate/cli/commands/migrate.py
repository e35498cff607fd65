"""Commands for planning and generating migration DDL."""

from pathlib import Path

import typer

from srmigrate.cli.common.context import MigrateAppContext
from srmigrate.cli.common.exits import exit_from_exc, ok_exit, warn_exit
from srmigrate.cli.common.options import DryRunOpt, OutputDirOpt, SelectOpt, YesOpt
from srmigrate.cli.common.output import out
from srmigrate.cli.tui import select_rules
from srmigrate.core import runner
from srmigrate.core.errors import MigrationError
from srmigrate.core.models import MigrationRule
from srmigrate.core.planning import PlannedRuleMap
from srmigrate.core.rules import matched_table_count
from srmigrate.core.writer import prepare_output_dir, write_results


def _pick_rules(appctx: MigrateAppContext, select: bool) -> list[MigrationRule] | None:
    """Rules chosen interactively, or None to process all of them."""
    if not select:
        return None
    picked = select_rules(appctx.config.rules)
    if not picked:
        warn_exit("No rules selected", code=0)

    out.header("Selected rules")
    out.rules_table(picked, title="Selected")
    return picked


def rules(ctx: typer.Context):
    """
    List the configured migration rules.
    """
    appctx: MigrateAppContext = ctx.obj
    config = appctx.config

    if not config.rules:
        warn_exit(f"No rules in {config.path}", code=0)

    out.kv(
        {
            "config": config.path,
            "source": f"{config.database.type} {config.database.host}:{config.database.port}",
            "backends": config.backend_count,
            "output_dir": config.output_dir,
        }
    )
    out.rules_table(config.rules, title="Configured rules")


def plan(ctx: typer.Context, select: bool = SelectOpt):
    """
    Introspect the source and show how every matched table will be laid out.
    """
    appctx: MigrateAppContext = ctx.obj
    picked = _pick_rules(appctx, select)

    try:
        with out.status("Introspecting source..."):
            planned: PlannedRuleMap = runner.plan(
                appctx.config, appctx.introspector, rules=picked
            )
    except MigrationError as exc:
        exit_from_exc(exc)

    out.plan_table(planned, title="Migration plan")
    out.success(
        f"{matched_table_count(planned)} table bundle(s) across {len(planned)} rule(s)"
    )


def generate(
    ctx: typer.Context,
    select: bool = SelectOpt,
    yes: bool = YesOpt,
    output_dir: Path | None = OutputDirOpt,
    dry_run: bool = DryRunOpt,
):
    """
    Generate warehouse, external table and pipeline DDL files.
    """
    appctx: MigrateAppContext = ctx.obj
    picked = _pick_rules(appctx, select)
    directory = output_dir or Path(appctx.config.output_dir)

    try:
        with out.status("Generating DDL..."):
            results = runner.generate(appctx.config, appctx.introspector, rules=picked)
    except MigrationError as exc:
        exit_from_exc(exc)

    if dry_run:
        out.kv({r.prefix: f"{len(r.statements)} statement(s)" for r in results})
        warn_exit(f"Dry-run enabled: nothing was written to {directory}", code=0)

    if directory.exists() and any(directory.iterdir()) and not yes:
        if not out.confirm(f"Replace everything in {directory}?"):
            ok_exit("Cancelled")

    prepare_output_dir(directory)
    written: list[Path] = []
    for result in results:
        written.extend(write_results(result, directory))

    if not written:
        warn_exit("No statements generated", code=0)

    out.files_table(written)
    out.success(f"Wrote {len(written)} file(s) to {directory}")
