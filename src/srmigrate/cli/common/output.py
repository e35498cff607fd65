"""Output formatting utilities for the CLI."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import questionary
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.theme import Theme

from srmigrate.cli.common.tui_style import QUESTIONARY_STYLE_CONFIRM
from srmigrate.core.models import GIB

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)


def setup_logging(verbose: bool = False) -> None:
    """Route `logging` through the shared Rich console."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(
            RichHandler(console=console, show_path=False, rich_tracebacks=True)
        )


def _gib(size: float) -> str:
    return f"{size / GIB:.2f} GiB"


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("auto_enter",):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        return f"[srmigrate] {message}"

    def info(self, msg: str) -> None:
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {v}")

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """Ask a yes/no question with the shared confirmation style."""
        console.print("[meta]Use y/n then Enter[/]")

        prompt = self._q_try(
            questionary.confirm,
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
        )
        return bool(prompt.ask())

    def rules_table(self, rules: Iterable[Any], title: str = "Rules") -> None:
        """
        Expects objects with .seq, the three patterns and the overrides
        (like srmigrate.core.models.MigrationRule).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Rule", style="ok", no_wrap=True)
        t.add_column("Database")
        t.add_column("Schema")
        t.add_column("Table")
        t.add_column("Overrides", style="meta")

        for r in rules:
            overrides = {
                "partition_key": r.partition_key,
                "partitions": "yes" if r.partitions else "",
                "duplicate_keys": r.duplicate_keys,
                "distributed_by": r.distributed_by,
                "buckets": str(r.bucket_count) if r.bucket_count > 0 else "",
            }
            shown = ", ".join(f"{k}={v}" for k, v in overrides.items() if v)
            t.add_row(str(r.seq), r.catalog_pattern, r.schema_pattern, r.table_pattern, shown)

        console.print(t)

    def plan_table(self, planned: Mapping[Any, Iterable[Any]], title: str = "Plan") -> None:
        """
        Expects a rule -> [BundlePlan] mapping (srmigrate.core.planning).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Rule", style="ok", no_wrap=True)
        t.add_column("Table")
        t.add_column("Shards", justify="right")
        t.add_column("Keys", style="meta")
        t.add_column("Size", justify="right")
        t.add_column("Unit")
        t.add_column("Dynamic")
        t.add_column("Buckets", justify="right")

        for rule, plans in planned.items():
            plans = list(plans)
            if not plans:
                t.add_row(str(rule.seq), "[meta]no tables[/]", "", "", "", "", "", "")
                continue
            for p in plans:
                table = p.bundle.table
                t.add_row(
                    str(rule.seq),
                    ".".join(dict.fromkeys(table.identifier)),
                    str(len(p.bundle.shard_members) or 1),
                    ", ".join(p.key_columns) or "-",
                    _gib(table.size_bytes),
                    p.partition.granularity.value,
                    "[ok]yes[/]" if p.partition.dynamic_properties else "no",
                    str(p.bucket_count(rule)),
                )

        console.print(t)

    def files_table(self, paths: Iterable[Path], title: str = "Written files") -> None:
        t = Table(title=title, show_lines=False)
        t.add_column("File", style="ok")
        t.add_column("Bytes", justify="right", style="meta")

        for path in paths:
            t.add_row(str(path), str(path.stat().st_size))

        console.print(t)


out = Out()
