"""Exit handling utilities for the CLI."""

from typing import NoReturn

import typer

from srmigrate.cli.common.output import out


def ok_exit(msg: str | None = None) -> NoReturn:
    """Exit successfully with an optional informational message."""
    if msg:
        out.info(msg)
    raise typer.Exit(0)


def warn_exit(msg: str, code: int = 0) -> NoReturn:
    """Exit with a warning message and optional exit code."""
    out.warn(msg)
    raise typer.Exit(code)


def exit_from_exc(exc: Exception, *, message: str | None = None, code: int = 1) -> NoReturn:
    """
    Print a core failure (its own text unless `message` is given) and exit.

    The underlying exception stays chained for `--verbose` tracebacks.
    """
    out.error(message or str(exc))
    raise typer.Exit(code) from exc
