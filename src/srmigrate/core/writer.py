"""Writing generated DDL to disk."""

from __future__ import annotations

import shutil
from pathlib import Path

from srmigrate.core.emitters.base import DDLResult


def render_statements(statements: list[str]) -> str:
    return ";\n\n".join(statements) + ";\n"


def prepare_output_dir(directory: Path) -> Path:
    """Recreate `directory` empty."""
    if directory.exists():
        shutil.rmtree(directory)
    directory.mkdir(parents=True)
    return directory


def write_results(result: DDLResult, directory: Path) -> list[Path]:
    """
    Write `<prefix>.all.sql` plus one `<prefix>.<seq>.sql` per rule.

    Rules without statements get no file.

    Returns:
        Paths of the files written.
    """
    written: list[Path] = []
    if not result.statements:
        return written

    path = directory / f"{result.prefix}.all.sql"
    path.write_text(render_statements(result.statements), encoding="utf-8")
    written.append(path)

    for seq, statements in result.by_rule.items():
        if not statements:
            continue
        path = directory / f"{result.prefix}.{seq}.sql"
        path.write_text(render_statements(statements), encoding="utf-8")
        written.append(path)
    return written
