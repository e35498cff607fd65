"""Terminal UI utilities for srmigrate."""

from __future__ import annotations

import questionary

from srmigrate.cli.common.tui_style import QUESTIONARY_STYLE_SELECT
from srmigrate.core.models import MigrationRule

_MAX_PATTERN_WIDTH = 48


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def _rule_pattern(rule: MigrationRule) -> str:
    return ".".join(
        _truncate(p, _MAX_PATTERN_WIDTH)
        for p in (rule.catalog_pattern, rule.schema_pattern, rule.table_pattern)
    )


def _rule_choice_title(rule: MigrationRule, *, seq_width: int) -> str:
    """Format one rule choice as `<seq>  <db>.<schema>.<table>` with aligned patterns."""
    return f"{rule.seq.ljust(seq_width)}  {_rule_pattern(rule)}"


def select_rules(rules: list[MigrationRule]) -> list[MigrationRule]:
    """Display a checkbox prompt to select rules from a list.

    Args:
        rules: The configured migration rules.

    Returns:
        The selected rules in their configured order, or an empty list if none selected.
    """
    seq_width = max((len(rule.seq) for rule in rules), default=0)

    choices = [
        questionary.Choice(
            title=_rule_choice_title(rule, seq_width=seq_width),
            value=rule,
        )
        for rule in rules
    ]

    picked = (
        questionary.checkbox(
            "Select rules:",
            choices=choices,
            style=QUESTIONARY_STYLE_SELECT,
        ).ask()
        or []
    )
    return [rule for rule in rules if any(rule is p for p in picked)]
