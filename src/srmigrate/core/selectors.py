"""Table selector abstractions and rule selection.

Selectors decide whether a source table falls under a migration rule. A
rule is the AND of three pattern selectors (catalog, schema, table name);
when several rules accept a table the last declared one wins, so narrow
rules placed after broad ones override them.

Patterns use unanchored search semantics: `orders` matches `orders_01`
unless the pattern itself carries `^` or `$`. The standard `re` engine is
tried first; patterns it cannot compile (for example `\\p{Han}` classes or
variable-width lookbehinds) are handed to the `regex` library instead.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import TYPE_CHECKING, Callable, Sequence

import regex

if TYPE_CHECKING:
    from srmigrate.core.models import MigrationRule, TableDescriptor

logger = logging.getLogger(__name__)


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> Callable[[str], object] | None:
    """
    Compile a pattern with `re`, falling back to `regex`.

    Returns:
        The bound `search` method of the compiled pattern, or None when
        neither engine accepts it.
    """
    try:
        return re.compile(pattern).search
    except re.error:
        pass
    try:
        return regex.compile(pattern).search
    except regex.error as exc:
        logger.debug("Pattern %r rejected by both regex engines: %s", pattern, exc)
        return None


def pattern_matches(pattern: str, value: str) -> bool:
    """Return True if `pattern` is found anywhere in `value`."""
    search = compile_pattern(pattern)
    return search is not None and search(value) is not None


class TableSelector(ABC):
    """
    Abstract base class for all table selectors.

    A TableSelector encapsulates a single piece of matching logic that
    determines whether a given table satisfies a specific criterion.
    """

    @abstractmethod
    def matches(self, table: TableDescriptor) -> bool:
        """
        Determine whether the given table matches this selector.

        Args:
            table: Table descriptor to evaluate.

        Returns:
            True if the table matches the selector criteria, False otherwise.
        """
        ...


class PatternSelector(TableSelector):
    """
    Selector that applies a pattern to one identifier component
    (`catalog`, `schema` or `name`) of a table.
    """

    COMPONENTS = ("catalog", "schema", "name")

    def __init__(self, component: str, pattern: str):
        if component not in self.COMPONENTS:
            raise ValueError(f"Unknown table component: {component}")
        self.component = component
        self.pattern = pattern

    def matches(self, table: TableDescriptor) -> bool:
        return pattern_matches(self.pattern, getattr(table, self.component))


class AndSelector(TableSelector):
    """
    Composite selector that matches a table only if all child selectors match.
    """

    def __init__(self, selectors: list[TableSelector]):
        self.selectors = selectors

    def matches(self, table: TableDescriptor) -> bool:
        return all(s.matches(table) for s in self.selectors)


def rule_selector(rule: MigrationRule) -> TableSelector:
    """Build the selector a rule applies to candidate tables."""
    return AndSelector(
        [
            PatternSelector("catalog", rule.catalog_pattern),
            PatternSelector("schema", rule.schema_pattern or ".*"),
            PatternSelector("name", rule.table_pattern),
        ]
    )


def select_rule(
    rules: Sequence[MigrationRule], table: TableDescriptor
) -> MigrationRule | None:
    """
    Pick the rule that owns a table.

    Every rule is evaluated; the matching rule with the greatest index in
    `rules` is returned. Returns None when no rule matches.
    """
    selected: MigrationRule | None = None
    for rule in rules:
        if rule_selector(rule).matches(table):
            selected = rule
    return selected
