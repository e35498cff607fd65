"""Grouping of introspected tables under migration rules.

This module joins the flat metadata lists produced by an introspector
(tables, columns, key column usage) into per-table bundles and files each
bundle under the single rule that owns it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Sequence

from srmigrate.core.models import (
    ColumnDescriptor,
    KeyColumnEntry,
    MigrationRule,
    RuleBundleMap,
    TableBundle,
    TableDescriptor,
)
from srmigrate.core.selectors import select_rule

logger = logging.getLogger(__name__)

PRIMARY_CONSTRAINT = "PRIMARY"
PRIMARY_CONSTRAINT_PREFIXES = ("PK__",)


def is_primary_constraint(
    constraint_name: str, prefixes: Sequence[str] = PRIMARY_CONSTRAINT_PREFIXES
) -> bool:
    """
    Tell primary-key constraints apart from unique ones by name.

    MySQL names every primary key `PRIMARY`; SQL Server generates names
    starting with `PK__`.
    """
    return constraint_name == PRIMARY_CONSTRAINT or constraint_name.startswith(
        tuple(prefixes)
    )


def empty_rule_map(rules: Iterable[MigrationRule]) -> RuleBundleMap:
    """Return a map holding every rule with an empty bundle list."""
    return {rule: [] for rule in rules}


def group_by_rule(
    rules: Sequence[MigrationRule],
    tables: Iterable[TableDescriptor],
    columns: Iterable[ColumnDescriptor],
    key_entries: Iterable[KeyColumnEntry],
) -> RuleBundleMap:
    """
    Assign each table to its owning rule and build its bundle.

    Every rule appears in the result, in declaration order, even when no
    table matched it. Tables matched by no rule are dropped.

    Args:
        rules: Migration rules in declaration order.
        tables: Introspected tables.
        columns: Introspected columns of all tables.
        key_entries: Key column usage rows of all tables.

    Returns:
        A RuleBundleMap with one bundle per matched table.
    """
    columns_by_table: dict[tuple[str, str, str], list[ColumnDescriptor]] = defaultdict(list)
    for column in columns:
        columns_by_table[column.identifier].append(column)

    keys_by_table: dict[tuple[str, str, str], list[KeyColumnEntry]] = defaultdict(list)
    for entry in key_entries:
        keys_by_table[entry.identifier].append(entry)

    rule_map = empty_rule_map(rules)
    for table in tables:
        rule = select_rule(rules, table)
        if rule is None:
            logger.debug("Table %s.%s.%s matches no rule", *table.identifier)
            continue
        logger.debug("Table %s.%s.%s -> rule %s", *table.identifier, rule.seq)

        table_columns = sorted(
            columns_by_table.get(table.identifier, []),
            key=lambda c: c.ordinal_position,
        )
        primary: list[KeyColumnEntry] = []
        unique: list[KeyColumnEntry] = []
        for entry in keys_by_table.get(table.identifier, []):
            if is_primary_constraint(entry.constraint_name):
                primary.append(entry)
            else:
                unique.append(entry)

        rule_map[rule].append(
            TableBundle(
                table=table,
                columns=table_columns,
                primary_keys=primary,
                unique_keys=unique,
            )
        )
    return rule_map


def matched_table_count(rule_map: RuleBundleMap) -> int:
    return sum(len(bundles) for bundles in rule_map.values())
