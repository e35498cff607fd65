"""Shard family detection and merging.

Applications often split one logical table into physical shards such as
`orders_00`, `orders_01`, ... spread over one or more databases. When every
table under a rule has exactly the same column layout, the tables are
treated as shards and folded into a single logical table whose name is
derived from the longest common prefix of the members' identifiers.
"""

from __future__ import annotations

import logging
from typing import Sequence

from srmigrate.core.models import SHARD_SUFFIX, RuleBundleMap, TableBundle

logger = logging.getLogger(__name__)


def longest_common_xfix(strings: Sequence[str], prefix: bool = True) -> str:
    """
    Return the longest common prefix (or suffix) of `strings`.

    The first string seeds the result and each following string cuts it
    back at the first differing character. An empty list, or any empty
    string in it, yields "".
    """
    if not strings:
        return ""
    xfix = strings[0]
    for value in strings:
        if not xfix or not value:
            return ""
        limit = min(len(xfix), len(value))
        if prefix:
            size = 0
            while size < limit and xfix[size] == value[size]:
                size += 1
            xfix = xfix[:size]
        else:
            size = 0
            while size < limit and xfix[-1 - size] == value[-1 - size]:
                size += 1
            xfix = xfix[len(xfix) - size :]
    return xfix


def unify_identifier(values: Sequence[str], placeholder: str) -> str:
    """
    Derive one identifier for a family of identifiers.

    - no common prefix: `<placeholder>_auto_shard`
    - the prefix is the whole first value (all equal): the value itself
    - otherwise: `<prefix>_auto_shard`
    """
    common = longest_common_xfix(values, prefix=True)
    if not common:
        return placeholder + SHARD_SUFFIX
    if common == values[0]:
        return values[0]
    return common + SHARD_SUFFIX


def is_shard_family(bundles: Sequence[TableBundle]) -> bool:
    """
    Check that all bundles share one column layout.

    Layouts are equal when the column counts match and, position by
    position, the column names and declared types are identical.
    """
    if len(bundles) < 2:
        return False
    reference = [(c.name, c.column_type) for c in bundles[0].columns]
    for bundle in bundles[1:]:
        layout = [(c.name, c.column_type) for c in bundle.columns]
        if layout != reference:
            return False
    return True


def merge_bundles(bundles: Sequence[TableBundle]) -> TableBundle:
    """
    Fold a shard family into its first bundle.

    The retained bundle gets the unified identifier triple (also written to
    every column and key entry), the summed size and the earliest creation
    time of all members.
    """
    first = bundles[0]
    members = [b.table.identifier for b in bundles]
    catalog = unify_identifier([m[0] for m in members], "db")
    schema = unify_identifier([m[1] for m in members], "schema")
    name = unify_identifier([m[2] for m in members], "table")

    created = [b.table.created_at for b in bundles if b.table.created_at is not None]
    first.table.created_at = min(created) if created else None
    first.table.size_bytes = sum(b.table.size_bytes for b in bundles)

    first.table.rename(catalog, schema, name)
    for entry in first.primary_keys + first.unique_keys:
        entry.rename(catalog, schema, name)
    for column in first.columns:
        column.rename(catalog, schema, name)
    first.shard_members = members
    return first


def unify_shards(rule_map: RuleBundleMap) -> RuleBundleMap:
    """
    Detect and merge shard families rule by rule, in place.

    A rule whose tables do not share a layout keeps its per-table bundles
    and has `from_shard` cleared. A singleton bundle that is already the
    product of a merge keeps the flag set, so running this twice on the
    same map changes nothing.
    """
    for rule, bundles in rule_map.items():
        if len(bundles) <= 1:
            rule.from_shard = bool(bundles) and bundles[0].is_merged
            continue
        if not is_shard_family(bundles):
            logger.debug(
                "Rule %s: %d tables differ in layout, keeping them apart",
                rule.seq,
                len(bundles),
            )
            rule.from_shard = False
            continue
        merged = merge_bundles(bundles)
        rule.from_shard = True
        rule_map[rule] = [merged]
        logger.info(
            "Rule %s: merged %d shard tables into %s.%s.%s",
            rule.seq,
            len(bundles),
            *merged.table.identifier,
        )
    return rule_map
