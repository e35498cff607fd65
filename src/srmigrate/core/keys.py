"""Key column selection and column reordering.

Target tables need their key columns first and every key column must be
NOT NULL, so the first constraint whose columns are all non-nullable is
taken as the table key.
"""

from __future__ import annotations

import logging
from typing import Sequence

from srmigrate.core.models import ColumnDescriptor, KeyColumnEntry, TableBundle

logger = logging.getLogger(__name__)


def candidate_keys(bundle: TableBundle) -> list[KeyColumnEntry]:
    """Primary key entries, or the unique ones when there is no primary key."""
    if bundle.primary_keys:
        return bundle.primary_keys
    return bundle.unique_keys


def group_by_constraint(entries: Sequence[KeyColumnEntry]) -> dict[str, list[str]]:
    """
    Group key columns by constraint name, keeping first-seen constraint
    order. Columns within a constraint follow their ordinal position.
    """
    groups: dict[str, list[KeyColumnEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.constraint_name, []).append(entry)
    return {
        name: [e.column_name for e in sorted(members, key=lambda e: e.ordinal_position)]
        for name, members in groups.items()
    }


def select_key_group(
    entries: Sequence[KeyColumnEntry], columns: Sequence[ColumnDescriptor]
) -> list[str]:
    """
    Return the columns of the first constraint usable as a table key.

    A constraint qualifies when each of its columns exists in `columns` and
    is not nullable. Returns an empty list when no constraint qualifies.
    """
    nullable = {c.name: c.nullable for c in columns}
    for name, key_columns in group_by_constraint(entries).items():
        if all(nullable.get(col) is False for col in key_columns):
            return key_columns
        logger.debug("Skipping key %s: nullable or unknown columns", name)
    return []


def reorder_columns(
    key_columns: Sequence[str], columns: Sequence[ColumnDescriptor]
) -> list[ColumnDescriptor]:
    """
    Put key columns first (in key order), then the rest by ordinal position.
    """
    if not key_columns:
        return list(columns)
    by_name = {c.name: c for c in columns}
    leading = [by_name[name] for name in key_columns]
    rest = sorted(
        (c for c in columns if c.name not in key_columns),
        key=lambda c: c.ordinal_position,
    )
    return leading + rest


def classify_keys(
    bundle: TableBundle, entries: Sequence[KeyColumnEntry] | None = None
) -> list[str]:
    """
    Select the bundle's key and reorder its columns around it.

    Args:
        bundle: Bundle whose `columns` are rewritten in place.
        entries: Key entries to choose from; defaults to `candidate_keys`.

    Returns:
        The selected key column names (empty when there is no usable key).
    """
    if entries is None:
        entries = candidate_keys(bundle)
    key_columns = select_key_group(entries, bundle.columns)
    bundle.columns = reorder_columns(key_columns, bundle.columns)
    return key_columns
