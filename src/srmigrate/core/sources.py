"""Schema introspection interface and rule-map construction.

The planning core never talks to a source database itself. It relies on a
SchemaIntrospector, one implementation per source dialect, for metadata and
for dialect-specific column formatting. This keeps dialects pluggable:
adding one means adding an adapter, not touching the core.
"""

from __future__ import annotations

import logging
from enum import Flag, auto
from typing import TYPE_CHECKING, Protocol, Sequence

from srmigrate.core.errors import ConfigError, IntrospectionError
from srmigrate.core.models import (
    ColumnDescriptor,
    KeyColumnEntry,
    MigrationRule,
    RuleBundleMap,
    TableDescriptor,
)
from srmigrate.core.rules import group_by_rule, matched_table_count
from srmigrate.core.shards import unify_shards

if TYPE_CHECKING:
    from srmigrate.core.config import MigrationConfig

logger = logging.getLogger(__name__)


class Target(Flag):
    """DDL families an introspector can feed."""

    WAREHOUSE = auto()
    EXTERNAL = auto()
    PIPELINE = auto()


class SchemaIntrospector(Protocol):
    """Interface every source dialect adapter implements."""

    targets: Target
    combine_schema_name: bool
    pipeline_connector: str
    external_engine: str | None

    def list_tables(self) -> list[TableDescriptor]:
        """Return all base tables of the source."""
        ...

    def list_columns(self) -> list[ColumnDescriptor]:
        """Return the columns of all tables."""
        ...

    def list_key_columns(self) -> list[KeyColumnEntry]:
        """Return primary/unique key column usage of all tables."""
        ...

    def format_warehouse_column(
        self, table: TableDescriptor, column: ColumnDescriptor
    ) -> str:
        """Render a column definition for the warehouse table DDL."""
        ...

    def format_pipeline_column(
        self, table: TableDescriptor, column: ColumnDescriptor
    ) -> str:
        """Render a column definition for the stream pipeline DDL."""
        ...

    def key_model(self, table: TableDescriptor) -> str:
        """Warehouse key model (PRIMARY, DUPLICATE, AGGREGATE) for keyed tables."""
        ...

    def pipeline_connection_props(self) -> dict[str, str]:
        """Connection options for the pipeline source connector."""
        ...

    def pipeline_special_props(self, rule: MigrationRule) -> dict[str, str]:
        """Dialect-specific pipeline source options (filled only if unset)."""
        ...

    def external_connection_props(self) -> dict[str, str]:
        """Connection properties for external tables."""
        ...

    def close(self) -> None:
        """Release connections."""
        ...


def build_rule_map(
    introspector: SchemaIntrospector, rules: Sequence[MigrationRule]
) -> RuleBundleMap:
    """
    Fetch source metadata, group it by rule and merge shard families.

    Raises:
        IntrospectionError: If the source has no tables or no columns, or
                            if no table matches any rule.
    """
    tables = introspector.list_tables()
    if not tables:
        raise IntrospectionError("Failed to get any table from the source database.")
    columns = introspector.list_columns()
    if not columns:
        raise IntrospectionError("Failed to get any column from the source database.")
    key_entries = introspector.list_key_columns()
    logger.info(
        "Introspected %d table(s), %d column(s), %d key column(s)",
        len(tables),
        len(columns),
        len(key_entries),
    )

    rule_map = group_by_rule(rules, tables, columns, key_entries)
    if matched_table_count(rule_map) == 0:
        raise IntrospectionError("No matching table columns found.")
    return unify_shards(rule_map)


def create_introspector(config: MigrationConfig) -> SchemaIntrospector:
    """Create the introspector for the configured source type."""
    from srmigrate.core.adapters.mysql import MySQLIntrospector, TiDBIntrospector

    factories = {
        "mysql": MySQLIntrospector,
        "tidb": TiDBIntrospector,
    }
    factory = factories.get(config.database.type)
    if factory is None:
        raise ConfigError(f"Unsupported db source: {config.database.type}")
    return factory(config)
