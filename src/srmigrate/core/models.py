"""Core domain models for schema migration planning.

These models describe source-database metadata (tables, columns, key
column usage) and the user-declared migration rules that map them onto
target tables. They are deliberately mutable: shard unification rewrites
identifiers in place and key classification reorders columns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from srmigrate.core.properties import PropertyMap

GIB = 1024 * 1024 * 1024
DAY_SECONDS = 24 * 3600
SHARD_SUFFIX = "_auto_shard"


@dataclass
class TableDescriptor:
    """
    A source table as reported by the schema introspector.

    Attributes:
        catalog: Database (catalog) name. Equal to `schema` on sources
                 without a separate schema level (MySQL, TiDB).
        schema: Schema name.
        name: Table name.
        engine: Storage engine / table kind reported by the source.
        size_bytes: Data size in bytes.
        created_at: Creation time, or None when the source does not track it.
        comment: Free-text table comment.
    """

    catalog: str
    schema: str
    name: str
    engine: str = ""
    size_bytes: int = 0
    created_at: datetime | None = None
    comment: str = ""

    @property
    def identifier(self) -> tuple[str, str, str]:
        return (self.catalog, self.schema, self.name)

    @property
    def schema_prefixed_name(self) -> str:
        return f"{self.schema}__{self.name}"

    def rename(self, catalog: str, schema: str, name: str) -> None:
        self.catalog, self.schema, self.name = catalog, schema, name


@dataclass
class ColumnDescriptor:
    """A single column of a source table."""

    catalog: str
    schema: str
    table: str
    name: str
    ordinal_position: int
    data_type: str
    column_type: str = ""
    numeric_precision: int = 0
    numeric_scale: int = 0
    nullable: bool = True
    default: str | None = None
    comment: str = ""
    in_partition_key: bool = False
    in_sorting_key: bool = False
    in_sampling_key: bool = False

    @property
    def identifier(self) -> tuple[str, str, str]:
        return (self.catalog, self.schema, self.table)

    def rename(self, catalog: str, schema: str, table: str) -> None:
        self.catalog, self.schema, self.table = catalog, schema, table


@dataclass
class KeyColumnEntry:
    """One column of a primary or unique constraint."""

    catalog: str
    schema: str
    table: str
    column_name: str
    constraint_name: str
    ordinal_position: int = 0

    @property
    def identifier(self) -> tuple[str, str, str]:
        return (self.catalog, self.schema, self.table)

    def rename(self, catalog: str, schema: str, table: str) -> None:
        self.catalog, self.schema, self.table = catalog, schema, table


@dataclass(eq=False)
class MigrationRule:
    """
    A user-declared rule: three match patterns plus target directives.

    Rules compare and hash by identity so they can key a RuleBundleMap.
    `from_shard` starts out True and is settled by shard unification.
    The property maps only ever grow: emitters add keys that later
    emitters (and later tables of the same rule) observe.

    Attributes:
        seq: Rule identifier taken from the config section name.
        catalog_pattern: Regex matched against the table catalog.
        table_pattern: Regex matched against the table name.
        schema_pattern: Regex matched against the schema (defaults to `.*`).
        partition_key: Explicit range-partition column.
        partitions: Explicit partition clause body.
        duplicate_keys: Explicit duplicate-key column list.
        distributed_by: Explicit hash distribution column list.
        bucket_count: Explicit bucket count (0 means compute).
    """

    seq: str
    catalog_pattern: str
    table_pattern: str
    schema_pattern: str = ".*"
    partition_key: str = ""
    partitions: str = ""
    duplicate_keys: str = ""
    distributed_by: str = ""
    bucket_count: int = 0
    properties: PropertyMap = field(default_factory=PropertyMap)
    external_properties: PropertyMap = field(default_factory=PropertyMap)
    pipeline_sink_props: PropertyMap = field(default_factory=PropertyMap)
    pipeline_source_props: PropertyMap = field(default_factory=PropertyMap)
    from_shard: bool = True


@dataclass
class TableBundle:
    """
    A table together with its columns and classified key entries.

    `shard_members` holds the pre-merge identifiers of every table merged
    into this bundle; it is empty for bundles that were never merged.
    """

    table: TableDescriptor
    columns: list[ColumnDescriptor] = field(default_factory=list)
    primary_keys: list[KeyColumnEntry] = field(default_factory=list)
    unique_keys: list[KeyColumnEntry] = field(default_factory=list)
    shard_members: list[tuple[str, str, str]] = field(default_factory=list)

    @property
    def is_merged(self) -> bool:
        return len(self.shard_members) > 1


RuleBundleMap = dict[MigrationRule, list[TableBundle]]
