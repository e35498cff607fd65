"""Native warehouse (StarRocks OLAP) table DDL."""

from __future__ import annotations

import logging

from srmigrate.core.emitters.base import (
    TEMPORAL_TYPES,
    DDLResult,
    Emitter,
    encode_comment,
    quote_columns,
    render_properties,
    target_table_name,
)
from srmigrate.core.models import MigrationRule
from srmigrate.core.planning import BundlePlan, PartitionRange, PlannedRuleMap
from srmigrate.core.properties import fill_missing

logger = logging.getLogger(__name__)

DUPLICATE_KEY_COLUMNS = 3


def render_partition_range(partition_range: PartitionRange) -> str:
    unit = partition_range.unit.value.lower()
    return (
        f'  START ("{partition_range.start.isoformat()}") '
        f'END ("{partition_range.end.isoformat()}") '
        f"EVERY (INTERVAL 1 {unit})"
    )


def partition_key_for(rule: MigrationRule, plan: BundlePlan) -> str:
    """Explicit rule partition key, else the first temporal column. Unquoted."""
    if rule.partition_key:
        return rule.partition_key.strip().strip("`")
    for column in plan.bundle.columns:
        if column.data_type.lower() in TEMPORAL_TYPES:
            return column.name
    return ""


def partition_clause(rule: MigrationRule, plan: BundlePlan) -> str:
    """Explicit rule partitions, else the planned range (may be "")."""
    if rule.partitions:
        return rule.partitions
    if plan.partition.partition_range is None:
        return ""
    return render_partition_range(plan.partition.partition_range)


class StarRocksEmitter(Emitter):
    """
    Emits `CREATE TABLE` statements for the warehouse.

    Keyed tables use the dialect's key model on the selected key. Tables
    without a usable key become duplicate-key tables and are the only ones
    that get range partitioning and dynamic-partition properties.
    """

    prefix = "starrocks-create"

    def emit(self, planned: PlannedRuleMap) -> DDLResult:
        result = DDLResult(prefix=self.prefix)
        for rule, plans in planned.items():
            result.by_rule.setdefault(rule.seq, [])
            for plan in plans:
                catalog = plan.bundle.table.catalog
                result.add(rule.seq, f"CREATE DATABASE IF NOT EXISTS `{catalog}`", once=True)
                result.add(rule.seq, self.create_table(rule, plan))
        return result

    def create_table(self, rule: MigrationRule, plan: BundlePlan) -> str:
        table = plan.bundle.table
        name = target_table_name(rule, table, self.introspector)
        column_defs = [
            self.introspector.format_warehouse_column(table, column)
            for column in plan.bundle.columns
        ]
        ddl = f"CREATE TABLE IF NOT EXISTS `{table.catalog}`.`{name}` (\n"
        ddl += ",\n".join(column_defs) + "\n) ENGINE=olap\n"

        # 1. keys
        if plan.key_columns:
            keys_list = quote_columns(plan.key_columns)
            model = self.introspector.key_model(table)
            ddl += f"{model} KEY({keys_list})\n"
        else:
            keys_list = quote_columns(
                c.name for c in plan.bundle.columns[:DUPLICATE_KEY_COLUMNS]
            )
            ddl += f"DUPLICATE KEY({rule.duplicate_keys or keys_list})\n"

        # 2. comment
        ddl += f'COMMENT "{encode_comment(table.comment)}"\n'

        # 3. partitions
        partitioned = False
        partition_key = partition_key_for(rule, plan)
        if not plan.key_columns and partition_key:
            clause = partition_clause(rule, plan)
            if clause:
                ddl += f"PARTITION BY RANGE (`{partition_key}`) (\n{clause}\n)\n"
                partitioned = True

        # 4. distribution
        buckets = plan.bucket_count(rule)
        ddl += f"DISTRIBUTED BY HASH({rule.distributed_by or keys_list}) BUCKETS {buckets}\n"

        # 5. properties
        properties = rule.properties
        dynamic = plan.partition.dynamic_properties
        if partitioned and dynamic and "dynamic_partition.time_unit" not in properties:
            added = fill_missing(properties, dynamic)
            added += fill_missing(properties, {"dynamic_partition.buckets": str(buckets)})
            logger.debug("Rule %s: added dynamic partition properties %s", rule.seq, added)
        ddl += f"PROPERTIES (\n{render_properties(properties)}\n)"
        return ddl
