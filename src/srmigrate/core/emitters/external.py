"""External table DDL: warehouse tables that read straight from the source."""

from __future__ import annotations

from srmigrate.core.emitters.base import (
    DDLResult,
    Emitter,
    encode_comment,
    render_properties,
    target_table_name,
)
from srmigrate.core.keys import reorder_columns, select_key_group
from srmigrate.core.models import MigrationRule
from srmigrate.core.planning import BundlePlan, PlannedRuleMap


class ExternalEmitter(Emitter):
    """
    Emits `CREATE EXTERNAL TABLE` statements in `<engine>_external_<db>`.

    Connection and source table properties are written into the rule's
    external property map before rendering, so each statement carries the
    properties of its own table plus anything set by the user.
    """

    prefix = "starrocks-external-create"

    def emit(self, planned: PlannedRuleMap) -> DDLResult:
        result = DDLResult(prefix=self.prefix)
        engine = self.introspector.external_engine
        for rule, plans in planned.items():
            result.by_rule.setdefault(rule.seq, [])
            if engine is None:
                continue
            for plan in plans:
                database = f"{engine}_external_{plan.bundle.table.catalog}"
                result.add(rule.seq, f"CREATE DATABASE IF NOT EXISTS `{database}`", once=True)
                result.add(rule.seq, self.create_table(rule, plan, engine, database))
        return result

    def create_table(
        self, rule: MigrationRule, plan: BundlePlan, engine: str, database: str
    ) -> str:
        table = plan.bundle.table
        properties = rule.external_properties
        properties.update(self.introspector.external_connection_props())
        properties["database"] = table.catalog
        properties["table"] = table.name

        columns = plan.bundle.columns
        columns = reorder_columns(select_key_group(plan.bundle.unique_keys, columns), columns)
        column_defs = [
            self.introspector.format_warehouse_column(table, column) for column in columns
        ]

        name = target_table_name(rule, table, self.introspector)
        ddl = f"CREATE EXTERNAL TABLE `{database}`.`{name}` (\n"
        ddl += ",\n".join(column_defs) + f"\n) ENGINE={engine}\n"
        ddl += f'COMMENT "{encode_comment(table.comment)}"\n'
        ddl += f"PROPERTIES (\n{render_properties(properties)}\n)"
        return ddl
