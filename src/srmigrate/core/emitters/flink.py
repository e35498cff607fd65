"""Stream pipeline (Flink SQL) DDL.

For every bundle the pipeline gets a CDC source table, a warehouse sink
table and an `INSERT INTO ... SELECT` job connecting them. Shard families
read all of their member tables through the rule's own patterns.
"""

from __future__ import annotations

import logging

from srmigrate.core.emitters.base import (
    DDLResult,
    Emitter,
    quote_columns,
    render_properties,
    target_table_name,
    trim_anchors,
)
from srmigrate.core.models import MigrationRule
from srmigrate.core.planning import BundlePlan, PlannedRuleMap
from srmigrate.core.properties import fill_missing

logger = logging.getLogger(__name__)

CATALOG = "default_catalog"
SINK_CONNECTOR = "starrocks"
SERVER_ID_CONNECTORS = ("mysql-cdc",)
OPTION_QUOTE = "'"


def _server_id(rule: MigrationRule) -> int:
    raw = rule.pipeline_source_props.get("server-id", "")
    try:
        return int(raw)
    except ValueError:
        if raw:
            logger.warning("Rule %s: ignoring non-numeric server-id %r", rule.seq, raw)
        return -1


class PipelineEmitter(Emitter):
    """Emits source/sink table pairs and insert jobs for the pipeline."""

    prefix = "flink-create"

    def emit(self, planned: PlannedRuleMap) -> DDLResult:
        result = DDLResult(prefix=self.prefix)
        for rule, plans in planned.items():
            result.by_rule.setdefault(rule.seq, [])
            server_id = -1
            if self.introspector.pipeline_connector in SERVER_ID_CONNECTORS:
                server_id = _server_id(rule)
            for plan in plans:
                catalog = plan.bundle.table.catalog
                result.add(
                    rule.seq,
                    f"CREATE DATABASE IF NOT EXISTS `{CATALOG}`.`{catalog}`",
                    once=True,
                )
                if server_id > 0:
                    rule.pipeline_source_props["server-id"] = str(server_id)
                    server_id += 1
                for statement in self.statements(rule, plan):
                    result.add(rule.seq, statement)
        return result

    def source_props(self, rule: MigrationRule, plan: BundlePlan) -> dict[str, str]:
        table = plan.bundle.table
        props = rule.pipeline_source_props
        props["connector"] = self.introspector.pipeline_connector
        props.update(self.introspector.pipeline_connection_props())
        if rule.from_shard:
            props["database-name"] = trim_anchors(rule.catalog_pattern)
            props["table-name"] = trim_anchors(rule.table_pattern)
            if self.introspector.combine_schema_name:
                props["schema-name"] = trim_anchors(rule.schema_pattern)
        else:
            props["database-name"] = table.catalog
            props["table-name"] = table.name
            if self.introspector.combine_schema_name:
                props["schema-name"] = table.schema
        fill_missing(props, self.introspector.pipeline_special_props(rule))
        return props.copy()

    def sink_props(self, rule: MigrationRule, plan: BundlePlan, name: str) -> dict[str, str]:
        props = rule.pipeline_sink_props
        props["connector"] = SINK_CONNECTOR
        props["database-name"] = plan.bundle.table.catalog
        props["table-name"] = name
        return props.copy()

    def statements(self, rule: MigrationRule, plan: BundlePlan) -> list[str]:
        table = plan.bundle.table
        name = target_table_name(rule, table, self.introspector)
        columns = ",\n".join(
            self.introspector.format_pipeline_column(table, column)
            for column in plan.bundle.columns
        )
        if plan.key_columns:
            columns += f",\n  PRIMARY KEY({quote_columns(plan.key_columns)})\n NOT ENFORCED"

        src_name = f"{name}_src"
        sink_name = f"{name}_sink"
        src_props = render_properties(self.source_props(rule, plan), quote=OPTION_QUOTE)
        sink_props = render_properties(self.sink_props(rule, plan, name), quote=OPTION_QUOTE)
        src = (
            f"CREATE TABLE IF NOT EXISTS `{CATALOG}`.`{table.catalog}`.`{src_name}` (\n"
            f"{columns}\n) with (\n{src_props}\n)"
        )
        sink = (
            f"CREATE TABLE IF NOT EXISTS `{CATALOG}`.`{table.catalog}`.`{sink_name}` (\n"
            f"{columns}\n) with (\n{sink_props}\n)"
        )
        insert = (
            f"INSERT INTO `{CATALOG}`.`{table.catalog}`.`{sink_name}` "
            f"SELECT * FROM `{CATALOG}`.`{table.catalog}`.`{src_name}`"
        )
        return [src, sink, insert]
