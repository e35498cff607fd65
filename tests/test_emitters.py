from datetime import datetime, timedelta

import pytest

from srmigrate.core.emitters.base import DDLResult, trim_anchors
from srmigrate.core.emitters.external import ExternalEmitter
from srmigrate.core.emitters.flink import PipelineEmitter
from srmigrate.core.emitters.starrocks import StarRocksEmitter
from srmigrate.core.models import (
    GIB,
    ColumnDescriptor,
    KeyColumnEntry,
    MigrationRule,
    TableBundle,
    TableDescriptor,
)
from srmigrate.core.planning import plan_rule_map
from srmigrate.core.shards import unify_shards

NOW = datetime(2024, 6, 15, 10, 0, 0)


def _users(catalog="shop", name="users"):
    return TableBundle(
        table=TableDescriptor(
            catalog, catalog, name, size_bytes=GIB // 2,
            created_at=NOW - timedelta(days=365), comment="app users",
        ),
        columns=[
            ColumnDescriptor(catalog, catalog, name, "email", 1, "varchar", nullable=False),
            ColumnDescriptor(catalog, catalog, name, "id", 2, "bigint", nullable=False),
        ],
        primary_keys=[KeyColumnEntry(catalog, catalog, name, "id", "PRIMARY", 1)],
        unique_keys=[KeyColumnEntry(catalog, catalog, name, "email", "uk_email", 1)],
    )


def _events(size_bytes=3000 * GIB):
    return TableBundle(
        table=TableDescriptor(
            "shop", "shop", "events", size_bytes=size_bytes, created_at=NOW - timedelta(days=100)
        ),
        columns=[
            ColumnDescriptor("shop", "shop", "events", "id", 1, "bigint"),
            ColumnDescriptor("shop", "shop", "events", "ts", 2, "datetime"),
            ColumnDescriptor("shop", "shop", "events", "kind", 3, "varchar"),
            ColumnDescriptor("shop", "shop", "events", "payload", 4, "json"),
        ],
    )


def _planned(rule_map):
    return plan_rule_map(unify_shards(rule_map), backend_count=3, now=NOW)


@pytest.fixture
def introspector(make_introspector):
    return make_introspector()


def test_ddl_result_once_statements_are_not_repeated():
    result = DDLResult(prefix="x")
    result.add("1", "CREATE DATABASE a", once=True)
    result.add("1", "CREATE DATABASE a", once=True)
    result.add("2", "CREATE DATABASE a", once=True)
    result.add("2", "CREATE TABLE t")

    assert result.statements == ["CREATE DATABASE a", "CREATE TABLE t"]
    assert result.by_rule == {"1": ["CREATE DATABASE a"], "2": ["CREATE DATABASE a", "CREATE TABLE t"]}


def test_trim_anchors():
    assert trim_anchors(r"^orders_\d+$") == r"orders_\d+"
    assert trim_anchors("orders") == "orders"


def test_keyed_table_uses_key_model(introspector):
    rule = MigrationRule(seq="1", catalog_pattern="shop", table_pattern=".*")
    rule.properties["replication_num"] = "3"
    result = StarRocksEmitter(introspector).emit(_planned({rule: [_users(), _events(GIB)]}))

    assert result.prefix == "starrocks-create"
    assert result.statements[0] == "CREATE DATABASE IF NOT EXISTS `shop`"
    assert result.statements.count("CREATE DATABASE IF NOT EXISTS `shop`") == 1
    ddl = result.statements[1]
    assert ddl.startswith("CREATE TABLE IF NOT EXISTS `shop`.`users` (\n  `id` BIGINT NOT NULL,")
    assert "PRIMARY KEY(`id`)" in ddl
    assert 'COMMENT "app users"' in ddl
    assert "PARTITION BY" not in ddl
    assert "DISTRIBUTED BY HASH(`id`) BUCKETS 1" in ddl
    assert '"replication_num" = "3"' in ddl
    assert len(result.by_rule["1"]) == 3


def test_keyless_large_table_gets_range_and_dynamic_partitions(introspector):
    rule = MigrationRule(seq="1", catalog_pattern="shop", table_pattern="events")

    [_, ddl] = StarRocksEmitter(introspector).emit(_planned({rule: [_events()]})).statements

    assert "DUPLICATE KEY(`id`, `ts`, `kind`)" in ddl
    assert (
        "PARTITION BY RANGE (`ts`) (\n"
        '  START ("2024-03-07") END ("2024-06-16") EVERY (INTERVAL 1 day)\n)'
    ) in ddl
    assert "DISTRIBUTED BY HASH(`id`, `ts`, `kind`) BUCKETS 30" in ddl
    assert rule.properties["dynamic_partition.enable"] == "true"
    assert rule.properties["dynamic_partition.time_unit"] == "DAY"
    assert rule.properties["dynamic_partition.buckets"] == "30"
    assert '"dynamic_partition.prefix" = "auto_gen_p_"' in ddl


def test_user_time_unit_suppresses_dynamic_defaults(introspector):
    rule = MigrationRule(seq="1", catalog_pattern="shop", table_pattern="events")
    rule.properties["dynamic_partition.time_unit"] = "MONTH"

    StarRocksEmitter(introspector).emit(_planned({rule: [_events()]}))

    assert dict(rule.properties) == {"dynamic_partition.time_unit": "MONTH"}


def test_small_keyless_table_is_not_partitioned(introspector):
    rule = MigrationRule(seq="1", catalog_pattern="shop", table_pattern="events")

    [_, ddl] = StarRocksEmitter(introspector).emit(_planned({rule: [_events(GIB)]})).statements

    assert "PARTITION BY" not in ddl
    assert "dynamic_partition" not in ddl


def test_rule_overrides(introspector):
    rule = MigrationRule(
        seq="1",
        catalog_pattern="shop",
        table_pattern="events",
        partition_key="ts",
        partitions='  PARTITION p2023 VALUES LESS THAN ("2024-01-01")',
        duplicate_keys="`ts`",
        distributed_by="`kind`",
        bucket_count=7,
    )

    [_, ddl] = StarRocksEmitter(introspector).emit(_planned({rule: [_events(GIB)]})).statements

    assert "DUPLICATE KEY(`ts`)" in ddl
    assert 'PARTITION BY RANGE (`ts`) (\n  PARTITION p2023 VALUES LESS THAN ("2024-01-01")\n)' in ddl
    assert "DISTRIBUTED BY HASH(`kind`) BUCKETS 7" in ddl


def test_quoted_partition_key_is_not_quoted_twice(introspector):
    rule = MigrationRule(
        seq="1",
        catalog_pattern="shop",
        table_pattern="events",
        partition_key="`ts`",
        partitions='  PARTITION p2023 VALUES LESS THAN ("2024-01-01")',
    )

    [_, ddl] = StarRocksEmitter(introspector).emit(_planned({rule: [_events(GIB)]})).statements

    assert "PARTITION BY RANGE (`ts`) (" in ddl
    assert "``" not in ddl


def test_merged_shards_keep_schema_in_table_name(introspector):
    rule = MigrationRule(seq="1", catalog_pattern="shop", table_pattern="^users_")
    bundles = [_users(name="users_00"), _users(name="users_01")]

    [_, ddl] = StarRocksEmitter(introspector).emit(_planned({rule: bundles})).statements

    assert ddl.startswith("CREATE TABLE IF NOT EXISTS `shop`.`shop__users_0_auto_shard`")


def test_rules_without_tables_still_get_an_entry(introspector):
    rule = MigrationRule(seq="9", catalog_pattern="crm", table_pattern=".*")

    result = StarRocksEmitter(introspector).emit(_planned({rule: []}))

    assert result.statements == []
    assert result.by_rule == {"9": []}


def test_external_table(introspector):
    rule = MigrationRule(seq="1", catalog_pattern="shop", table_pattern="users")
    rule.external_properties["charset"] = "utf8mb4"
    planned = _planned({rule: [_users()]})
    bundle = planned[rule][0].bundle

    result = ExternalEmitter(introspector).emit(planned)

    assert result.prefix == "starrocks-external-create"
    assert result.statements[0] == "CREATE DATABASE IF NOT EXISTS `mysql_external_shop`"
    ddl = result.statements[1]
    assert ddl.startswith(
        "CREATE EXTERNAL TABLE `mysql_external_shop`.`users` (\n  `email` VARCHAR NOT NULL,"
    )
    assert ") ENGINE=mysql\n" in ddl
    assert dict(rule.external_properties) == {
        "charset": "utf8mb4",
        "host": "src-db",
        "port": "3306",
        "database": "shop",
        "table": "users",
    }
    assert [c.name for c in bundle.columns] == ["id", "email"]


def test_external_tables_skipped_without_engine(introspector):
    introspector.external_engine = None
    rule = MigrationRule(seq="1", catalog_pattern="shop", table_pattern="users")

    result = ExternalEmitter(introspector).emit(_planned({rule: [_users()]}))

    assert result.statements == []
    assert result.by_rule == {"1": []}


def test_pipeline_statements(introspector):
    rule = MigrationRule(seq="1", catalog_pattern="shop", table_pattern="users")

    result = PipelineEmitter(introspector).emit(_planned({rule: [_users()]}))

    assert result.prefix == "flink-create"
    db, src, sink, insert = result.statements
    assert db == "CREATE DATABASE IF NOT EXISTS `default_catalog`.`shop`"
    assert src.startswith("CREATE TABLE IF NOT EXISTS `default_catalog`.`shop`.`users_src` (")
    assert "  PRIMARY KEY(`id`)\n NOT ENFORCED" in src
    assert "'connector' = 'mysql-cdc'" in src
    assert "'database-name' = 'shop'" in src
    assert "'table-name' = 'users'" in src
    assert "'scan.startup.mode' = 'initial'" in src
    assert "'connector' = 'starrocks'" in sink
    assert insert == (
        "INSERT INTO `default_catalog`.`shop`.`users_sink` "
        "SELECT * FROM `default_catalog`.`shop`.`users_src`"
    )


def test_pipeline_server_id_increments_per_table(introspector):
    rule = MigrationRule(seq="1", catalog_pattern="shop", table_pattern=".*")
    rule.pipeline_source_props["server-id"] = "5400"
    bundles = [_users(name="users"), _events()]

    statements = PipelineEmitter(introspector).emit(_planned({rule: bundles})).statements
    sources = [s for s in statements if "_src` (" in s]

    assert "'server-id' = '5400'" in sources[0]
    assert "'server-id' = '5401'" in sources[1]


def test_pipeline_shard_source_reads_rule_patterns(introspector):
    rule = MigrationRule(seq="1", catalog_pattern="^shop$", table_pattern=r"^users_\d+$")
    rule.pipeline_source_props["scan.startup.mode"] = "latest-offset"
    bundles = [_users(name="users_00"), _users(name="users_01")]

    statements = PipelineEmitter(introspector).emit(_planned({rule: bundles})).statements
    src = statements[1]

    assert "`shop__users_0_auto_shard_src`" in src
    assert "'database-name' = 'shop'" in src
    assert "'table-name' = 'users_\\d+'" in src
    assert "'scan.startup.mode' = 'latest-offset'" in src
