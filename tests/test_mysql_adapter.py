from datetime import datetime

import pymysql
import pytest

from srmigrate.core.adapters.mysql import MySQLIntrospector, TiDBIntrospector
from srmigrate.core.config import DatabaseConfig, MigrationConfig
from srmigrate.core.errors import IntrospectionError
from srmigrate.core.models import MigrationRule


class _Cursor:
    def __init__(self, connection):
        self.connection = connection
        self.rows = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql):
        self.connection.executed.append(sql)
        if self.connection.error:
            raise pymysql.err.OperationalError(1045, "Access denied")
        for marker, rows in self.connection.results.items():
            if marker in sql:
                self.rows = rows
                return

    def fetchall(self):
        return self.rows


class _Connection:
    def __init__(self, results=None, error=False):
        self.results = results or {}
        self.error = error
        self.executed = []
        self.closed = False

    def cursor(self):
        return _Cursor(self)

    def close(self):
        self.closed = True


def _config(source="mysql"):
    return MigrationConfig(
        database=DatabaseConfig(host="db.local", port=3306, user="root", password="pw", type=source),
        backend_count=3,
    )


def test_list_tables_uses_schema_as_catalog():
    conn = _Connection(
        {
            "information_schema.tables": [
                {
                    "table_schema": "shop",
                    "table_name": "users",
                    "engine": "InnoDB",
                    "data_length": 16384,
                    "create_time": datetime(2024, 1, 1),
                    "table_comment": b"app users",
                }
            ]
        }
    )

    [table] = MySQLIntrospector(_config(), connection=conn).list_tables()

    assert table.identifier == ("shop", "shop", "users")
    assert table.size_bytes == 16384
    assert table.comment == "app users"


def test_list_columns_maps_nullability_and_defaults():
    conn = _Connection(
        {
            "information_schema.columns": [
                {
                    "table_schema": "shop",
                    "table_name": "users",
                    "column_name": "id",
                    "ordinal_position": 1,
                    "column_default": None,
                    "is_nullable": "NO",
                    "data_type": "BIGINT",
                    "numeric_precision": 19,
                    "numeric_scale": 0,
                    "column_type": "bigint(20) unsigned",
                    "column_comment": "",
                }
            ]
        }
    )

    [column] = MySQLIntrospector(_config(), connection=conn).list_columns()

    assert column.nullable is False
    assert column.default is None
    assert column.data_type == "bigint"
    assert column.catalog == column.schema == "shop"


def test_key_query_only_reads_primary_and_unique_constraints():
    conn = _Connection({"information_schema.key_column_usage": []})

    MySQLIntrospector(_config(), connection=conn).list_key_columns()

    assert "CONSTRAINT_TYPE IN ('PRIMARY KEY', 'UNIQUE')" in conn.executed[0]


def test_query_errors_become_introspection_errors():
    introspector = MySQLIntrospector(_config(), connection=_Connection(error=True))

    with pytest.raises(IntrospectionError, match="information_schema.tables"):
        introspector.list_tables()


def test_close_releases_connection():
    conn = _Connection()
    introspector = MySQLIntrospector(_config(), connection=conn)

    introspector.close()

    assert conn.closed is True
    assert introspector.connection is None


def test_mysql_connection_props():
    introspector = MySQLIntrospector(_config(), connection=_Connection())

    assert introspector.pipeline_connection_props() == {
        "hostname": "db.local",
        "port": "3306",
        "username": "root",
        "password": "pw",
    }
    assert introspector.external_connection_props()["user"] == "root"


def test_tidb_fills_pd_addresses_unless_set():
    conn = _Connection({"cluster_info": [{"instance": "pd-0:2379"}]})
    introspector = TiDBIntrospector(_config("tidb"), connection=conn)
    rule = MigrationRule(seq="1", catalog_pattern=".*", table_pattern=".*")

    assert introspector.pipeline_connector == "tidb-cdc"
    assert introspector.pipeline_connection_props() == {}
    assert introspector.pipeline_special_props(rule) == {"pd-addresses": "pd-0:2379"}

    rule.pipeline_source_props["pd-addresses"] = "pd-9:2379"
    assert introspector.pipeline_special_props(rule) == {}
