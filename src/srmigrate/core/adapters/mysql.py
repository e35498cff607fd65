from __future__ import annotations

import logging
from typing import Any

import pymysql
import pymysql.cursors

from srmigrate.core.adapters import mysql_types
from srmigrate.core.config import MigrationConfig
from srmigrate.core.errors import IntrospectionError
from srmigrate.core.models import (
    ColumnDescriptor,
    KeyColumnEntry,
    MigrationRule,
    TableDescriptor,
)
from srmigrate.core.sources import Target

logger = logging.getLogger(__name__)

_TABLES_SQL = """
SELECT TABLE_SCHEMA AS table_schema, TABLE_NAME AS table_name,
       ENGINE AS engine, DATA_LENGTH AS data_length,
       CREATE_TIME AS create_time, TABLE_COMMENT AS table_comment
FROM information_schema.tables
WHERE TABLE_TYPE = 'BASE TABLE'
ORDER BY TABLE_SCHEMA, TABLE_NAME
"""

_COLUMNS_SQL = """
SELECT TABLE_SCHEMA AS table_schema, TABLE_NAME AS table_name,
       COLUMN_NAME AS column_name, ORDINAL_POSITION AS ordinal_position,
       COLUMN_DEFAULT AS column_default, IS_NULLABLE AS is_nullable,
       DATA_TYPE AS data_type, NUMERIC_PRECISION AS numeric_precision,
       NUMERIC_SCALE AS numeric_scale, COLUMN_TYPE AS column_type,
       COLUMN_COMMENT AS column_comment
FROM information_schema.columns
ORDER BY TABLE_SCHEMA, TABLE_NAME, ORDINAL_POSITION
"""

_KEY_COLUMNS_SQL = """
SELECT k.TABLE_SCHEMA AS table_schema, k.TABLE_NAME AS table_name,
       k.COLUMN_NAME AS column_name, k.CONSTRAINT_NAME AS constraint_name,
       k.ORDINAL_POSITION AS ordinal_position
FROM information_schema.key_column_usage k
JOIN information_schema.table_constraints c
  ON c.CONSTRAINT_SCHEMA = k.CONSTRAINT_SCHEMA
 AND c.TABLE_NAME = k.TABLE_NAME
 AND c.CONSTRAINT_NAME = k.CONSTRAINT_NAME
WHERE c.CONSTRAINT_TYPE IN ('PRIMARY KEY', 'UNIQUE')
ORDER BY k.TABLE_SCHEMA, k.TABLE_NAME
"""

_PD_INSTANCE_SQL = """
SELECT INSTANCE AS instance
FROM information_schema.cluster_info
WHERE TYPE = 'pd'
ORDER BY START_TIME DESC
LIMIT 1
"""


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class MySQLIntrospector:
    """
    Introspector reading MySQL `information_schema` through PyMySQL.

    MySQL has no schema level below the database, so each table's catalog
    is set to its schema (database) name.
    """

    targets = Target.WAREHOUSE | Target.EXTERNAL | Target.PIPELINE
    combine_schema_name = False
    pipeline_connector = "mysql-cdc"
    external_engine: str | None = "mysql"

    def __init__(self, config: MigrationConfig, connection=None) -> None:
        self.config = config
        self.connection = connection

    def connect(self):
        """Open the connection to `information_schema` if not already open."""
        if self.connection is None:
            db = self.config.database
            try:
                self.connection = pymysql.connect(
                    host=db.host,
                    port=db.port,
                    user=db.user,
                    password=db.password,
                    database="information_schema",
                    charset="utf8mb4",
                    cursorclass=pymysql.cursors.DictCursor,
                )
            except pymysql.MySQLError as exc:
                raise IntrospectionError(
                    f"Cannot connect to {db.type} at {db.host}:{db.port}: {exc}"
                ) from exc
        return self.connection

    def close(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def _query(self, sql: str, what: str) -> list[dict[str, Any]]:
        connection = self.connect()
        try:
            with connection.cursor() as cursor:
                cursor.execute(sql)
                return list(cursor.fetchall())
        except pymysql.MySQLError as exc:
            raise IntrospectionError(f"Failed to get rows from {what}: {exc}") from exc

    def list_tables(self) -> list[TableDescriptor]:
        return [
            TableDescriptor(
                catalog=_text(row["table_schema"]),
                schema=_text(row["table_schema"]),
                name=_text(row["table_name"]),
                engine=_text(row["engine"]),
                size_bytes=int(row["data_length"] or 0),
                created_at=row["create_time"],
                comment=_text(row["table_comment"]),
            )
            for row in self._query(_TABLES_SQL, "information_schema.tables")
        ]

    def list_columns(self) -> list[ColumnDescriptor]:
        return [
            ColumnDescriptor(
                catalog=_text(row["table_schema"]),
                schema=_text(row["table_schema"]),
                table=_text(row["table_name"]),
                name=_text(row["column_name"]),
                ordinal_position=int(row["ordinal_position"]),
                data_type=_text(row["data_type"]).lower(),
                column_type=_text(row["column_type"]),
                numeric_precision=int(row["numeric_precision"] or 0),
                numeric_scale=int(row["numeric_scale"] or 0),
                nullable=_text(row["is_nullable"]).upper() == "YES",
                default=None if row["column_default"] is None else _text(row["column_default"]),
                comment=_text(row["column_comment"]),
            )
            for row in self._query(_COLUMNS_SQL, "information_schema.columns")
        ]

    def list_key_columns(self) -> list[KeyColumnEntry]:
        return [
            KeyColumnEntry(
                catalog=_text(row["table_schema"]),
                schema=_text(row["table_schema"]),
                table=_text(row["table_name"]),
                column_name=_text(row["column_name"]),
                constraint_name=_text(row["constraint_name"]),
                ordinal_position=int(row["ordinal_position"] or 0),
            )
            for row in self._query(_KEY_COLUMNS_SQL, "information_schema.key_column_usage")
        ]

    def format_warehouse_column(
        self, table: TableDescriptor, column: ColumnDescriptor
    ) -> str:
        return mysql_types.format_warehouse_column(column, self.config.use_decimal_v3)

    def format_pipeline_column(
        self, table: TableDescriptor, column: ColumnDescriptor
    ) -> str:
        return mysql_types.format_pipeline_column(column, self.config.use_decimal_v3)

    def key_model(self, table: TableDescriptor) -> str:
        return "PRIMARY"

    def pipeline_connection_props(self) -> dict[str, str]:
        db = self.config.database
        return {
            "hostname": db.host,
            "port": str(db.port),
            "username": db.user,
            "password": db.password,
        }

    def pipeline_special_props(self, rule: MigrationRule) -> dict[str, str]:
        return {}

    def external_connection_props(self) -> dict[str, str]:
        db = self.config.database
        return {
            "host": db.host,
            "port": str(db.port),
            "user": db.user,
            "password": db.password,
        }


class TiDBIntrospector(MySQLIntrospector):
    """
    TiDB speaks the MySQL protocol; only the CDC connector differs. The
    tidb-cdc source locates the cluster through its PD endpoints instead
    of host credentials.
    """

    pipeline_connector = "tidb-cdc"

    def pipeline_connection_props(self) -> dict[str, str]:
        return {}

    def pipeline_special_props(self, rule: MigrationRule) -> dict[str, str]:
        if "pd-addresses" in rule.pipeline_source_props:
            return {}
        rows = self._query(_PD_INSTANCE_SQL, "information_schema.cluster_info")
        if not rows:
            logger.warning("No PD instance found in information_schema.cluster_info")
            return {}
        return {"pd-addresses": _text(rows[0]["instance"])}
