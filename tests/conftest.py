from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure tests always import the local src tree, not an older installed wheel.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from srmigrate.core.sources import Target  # noqa: E402


class _Introspector:
    """In-memory source with plain column rendering."""

    targets = Target.WAREHOUSE | Target.EXTERNAL | Target.PIPELINE
    combine_schema_name = False
    pipeline_connector = "mysql-cdc"
    external_engine = "mysql"

    def __init__(self, tables=None, columns=None, keys=None):
        self.tables = list(tables or [])
        self.columns = list(columns or [])
        self.keys = list(keys or [])
        self.closed = False

    def list_tables(self):
        return list(self.tables)

    def list_columns(self):
        return list(self.columns)

    def list_key_columns(self):
        return list(self.keys)

    def format_warehouse_column(self, table, column):
        nullable = "NULL" if column.nullable else "NOT NULL"
        return f"  `{column.name}` {column.data_type.upper()} {nullable}"

    def format_pipeline_column(self, table, column):
        return f"  `{column.name}` {column.data_type.upper()}"

    def key_model(self, table):
        return "PRIMARY"

    def pipeline_connection_props(self):
        return {"hostname": "src-db", "port": "3306"}

    def pipeline_special_props(self, rule):
        return {"scan.startup.mode": "initial"}

    def external_connection_props(self):
        return {"host": "src-db", "port": "3306"}

    def close(self):
        self.closed = True


@pytest.fixture
def make_introspector():
    return _Introspector
