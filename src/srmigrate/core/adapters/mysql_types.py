"""MySQL column type mapping for warehouse and pipeline DDL."""

from __future__ import annotations

from datetime import datetime

from srmigrate.core.emitters.base import encode_comment
from srmigrate.core.errors import FormatError
from srmigrate.core.models import ColumnDescriptor

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

DECIMAL_V2_MAX_PRECISION = 27
DECIMAL_V3_MAX_PRECISION = 38

_STRING_TYPES = {
    "char", "year", "varchar", "tinytext", "text", "mediumtext", "longtext",
    "tinyblob", "blob", "mediumblob", "longblob", "json", "enum",
}

# (signed, unsigned) target types per integer type
_WAREHOUSE_INTEGERS = {
    "tinyint": ("TINYINT", "SMALLINT"),
    "smallint": ("SMALLINT", "INT"),
    "mediumint": ("INT", "BIGINT"),
    "int": ("INT", "BIGINT"),
    "integer": ("INT", "BIGINT"),
    "bigint": ("BIGINT", "LARGEINT"),
}

_PIPELINE_INTEGERS = {
    "tinyint": ("TINYINT", "SMALLINT"),
    "smallint": ("SMALLINT", "INT"),
    "mediumint": ("INT", "BIGINT"),
    "int": ("INT", "BIGINT"),
    "integer": ("INT", "BIGINT"),
    "bigint": ("BIGINT", "DECIMAL(20, 0)"),
}


def is_unsigned(column_type: str) -> bool:
    return "unsigned" in column_type.lower()


def _decimal(column: ColumnDescriptor, use_decimal_v3: bool) -> str | None:
    limit = DECIMAL_V3_MAX_PRECISION if use_decimal_v3 else DECIMAL_V2_MAX_PRECISION
    if column.numeric_precision > limit:
        return None
    return f"DECIMAL({column.numeric_precision}, {column.numeric_scale})"


def _bit_width_type(precision: int) -> str:
    if precision < 8:
        return "TINYINT"
    if precision < 16:
        return "SMALLINT"
    if precision < 32:
        return "INT"
    if precision < 64:
        return "BIGINT"
    return "LARGEINT"


def warehouse_type(column: ColumnDescriptor, use_decimal_v3: bool = False) -> str:
    """
    Map a MySQL column to a warehouse column type.

    Integer display widths are kept (`int(11)` becomes `INT(11)`), unsigned
    integers widen to the next type, and decimals beyond the supported
    precision degrade to STRING.

    Raises:
        FormatError: If the MySQL type has no warehouse counterpart.
    """
    data_type = column.data_type.lower()
    if data_type in _STRING_TYPES or data_type in ("binary", "varbinary", "set"):
        return "STRING"
    if data_type in _WAREHOUSE_INTEGERS:
        signed, unsigned = _WAREHOUSE_INTEGERS[data_type]
        target = unsigned if is_unsigned(column.column_type) else signed
        declared = column.column_type or data_type
        rendered = declared.lower().replace(data_type, target, 1)
        return rendered.replace("unsigned", "").replace("zerofill", "").strip()
    if data_type == "bit":
        return _bit_width_type(column.numeric_precision)
    if data_type in ("float", "double", "date"):
        return data_type.upper()
    if data_type == "decimal":
        return _decimal(column, use_decimal_v3) or "STRING"
    if data_type in ("time", "datetime", "timestamp"):
        return "DATETIME"
    raise FormatError(
        f"Unsupported MySQL type {column.column_type or data_type!r} "
        f"for column {column.table}.{column.name}"
    )


def pipeline_type(column: ColumnDescriptor, use_decimal_v3: bool = False) -> str:
    """Map a MySQL column to a pipeline (Flink SQL) type; unknown types become STRING."""
    data_type = column.data_type.lower()
    if data_type in _PIPELINE_INTEGERS:
        signed, unsigned = _PIPELINE_INTEGERS[data_type]
        return unsigned if is_unsigned(column.column_type) else signed
    if data_type == "bit":
        return "BOOLEAN" if column.numeric_precision == 1 else "BINARY"
    if data_type in ("real", "float"):
        return "FLOAT"
    if data_type in ("binary", "varbinary", "double", "date"):
        return data_type.upper()
    if data_type == "decimal":
        return _decimal(column, use_decimal_v3) or "STRING"
    if data_type in ("time", "datetime", "timestamp"):
        return "TIMESTAMP"
    return "STRING"


def _bit_default(raw: str) -> str | None:
    bits = raw.lower().replace("b'", "").replace("'", "").replace("0b", "")
    try:
        return str(int(bits or "0", 2))
    except ValueError:
        return None


def warehouse_default(column: ColumnDescriptor) -> tuple[bool, str]:
    """
    Render the DEFAULT clause of a warehouse column.

    Date and datetime defaults that are not literal timestamps (for example
    CURRENT_TIMESTAMP) are dropped and the column is made nullable.

    Returns:
        (nullable, default clause); the clause is "" when there is none.
    """
    nullable = column.nullable
    raw = column.default
    if raw is None:
        return nullable, ""
    if not raw:
        return nullable, 'DEFAULT ""'

    data_type = column.data_type.lower()
    if data_type == "bit":
        value = _bit_default(raw)
        return nullable, f'DEFAULT "{value}"' if value is not None else ""

    fmt = {"date": DATE_FORMAT, "datetime": DATETIME_FORMAT, "timestamp": DATETIME_FORMAT}.get(data_type)
    if fmt is None:
        return nullable, f'DEFAULT "{raw}"'
    try:
        value = datetime.strptime(raw, fmt).strftime(fmt)
    except ValueError:
        return True, ""
    return nullable, f'DEFAULT "{value}"'


def format_warehouse_column(column: ColumnDescriptor, use_decimal_v3: bool = False) -> str:
    col_type = warehouse_type(column, use_decimal_v3)
    nullable, default = warehouse_default(column)
    parts = [f"`{column.name}`", col_type, "NULL" if nullable else "NOT NULL"]
    if default:
        parts.append(default)
    parts.append(f'COMMENT "{encode_comment(column.comment)}"')
    return "  " + " ".join(parts)


def format_pipeline_column(column: ColumnDescriptor, use_decimal_v3: bool = False) -> str:
    nullable = "NULL" if column.nullable else "NOT NULL"
    return f"  `{column.name}` {pipeline_type(column, use_decimal_v3)} {nullable}"
