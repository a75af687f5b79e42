"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module maps logical column types to Python types and engine type names.
"""

import datetime
import decimal
import uuid

from firebird_datareader.constants import DbDataType


_SYSTEM_TYPES = {
    DbDataType.ARRAY: list,
    DbDataType.BIGINT: int,
    DbDataType.BINARY: bytes,
    DbDataType.BOOLEAN: bool,
    DbDataType.CHAR: str,
    DbDataType.DATE: datetime.date,
    DbDataType.DECIMAL: decimal.Decimal,
    DbDataType.DOUBLE: float,
    DbDataType.FLOAT: float,
    DbDataType.GUID: uuid.UUID,
    DbDataType.INTEGER: int,
    DbDataType.NUMERIC: decimal.Decimal,
    DbDataType.SMALLINT: int,
    DbDataType.TEXT: str,
    DbDataType.TIME: datetime.time,
    DbDataType.TIMESTAMP: datetime.datetime,
    DbDataType.VARCHAR: str,
    DbDataType.TIMESTAMP_TZ: datetime.datetime,
    DbDataType.TIME_TZ: datetime.time,
    DbDataType.INT128: int,
}

_DATA_TYPE_NAMES = {
    DbDataType.ARRAY: "ARRAY",
    DbDataType.BIGINT: "BIGINT",
    DbDataType.BINARY: "BLOB",
    DbDataType.BOOLEAN: "BOOLEAN",
    DbDataType.CHAR: "CHAR",
    DbDataType.DATE: "DATE",
    DbDataType.DECIMAL: "DECIMAL",
    DbDataType.DOUBLE: "DOUBLE PRECISION",
    DbDataType.FLOAT: "FLOAT",
    DbDataType.GUID: "GUID",
    DbDataType.INTEGER: "INTEGER",
    DbDataType.NUMERIC: "NUMERIC",
    DbDataType.SMALLINT: "SMALLINT",
    DbDataType.TEXT: "BLOB SUB_TYPE 1",
    DbDataType.TIME: "TIME",
    DbDataType.TIMESTAMP: "TIMESTAMP",
    DbDataType.VARCHAR: "VARCHAR",
    DbDataType.TIMESTAMP_TZ: "TIMESTAMP WITH TIME ZONE",
    DbDataType.TIME_TZ: "TIME WITH TIME ZONE",
    DbDataType.INT128: "INT128",
}

# Types stored out of row and streamed on demand
LONG_TYPES = frozenset({DbDataType.BINARY, DbDataType.TEXT, DbDataType.ARRAY})

# Fixed-point types that report numeric precision and scale
DECIMAL_TYPES = frozenset({DbDataType.DECIMAL, DbDataType.NUMERIC})


def get_system_type(db_type: DbDataType) -> type:
    """
    Map a logical column type to the Python type its values surface as.

    Args:
        db_type: Logical type tag.

    Returns:
        Corresponding Python type, str for unknown tags.
    """
    return _SYSTEM_TYPES.get(db_type, str)


def get_data_type_name(db_type: DbDataType) -> str:
    """Map a logical column type to the engine's type name."""
    return _DATA_TYPE_NAMES.get(db_type, db_type.name)
