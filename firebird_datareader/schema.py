"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module builds the descriptive schema table returned by DataReader.get_schema_table().

Column descriptors say nothing about keys, uniqueness or computed columns, so one catalog
query per column fills those in. A result set drawn from more than one table has no single
key, and its key and unique flags are cleared.
"""

from dataclasses import dataclass, fields as dataclass_fields
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple

from firebird_datareader.constants import FbDbType, SCHEMA_NAME_LENGTH
from firebird_datareader.descriptor import Descriptor
from firebird_datareader.execution import ExecutionStrategy
from firebird_datareader.helpers import sanitize_user_input
from firebird_datareader.logging import logger

if TYPE_CHECKING:
    from firebird_datareader.command import Command
    from firebird_datareader.data_reader import DataReader


SCHEMA_COMMAND_TEXT = """SELECT
    fld.rdb$computed_blr AS computed_blr,
    fld.rdb$computed_source AS computed_source,
    (SELECT COUNT(*) FROM rdb$relation_constraints rel
      INNER JOIN rdb$indices idx ON rel.rdb$index_name = idx.rdb$index_name
      INNER JOIN rdb$index_segments seg ON idx.rdb$index_name = seg.rdb$index_name
    WHERE rel.rdb$constraint_type = 'PRIMARY KEY'
      AND rel.rdb$relation_name = rfr.rdb$relation_name
      AND seg.rdb$field_name = rfr.rdb$field_name) AS primary_key,
    (SELECT COUNT(*) FROM rdb$relation_constraints rel
      INNER JOIN rdb$indices idx ON rel.rdb$index_name = idx.rdb$index_name
      INNER JOIN rdb$index_segments seg ON idx.rdb$index_name = seg.rdb$index_name
    WHERE rel.rdb$constraint_type = 'UNIQUE'
      AND rel.rdb$relation_name = rfr.rdb$relation_name
      AND seg.rdb$field_name = rfr.rdb$field_name) AS unique_key,
    fld.rdb$field_precision AS numeric_precision
  FROM rdb$relation_fields rfr
    INNER JOIN rdb$fields fld ON rfr.rdb$field_source = fld.rdb$field_name
  WHERE rfr.rdb$relation_name = ?
    AND rfr.rdb$field_name = ?
  ORDER BY rfr.rdb$relation_name, rfr.rdb$field_position"""

# Ordinals in the schema command's result
_COMPUTED_BLR = 0
_COMPUTED_SOURCE = 1
_PRIMARY_KEY = 2
_UNIQUE_KEY = 3
_NUMERIC_PRECISION = 4


@dataclass
class SchemaRow:
    """
    Descriptive metadata for one result column.

    Rows also support lookup by schema column name, e.g. ``row["IsKey"]``.
    """

    column_name: str
    column_ordinal: int
    column_size: int
    numeric_precision: Optional[int]
    numeric_scale: Optional[int]
    data_type: type
    provider_type: FbDbType
    is_long: bool
    allow_db_null: bool
    is_read_only: bool
    is_row_version: bool
    is_unique: bool
    is_key: bool
    is_auto_increment: bool
    is_aliased: bool
    is_expression: bool
    base_schema_name: Optional[str]
    base_catalog_name: Optional[str]
    base_table_name: str
    base_column_name: str

    def __getitem__(self, column_name: str) -> Any:
        try:
            return getattr(self, _ATTRIBUTE_BY_COLUMN[column_name])
        except KeyError:
            raise KeyError(f"Schema table has no column '{column_name}'") from None

    def to_dict(self) -> Dict[str, Any]:
        return {column: getattr(self, attribute) for column, attribute in _ATTRIBUTE_BY_COLUMN.items()}


# Schema table column names, in table order
SCHEMA_COLUMNS: Tuple[str, ...] = (
    "ColumnName",
    "ColumnOrdinal",
    "ColumnSize",
    "NumericPrecision",
    "NumericScale",
    "DataType",
    "ProviderType",
    "IsLong",
    "AllowDBNull",
    "IsReadOnly",
    "IsRowVersion",
    "IsUnique",
    "IsKey",
    "IsAutoIncrement",
    "IsAliased",
    "IsExpression",
    "BaseSchemaName",
    "BaseCatalogName",
    "BaseTableName",
    "BaseColumnName",
)

_ATTRIBUTE_BY_COLUMN: Dict[str, str] = dict(
    zip(SCHEMA_COLUMNS, (field.name for field in dataclass_fields(SchemaRow)))
)


class SchemaTable:
    """
    Fixed-shape table with one SchemaRow per result column.
    """

    def __init__(self, rows: Optional[List[SchemaRow]] = None) -> None:
        self.name = "Schema"
        self.columns = SCHEMA_COLUMNS
        self.rows: List[SchemaRow] = rows if rows is not None else []

    def __getitem__(self, index: int) -> SchemaRow:
        return self.rows[index]

    def __iter__(self) -> Iterator[SchemaRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [row.to_dict() for row in self.rows]

    def __repr__(self) -> str:
        return f"SchemaTable({[row.column_name for row in self.rows]!r})"


class _CatalogInfo:
    """Flags read from one catalog query row."""

    __slots__ = ("is_expression", "is_key", "is_unique", "precision")

    def __init__(self) -> None:
        self.is_expression = False
        self.is_key = False
        self.is_unique = False
        self.precision = 0


def _is_expression(schema_reader: "DataReader") -> bool:
    # A computed column has a definition in either catalog field
    return not schema_reader.is_db_null(_COMPUTED_BLR) or not schema_reader.is_db_null(_COMPUTED_SOURCE)


async def _read_catalog_info(schema_reader: "DataReader", strategy: ExecutionStrategy) -> _CatalogInfo:
    info = _CatalogInfo()
    try:
        if await strategy.call(schema_reader.read, schema_reader.read_async):
            info.is_expression = _is_expression(schema_reader)
            info.is_key = schema_reader.get_int32(_PRIMARY_KEY) > 0
            info.is_unique = schema_reader.get_int32(_UNIQUE_KEY) > 0
            info.precision = (
                -1 if schema_reader.is_db_null(_NUMERIC_PRECISION)
                else schema_reader.get_int32(_NUMERIC_PRECISION)
            )
    finally:
        await strategy.call_uncancellable(schema_reader.close, schema_reader.close_async)
    return info


async def synthesize_schema(
    reader: "DataReader",
    fields: Descriptor,
    command: "Command",
    strategy: ExecutionStrategy,
) -> SchemaTable:
    """
    Build the schema table for a reader's columns.

    Args:
        reader: Reader whose columns are described. Supplies names and types.
        fields: The reader's column descriptors.
        command: Command the reader was opened from. Creates the catalog command.
        strategy: How collaborator calls run.

    Returns:
        SchemaTable: One row per column.
    """
    table = SchemaTable()
    relations = set()

    schema_command = command.create_schema_command(SCHEMA_COMMAND_TEXT)
    try:
        await strategy.call(schema_command.prepare, schema_command.prepare_async)

        for i, field in enumerate(fields):
            parameters = (
                field.relation[:SCHEMA_NAME_LENGTH],
                field.name[:SCHEMA_NAME_LENGTH],
            )
            logger.debug(
                "Querying catalog for column %d (%s.%s)",
                i,
                sanitize_user_input(field.relation),
                sanitize_user_input(field.name),
            )
            schema_reader = await strategy.call(
                schema_command.execute_reader, schema_command.execute_reader_async, parameters
            )
            info = await _read_catalog_info(schema_reader, strategy)

            numeric_precision = None
            numeric_scale = None
            if field.is_decimal():
                numeric_precision = info.precision if info.precision > 0 else field.get_size()
                numeric_scale = field.numeric_scale * -1

            table.rows.append(
                SchemaRow(
                    column_name=reader.get_name(i),
                    column_ordinal=i,
                    column_size=field.get_size(),
                    numeric_precision=numeric_precision,
                    numeric_scale=numeric_scale,
                    data_type=reader.get_field_type(i),
                    provider_type=reader.get_provider_type(i),
                    is_long=field.is_long(),
                    allow_db_null=field.allow_db_null(),
                    is_read_only=info.is_expression,
                    is_row_version=False,
                    is_unique=info.is_unique,
                    is_key=info.is_key,
                    is_auto_increment=False,
                    is_aliased=field.is_aliased(),
                    is_expression=info.is_expression,
                    base_schema_name=None,
                    base_catalog_name=None,
                    base_table_name=field.relation,
                    base_column_name=field.name,
                )
            )

            if field.relation:
                relations.add(field.relation)

            await strategy.call(schema_command.close, schema_command.close_async)

        if len(relations) > 1:
            logger.debug("Result set spans %d tables, clearing key and unique flags", len(relations))
            for row in table.rows:
                row.is_key = False
                row.is_unique = False
    finally:
        await strategy.call_uncancellable(schema_command.dispose, schema_command.dispose_async)

    return table
