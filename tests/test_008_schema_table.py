"""
This file contains tests for DataReader.get_schema_table().
Functions:
- test_schema_table_shape: One row per column, fixed column set.
- test_key_and_unique_flags: Key and unique flags come from the catalog.
- test_multi_table_clears_key_flags: Joins never report keys.
- test_decimal_precision_and_scale: Fixed-point precision and scale.
- test_expression_is_read_only: Computed columns are read-only expressions.
- test_schema_table_cached: The table is computed once per reader.
- test_schema_command_lifecycle: Catalog command is prepared, closed per column and disposed.
- test_failed_synthesis_is_not_cached: Errors propagate and a later call retries.
"""

import pytest

from firebird_datareader import (
    ColumnDescriptor,
    CommandBehavior,
    DataReader,
    DbDataType,
    FbDbType,
    OperationalError,
    ReaderClosedError,
    SCHEMA_COLUMNS,
    SchemaRow,
    SchemaTable,
)
from firebird_datareader.exceptions import EngineError
from firebird_datareader.schema import SCHEMA_COMMAND_TEXT

from conftest import FakeCommand, FakeSchemaCommand, catalog_row


EMPLOYEE_COLUMNS = [
    ColumnDescriptor("EMP_NO", relation="EMPLOYEE", db_type=DbDataType.SMALLINT, size=2, nullable=False),
    ColumnDescriptor("FIRST_NAME", alias="NAME", relation="EMPLOYEE", db_type=DbDataType.VARCHAR, size=15),
    ColumnDescriptor("SALARY", relation="EMPLOYEE", db_type=DbDataType.NUMERIC, size=8, numeric_scale=-2),
    ColumnDescriptor("FULL_NAME", relation="EMPLOYEE", db_type=DbDataType.VARCHAR, size=37),
    ColumnDescriptor("PHONE_EXT", relation="EMPLOYEE", db_type=DbDataType.VARCHAR, size=4),
    ColumnDescriptor("", alias="BONUS", db_type=DbDataType.DECIMAL, size=8, numeric_scale=-4),
]

EMPLOYEE_CATALOG = {
    ("EMPLOYEE", "EMP_NO"): catalog_row(primary_key=1, precision=None),
    ("EMPLOYEE", "FIRST_NAME"): catalog_row(),
    ("EMPLOYEE", "SALARY"): catalog_row(precision=10),
    ("EMPLOYEE", "FULL_NAME"): catalog_row(computed_source="(last_name || ', ' || first_name)"),
    ("EMPLOYEE", "PHONE_EXT"): catalog_row(unique_key=1),
}


@pytest.fixture
def employee_reader():
    command = FakeCommand(EMPLOYEE_COLUMNS, catalog=EMPLOYEE_CATALOG)
    reader = DataReader(command)
    yield reader
    reader.close()


def test_schema_table_shape(employee_reader):
    table = employee_reader.get_schema_table()
    assert isinstance(table, SchemaTable)
    assert table.name == "Schema"
    assert table.columns == SCHEMA_COLUMNS
    assert len(table) == 6

    emp_no = table[0]
    assert emp_no.column_name == "EMP_NO"
    assert emp_no.column_ordinal == 0
    assert emp_no.column_size == 2
    assert emp_no.data_type is int
    assert emp_no.provider_type is FbDbType.SMALLINT
    assert emp_no.allow_db_null is False
    assert emp_no.is_long is False
    assert emp_no.is_row_version is False
    assert emp_no.is_auto_increment is False
    assert emp_no.base_schema_name is None
    assert emp_no.base_catalog_name is None
    assert emp_no.base_table_name == "EMPLOYEE"
    assert emp_no.base_column_name == "EMP_NO"

    name = table[1]
    assert name.column_name == "NAME"
    assert name.base_column_name == "FIRST_NAME"
    assert name.is_aliased is True
    assert name.numeric_precision is None
    assert name.numeric_scale is None


def test_schema_row_lookup_by_column_name(employee_reader):
    row = employee_reader.get_schema_table()[0]
    assert row["IsKey"] is True
    assert row["ColumnName"] == "EMP_NO"
    assert row["BaseTableName"] == "EMPLOYEE"
    assert list(row.to_dict()) == list(SCHEMA_COLUMNS)
    with pytest.raises(KeyError):
        row["IsHidden"]


def test_schema_table_to_dicts(employee_reader):
    dicts = employee_reader.get_schema_table().to_dicts()
    assert [d["ColumnName"] for d in dicts] == ["EMP_NO", "NAME", "SALARY", "FULL_NAME", "PHONE_EXT", "BONUS"]


def test_key_and_unique_flags(employee_reader):
    table = employee_reader.get_schema_table()
    assert [row.is_key for row in table] == [True, False, False, False, False, False]
    assert [row.is_unique for row in table] == [False, False, False, False, True, False]


def test_multi_table_clears_key_flags():
    columns = [
        ColumnDescriptor("EMP_NO", relation="EMPLOYEE", db_type=DbDataType.SMALLINT),
        ColumnDescriptor("DEPT_NO", relation="DEPARTMENT", db_type=DbDataType.CHAR),
        ColumnDescriptor("PHONE_NO", relation="DEPARTMENT", db_type=DbDataType.VARCHAR),
    ]
    catalog = {
        ("EMPLOYEE", "EMP_NO"): catalog_row(primary_key=1),
        ("DEPARTMENT", "DEPT_NO"): catalog_row(primary_key=1),
        ("DEPARTMENT", "PHONE_NO"): catalog_row(unique_key=1),
    }
    reader = DataReader(FakeCommand(columns, catalog=catalog))
    table = reader.get_schema_table()
    assert all(row.is_key is False for row in table)
    assert all(row.is_unique is False for row in table)
    reader.close()


def test_expressions_do_not_count_as_tables():
    columns = [
        ColumnDescriptor("EMP_NO", relation="EMPLOYEE", db_type=DbDataType.SMALLINT),
        ColumnDescriptor("", alias="COUNT", db_type=DbDataType.BIGINT),
    ]
    catalog = {("EMPLOYEE", "EMP_NO"): catalog_row(primary_key=1)}
    reader = DataReader(FakeCommand(columns, catalog=catalog))
    table = reader.get_schema_table()
    assert table[0].is_key is True
    assert table[1].is_key is False
    assert table[1].base_table_name == ""
    reader.close()


def test_decimal_precision_and_scale(employee_reader):
    table = employee_reader.get_schema_table()
    salary = table[2]
    assert salary.numeric_precision == 10
    assert salary.numeric_scale == 2

    # No catalog row: precision falls back to the declared size
    bonus = table[5]
    assert bonus.numeric_precision == 8
    assert bonus.numeric_scale == 4


def test_decimal_precision_null_falls_back_to_size():
    columns = [ColumnDescriptor("RATE", relation="RATES", db_type=DbDataType.DECIMAL, size=4, numeric_scale=-3)]
    catalog = {("RATES", "RATE"): catalog_row(precision=None)}
    reader = DataReader(FakeCommand(columns, catalog=catalog))
    row = reader.get_schema_table()[0]
    assert row.numeric_precision == 4
    assert row.numeric_scale == 3
    reader.close()


def test_expression_is_read_only(employee_reader):
    table = employee_reader.get_schema_table()
    full_name = table[3]
    assert full_name.is_expression is True
    assert full_name.is_read_only is True
    assert table[1].is_expression is False
    assert table[1].is_read_only is False


def test_schema_table_cached(employee_reader):
    command = employee_reader._command
    first = employee_reader.get_schema_table()
    second = employee_reader.get_schema_table()
    assert first is second
    assert len(command.schema_commands) == 1


def test_schema_command_lifecycle(employee_reader):
    command = employee_reader._command
    employee_reader.get_schema_table()

    schema_command = command.schema_commands[0]
    assert schema_command.sql == SCHEMA_COMMAND_TEXT
    assert schema_command.prepared is True
    assert schema_command.close_count == len(EMPLOYEE_COLUMNS)
    assert schema_command.disposed is True
    assert schema_command.parameters[0] == ("EMPLOYEE", "EMP_NO")
    assert schema_command.parameters[5] == ("", "")


def test_schema_parameters_truncated():
    long_name = "A_VERY_LONG_COLUMN_NAME_THAT_EXCEEDS_LIMITS"
    columns = [ColumnDescriptor(long_name, relation="T" * 40, db_type=DbDataType.INTEGER)]
    command = FakeCommand(columns)
    reader = DataReader(command)
    reader.get_schema_table()
    assert command.schema_commands[0].parameters == [("T" * 31, long_name[:31])]
    reader.close()


def test_schema_table_with_schema_only():
    command = FakeCommand(EMPLOYEE_COLUMNS, [[1, "x", None, None, None, None]], catalog=EMPLOYEE_CATALOG)
    reader = DataReader(command, behavior=CommandBehavior.SCHEMA_ONLY)
    assert reader.read() is False
    assert len(reader.get_schema_table()) == 6
    reader.close()


def test_schema_table_after_close(employee_reader):
    employee_reader.close()
    with pytest.raises(ReaderClosedError):
        employee_reader.get_schema_table()


def test_failed_synthesis_is_not_cached():
    class FlakySchemaCommand(FakeSchemaCommand):
        failures = 1

        def execute_reader(self, parameters):
            if FlakySchemaCommand.failures:
                FlakySchemaCommand.failures -= 1
                raise OperationalError("Connection failure")
            return super().execute_reader(parameters)

    class FlakyCommand(FakeCommand):
        def create_schema_command(self, sql):
            schema_command = FlakySchemaCommand(sql, self.catalog)
            self.schema_commands.append(schema_command)
            return schema_command

    command = FlakyCommand(EMPLOYEE_COLUMNS[:1], catalog=EMPLOYEE_CATALOG)
    reader = DataReader(command)
    with pytest.raises(OperationalError):
        reader.get_schema_table()
    # The catalog command is disposed even on failure
    assert command.schema_commands[0].disposed is True

    table = reader.get_schema_table()
    assert table[0].is_key is True
    assert len(command.schema_commands) == 2
    reader.close()


def test_catalog_engine_fault_is_translated():
    columns = [ColumnDescriptor("EMP_NO", relation="EMPLOYEE", db_type=DbDataType.SMALLINT)]
    catalog = {("EMPLOYEE", "EMP_NO"): [None, None, "many", 0, None]}
    reader = DataReader(FakeCommand(columns, catalog=catalog))
    with pytest.raises(Exception) as excinfo:
        reader.get_schema_table()
    assert isinstance(excinfo.value.__cause__, EngineError)
    reader.close()


def test_schema_row_is_plain_dataclass():
    row = SchemaRow(
        column_name="X", column_ordinal=0, column_size=4, numeric_precision=None, numeric_scale=None,
        data_type=int, provider_type=FbDbType.INTEGER, is_long=False, allow_db_null=True,
        is_read_only=False, is_row_version=False, is_unique=False, is_key=False,
        is_auto_increment=False, is_aliased=False, is_expression=False, base_schema_name=None,
        base_catalog_name=None, base_table_name="T", base_column_name="X",
    )
    assert row["DataType"] is int
    assert SchemaTable([row])[0] is row
