"""
This file contains fixtures for the tests in the firebird_datareader package.
Functions:
- pytest_addoption / pytest_configure: Register and honour the enable_logging ini option.
- FakeCommand: In-memory command that hands rows to a reader and records lifecycle calls.
- FakeSchemaCommand: Catalog command answering schema queries from a lookup table.
- FakeConnection: Connection that records close calls.
- make_columns / catalog_row: Helpers building descriptor tables and catalog rows.
"""

import asyncio
import pytest

from firebird_datareader import (
    ColumnDescriptor,
    CommandType,
    DataReader,
    DbDataType,
    Descriptor,
)


def pytest_addoption(parser):
    parser.addini("enable_logging", "Enable firebird_datareader DEBUG logging to stdout", default="false")


def pytest_configure(config):
    # Enable reader logging if configured in pytest.ini
    enable_log = config.getini("enable_logging")
    if enable_log and str(enable_log).lower() in ("true", "1", "yes"):
        from firebird_datareader import setup_logging

        setup_logging(output="stdout")
        print("[pytest] firebird_datareader logging enabled")


class FakeConnection:
    def __init__(self, calls=None):
        self.calls = calls if calls is not None else []
        self.closed = False

    def close(self):
        self.calls.append("connection.close")
        self.closed = True

    async def close_async(self):
        await asyncio.sleep(0)
        self.close()


class FakeCommand:
    """
    Command over a fixed list of rows.

    Every lifecycle call is appended to ``calls`` so tests can assert on ordering.
    ``fetch_delay`` makes fetch_async wait, which leaves room to cancel it.
    """

    def __init__(
        self,
        columns,
        rows=(),
        records_affected=-1,
        command_type=CommandType.TEXT,
        has_implicit_transaction=False,
        expected_column_types=None,
        catalog=None,
        calls=None,
    ):
        self.fields = Descriptor(columns)
        self.rows = list(rows)
        self.records_affected = records_affected
        self.has_fields = len(self.fields) > 0
        self.is_disposed = False
        self.command_type = command_type
        self.has_implicit_transaction = has_implicit_transaction
        self.expected_column_types = expected_column_types
        self.active_reader = None
        self.catalog = catalog if catalog is not None else {}
        self.calls = calls if calls is not None else []
        self.fetch_count = 0
        self.fetch_delay = 0
        self.fetch_error = None
        self.cancelled = False
        self.schema_commands = []

    def get_fields_descriptor(self):
        return self.fields

    def fetch(self):
        self.fetch_count += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        if not self.rows:
            return None
        return self.rows.pop(0)

    async def fetch_async(self):
        if self.fetch_delay:
            await asyncio.sleep(self.fetch_delay)
        else:
            await asyncio.sleep(0)
        return self.fetch()

    def cancel(self):
        self.calls.append("command.cancel")
        self.cancelled = True

    def set_output_parameters(self):
        self.calls.append("command.set_output_parameters")

    async def set_output_parameters_async(self):
        await asyncio.sleep(0)
        self.set_output_parameters()

    def commit_implicit_transaction(self):
        self.calls.append("command.commit_implicit_transaction")

    async def commit_implicit_transaction_async(self):
        await asyncio.sleep(0)
        self.commit_implicit_transaction()

    def create_schema_command(self, sql):
        schema_command = FakeSchemaCommand(sql, self.catalog)
        self.schema_commands.append(schema_command)
        return schema_command


# Columns of the catalog query result
CATALOG_COLUMNS = (
    ColumnDescriptor("COMPUTED_BLR", db_type=DbDataType.BINARY),
    ColumnDescriptor("COMPUTED_SOURCE", db_type=DbDataType.TEXT),
    ColumnDescriptor("PRIMARY_KEY", db_type=DbDataType.INTEGER),
    ColumnDescriptor("UNIQUE_KEY", db_type=DbDataType.INTEGER),
    ColumnDescriptor("NUMERIC_PRECISION", db_type=DbDataType.SMALLINT),
)


def catalog_row(primary_key=0, unique_key=0, precision=None, computed_source=None):
    return [None, computed_source, primary_key, unique_key, precision]


class FakeSchemaCommand:
    """
    Catalog command. ``catalog`` maps (relation, field) to a catalog row; unknown
    columns produce an empty result.
    """

    def __init__(self, sql, catalog):
        self.sql = sql
        self.catalog = catalog
        self.parameters = []
        self.prepared = False
        self.close_count = 0
        self.disposed = False

    def prepare(self):
        self.prepared = True

    async def prepare_async(self):
        await asyncio.sleep(0)
        self.prepare()

    def execute_reader(self, parameters):
        self.parameters.append(tuple(parameters))
        row = self.catalog.get(tuple(parameters))
        command = FakeCommand(CATALOG_COLUMNS, [row] if row is not None else [])
        reader = DataReader(command)
        command.active_reader = reader
        return reader

    async def execute_reader_async(self, parameters):
        await asyncio.sleep(0)
        return self.execute_reader(parameters)

    def close(self):
        self.close_count += 1

    async def close_async(self):
        await asyncio.sleep(0)
        self.close()

    def dispose(self):
        self.disposed = True

    async def dispose_async(self):
        await asyncio.sleep(0)
        self.dispose()


def make_columns(*columns_or_pairs):
    """Build descriptors from (name, db_type) pairs or ready ColumnDescriptors."""
    columns = []
    for item in columns_or_pairs:
        if isinstance(item, ColumnDescriptor):
            columns.append(item)
        else:
            name, db_type = item
            columns.append(ColumnDescriptor(name, relation="EMPLOYEE", db_type=db_type))
    return columns


@pytest.fixture
def calls():
    return []


@pytest.fixture
def employee_command(calls):
    columns = make_columns(
        ("ID", DbDataType.INTEGER),
        ("NAME", DbDataType.VARCHAR),
        ("PHOTO", DbDataType.BINARY),
    )
    rows = [
        [1, "Alice", b"\x00\x01\x02\x03\x04\x05"],
        [2, "Bob", None],
    ]
    return FakeCommand(columns, rows, calls=calls)


@pytest.fixture
def reader(employee_command):
    reader = DataReader(employee_command)
    employee_command.active_reader = reader
    yield reader
    reader.close()


@pytest.fixture
def connection(calls):
    return FakeConnection(calls)

