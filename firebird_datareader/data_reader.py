"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the DataReader class, a forward-only cursor over the rows of a command.
Resource Management:
- A reader is opened by its command, positioned before the first row.
- Closing the reader hands output parameters back to a stored procedure command, commits
  a transaction the command started implicitly, and closes the connection when the reader
  was opened with CommandBehavior.CLOSE_CONNECTION.
- Do not use a reader after it is closed. close() itself may be called any number of times.
- A reader is not safe for concurrent use; issue one call at a time.
"""

import asyncio
import decimal
import datetime
import uuid
import weakref
from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, MutableSequence, Optional, Sequence, TypeVar, Union

from firebird_datareader.coercion import NOT_COERCED, ValueCoercion, boolean_coercion, expected_type_at
from firebird_datareader.command import Command, Connection
from firebird_datareader.constants import (
    START_POSITION,
    CommandBehavior,
    CommandType,
    CursorState,
    DbDataType,
    FbDbType,
)
from firebird_datareader.db_value import DbValue
from firebird_datareader.descriptor import Descriptor
from firebird_datareader.exceptions import (
    ColumnIndexError,
    EngineError,
    InternalError,
    NoDataError,
    ProgrammingError,
    ReaderClosedError,
    translate_engine_error,
)
from firebird_datareader.execution import ExecutionStrategy, run_sync
from firebird_datareader.helpers import UNBUILT, Built, Lazy, snapshot_settings
from firebird_datareader.logging import logger
from firebird_datareader.name_index import NameIndex
from firebird_datareader.record import Record
from firebird_datareader.schema import SchemaTable, synthesize_schema
from firebird_datareader.type import get_data_type_name

T = TypeVar("T")

_SYNC = ExecutionStrategy.SYNC
_ASYNC = ExecutionStrategy.ASYNC

# Open readers by trace id, so a reader can find the one it was opened inside
_open_readers: "weakref.WeakValueDictionary[str, DataReader]" = weakref.WeakValueDictionary()


class DataReader:
    """
    Forward-only cursor over the rows produced by a command.

    Attributes:
        value_coercion: Policy get_value() consults when the command declares
            expected column types. None disables coercion.

    Methods:
        read() / read_async() -> True when positioned on a new row.
        close() / close_async() -> None. Idempotent.
        get_schema_table() / get_schema_table_async() -> SchemaTable, computed once.
        is_db_null(i) / is_db_null_async(i) -> True when the value is NULL.
        get_ordinal(name) -> Ordinal of the named column.
        get_<type>(i) -> Typed value of the current row.
        get_value(i) / get_values(values) -> Untyped access.
        get_bytes(...) / get_chars(...) -> Offset-bounded copies of long values.
    """

    def __init__(
        self,
        command: Command,
        connection: Optional[Connection] = None,
        behavior: CommandBehavior = CommandBehavior.DEFAULT,
        value_coercion: Optional[ValueCoercion] = boolean_coercion,
    ) -> None:
        """
        Open a reader over a command's result set.

        Args:
            command: Command that executed the statement and supplies rows.
            connection: Connection owning the command.
            behavior: CommandBehavior flags requested by the consumer.
            value_coercion: Expected-type coercion policy for get_value().
        """
        self._command: Optional[Command] = command
        self._connection = connection
        self._behavior = behavior
        self._fields: Optional[Descriptor] = command.get_fields_descriptor()
        self._row: Optional[Sequence[DbValue]] = None
        self._position = START_POSITION
        self._state = CursorState.NOT_STARTED
        # None while no count is known; -1 is only the public rendering of that
        self._records_affected: Optional[int] = None
        self._name_index: Lazy[NameIndex] = UNBUILT
        self._schema_table: Lazy[SchemaTable] = UNBUILT
        self._settings = snapshot_settings()
        self.value_coercion = value_coercion

        self._trace_id = logger.generate_trace_id("RDR")
        self._outer_trace_id = logger.get_trace_id()
        outer = _open_readers.get(self._outer_trace_id) if self._outer_trace_id else None
        self._outer_reader = weakref.ref(outer) if outer is not None else None
        _open_readers[self._trace_id] = self
        logger.set_trace_id(self._trace_id)

        self._update_records_affected()
        logger.debug(
            "Reader opened: %d columns, behavior=%s, records_affected=%d",
            len(self._fields),
            behavior,
            self.records_affected,
        )

    # Properties

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is CursorState.CLOSED

    @property
    def depth(self) -> int:
        self._check_state()
        return 0

    @property
    def has_rows(self) -> bool:
        self._check_state()
        return bool(self._command.has_fields)

    @property
    def field_count(self) -> int:
        self._check_state()
        return len(self._fields)

    @property
    def visible_field_count(self) -> int:
        return self.field_count

    @property
    def records_affected(self) -> int:
        """Rows affected by the command, -1 when unknown."""
        return -1 if self._records_affected is None else self._records_affected

    @property
    def trace_id(self) -> str:
        return self._trace_id

    def add_records_affected(self, count: int) -> None:
        """
        Fold another affected-row count into the total. A count of -1 (unknown)
        leaves the total unchanged.
        """
        if count < 0:
            return
        self._records_affected = (self._records_affected or 0) + count

    # Advancing

    def read(self) -> bool:
        """
        Advance to the next row.

        Returns:
            bool: True when a new row is available, False at end of stream.

        Raises:
            ReaderClosedError: If the reader is closed.
        """
        return run_sync(self._read_impl(_SYNC))

    async def read_async(self) -> bool:
        """
        Advance to the next row without blocking the event loop.

        Cancelling the awaiting task aborts the pending fetch; the reader is then
        exhausted and exposes no row.

        Raises:
            ReaderClosedError: If the reader is closed.
            asyncio.CancelledError: If the call is cancelled.
        """
        return await self._read_impl(_ASYNC)

    async def _read_impl(self, strategy: ExecutionStrategy) -> bool:
        self._check_state()

        if self._is_behavior(CommandBehavior.SINGLE_ROW) and self._position != START_POSITION:
            return False
        if self._is_behavior(CommandBehavior.SCHEMA_ONLY):
            return False
        if self._state is CursorState.EXHAUSTED:
            return False

        command = self._command
        try:
            row = await strategy.call_cancellable(command.fetch, command.fetch_async, command.cancel)
        except asyncio.CancelledError:
            self._row = None
            self._state = CursorState.EXHAUSTED
            logger.debug("Fetch cancelled at position %d, reader exhausted", self._position)
            raise
        except EngineError as e:
            logger.error("Engine error during fetch: %s", e.message)
            raise translate_engine_error(e) from e

        if row is None:
            self._row = None
            self._state = CursorState.EXHAUSTED
            logger.debug("End of stream after %d rows", self._position + 1)
            return False

        self._row = self._adopt_row(row)
        self._position += 1
        self._state = CursorState.POSITIONED
        return True

    def _adopt_row(self, row: Sequence[Any]) -> tuple:
        if len(row) != len(self._fields):
            raise InternalError(
                f"Fetched row has {len(row)} values but the result set has {len(self._fields)} columns."
            )
        return tuple(
            value if isinstance(value, DbValue) else DbValue(field, value)
            for field, value in zip(self._fields, row)
        )

    def next_result(self) -> bool:
        """Readers carry a single result set, so there is never a next one."""
        self._check_state()
        return False

    async def next_result_async(self) -> bool:
        self._check_state()
        return False

    # Closing

    def close(self) -> None:
        """
        Close the reader and release the resources it owns. Further calls are no-ops.
        """
        run_sync(self._close_impl(_SYNC))

    async def close_async(self) -> None:
        await self._close_impl(_ASYNC)

    async def _close_impl(self, strategy: ExecutionStrategy) -> None:
        if self._state is CursorState.CLOSED:
            return
        self._state = CursorState.CLOSED

        teardown = self._teardown(strategy, self._command, self._connection)
        try:
            # Runs to the end even if the awaiting task is cancelled part way
            await strategy.run_uncancellable(teardown)
        finally:
            self._position = START_POSITION
            self._command = None
            self._connection = None
            self._row = None
            self._schema_table = UNBUILT
            self._name_index = UNBUILT
            self._fields = None
            _open_readers.pop(self._trace_id, None)
            logger.debug("Reader closed")
            if logger.get_trace_id() == self._trace_id:
                logger.set_trace_id(self._enclosing_trace_id())

    async def _teardown(
        self,
        strategy: ExecutionStrategy,
        command: Optional[Command],
        connection: Optional[Connection],
    ) -> None:
        """Reader, then command, then transaction, then connection."""
        if command is not None and not command.is_disposed:
            if command.command_type is CommandType.STORED_PROCEDURE:
                logger.debug("Materializing output parameters")
                await strategy.call(command.set_output_parameters, command.set_output_parameters_async)
            if command.has_implicit_transaction:
                logger.debug("Committing implicit transaction")
                await strategy.call(
                    command.commit_implicit_transaction, command.commit_implicit_transaction_async
                )
            command.active_reader = None
        if connection is not None and self._is_behavior(CommandBehavior.CLOSE_CONNECTION):
            logger.debug("Closing connection")
            await strategy.call(connection.close, connection.close_async)

    def _enclosing_trace_id(self) -> Optional[str]:
        # Skip enclosing readers that were closed while this one stayed open
        reader = self
        while True:
            outer = reader._outer_reader() if reader._outer_reader is not None else None
            if outer is None or not outer.is_closed:
                return reader._outer_trace_id
            reader = outer

    def __enter__(self) -> "DataReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    async def __aenter__(self) -> "DataReader":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.close_async()

    # Metadata

    def get_schema_table(self) -> SchemaTable:
        """
        Describe the result columns, including key, uniqueness and computed-column
        flags looked up in the catalog. Computed once per reader.
        """
        return run_sync(self._get_schema_table_impl(_SYNC))

    async def get_schema_table_async(self) -> SchemaTable:
        return await self._get_schema_table_impl(_ASYNC)

    async def _get_schema_table_impl(self, strategy: ExecutionStrategy) -> SchemaTable:
        self._check_state()

        if isinstance(self._schema_table, Built):
            return self._schema_table.value

        table = await synthesize_schema(self, self._fields, self._command, strategy)
        self._schema_table = Built(table)
        return table

    def get_ordinal(self, name: str) -> int:
        """
        Ordinal of a column by name. An exact match wins over a case-insensitive one.

        Raises:
            ColumnIndexError: If no column carries the name.
        """
        self._check_state()
        return self._get_name_index().ordinal_of(name)

    def _get_name_index(self) -> NameIndex:
        if not isinstance(self._name_index, Built):
            self._name_index = Built(NameIndex(self._fields))
        return self._name_index.value

    def get_name(self, i: int) -> str:
        self._check_state()
        self._check_index(i)

        field = self._fields[i]
        name = field.alias if field.alias else field.name
        return name.lower() if self._settings.lowercase else name

    def get_data_type_name(self, i: int) -> str:
        self._check_state()
        self._check_index(i)

        return get_data_type_name(self._fields[i].db_type)

    def get_field_type(self, i: int) -> type:
        self._check_state()
        self._check_index(i)

        return self._fields[i].get_system_type()

    def get_provider_type(self, i: int) -> FbDbType:
        self._check_state()
        self._check_index(i)

        return FbDbType(self._fields[i].db_type.value)

    def get_provider_specific_field_type(self, i: int) -> type:
        return self.get_field_type(i)

    def get_provider_specific_value(self, i: int) -> Any:
        return self.get_value(i)

    def get_provider_specific_values(self, values: MutableSequence[Any]) -> int:
        return self.get_values(values)

    # Values

    def __getitem__(self, key: Union[int, str]) -> Any:
        if isinstance(key, str):
            return self.get_value(self.get_ordinal(key))
        return self.get_value(key)

    def get_value(self, i: int) -> Any:
        """
        Value of column i in its natural Python type, None for NULL.

        When the command declares an expected type for the column, value_coercion
        gets the first say.
        """
        self._check_state()

        if self.value_coercion is not None:
            expected_type = expected_type_at(getattr(self._command, "expected_column_types", None), i)
            if expected_type is not None:
                value = self.value_coercion(self, i, expected_type)
                if value is not NOT_COERCED:
                    return value

        self._check_position()
        self._check_index(i)

        db_value = self._row[i]
        if db_value.field.db_type is DbDataType.GUID and not db_value.is_null():
            guid = self._checked_get_value(db_value.get_guid)
            return guid if self._settings.native_uuid else str(guid)
        return self._checked_get_value(db_value.get_value)

    def get_values(self, values: MutableSequence[Any]) -> int:
        """
        Copy the current row into values, up to its length.

        Returns:
            int: Number of values copied.
        """
        self._check_state()
        self._check_position()

        count = min(len(self._fields), len(values))
        for i in range(count):
            values[i] = self.get_value(i)
        return count

    def is_db_null(self, i: int) -> bool:
        return run_sync(self._is_db_null_impl(i, _SYNC))

    async def is_db_null_async(self, i: int) -> bool:
        return await self._is_db_null_impl(i, _ASYNC)

    async def _is_db_null_impl(self, i: int, strategy: ExecutionStrategy) -> bool:
        self._check_row_access(i)

        return await self._row[i].is_db_null(strategy)

    def get_boolean(self, i: int) -> bool:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_boolean)

    def get_byte(self, i: int) -> int:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_byte)

    def get_int16(self, i: int) -> int:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_int16)

    def get_int32(self, i: int) -> int:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_int32)

    def get_int64(self, i: int) -> int:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_int64)

    def get_float(self, i: int) -> float:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_float)

    def get_double(self, i: int) -> float:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_double)

    def get_decimal(self, i: int) -> decimal.Decimal:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_decimal)

    def get_string(self, i: int) -> str:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_string)

    def get_char(self, i: int) -> str:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_char)

    def get_guid(self, i: int) -> uuid.UUID:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_guid)

    def get_date_time(self, i: int) -> datetime.datetime:
        self._check_row_access(i)
        return self._checked_get_value(self._row[i].get_date_time)

    def get_bytes(
        self,
        i: int,
        data_index: int = 0,
        buffer: Optional[bytearray] = None,
        buffer_index: int = 0,
        length: int = 0,
    ) -> int:
        """
        Copy part of a binary value into a caller-supplied buffer.

        Args:
            i: Column ordinal.
            data_index: Offset in the value to start copying from.
            buffer: Destination. When None, nothing is copied and the total
                length of the value is returned instead (0 for NULL).
            buffer_index: Offset in buffer to copy to.
            length: Maximum number of bytes to copy.

        Returns:
            int: Bytes copied, or the value's total length when buffer is None.
        """
        self._check_row_access(i)

        if buffer is None:
            if self.is_db_null(i):
                return 0
            return len(self._checked_get_value(self._row[i].get_binary))

        data = self._checked_get_value(self._row[i].get_binary)
        return _copy_into(data, data_index, buffer, buffer_index, length)

    def get_chars(
        self,
        i: int,
        data_index: int = 0,
        buffer: Optional[MutableSequence[str]] = None,
        buffer_index: int = 0,
        length: int = 0,
    ) -> int:
        """
        Copy part of a character value into a caller-supplied list of characters.
        Behaves like get_bytes().
        """
        self._check_row_access(i)

        if buffer is None:
            if self.is_db_null(i):
                return 0
            return len(self._checked_get_value(self._row[i].get_string))

        text = self._checked_get_value(self._row[i].get_string)
        return _copy_into(text, data_index, buffer, buffer_index, length)

    # Iteration

    def __iter__(self) -> Iterator[Record]:
        """
        Yield a detached Record per remaining row. With CLOSE_CONNECTION the
        reader closes once the rows run out.
        """
        column_map = self._record_column_map()
        while self.read():
            yield self._make_record(column_map)
        if self._is_behavior(CommandBehavior.CLOSE_CONNECTION):
            self.close()

    async def __aiter__(self) -> AsyncIterator[Record]:
        column_map = self._record_column_map()
        while await self.read_async():
            yield self._make_record(column_map)
        if self._is_behavior(CommandBehavior.CLOSE_CONNECTION):
            await self.close_async()

    def _record_column_map(self) -> Dict[str, int]:
        column_map: Dict[str, int] = {}
        for i in range(self.field_count):
            column_map.setdefault(self.get_name(i), i)
        return column_map

    def _make_record(self, column_map: Dict[str, int]) -> Record:
        values: List[Any] = [None] * len(self._fields)
        self.get_values(values)
        return Record(values, column_map)

    # Checks

    def _check_state(self) -> None:
        if self._state is CursorState.CLOSED:
            raise ReaderClosedError()

    def _check_position(self) -> None:
        if self._state is not CursorState.POSITIONED:
            raise NoDataError()

    def _check_index(self, i: int) -> None:
        if not isinstance(i, int) or i < 0 or i >= len(self._fields):
            raise ColumnIndexError()

    def _check_row_access(self, i: int) -> None:
        self._check_state()
        self._check_position()
        self._check_index(i)

    def _is_behavior(self, behavior: CommandBehavior) -> bool:
        return behavior in self._behavior

    def _update_records_affected(self) -> None:
        if self._command is not None and not self._command.is_disposed:
            if self._command.records_affected != -1:
                self.add_records_affected(self._command.records_affected)

    def _checked_get_value(self, getter: Callable[[], T]) -> T:
        try:
            return getter()
        except EngineError as e:
            logger.error("Engine error reading value: %s", e.message)
            raise translate_engine_error(e) from e

    def __repr__(self) -> str:
        return f"<DataReader {self._trace_id} state={self._state.value}>"


def _copy_into(source: Sequence, data_index: int, buffer: MutableSequence, buffer_index: int, length: int) -> int:
    """
    Copy up to length items of source, starting at data_index, into buffer at
    buffer_index. Returns the number of items copied.
    """
    if data_index < 0 or buffer_index < 0 or length < 0:
        raise ProgrammingError("Invalid string or buffer length: negative offset or length.")

    count = max(min(length, len(source) - data_index), 0)
    if buffer_index + count > len(buffer):
        raise ProgrammingError(
            f"Invalid string or buffer length: buffer of {len(buffer)} cannot hold {count} items at offset {buffer_index}."
        )

    buffer[buffer_index:buffer_index + count] = source[data_index:data_index + count]
    return count
