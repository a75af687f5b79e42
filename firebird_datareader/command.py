"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module describes the collaborators a DataReader consumes.

The command owns statement execution, transactions and the wire protocol. A reader only
pulls decoded rows from it and forwards lifecycle signals back. Every operation that may wait
on the engine comes in a blocking form and an ``_async`` coroutine form.
"""

from typing import TYPE_CHECKING, Any, List, Optional, Protocol, Sequence, runtime_checkable

from firebird_datareader.constants import CommandType
from firebird_datareader.db_value import DbValue
from firebird_datareader.descriptor import Descriptor

if TYPE_CHECKING:
    from firebird_datareader.data_reader import DataReader


@runtime_checkable
class Connection(Protocol):
    """Connection owning a command. Closed by a reader opened with CLOSE_CONNECTION."""

    def close(self) -> None: ...

    async def close_async(self) -> None: ...


@runtime_checkable
class SchemaCommand(Protocol):
    """
    Short-lived auxiliary command used to query catalog tables while synthesizing
    a schema table. Created by Command.create_schema_command().
    """

    def prepare(self) -> None: ...

    async def prepare_async(self) -> None: ...

    def execute_reader(self, parameters: Sequence[Any]) -> "DataReader": ...

    async def execute_reader_async(self, parameters: Sequence[Any]) -> "DataReader": ...

    def close(self) -> None: ...

    async def close_async(self) -> None: ...

    def dispose(self) -> None: ...

    async def dispose_async(self) -> None: ...


@runtime_checkable
class Command(Protocol):
    """
    The command a reader was opened from.

    Attributes:
        records_affected: Rows affected by the statement, -1 when unknown.
        has_fields: Whether the statement produces a result set.
        is_disposed: Whether the command was already torn down.
        command_type: Text, stored procedure or table-direct.
        has_implicit_transaction: Whether the command opened a transaction on
            the caller's behalf that must be committed when the reader closes.
        expected_column_types: Optional per-ordinal Python types a consumer expects.
        active_reader: Reader currently bound to the command.
    """

    records_affected: int
    has_fields: bool
    is_disposed: bool
    command_type: CommandType
    has_implicit_transaction: bool
    expected_column_types: Optional[Sequence[Any]]
    active_reader: Optional["DataReader"]

    def get_fields_descriptor(self) -> Descriptor: ...

    def fetch(self) -> Optional[List[DbValue]]: ...

    async def fetch_async(self) -> Optional[List[DbValue]]: ...

    def cancel(self) -> None: ...

    def set_output_parameters(self) -> None: ...

    async def set_output_parameters_async(self) -> None: ...

    def commit_implicit_transaction(self) -> None: ...

    async def commit_implicit_transaction_async(self) -> None: ...

    def create_schema_command(self, sql: str) -> SchemaCommand: ...
