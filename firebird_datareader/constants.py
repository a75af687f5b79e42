"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the constants used by the firebird_datareader package.
"""

from enum import Enum, Flag, IntEnum


class DbDataType(Enum):
    """
    Logical type tags carried by a column descriptor.
    """

    ARRAY = 0
    BIGINT = 1
    BINARY = 2
    BOOLEAN = 3
    CHAR = 4
    DATE = 5
    DECIMAL = 6
    DOUBLE = 7
    FLOAT = 8
    GUID = 9
    INTEGER = 10
    NUMERIC = 11
    SMALLINT = 12
    TEXT = 13
    TIME = 14
    TIMESTAMP = 15
    VARCHAR = 16
    TIMESTAMP_TZ = 17
    TIME_TZ = 18
    INT128 = 19


class FbDbType(IntEnum):
    """
    Provider type codes reported in the ProviderType column of a schema table.
    """

    ARRAY = 0
    BIGINT = 1
    BINARY = 2
    BOOLEAN = 3
    CHAR = 4
    DATE = 5
    DECIMAL = 6
    DOUBLE = 7
    FLOAT = 8
    GUID = 9
    INTEGER = 10
    NUMERIC = 11
    SMALLINT = 12
    TEXT = 13
    TIME = 14
    TIMESTAMP = 15
    VARCHAR = 16
    TIMESTAMP_TZ = 17
    TIME_TZ = 18
    INT128 = 19


class CommandBehavior(Flag):
    """
    Options a consumer passes when opening a reader. Values combine with ``|``.
    """

    DEFAULT = 0
    SINGLE_RESULT = 1
    SCHEMA_ONLY = 2
    KEY_INFO = 4
    SINGLE_ROW = 8
    SEQUENTIAL_ACCESS = 16
    CLOSE_CONNECTION = 32


class CommandType(Enum):
    TEXT = 1
    STORED_PROCEDURE = 4
    TABLE_DIRECT = 512


class CursorState(Enum):
    """
    Lifecycle of a reader. CLOSED is terminal.
    """

    NOT_STARTED = "not_started"
    POSITIONED = "positioned"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


# Position of a reader before the first successful read
START_POSITION = -1

# Field length used for the schema query parameters (relation and field names)
SCHEMA_NAME_LENGTH = 31
