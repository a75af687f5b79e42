"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module initializes the firebird_datareader package.
"""

# Settings
from .helpers import Settings, get_settings

__version__ = "0.1.0"

# Exceptions
# https://www.python.org/dev/peps/pep-0249/#exceptions
from .exceptions import (
    Warning,
    Error,
    InterfaceError,
    DatabaseError,
    DataError,
    OperationalError,
    IntegrityError,
    InternalError,
    ProgrammingError,
    NotSupportedError,
    ReaderClosedError,
    NoDataError,
    ColumnIndexError,
    EngineError,
)

# Constants
from .constants import CommandBehavior, CommandType, CursorState, DbDataType, FbDbType

# Column metadata and values
from .descriptor import ColumnDescriptor, Descriptor
from .db_value import DbValue

# Execution
from .execution import ExecutionStrategy

# Collaborator protocols
from .command import Command, Connection, SchemaCommand

# Reader Objects
from .data_reader import DataReader
from .record import Record
from .schema import SchemaRow, SchemaTable, SCHEMA_COLUMNS

# Coercion
from .coercion import NOT_COERCED, boolean_coercion

# Logging Configuration
from .logging import logger, setup_logging
