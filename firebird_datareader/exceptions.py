"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains custom exception classes for the firebird_datareader package.
These classes are used to raise exceptions when an error occurs while reading a result set.
"""

import builtins
from typing import Optional

from firebird_datareader.logging import logger


class Exception(Exception):
    """
    Base class for all exceptions.
    This is the base class for all custom exceptions in this module.
    It can be used to catch any exception raised by the reader.
    """

    def __init__(self, driver_error: str = "An exception occurred", engine_error: str = "") -> None:
        self.driver_error = driver_error
        self.engine_error = truncate_error_message(engine_error)
        if self.engine_error:
            self.message = f"Driver Error: {self.driver_error}; Engine Error: {self.engine_error}"
        else:
            self.message = self.driver_error
        super().__init__(self.message)


class Warning(Exception):
    """
    Base class for warnings.
    This class is used to represent warnings that do not necessarily stop the execution
    but indicate that something unexpected happened.
    """


class Error(Exception):
    """
    Base class for errors.
    This is the base class for all error-related exceptions. It is a subclass of the
    general Exception class and serves as a parent for more specific error types.
    """


class InterfaceError(Error):
    """
    Error related to the database interface.
    This exception is raised for errors that are related to the reader interface itself
    rather than to the database, such as using a reader after it was closed.
    """


class DatabaseError(Error):
    """
    Base class for database errors.
    This is the base class for all database-related errors. It serves as a parent
    for more specific database error types.
    """


class DataError(DatabaseError):
    """
    Error related to problems with the processed data.
    This exception is raised for errors that occur due to issues with the data being
    processed, such as a value that cannot be converted to the requested type.
    """


class OperationalError(DatabaseError):
    """
    Error related to the database's operation.
    This exception is raised for errors that occur during the operation of the database,
    such as connection failures, transaction errors, or other operational issues.
    """


class IntegrityError(DatabaseError):
    """
    Error related to database integrity.
    This exception is raised for errors that occur due to integrity constraints being
    violated, such as unique key violations or foreign key constraints.
    """


class InternalError(DatabaseError):
    """
    Error related to the reader's internal operation.
    This exception is raised for unexpected conditions, such as a collaborator suspending
    a call that was started synchronously.
    """


class ProgrammingError(DatabaseError):
    """
    Error related to programming errors.
    This exception is raised for errors that occur due to incorrect API usage,
    such as reading values before the first row was fetched.
    """


class NotSupportedError(DatabaseError):
    """
    Error related to unsupported operations.
    This exception is raised for errors that occur when an unsupported operation is
    attempted.
    """


class ReaderClosedError(InterfaceError):
    """Raised when any operation other than close() is attempted on a closed reader."""

    def __init__(self, driver_error: str = "Invalid attempt of read when the reader is closed.") -> None:
        super().__init__(driver_error)


class NoDataError(ProgrammingError):
    """Raised when row data is requested while the reader is not positioned on a row."""

    def __init__(self, driver_error: str = "There are no data to read.") -> None:
        super().__init__(driver_error)


class ColumnIndexError(ProgrammingError, IndexError):
    """Raised for an ordinal outside [0, field_count) or an unknown column name."""

    def __init__(self, driver_error: str = "Could not find specified column in results.") -> None:
        super().__init__(driver_error)


class EngineError(builtins.Exception):
    """
    Fault raised by the engine layer while decoding or producing a value.

    Engine faults never reach the consumer as-is: the reader translates them into
    the matching DatabaseError subclass at the accessor boundary.
    """

    def __init__(self, message: str, sqlstate: str = "HY000", error_code: int = 0) -> None:
        self.message = message
        self.sqlstate = sqlstate
        self.error_code = error_code
        super().__init__(message)


# Mapping SQLSTATE codes to exception classes and their driver-side text
sqlstate_to_exception = {
    "01000": (Warning, "General warning"),
    "01004": (DataError, "String data, right-truncated"),
    "07006": (ProgrammingError, "Restricted data type attribute violation"),
    "07009": (ProgrammingError, "Invalid descriptor index"),
    "08003": (OperationalError, "Connection not open"),
    "08006": (OperationalError, "Connection failure"),
    "08S01": (OperationalError, "Communication link failure"),
    "22001": (DataError, "String data, right-truncated"),
    "22002": (DataError, "Indicator variable required but not supplied"),
    "22003": (DataError, "Numeric value out of range"),
    "22007": (DataError, "Invalid datetime format"),
    "22008": (DataError, "Datetime field overflow"),
    "22012": (DataError, "Division by zero"),
    "22018": (DataError, "Invalid character value for cast specification"),
    "23000": (IntegrityError, "Integrity constraint violation"),
    "24000": (ProgrammingError, "Invalid cursor state"),
    "25000": (OperationalError, "Invalid transaction state"),
    "40001": (OperationalError, "Serialization failure"),
    "42000": (ProgrammingError, "Syntax error or access violation"),
    "42S02": (ProgrammingError, "Base table or view not found"),
    "42S22": (ProgrammingError, "Column not found"),
    "HY000": (OperationalError, "General error"),
    "HY001": (OperationalError, "Memory allocation error"),
    "HY008": (OperationalError, "Operation canceled"),
    "HY010": (ProgrammingError, "Function sequence error"),
    "HY090": (ProgrammingError, "Invalid string or buffer length"),
    "HYC00": (NotSupportedError, "Optional feature not implemented"),
    "HYT00": (OperationalError, "Timeout expired"),
}


def truncate_error_message(error_message: Optional[str]) -> str:
    """
    Strip the client library prefix from an engine error message.

    Args:
        error_message (str): Message as reported by the engine.

    Returns:
        str: Message without a leading "[vendor][component]" prefix.
    """
    if not error_message:
        return ""
    if error_message.startswith("[") and "]" in error_message:
        # "[Firebird][Engine]message" -> "[Firebird]message"
        first = error_message.index("]") + 1
        rest = error_message[first:]
        if rest.startswith("[") and "]" in rest:
            return error_message[:first] + rest[rest.index("]") + 1:]
    return error_message


def exception_for(sqlstate: str, engine_error: str = "") -> DatabaseError:
    """
    Build the exception mapped to an SQLSTATE code.

    Args:
        sqlstate (str): The SQLSTATE code reported by the engine.
        engine_error (str): The engine's own error text.

    Returns:
        Exception: An instance of the mapped class, DatabaseError when unmapped.
    """
    exception_class, driver_error = sqlstate_to_exception.get(
        sqlstate, (DatabaseError, f"An error occurred with SQLSTATE code {sqlstate}")
    )
    return exception_class(driver_error, engine_error)


def raise_exception(sqlstate: str, engine_error: str = "") -> None:
    """
    Raise a custom exception based on the given SQLSTATE code.
    If the code is not found in the mapping, a generic DatabaseError is raised.

    Args:
        sqlstate (str): The SQLSTATE code to map to a custom exception.
        engine_error (str): The engine's own error text.

    Raises:
        DatabaseError: The mapped exception.
    """
    exception = exception_for(sqlstate, engine_error)
    logger.error("Raising %s for SQLSTATE %s: %s", type(exception).__name__, sqlstate, exception.message)
    raise exception


def translate_engine_error(error: EngineError) -> DatabaseError:
    """
    Return the provider fault for an engine fault. Callers raise it ``from`` the
    engine fault so the original cause stays attached.
    """
    return exception_for(error.sqlstate, error.message)
