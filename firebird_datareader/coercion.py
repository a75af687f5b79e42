"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the value coercion policy applied by DataReader.get_value().

Object mappers declare the Python type they expect for each ordinal through the command's
expected_column_types. Engines without a native boolean store flags as integers or
characters, so a mapper expecting bool (or Optional[bool]) would otherwise receive those raw
values. The policy here bridges that gap and can be replaced or disabled per reader.
"""

import types
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Union, get_args, get_origin

if TYPE_CHECKING:
    from firebird_datareader.data_reader import DataReader

# Returned by a policy that leaves the value to the reader's default representation
NOT_COERCED = object()

ValueCoercion = Callable[["DataReader", int, Any], Any]


def expected_type_at(expected_types: Optional[Sequence[Any]], ordinal: int) -> Any:
    """Return the expected type declared for an ordinal, or None."""
    if not expected_types or ordinal < 0 or ordinal >= len(expected_types):
        return None
    return expected_types[ordinal]


def nullable_underlying_type(expected_type: Any) -> Optional[Any]:
    """
    Return T for Optional[T] or T | None, otherwise None.
    """
    if get_origin(expected_type) not in (Union, types.UnionType):
        return None
    args = [arg for arg in get_args(expected_type) if arg is not type(None)]
    if len(args) != len(get_args(expected_type)) - 1 or len(args) != 1:
        return None
    return args[0]


def boolean_coercion(reader: "DataReader", ordinal: int, expected_type: Any) -> Any:
    """
    Surface boolean-shaped columns as real booleans.

    Optional[T]: NULL becomes None; for T = bool the value goes through get_boolean().
    bool: the value goes through get_boolean().

    Returns:
        The coerced value, or NOT_COERCED when the expected type does not apply.
    """
    if expected_type is None:
        return NOT_COERCED

    underlying = nullable_underlying_type(expected_type)
    if underlying is not None:
        if reader.is_db_null(ordinal):
            return None
        if underlying is bool:
            return reader.get_boolean(ordinal)

    if expected_type is bool:
        return reader.get_boolean(ordinal)

    return NOT_COERCED
