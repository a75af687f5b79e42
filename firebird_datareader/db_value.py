"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains DbValue, the engine-level holder of one decoded column value.
Typed getters raise EngineError when the value cannot be represented as the requested type.
"""

import datetime
import decimal
import uuid
from typing import Any

from firebird_datareader.descriptor import ColumnDescriptor
from firebird_datareader.exceptions import EngineError
from firebird_datareader.execution import ExecutionStrategy

_INT_RANGES = {
    "byte": (0, 255),
    "int16": (-(2**15), 2**15 - 1),
    "int32": (-(2**31), 2**31 - 1),
    "int64": (-(2**63), 2**63 - 1),
}

_TRUE_STRINGS = ("true", "1", "y", "yes", "t")
_FALSE_STRINGS = ("false", "0", "n", "no", "f")


class DbValue:
    """
    One decoded value of the current row, bound to its column descriptor.
    """

    __slots__ = ("_field", "_value")

    def __init__(self, field: ColumnDescriptor, value: Any = None) -> None:
        self._field = field
        self._value = value

    @property
    def field(self) -> ColumnDescriptor:
        return self._field

    async def is_db_null(self, strategy: ExecutionStrategy) -> bool:
        return self._value is None

    def is_null(self) -> bool:
        return self._value is None

    def get_value(self) -> Any:
        return self._value

    def _require_value(self) -> Any:
        if self._value is None:
            raise EngineError(
                f"Column '{self._field.alias}' is NULL and has no typed value", "22002"
            )
        return self._value

    def _get_integer(self, kind: str) -> int:
        value = self._require_value()
        try:
            if isinstance(value, bool):
                result = int(value)
            elif isinstance(value, (int, decimal.Decimal, float)):
                result = int(value)
            elif isinstance(value, str):
                result = int(decimal.Decimal(value.strip()))
            else:
                raise TypeError(type(value).__name__)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise EngineError(
                f"Cannot convert {value!r} to {kind}: {e}", "22018"
            ) from e
        low, high = _INT_RANGES[kind]
        if not low <= result <= high:
            raise EngineError(f"Value {result} is out of range for {kind}", "22003")
        return result

    def get_boolean(self) -> bool:
        value = self._require_value()
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, decimal.Decimal)):
            return value != 0
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
        raise EngineError(f"Cannot convert {value!r} to boolean", "22018")

    def get_byte(self) -> int:
        return self._get_integer("byte")

    def get_int16(self) -> int:
        return self._get_integer("int16")

    def get_int32(self) -> int:
        return self._get_integer("int32")

    def get_int64(self) -> int:
        return self._get_integer("int64")

    def get_float(self) -> float:
        return self.get_double()

    def get_double(self) -> float:
        value = self._require_value()
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise EngineError(f"Cannot convert {value!r} to float: {e}", "22018") from e

    def get_decimal(self) -> decimal.Decimal:
        value = self._require_value()
        try:
            if isinstance(value, float):
                return decimal.Decimal(repr(value))
            return decimal.Decimal(value)
        except (TypeError, ValueError, decimal.InvalidOperation) as e:
            raise EngineError(f"Cannot convert {value!r} to decimal", "22018") from e

    def get_string(self) -> str:
        value = self._require_value()
        if isinstance(value, str):
            return value
        if isinstance(value, (bytes, bytearray, memoryview)):
            try:
                return bytes(value).decode("utf-8")
            except UnicodeDecodeError as e:
                raise EngineError(f"Malformed string in column '{self._field.alias}'", "22018") from e
        if isinstance(value, (datetime.date, datetime.time)):
            return value.isoformat(sep=" ") if isinstance(value, datetime.datetime) else value.isoformat()
        return str(value)

    def get_char(self) -> str:
        text = self.get_string()
        if not text:
            raise EngineError(f"Column '{self._field.alias}' holds an empty string", "22018")
        return text[0]

    def get_guid(self) -> uuid.UUID:
        value = self._require_value()
        try:
            if isinstance(value, uuid.UUID):
                return value
            if isinstance(value, (bytes, bytearray)):
                return uuid.UUID(bytes=bytes(value))
            if isinstance(value, str):
                return uuid.UUID(value)
        except ValueError as e:
            raise EngineError(f"Cannot convert {value!r} to GUID", "22018") from e
        raise EngineError(f"Cannot convert {value!r} to GUID", "22018")

    def get_date_time(self) -> datetime.datetime:
        value = self._require_value()
        if isinstance(value, datetime.datetime):
            return value
        if isinstance(value, datetime.date):
            return datetime.datetime(value.year, value.month, value.day)
        if isinstance(value, str):
            try:
                return datetime.datetime.fromisoformat(value.strip())
            except ValueError as e:
                raise EngineError(f"Invalid datetime format: {value!r}", "22007") from e
        raise EngineError(f"Cannot convert {value!r} to datetime", "22018")

    def get_binary(self) -> bytes:
        value = self._require_value()
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        if isinstance(value, str):
            return value.encode("utf-8")
        raise EngineError(f"Cannot convert {value!r} to binary", "22018")

    def __repr__(self) -> str:
        return f"DbValue({self._field.alias!r}, {self._value!r})"
