"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the Record class, a detached snapshot of one row
yielded when iterating over a DataReader.
"""

from typing import Any, Dict, List, Union


class Record:
    """
    Values of one row, independent of the reader that produced them.
    Provides tuple-like indexing, lookup by column name and attribute access.
    """

    __slots__ = ("_values", "_column_map")

    def __init__(self, values: List[Any], column_map: Dict[str, int]) -> None:
        """
        Args:
            values: Values of this row, one per column.
            column_map: Column name to ordinal map, shared by all records of a reader.
        """
        self._values = values
        self._column_map = column_map

    def __getitem__(self, key: Union[int, str]) -> Any:
        """Allow accessing by ordinal, record[0], or by column name, record["ID"]"""
        if isinstance(key, str):
            return self._values[self._ordinal(key)]
        return self._values[key]

    def _ordinal(self, name: str) -> int:
        if name in self._column_map:
            return self._column_map[name]
        name_lower = name.lower()
        for column, ordinal in self._column_map.items():
            if column.lower() == name_lower:
                return ordinal
        raise KeyError(f"Record has no column '{name}'")

    def __getattr__(self, name: str) -> Any:
        """Allow accessing by column name as attribute: record.column_name"""
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[self._ordinal(name)]
        except KeyError:
            raise AttributeError(f"Record has no attribute '{name}'") from None

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, (list, tuple)):
            return self._values == list(other)
        if isinstance(other, Record):
            return self._values == other._values
        return NotImplemented

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def __str__(self) -> str:
        return "(" + ", ".join(repr(value) for value in self._values) + ")"

    def __repr__(self) -> str:
        return repr(tuple(self._values))
