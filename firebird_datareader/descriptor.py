"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the column descriptor table a command hands to a reader.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Tuple, overload

from firebird_datareader.constants import DbDataType
from firebird_datareader.type import DECIMAL_TYPES, LONG_TYPES, get_system_type


@dataclass(frozen=True)
class ColumnDescriptor:
    """
    Static metadata for one result column.

    Attributes:
        name: Column name in its owning table (empty for expressions).
        alias: Name the column carries in the result set.
        relation: Owning table name (empty for expressions).
        db_type: Logical type tag.
        size: Declared size in bytes or characters.
        numeric_scale: Engine scale, negative for fixed-point columns (e.g. -2).
        nullable: Whether the column accepts NULL.
        long: Whether values are stored out of row and streamed. Derived from
            db_type when not given.
        aliased: Whether the result name differs from the base name. Derived
            from name and alias when not given.
    """

    name: str
    alias: str = ""
    relation: str = ""
    db_type: DbDataType = DbDataType.VARCHAR
    size: int = 0
    numeric_scale: int = 0
    nullable: bool = True
    long: Optional[bool] = None
    aliased: Optional[bool] = None

    def __post_init__(self) -> None:
        if not self.alias:
            object.__setattr__(self, "alias", self.name)
        if self.long is None:
            object.__setattr__(self, "long", self.db_type in LONG_TYPES)
        if self.aliased is None:
            object.__setattr__(self, "aliased", bool(self.name) and self.alias != self.name)

    def get_size(self) -> int:
        return self.size

    def is_decimal(self) -> bool:
        return self.db_type in DECIMAL_TYPES

    def is_long(self) -> bool:
        return bool(self.long)

    def is_aliased(self) -> bool:
        return bool(self.aliased)

    def allow_db_null(self) -> bool:
        return self.nullable

    def get_system_type(self) -> type:
        return get_system_type(self.db_type)


class Descriptor(Sequence[ColumnDescriptor]):
    """
    Ordered, read-only collection of column descriptors for one result set.
    """

    def __init__(self, columns: Iterable[ColumnDescriptor] = ()) -> None:
        self._columns: Tuple[ColumnDescriptor, ...] = tuple(columns)

    @property
    def count(self) -> int:
        return len(self._columns)

    @overload
    def __getitem__(self, index: int) -> ColumnDescriptor: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[ColumnDescriptor, ...]: ...

    def __getitem__(self, index):
        return self._columns[index]

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[ColumnDescriptor]:
        return iter(self._columns)

    def __repr__(self) -> str:
        return f"Descriptor({[column.alias for column in self._columns]!r})"
