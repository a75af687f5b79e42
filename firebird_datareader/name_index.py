"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the column name to ordinal index used by DataReader.get_ordinal().
"""

from typing import Dict

from firebird_datareader.descriptor import Descriptor
from firebird_datareader.exceptions import ColumnIndexError


class NameIndex:
    """
    Exact and case-insensitive lookups from column alias to ordinal.

    Built once from a descriptor table. The first column carrying a name wins in
    both maps, and an exact match always takes priority over a case-insensitive one.
    """

    __slots__ = ("_exact", "_insensitive")

    def __init__(self, fields: Descriptor) -> None:
        self._exact: Dict[str, int] = {}
        self._insensitive: Dict[str, int] = {}
        for ordinal, field in enumerate(fields):
            self._exact.setdefault(field.alias, ordinal)
            self._insensitive.setdefault(field.alias.lower(), ordinal)

    def ordinal_of(self, name: str) -> int:
        """
        Args:
            name: Column alias to look up.

        Returns:
            int: Ordinal of the column.

        Raises:
            ColumnIndexError: If no column carries the name.
        """
        ordinal = self._exact.get(name)
        if ordinal is None:
            ordinal = self._insensitive.get(name.lower())
        if ordinal is None:
            raise ColumnIndexError(f"Could not find specified column '{name}' in results.")
        return ordinal

    def __contains__(self, name: str) -> bool:
        return name in self._exact or name.lower() in self._insensitive

    def __len__(self) -> int:
        return len(self._exact)
