"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the Row class, which represents a single row of data
fetched by a result cursor.
"""
from typing import Any, Dict, List, Optional, Sequence


class ColumnMap:
    """
    Column name to index mapping shared by all rows of one result.

    Each column is registered under its own name and a lowercase alias. When two
    columns share a name the first one wins, matching positional lookup order.
    """

    def __init__(self, description: Optional[Sequence[Sequence[Any]]]) -> None:
        """
        Args:
            description: DB-API cursor.description (7-item sequences) or None.
        """
        self.names: List[str] = [column[0] for column in description or ()]
        self._exact: Dict[str, int] = {}
        self._lower: Dict[str, int] = {}
        for i, name in enumerate(self.names):
            self._exact.setdefault(name, i)
            self._lower.setdefault(name.lower(), i)

    def index_of(self, name: str, case_sensitive: bool = False) -> int:
        """
        Return the position of a named column.

        Raises:
            KeyError: If no column has that name.
        """
        if name in self._exact:
            return self._exact[name]
        if not case_sensitive and name.lower() in self._lower:
            return self._lower[name.lower()]
        raise KeyError(f"Column not found: {name}")

    def __len__(self) -> int:
        return len(self.names)


class Row:
    """
    A row of data from a fetch operation. Provides tuple-like indexing and
    lookup by column name.
    """

    def __init__(self, values: Sequence[Any], column_map: ColumnMap, case_sensitive: bool = False):
        """
        Wrap one fetched tuple.
        Args:
            values: Values for this row
            column_map: Pre-built column map (shared across rows)
            case_sensitive: Only match column names with their exact case
        """
        self._values: List[Any] = list(values)
        self._column_map = column_map
        self._case_sensitive = case_sensitive

    def get(self, name: str) -> Any:
        """Return the value of a named column (KeyError if absent)."""
        return self._values[self._column_map.index_of(name, self._case_sensitive)]

    @property
    def column_names(self) -> List[str]:
        return list(self._column_map.names)

    def __getitem__(self, index: int) -> Any:
        """Positional access: row[0] is the first column."""
        return self._values[index]

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, (list, tuple)):
            return self._values == list(other)
        if isinstance(other, Row):
            return self._values == other._values
        return NotImplemented

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Any:
        return iter(self._values)

    def __repr__(self) -> str:
        return repr(tuple(self._values))
