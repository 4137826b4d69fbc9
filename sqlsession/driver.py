"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module describes the driver objects a Session works with.

A Session only needs three capabilities: a connection that prepares
statements, a prepared statement that takes positional typed parameters and
executes, and a result cursor that advances and reads columns by name. Any
object with these methods can be attached; sqlsession.dbapi provides them on
top of a DB-API 2.0 connection.
"""

import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from sqlsession.helpers import log


@runtime_checkable
class DriverResult(Protocol):
    """Cursor over the rows produced by DriverStatement.execute_query()."""

    def next(self) -> bool:
        """Move to the next row; False once the rows are exhausted."""
        ...

    def get_string(self, column: str) -> Optional[str]:
        ...

    def get_int(self, column: str) -> Optional[int]:
        ...

    def get_long(self, column: str) -> Optional[int]:
        ...

    def get_date(self, column: str) -> Optional[datetime.date]:
        ...

    def get_timestamp(self, column: str) -> Optional[datetime.datetime]:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class DriverStatement(Protocol):
    """Prepared statement with 1-based positional parameters."""

    def set_string(self, index: int, value: Optional[str]) -> None:
        ...

    def set_int(self, index: int, value: Optional[int]) -> None:
        ...

    def set_long(self, index: int, value: Optional[int]) -> None:
        ...

    def set_date(self, index: int, value: Optional[datetime.date]) -> None:
        ...

    def set_timestamp(self, index: int, value: Optional[datetime.datetime]) -> None:
        ...

    def add_batch(self) -> None:
        """Queue the currently bound parameters as one batch row."""
        ...

    def clear_parameters(self) -> None:
        ...

    def execute_query(self) -> DriverResult:
        ...

    def execute_update(self) -> int:
        """Execute a mutation and return the affected row count."""
        ...

    def execute_batch(self) -> int:
        """Execute the queued rows and return the total affected row count."""
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class DriverConnection(Protocol):
    """Open connection able to prepare statements."""

    def prepare(self, sql: str) -> DriverStatement:
        ...

    def close(self) -> None:
        ...


def close_quietly(resource: Any) -> None:
    """
    Close a connection, statement or cursor, ignoring None and any close error.

    Release is best effort: a failure here must never replace the error that
    triggered the cleanup.
    """
    if resource is None:
        return

    try:
        resource.close()
    except Exception as e:
        log('debug', "Ignoring error while closing %s: %s", type(resource).__name__, e)
