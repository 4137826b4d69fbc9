"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module adapts a DB-API 2.0 connection to the driver interface a Session uses.

DB-API has no prepared statement object, so DBAPIStatement emulates one: it
counts the ? placeholders once, validates every bind against the placeholder
count and the parameter kind, and executes with cursor.execute() or
cursor.executemany(). The underlying driver must use the qmark paramstyle.

Resource Management:
- Each statement owns one DB-API cursor for updates and batches.
- Each execute_query() opens a separate DB-API cursor owned by the returned result.
- Closing a statement does not close a result it produced; the Session closes both.
"""
import datetime
from typing import Any, List, Optional

from sqlsession.helpers import get_settings, log, sanitize_sql
from sqlsession.parameter_helper import count_qmark_params
from sqlsession.row import ColumnMap, Row
from sqlsession.type import (
    INT_MAX,
    INT_MIN,
    LONG_MAX,
    LONG_MIN,
    check_integer,
    column_to_date,
    column_to_integer,
    column_to_str,
    column_to_timestamp,
    to_date,
    to_timestamp,
)

# Marks a parameter position that has not been bound yet
_UNSET = object()


class DBAPIConnection:
    """
    Wraps an open DB-API 2.0 connection and prepares statements on it.

    Attributes:
        raw: The wrapped DB-API connection.
        temporal_as_text: Send dates and timestamps as ISO-8601 text.
        case_sensitive_columns: Match column names by exact case only.
        autocommit: Commit after every successful update or batch.
    """

    def __init__(
        self,
        connection: Any,
        temporal_as_text: Optional[bool] = None,
        case_sensitive_columns: Optional[bool] = None,
        autocommit: bool = False,
    ) -> None:
        """
        Args:
            connection: An open DB-API 2.0 connection using the qmark paramstyle.
            temporal_as_text: Defaults to True for sqlite3 connections, whose
                default date adapters are deprecated.
            case_sensitive_columns: Defaults to the package setting.
            autocommit: Commit the raw connection after each successful
                execute_update() and execute_batch(). DB-API connections
                start a transaction implicitly, so without this (or an explicit
                commit()) writes are discarded when the connection closes.
        """
        self.raw = connection
        if temporal_as_text is None:
            temporal_as_text = type(connection).__module__.split(".")[0] == "sqlite3"
        self.temporal_as_text = temporal_as_text
        if case_sensitive_columns is None:
            case_sensitive_columns = get_settings().case_sensitive_columns
        self.case_sensitive_columns = case_sensitive_columns
        self.autocommit = autocommit
        self.closed = False

    def prepare(self, sql: str) -> "DBAPIStatement":
        """
        Prepare a statement from SQL text.

        Raises:
            RuntimeError: If this connection has been closed.
            ValueError: If the SQL is empty or has unterminated quoted text or comments.
            Exception: Whatever the driver raises when opening a cursor fails.
        """
        if self.closed:
            raise RuntimeError("Connection is closed")
        if not isinstance(sql, str) or not sql.strip():
            raise ValueError("SQL text must be a non-empty string")

        parameter_count = count_qmark_params(sql)
        cursor = self.raw.cursor()
        log('debug', "Prepared statement with %d parameter(s): %s", parameter_count, sanitize_sql(sql))
        return DBAPIStatement(self, sql, parameter_count, cursor)

    def commit(self) -> None:
        """Commit the current transaction on the raw connection."""
        self.raw.commit()

    def rollback(self) -> None:
        """Discard the current transaction on the raw connection."""
        self.raw.rollback()

    def _after_write(self) -> None:
        if self.autocommit:
            self.raw.commit()
            log('debug', "Autocommit after write")

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.raw.close()


class DBAPIStatement:
    """
    Prepared statement emulated over a DB-API cursor.
    """

    def __init__(self, connection: DBAPIConnection, sql: str, parameter_count: int, cursor: Any) -> None:
        self.connection = connection
        self.sql = sql
        self.parameter_count = parameter_count
        self._cursor = cursor
        self._params: List[Any] = [_UNSET] * parameter_count
        self._batch: List[tuple] = []
        self.closed = False

    @property
    def batch_size(self) -> int:
        return len(self._batch)

    def _check_closed(self) -> None:
        if self.closed:
            raise RuntimeError("Statement is closed")

    def _set(self, index: int, value: Any) -> None:
        self._check_closed()
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"Parameter index must be an int, got {type(index).__name__}")
        if index < 1 or index > self.parameter_count:
            raise IndexError(
                f"Parameter index {index} out of range: statement has "
                f"{self.parameter_count} parameter(s)"
            )
        self._params[index - 1] = value

    def _bound_parameters(self) -> tuple:
        """Return the bound values, requiring every placeholder to have one."""
        for i, value in enumerate(self._params, start=1):
            if value is _UNSET:
                raise ValueError(f"No value specified for parameter {i}")
        return tuple(self._params)

    def set_string(self, index: int, value: Optional[str]) -> None:
        if value is not None and not isinstance(value, str):
            raise TypeError(f"Expected str, got {type(value).__name__}")
        self._set(index, value)

    def set_int(self, index: int, value: Optional[int]) -> None:
        if value is not None:
            value = check_integer(value, INT_MIN, INT_MAX)
        self._set(index, value)

    def set_long(self, index: int, value: Optional[int]) -> None:
        if value is not None:
            value = check_integer(value, LONG_MIN, LONG_MAX)
        self._set(index, value)

    def set_date(self, index: int, value: Optional[datetime.date]) -> None:
        if value is not None:
            value = to_date(value)
            if self.connection.temporal_as_text:
                value = value.isoformat()
        self._set(index, value)

    def set_timestamp(self, index: int, value: Optional[datetime.datetime]) -> None:
        if value is not None:
            value = to_timestamp(value)
            if self.connection.temporal_as_text:
                value = value.isoformat(sep=" ")
        self._set(index, value)

    def add_batch(self) -> None:
        self._check_closed()
        self._batch.append(self._bound_parameters())

    def clear_parameters(self) -> None:
        self._check_closed()
        self._params = [_UNSET] * self.parameter_count

    def execute_query(self) -> "DBAPIResult":
        """
        Execute as a row-returning query on a fresh cursor.

        Raises:
            ValueError: If a parameter is unbound or the statement returned no result set.
        """
        self._check_closed()
        params = self._bound_parameters()
        cursor = self.connection.raw.cursor()
        try:
            cursor.execute(self.sql, params)
            if cursor.description is None:
                raise ValueError("Statement did not return a result set")
        except Exception:
            cursor.close()
            raise
        return DBAPIResult(cursor, self.connection.case_sensitive_columns)

    def execute_update(self) -> int:
        self._check_closed()
        self._cursor.execute(self.sql, self._bound_parameters())
        count = self._cursor.rowcount
        self.connection._after_write()
        return count

    def execute_batch(self) -> int:
        """
        Execute every queued row and return the total affected row count.
        The batch is emptied whether or not execution succeeds.
        """
        self._check_closed()
        rows, self._batch = self._batch, []
        self._cursor.executemany(self.sql, rows)
        count = self._cursor.rowcount
        self.connection._after_write()
        return count

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._batch = []
        self._cursor.close()


class DBAPIResult:
    """
    Result cursor over a DB-API cursor, one row at a time.
    """

    def __init__(self, cursor: Any, case_sensitive_columns: bool = False) -> None:
        self._cursor = cursor
        self._columns = ColumnMap(cursor.description)
        self._case_sensitive = case_sensitive_columns
        self._row: Optional[Row] = None
        self.closed = False

    @property
    def column_names(self) -> List[str]:
        return list(self._columns.names)

    @property
    def row(self) -> Row:
        """
        The current row.

        Raises:
            RuntimeError: If the cursor is closed or not positioned on a row.
        """
        if self.closed:
            raise RuntimeError("Result is closed")
        if self._row is None:
            raise RuntimeError("No current row: call next() first")
        return self._row

    def next(self) -> bool:
        if self.closed:
            raise RuntimeError("Result is closed")
        values = self._cursor.fetchone()
        if values is None:
            self._row = None
            return False
        self._row = Row(values, self._columns, self._case_sensitive)
        return True

    def get_string(self, column: str) -> Optional[str]:
        value = self.row.get(column)
        return None if value is None else column_to_str(value)

    def get_int(self, column: str) -> Optional[int]:
        value = self.row.get(column)
        return None if value is None else column_to_integer(value, INT_MIN, INT_MAX)

    def get_long(self, column: str) -> Optional[int]:
        value = self.row.get(column)
        return None if value is None else column_to_integer(value, LONG_MIN, LONG_MAX)

    def get_date(self, column: str) -> Optional[datetime.date]:
        value = self.row.get(column)
        return None if value is None else column_to_date(value)

    def get_timestamp(self, column: str) -> Optional[datetime.datetime]:
        value = self.row.get(column)
        return None if value is None else column_to_timestamp(value)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._row = None
        self._cursor.close()
