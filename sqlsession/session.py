"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module defines the Session class, a builder-style wrapper around a database
connection, one prepared statement and one result cursor.

Resource Management:
- A session tracks at most one statement and at most one result cursor.
- Beginning a new statement closes the previous statement and its cursor.
- Exhausting the cursor with advance() closes the cursor.
- Every error a session raises is preceded by closing its cursor and statement,
  so the session can be reused for the next statement.
- The connection is only closed by close(), and only when the session owns it.
- Errors raised while closing a resource are logged and discarded.

Example:
    session = Session()
    try:
        session.attach(connection, auto_close=True)

        session.begin_statement("SELECT id FROM users WHERE name = ?") \\
            .bind_string("Luke") \\
            .execute_query()
        while session.advance():
            user_ids.add(session.get_int("id"))

        session.begin_statement("DELETE FROM users").execute_update()
    finally:
        session.close()
"""
import datetime
from enum import Enum
from typing import Any, NoReturn, Optional, Type

from sqlsession.driver import DriverConnection, DriverResult, DriverStatement, close_quietly
from sqlsession.exceptions import (
    BindError,
    ColumnAccessError,
    Error,
    ExecutionError,
    FetchError,
    NoResultsError,
    NoStatementError,
    PreparationError,
)
from sqlsession.helpers import get_settings, log, sanitize_sql
from sqlsession.logging import logger


class SessionState(Enum):
    """Resources a session is currently tracking."""

    IDLE = "idle"                      # no statement
    STATEMENT_OPEN = "statement_open"  # statement, no cursor
    RESULT_OPEN = "result_open"        # statement and cursor


class Session:
    """
    Builder-style session over one connection.

    A session is meant to be used by one caller at a time; it holds no locks.

    Methods:
        attach(connection, auto_close) -> Session
        begin_statement(sql) -> Session
        bind_string/bind_int/bind_long/bind_date/bind_timestamp(value) -> Session
        queue_batch_row() -> Session
        execute_query() -> Session
        execute_update() -> int
        execute_batch() -> int
        advance() -> bool
        get_string/get_int/get_long/get_date/get_timestamp(column) -> value
        close_results() -> None
        close() -> None
    """

    def __init__(
        self,
        connection: Optional[DriverConnection] = None,
        auto_close: bool = False,
        legacy_advance: Optional[bool] = None,
    ) -> None:
        """
        Create a session, optionally attaching a connection right away.
        Construction never raises, so it can happen outside the try block
        whose finally calls close().

        Args:
            connection: Connection to attach (see attach()).
            auto_close (bool): Whether the session owns the connection.
            legacy_advance (bool): advance() returns False and records the
                FetchError on last_error instead of raising. Defaults to the
                package setting.
        """
        self._connection: Optional[DriverConnection] = None
        self._auto_close_connection = False
        self._statement: Optional[DriverStatement] = None
        self._result: Optional[DriverResult] = None
        self._parameter_index = 1
        self._batch_size = 0
        self._trace_id: Optional[str] = None
        self.last_error: Optional[Error] = None

        if legacy_advance is None:
            legacy_advance = get_settings().legacy_advance
        self.legacy_advance = legacy_advance

        if connection is not None:
            self.attach(connection, auto_close)

    @property
    def state(self) -> SessionState:
        if self._result is not None:
            return SessionState.RESULT_OPEN
        if self._statement is not None:
            return SessionState.STATEMENT_OPEN
        return SessionState.IDLE

    @property
    def connection(self) -> Optional[DriverConnection]:
        return self._connection

    @property
    def auto_close_connection(self) -> bool:
        return self._auto_close_connection

    @property
    def parameter_index(self) -> int:
        """Position the next bind_* call binds at (1-based)."""
        return self._parameter_index

    @property
    def batch_size(self) -> int:
        """Number of rows queued on the open statement."""
        return self._batch_size

    @property
    def trace_id(self) -> Optional[str]:
        return self._trace_id

    # ------------------------------------------------------------------
    # Opening a connection
    # ------------------------------------------------------------------

    def attach(self, connection: DriverConnection, auto_close: bool = False) -> "Session":
        """
        Specify the connection this session works on.

        Attaching never raises, so it can be done above the try/finally block
        that calls close().

        Args:
            connection: An open connection able to prepare statements.
            auto_close (bool): If True, close() also closes the connection.
                If False, the caller stays responsible for it.
        """
        self._connection = connection
        self._auto_close_connection = bool(auto_close)
        self._trace_id = logger.generate_trace_id("SESS")
        logger.set_trace_id(self._trace_id)
        log('debug', "Connection attached (auto_close=%s)", self._auto_close_connection)
        return self

    # ------------------------------------------------------------------
    # Building and executing a statement
    # ------------------------------------------------------------------

    def begin_statement(self, sql: str) -> "Session":
        """
        Start a SQL statement. Any previous cursor and statement are closed first.

        Bind parameters with bind_string(), bind_int(), ... in placeholder order,
        then finish with execute_query(), execute_update() or execute_batch().

        Raises:
            PreparationError: If no connection is attached or the connection
                rejects the SQL. The session is left idle.
        """
        self.close_results()

        if self._connection is None:
            self._close_and_raise(
                PreparationError, "There is no connection to prepare on. Use attach() first."
            )

        try:
            statement = self._connection.prepare(sql)
        except Exception as e:
            self._close_and_raise(PreparationError, "Exception preparing statement.", e)

        self._statement = statement
        self._parameter_index = 1
        self._batch_size = 0
        log('debug', "Statement started: %s", sanitize_sql(sql))
        return self

    def _bind(self, kind: str, setter: str, value: Any) -> "Session":
        if self._statement is None:
            self._close_and_raise(
                NoStatementError,
                "There is no SQL statement to bind to. Use begin_statement() first.",
            )

        index = self._parameter_index
        try:
            getattr(self._statement, setter)(index, value)
        except Exception as e:
            self._close_and_raise(BindError, f"Exception binding {kind} parameter #{index}.", e)

        self._parameter_index += 1
        return self

    def bind_string(self, value: Optional[str]) -> "Session":
        """Bind the next parameter as a string (None binds NULL)."""
        return self._bind("string", "set_string", value)

    def bind_int(self, value: Optional[int]) -> "Session":
        """Bind the next parameter as a 32-bit integer (None binds NULL)."""
        return self._bind("int", "set_int", value)

    def bind_long(self, value: Optional[int]) -> "Session":
        """Bind the next parameter as a 64-bit integer (None binds NULL)."""
        return self._bind("long", "set_long", value)

    def bind_date(self, value: Optional[datetime.date]) -> "Session":
        """Bind the next parameter as a date. A datetime is truncated to its date."""
        return self._bind("date", "set_date", value)

    def bind_timestamp(self, value: Optional[datetime.datetime]) -> "Session":
        """Bind the next parameter as a timestamp. A date is promoted to midnight."""
        return self._bind("timestamp", "set_timestamp", value)

    def queue_batch_row(self) -> "Session":
        """
        Queue the bound parameters as one batch row and start binding the next
        row at position 1. Finish the batch with execute_batch().

        Raises:
            NoStatementError: If no statement is open.
            BindError: If the driver rejects the row.
        """
        if self._statement is None:
            self._close_and_raise(
                NoStatementError,
                "There is no SQL statement to queue a row for. Use begin_statement() first.",
            )

        try:
            self._statement.add_batch()
            self._statement.clear_parameters()
        except Exception as e:
            self._close_and_raise(BindError, "Exception adding to batch.", e)

        self._batch_size += 1
        self._parameter_index = 1
        return self

    def _require_statement(self) -> DriverStatement:
        if self._statement is None:
            self._close_and_raise(
                NoStatementError,
                "There is no SQL statement to execute. Use begin_statement() first.",
            )
        return self._statement

    def execute_query(self) -> "Session":
        """
        Execute the statement as a query. Read rows with advance() and get_*().

        Raises:
            NoStatementError: If no statement is open.
            ExecutionError: If the driver rejects the query. The session is left idle.
        """
        statement = self._require_statement()

        # Re-executing an open statement replaces its previous cursor
        if self._result is not None:
            close_quietly(self._result)
            self._result = None

        try:
            result = statement.execute_query()
        except Exception as e:
            self._result = None
            self._close_and_raise(ExecutionError, "Exception executing query.", e)

        self._result = result
        log('debug', "Query executed")
        return self

    def execute_update(self) -> int:
        """
        Execute the statement as an update and close it.

        Returns:
            int: The affected row count reported by the driver.

        Raises:
            NoStatementError: If no statement is open.
            ExecutionError: If the driver rejects the update.
        """
        statement = self._require_statement()

        try:
            count = statement.execute_update()
        except Exception as e:
            self._close_and_raise(ExecutionError, "Exception executing update.", e)

        self.close_results()
        log('debug', "Update executed, %s row(s) affected", count)
        return count

    def execute_batch(self) -> int:
        """
        Execute the queued batch rows and close the statement.

        Returns:
            int: The total affected row count reported by the driver.

        Raises:
            NoStatementError: If no statement is open.
            ExecutionError: If no row was queued or the driver rejects the batch.
        """
        statement = self._require_statement()

        if self._batch_size == 0:
            self._close_and_raise(
                ExecutionError, "There are no batch rows to execute. Use queue_batch_row() first."
            )

        rows = self._batch_size
        try:
            count = statement.execute_batch()
        except Exception as e:
            self._close_and_raise(ExecutionError, "Exception executing batch.", e)

        self.close_results()
        log('debug', "Batch of %d row(s) executed, %s row(s) affected", rows, count)
        return count

    # ------------------------------------------------------------------
    # Reading results
    # ------------------------------------------------------------------

    def advance(self) -> bool:
        """
        Move to the next result row.

        Returns:
            bool: True if a row is available. On False the cursor has been
            closed; the statement stays open and can be executed again.

        Raises:
            NoResultsError: If no cursor is open.
            FetchError: If the driver fails while fetching. With legacy_advance
                the error is recorded on last_error and False is returned instead,
                so a failure looks like the end of the rows.
        """
        if self._result is None:
            self._close_and_raise(
                NoResultsError,
                "There are no results to advance. Use execute_query() first.",
            )

        try:
            has_row = self._result.next()
        except Exception as e:
            if self.legacy_advance:
                self._close_and_record(FetchError, "Exception fetching next result.", e)
                return False
            self._close_and_raise(FetchError, "Exception fetching next result.", e)

        if not has_row:
            close_quietly(self._result)
            self._result = None
            log('debug', "Results exhausted, cursor closed")
        return bool(has_row)

    def _get(self, kind: str, getter: str, column: str) -> Any:
        if self._result is None:
            self._close_and_raise(
                NoResultsError,
                "There are no results to get from. Use execute_query() first.",
            )

        try:
            return getattr(self._result, getter)(column)
        except Exception as e:
            self._close_and_raise(ColumnAccessError, f"Exception getting {kind} value of: {column}", e)

    def get_string(self, column: str) -> Optional[str]:
        return self._get("string", "get_string", column)

    def get_int(self, column: str) -> Optional[int]:
        return self._get("int", "get_int", column)

    def get_long(self, column: str) -> Optional[int]:
        return self._get("long", "get_long", column)

    def get_date(self, column: str) -> Optional[datetime.date]:
        return self._get("date", "get_date", column)

    def get_timestamp(self, column: str) -> Optional[datetime.datetime]:
        return self._get("timestamp", "get_timestamp", column)

    # ------------------------------------------------------------------
    # Closing
    # ------------------------------------------------------------------

    def close_results(self) -> None:
        """
        Close the cursor and statement, leaving the connection open for further use.
        Never raises.
        """
        if self._result is not None:
            close_quietly(self._result)
            self._result = None

        if self._statement is not None:
            close_quietly(self._statement)
            self._statement = None

        self._parameter_index = 1
        self._batch_size = 0

    def close(self) -> None:
        """
        End the session: close the cursor and statement, and the connection if
        the session owns it. Safe to call repeatedly and without attach().
        Always call this in a finally block.
        """
        self.close_results()

        if self._trace_id is not None and logger.get_trace_id() == self._trace_id:
            logger.clear_trace_id()

        # Never close a connection the caller kept ownership of
        if self._connection is None or not self._auto_close_connection:
            return

        close_quietly(self._connection)
        self._connection = None
        log('debug', "Connection closed")

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    def _close_and_record(
        self, error_cls: Type[Error], message: str, cause: Optional[BaseException] = None
    ) -> Error:
        """Close cursor and statement, then build, log and remember the error."""
        self.close_results()

        if cause is not None:
            error = error_cls(message, str(cause) or type(cause).__name__)
        else:
            error = error_cls(message)
        self.last_error = error
        log('error', "%s", error.message)
        return error

    def _close_and_raise(
        self, error_cls: Type[Error], message: str, cause: Optional[BaseException] = None
    ) -> NoReturn:
        """
        Close cursor and statement, then raise. The connection stays open so the
        caller can go on with another statement.
        """
        error = self._close_and_record(error_cls, message, cause)
        raise error from cause
