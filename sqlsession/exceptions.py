"""
This module contains the exception classes raised by the sqlsession package.
The hierarchy follows the DB-API 2.0 layout (Error, InterfaceError, DatabaseError, ...)
and adds the session-specific errors raised by the Session state machine.
"""

from typing import Optional


def truncate_error_message(error_message: str) -> str:
    """
    Reduce a driver error message to its first line.

    Driver messages frequently carry stack-like detail or trailing context that
    makes log lines and exception strings hard to read.

    Args:
        error_message (str): The driver error message.

    Returns:
        str: The first non-empty line of the message, stripped.
    """
    if not error_message:
        return ""
    for line in str(error_message).splitlines():
        line = line.strip()
        if line:
            return line
    return ""


class Exception(Exception):
    """
    Base class for all exceptions.
    This is the base class for all custom exceptions in this module.
    It can be used to catch any exception raised by a session operation.
    """

    def __init__(self, session_error: str, driver_error: Optional[str] = None) -> None:
        self.session_error = session_error
        self.driver_error = (
            truncate_error_message(driver_error) if driver_error else session_error
        )
        self.message = (
            f"Session Error: {self.session_error}; Driver Error: {self.driver_error}"
        )
        super().__init__(self.message)


class Error(Exception):
    """
    Base class for errors.
    This is the base class for all error-related exceptions and the parent of
    every error a Session raises.
    """


class InterfaceError(Error):
    """
    Error related to the session interface rather than the database.
    Raised when an operation is called in a state that does not allow it.
    """


class DatabaseError(Error):
    """
    Base class for database errors.
    Raised when the underlying driver rejects an operation.
    """


class DataError(DatabaseError):
    """
    Error related to problems with the processed data, such as a value that does
    not fit the requested type.
    """


class OperationalError(DatabaseError):
    """
    Error related to the database's operation, such as a lost connection while
    rows are being fetched.
    """


class ProgrammingError(DatabaseError):
    """
    Error related to programming errors, such as malformed SQL or a closed
    connection.
    """


class PreparationError(ProgrammingError):
    """
    Raised when a statement cannot be prepared from the given SQL text.
    """


class NoStatementError(InterfaceError):
    """
    Raised when an operation requires an open statement but none exists.
    """


class BindError(DataError):
    """
    Raised when the driver rejects a parameter value or position, or when a
    batch row cannot be queued.
    """


class ExecutionError(DatabaseError):
    """
    Raised when the driver rejects a query, update or batch execution.
    """


class NoResultsError(InterfaceError):
    """
    Raised when an operation requires an open result cursor but none exists.
    """


class FetchError(OperationalError):
    """
    Raised when the driver fails while advancing the result cursor.
    """


class ColumnAccessError(DataError):
    """
    Raised when a named column is missing or its value cannot be converted to
    the requested type.
    """
