"""
This module provides connect(), the shortcut for wrapping an open connection in a Session.
"""
from typing import Any, Optional

from sqlsession.dbapi import DBAPIConnection
from sqlsession.helpers import log
from sqlsession.session import Session


def connect(
    connection: Any,
    auto_close: bool = False,
    temporal_as_text: Optional[bool] = None,
    legacy_advance: Optional[bool] = None,
    autocommit: bool = False,
) -> Session:
    """
    Create a Session attached to an open connection.

    Args:
        connection: Either an object that already prepares statements
            (see sqlsession.driver.DriverConnection) or a DB-API 2.0 connection
            using the qmark paramstyle, which is wrapped in a DBAPIConnection.
        auto_close (bool): Whether Session.close() also closes the connection.
        temporal_as_text (bool): Passed to DBAPIConnection when wrapping.
        legacy_advance (bool): Passed to the Session.
        autocommit (bool): Passed to DBAPIConnection when wrapping; commits
            after every successful update or batch. Without it, call
            session.connection.commit() before closing or the writes are lost.

    Returns:
        Session: A session ready for begin_statement().

    Like attach(), this never raises for an unusable connection; problems
    surface on the first begin_statement().

    Example:
        import sqlite3
        import sqlsession

        session = sqlsession.connect(sqlite3.connect("app.db"), auto_close=True, autocommit=True)
        try:
            session.begin_statement("INSERT INTO users (id, name) VALUES (?, ?)") \\
                .bind_int(1) \\
                .bind_string("Luke") \\
                .execute_update()
        finally:
            session.close()
    """
    if not callable(getattr(connection, "prepare", None)):
        connection = DBAPIConnection(
            connection, temporal_as_text=temporal_as_text, autocommit=autocommit
        )
        log('debug', "Wrapped %s in DBAPIConnection", type(connection.raw).__name__)
    return Session(connection, auto_close=auto_close, legacy_advance=legacy_advance)
