"""
This file contains tests for the DB-API 2.0 adapter (sqlsession.dbapi) on sqlite3.
Functions:
- test_connect_wraps_dbapi_connection: connect() wraps plain DB-API connections only.
- test_sqlite_defaults_to_temporal_text: sqlite3 connections send dates as ISO text.
- test_prepare_counts_placeholders: Placeholders inside literals and comments do not count.
- test_prepare_rejects_empty_sql: Empty SQL is rejected before reaching the driver.
- test_prepare_rejects_unterminated_literal: Unterminated quotes are rejected.
- test_prepare_on_closed_adapter: A closed adapter refuses to prepare.
- test_set_index_out_of_range: Binding past the last placeholder raises IndexError.
- test_set_type_checks: Each setter rejects the wrong Python type.
- test_set_integer_ranges: int is 32-bit, long is 64-bit.
- test_set_temporal_coercion: Dates and timestamps coerce both ways.
- test_native_temporal_values: temporal_as_text=False passes date objects through.
- test_execute_requires_all_parameters: Unbound placeholders fail execution.
- test_execute_query_requires_result_set: A statement without rows is not a query.
- test_result_row_access: Row lookup by name, case rules, closed result.
- test_case_sensitive_columns: Exact-case column matching when configured.
- test_statement_close_is_idempotent: close() twice closes the cursor once.
- test_bind_errors_through_session: Adapter rejections surface as BindError.
- test_autocommit_persists_writes: Updates and batches survive closing the connection.
- test_writes_need_commit_without_autocommit: Uncommitted writes are discarded on close.
- test_explicit_commit_and_rollback: commit() keeps and rollback() discards pending writes.
- test_numbered_placeholder_rejected: ?1 style placeholders fail preparation.
"""

import datetime
import sqlite3

import pytest

from sqlsession import (
    BindError,
    ColumnAccessError,
    PreparationError,
    DBAPIConnection,
    DriverConnection,
    DriverResult,
    DriverStatement,
    Session,
    configure,
    connect,
)


def test_connect_wraps_dbapi_connection(sqlite_connection, fake_connection):
    session = connect(sqlite_connection)
    assert isinstance(session.connection, DBAPIConnection)
    assert session.connection.raw is sqlite_connection
    assert isinstance(session.connection, DriverConnection)

    session = connect(fake_connection, auto_close=True)
    assert session.connection is fake_connection
    assert session.auto_close_connection is True


def test_sqlite_defaults_to_temporal_text(sqlite_connection):
    assert DBAPIConnection(sqlite_connection).temporal_as_text is True
    assert DBAPIConnection(sqlite_connection, temporal_as_text=False).temporal_as_text is False


@pytest.mark.parametrize("sql, expected", [
    ("SELECT 1", 0),
    ("SELECT * FROM users WHERE id = ? AND name = ?", 2),
    ("SELECT '?' FROM users WHERE id = ?", 1),
    ("SELECT 'it''s ?' FROM users WHERE id = ?", 1),
    ('SELECT "odd?column" FROM users WHERE id = ?', 1),
    ("SELECT [odd?column] FROM users WHERE id = ?", 1),
    ("SELECT id FROM users -- WHERE id = ?\nWHERE name = ?", 1),
    ("SELECT id FROM users /* ? ? */ WHERE name = ?", 1),
])
def test_prepare_counts_placeholders(sqlite_connection, sql, expected):
    statement = DBAPIConnection(sqlite_connection).prepare(sql)
    assert statement.parameter_count == expected
    assert isinstance(statement, DriverStatement)
    statement.close()


@pytest.mark.parametrize("sql", ["", "   ", None])
def test_prepare_rejects_empty_sql(sqlite_connection, sql):
    with pytest.raises(ValueError):
        DBAPIConnection(sqlite_connection).prepare(sql)


@pytest.mark.parametrize("sql", ["SELECT 'oops FROM users", "SELECT 1 /* never closed"])
def test_prepare_rejects_unterminated_literal(sqlite_connection, sql):
    with pytest.raises(ValueError):
        DBAPIConnection(sqlite_connection).prepare(sql)


def test_prepare_on_closed_adapter(sqlite_connection):
    connection = DBAPIConnection(sqlite_connection)
    connection.close()
    connection.close()
    with pytest.raises(RuntimeError):
        connection.prepare("SELECT 1")


def test_set_index_out_of_range(sqlite_connection):
    statement = DBAPIConnection(sqlite_connection).prepare("SELECT * FROM users WHERE id = ?")
    statement.set_string(1, "1")
    with pytest.raises(IndexError):
        statement.set_string(2, "2")
    with pytest.raises(IndexError):
        statement.set_string(0, "0")


@pytest.mark.parametrize("setter, value", [
    ("set_string", 5),
    ("set_int", "5"),
    ("set_int", True),
    ("set_int", 5.0),
    ("set_long", "5"),
    ("set_date", "1977-05-25"),
    ("set_timestamp", 1700000000),
])
def test_set_type_checks(sqlite_connection, setter, value):
    statement = DBAPIConnection(sqlite_connection).prepare("SELECT ?")
    with pytest.raises(TypeError):
        getattr(statement, setter)(1, value)


def test_set_integer_ranges(sqlite_connection):
    statement = DBAPIConnection(sqlite_connection).prepare("SELECT ?")
    statement.set_int(1, 2 ** 31 - 1)
    statement.set_int(1, -(2 ** 31))
    with pytest.raises(OverflowError):
        statement.set_int(1, 2 ** 31)
    statement.set_long(1, 2 ** 63 - 1)
    with pytest.raises(OverflowError):
        statement.set_long(1, 2 ** 63)


def test_set_temporal_coercion(sqlite_connection):
    statement = DBAPIConnection(sqlite_connection).prepare("SELECT ? AS d, ? AS t")
    statement.set_date(1, datetime.datetime(1977, 5, 25, 18, 30))
    statement.set_timestamp(2, datetime.date(1977, 5, 25))

    result = statement.execute_query()
    assert result.next() is True
    assert result.get_string("d") == "1977-05-25"
    assert result.get_string("t") == "1977-05-25 00:00:00"
    result.close()


def test_native_temporal_values():
    connection = sqlite3.connect(":memory:")
    try:
        statement = DBAPIConnection(connection, temporal_as_text=False).prepare("SELECT ?, ?")
        statement.set_date(1, datetime.date(1977, 5, 25))
        statement.set_timestamp(2, datetime.datetime(1977, 5, 25, 18, 30))
        assert statement._params == [
            datetime.date(1977, 5, 25),
            datetime.datetime(1977, 5, 25, 18, 30),
        ]
    finally:
        connection.close()


def test_execute_requires_all_parameters(sqlite_connection):
    statement = DBAPIConnection(sqlite_connection).prepare("SELECT ?, ?")
    statement.set_int(1, 1)
    with pytest.raises(ValueError, match="parameter 2"):
        statement.execute_query()
    with pytest.raises(ValueError, match="parameter 2"):
        statement.execute_update()


def test_execute_query_requires_result_set(sqlite_connection):
    statement = DBAPIConnection(sqlite_connection).prepare("DELETE FROM users")
    with pytest.raises(ValueError, match="result set"):
        statement.execute_query()


def test_result_row_access(sqlite_connection):
    sqlite_connection.execute("INSERT INTO users (id, name, age) VALUES ('1', 'Luke', 29)")
    statement = DBAPIConnection(sqlite_connection).prepare("SELECT id, name AS Name, age FROM users")
    result = statement.execute_query()
    assert isinstance(result, DriverResult)
    assert result.column_names == ["id", "Name", "age"]

    with pytest.raises(RuntimeError):
        result.get_string("id")

    assert result.next() is True
    assert result.row == ["1", "Luke", 29]
    assert result.row.get("name") == "Luke"
    assert result.get_string("NAME") == "Luke"
    with pytest.raises(KeyError):
        result.get_string("nickname")

    assert result.next() is False
    result.close()
    with pytest.raises(RuntimeError):
        result.next()


def test_case_sensitive_columns(sqlite_connection):
    configure(case_sensitive_columns=True)
    sqlite_connection.execute("INSERT INTO users (id, name) VALUES ('1', 'Luke')")
    session = connect(sqlite_connection)
    session.begin_statement("SELECT name AS Name FROM users").execute_query()
    session.advance()

    assert session.get_string("Name") == "Luke"
    with pytest.raises(ColumnAccessError):
        session.get_string("name")
    session.close()


def test_statement_close_is_idempotent(sqlite_connection):
    statement = DBAPIConnection(sqlite_connection).prepare("SELECT 1")
    statement.close()
    statement.close()
    assert statement.closed
    with pytest.raises(RuntimeError):
        statement.set_int(1, 1)


@pytest.mark.parametrize("method, value", [
    ("bind_int", 2 ** 31),
    ("bind_long", "12"),
    ("bind_string", 12),
    ("bind_date", "1977-05-25"),
])
def test_bind_errors_through_session(sqlite_connection, method, value):
    session = Session(DBAPIConnection(sqlite_connection))
    session.begin_statement("SELECT ?")
    with pytest.raises(BindError):
        getattr(session, method)(value)
    session.close()


@pytest.fixture
def users_db(tmp_path):
    path = str(tmp_path / "users.db")
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
    conn.commit()
    conn.close()
    return path


def read_users(path):
    conn = sqlite3.connect(path)
    try:
        return conn.execute("SELECT id, name FROM users ORDER BY id").fetchall()
    finally:
        conn.close()


def test_autocommit_persists_writes(users_db):
    session = connect(sqlite3.connect(users_db), auto_close=True, autocommit=True)
    try:
        assert session.connection.autocommit is True
        count = session.begin_statement("INSERT INTO users (id, name) VALUES (?, ?)") \
            .bind_int(1) \
            .bind_string("Luke") \
            .execute_update()
        assert count == 1

        session.begin_statement("INSERT INTO users (id, name) VALUES (?, ?)")
        session.bind_int(2).bind_string("Leia").queue_batch_row()
        session.bind_int(3).bind_string("Han").queue_batch_row()
        assert session.execute_batch() == 2
    finally:
        session.close()

    assert read_users(users_db) == [(1, "Luke"), (2, "Leia"), (3, "Han")]


def test_writes_need_commit_without_autocommit(users_db):
    session = connect(sqlite3.connect(users_db), auto_close=True)
    try:
        assert session.connection.autocommit is False
        session.begin_statement("INSERT INTO users (id, name) VALUES (?, ?)") \
            .bind_int(1).bind_string("Luke").execute_update()
    finally:
        session.close()

    assert read_users(users_db) == []


def test_explicit_commit_and_rollback(users_db):
    adapter = DBAPIConnection(sqlite3.connect(users_db))
    session = Session(adapter, auto_close=True)
    try:
        session.begin_statement("INSERT INTO users (id, name) VALUES (?, ?)") \
            .bind_int(1).bind_string("Luke").execute_update()
        adapter.commit()

        session.begin_statement("INSERT INTO users (id, name) VALUES (?, ?)") \
            .bind_int(2).bind_string("Leia").execute_update()
        adapter.rollback()
    finally:
        session.close()

    assert read_users(users_db) == [(1, "Luke")]


def test_numbered_placeholder_rejected(sqlite_connection):
    session = connect(sqlite_connection)

    with pytest.raises(PreparationError) as excinfo:
        session.begin_statement("SELECT ?1 AS a, ?1 AS b")

    assert "use plain ?" in excinfo.value.driver_error
    session.close()
