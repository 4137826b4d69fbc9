"""
This file contains fixtures for the tests in the sqlsession package.
Functions:
- pytest_addoption / pytest_configure: Optional DEBUG logging for a test run.
- reset_settings: Restore package settings after every test.
- sqlite_connection: In-memory sqlite3 connection with a users table.
- db_session: Session attached to sqlite_connection (connection not owned).
- fake_connection: Scriptable driver connection that records binds and closes.
- session: Session attached to fake_connection (connection not owned).
Classes:
- FakeConnection, FakeStatement, FakeResult: in-memory driver objects. Each
  exposes `closed` and `close_calls`, and failures are injected through the
  `fail_*` flags on FakeConnection.
"""

import sqlite3

import pytest

from sqlsession import Session, connect, configure, setup_logging


def pytest_addoption(parser):
    parser.addini("enable_logging", "Enable sqlsession DEBUG logging to stdout", default="false")


def pytest_configure(config):
    enable_log = config.getini("enable_logging")
    if enable_log and str(enable_log).lower() in ("true", "1", "yes"):
        setup_logging(output="stdout")
        print("[pytest] sqlsession logging enabled")


class FakeResult:
    """Result cursor over a list of dict rows."""

    def __init__(self, connection, rows):
        self.connection = connection
        self.rows = rows
        self.position = 0
        self.closed = False
        self.close_calls = 0

    def next(self):
        if self.closed:
            raise RuntimeError("result is closed")
        if self.connection.fail_next:
            raise RuntimeError("connection reset while fetching")
        if self.position < len(self.rows):
            self.position += 1
            return True
        self.position = len(self.rows) + 1
        return False

    def _value(self, column):
        if self.closed:
            raise RuntimeError("result is closed")
        if not 1 <= self.position <= len(self.rows):
            raise RuntimeError("not positioned on a row")
        row = self.rows[self.position - 1]
        if column not in row:
            raise KeyError(f"Column not found: {column}")
        return row[column]

    def get_string(self, column):
        value = self._value(column)
        return None if value is None else str(value)

    def get_int(self, column):
        value = self._value(column)
        if value is not None and not isinstance(value, int):
            raise ValueError(f"{value!r} is not an int")
        return value

    def get_long(self, column):
        return self.get_int(column)

    def get_date(self, column):
        return self._value(column)

    def get_timestamp(self, column):
        return self._value(column)

    def close(self):
        self.close_calls += 1
        self.closed = True
        if self.connection.fail_close:
            raise RuntimeError("close failed")


class FakeStatement:
    """Prepared statement that records every driver call."""

    def __init__(self, connection, sql):
        self.connection = connection
        self.sql = sql
        self.binds = []
        self.current = {}
        self.batch = []
        self.results = []
        self.executions = 0
        self.closed = False
        self.close_calls = 0

    def _set(self, kind, index, value):
        if self.closed:
            raise RuntimeError("statement is closed")
        if self.connection.fail_bind:
            raise TypeError(f"cannot bind {kind} at index {index}")
        self.current[index] = value
        self.binds.append((kind, index, value))

    def set_string(self, index, value):
        self._set("string", index, value)

    def set_int(self, index, value):
        self._set("int", index, value)

    def set_long(self, index, value):
        self._set("long", index, value)

    def set_date(self, index, value):
        self._set("date", index, value)

    def set_timestamp(self, index, value):
        self._set("timestamp", index, value)

    def add_batch(self):
        if self.connection.fail_add_batch:
            raise ValueError("No value specified for parameter 2")
        self.batch.append(dict(self.current))

    def clear_parameters(self):
        self.current = {}

    def execute_query(self):
        self.executions += 1
        if self.connection.fail_execute:
            raise RuntimeError("syntax error near 'SELEC'")
        result = FakeResult(self.connection, list(self.connection.rows))
        self.results.append(result)
        return result

    def execute_update(self):
        self.executions += 1
        if self.connection.fail_execute:
            raise RuntimeError("duplicate key")
        return self.connection.update_count

    def execute_batch(self):
        self.executions += 1
        if self.connection.fail_execute:
            raise RuntimeError("batch rejected")
        count = len(self.batch)
        self.batch = []
        return count

    def close(self):
        self.close_calls += 1
        self.closed = True
        if self.connection.fail_close:
            raise RuntimeError("close failed")


class FakeConnection:
    """Connection that prepares FakeStatements and serves `rows` to queries."""

    def __init__(self, rows=None):
        self.rows = rows if rows is not None else []
        self.statements = []
        self.update_count = 1
        self.closed = False
        self.close_calls = 0
        self.fail_prepare = False
        self.fail_bind = False
        self.fail_add_batch = False
        self.fail_execute = False
        self.fail_next = False
        self.fail_close = False

    @property
    def last_statement(self):
        return self.statements[-1]

    def prepare(self, sql):
        if self.closed:
            raise RuntimeError("connection is closed")
        if self.fail_prepare:
            raise RuntimeError("You have an error in your SQL syntax")
        statement = FakeStatement(self, sql)
        self.statements.append(statement)
        return statement

    def close(self):
        self.close_calls += 1
        self.closed = True
        if self.fail_close:
            raise RuntimeError("close failed")


@pytest.fixture(autouse=True)
def reset_settings():
    yield
    configure(legacy_advance=False, case_sensitive_columns=False)


@pytest.fixture
def sqlite_connection():
    conn = sqlite3.connect(":memory:")
    conn.execute(
        "CREATE TABLE users (id TEXT PRIMARY KEY, name TEXT, age INTEGER, "
        "born DATE, last_seen TIMESTAMP)"
    )
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def db_session(sqlite_connection):
    session = connect(sqlite_connection)
    yield session
    session.close()


@pytest.fixture
def fake_connection():
    return FakeConnection(rows=[{"id": 1, "name": "Luke", "age": 29}, {"id": 2, "name": "Leia", "age": 29}])


@pytest.fixture
def session(fake_connection):
    session = Session(fake_connection)
    yield session
    session.close()
