"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module initializes the sqlsession package.
"""

# Package version
__version__ = "1.0.0"

# Settings
from .helpers import Settings, get_settings, configure

# Exceptions
from .exceptions import (
    Error,
    InterfaceError,
    DatabaseError,
    DataError,
    OperationalError,
    ProgrammingError,
    PreparationError,
    NoStatementError,
    BindError,
    ExecutionError,
    NoResultsError,
    FetchError,
    ColumnAccessError,
)

# Type Constructors
from .type import (
    Date,
    Timestamp,
    DateFromTicks,
    TimestampFromTicks,
)

# Driver interface
from .driver import DriverConnection, DriverStatement, DriverResult, close_quietly
from .dbapi import DBAPIConnection, DBAPIStatement, DBAPIResult
from .row import Row

# Session Objects
from .session import Session, SessionState
from .db_connection import connect

# Logging Configuration
from .logging import logger, setup_logging

# Placeholder style DBAPIConnection requires of the wrapped connection
paramstyle: str = "qmark"
