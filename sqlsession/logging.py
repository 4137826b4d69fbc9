"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.

Package logger for sqlsession.

Nothing is written until setup_logging() is called; before that every log call
returns after one level check. Once enabled, every record carries the trace ID
of the session that produced it, and passwords found in SQL text or driver
messages are masked.
"""

import contextvars
import datetime
import logging
import os
import re
import sys
import threading
from logging.handlers import RotatingFileHandler
from typing import List, Optional


DEBUG = logging.DEBUG

# Output destinations accepted by setup_logging()
STDOUT = 'stdout'
FILE = 'file'
BOTH = 'both'

_LOG_DIR_NAME = "sqlsession_logs"
_MAX_BYTES = 64 * 1024 * 1024
_BACKUP_COUNT = 5
_FORMAT = '%(asctime)s [%(trace_id)s] - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'

# (pattern, replacement) pairs applied to every message
_SECRET_PATTERNS = [
    (re.compile(r"\b(PWD|Password)\s*=\s*('[^']*'|[^;,\s]+)", re.IGNORECASE), r"\1=***"),
    (re.compile(r"\b(IDENTIFIED\s+BY)\s+('[^']*'|\S+)", re.IGNORECASE), r"\1 ***"),
    (re.compile(r"\b(TOKEN)\s*=\s*[^;,\s]+", re.IGNORECASE), r"\1=***"),
]

# Trace ID of the session active in the current context
_trace_id_var = contextvars.ContextVar('sqlsession_trace_id', default=None)


class TraceIDFilter(logging.Filter):
    """Stamp each record with the current session trace ID ('-' when none)."""

    def filter(self, record):
        record.trace_id = _trace_id_var.get() or '-'
        return True


class SessionLogger:
    """
    Process-wide logger shared by every Session.

    The wrapped stdlib logger is named 'sqlsession', does not propagate to the
    root logger and sits at CRITICAL until setup_logging() lowers it to DEBUG.
    """

    _instance: Optional['SessionLogger'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'SessionLogger':
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if getattr(self, '_initialized', False):
            return
        self._initialized = True

        self._logger = logging.getLogger('sqlsession')
        self._logger.setLevel(logging.CRITICAL)
        self._logger.propagate = False
        self._logger.addFilter(TraceIDFilter())

        self._trace_counter = 0
        self._trace_lock = threading.Lock()

        self._output_mode = FILE
        self._custom_log_path: Optional[str] = None
        self._log_file: Optional[str] = None
        self._configured = False

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _release_handlers(self):
        for handler in self._logger.handlers[:]:
            handler.close()
            self._logger.removeHandler(handler)

    def _resolve_log_file(self) -> str:
        """Return the custom log path, or a fresh timestamped file under ./sqlsession_logs/."""
        if self._custom_log_path:
            path = self._custom_log_path
        else:
            stamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
            path = os.path.join(
                os.getcwd(), _LOG_DIR_NAME, f"sqlsession_trace_{stamp}_{os.getpid()}.log"
            )
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        return path

    def _build_handlers(self) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []
        self._log_file = None

        if self._output_mode in (FILE, BOTH):
            self._log_file = self._resolve_log_file()
            handlers.append(
                RotatingFileHandler(self._log_file, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT)
            )
        if self._output_mode in (STDOUT, BOTH):
            handlers.append(logging.StreamHandler(sys.stdout))

        formatter = logging.Formatter(_FORMAT)
        for handler in handlers:
            handler.setFormatter(formatter)
        return handlers

    def _configure(self, level: int, output: Optional[str] = None, log_file_path: Optional[str] = None):
        """
        Apply a level and, when given or not yet done, rebuild the handlers.
        Use setup_logging() instead of calling this directly.

        Raises:
            ValueError: If output is not one of 'file', 'stdout' or 'both'.
        """
        if output is not None and output not in (FILE, STDOUT, BOTH):
            raise ValueError(
                f"Invalid output mode: {output}. Must be one of: {FILE}, {STDOUT}, {BOTH}"
            )

        if output is not None:
            self._output_mode = output
        if log_file_path is not None:
            self._custom_log_path = log_file_path

        if not self._configured or output is not None or log_file_path is not None:
            self._release_handlers()
            for handler in self._build_handlers():
                self._logger.addHandler(handler)
            self._configured = True

        self._logger.setLevel(level)

    def disable(self):
        """Return to the initial silent state and close every handler."""
        self._release_handlers()
        self._output_mode = FILE
        self._custom_log_path = None
        self._log_file = None
        self._configured = False
        self._logger.setLevel(logging.CRITICAL)

    # ------------------------------------------------------------------
    # Trace IDs
    # ------------------------------------------------------------------

    def generate_trace_id(self, prefix: str = "TRACE") -> str:
        """Return a new ID of the form PREFIX-<pid>-<thread id>-<counter>."""
        with self._trace_lock:
            self._trace_counter += 1
            counter = self._trace_counter
        return f"{prefix}-{os.getpid()}-{threading.get_ident()}-{counter}"

    def set_trace_id(self, trace_id: Optional[str]):
        _trace_id_var.set(trace_id)

    def get_trace_id(self) -> Optional[str]:
        return _trace_id_var.get()

    def clear_trace_id(self):
        _trace_id_var.set(None)

    # ------------------------------------------------------------------
    # Emitting
    # ------------------------------------------------------------------

    @staticmethod
    def _sanitize_message(msg: str) -> str:
        """Mask passwords and tokens in connection strings and SQL text."""
        for pattern, replacement in _SECRET_PATTERNS:
            msg = pattern.sub(replacement, msg)
        return msg

    def _emit(self, level: int, msg: str, args: tuple, kwargs: dict):
        if not self._logger.isEnabledFor(level):
            return
        if args:
            msg = msg % args
        # stacklevel points filename:lineno at the package code that logged
        kwargs.setdefault('stacklevel', 4)
        self._logger.log(level, "[sqlsession] " + self._sanitize_message(msg), **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._emit(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._emit(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._emit(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._emit(logging.ERROR, msg, args, kwargs)

    def critical(self, msg: str, *args, **kwargs):
        self._emit(logging.CRITICAL, msg, args, kwargs)

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    @property
    def handlers(self) -> list:
        return self._logger.handlers

    @property
    def output(self) -> str:
        return self._output_mode

    @property
    def log_file(self) -> Optional[str]:
        """Path of the active log file, or None when not logging to a file."""
        return self._log_file

    @property
    def level(self) -> int:
        return self._logger.level


logger = SessionLogger()


def setup_logging(output: str = FILE, log_file_path: Optional[str] = None) -> SessionLogger:
    """
    Turn on DEBUG logging for every Session in the process.

    Args:
        output: 'file' (default), 'stdout' or 'both'.
        log_file_path: Log file to write. Defaults to a new
            ./sqlsession_logs/sqlsession_trace_<timestamp>_<pid>.log

    Returns:
        SessionLogger: The package logger.

    Example:
        import sqlsession

        sqlsession.setup_logging(output='both', log_file_path="/tmp/sqlsession.log")
    """
    logger._configure(logging.DEBUG, output, log_file_path)
    return logger
