"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module provides helper functions and package settings for sqlsession.
"""

import re
import threading
from typing import Any

from sqlsession.logging import logger


def log(level: str, message: str, *args, **kwargs) -> None:
    """
    Universal logging helper that routes to the package logger.

    Args:
        level: Log level ('debug', 'info', 'warning', 'error')
        message: Log message with optional format placeholders
        *args: Arguments for message formatting
        **kwargs: Passed through to the logger (e.g. exc_info)
    """
    getattr(logger, level)(message, *args, **kwargs)


def sanitize_sql(sql: Any, max_length: int = 200) -> str:
    """
    Prepare SQL text for a log line: collapse whitespace and limit length.

    Args:
        sql: The SQL text to sanitize.
        max_length (int): Maximum length of the sanitized output.

    Returns:
        str: The single-line SQL, truncated with "..." when too long.
    """
    if not isinstance(sql, str):
        return "<non-string>"

    sanitized = re.sub(r"\s+", " ", sql).strip()

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."

    return sanitized if sanitized else "<empty>"


class Settings:
    """
    Settings class for sqlsession package configuration.

    Sessions copy these values when they are created, so changing them only
    affects sessions created afterwards.
    """
    def __init__(self) -> None:
        # advance() returns False and records the FetchError instead of raising
        self.legacy_advance: bool = False
        self.case_sensitive_columns: bool = False

    def as_dict(self) -> dict:
        return {
            "legacy_advance": self.legacy_advance,
            "case_sensitive_columns": self.case_sensitive_columns,
        }


# Global settings instance
_settings: Settings = Settings()
_settings_lock: threading.Lock = threading.Lock()


def get_settings() -> Settings:
    """Return the process-wide Settings instance."""
    with _settings_lock:
        return _settings


def configure(**kwargs: bool) -> Settings:
    """
    Update the global settings.

    Args:
        **kwargs: Setting names and boolean values, e.g. legacy_advance=True.

    Returns:
        Settings: The updated global settings object.

    Raises:
        ValueError: If a setting name is unknown or a value is not a boolean.
    """
    with _settings_lock:
        known = _settings.as_dict()
        for name, value in kwargs.items():
            if name not in known:
                raise ValueError(f"Unknown setting: {name}")
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be a boolean value")
        for name, value in kwargs.items():
            setattr(_settings, name, value)
        log('debug', "Settings updated: %s", _settings.as_dict())
        return _settings
