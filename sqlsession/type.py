"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains type constructors and the value conversions used when
binding parameters and reading columns.
"""

import datetime
from typing import Any

# Signed integer ranges of the int and long parameter kinds
INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1
LONG_MIN = -(2 ** 63)
LONG_MAX = 2 ** 63 - 1


# Type Constructors
def Date(year: int, month: int, day: int) -> datetime.date:
    """
    Generates a date object.
    """
    return datetime.date(year, month, day)


def Timestamp(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0,
    microsecond: int = 0
) -> datetime.datetime:
    """
    Generates a timestamp object.
    """
    return datetime.datetime(year, month, day, hour, minute, second, microsecond)


def DateFromTicks(ticks: int) -> datetime.date:
    """
    Generates a date object from ticks.
    """
    return datetime.date.fromtimestamp(ticks)


def TimestampFromTicks(ticks: int) -> datetime.datetime:
    """
    Generates a timestamp object from ticks.
    """
    return datetime.datetime.fromtimestamp(ticks)


def check_integer(value: Any, minimum: int, maximum: int) -> int:
    """
    Validate an integer parameter against a signed range.

    Raises:
        TypeError: If value is not an int (bool is rejected).
        OverflowError: If value is outside [minimum, maximum].
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected int, got {type(value).__name__}")
    if value < minimum or value > maximum:
        raise OverflowError(f"Value {value} out of range [{minimum}, {maximum}]")
    return value


def to_date(value: Any) -> datetime.date:
    """
    Coerce a date-like value to a date. Datetimes are truncated to their date.

    Raises:
        TypeError: If value is not a date or datetime.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    raise TypeError(f"Expected date, got {type(value).__name__}")


def to_timestamp(value: Any) -> datetime.datetime:
    """
    Coerce a date-like value to a datetime. Dates are promoted to midnight.

    Raises:
        TypeError: If value is not a date or datetime.
    """
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    raise TypeError(f"Expected datetime, got {type(value).__name__}")


def column_to_str(value: Any) -> str:
    """Convert a column value to str; bytes are decoded as UTF-8."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=" ")
    return str(value)


def column_to_integer(value: Any, minimum: int, maximum: int) -> int:
    """
    Convert a column value to an int within a signed range.

    Accepts ints, integral floats and numeric strings.

    Raises:
        ValueError: If the value is not integral or out of range.
    """
    if isinstance(value, bool):
        result = int(value)
    elif isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Value {value!r} is not integral")
        result = int(value)
    elif isinstance(value, (str, bytes, bytearray)):
        text = column_to_str(value).strip()
        try:
            result = int(text)
        except ValueError:
            raise ValueError(f"Value {text!r} is not an integer") from None
    else:
        raise ValueError(f"Cannot convert {type(value).__name__} to an integer")

    if result < minimum or result > maximum:
        raise ValueError(f"Value {result} out of range [{minimum}, {maximum}]")
    return result


def column_to_date(value: Any) -> datetime.date:
    """
    Convert a column value to a date. ISO-8601 text is parsed.

    Raises:
        ValueError: If the value cannot be read as a date.
    """
    if isinstance(value, (datetime.date, datetime.datetime)):
        return to_date(value)
    if isinstance(value, (str, bytes, bytearray)):
        text = column_to_str(value).strip()
        if len(text) == 10:
            return datetime.date.fromisoformat(text)
        return datetime.datetime.fromisoformat(text).date()
    raise ValueError(f"Cannot convert {type(value).__name__} to a date")


def column_to_timestamp(value: Any) -> datetime.datetime:
    """
    Convert a column value to a datetime. ISO-8601 text is parsed.

    Raises:
        ValueError: If the value cannot be read as a timestamp.
    """
    if isinstance(value, (datetime.date, datetime.datetime)):
        return to_timestamp(value)
    if isinstance(value, (str, bytes, bytearray)):
        return datetime.datetime.fromisoformat(column_to_str(value).strip())
    raise ValueError(f"Cannot convert {type(value).__name__} to a timestamp")
