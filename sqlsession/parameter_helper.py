"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.

Positional parameter helpers for sqlsession.

Simple character scanning approach: string literals, quoted identifiers and
comments are skipped, every other ? counts as one positional placeholder.
Only plain qmark placeholders are supported: numbered ones such as sqlite's
?1 bind by number rather than position and are rejected.

Reference: https://www.python.org/dev/peps/pep-0249/#paramstyle
"""


def count_qmark_params(sql: str) -> int:
    """
    Count the ? placeholders in a SQL string.

    Question marks inside '...' literals, "..." or [...] quoted identifiers,
    -- line comments and /* ... */ block comments are not placeholders.
    A doubled quote inside a literal ('it''s') is an escaped quote.

    Args:
        sql: SQL query string with ? placeholders

    Returns:
        int: Number of positional placeholders

    Raises:
        ValueError: If a literal, quoted identifier or block comment is not terminated,
            or a numbered placeholder such as ?1 is used

    Examples:
        >>> count_qmark_params("SELECT * FROM users WHERE id = ? AND name = ?")
        2

        >>> count_qmark_params("SELECT '?' FROM t WHERE a = ? -- b = ?")
        1
    """
    count = 0
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]

        if ch in ("'", '"', "["):
            closing = "]" if ch == "[" else ch
            j = i + 1
            while True:
                if j >= length:
                    raise ValueError(f"Unterminated quoted text starting at position {i}")
                if sql[j] == closing:
                    # Doubled closing character is an escape, keep scanning
                    if closing != "]" and j + 1 < length and sql[j + 1] == closing:
                        j += 2
                        continue
                    break
                j += 1
            i = j + 1
            continue

        if ch == "-" and i + 1 < length and sql[i + 1] == "-":
            newline = sql.find("\n", i + 2)
            i = length if newline == -1 else newline + 1
            continue

        if ch == "/" and i + 1 < length and sql[i + 1] == "*":
            end = sql.find("*/", i + 2)
            if end == -1:
                raise ValueError(f"Unterminated block comment starting at position {i}")
            i = end + 2
            continue

        if ch == "?":
            if i + 1 < length and sql[i + 1].isdigit():
                raise ValueError(
                    f"Numbered placeholder at position {i} is not supported: use plain ?"
                )
            count += 1

        i += 1

    return count
