"""
SQL literal and identifier escaping on top of PyMySQL's converters.

`escape` turns a Python value into a MySQL literal, `escape_id` backtick-quotes
an identifier and `format_sql` fills `?` (value) and `??` (identifier)
placeholders in a template. Statements are rendered client-side and sent to
the server as complete strings, so the rendered SQL is exactly what gets
logged and executed.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from pymysql.converters import escape_item

CHARSET = "utf8mb4"
NULL = "NULL"

_PLACEHOLDER = re.compile(r"\?+")


def escape(value: Any) -> str:
    """
    Render `value` as a MySQL literal.

    Mappings become ``\\`key\\` = value`` pairs (usable after SET), sequences
    become comma-separated lists, nested sequences are parenthesised groups.
    """
    if isinstance(value, Mapping):
        return ", ".join(f"{escape_id(key)} = {escape(val)}" for key, val in value.items())
    if isinstance(value, (list, tuple)):
        return ", ".join(
            f"({escape(item)})" if isinstance(item, (list, tuple)) else escape(item)
            for item in value
        )
    return escape_item(value, CHARSET)


def escape_id(identifier: Union[str, Iterable[str]], qualified: bool = True) -> str:
    """
    Backtick-quote an identifier, or a comma-separated list of them.

    With `qualified`, ``db.table`` is quoted part by part.
    """
    if not isinstance(identifier, str):
        return ", ".join(escape_id(item, qualified) for item in identifier)
    quoted = "`" + identifier.replace("`", "``") + "`"
    if qualified:
        quoted = quoted.replace(".", "`.`")
    return quoted


def format_sql(template: str, values: Optional[Union[Sequence[Any], Any]] = None) -> str:
    """
    Substitute placeholders left to right: ``??`` takes an identifier, ``?`` a value.

    Placeholders without a matching value, and runs of three or more question
    marks, are left untouched.
    """
    if values is None:
        return template
    if not isinstance(values, (list, tuple)):
        values = [values]

    remaining = list(values)

    def _substitute(match: "re.Match[str]") -> str:
        token = match.group(0)
        if len(token) > 2 or not remaining:
            return token
        value = remaining.pop(0)
        return escape_id(value) if token == "??" else escape(value)

    return _PLACEHOLDER.sub(_substitute, template)


__all__ = ["CHARSET", "NULL", "escape", "escape_id", "format_sql"]
