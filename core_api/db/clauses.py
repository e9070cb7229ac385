"""
Whitelist filtering and SQL clause builders.

Everything here is pure: the builders turn caller-supplied mappings into SQL
fragments after dropping every key the resource does not declare. Values only
ever reach SQL through `escape`; column names only after whitelist filtering.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from core_api.db.escaping import NULL, escape, escape_id
from core_api.exceptions import InvalidQuery, MissingData
from core_api.utils.logging import get_logger

log = get_logger(__name__)

WILDCARD = "*"
ORDER_TOKENS = ("ASC", "DESC")


def filter_array(values: Iterable[Any], allowed: Iterable[Any]) -> List[Any]:
    """Members of `values` that are also in `allowed`, in input order."""
    allowed_set = set(allowed)
    return [value for value in values if value in allowed_set]


def filter_object(raw: Mapping[str, Any], allowed_fields: Iterable[str]) -> Dict[str, Any]:
    """
    New dict with the keys of `raw` that appear in `allowed_fields`.

    Values are carried over unchanged and `raw` is never mutated.
    """
    allowed = set(allowed_fields)
    return {key: value for key, value in raw.items() if key in allowed}


def validate_required_fields(present_fields: Iterable[str], required_fields: Iterable[str]) -> bool:
    present = set(present_fields)
    return all(field in present for field in required_fields)


def require_scalar_values(values: Mapping[str, Any]) -> None:
    """
    Reject nested values.

    A mapping or sequence would be rendered as column assignments or lists,
    putting names that never went through the whitelist into the statement.
    """
    for column, value in values.items():
        if isinstance(value, (Mapping, list, tuple, set, frozenset)):
            raise InvalidQuery(f"Invalid value for {column}, must be a single value")


def build_select_statement(
    select_columns: Union[str, Sequence[str]],
    all_fields: Mapping[str, Any],
) -> str:
    """
    Column list for a SELECT.

    The wildcard is passed through untouched for trusted internal callers.
    Otherwise the whitelisted columns are quoted in the order requested.
    """
    if select_columns == WILDCARD:
        return WILDCARD
    if isinstance(select_columns, str):
        select_columns = [select_columns]
    columns = filter_array(select_columns, all_fields.keys())
    if not columns:
        raise InvalidQuery("Invalid search, must include valid params")
    return ",".join(escape_id(column, qualified=False) for column in columns)


def build_where_clause(
    where: Mapping[str, Any],
    all_fields: Mapping[str, Any],
    action: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> str:
    """
    AND-joined equality predicates over the whitelisted part of `where`.

    NULL values render as ``IS NULL``. An empty result after filtering is an
    error: it would otherwise select, update or delete the whole table.
    """
    filtered = filter_object(where or {}, all_fields.keys())
    if not filtered:
        (logger or log).warning(
            "Missing data to select from the database: where", extra={"action": action}
        )
        raise MissingData(f"Missing data to select from the database: where - action: {action}")
    require_scalar_values(filtered)

    predicates = []
    for column, value in filtered.items():
        literal = escape(value)
        if literal == NULL:
            predicates.append(f"{escape_id(column, qualified=False)} IS {literal}")
        else:
            predicates.append(f"{escape_id(column, qualified=False)}={literal}")
    return " AND ".join(predicates)


def _as_positive_int(value: Any, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidQuery(f"Invalid pagination, {name} must be a number") from None
    if number < 1:
        raise InvalidQuery(f"Invalid pagination, {name} must be at least 1")
    return number


def build_options_clause(options: Optional[Mapping[str, Any]], all_fields: Mapping[str, Any]) -> str:
    """
    ORDER BY and LIMIT suffix for a SELECT, with a leading space, or "".

    The LIMIT offset is ``page - 1``, not ``(page - 1) * records``: existing
    callers page by offset rows, so page 3 of 10 starts at row 2.
    """
    if not options or not isinstance(options, Mapping):
        return ""

    clause = ""

    orderby = options.get("orderby")
    if orderby and isinstance(orderby, Mapping):
        parts = []
        for column, order in filter_object(orderby, all_fields.keys()).items():
            part = escape_id(column, qualified=False)
            if isinstance(order, str) and order.upper() in ORDER_TOKENS:
                part += f" {order.upper()}"
            parts.append(part)
        if parts:
            clause += f" ORDER BY {', '.join(parts)}"

    pagination = options.get("pagination")
    if isinstance(pagination, Mapping) and pagination.get("records") and pagination.get("page"):
        start = _as_positive_int(pagination["page"], "page") - 1
        records = _as_positive_int(pagination["records"], "records")
        clause += f" LIMIT {start},{records}"

    return clause


__all__ = [
    "WILDCARD",
    "filter_array",
    "filter_object",
    "validate_required_fields",
    "require_scalar_values",
    "build_select_statement",
    "build_where_clause",
    "build_options_clause",
]
