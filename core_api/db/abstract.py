"""
Driver-facing interfaces and result contracts for the database helper.

The helper only needs a narrow slice of the driver: something that hands out
connections (the pool) and connections that can open a cursor and run
begin/commit/rollback. aiomysql satisfies both protocols; tests use in-memory
fakes with the same shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, TypedDict, Union, runtime_checkable


class Metadata(TypedDict, total=False):
    """
    Returned next to row sets from list queries.

    `totalRecords` counts every row matching the WHERE clause, independent of
    any LIMIT applied to the row query.
    """

    totalRecords: int
    page: int
    records: int


@dataclass(frozen=True)
class DriverResult:
    """Outcome of a statement that returns no rows (INSERT/UPDATE/DELETE)."""

    insert_id: Optional[int] = None
    affected_rows: int = 0


Row = Dict[str, Any]
QueryOutput = Union[List[Row], DriverResult]


@runtime_checkable
class DatabaseConnection(Protocol):
    """A single driver connection, pooled or dedicated."""

    def cursor(self, *cursors: Any) -> Any:
        ...

    async def begin(self) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


@runtime_checkable
class ConnectionPool(Protocol):
    """A driver pool; `acquire()` is awaitable and an async context manager."""

    def acquire(self) -> Any:
        ...

    def release(self, conn: Any) -> Any:
        ...


__all__ = [
    "Metadata",
    "DriverResult",
    "Row",
    "QueryOutput",
    "DatabaseConnection",
    "ConnectionPool",
]
