"""
Transaction helpers over a pooled driver connection.

The primitives await a single driver call each and let driver errors through
unchanged; callers that use them directly own the rollback and the release.
`transaction()` bundles the whole sequence so a failing unit of work can not
leave a connection checked out of the pool.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from core_api.db.abstract import ConnectionPool, DatabaseConnection
from core_api.utils.logging import get_logger

log = get_logger(__name__)


async def get_connection_from_pool(pool: ConnectionPool) -> Any:
    """Borrow a connection; blocks while the pool is at its size limit."""
    return await pool.acquire()


def release_connection(pool: ConnectionPool, conn: Any) -> None:
    pool.release(conn)


async def begin_tx(conn: DatabaseConnection) -> None:
    await conn.begin()


async def commit_tx(conn: DatabaseConnection) -> None:
    await conn.commit()


async def rollback_tx(conn: DatabaseConnection) -> None:
    await conn.rollback()


@asynccontextmanager
async def transaction(pool: ConnectionPool) -> AsyncIterator[Any]:
    """
    Run a unit of work on one borrowed connection.

    Commits when the block exits normally, rolls back and re-raises when it
    raises, and always hands the connection back to the pool.

    Example
    -------
        async with transaction(pool) as conn:
            await users.add_db_from_obj(values, overrides=QueryOverrides(db_conn=conn))
            await audit.add_db_from_obj(entry, overrides=QueryOverrides(db_conn=conn))
    """
    conn = await get_connection_from_pool(pool)
    try:
        await begin_tx(conn)
        try:
            yield conn
        except BaseException:
            log.debug("Rolling back transaction")
            await rollback_tx(conn)
            raise
        await commit_tx(conn)
    finally:
        release_connection(pool, conn)


__all__ = [
    "get_connection_from_pool",
    "release_connection",
    "begin_tx",
    "commit_tx",
    "rollback_tx",
    "transaction",
]
