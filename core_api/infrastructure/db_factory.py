"""
MySQL connection pool factory for core-api.

Owns the single aiomysql pool shared by the whole process. The PoolManager
singleton creates it lazily on first use and closes it on shutdown; callers
beyond the pool size wait inside the pool, not in application code.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import aiomysql
from pymysql.err import OperationalError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core_api.config import Settings, get_settings
from core_api.utils.logging import get_logger

log = get_logger(__name__)


def build_pool_kwargs(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Keyword arguments for `aiomysql.create_pool` derived from settings.

    Statements outside an explicit transaction commit on their own, and every
    connection runs in the configured session time zone.
    """
    settings = settings or get_settings()
    return {
        "host": settings.db_host,
        "port": settings.db_port,
        "user": settings.db_user,
        "password": settings.db_password,
        "db": settings.db_name,
        "minsize": 1,
        "maxsize": settings.db_connection_limit,
        "autocommit": True,
        "charset": "utf8mb4",
        "init_command": f"SET time_zone = '{settings.db_timezone}'",
    }


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((OperationalError, OSError)),
    reraise=True,
)
async def create_pool(settings: Optional[Settings] = None) -> aiomysql.Pool:
    """
    Create a new aiomysql pool with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Raises
    ------
    pymysql.err.OperationalError
        If the server stays unreachable after all retry attempts.
    """
    kwargs = build_pool_kwargs(settings)
    log.info(
        "Creating mysql pool",
        extra={"db_host": kwargs["host"], "db_name": kwargs["db"], "maxsize": kwargs["maxsize"]},
    )
    return await aiomysql.create_pool(**kwargs)


class PoolManager:
    """
    Process-wide singleton for the MySQL connection pool.

    Creation is guarded by an asyncio lock so concurrent first requests share
    one pool.
    """

    _instance: Optional["PoolManager"] = None

    def __new__(cls) -> "PoolManager":
        """Create or return the singleton instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._pool = None
            cls._instance._lock = asyncio.Lock()
        return cls._instance

    async def get_pool(self, settings: Optional[Settings] = None) -> aiomysql.Pool:
        """
        Get or create the shared pool.

        Parameters
        ----------
        settings : Settings, optional
            Connection settings; defaults to the cached application settings.

        Returns
        -------
        aiomysql.Pool
            The managed pool instance.
        """
        async with self._lock:
            if self._pool is None:
                self._pool = await create_pool(settings)
            return self._pool

    async def close(self) -> None:
        """
        Close the pool and wait for its connections to be released.
        """
        async with self._lock:
            if self._pool is not None:
                pool, self._pool = self._pool, None
                pool.close()
                await pool.wait_closed()
                log.info("Closed mysql pool")


async def get_pool(settings: Optional[Settings] = None) -> aiomysql.Pool:
    """Get or create the shared pool via PoolManager."""
    return await PoolManager().get_pool(settings)


async def close_pool() -> None:
    await PoolManager().close()


__all__ = [
    "PoolManager",
    "build_pool_kwargs",
    "create_pool",
    "get_pool",
    "close_pool",
]
