"""
Infrastructure package for core-api.

Centralizes database connectivity concerns (pool creation and lifecycle).
Keep this layer focused on I/O and resource management, decoupled from the
query-building logic in `core_api.db`.
"""

from core_api.infrastructure.db_factory import (
    PoolManager,
    build_pool_kwargs,
    close_pool,
    create_pool,
    get_pool,
)

__all__ = [
    "PoolManager",
    "build_pool_kwargs",
    "close_pool",
    "create_pool",
    "get_pool",
]
