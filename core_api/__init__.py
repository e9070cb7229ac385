"""
core-api - minimal HTTP API server backed by MySQL.

The interesting part is the database access helper: a `Repository` bound to a
`ResourceDescriptor` that assembles whitelisted, escaped SELECT / INSERT /
UPSERT / UPDATE / DELETE statements from plain mappings, wraps transactions
and maps driver errors onto typed `RestException`s.
"""

from __future__ import annotations

__version__ = "0.0.1"
__license__ = "MIT"

# Public API exports
from core_api.config import Settings, get_settings
from core_api.db import QueryOverrides, Repository, transaction
from core_api.domain import ResourceDescriptor
from core_api.exceptions import (
    Conflict,
    DatabaseError,
    InvalidQuery,
    MissingData,
    MissingPrecondition,
    RestException,
)
from core_api.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Database helper
    "QueryOverrides",
    "Repository",
    "ResourceDescriptor",
    "transaction",
    # Errors
    "Conflict",
    "DatabaseError",
    "InvalidQuery",
    "MissingData",
    "MissingPrecondition",
    "RestException",
    # Logging
    "configure_logging",
    "get_logger",
]
