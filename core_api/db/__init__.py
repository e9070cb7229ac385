"""
Database access helper for core-api.

Re-exports the clause builders, escaping helpers, transaction helpers and the
`Repository` so callers can import from `core_api.db` directly.
"""

from core_api.db.abstract import (
    ConnectionPool,
    DatabaseConnection,
    DriverResult,
    Metadata,
)
from core_api.db.clauses import (
    build_options_clause,
    build_select_statement,
    build_where_clause,
    filter_array,
    filter_object,
    require_scalar_values,
    validate_required_fields,
)
from core_api.db.escaping import escape, escape_id, format_sql
from core_api.db.repository import QueryOverrides, Repository
from core_api.db.transactions import (
    begin_tx,
    commit_tx,
    get_connection_from_pool,
    release_connection,
    rollback_tx,
    transaction,
)

__all__ = [
    # Driver boundary
    "ConnectionPool",
    "DatabaseConnection",
    "DriverResult",
    "Metadata",
    # Clause builders
    "build_options_clause",
    "build_select_statement",
    "build_where_clause",
    "filter_array",
    "filter_object",
    "require_scalar_values",
    "validate_required_fields",
    # Escaping
    "escape",
    "escape_id",
    "format_sql",
    # Executors
    "QueryOverrides",
    "Repository",
    # Transactions
    "begin_tx",
    "commit_tx",
    "get_connection_from_pool",
    "release_connection",
    "rollback_tx",
    "transaction",
]
