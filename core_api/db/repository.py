"""
CRUD repository over a MySQL connection pool.

A `Repository` pairs one `ResourceDescriptor` with the shared pool and exposes
the query executors as methods. Each executor checks its preconditions before
any SQL is built, whitelist-filters the caller's mappings, renders the final
statement client-side, runs it and translates driver errors into typed
`RestException`s.

Usage:
    users = Repository(
        ResourceDescriptor(
            table="users",
            all_fields={"id": 0, "name": "", "email": ""},
            required_fields=("name",),
            list_fields=("id", "name"),
        ),
        pool,
    )
    created = await users.add_db_from_obj({"name": "a", "email": "a@example.com"})
    rows, meta = await users.get_db_from_obj(where={"id": created["id"]})
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Any,
    AsyncContextManager,
    Dict,
    List,
    Mapping,
    MutableMapping,
    NoReturn,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from aiomysql import DictCursor
from pymysql.constants import ER
from pymysql.err import MySQLError

from core_api.db.abstract import ConnectionPool, DriverResult, Metadata, QueryOutput, Row
from core_api.db.clauses import (
    WILDCARD,
    build_options_clause,
    build_select_statement,
    build_where_clause,
    filter_object,
    require_scalar_values,
    validate_required_fields,
)
from core_api.db.escaping import escape, escape_id, format_sql
from core_api.db.transactions import transaction
from core_api.domain.resource import ResourceDescriptor
from core_api.exceptions import Conflict, DatabaseError, MissingPrecondition, RestException
from core_api.utils.logging import get_logger


@dataclass(frozen=True)
class QueryOverrides:
    """
    Per-call replacements for the descriptor and pool.

    `db_conn` pins the call to a connection borrowed for a transaction.
    `table` without `all_fields` targets another table: reads whitelist the
    where keys and requested columns, writes skip filtering.
    """

    db_conn: Any = None
    table: Optional[str] = None
    all_fields: Optional[Mapping[str, Any]] = None
    required_fields: Optional[Sequence[str]] = None
    list_fields: Optional[Union[Sequence[str], str]] = None
    primary_key: Optional[str] = None
    log: bool = False
    log_query: bool = False


_NO_OVERRIDES = QueryOverrides()


def _error_details(err: BaseException) -> Tuple[Optional[int], str]:
    """Driver error code and server message, when the driver supplied them."""
    args = getattr(err, "args", ())
    if len(args) >= 2 and isinstance(args[0], int):
        return args[0], str(args[1])
    return None, str(err)


async def _execute(conn: Any, sql: str) -> QueryOutput:
    async with conn.cursor(DictCursor) as cur:
        await cur.execute(sql)
        if cur.description is None:
            return DriverResult(insert_id=cur.lastrowid, affected_rows=cur.rowcount)
        return list(await cur.fetchall())


class Repository:
    """CRUD operations for one resource, sharing the process-wide pool."""

    sql_escape = staticmethod(escape)
    sql_format = staticmethod(format_sql)

    def __init__(
        self,
        descriptor: ResourceDescriptor,
        db_conn: Any,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.descriptor = descriptor
        self.db_conn = db_conn
        self.log = log or get_logger(__name__)

    @property
    def action(self) -> str:
        return self.descriptor.label

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    async def db_query(self, sql: str, db_conn: Any = None) -> QueryOutput:
        """
        Run a fully rendered statement.

        A pool lends a connection for this statement only; a connection is
        used as is. Returns rows for statements with a result set and a
        `DriverResult` otherwise. Driver errors propagate unchanged.
        """
        target = db_conn if db_conn is not None else self.db_conn
        if isinstance(target, ConnectionPool):
            async with target.acquire() as conn:
                return await _execute(conn, sql)
        return await _execute(target, sql)

    async def _run(self, sql: str, db_conn: Any, conflict: bool = False) -> Any:
        try:
            return await self.db_query(sql, db_conn)
        except MySQLError as err:
            self._raise_database_error(err, conflict)

    def _raise_database_error(self, err: MySQLError, conflict: bool) -> NoReturn:
        code, message = _error_details(err)
        self.log.debug("Error stack", exc_info=err)
        self.log.error(
            "Error querying database",
            extra={"action": self.action, "error_code": code, "error_message": message},
        )
        if conflict and code == ER.DUP_ENTRY:
            raise Conflict({"error": "Duplicate entry in database", "message": message}) from None
        raise DatabaseError({"error": "Database error", "message": message}) from None

    def _log_sql(self, message: str, sql: str) -> None:
        self.log.info(message, extra={"action": self.action, "sql": sql})

    # ------------------------------------------------------------------ #
    # Preconditions
    # ------------------------------------------------------------------ #

    def _connection(self, overrides: QueryOverrides) -> Any:
        db_conn = overrides.db_conn if overrides.db_conn is not None else self.db_conn
        if db_conn is None:
            raise MissingPrecondition("Missing database connection")
        return db_conn

    def _table(self, overrides: QueryOverrides) -> str:
        table = overrides.table or self.descriptor.table
        if not table:
            raise MissingPrecondition("Missing table")
        return table

    def _all_fields(self, overrides: QueryOverrides) -> Mapping[str, Any]:
        if overrides.all_fields is not None:
            return overrides.all_fields
        return self.descriptor.all_fields

    def _insert_values(
        self, values: Mapping[str, Any], overrides: QueryOverrides
    ) -> Dict[str, Any]:
        if overrides.table and overrides.all_fields is None:
            require_scalar_values(values)
            return dict(values)
        required = (
            overrides.required_fields
            if overrides.required_fields is not None
            else self.descriptor.required_fields
        )
        insert_obj = filter_object(values, self._all_fields(overrides).keys())
        require_scalar_values(insert_obj)
        if not validate_required_fields(insert_obj.keys(), required):
            raise MissingPrecondition("Missing required fields")
        return insert_obj

    # ------------------------------------------------------------------ #
    # Query executors
    # ------------------------------------------------------------------ #

    async def get_db_from_query(
        self,
        query: str,
        values: Optional[Any] = None,
        overrides: Optional[QueryOverrides] = None,
    ) -> QueryOutput:
        """
        Run a caller-written statement verbatim, after `?`/`??` substitution.

        Statements without SELECT in them are logged; `log_query` silences that.
        """
        ov = overrides or _NO_OVERRIDES
        db_conn = self._connection(ov)
        sql = format_sql(query, values)
        if not ov.log_query and "SELECT" not in sql:
            self._log_sql("Running mysql query", sql)
        return await self._run(sql, db_conn)

    async def get_db_from_obj(
        self,
        where: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
        select: Optional[Union[Sequence[str], str]] = None,
        overrides: Optional[QueryOverrides] = None,
    ) -> Tuple[List[Row], Metadata]:
        """
        Select rows matching `where` and count every match.

        Returns ``(rows, metadata)`` where ``metadata["totalRecords"]`` ignores
        pagination, and page/records echo the pagination options when given.
        """
        ov = overrides or _NO_OVERRIDES
        db_conn = self._connection(ov)
        table = self._table(ov)
        list_fields = ov.list_fields if ov.list_fields is not None else self.descriptor.list_fields
        primary_key = ov.primary_key or self.descriptor.primary_key

        if ov.all_fields is not None:
            all_fields: Mapping[str, Any] = ov.all_fields
        elif ov.table:
            all_fields = dict(where or {})
            if select and select != WILDCARD:
                columns = [select] if isinstance(select, str) else select
                all_fields.update({column: "" for column in columns})
        else:
            all_fields = self.descriptor.all_fields

        select_clause = build_select_statement(select or list_fields, all_fields)
        where_clause = ""
        if where is not None:
            where_clause = build_where_clause(where, all_fields, self.action, self.log)
        options_clause = build_options_clause(options, all_fields)

        sql = f"SELECT {select_clause} FROM {escape_id(table)}"
        if where_clause:
            sql += f" WHERE {where_clause}"
        sql += options_clause + ";"
        if ov.log:
            self._log_sql("Running mysql query", sql)
        rows = await self._run(sql, db_conn)

        count_sql = f"SELECT COUNT({escape_id(primary_key)}) AS `rowCount` FROM {escape_id(table)}"
        if where_clause:
            count_sql += f" WHERE {where_clause}"
        count_sql += ";"
        if ov.log:
            self._log_sql("Running mysql count query", count_sql)
        count_rows = await self._run(count_sql, db_conn)

        metadata = Metadata(totalRecords=int(count_rows[0]["rowCount"]) if count_rows else 0)
        pagination = options.get("pagination") if isinstance(options, Mapping) else None
        if isinstance(pagination, Mapping) and pagination.get("page") and pagination.get("records"):
            metadata["page"] = int(pagination["page"])
            metadata["records"] = int(pagination["records"])
        return rows, metadata

    async def add_db_from_obj(
        self,
        values: MutableMapping[str, Any],
        overrides: Optional[QueryOverrides] = None,
    ) -> MutableMapping[str, Any]:
        """
        Insert one row from the whitelisted part of `values`.

        `values` is updated in place with the generated primary key and
        returned. A duplicate key raises `Conflict`.
        """
        ov = overrides or _NO_OVERRIDES
        db_conn = self._connection(ov)
        table = self._table(ov)
        insert_obj = self._insert_values(values, ov)

        sql = format_sql(
            "INSERT INTO ?? (??) VALUES (?);",
            [table, list(insert_obj.keys()), list(insert_obj.values())],
        )
        self._log_sql("Running mysql insert query", sql)
        result = await self._run(sql, db_conn, conflict=True)

        values[ov.primary_key or self.descriptor.primary_key] = result.insert_id
        return values

    async def upsert_db_from_obj(
        self,
        values: MutableMapping[str, Any],
        overrides: Optional[QueryOverrides] = None,
    ) -> MutableMapping[str, Any]:
        """
        Insert a row or, on a duplicate key, overwrite it with the same values.

        The update half embeds each value as an escaped literal.
        """
        ov = overrides or _NO_OVERRIDES
        db_conn = self._connection(ov)
        table = self._table(ov)
        insert_obj = self._insert_values(values, ov)

        update_clause = ",".join(
            f" {escape_id(column, qualified=False)}={escape(value)}"
            for column, value in insert_obj.items()
        )
        sql = format_sql(
            "INSERT INTO ?? (??) VALUES (?)",
            [table, list(insert_obj.keys()), list(insert_obj.values())],
        )
        sql += f" ON DUPLICATE KEY UPDATE{update_clause};"
        self._log_sql("Running mysql upsert query", sql)
        result = await self._run(sql, db_conn)

        values[ov.primary_key or self.descriptor.primary_key] = result.insert_id
        return values

    async def update_db_from_obj(
        self,
        values: Mapping[str, Any],
        where: Mapping[str, Any],
        overrides: Optional[QueryOverrides] = None,
    ) -> Tuple[Mapping[str, Any], DriverResult]:
        ov = overrides or _NO_OVERRIDES
        db_conn = self._connection(ov)
        table = self._table(ov)
        if not values:
            raise MissingPrecondition("Missing data to update db")
        if not where:
            raise MissingPrecondition('Missing "where" data to update db')

        all_fields = self._all_fields(ov)
        if ov.table and ov.all_fields is None:
            update_obj = dict(values)
            all_fields = where
        else:
            update_obj = filter_object(values, all_fields.keys())
        if not update_obj:
            raise MissingPrecondition("Missing data to update db")
        require_scalar_values(update_obj)

        where_clause = build_where_clause(where, all_fields, self.action, self.log)
        sql = format_sql("UPDATE ?? SET ?", [table, update_obj]) + f" WHERE {where_clause};"
        self._log_sql("Running mysql update query", sql)
        result = await self._run(sql, db_conn)
        return values, result

    async def delete_db_from_obj(
        self,
        where: Mapping[str, Any],
        overrides: Optional[QueryOverrides] = None,
    ) -> DriverResult:
        ov = overrides or _NO_OVERRIDES
        db_conn = self._connection(ov)
        table = self._table(ov)
        if not where:
            raise MissingPrecondition('Missing "where" data to delete from db')

        where_clause = build_where_clause(where, self._all_fields(ov), self.action, self.log)
        sql = format_sql("DELETE FROM ??", table) + f" WHERE {where_clause};"
        self._log_sql("Running mysql delete query", sql)
        return await self._run(sql, db_conn)

    # ------------------------------------------------------------------ #
    # Legacy executors: failures come back as values, never raised
    # ------------------------------------------------------------------ #

    async def get_from_db(
        self,
        where: Optional[Mapping[str, Any]] = None,
        select: Union[Sequence[str], str] = WILDCARD,
        overrides: Optional[QueryOverrides] = None,
    ) -> Tuple[Optional[List[Row]], Optional[RestException]]:
        """
        Plain SELECT with an equality WHERE; returns ``(rows, None)`` or ``(None, error)``.
        """
        ov = overrides or _NO_OVERRIDES
        try:
            db_conn = self._connection(ov)
            table = self._table(ov)
            columns = WILDCARD if select == WILDCARD else escape_id(select)
            sql = f"SELECT {columns} FROM {escape_id(table)}"
            if where:
                if not ov.table:
                    where = filter_object(where, self._all_fields(ov).keys())
                    if not where:
                        raise MissingPrecondition("Missing data to select from the database: where")
                require_scalar_values(where)
                sql += " WHERE " + " AND ".join(
                    f"{escape_id(column)} = {escape(value)}" for column, value in where.items()
                )
            self._log_sql("Running get query", sql)
            rows = await self._run(sql, db_conn)
        except RestException as err:
            return None, err
        return rows, None

    async def add_db(
        self,
        fields: Mapping[str, Any],
        overrides: Optional[QueryOverrides] = None,
    ) -> Optional[RestException]:
        """`INSERT ... SET` from `fields`; returns the error instead of raising it."""
        ov = overrides or _NO_OVERRIDES
        try:
            db_conn = self._connection(ov)
            table = self._table(ov)
            if not ov.table:
                fields = filter_object(fields, self._all_fields(ov).keys())
            if not fields:
                raise MissingPrecondition("Missing data to insert into db")
            require_scalar_values(fields)
            sql = format_sql("INSERT INTO ?? SET ?", [table, fields])
            self._log_sql("Running insert query", sql)
            await self._run(sql, db_conn, conflict=True)
        except RestException as err:
            return err
        return None

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #

    def transaction(self) -> AsyncContextManager[Any]:
        """Borrow one connection from this repository's pool for a unit of work."""
        return transaction(self.db_conn)


__all__ = ["QueryOverrides", "Repository"]
