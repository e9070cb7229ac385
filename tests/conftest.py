"""
Pytest configuration for core-api.

Provides fixtures for:
- In-memory fakes of the aiomysql pool/connection/cursor that record SQL
- A sample resource descriptor and repository
- Settings for integration tests against a real MySQL
"""

from __future__ import annotations

import os
from collections import deque
from typing import Any, Deque, List, Optional

import pytest

from core_api.config import Settings
from core_api.db import DriverResult, Repository
from core_api.domain import ResourceDescriptor


class FakeCursor:
    """Cursor double: pops the next scripted outcome for every statement."""

    def __init__(self, conn: "FakeConnection") -> None:
        self._conn = conn
        self._rows: List[dict] = []
        self.description: Optional[tuple] = None
        self.lastrowid: Optional[int] = None
        self.rowcount = 0

    async def __aenter__(self) -> "FakeCursor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        del exc_type, exc, tb
        return False

    async def execute(self, sql: str, args: Any = None) -> int:
        del args
        self._conn.executed.append(sql)
        outcome = self._conn.next_outcome(sql)
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, list):
            self.description = (("column",),)
            self._rows = outcome
            self.rowcount = len(outcome)
        else:
            self.description = None
            self.lastrowid = outcome.insert_id
            self.rowcount = outcome.affected_rows
        return self.rowcount

    async def fetchall(self) -> List[dict]:
        return self._rows


class FakeConnection:
    """
    Connection double.

    Queue outcomes with `script()`: a list of rows, a `DriverResult` or an
    exception to raise. Unscripted SELECTs return no rows (COUNT returns 0),
    anything else reports one affected row with insert id 1.
    """

    def __init__(self) -> None:
        self.executed: List[str] = []
        self.calls: List[str] = []
        self.fail_on: dict = {}
        self._outcomes: Deque[Any] = deque()

    def script(self, *outcomes: Any) -> None:
        self._outcomes.extend(outcomes)

    def next_outcome(self, sql: str) -> Any:
        if self._outcomes:
            return self._outcomes.popleft()
        if sql.startswith("SELECT COUNT("):
            return [{"rowCount": 0}]
        if sql.startswith("SELECT"):
            return []
        return DriverResult(insert_id=1, affected_rows=1)

    def cursor(self, *cursors: Any) -> FakeCursor:
        del cursors
        return FakeCursor(self)

    async def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    async def begin(self) -> None:
        await self._record("begin")

    async def commit(self) -> None:
        await self._record("commit")

    async def rollback(self) -> None:
        await self._record("rollback")


class _FakeAcquire:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool

    async def _acquire(self) -> FakeConnection:
        self._pool.acquired += 1
        return self._pool.conn

    def __await__(self):
        return self._acquire().__await__()

    async def __aenter__(self) -> FakeConnection:
        return await self._acquire()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        del exc_type, exc, tb
        self._pool.release(self._pool.conn)
        return False


class FakePool:
    """Pool double handing out one shared FakeConnection."""

    def __init__(self, conn: Optional[FakeConnection] = None) -> None:
        self.conn = conn or FakeConnection()
        self.acquired = 0
        self.released = 0

    def acquire(self) -> _FakeAcquire:
        return _FakeAcquire(self)

    def release(self, conn: FakeConnection) -> None:
        del conn
        self.released += 1


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def fake_pool(fake_conn: FakeConnection) -> FakePool:
    return FakePool(fake_conn)


@pytest.fixture
def users_descriptor() -> ResourceDescriptor:
    return ResourceDescriptor(
        table="users",
        primary_key="id",
        all_fields={"id": 0, "name": "", "email": "", "deleted_at": None},
        required_fields=("name",),
        list_fields=("id", "name"),
        action="users",
    )


@pytest.fixture
def users(users_descriptor: ResourceDescriptor, fake_pool: FakePool) -> Repository:
    return Repository(users_descriptor, fake_pool)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        _env_file=None,
        db_host=os.getenv("DB_HOST", "127.0.0.1"),
        db_port=int(os.getenv("DB_PORT", "3306")),
        db_user=os.getenv("DB_USER", "root"),
        db_password=os.getenv("DB_PASSWORD", ""),
        db_name=os.getenv("DB_NAME", "core_test"),
        log_level="DEBUG",
    )
