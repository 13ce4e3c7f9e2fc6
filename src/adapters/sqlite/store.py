"""
SQLite unit of work.

Every component operation runs inside exactly one SQLiteUnitOfWork, so a
membership change and its counter delta commit or roll back together.
Write transactions start with BEGIN IMMEDIATE: the write lock is taken
up front, and concurrent read-check-write sequences serialize instead of
failing with a lock upgrade error.
"""

from __future__ import annotations

import sqlite3
from types import TracebackType

from src.adapters.sqlite.repos import (
    SQLiteArticleRepo,
    SQLiteCommentRepo,
    SQLiteCounterRepo,
    SQLiteEngagementRepo,
    SQLiteUserRepo,
    dict_factory,
)
from src.domain.errors import StoreError


def connect(db_path: str, timeout: float = 5.0) -> sqlite3.Connection:
    # isolation_level=None: transactions are opened explicitly
    conn = sqlite3.connect(db_path, timeout=timeout, isolation_level=None)
    conn.row_factory = dict_factory
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


class SQLiteUnitOfWork:
    """Context manager exposing repositories bound to one transaction."""

    users: SQLiteUserRepo
    articles: SQLiteArticleRepo
    engagement: SQLiteEngagementRepo
    comments: SQLiteCommentRepo
    counters: SQLiteCounterRepo

    def __init__(self, db_path: str, timeout: float = 5.0, immediate: bool = True):
        self.db_path = db_path
        self.timeout = timeout
        self.immediate = immediate
        self._conn: sqlite3.Connection | None = None

    def __enter__(self) -> SQLiteUnitOfWork:
        try:
            conn = connect(self.db_path, self.timeout)
            conn.execute("BEGIN IMMEDIATE" if self.immediate else "BEGIN")
        except sqlite3.Error as e:
            raise StoreError(f"Could not open transaction: {e}") from e

        self._conn = conn
        self.users = SQLiteUserRepo(conn)
        self.articles = SQLiteArticleRepo(conn)
        self.engagement = SQLiteEngagementRepo(conn)
        self.comments = SQLiteCommentRepo(conn)
        self.counters = SQLiteCounterRepo(conn)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        conn = self._conn
        self._conn = None
        if conn is None:
            return

        try:
            if exc_type is None:
                conn.execute("COMMIT")
            elif conn.in_transaction:
                conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            raise StoreError(f"Transaction finalization failed: {e}") from e
        finally:
            conn.close()

        if isinstance(exc, sqlite3.Error):
            raise StoreError(str(exc)) from exc


class SQLiteStore:
    """Factory for units of work against one database file."""

    def __init__(self, db_path: str, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout

    def transaction(self) -> SQLiteUnitOfWork:
        return SQLiteUnitOfWork(self.db_path, self.timeout, immediate=True)

    def read(self) -> SQLiteUnitOfWork:
        return SQLiteUnitOfWork(self.db_path, self.timeout, immediate=False)

    def ping(self) -> bool:
        with self.read() as uow:
            return uow.counters.ping()
