from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence

from bizdesk.domain.errors import DatabaseError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """When to stop hammering a database that keeps failing.

    After ``max_attempts`` failed attempts, further calls inside
    ``backoff_seconds`` of the last attempt fail fast with the last error.
    """

    max_attempts: int = 3
    backoff_seconds: float = 5.0


@dataclass
class ConnectionState:
    is_connected: bool = False
    last_error: Optional[Exception] = None
    last_attempt: float = 0.0
    attempts: int = 0


@dataclass(frozen=True)
class WriteResult:
    rowcount: int
    lastrowid: Optional[int]


class Database:
    def __init__(
        self,
        db_path: Path | str,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.db_path = str(db_path)
        self.retry_policy = retry_policy or RetryPolicy()
        self.state = ConnectionState()
        self._clock = clock

    # ---------- connection state ----------
    def is_connected(self) -> bool:
        return self.state.is_connected

    def last_error(self) -> Optional[Exception]:
        return self.state.last_error

    def reset_retry_state(self) -> None:
        self.state.attempts = 0
        self.state.last_attempt = 0.0

    def _record_failure(self, exc: Exception) -> DatabaseError:
        self.state.is_connected = False
        self.state.last_error = exc
        log.error("database_failure path=%s error=%s", self.db_path, exc, exc_info=exc)
        return DatabaseError(str(exc))

    def _check_backoff(self) -> None:
        st = self.state
        policy = self.retry_policy
        if (
            not st.is_connected
            and st.attempts > policy.max_attempts
            and self._clock() - st.last_attempt < policy.backoff_seconds
        ):
            raise DatabaseError(str(st.last_error or "Database connection failed"))

    def connect(self) -> sqlite3.Connection:
        self._check_backoff()
        self.state.last_attempt = self._clock()
        self.state.attempts += 1
        try:
            # autocommit mode: transactions are opened explicitly with BEGIN
            conn = sqlite3.connect(self.db_path, isolation_level=None, timeout=10)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON;")
        except sqlite3.Error as exc:
            raise self._record_failure(exc) from exc
        self.state.is_connected = True
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.connect()
        try:
            yield conn
        except sqlite3.Error as exc:
            raise self._record_failure(exc) from exc
        finally:
            conn.close()

    # ---------- statements ----------
    def fetch_all(self, sql: str, params: Sequence = ()) -> list[sqlite3.Row]:
        with self.connection() as conn:
            return conn.execute(sql, tuple(params)).fetchall()

    def fetch_one(self, sql: str, params: Sequence = ()) -> Optional[sqlite3.Row]:
        with self.connection() as conn:
            return conn.execute(sql, tuple(params)).fetchone()

    def execute(self, sql: str, params: Sequence = ()) -> WriteResult:
        with self.connection() as conn:
            cur = conn.execute(sql, tuple(params))
            return WriteResult(rowcount=cur.rowcount, lastrowid=cur.lastrowid)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """BEGIN IMMEDIATE ... COMMIT, rolled back on any exception.

        IMMEDIATE takes the write lock up front, so two writers cannot both
        read the same stock value before either of them updates it.
        """
        conn = self.connect()
        cur = conn.cursor()
        try:
            cur.execute("BEGIN IMMEDIATE")
            yield cur
            cur.execute("COMMIT")
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.rollback()
            raise self._record_failure(exc) from exc
        except BaseException:
            if conn.in_transaction:
                conn.rollback()
            raise
        finally:
            conn.close()

    def ping(self) -> bool:
        row = self.fetch_one("SELECT 1 AS test")
        return bool(row and int(row["test"]) == 1)
