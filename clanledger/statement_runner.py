from __future__ import annotations

import sqlite3
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Iterable, List, Optional

from clanledger.database import Database, DbConfig, table_exists
from clanledger.logging import Logger


class StatementRunner:
    """
    Dispatches SQL statements as futures against one SQLite connection.

    All statements run on a single writer thread, in submission order. Callers
    collect the futures they care about and join them with wait_all(); close()
    waits for anything still in flight before the connection is closed.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._pool: Optional[ThreadPoolExecutor] = None

    @classmethod
    def open(cls, config: DbConfig, logger: Optional[Logger] = None) -> "StatementRunner":
        runner = cls(Database(config, logger, check_same_thread=False))
        runner.start()
        return runner

    def start(self) -> None:
        if self._pool is not None:
            return
        self._db.connect()
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="clanledger-sql")

    def _require_pool(self) -> ThreadPoolExecutor:
        if self._pool is None:
            raise RuntimeError("StatementRunner not started. Call start() first.")
        return self._pool

    def _execute_now(self, sql: str, params: tuple[Any, ...]) -> None:
        try:
            self._db.execute(sql, params)
            self._db.commit()
        except sqlite3.Error:
            self._db.rollback()
            raise

    def _query_now(self, sql: str, params: tuple[Any, ...]) -> List[sqlite3.Row]:
        return self._db.execute(sql, params).fetchall()

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> "Future[None]":
        return self._require_pool().submit(self._execute_now, sql, params)

    def query(self, sql: str, params: tuple[Any, ...] = ()) -> "Future[List[sqlite3.Row]]":
        return self._require_pool().submit(self._query_now, sql, params)

    def table_columns(self, table: str) -> "Future[List[sqlite3.Row]]":
        # PRAGMA table_info: (cid, name, type, notnull, dflt_value, pk)
        return self.query(f"PRAGMA table_info({table});")

    def table_exists(self, table: str) -> "Future[bool]":
        return self._require_pool().submit(table_exists, self._db.conn, table)

    @staticmethod
    def wait_all(futures: Iterable["Future[Any]"]) -> None:
        pending = list(futures)
        if pending:
            wait(pending)

    def close(self) -> None:
        if self._pool is not None:
            # In-flight statements finish before the handle goes away.
            self._pool.shutdown(wait=True)
            self._pool = None
        self._db.close()

    def __enter__(self) -> "StatementRunner":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
