from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from clanledger.config import DEFAULT_DB_PATH
from clanledger.logging import Logger


@dataclass(frozen=True)
class DbConfig:
    db_path: Path = DEFAULT_DB_PATH
    busy_timeout_ms: int = 5000  # wait up to 5s if DB is busy
    enable_wal: bool = True
    create_if_missing: bool = True


class Database:
    """
    SQLite access layer.
    - One connection per Database instance
    - Creates a blank database file first when it does not exist yet
    - Contains NO schema knowledge (that lives in ensure_schema / schema_*)
    """

    def __init__(
        self,
        config: DbConfig = DbConfig(),
        logger: Optional[Logger] = None,
        *,
        check_same_thread: bool = True,
    ) -> None:
        self._config = config
        self._logger = logger
        self._check_same_thread = check_same_thread
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> None:
        if self._conn is not None:
            return

        db_path = self._config.db_path
        if not db_path.exists():
            if not self._config.create_if_missing:
                raise FileNotFoundError(f"database file not found: {db_path}")
            db_path.parent.mkdir(parents=True, exist_ok=True)
            db_path.touch()
            if self._logger is not None:
                self._logger.log_info(
                    "database", f"Blank database file '{db_path.name}' created at {db_path.resolve()}"
                )

        # The statement runner hands this connection to its writer thread.
        conn = sqlite3.connect(db_path, check_same_thread=self._check_same_thread)

        conn.row_factory = sqlite3.Row
        conn.execute(f"PRAGMA busy_timeout = {int(self._config.busy_timeout_ms)};")

        # WAL improves concurrency (multiple readers + one writer)
        if self._config.enable_wal:
            conn.execute("PRAGMA journal_mode = WAL;")
            conn.execute("PRAGMA synchronous = NORMAL;")

        self._conn = conn

        if self._logger is not None:
            self._logger.log_info("database", f"Database '{db_path.name}' opened at {db_path.resolve()}")

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "Database":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        return self.conn.execute(sql, params)

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()


def table_exists(conn: sqlite3.Connection, name: str) -> bool:
    r = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?",
        (name,),
    ).fetchone()
    return bool(r)


def index_exists(conn: sqlite3.Connection, name: str) -> bool:
    r = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='index' AND name=?",
        (name,),
    ).fetchone()
    return bool(r)


def table_info(conn: sqlite3.Connection, table: str) -> list:
    # PRAGMA table_info columns: (cid, name, type, notnull, dflt_value, pk)
    return conn.execute(f"PRAGMA table_info({table});").fetchall()
