"""Database connection management."""

import sqlite3
import threading
from pathlib import Path
from typing import Self

from vidserve.errors import StoreError

from .schema import create_schema


class Database:
    """SQLite database connection wrapper with context manager support.

    The connection is shared by HTTP worker threads and scheduler threads, so it
    is opened with ``check_same_thread=False`` and writers serialise on ``lock``.
    Once closed, a Database stays closed.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None
        self._closed = False

    def connect(self) -> sqlite3.Connection:
        with self.lock:
            if self._closed:
                raise StoreError(f"Database {self.db_path} is closed")
            if self._conn is None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
                self._conn.row_factory = sqlite3.Row
                self._conn.execute("PRAGMA journal_mode = WAL")
                create_schema(self._conn)
            return self._conn

    @property
    def conn(self) -> sqlite3.Connection:
        return self.connect()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self.lock:
            self._closed = True
            if self._conn:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> Self:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
