import queue
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from photoshelf.errors import ConnectionPoolExhausted, StorageError


class ConnectionPool:
    """Small pool of SQLite connections shared between threads.

    ``connection()`` wraps each use in a transaction: the block either commits
    as a whole or is rolled back, and any :mod:`sqlite3` failure surfaces as a
    :class:`StorageError`.
    """

    def __init__(self, db_path: Path, pool_size: int = 4, timeout: float = 30.0):
        self._db_path = Path(db_path)
        self._pool_size = pool_size
        self._timeout = timeout
        self._pool: queue.Queue = queue.Queue(maxsize=pool_size)
        self._created = 0
        self._lock = threading.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _create_connection(self) -> sqlite3.Connection:
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._db_path, timeout=self._timeout, check_same_thread=False)
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"Cannot open catalog database {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _acquire(self) -> sqlite3.Connection:
        try:
            return self._pool.get_nowait()
        except queue.Empty:
            pass

        # Lazily create a new connection if under the limit
        with self._lock:
            if self._created < self._pool_size:
                conn = self._create_connection()
                self._created += 1
                return conn

        try:
            return self._pool.get(timeout=self._timeout)
        except queue.Empty:
            raise ConnectionPoolExhausted(
                f"No connections available within {self._timeout}s "
                f"(pool_size={self._pool_size})"
            )

    def _release(self, conn: sqlite3.Connection):
        try:
            self._pool.put_nowait(conn)
        except queue.Full:
            conn.close()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._acquire()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(f"Catalog database error ({self._db_path}): {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            self._release(conn)

    def close_all(self):
        while True:
            try:
                conn = self._pool.get_nowait()
            except queue.Empty:
                break
            conn.close()
        with self._lock:
            self._created = 0
