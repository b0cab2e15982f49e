from __future__ import annotations

# lightbnb/db.py
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator

import yaml
from sqlalchemy import exc as sa_exc
from sqlalchemy.pool import QueuePool

logger = logging.getLogger(__name__)

# DB path resolution order:
# 1) env LIGHTBNB_DB_PATH (highest priority)
# 2) config.yaml test_db_path (when running under tests)
# 3) config.yaml db_path
# 4) fallback: lightbnb.db at the project root
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "lightbnb.db")
SCHEMA_PATH = os.path.join(_PROJECT_ROOT, "schema.sql")

DEFAULT_POOL_SIZE = 5


def _read_config_yaml() -> dict:
    cfg_path = os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"config.yaml unreadable, using defaults: {e}")
        return {}
    out = {}
    for k in ("db_path", "test_db_path"):
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    if cfg.get("pool_size") is not None:
        out["pool_size"] = cfg["pool_size"]
    return out


def get_db_path(_: str | None = None) -> str:
    env_path = os.environ.get("LIGHTBNB_DB_PATH")
    cfg = _read_config_yaml()
    cfg_db = cfg.get("db_path")
    cfg_test = cfg.get("test_db_path")
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and cfg_test:
        path = cfg_test
    elif cfg_db:
        path = cfg_db
    else:
        path = _ROOT_DB

    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)
    return path


def get_pool_size() -> int:
    raw = os.environ.get("LIGHTBNB_POOL_SIZE") or _read_config_yaml().get("pool_size")
    try:
        size = int(raw) if raw is not None else DEFAULT_POOL_SIZE
    except (TypeError, ValueError):
        logger.warning(f"invalid pool_size {raw!r}, falling back to {DEFAULT_POOL_SIZE}")
        return DEFAULT_POOL_SIZE
    return max(1, size)


def _casefold(value):
    return None if value is None else str(value).casefold()


def _connect(path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(
        path,
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        check_same_thread=False,
        isolation_level=None,
    )
    conn.execute("PRAGMA foreign_keys = ON;")
    # SQLite's lower() only folds ASCII
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Open a one-off SQLite connection. Uses the explicit db_path if given,
    otherwise get_db_path(). Foreign keys on, row_factory is Row.
    """
    conn = _connect(db_path or get_db_path())
    try:
        yield conn
    finally:
        conn.close()


class ConnectionPool:
    """Pool of SQLite connections to a single database file.

    Backed by SQLAlchemy's QueuePool: connections are opened lazily, up to
    ``max_size``, and ``connection()`` waits up to ``timeout`` seconds for a
    free one when all of them are checked out.
    """

    def __init__(self, db_path: str | None = None, max_size: int | None = None, timeout: float = 30.0):
        self.db_path = db_path or get_db_path()
        self.max_size = max_size or get_pool_size()
        self._pool = QueuePool(
            lambda: _connect(self.db_path),
            pool_size=self.max_size,
            max_overflow=0,
            timeout=timeout,
            use_lifo=True,
        )
        self._closed = False

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        if self._closed:
            raise sqlite3.ProgrammingError("connection pool is closed")
        try:
            fairy = self._pool.connect()
        except sa_exc.TimeoutError as e:
            raise sqlite3.OperationalError(f"no pooled connection available: {e}") from e
        conn = fairy.dbapi_connection
        try:
            yield conn
        except Exception:
            if conn.in_transaction:
                conn.rollback()
            raise
        finally:
            # back to the queue, which also wakes a caller already waiting
            # for a connection when close() ran
            fairy.close()

    @property
    def size(self) -> int:
        """Number of connections currently open (idle or checked out)."""
        return self._pool.checkedin() + self._pool.checkedout()

    def close(self):
        self._closed = True
        self._pool.dispose()


_default_pool: ConnectionPool | None = None
_default_pool_lock = threading.Lock()


def get_pool() -> ConnectionPool:
    """Process-wide pool built from the resolved db path and pool size."""
    global _default_pool
    with _default_pool_lock:
        if _default_pool is None:
            _default_pool = ConnectionPool()
        return _default_pool


def reset_pool():
    global _default_pool
    with _default_pool_lock:
        if _default_pool is not None:
            _default_pool.close()
        _default_pool = None


def ensure_schema(conn: sqlite3.Connection, schema_path: str = SCHEMA_PATH):
    with open(schema_path, "r", encoding="utf-8") as f:
        conn.executescript(f.read())
    conn.commit()
