"""Database connection settings and a small thread-safe connection pool."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Deque, Iterator, Optional

from .errors import DbError, WrongDatabaseNameError, add_context

log = logging.getLogger(__name__)

EXPECTED_DATABASE = "uut_24_6"
PASSWORD = "password"


@dataclass(frozen=True)
class DbConfig:
    """Connection settings and pool limits (times are in seconds)."""

    host: str = "192.168.3.28"
    port: int = 1433
    database: str = EXPECTED_DATABASE
    user: str = "uut"
    password: str = PASSWORD
    trust_cert: bool = True
    max_size: int = 10
    min_idle: Optional[int] = 2
    max_lifetime: Optional[float] = 3600.0
    idle_timeout: Optional[float] = 600.0
    connection_timeout: float = 5.0


Connector = Callable[[DbConfig], Any]


@dataclass
class _Entry:
    connection: Any
    created: float
    last_used: float


def _close_quietly(connection: Any) -> None:
    close = getattr(connection, "close", None)
    if callable(close):
        try:
            close()
        except Exception:  # a failing close must not break the pool
            log.warning("closing a database connection failed", exc_info=True)


class ConnectionPool:
    """Hands out connections made by ``connect(config)`` and keeps idle ones.

    A connection is expected to offer ``execute(sql, params)`` returning a
    cursor with ``fetchall()``, in the manner of DB-API drivers.
    """

    def __init__(
        self,
        connect: Connector,
        config: Optional[DbConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or DbConfig()
        self._connect = connect
        self._clock = clock
        self._idle: Deque[_Entry] = deque()
        self._slots = threading.BoundedSemaphore(self.config.max_size)
        self._lock = threading.Lock()
        self._closed = False

    def _open(self) -> _Entry:
        try:
            connection = self._connect(self.config)
        except Exception as exc:
            raise DbError(f"tiberius manager error: {exc}") from exc
        now = self._clock()
        return _Entry(connection, now, now)

    def _fill(self) -> None:
        wanted = min(self.config.min_idle or 0, self.config.max_size)
        while len(self._idle) < wanted:
            self._idle.append(self._open())

    def _expired(self, entry: _Entry, now: float) -> bool:
        lifetime = self.config.max_lifetime
        idle = self.config.idle_timeout
        return (lifetime is not None and now - entry.created > lifetime) or (
            idle is not None and now - entry.last_used > idle
        )

    def _take(self) -> _Entry:
        while True:
            with self._lock:
                entry = self._idle.popleft() if self._idle else None
            if entry is None:
                return self._open()
            if self._expired(entry, self._clock()):
                _close_quietly(entry.connection)
                continue
            return entry

    def _give_back(self, entry: _Entry) -> None:
        entry.last_used = self._clock()
        with self._lock:
            if self._closed:
                _close_quietly(entry.connection)
            else:
                self._idle.append(entry)

    @contextmanager
    def acquire(self) -> Iterator[Any]:
        """Lend a connection for the duration of a ``with`` block."""
        if self._closed:
            raise DbError("connection pool is closed")
        if not self._slots.acquire(timeout=self.config.connection_timeout):
            raise DbError("timed out waiting for a database connection")
        try:
            entry = self._take()
            try:
                yield entry.connection
            finally:
                self._give_back(entry)
        finally:
            self._slots.release()

    def close(self) -> None:
        """Close every idle connection and refuse further requests."""
        with self._lock:
            self._closed = True
            idle = list(self._idle)
            self._idle.clear()
        for entry in idle:
            _close_quietly(entry.connection)


@dataclass
class DbPools:
    incoming_invoice_pool: ConnectionPool


def check_database_name(db_name: str) -> None:
    """Raise WrongDatabaseNameError unless ``db_name`` is the expected one."""
    if db_name != EXPECTED_DATABASE:
        raise WrongDatabaseNameError(EXPECTED_DATABASE, db_name)


def init_db_connection_pool(name: str, connect: Connector) -> ConnectionPool:
    """Create a pool and open its minimum number of idle connections."""
    config = DbConfig()
    check_database_name(config.database)
    pool = ConnectionPool(connect, config)
    try:
        pool._fill()
    except DbError as exc:
        raise add_context(exc, "init_db_connection_pool:build") from exc
    log.info("%s created successfully.", name)
    return pool


def init_db_connection_pools(connect: Connector) -> DbPools:
    """Create every pool the service needs."""
    try:
        incoming_invoice_pool = init_db_connection_pool("object_pool", connect)
    except DbError as exc:
        raise add_context(exc, "init_db_connection_pools/object") from exc
    return DbPools(incoming_invoice_pool=incoming_invoice_pool)