"""Reading compressed documents from the SQL Server object store."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from .database import ConnectionPool, Connector, init_db_connection_pool
from .errors import (
    DbError,
    MissingFieldError,
    MultipleRecordsFoundError,
    ObjectStoreError,
    add_context,
)

log = logging.getLogger(__name__)


@dataclass
class ObjectStoreRecord:
    bucket: str
    object_id: str
    metadata: bytes
    objcontent: bytes
    original_size: int
    compressed_size: int
    lmts: datetime = field(default_factory=datetime.now)


def _wrap(message: str, cause: BaseException) -> ObjectStoreError:
    error = ObjectStoreError(message)
    error.__cause__ = cause
    return error


def _column(row: Sequence[Any], index: int, name: str) -> Any:
    value = row[index] if index < len(row) else None
    if value is None:
        raise MissingFieldError(f"missing {name}")
    return value


class MssqlStore:
    """Object store kept in per-year tables of a SQL Server database."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    @classmethod
    def new_mssql(cls, connect: Connector) -> "MssqlStore":
        return cls(init_db_connection_pool("MsSqlStore", connect))

    def get_dbname(self, year: str) -> str:
        return f"EFaturaDB01_{year}"

    def _table(self, year: str) -> str:
        return f"{self.get_dbname(year)}.dbo.OBJECTSTORE_{year}"

    def _fetch(
        self,
        sql: str,
        params: Sequence[Any],
        acquire_ctx: str,
        query_ctx: str,
        stream_ctx: str,
    ) -> list:
        with ExitStack() as stack:
            try:
                conn = stack.enter_context(self._pool.acquire())
            except DbError as exc:
                raise add_context(_wrap(f"bb8 pool Error: {exc}", exc), acquire_ctx) from exc
            try:
                cursor = conn.execute(sql, tuple(params))
            except Exception as exc:
                raise add_context(_wrap(f"MsSqlStore error: {exc}", exc), query_ctx) from exc
            try:
                return list(cursor.fetchall())
            except Exception as exc:
                raise add_context(_wrap(f"MsSqlStore error: {exc}", exc), stream_ctx) from exc

    def get(self, bucket: str, key: str, year: str) -> ObjectStoreRecord:
        """Fetch the single object stored under ``bucket`` and ``key``."""
        sql = (
            "SELECT OBJCONTENT, ORIGINALSIZE, COMPRESSEDSIZE\n"
            f" FROM {self._table(year)}\n"
            " WHERE BUCKET = ? AND OBJECTID = ?"
        )
        log.debug("Sql_sentence: %s", sql)
        rows = self._fetch(
            sql,
            (bucket, key),
            "MsSqlStore : get : get conn from pool",
            "MsSqlStore : get : query",
            "MsSqlStore : get : stream",
        )
        log.debug("number of rows: %d", len(rows))
        if len(rows) > 1:
            raise MultipleRecordsFoundError(bucket, key)
        if not rows:
            raise ObjectStoreError(f"No record found in bucket '{bucket}' for key '{key}'")
        row = rows[0]
        content = _column(row, 0, "object_content")
        original_size = _column(row, 1, "original_size")
        compressed_size = _column(row, 2, "compressed_size")
        return ObjectStoreRecord(
            bucket=bucket,
            object_id=key,
            metadata=b"",
            objcontent=bytes(content),
            original_size=int(original_size),
            compressed_size=int(compressed_size),
        )

    def object_exists(self, bucket: str, key: str, year: str) -> bool:
        """Whether an object is stored under ``bucket`` and ``key``."""
        sql = (
            "SELECT TOP 1 OBJECTID\n"
            f" FROM {self._table(year)}\n"
            " WHERE BUCKET = ? AND OBJECTID = ?"
        )
        rows = self._fetch(
            sql,
            (bucket, key),
            "MsSqlStore : object_exists : get conn from pool",
            "MsSqlStore : get : query",
            "MsSqlStore : get : stream",
        )
        log.debug("number of rows: %d", len(rows))
        return bool(rows)


@dataclass
class Store:
    """The object store backend in use."""

    backend: MssqlStore

    def get(self, bucket: str, key: str, year: str) -> ObjectStoreRecord:
        return self.backend.get(bucket, key, year)

    def object_exists(self, bucket: str, key: str, year: str) -> bool:
        return self.backend.object_exists(bucket, key, year)