import pytest

from invoicedocs.errors import (
    DbError,
    MissingFieldError,
    MultipleRecordsFoundError,
    ObjectStoreError,
)
from invoicedocs.object_store import MssqlStore, ObjectStoreRecord, Store

BUCKET = "ubls"
KEY = (
    "-2025-gelen-1234567890-2025-10-09-00000000-0000-0000-0000-000000000000"
    "-INVOICE-SATIS-AAA2025000000038.xml.xz"
)
CONTENT = b"\xfd7zXZ\x00compressed"


class Cursor:
    def __init__(self, rows):
        self.rows = rows

    def fetchall(self):
        return self.rows


class FakeConnection:
    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def execute(self, sql, params):
        self.calls.append((sql, params))
        return Cursor(self.handler(sql, params))


def stored_objects(sql, params):
    if params != (BUCKET, KEY):
        return []
    if "OBJCONTENT" in sql:
        return [(CONTENT, 4096, len(CONTENT))]
    return [(KEY,)]


def make_store(handler=stored_objects):
    conn = FakeConnection(handler)
    return Store(MssqlStore.new_mssql(lambda config: conn)), conn


def test_mssql_store_object_exists():
    store, _ = make_store()
    assert store.object_exists(BUCKET, KEY, "2025") is True


def test_mssql_store_get():
    store, _ = make_store()
    record = store.get(BUCKET, KEY, "2025")
    assert isinstance(record, ObjectStoreRecord)
    assert record.bucket == BUCKET
    assert record.object_id == KEY
    assert record.objcontent == CONTENT
    assert record.original_size == 4096
    assert record.compressed_size == len(CONTENT)
    assert record.metadata == b""


def test_queries_use_year_table_and_bind_parameters():
    store, conn = make_store()
    store.get(BUCKET, KEY, "2025")
    store.object_exists(BUCKET, KEY, "2025")
    for sql, params in conn.calls:
        assert "EFaturaDB01_2025.dbo.OBJECTSTORE_2025" in sql
        assert params == (BUCKET, KEY)
    assert "TOP 1 OBJECTID" in conn.calls[1][0]


def test_get_dbname():
    store, _ = make_store()
    assert store.backend.get_dbname("2024") == "EFaturaDB01_2024"


def test_missing_object_does_not_exist():
    store, _ = make_store()
    assert store.object_exists(BUCKET, "other.xml.xz", "2025") is False


def test_get_rejects_multiple_records():
    store, _ = make_store(lambda sql, params: [(CONTENT, 1, 1), (CONTENT, 2, 2)])
    with pytest.raises(MultipleRecordsFoundError) as info:
        store.get(BUCKET, KEY, "2025")
    assert (info.value.bucket, info.value.key) == (BUCKET, KEY)


def test_get_without_record_raises():
    store, _ = make_store(lambda sql, params: [])
    with pytest.raises(ObjectStoreError, match="No record found"):
        store.get(BUCKET, KEY, "2025")


def test_get_reports_missing_field():
    store, _ = make_store(lambda sql, params: [(CONTENT, None, 3)])
    with pytest.raises(MissingFieldError) as info:
        store.get(BUCKET, KEY, "2025")
    assert info.value.field == "missing original_size"


def test_query_failure_carries_context():
    def broken(sql, params):
        raise RuntimeError("invalid object name")

    store, _ = make_store(broken)
    with pytest.raises(ObjectStoreError) as info:
        store.get(BUCKET, KEY, "2025")
    assert info.value.func == "MsSqlStore : get : query"
    assert "invalid object name" in str(info.value)


def test_connection_failure_carries_context():
    calls = []

    def connect_once(config):
        calls.append(config)
        if len(calls) > 2:
            raise RuntimeError("login failed")
        return FakeConnection(stored_objects)

    backend = MssqlStore.new_mssql(connect_once)
    # Hold both idle connections so the next request must open a new one.
    with backend._pool.acquire(), backend._pool.acquire():
        with pytest.raises(ObjectStoreError) as info:
            backend.object_exists(BUCKET, KEY, "2025")
    assert info.value.func == "MsSqlStore : object_exists : get conn from pool"
    assert "login failed" in str(info.value)


def test_new_mssql_fails_when_database_unreachable():
    def refuse(config):
        raise RuntimeError("unreachable")

    with pytest.raises(DbError) as info:
        MssqlStore.new_mssql(refuse)
    assert info.value.func == "init_db_connection_pool:build"