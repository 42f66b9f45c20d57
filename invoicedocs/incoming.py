"""Reading incoming invoice records from the database."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from itertools import zip_longest
from typing import Any, Iterable, List, Sequence, Type

from .database import ConnectionPool
from .errors import (
    AppError,
    CannotExtractDatabaseNameError,
    DbError,
    DownloadRequestError,
    add_context,
)
from .invoice import IncomingInvoiceRec
from .models import DownloadDocRequest

log = logging.getLogger(__name__)

_INCOMING_SQL = (
    "SELECT TOP 100 UUID, INVOICE_ID, RECEIVER_CONTACT, SIRA_NO, PATH\n"
    " FROM {dbname}.dbo.INCOMING_INVOICE\n"
    " WHERE RECEIVER_CONTACT = ? AND SIRA_NO > ?\n"
    " ORDER BY SIRA_NO ASC"
)
_FIELDS = ("UUID", "INVOICE_ID", "RECEIVER_CONTACT", "SIRA_NO", "PATH")

_MESSAGES = {
    DbError: ("{}", "tiberius error: {}"),
    DownloadRequestError: (
        "can not get connection from: {} pool",
        "problem in query build and execution: {} ",
    ),
}

_DBNAME_SOURCE = "path in incoming invoices"


def _convert(family: Type[AppError], template: str, cause: BaseException) -> AppError:
    error = family(template.format(cause))
    error.__cause__ = cause
    return error


def _fetch_rows(
    pool: ConnectionPool,
    sql: str,
    params: Sequence[Any],
    func: str,
    family: Type[AppError],
) -> list:
    acquire_message, query_message = _MESSAGES[family]
    with ExitStack() as stack:
        try:
            conn = stack.enter_context(pool.acquire())
        except DbError as exc:
            raise add_context(_convert(family, acquire_message, exc), func) from exc
        try:
            cursor = conn.execute(sql, tuple(params))
        except Exception as exc:
            raise add_context(
                _convert(family, query_message, exc), f"{func}:Query"
            ) from exc
        try:
            return list(cursor.fetchall())
        except Exception as exc:
            raise add_context(
                _convert(family, query_message, exc), f"{func}:stream"
            ) from exc


def rows_to_records(rows: Iterable[Sequence[Any]]) -> List[IncomingInvoiceRec]:
    """Turn result rows into records, skipping rows with a missing column."""
    records = []
    for row in rows:
        values = dict(zip_longest(_FIELDS, tuple(row)[: len(_FIELDS)]))
        missing = next((name for name in _FIELDS if values[name] is None), None)
        if missing is not None:
            log.warning("Skipping row: missing %s", missing)
            continue
        records.append(
            IncomingInvoiceRec(
                uuid=str(values["UUID"]),
                invoice_id=str(values["INVOICE_ID"]),
                receiver_contact=str(values["RECEIVER_CONTACT"]),
                sira_no=int(values["SIRA_NO"]),
                path=str(values["PATH"]),
            )
        )
    log.info("Successfully parsed %d records", len(records))
    return records


def get_incoming_invoice_recs_afterthis(
    pool: ConnectionPool, dbname: str, source_vkntckn: str, after_this: int
) -> List[IncomingInvoiceRec]:
    """The first 100 invoices of a receiver whose sequence number follows ``after_this``."""
    sql = _INCOMING_SQL.format(dbname=dbname)
    rows = _fetch_rows(
        pool, sql, (source_vkntckn, after_this), "get_incoming_invoice_recs", DbError
    )
    return rows_to_records(rows)


def extract_dbname(request: DownloadDocRequest) -> str:
    """The database that holds a request's invoices.

    The name lives in the invoices' storage path, which a request does not
    carry, so this always fails with ``CannotExtractDatabaseNameError``.
    """
    log.debug(
        "cannot derive database name for receiver %s from the request",
        request.source_vkntckn,
    )
    raise CannotExtractDatabaseNameError(_DBNAME_SOURCE)


def get_incoming_invoice_recs(
    request: DownloadDocRequest, pool: ConnectionPool
) -> List[IncomingInvoiceRec]:
    """Validate a request and read the invoices it asks for."""
    request.validate_download_type_and_format()
    try:
        dbname = extract_dbname(request)
    except DownloadRequestError as exc:
        raise add_context(exc, "get_incoming_invoice_recs") from exc
    sql = _INCOMING_SQL.format(dbname=dbname)
    rows = _fetch_rows(
        pool,
        sql,
        (request.source_vkntckn, request.after_this),
        "get_incoming_invoice_recs",
        DownloadRequestError,
    )
    return rows_to_records(rows)