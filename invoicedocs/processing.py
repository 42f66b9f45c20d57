"""Turning batches of incoming invoices into downloadable documents."""

from __future__ import annotations

import logging
from typing import Iterable, List

from .compression import xz_decompress
from .errors import (
    NonUtf8Error,
    ObjectStoreError,
    ProcessError,
    ProcessingError,
    UblNotFoundError,
)
from .invoice import IncomingInvoiceRec
from .models import DownloadFormat, DownloadType, ProcessedInvoice, ProcessResult
from .object_store import ObjectStoreRecord, Store
from .sanitize import sanitize_fast

log = logging.getLogger(__name__)

UBL_BUCKET = "ubls"


def _as_process_error(error: BaseException) -> ProcessError:
    if isinstance(error, OSError):
        message = f"io error: {error}"
    else:
        message = str(error)
    wrapped = ProcessError(message)
    wrapped.source = error
    wrapped.__cause__ = error
    return wrapped


def process_single_invoice_into_html(
    object_store: Store,
    invoice_id: str,
    bucket: str,
    path_in_object_store: str,
    year: str,
) -> ProcessedInvoice:
    """Fetch, decompress and sanitize one invoice's UBL document."""
    try:
        exists = object_store.object_exists(bucket, path_in_object_store, year)
    except ObjectStoreError as exc:
        raise _as_process_error(exc) from exc
    if not exists:
        raise UblNotFoundError(invoice_id, path_in_object_store)
    try:
        record: ObjectStoreRecord = object_store.get(UBL_BUCKET, path_in_object_store, year)
        decompressed = xz_decompress(record.objcontent, record.original_size)
    except (ObjectStoreError, OSError, ValueError) as exc:
        raise _as_process_error(exc) from exc
    sanitize_fast(decompressed)
    return ProcessedInvoice(data=b"")


def _record_error(errors: List[ProcessingError], invoice_id: str, code: str, message: str) -> None:
    error = ProcessingError(invoice_id=invoice_id, error_code=code, message=message)
    log.warning("%s: %s", code, message)
    errors.append(error)


def process_invoices_into_html(
    object_store: Store,
    invoices: Iterable[IncomingInvoiceRec],
    format: DownloadFormat,
) -> ProcessResult:
    """Render each invoice as HTML, recording per-invoice failures."""
    processing_errors: List[ProcessingError] = []
    processed: List[ProcessedInvoice] = []
    for index, invoice in enumerate(invoices):
        log.info("Processing invoice number: %d", index)
        year = invoice.extract_year_as_string()
        if year is None:
            _record_error(
                processing_errors,
                invoice.invoice_id,
                "NOYEARFROMPATH",
                f"Could not extract year from path: '{invoice.path}'",
            )
            continue
        log.info("Extracted year: %s", year)
        object_id = invoice.path.replace("/", "") + ".xz"
        try:
            processed.append(
                process_single_invoice_into_html(
                    object_store, invoice.invoice_id, UBL_BUCKET, object_id, year
                )
            )
        except UblNotFoundError as exc:
            _record_error(
                processing_errors,
                invoice.invoice_id,
                "UBLNOTFOUND",
                f"UBL not found in object store for invoice_id='{exc.invoice_id}', "
                f"path='{exc.object_id}'",
            )
        except NonUtf8Error:
            _record_error(
                processing_errors,
                invoice.invoice_id,
                "NONUTFCHAR",
                f"Non-UTF characters found in invoice_id='{invoice.invoice_id}'",
            )
        except ProcessError as exc:
            _record_error(
                processing_errors,
                invoice.invoice_id,
                "PROCESSINGERROR",
                f"Error processing invoice_id='{invoice.invoice_id}': {exc}",
            )
    return ProcessResult(data="deneme", filename="deneme", record_count=5, size_bytes=10)


def process_invoices_according_to_types_and_formats(
    object_store: Store,
    invoices: Iterable[IncomingInvoiceRec],
    download_type: DownloadType,
    format: DownloadFormat,
) -> ProcessResult:
    """Dispatch a batch to the converter for ``download_type``."""
    invoices = list(invoices)
    for invoice in invoices:
        log.info("Processing invoice: %s", invoice)
    if download_type is DownloadType.HTML:
        try:
            return process_invoices_into_html(object_store, invoices, format)
        except Exception as exc:
            log.error("Error processing invoices: %s", exc)
            raise
    raise ProcessError(
        "Processing for the specified download type and format is not implemented yet."
    )