import logging
import lzma

import pytest

from invoicedocs.errors import (
    NonUtf8Error,
    ObjectStoreError,
    ProcessError,
    UblNotFoundError,
)
from invoicedocs.invoice import IncomingInvoiceRec
from invoicedocs.models import DownloadFormat, DownloadType, ProcessedInvoice, ProcessResult
from invoicedocs.object_store import ObjectStoreRecord, Store
from invoicedocs.processing import (
    process_invoices_according_to_types_and_formats,
    process_invoices_into_html,
    process_single_invoice_into_html,
)

EXPECTED_RESULT = ProcessResult(data="deneme", filename="deneme", record_count=5, size_bytes=10)


class FakeBackend:
    def __init__(self, objects=None, fail=None):
        self.objects = objects or {}
        self.fail = fail
        self.exists_calls = []
        self.get_calls = []

    def object_exists(self, bucket, key, year):
        self.exists_calls.append((bucket, key, year))
        if self.fail:
            raise self.fail
        return key in self.objects

    def get(self, bucket, key, year):
        self.get_calls.append((bucket, key, year))
        content = self.objects[key]
        return ObjectStoreRecord(
            bucket=bucket,
            object_id=key,
            metadata=b"",
            objcontent=content,
            original_size=0,
            compressed_size=len(content),
        )


def make_store(**kwargs):
    backend = FakeBackend(**kwargs)
    return Store(backend=backend), backend


def test_single_missing_object_raises_ubl_not_found():
    store, _ = make_store()
    with pytest.raises(UblNotFoundError) as info:
        process_single_invoice_into_html(store, "INV1", "ubls", "key.xz", "2025")
    assert info.value.invoice_id == "INV1"
    assert info.value.object_id == "key.xz"


def test_single_success_reads_from_ubls_bucket():
    xml = lzma.compress(b"<a>John&#x1F;Doe</a>", format=lzma.FORMAT_XZ)
    store, backend = make_store(objects={"key.xz": xml})
    result = process_single_invoice_into_html(store, "INV1", "other", "key.xz", "2025")
    assert result == ProcessedInvoice(data=b"")
    assert backend.exists_calls == [("other", "key.xz", "2025")]
    assert backend.get_calls == [("ubls", "key.xz", "2025")]


def test_single_non_utf8_content():
    bad = lzma.compress(b"\xff\xfe\xfd", format=lzma.FORMAT_XZ)
    store, _ = make_store(objects={"k": bad})
    with pytest.raises(NonUtf8Error):
        process_single_invoice_into_html(store, "INV1", "ubls", "k", "2025")


def test_single_corrupt_stream_is_process_error():
    store, _ = make_store(objects={"k": b"not xz data"})
    with pytest.raises(ProcessError) as info:
        process_single_invoice_into_html(store, "INV1", "ubls", "k", "2025")
    assert isinstance(info.value.__cause__, OSError)


def test_single_store_failure_becomes_process_error():
    failure = ObjectStoreError("boom")
    store, _ = make_store(fail=failure)
    with pytest.raises(ProcessError) as info:
        process_single_invoice_into_html(store, "INV1", "ubls", "k", "2025")
    assert info.value.__cause__ is failure
    assert str(info.value) == "boom"


def test_into_html_builds_keys_and_returns_result():
    xml = lzma.compress(b"<a/>", format=lzma.FORMAT_XZ)
    path = "-2025-gelen/doc.xml"
    store, backend = make_store(objects={"-2025-gelendoc.xml.xz": xml})
    invoices = [IncomingInvoiceRec(invoice_id="INV1", path=path)]
    result = process_invoices_into_html(store, invoices, DownloadFormat.ZIP)
    assert result == EXPECTED_RESULT
    assert backend.exists_calls == [("ubls", "-2025-gelendoc.xml.xz", "2025")]


def test_into_html_records_errors_without_raising(caplog):
    store, backend = make_store()
    invoices = [
        IncomingInvoiceRec(invoice_id="NOYEAR", path="plain/path"),
        IncomingInvoiceRec(invoice_id="MISSING", path="-2024-x"),
    ]
    with caplog.at_level(logging.WARNING, logger="invoicedocs.processing"):
        result = process_invoices_into_html(store, invoices, DownloadFormat.GZIP)
    assert result == EXPECTED_RESULT
    assert len(backend.exists_calls) == 1
    assert "NOYEARFROMPATH" in caplog.text
    assert "UBLNOTFOUND" in caplog.text


def test_dispatch_html():
    store, _ = make_store()
    result = process_invoices_according_to_types_and_formats(
        store, [], DownloadType.HTML, DownloadFormat.ZIP
    )
    assert result == EXPECTED_RESULT


@pytest.mark.parametrize(
    "download_type",
    [DownloadType.PDF, DownloadType.UBL, DownloadType.UBL_XSLT_SEPARATE],
)
def test_dispatch_other_types_raise(download_type):
    store, backend = make_store()
    with pytest.raises(ProcessError, match="not implemented yet"):
        process_invoices_according_to_types_and_formats(
            store, [IncomingInvoiceRec(path="-2025-a")], download_type, DownloadFormat.ZIP
        )
    assert backend.exists_calls == []