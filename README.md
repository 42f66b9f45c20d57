# invoicedocs

`invoicedocs` is a small HTTP service, and a set of helpers behind it, for
incoming e-invoices. It finds a receiver's invoices in an invoice database,
checks for and reads their stored UBL documents from an SQL-backed object
store, decompresses them (XZ) and neutralises character references that XML
forbids.

## Installation

```
pip install .
```

With the test tools:

```
pip install ".[test]"
```

## What the package does not do

- **No database driver is included.** Every database access goes through a
  *connector* that you supply: a callable that takes a
  `invoicedocs.database.DbConfig` and returns a connection offering
  `execute(sql, params)`, which returns a cursor with `fetchall()`. Queries use
  `?` placeholders.
- **The `invoicedocs-server` command does not start a server.** It has no
  connector, so it logs `Database initialization failed: no database driver
  configured` and exits with status 1. To serve requests, build the
  application yourself (see below).
- **No documents are produced yet.** The `Html` conversion fetches,
  decompresses and sanitizes each invoice's UBL document and records
  per-invoice problems, but does not build an archive; it returns fixed
  placeholder values (`data` and `filename` are `"deneme"`, `record_count` is
  5, `size_bytes` is 10). The `Pdf`, `Ubl` and `Ubl_Xslt_Separate` types are
  rejected as not yet implemented.
- **Connection settings are fixed.** Pools are created from the defaults of
  `DbConfig` (host `192.168.3.28`, port 1433, database `uut_24_6`, user `uut`,
  at most 10 connections, 2 kept idle, 5 s wait for a connection).

## Running the service

```python
import uvicorn

from invoicedocs.database import init_db_connection_pools
from invoicedocs.object_store import MssqlStore, Store
from invoicedocs.server import AppState, create_app


def connect(config):
    # Open and return a connection to config.host:config.port / config.database
    # using the SQL Server driver of your choice.
    ...


state = AppState(
    db_pools=init_db_connection_pools(connect),
    object_store=Store(MssqlStore.new_mssql(connect)),
)
uvicorn.run(create_app(state), host="0.0.0.0", port=3090)
```

The command-line entry point `invoicedocs-server` accepts `--host` (default
`0.0.0.0`) and `--port` (default `3090`), but see above: without a connector
it exits with status 1.

### Endpoints

| Method | Path                     | Purpose                                      |
|--------|--------------------------|----------------------------------------------|
| GET    | `/healthcheck`           | Returns the text `Health : Ok`               |
| GET    | `/api/v1/download_docs`  | Looks up and processes a receiver's invoices |

Any other path returns `404` with the requested path (and query string) as
plain text.

`/api/v1/download_docs` takes a JSON body:

```json
{
  "source_vkntckn": "1234567890",
  "after_this": 24000,
  "download_type": "Html",
  "format": "zip"
}
```

- `source_vkntckn`: the receiver contact whose invoices are wanted.
- `after_this`: only invoices with a sequence number (`SIRA_NO`) above this
  value are read; at most 100, in ascending order, from the `uut_24_6`
  database.
- `download_type`: `Html`, `Pdf`, `Ubl` or `Ubl_Xslt_Separate`.
- `format`: `zip` or `gzip`.

A successful reply is `{"data", "filename", "record_count", "size_bytes"}`.
Failures come back as `{"error": ..., "message": ...}`:

- `404`, `NoInvoices`: no invoice matches.
- `500`, `Internal Error`: the database lookup failed.
- `500`, `ProcessingError`: processing failed (including the unimplemented
  download types).

A malformed body is rejected with `422` by request validation.

## Library parts

These work without a server or a database:

```python
from invoicedocs.sanitize import sanitize_fast
from invoicedocs.invoice import IncomingInvoiceRec
from invoicedocs.models import DownloadDocRequest

sanitize_fast(b"<name>John&#x1F;Doe</name>")
# -> b"<name>John-sanitized-x1F--Doe</name>"

rec = IncomingInvoiceRec(
    uuid="u-1",
    invoice_id="INV1",
    receiver_contact="1234567890",
    sira_no=1,
    path="/2025/gelen/doc.xml",
)
rec.extract_year_as_string()   # -> "2025"

req = DownloadDocRequest.from_dict({
    "source_vkntckn": "1234567890",
    "after_this": 0,
    "download_type": "Ubl_Xslt_Separate",
    "format": "gzip",
})
str(req)
# -> "Source vkntckn: 1234567890 after count: 0 download type: Ubl_Xslt_Separate format: Gzip"
```

- `invoicedocs.sanitize`: `sanitize_fast` returns its input unchanged when
  nothing is replaced and raises `NonUtf8Error` for invalid UTF-8;
  `is_xml_char` tells whether a code point is allowed in XML.
- `invoicedocs.compression.xz_decompress(content, uncompressed_size)`
  decompresses an XZ stream; it raises `OSError` for a corrupt stream and
  `ValueError` unless the output is longer than `uncompressed_size`.
- `invoicedocs.models`: `DownloadType`, `DownloadFormat`,
  `DownloadDocRequest` (with `from_dict`, `to_dict` and
  `validate_download_type_and_format`), `ProcessedInvoice`, `ProcessResult`,
  `Cert`, `Xslt`.
- `invoicedocs.invoice.IncomingInvoiceRec`: one invoice row, with
  `extract_year_as_string`, `to_dict` and a readable `str`.
- `invoicedocs.database`: `DbConfig`, the thread-safe `ConnectionPool`
  (`acquire()` is a context manager, `close()` closes idle connections),
  `DbPools`, `check_database_name`, `init_db_connection_pool` and
  `init_db_connection_pools`.
- `invoicedocs.incoming`: `get_incoming_invoice_recs_afterthis` reads invoice
  rows; `rows_to_records` converts rows, skipping any with a missing column.
  `get_incoming_invoice_recs` validates a `DownloadDocRequest` and then fails
  with `CannotExtractDatabaseNameError`, because `extract_dbname` cannot yet
  derive a database name from a request.
- `invoicedocs.object_store`: `MssqlStore` reads `OBJECTSTORE_<year>` tables
  in the `EFaturaDB01_<year>` database; `Store` wraps it with `get` and
  `object_exists`, each taking a bucket, a key and a year. `get` raises
  `MultipleRecordsFoundError` when more than one row matches.
- `invoicedocs.processing`: `process_invoices_according_to_types_and_formats`,
  `process_invoices_into_html` and `process_single_invoice_into_html`.
- `invoicedocs.legacy.S3Object`: an object addressed by year and path.
- `invoicedocs.errors`: the `AppError` hierarchy (`DbError`,
  `DownloadRequestError`, `ObjectStoreError`, `ProcessError`, `XmlError` and
  their specific subclasses), `add_context` to wrap an error with the name of
  the step that failed, and the `ProcessingError` record.

## Tests

```
pytest
```