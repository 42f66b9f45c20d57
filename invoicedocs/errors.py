"""Error types for the database, request, object store, processing and XML layers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional


class AppError(Exception):
    """Base class of every error raised by the application."""

    func: Optional[str] = None
    source: Optional[BaseException] = None

    def __init__(self, message: str = "") -> None:
        super().__init__(message)


class DbError(AppError):
    """Failure while creating or using a database connection pool."""


class WrongDatabaseNameError(DbError):
    """The configured database is not the one the service expects."""

    def __init__(self, expected: str, found: str) -> None:
        super().__init__(f"wrong database name: expected '{expected}', got '{found}'")
        self.expected = expected
        self.found = found


class DbConfigError(DbError):
    """The database configuration is unusable."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"invalid config: {detail}")
        self.detail = detail


class DownloadRequestError(AppError):
    """Failure while serving a download request."""


class CannotExtractDatabaseNameError(DownloadRequestError):
    """No database name could be derived for the request."""

    def __init__(self, path: str) -> None:
        super().__init__(f"can not extract database name path: {path}")
        self.path = path


class InvalidTypeFormatError(DownloadRequestError):
    """The combination of download type and format is not supported."""

    def __init__(self, download_type: Any, format: Any) -> None:
        super().__init__(
            f"invalid combination of download type '{download_type}' and format '{format}'"
        )
        self.download_type = download_type
        self.format = format


class ObjectStoreError(AppError):
    """Failure while reading from the object store."""


class MultipleRecordsFoundError(ObjectStoreError):
    """More than one object matched a bucket and key."""

    def __init__(self, bucket: str, key: str) -> None:
        super().__init__(f"Multiple records found in bucket '{bucket}' for key '{key}'")
        self.bucket = bucket
        self.key = key


class MissingFieldError(ObjectStoreError):
    """A stored object lacks a required column."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Missing field '{field}' ")
        self.field = field


class ProcessError(AppError):
    """Failure while converting an invoice."""


class UblNotFoundError(ProcessError):
    """The UBL document of an invoice is not in the object store."""

    def __init__(self, invoice_id: str, object_id: str) -> None:
        super().__init__(
            f"Ubl Not found in Object store: invoice id:{invoice_id} objectId: {object_id}"
        )
        self.invoice_id = invoice_id
        self.object_id = object_id


class HtmlConversionError(ProcessError):
    """An invoice could not be rendered as HTML."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Html conversion error: {detail}")
        self.detail = detail


class NonUtf8Error(ProcessError):
    """Content is not valid UTF-8."""

    def __init__(self, decode_error: Optional[UnicodeDecodeError] = None) -> None:
        super().__init__("Found no utf char, returning untouched")
        self.decode_error = decode_error


class XmlError(AppError):
    """Failure while handling XML."""


class XmlParseError(XmlError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"parse error: {detail}")
        self.detail = detail


class XmlValidationError(XmlError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"validation failed: {detail}")
        self.detail = detail


_FAMILIES = (DbError, DownloadRequestError, ObjectStoreError, ProcessError, XmlError)


def add_context(error: BaseException, func: str) -> AppError:
    """Wrap ``error`` in an error of the same family that names ``func``.

    Errors from outside the application become plain ``AppError`` values.
    """
    family = next((cls for cls in _FAMILIES if isinstance(error, cls)), AppError)
    if isinstance(error, AppError):
        detail = str(error)
    elif isinstance(error, OSError):
        detail = f"io error: {error}"
    else:
        detail = f"other: {error}"
    wrapped = family(f"{func}: {detail}")
    wrapped.func = func
    wrapped.source = error
    wrapped.__cause__ = error
    return wrapped


@dataclass
class ProcessingError:
    """A per-invoice problem recorded while processing a batch."""

    invoice_id: str
    error_code: Optional[str]
    message: str

    def to_dict(self) -> dict:
        return asdict(self)