"""Request, result and document value types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from itertools import product
from typing import Any, Mapping, Optional

from .errors import InvalidTypeFormatError


class DownloadType(str, Enum):
    """Kind of document a client asks for."""

    HTML = "Html"
    PDF = "Pdf"
    UBL = "Ubl"
    UBL_XSLT_SEPARATE = "Ubl_Xslt_Separate"

    def __str__(self) -> str:
        return self.value


class DownloadFormat(str, Enum):
    """Archive format the documents are delivered in."""

    ZIP = "zip"
    GZIP = "gzip"

    def __str__(self) -> str:
        return self.value.capitalize()


_VALID_COMBINATIONS = frozenset(product(DownloadType, DownloadFormat))


@dataclass(frozen=True)
class DownloadDocRequest:
    """A client's request for the documents after a given sequence number."""

    source_vkntckn: str
    after_this: int
    download_type: DownloadType
    format: DownloadFormat

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DownloadDocRequest":
        """Build a request from its JSON form, raising ValueError on bad input."""
        try:
            source = data["source_vkntckn"]
            after_this = data["after_this"]
            download_type = DownloadType(data["download_type"])
            fmt = DownloadFormat(data["format"])
        except KeyError as exc:
            raise ValueError(f"missing field {exc.args[0]!r}") from exc
        if not isinstance(source, str):
            raise ValueError("source_vkntckn must be a string")
        if isinstance(after_this, bool) or not isinstance(after_this, int):
            raise ValueError("after_this must be an integer")
        return cls(source, after_this, download_type, fmt)

    def to_dict(self) -> dict:
        return {
            "source_vkntckn": self.source_vkntckn,
            "after_this": self.after_this,
            "download_type": DownloadType(self.download_type).value,
            "format": DownloadFormat(self.format).value,
        }

    def validate_download_type_and_format(self) -> None:
        """Raise InvalidTypeFormatError unless the type and format go together."""
        if (self.download_type, self.format) not in _VALID_COMBINATIONS:
            raise InvalidTypeFormatError(self.download_type, self.format)

    def __str__(self) -> str:
        return (
            f"Source vkntckn: {self.source_vkntckn} after count: {self.after_this} "
            f"download type: {self.download_type} format: {self.format}"
        )


@dataclass
class ProcessedInvoice:
    data: bytes = b""


@dataclass
class ProcessResult:
    """Outcome of processing a batch of invoices."""

    data: str
    filename: str
    record_count: int
    size_bytes: int


@dataclass
class Cert:
    cert: bytes = b""


@dataclass
class Xslt:
    xslt: bytes = b""
    compiled_xslt: Optional[bytes] = None