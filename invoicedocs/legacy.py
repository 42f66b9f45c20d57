"""The older S3-style object description kept for existing callers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import AppError
from .models import Cert, Xslt

log = logging.getLogger(__name__)


@dataclass
class S3Object:
    """A stored UBL document addressed by year and path."""

    year: int = 0
    path: str = ""
    path_sanitized: str = ""
    bucket: str = ""
    only_ubl: bytes = b""
    ubl: bytes = b""
    full_ubl: bytes = b""
    xslt: Optional[Xslt] = None
    cert: Optional[Cert] = None

    @classmethod
    def new_with_yearpath(cls, year: int, path: str) -> "S3Object":
        """An object for ``path`` whose stored name has dashes for slashes and ``.xz``."""
        return cls(year=year, path=path, path_sanitized=f"{path.replace('/', '-')}.xz")

    def get_dbname(self) -> str:
        """The database holding the object; the bucket must be set."""
        if not self.bucket:
            raise AppError("Bucket is empty")
        return "s3object_db"

    def get_ubl(self) -> "S3Object":
        """Fetch the UBL document; currently yields an empty object."""
        log.info("in do_getubl S3Object: %s", self)
        return S3Object()

    def __str__(self) -> str:
        only_ubl_len = f"[{len(self.only_ubl)} bytes]" if self.only_ubl else "0"
        return (
            f"S3Object {{ year: {self.year}, path: {self.path or 'unset'}, "
            f"sanizied path: {self.path_sanitized or 'unset'} "
            f"only_ubl_len: {only_ubl_len} }}"
        )