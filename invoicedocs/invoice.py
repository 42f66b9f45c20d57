"""Incoming invoice records."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Optional

_YEAR_RE = re.compile(r"-\b(\d{4})\b")


@dataclass
class IncomingInvoiceRec:
    """One row of the incoming invoice table."""

    uuid: str = ""
    invoice_id: str = ""
    receiver_contact: str = ""
    sira_no: int = 0
    path: str = ""

    def extract_year_as_string(self) -> Optional[str]:
        """The first four-digit year that follows a dash in the path."""
        match = _YEAR_RE.search(self.path)
        return match.group(1) if match else None

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self) -> str:
        def shown(value: str) -> str:
            return value or "unset"

        return (
            f"IncomingInvoiceRec {{ uuid: {shown(self.uuid)}, "
            f"invoice_id: {shown(self.invoice_id)}, "
            f"receiver_contact: {shown(self.receiver_contact)}, "
            f"sira_no: {self.sira_no}, path: {shown(self.path)} }}"
        )