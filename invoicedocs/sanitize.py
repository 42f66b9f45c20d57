"""Neutralising numeric character references that XML forbids."""

from __future__ import annotations

import re

from .errors import NonUtf8Error

_ENTITY_RE = re.compile(r"&#((x[0-9A-Fa-f]+|\d+));", re.ASCII)
_U32_MAX = 0xFFFFFFFF


def is_xml_char(code: int) -> bool:
    """Whether ``code`` is a character allowed in an XML document."""
    return (
        code in (0x9, 0xA, 0xD)
        or 0x20 <= code < 0xD800
        or 0xE000 <= code < 0xFFFE
        or 0x10000 <= code < 0x110000
    )


def _replace(match: re.Match) -> str:
    reference = match.group(1)
    if reference[0] in "xX":
        code = int(reference[1:], 16)
    else:
        code = int(reference)
    if code <= _U32_MAX and not is_xml_char(code):
        return f"-sanitized-{reference}--"
    return match.group(0)


def sanitize_fast(content: bytes) -> bytes:
    """Replace references such as ``&#x1F;`` to invalid characters.

    Returns ``content`` itself when nothing changes. Raises NonUtf8Error when
    the content is not valid UTF-8.
    """
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise NonUtf8Error(exc) from exc
    replaced = _ENTITY_RE.sub(_replace, text)
    if replaced == text:
        return content
    return replaced.encode("utf-8")