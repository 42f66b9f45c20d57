"""XZ decompression of stored documents."""

from __future__ import annotations

import lzma


def xz_decompress(content: bytes, uncompressed_size: int) -> bytes:
    """Decompress an XZ stream.

    Raises OSError for a corrupt stream and ValueError unless the output is
    longer than ``uncompressed_size``.
    """
    try:
        out = lzma.decompress(content, format=lzma.FORMAT_XZ)
    except lzma.LZMAError as exc:
        raise OSError(f"xz decompression failed: {exc}") from exc
    if not uncompressed_size < len(out):
        raise ValueError("Decompressed size mismatch")
    return out