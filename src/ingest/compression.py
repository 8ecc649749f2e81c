"""Gzip codec for cached page payloads.

Entry pages compress to a few percent of their JSON size, which keeps
many pages inside a small hosted Redis instance.
"""

from __future__ import annotations

import gzip


def compress_payload(payload: bytes) -> bytes:
    """Compress bytes with maximum gzip compression."""
    return gzip.compress(payload, compresslevel=9)


def decompress_payload(payload: bytes) -> bytes:
    """Reverse ``compress_payload``.

    Raises:
        OSError: If the payload is not a valid gzip stream.
        EOFError: If the payload is truncated.
    """
    return gzip.decompress(payload)
